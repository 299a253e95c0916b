"""
Microsoft Authentication (Azure AD) for the HTTP trigger of the quota check.

Callers (a Logic App, an Automation runbook, a scheduler with its own managed
identity) send an Azure AD access token issued for the monitor's app
registration.
"""
import os
from functools import wraps

import jwt
from flask import jsonify, request
from jwt import PyJWKClient

# Azure AD configuration
AZURE_TENANT_ID = os.environ.get('AZURE_TENANT_ID', '').strip()
API_AUDIENCE = os.environ.get('QUOTA_MONITOR_API_AUDIENCE', '').strip()
AUTH_ENABLED = os.environ.get('ENABLE_AUTH', '0') == '1'
AZURE_AUTHORITY = f"https://login.microsoftonline.com/{AZURE_TENANT_ID}" if AZURE_TENANT_ID else None
JWKS_URL = f"{AZURE_AUTHORITY}/discovery/v2.0/keys" if AZURE_AUTHORITY else None

_jwks_client = None


def get_jwks_client():
    """Get or create the signing key client for the tenant."""
    global _jwks_client
    if _jwks_client is None:
        _jwks_client = PyJWKClient(JWKS_URL)
    return _jwks_client


def accepted_issuers():
    # Tokens can come from either the v2.0 or the v1.0 endpoint
    return [
        f"{AZURE_AUTHORITY}/v2.0",
        f"https://sts.windows.net/{AZURE_TENANT_ID}/",
    ]


def validate_token(token):
    """
    Validate an Azure AD access token.

    Returns:
        dict: Decoded token claims if valid, None if invalid
    """
    if not token:
        return None

    try:
        signing_key = get_jwks_client().get_signing_key_from_jwt(token)
        claims = jwt.decode(
            token,
            signing_key.key,
            algorithms=['RS256'],
            audience=API_AUDIENCE,
            options={'verify_iss': False}
        )
    except jwt.ExpiredSignatureError:
        print("Token has expired")
        return None
    except jwt.PyJWKClientError as e:
        print(f"Could not get signing key: {e}")
        return None
    except jwt.InvalidTokenError as e:
        print(f"Invalid token: {e}")
        return None

    # PyJWT only checks a single issuer, so both token versions are checked here
    if claims.get('iss') not in accepted_issuers():
        print(f"DEBUG: Token issuer {claims.get('iss')} not accepted for tenant {AZURE_TENANT_ID}")
        return None
    return claims


def get_token_from_request():
    """Extract bearer token from request headers."""
    auth_header = request.headers.get('Authorization', '')
    if auth_header.startswith('Bearer '):
        return auth_header[7:]
    return None


def require_auth(f):
    """
    Decorator to require an Azure AD token on an endpoint when ENABLE_AUTH=1.

    Usage:
        @app.route('/api/quota-check', methods=['POST'])
        @require_auth
        def quota_check():
            caller = request.user  # Contains decoded token claims
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not AUTH_ENABLED:
            request.user = {}
            return f(*args, **kwargs)

        if not AZURE_TENANT_ID or not API_AUDIENCE:
            return jsonify({'error': 'Authentication not configured'}), 500

        token = get_token_from_request()
        if not token:
            return jsonify({'error': 'Authorization token required'}), 401

        user = validate_token(token)
        if not user:
            print("DEBUG: Token validation failed")
            return jsonify({'error': 'Invalid or expired token'}), 401

        print(f"DEBUG: Token validated for caller: {user.get('appid') or user.get('azp') or user.get('oid', 'unknown')}")
        request.user = user
        return f(*args, **kwargs)

    return decorated_function
