"""
Email delivery of the throughput alert through the SendGrid v3 API.

Environment Variables:
    SENDGRID_API_KEY - SendGrid API key with Mail Send permission
    ALERT_EMAIL_FROM - sender address
    ALERT_EMAIL_TO - comma-separated recipient addresses
    ALERT_EMAIL_SUBJECT - subject line (default: 'Cosmos DB throughput alert')
"""

import os
from typing import Any, Dict, List, Optional

import requests

from errors import NotificationError

SENDGRID_URL = 'https://api.sendgrid.com/v3/mail/send'

# Configuration
SENDGRID_API_KEY = os.environ.get('SENDGRID_API_KEY', '').strip()
ALERT_EMAIL_FROM = os.environ.get('ALERT_EMAIL_FROM', '').strip()
ALERT_EMAIL_TO = os.environ.get('ALERT_EMAIL_TO', '').strip()
ALERT_EMAIL_SUBJECT = os.environ.get('ALERT_EMAIL_SUBJECT', 'Cosmos DB throughput alert')


def parse_recipients(value: str) -> List[str]:
    return [address.strip() for address in value.split(',') if address.strip()]


def build_message(body: str, sender: str, recipients: List[str], subject: str = ALERT_EMAIL_SUBJECT) -> Dict[str, Any]:
    """Build a SendGrid mail/send payload with a single plain-text content part."""
    return {
        'personalizations': [{'to': [{'email': address} for address in recipients]}],
        'from': {'email': sender},
        'subject': subject,
        'content': [{'type': 'text/plain', 'value': body}],
    }


def send_message(
    message: Dict[str, Any],
    api_key: Optional[str] = None,
    session: Optional[requests.Session] = None
) -> None:
    """Post a payload built by build_message to SendGrid."""
    api_key = api_key or SENDGRID_API_KEY
    if not api_key:
        raise NotificationError("SENDGRID_API_KEY must be set to send alert emails")

    http = session or requests
    try:
        response = http.post(
            SENDGRID_URL,
            json=message,
            headers={'Authorization': f'Bearer {api_key}'},
            timeout=30
        )
        response.raise_for_status()
    except requests.RequestException as e:
        raise NotificationError(f"Could not send alert email: {e}") from e

    recipients = [to['email'] for p in message['personalizations'] for to in p['to']]
    print(f"✓ Alert email sent to {', '.join(recipients)}")


def notify(body: str) -> Dict[str, Any]:
    """Send the alert body to the configured recipients and return the payload sent."""
    recipients = parse_recipients(ALERT_EMAIL_TO)
    if not ALERT_EMAIL_FROM or not recipients:
        raise NotificationError("ALERT_EMAIL_FROM and ALERT_EMAIL_TO must be set to send alert emails")

    message = build_message(body, ALERT_EMAIL_FROM, recipients)
    send_message(message)
    return message
