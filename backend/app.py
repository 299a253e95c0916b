"""
HTTP trigger for the Cosmos DB throughput quota check.

An external scheduler calls POST /api/quota-check on its timer; the check runs
synchronously and the alert email is sent when any collection exceeds its
maximum throughput.
"""
from flask import Flask, request, jsonify
import os

from account_discovery import AccountDiscovery
from alert_report import QuotaReporter
from auth import require_auth
from errors import AuthenticationError, ConnectivityError, DiscoveryError, NotificationError
from notifier import notify

app = Flask(__name__)


def build_reporter():
    """Create a reporter wired to Azure with the configured identity."""
    return QuotaReporter(AccountDiscovery())


@app.route('/api/health', methods=['GET'])
def health():
    return jsonify({'status': 'ok'}), 200


@app.route('/api/quota-check', methods=['POST'])
@require_auth
def quota_check():
    """
    Run one quota check.

    Query parameters:
        send=0 - return the message without emailing it

    Returns 204 when no collection exceeds its maximum, otherwise 200 with the
    message body.
    """
    send = request.args.get('send', '1') != '0'

    try:
        message = build_reporter().run()
    except AuthenticationError as e:
        print(f"❌ Error: {e}")
        return jsonify({'error': f'Authentication with Azure failed: {e}'}), 502
    except DiscoveryError as e:
        print(f"❌ Error: {e}")
        return jsonify({'error': str(e)}), 502
    except ConnectivityError as e:
        print(f"❌ Error: {e}")
        return jsonify({'error': f'Could not scan Cosmos DB account: {e}', 'endpoint': e.endpoint_uri}), 502

    if message is None:
        print("✓ No collection exceeds its maximum throughput")
        return '', 204

    sent = False
    if send:
        try:
            notify(message)
            sent = True
        except NotificationError as e:
            print(f"❌ Error: {e}")
            return jsonify({'error': str(e), 'message': message}), 502

    return jsonify({'message': message, 'sent': sent}), 200


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5001))
    debug_mode = os.environ.get('FLASK_ENV') == 'development'

    print("=" * 50)
    print("Cosmos DB throughput quota monitor")
    print(f"Server running on: http://0.0.0.0:{port}")
    print("=" * 50)

    app.run(debug=debug_mode, port=port, host='0.0.0.0')
