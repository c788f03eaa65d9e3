# Crit Slack Events
# Slack Events API endpoint: URL verification and listening-channel capture

import sys
import os

# Add parent directory to path for shared imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from flask import Flask, request, jsonify

from crit import (
    SLACK_ROUTE_TARGET,
    SupabaseStore,
    enable_cors,
    error_response,
    handle_slack_payload,
    health_response
)

app = Flask(__name__)
enable_cors(app)

store = SupabaseStore()


@app.route('/slack-events', methods=['POST'])
def slack_events():
    """Receive a Slack Events API request.

    Accepts:
        - type: 'url_verification' (challenge is echoed back) or 'event_callback'
        - team_id / event: For message events in listening channels

    Messages from bots and message subtypes (edits, joins) are ignored.
    """
    try:
        body = request.get_json(silent=True) or {}
        return jsonify(handle_slack_payload(store, body, SLACK_ROUTE_TARGET))

    except Exception as e:
        print(f"Error handling Slack event: {e}")
        return error_response(str(e) or 'Internal server error', 500)


@app.route('/health', methods=['GET'])
def health():
    """Health check endpoint"""
    return health_response('Crit Slack Events', '1.0')


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 8080))
    app.run(host='0.0.0.0', port=port)
