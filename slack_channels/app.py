# Crit Slack Channels
# Pick which Slack channels feed messages into Crit

import sys
import os

# Add parent directory to path for shared imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from flask import Flask, request, jsonify

from crit import (
    AuthError,
    ListeningChannels,
    SlackAPIError,
    SupabaseStore,
    enable_cors,
    error_response,
    fetch_channels,
    health_response,
    require_user,
    save_listening_channels
)
from crit.config import PROFILES_TABLE

app = Flask(__name__)
enable_cors(app)

store = SupabaseStore()


def _connected_profile(user):
    profile = store.select_one(PROFILES_TABLE, {'id': user['id']})
    if not profile or not profile.get('slack_access_token'):
        return None
    return profile


@app.route('/slack-channels', methods=['GET'])
def list_channels():
    """Channels available to listen on, plus the current selection"""
    try:
        user = require_user(store)
        profile = _connected_profile(user)
        if not profile:
            return error_response('Slack not connected', 400)

        try:
            channels = fetch_channels(profile['slack_access_token'])
        except SlackAPIError as e:
            return error_response(str(e), 400)

        listening = ListeningChannels.decode(profile.get('slack_listening_channels'))
        return jsonify({
            'channels': channels,
            'listening_channels': listening.channels
        })

    except AuthError as e:
        return error_response(str(e), 401)
    except Exception as e:
        print(f"Error listing Slack channels: {e}")
        return error_response(str(e) or 'Internal server error', 500)


@app.route('/slack-channels', methods=['POST'])
def update_channels():
    """Replace the listening channel list.

    Accepts:
        - channels: List of Slack channel ids
    """
    try:
        user = require_user(store)
        if not _connected_profile(user):
            return error_response('Slack not connected', 400)

        channels = (request.get_json(silent=True) or {}).get('channels')
        if not isinstance(channels, list):
            return error_response('channels must be a list of channel ids', 400)

        save_listening_channels(store, user['id'], channels)
        return jsonify({'success': True})

    except AuthError as e:
        return error_response(str(e), 401)
    except Exception as e:
        print(f"Error updating Slack channels: {e}")
        return error_response('Failed to update channels', 500)


@app.route('/health', methods=['GET'])
def health():
    """Health check endpoint"""
    return health_response('Crit Slack Channels', '1.0')


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 8080))
    app.run(host='0.0.0.0', port=port)
