# Crit Figma Webhook
# Turns FILE_COMMENT events on tracked Figma files into Crit comments

import sys
import os

# Add parent directory to path for shared imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from flask import Flask, request, jsonify

from crit import (
    SupabaseStore,
    enable_cors,
    error_response,
    health_response,
    ingest_figma_event,
    notify_in_background
)

app = Flask(__name__)
enable_cors(app)

store = SupabaseStore()


@app.route('/figma-webhook', methods=['POST'])
def figma_webhook():
    """Receive a Figma webhook delivery.

    Accepts the Figma webhook payload (event_type, file_key, comment).

    Returns 200 for anything that isn't an error, including untracked files
    and comments filtered out by sync preferences, so Figma doesn't retry.
    Database failures return 500 with the underlying message.
    """
    try:
        payload = request.get_json(silent=True) or {}
        print(f"Received Figma webhook: {payload.get('event_type')} for file {payload.get('file_key')}")

        result, comment = ingest_figma_event(store, payload)
        if comment:
            notify_in_background(store, comment)

        return jsonify(result)

    except Exception as e:
        print(f"Error handling Figma webhook: {e}")
        return error_response(str(e) or 'Internal server error', 500)


@app.route('/health', methods=['GET'])
def health():
    """Health check endpoint"""
    return health_response('Crit Figma Webhook', '1.0')


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 8080))
    app.run(host='0.0.0.0', port=port)
