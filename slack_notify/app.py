# Crit Slack Notify
# Posts a "new feedback" message to the project owner's Slack channel

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
    send_comment_notification,
    validate_rating
)
from crit.config import DESIGNS_TABLE

app = Flask(__name__)
enable_cors(app)

store = SupabaseStore()


@app.route('/slack-notify', methods=['POST'])
def slack_notify():
    """Send a Slack notification for a comment.

    Accepts:
        - designId: Design the comment was left on
        - authorName: Who left it
        - content: Comment text
        - rating: Optional 1-5 (anything else is a 400)

    Returns success false (still 200) when Slack isn't configured or the
    webhook rejects the message.
    """
    try:
        data = request.get_json(silent=True) or {}

        design_id = data.get('designId')
        if not design_id or not store.select_one(DESIGNS_TABLE, {'id': design_id}):
            return error_response('Design not found', 404)

        rating = data.get('rating')
        validate_rating(rating)

        result = send_comment_notification(
            store,
            design_id,
            data.get('authorName', ''),
            data.get('content', ''),
            rating
        )
        return jsonify(result)

    except ValueError as e:
        return error_response(str(e), 400)
    except Exception as e:
        print(f"Error sending Slack notification: {e}")
        return error_response(str(e) or 'Internal server error', 500)


@app.route('/health', methods=['GET'])
def health():
    """Health check endpoint"""
    return health_response('Crit Slack Notify', '1.0')


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 8080))
    app.run(host='0.0.0.0', port=port)
