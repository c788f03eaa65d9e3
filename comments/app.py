# Crit Comments
# Web comment submission, status changes and the feedback inbox

import sys
import os

# Add parent directory to path for shared imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from flask import Flask, request, jsonify

from crit import (
    COMMENT_STATUSES,
    AuthError,
    Comment,
    SupabaseStore,
    enable_cors,
    error_response,
    from_web,
    health_response,
    notify_in_background,
    require_user,
    save_comment,
    utc_now_iso
)
from crit.config import COMMENTS_TABLE, DESIGNS_TABLE

app = Flask(__name__)
enable_cors(app)

store = SupabaseStore()


def comment_json(comment):
    """Comment as returned to the browser, with its derived source tags"""
    data = comment.to_row()
    data.update({
        'id': comment.id,
        'created_at': comment.created_at,
        'viewed_at': comment.viewed_at,
        'origin': comment.origin.value,
        'stakeholder_role': comment.role_tag
    })
    return data


@app.route('/comments', methods=['POST'])
def create_comment():
    """Submit feedback from the review page.

    Accepts:
        - designId: Design being reviewed
        - authorName / authorEmail: Identified stakeholder details
        - stakeholderId: Stakeholder record (anonymous reviewers)
        - content: Feedback text
        - rating: Optional 1-5
        - x / y: Optional pin position (percentages, both or neither)
        - pageUrl: Optional page context for multi-page prototypes

    A signed-in user (bearer token) is recorded as the author instead.
    The Slack notification is sent in the background and never affects
    the response.
    """
    try:
        data = request.get_json(silent=True) or {}

        design_id = data.get('designId')
        if not design_id:
            return error_response('No design provided', 400)

        user_id = None
        author_name = data.get('authorName')
        author_email = data.get('authorEmail')
        if request.headers.get('Authorization'):
            user = require_user(store)
            user_id = user['id']
            metadata = user.get('user_metadata') or {}
            author_name = author_name or metadata.get('full_name') or user.get('email')
            author_email = author_email or user.get('email')
        elif not data.get('stakeholderId'):
            return error_response('Sign in or identify yourself to leave feedback', 401)

        if not store.select_one(DESIGNS_TABLE, {'id': design_id}):
            return error_response('Design not found', 404)

        comment = from_web(
            design_id=design_id,
            author_name=author_name,
            author_email=author_email,
            content=data.get('content'),
            rating=data.get('rating'),
            x=data.get('x'),
            y=data.get('y'),
            page_url=data.get('pageUrl'),
            user_id=user_id,
            stakeholder_id=data.get('stakeholderId')
        )
        comment = save_comment(store, comment)
        print(f"New comment {comment.id} on design {design_id} from {comment.author_name}")

        notify_in_background(store, comment)

        return jsonify({'success': True, 'comment': comment_json(comment)})

    except AuthError as e:
        return error_response(str(e), 401)
    except ValueError as e:
        return error_response(str(e), 400)
    except Exception as e:
        print(f"Error creating comment: {e}")
        return error_response(str(e) or 'Internal server error', 500)


@app.route('/comments/<comment_id>/status', methods=['PUT'])
def update_status(comment_id):
    """Move a comment between open, resolved and archived"""
    try:
        require_user(store)
        data = request.get_json(silent=True) or {}

        status = data.get('status')
        if status not in COMMENT_STATUSES:
            return error_response(f"Status must be one of: {', '.join(COMMENT_STATUSES)}", 400)

        rows = store.update(COMMENTS_TABLE, {'id': comment_id}, {'status': status})
        if not rows:
            return error_response('Comment not found', 404)

        return jsonify({'success': True, 'comment': comment_json(Comment.from_row(rows[0]))})

    except AuthError as e:
        return error_response(str(e), 401)
    except Exception as e:
        print(f"Error updating comment status: {e}")
        return error_response(str(e) or 'Internal server error', 500)


@app.route('/comments/<comment_id>/viewed', methods=['POST'])
def mark_viewed(comment_id):
    """Mark a comment as seen in the inbox. Already-seen comments keep their first timestamp."""
    try:
        require_user(store)

        row = store.select_one(COMMENTS_TABLE, {'id': comment_id})
        if not row:
            return error_response('Comment not found', 404)

        comment = Comment.from_row(row)
        changed = comment.mark_viewed(utc_now_iso())
        if changed:
            # Only writes while viewed_at is still empty in the table
            rows = store.update(
                COMMENTS_TABLE,
                {'id': comment_id, 'viewed_at': None},
                {'viewed_at': comment.viewed_at}
            )
            if not rows:
                comment = Comment.from_row(store.select_one(COMMENTS_TABLE, {'id': comment_id}))
                changed = False

        return jsonify({'success': True, 'viewed_at': comment.viewed_at, 'changed': changed})

    except AuthError as e:
        return error_response(str(e), 401)
    except Exception as e:
        print(f"Error marking comment viewed: {e}")
        return error_response(str(e) or 'Internal server error', 500)


@app.route('/inbox', methods=['GET'])
def inbox():
    """Comments on a design, newest first, with unviewed count"""
    try:
        require_user(store)

        design_id = request.args.get('designId')
        if not design_id:
            return error_response('No design provided', 400)

        rows = store.select(COMMENTS_TABLE, {'design_id': design_id}, order='created_at', desc=True)
        comments = [Comment.from_row(row) for row in rows]

        return jsonify({
            'comments': [comment_json(comment) for comment in comments],
            'unviewed': sum(1 for comment in comments if not comment.viewed_at)
        })

    except AuthError as e:
        return error_response(str(e), 401)
    except Exception as e:
        print(f"Error loading inbox: {e}")
        return error_response(str(e) or 'Internal server error', 500)


@app.route('/health', methods=['GET'])
def health():
    """Health check endpoint"""
    return health_response('Crit Comments', '1.0')


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 8080))
    app.run(host='0.0.0.0', port=port)
