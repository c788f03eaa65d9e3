# Crit Summary
# AI feedback summaries per design, and promoting their next steps to the board

import sys
import os

# Add parent directory to path for shared imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from flask import Flask, request, jsonify

from crit import (
    AuthError,
    NothingToSummarize,
    SupabaseStore,
    enable_cors,
    error_response,
    generate_summary,
    health_response,
    promote_next_step,
    require_user
)

app = Flask(__name__)
enable_cors(app)

store = SupabaseStore()


@app.route('/generate-summary', methods=['POST'])
def summarize():
    """Generate (or regenerate) the feedback summary for a design.

    Accepts:
        - designId: Design to summarize
        - projectId: Project it belongs to

    Returns:
        - success: True
        - summary: The stored feedback_summaries row

    400 when the design has no comments yet.
    """
    try:
        data = request.get_json(silent=True) or {}

        design_id = data.get('designId')
        project_id = data.get('projectId')
        if not design_id or not project_id:
            return error_response('designId and projectId are required', 400)

        summary = generate_summary(store, project_id, design_id)
        print(f"Summary saved for design {design_id}")

        return jsonify({'success': True, 'summary': summary})

    except NothingToSummarize as e:
        return error_response(str(e), 400)
    except Exception as e:
        print(f"Error generating summary: {e}")
        return error_response(str(e) or 'Internal server error', 500)


@app.route('/board-items', methods=['POST'])
def add_to_board():
    """Promote a summary next step to the board.

    Accepts:
        - projectId / designId: Where the summary came from
        - step: {title, description, tag, priority} from the summary
    """
    try:
        user = require_user(store)
        data = request.get_json(silent=True) or {}

        project_id = data.get('projectId')
        if not project_id:
            return error_response('No project provided', 400)

        item = promote_next_step(
            store,
            user['id'],
            project_id,
            data.get('designId'),
            data.get('step') or {}
        )
        return jsonify({'success': True, 'item': item})

    except AuthError as e:
        return error_response(str(e), 401)
    except ValueError as e:
        return error_response(str(e), 400)
    except Exception as e:
        print(f"Error adding board item: {e}")
        return error_response(str(e) or 'Internal server error', 500)


@app.route('/health', methods=['GET'])
def health():
    """Health check endpoint"""
    return health_response('Crit Summary', '1.0')


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 8080))
    app.run(host='0.0.0.0', port=port)
