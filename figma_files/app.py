# Crit Figma Files
# Register, list and stop tracking Figma files for comment sync, and import Figma designs

import sys
import os

# Add parent directory to path for shared imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from flask import Flask, request, jsonify

from crit import (
    AuthError,
    FigmaAPIError,
    SupabaseStore,
    enable_cors,
    error_response,
    extract_file_key,
    fetch_file_info,
    health_response,
    import_figma_design,
    require_user
)
from crit.config import (
    FIGMA_CONNECTIONS_TABLE,
    FIGMA_SYNC_PREFERENCES_TABLE,
    FIGMA_TRACKED_FILES_TABLE
)

app = Flask(__name__)
enable_cors(app)

store = SupabaseStore()

REQUIRED_FIELDS = ('file_key', 'file_name', 'file_url', 'project_id')
PREFERENCE_FIELDS = ('sync_all_comments', 'sync_only_mentions', 'sync_unresolved_only')


def _figma_token(user):
    connection = store.select_one(FIGMA_CONNECTIONS_TABLE, {'user_id': user['id']})
    return connection.get('access_token') if connection else None


def file_info(user):
    """Resolve a pasted Figma URL to its file key and name"""
    file_url = request.args.get('url')
    if not file_url:
        return error_response('Missing file URL', 400)

    file_key = extract_file_key(file_url)
    if not file_key:
        return error_response('Invalid Figma URL', 400)

    access_token = _figma_token(user)
    if not access_token:
        return error_response('Figma not connected', 400)

    try:
        figma_file = fetch_file_info(access_token, file_key)
    except FigmaAPIError as e:
        return error_response(str(e), e.status_code)

    return jsonify({
        'file_key': file_key,
        'file_name': figma_file.get('name'),
        'file_url': file_url
    })


@app.route('/figma-files', methods=['GET'])
def list_files():
    """List the user's tracked files, or look up one URL with ?action=file-info&url=..."""
    try:
        user = require_user(store)

        if request.args.get('action') == 'file-info':
            return file_info(user)

        files = store.select(
            FIGMA_TRACKED_FILES_TABLE,
            {'user_id': user['id']},
            order='created_at',
            desc=True
        )
        for tracked_file in files:
            tracked_file['preferences'] = store.select_one(
                FIGMA_SYNC_PREFERENCES_TABLE,
                {'tracked_file_id': tracked_file['id']}
            )

        return jsonify({'files': files})

    except AuthError as e:
        return error_response(str(e), 401)
    except Exception as e:
        print(f"Error listing Figma files: {e}")
        return error_response(str(e) or 'Internal server error', 500)


@app.route('/figma-files', methods=['POST'])
def track_file():
    """Start syncing comments from a Figma file.

    Accepts:
        - file_key, file_name, file_url, project_id: All required
        - preferences: Optional sync_all_comments / sync_only_mentions /
          sync_unresolved_only flags
    """
    try:
        user = require_user(store)
        data = request.get_json(silent=True) or {}

        if any(not data.get(field) for field in REQUIRED_FIELDS):
            return error_response('Missing required fields', 400)

        tracked_file = store.insert(FIGMA_TRACKED_FILES_TABLE, {
            'user_id': user['id'],
            'project_id': data['project_id'],
            'file_key': data['file_key'],
            'file_name': data['file_name'],
            'file_url': data['file_url'],
            'sync_enabled': True
        })

        preferences = data.get('preferences')
        if preferences:
            row = {field: bool(preferences.get(field)) for field in PREFERENCE_FIELDS}
            row.update({'user_id': user['id'], 'tracked_file_id': tracked_file['id']})
            store.upsert(FIGMA_SYNC_PREFERENCES_TABLE, row, on_conflict='tracked_file_id')

        print(f"Tracking Figma file {data['file_key']} for user {user['id']}")
        return jsonify({'success': True, 'file': tracked_file})

    except AuthError as e:
        return error_response(str(e), 401)
    except Exception as e:
        print(f"Error tracking Figma file: {e}")
        return error_response(str(e) or 'Internal server error', 500)


@app.route('/figma-files', methods=['DELETE'])
def untrack_file():
    """Stop tracking a file (?id=<tracked file id>)"""
    try:
        user = require_user(store)

        file_id = request.args.get('id')
        if not file_id:
            return error_response('Missing file ID', 400)

        store.delete(FIGMA_TRACKED_FILES_TABLE, {'id': file_id, 'user_id': user['id']})
        return jsonify({'success': True})

    except AuthError as e:
        return error_response(str(e), 401)
    except Exception as e:
        print(f"Error deleting tracked Figma file: {e}")
        return error_response(str(e) or 'Internal server error', 500)


@app.route('/figma-import', methods=['POST'])
def import_design():
    """Create a design in a project from a Figma file or frame URL.

    Accepts:
        - figmaUrl: Figma file/design URL, optionally with ?node-id= for a frame preview
        - projectId: Project the design belongs to
        - designName: Optional, defaults to the Figma file's name

    Returns:
        - success: True
        - design: The stored design row
    """
    try:
        user = require_user(store)
        data = request.get_json(silent=True) or {}

        figma_url = data.get('figmaUrl')
        project_id = data.get('projectId')
        if not figma_url or not project_id:
            return error_response('figmaUrl and projectId are required', 400)

        if not extract_file_key(figma_url):
            return error_response('Invalid Figma URL', 400)

        access_token = _figma_token(user)
        if not access_token:
            return error_response('Figma not connected', 400)

        design = import_figma_design(store, access_token, project_id, figma_url, data.get('designName'))
        return jsonify({'success': True, 'design': design})

    except AuthError as e:
        return error_response(str(e), 401)
    except FigmaAPIError as e:
        return error_response(str(e), e.status_code)
    except ValueError as e:
        return error_response(str(e), 400)
    except Exception as e:
        print(f"Error importing Figma design: {e}")
        return error_response(str(e) or 'Internal server error', 500)


@app.route('/health', methods=['GET'])
def health():
    """Health check endpoint"""
    return health_response('Crit Figma Files', '1.0')


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 8080))
    app.run(host='0.0.0.0', port=port)
