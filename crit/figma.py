# Crit Figma Sync
# Sync preference filtering, comment ingestion and design import for Figma files

import re
from urllib.parse import unquote

import httpx

from .config import (
    DESIGNS_TABLE,
    FIGMA_API_URL,
    FIGMA_TRACKED_FILES_TABLE,
    HTTP_TIMEOUT
)
from .helpers import utc_now_iso
from .normalizer import from_figma, save_comment
from .tracking import TrackingConfig

FILE_KEY_PATTERN = re.compile(r'(?:file|design)/([a-zA-Z0-9]+)')
NODE_ID_PATTERN = re.compile(r'node-id=([^&]+)')

DEFAULT_IMPORT_NAME = 'Figma Design'


class FigmaAPIError(Exception):
    def __init__(self, message, status_code=502):
        super().__init__(message)
        self.status_code = status_code


def should_sync(preferences, resolved):
    """Decide whether an inbound Figma comment becomes a Crit comment.

    No preference record means sync everything. sync_only_mentions isn't
    consulted: Figma's payload gives us no reliable mention list yet.
    """
    if preferences is None:
        return True
    if preferences.sync_all_comments:
        return True
    return preferences.sync_unresolved_only and not resolved


def resolve_tracked_design(store, tracked_file):
    """Find or create the one design bound to a tracked Figma file.

    The binding is by (project, design name == file name), so every event
    for the same file lands on the same design.
    """
    design = store.select_one(
        DESIGNS_TABLE,
        {'project_id': tracked_file.project_id, 'name': tracked_file.file_name}
    )
    if design:
        return design['id']

    new_design = store.insert(DESIGNS_TABLE, {
        'project_id': tracked_file.project_id,
        'user_id': tracked_file.user_id,
        'name': tracked_file.file_name,
        'source_type': 'figma',
        'source_url': tracked_file.file_url,
    })
    print(f"Created design '{tracked_file.file_name}' for Figma file {tracked_file.file_key}")
    return new_design['id']


def ingest_figma_event(store, payload):
    """Process one Figma webhook delivery.

    Returns (result, comment). `comment` is None whenever nothing was written:
    other event types, untracked files and comments filtered out by the
    file's sync preferences. Store failures propagate as StoreError.
    """
    if payload.get('event_type') != 'FILE_COMMENT':
        return {'message': 'Event type not handled'}, None

    config = TrackingConfig(store)
    tracked_file = config.tracked_file(payload.get('file_key'))
    if not tracked_file:
        print(f"Figma file {payload.get('file_key')} is not tracked")
        return {'message': 'File not tracked'}, None

    figma_comment = payload.get('comment') or {}
    preferences = config.sync_preferences(tracked_file.id)
    if not should_sync(preferences, bool(figma_comment.get('resolved'))):
        return {'message': 'Comment filtered by preferences'}, None

    design_id = resolve_tracked_design(store, tracked_file)
    comment = save_comment(store, from_figma(design_id, figma_comment))

    store.update(
        FIGMA_TRACKED_FILES_TABLE,
        {'id': tracked_file.id},
        {'last_synced_at': utc_now_iso()}
    )

    print(f"Synced Figma comment from {comment.author_name} to design {design_id}")
    return {'success': True, 'designId': design_id, 'commentId': comment.id}, comment


def extract_file_key(figma_url):
    """Pull the file key out of a Figma file/design URL, or None"""
    match = FILE_KEY_PATTERN.search(figma_url or '')
    return match.group(1) if match else None


def fetch_file_info(access_token, file_key):
    """Look up a file's name through the Figma REST API.

    Raises FigmaAPIError with Figma's status code when the call fails.
    """
    try:
        response = httpx.get(
            f'{FIGMA_API_URL}/files/{file_key}',
            headers={'Authorization': f'Bearer {access_token}'},
            params={'depth': 1},
            timeout=HTTP_TIMEOUT
        )
    except httpx.HTTPError as e:
        print(f"Error fetching Figma file {file_key}: {e}")
        raise FigmaAPIError('Failed to fetch file info') from e

    if response.status_code != 200:
        try:
            message = response.json().get('err') or 'Failed to fetch file info'
        except ValueError:
            message = 'Failed to fetch file info'
        raise FigmaAPIError(message, response.status_code)

    return response.json()


def extract_node_id(figma_url):
    """The URL-decoded node-id query value, or None"""
    match = NODE_ID_PATTERN.search(figma_url or '')
    return unquote(match.group(1)) if match else None


def fetch_node_image(access_token, file_key, node_id):
    """Rendered PNG URL for one node, or None if Figma can't render it.

    Failures are printed, never raised; the import goes ahead without a
    preview.
    """
    try:
        response = httpx.get(
            f'{FIGMA_API_URL}/images/{file_key}',
            headers={'Authorization': f'Bearer {access_token}'},
            params={'ids': node_id, 'format': 'png', 'scale': 2},
            timeout=HTTP_TIMEOUT
        )
    except httpx.HTTPError as e:
        print(f"Error rendering Figma node {node_id} in {file_key}: {e}")
        return None

    if response.status_code != 200:
        print(f"Figma image render failed ({response.status_code}) for node {node_id} in {file_key}")
        return None

    try:
        images = response.json().get('images') or {}
    except ValueError:
        return None
    return images.get(node_id)


def import_figma_design(store, access_token, project_id, figma_url, design_name=None):
    """Create a design from a pasted Figma URL.

    The name is design_name, else the Figma file's name. When the URL points
    at a node, its rendered PNG becomes the design's image. Raises ValueError
    for a URL without a file key and FigmaAPIError when the file lookup
    fails. Returns the stored design row.
    """
    file_key = extract_file_key(figma_url)
    if not file_key:
        raise ValueError('Invalid Figma URL')

    figma_file = fetch_file_info(access_token, file_key)

    node_id = extract_node_id(figma_url)
    image_url = fetch_node_image(access_token, file_key, node_id) if node_id else None

    design = store.insert(DESIGNS_TABLE, {
        'project_id': project_id,
        'name': design_name or figma_file.get('name') or DEFAULT_IMPORT_NAME,
        'source_type': 'figma',
        'source_url': figma_url,
        'image_url': image_url,
    })
    print(f"Imported Figma file {file_key} as design {design['id']}")
    return design
