# Crit Slack Routing
# Turns Slack messages from listening channels into comments or board items

import httpx

from .board import board_item_from_slack, save_board_item
from .config import (
    DESIGNS_TABLE,
    HTTP_TIMEOUT,
    PROFILES_TABLE,
    SLACK_API_URL,
    SLACK_INBOX_DESIGN_NAME,
    SLACK_ROUTE_TARGET
)
from .normalizer import from_slack, save_comment
from .tracking import ListeningChannels, TrackingConfig

ROUTE_TARGETS = ('comment', 'board')


class SlackAPIError(Exception):
    pass


def is_user_message(event):
    """Plain human messages only: no bots, edits, joins or other subtypes"""
    return (
        event.get('type') == 'message'
        and not event.get('bot_id')
        and not event.get('subtype')
    )


def resolve_inbox_design(store, project, profile_id):
    """Find or create the project's 'Slack Inbox' design"""
    design = store.select_one(
        DESIGNS_TABLE,
        {'project_id': project['id'], 'name': SLACK_INBOX_DESIGN_NAME}
    )
    if design:
        return design['id']

    new_design = store.insert(DESIGNS_TABLE, {
        'project_id': project['id'],
        'user_id': profile_id,
        'name': SLACK_INBOX_DESIGN_NAME,
        'source_type': 'slack',
        'source_url': None,
    })
    print(f"Created Slack Inbox design for project {project['id']}")
    return new_design['id']


def route_slack_event(store, team_id, event, target=SLACK_ROUTE_TARGET):
    """Materialize a Slack message for every profile listening on its channel.

    Each matching profile gets exactly one record on its first project:
    a comment on the Slack Inbox design when target is 'comment', or a
    board item when target is 'board'. Profiles without a project are
    skipped. Returns a list of what was created.
    """
    if target not in ROUTE_TARGETS:
        raise ValueError(f"Unknown Slack route target '{target}'")

    if not is_user_message(event):
        return []

    created = []
    config = TrackingConfig(store)

    for profile in config.slack_profiles(team_id):
        if event.get('channel') not in profile.listening_channels:
            continue

        project = config.first_owned_project(profile.id)
        if not project:
            print(f"Profile {profile.id} listens on {event.get('channel')} but owns no project, skipping")
            continue

        if target == 'board':
            item = board_item_from_slack(profile.id, project['id'], event.get('text'))
            row = save_board_item(store, item)
            created.append({'type': 'board_item', 'profileId': profile.id, 'id': row.get('id')})
        else:
            design_id = resolve_inbox_design(store, project, profile.id)
            comment = save_comment(store, from_slack(design_id, event))
            created.append({'type': 'comment', 'profileId': profile.id, 'id': comment.id})

    return created


def handle_slack_payload(store, body, target=SLACK_ROUTE_TARGET):
    """Handle one Events API request body. Returns the JSON response dict."""
    if body.get('type') == 'url_verification':
        return {'challenge': body.get('challenge')}

    if body.get('type') == 'event_callback':
        created = route_slack_event(store, body.get('team_id'), body.get('event') or {}, target)
        if created:
            print(f"Routed Slack message to {len(created)} {target} record(s)")

    return {'ok': True}


def fetch_channels(access_token):
    """Channels the user can pick from: not archived, and joined or private.

    Raises SlackAPIError with Slack's error code when the call fails.
    """
    try:
        response = httpx.get(
            f'{SLACK_API_URL}/conversations.list',
            headers={'Authorization': f'Bearer {access_token}'},
            params={'types': 'public_channel,private_channel'},
            timeout=HTTP_TIMEOUT
        )
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        print(f"Error fetching Slack channels: {e}")
        raise SlackAPIError('Failed to fetch channels') from e

    if not data.get('ok'):
        print(f"Slack API error: {data}")
        raise SlackAPIError(data.get('error') or 'Failed to fetch channels')

    return [
        channel for channel in data.get('channels', [])
        if not channel.get('is_archived') and (channel.get('is_member') or channel.get('is_private'))
    ]


def save_listening_channels(store, profile_id, channels):
    encoded = ListeningChannels(channels=[str(channel) for channel in channels]).encode()
    store.update(PROFILES_TABLE, {'id': profile_id}, {'slack_listening_channels': encoded})
    return encoded
