# Crit Slack Notifications
# Best-effort "new feedback" messages to the project owner's Slack webhook

import threading

import httpx

from .config import HTTP_TIMEOUT, SLACK_BOT_NAME
from .helpers import render_stars
from .tracking import TrackingConfig


def build_slack_message(target, author_name, content, rating=None):
    """Block Kit payload for one new comment"""
    rating_text = f' ({render_stars(rating)})' if rating else ''

    return {
        'channel': target.channel,
        'username': SLACK_BOT_NAME,
        'icon_emoji': ':art:',
        'blocks': [
            {
                'type': 'header',
                'text': {
                    'type': 'plain_text',
                    'text': f'New Feedback on {target.design_name}{rating_text}',
                    'emoji': True
                }
            },
            {
                'type': 'section',
                'fields': [
                    {'type': 'mrkdwn', 'text': f'*Project:*\n{target.project_name}'},
                    {'type': 'mrkdwn', 'text': f'*From:*\n{author_name}'}
                ]
            },
            {
                'type': 'section',
                'text': {'type': 'mrkdwn', 'text': f'*Feedback:*\n{content}'}
            },
            {'type': 'divider'}
        ]
    }


def send_comment_notification(store, design_id, author_name, content, rating=None):
    """Post one notification. Never raises for Slack-side problems.

    Returns {'success': bool, 'message': str}. A missing webhook anywhere
    along design -> project -> owner is reported as 'Slack not configured'.
    Single attempt, no retries.
    """
    target = TrackingConfig(store).notification_target(design_id)
    if not target:
        return {'success': False, 'message': 'Slack not configured'}

    message = build_slack_message(target, author_name, content, rating)

    try:
        response = httpx.post(target.webhook_url, json=message, timeout=HTTP_TIMEOUT)
    except httpx.HTTPError as e:
        print(f"Slack notification failed: {e}")
        return {'success': False, 'message': 'Failed to send Slack notification'}

    if not response.is_success:
        print(f"Slack notification failed ({response.status_code}): {response.text}")
        return {'success': False, 'message': 'Failed to send Slack notification'}

    return {'success': True, 'message': 'Slack notification sent'}


def _notify_detached(store, comment):
    try:
        result = send_comment_notification(
            store,
            comment.design_id,
            comment.author_name,
            comment.content,
            comment.rating
        )
        if not result['success']:
            print(f"Notification for comment {comment.id} skipped: {result['message']}")
    except Exception as e:
        print(f"Error sending notification for comment {comment.id}: {e}")


def notify_in_background(store, comment):
    """Fire-and-forget notification for a stored comment.

    The caller's response doesn't wait on this. Returns the started thread
    so tests can join it.
    """
    thread = threading.Thread(target=_notify_detached, args=(store, comment), daemon=True)
    thread.start()
    return thread
