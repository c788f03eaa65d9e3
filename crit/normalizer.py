# Crit Comment Normalizer
# Maps web submissions, Figma webhook comments and Slack messages onto one Comment

from .config import COMMENTS_TABLE
from .models import Comment, Origin


def from_web(design_id, author_name, author_email, content, rating=None,
             x=None, y=None, page_url=None, user_id=None, stakeholder_id=None):
    """Build a comment submitted through the review page.

    Author details come from the identified stakeholder or signed-in user.
    Raises ValueError for empty content, an out-of-range rating or a
    half-specified pin position.
    """
    content = (content or '').strip()
    if not content:
        raise ValueError('Comment content is required')
    if not author_name:
        raise ValueError('Author name is required')

    return Comment(
        design_id=design_id,
        author_name=author_name,
        author_email=author_email or '',
        content=content,
        origin=Origin.WEB,
        status='open',
        rating=rating,
        x_position=x,
        y_position=y,
        page_url=(page_url or '').strip() or None,
        user_id=user_id,
        stakeholder_id=stakeholder_id,
    )


def from_figma(design_id, figma_comment):
    """Build a comment from the `comment` object of a Figma FILE_COMMENT event"""
    user = figma_comment.get('user') or {}
    client_meta = figma_comment.get('client_meta') or {}

    return Comment(
        design_id=design_id,
        author_name=user.get('handle') or 'Anonymous',
        author_email=f"figma:{user.get('id') or 'unknown'}",
        content=figma_comment.get('message') or '',
        origin=Origin.FIGMA,
        status='resolved' if figma_comment.get('resolved') else 'open',
        x_position=client_meta.get('x') or 0,
        y_position=client_meta.get('y') or 0,
    )


def from_slack(design_id, event):
    """Build a comment from a Slack `message` event.

    The author is the raw Slack user id; it isn't resolved to a display name.
    """
    slack_user = event.get('user')
    return Comment(
        design_id=design_id,
        author_name=slack_user or 'Slack User',
        author_email=f'slack-{slack_user}@slack.com',
        content=event.get('text') or '',
        origin=Origin.SLACK,
        status='open',
    )


def role_tag(comment):
    """Presentation tag for the comment's author ('client', 'designer', 'Slack User')"""
    return comment.origin.role_tag


def save_comment(store, comment):
    """Append the comment and return it with its stored id and timestamps."""
    row = store.insert(COMMENTS_TABLE, comment.to_row())
    comment.id = row.get('id', comment.id)
    comment.created_at = row.get('created_at', comment.created_at)
    return comment
