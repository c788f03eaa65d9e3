# Crit Board
# Board items created from summary next steps and routed Slack messages

from .config import BOARD_ITEMS_TABLE
from .helpers import truncate_text
from .models import BoardItem, Origin

# Summary priorities (patterns and next steps) onto the board's three levels
PRIORITY_MAP = {
    'urgent': 'high',
    'critical': 'high',
    'high': 'high',
    'medium': 'medium',
    'low': 'low'
}

SLACK_TITLE_LENGTH = 50


def board_priority(priority):
    return PRIORITY_MAP.get((priority or '').lower(), 'medium')


def save_board_item(store, item):
    return store.insert(BOARD_ITEMS_TABLE, item.to_row())


def promote_next_step(store, user_id, project_id, design_id, step):
    """Add a summary next step (or pattern) to the board.

    Requires a title. Returns the stored board item row.
    """
    title = (step.get('title') or '').strip()
    if not title:
        raise ValueError('Next step title is required')

    item = BoardItem(
        user_id=user_id,
        project_id=project_id,
        design_id=design_id,
        title=title,
        description=step.get('description') or '',
        priority=board_priority(step.get('priority')),
        stakeholder_role=step.get('tag') or 'Other',
    )
    return save_board_item(store, item)


def board_item_from_slack(user_id, project_id, text):
    text = text or ''
    return BoardItem(
        user_id=user_id,
        project_id=project_id,
        title=truncate_text(text, SLACK_TITLE_LENGTH),
        description=text,
        priority='medium',
        stakeholder_role=Origin.SLACK.role_tag,
    )
