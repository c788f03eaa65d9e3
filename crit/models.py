# Crit Shared Models
# Records passed between the feedback pipeline and Supabase

from dataclasses import dataclass
from enum import Enum
from typing import Optional

COMMENT_STATUSES = ('open', 'resolved', 'archived')
BOARD_PRIORITIES = ('high', 'medium', 'low')


class Origin(Enum):
    """Where a comment came from."""

    WEB = 'web'
    FIGMA = 'figma'
    SLACK = 'slack'

    @classmethod
    def from_author_email(cls, author_email):
        """Classify a stored comment by its synthesized contact identifier.

        Slack comments are stored as 'slack-<user>@slack.com' and Figma ones as
        'figma:<user>'; anything else was typed into the web form.
        """
        email = author_email or ''
        if 'slack.com' in email:
            return cls.SLACK
        if 'figma' in email:
            return cls.FIGMA
        return cls.WEB

    @property
    def role_tag(self):
        return {
            Origin.SLACK: 'Slack User',
            Origin.FIGMA: 'designer',
            Origin.WEB: 'client',
        }[self]


def validate_rating(rating):
    if rating is None:
        return
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValueError(f'Rating must be an integer from 1 to 5, got {rating!r}')
    if not 1 <= rating <= 5:
        raise ValueError(f'Rating must be between 1 and 5, got {rating}')


@dataclass
class Comment:
    """One piece of feedback on a design."""

    design_id: str
    author_name: str
    author_email: str
    content: str
    origin: Origin = Origin.WEB
    status: str = 'open'
    rating: Optional[int] = None
    x_position: Optional[float] = None
    y_position: Optional[float] = None
    page_url: Optional[str] = None
    user_id: Optional[str] = None
    stakeholder_id: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[str] = None
    viewed_at: Optional[str] = None

    def __post_init__(self):
        validate_rating(self.rating)
        if (self.x_position is None) != (self.y_position is None):
            raise ValueError('x_position and y_position must both be set or both be empty')
        if self.status not in COMMENT_STATUSES:
            raise ValueError(f"Invalid status '{self.status}'")

    @property
    def role_tag(self):
        return self.origin.role_tag

    @property
    def has_position(self):
        return self.x_position is not None

    def mark_viewed(self, viewed_at):
        """Set viewed_at the first time only. Returns True if it changed."""
        if self.viewed_at is not None:
            return False
        self.viewed_at = viewed_at
        return True

    def to_row(self):
        """Column values for inserting into the comments table"""
        row = {
            'design_id': self.design_id,
            'user_id': self.user_id,
            'stakeholder_id': self.stakeholder_id,
            'author_name': self.author_name,
            'author_email': self.author_email,
            'content': self.content,
            'status': self.status,
            'rating': self.rating,
            'x_position': self.x_position,
            'y_position': self.y_position,
            'page_url': self.page_url,
        }
        if self.id:
            row['id'] = self.id
        return row

    @classmethod
    def from_row(cls, row):
        return cls(
            id=row.get('id'),
            design_id=row['design_id'],
            author_name=row.get('author_name') or '',
            author_email=row.get('author_email') or '',
            content=row.get('content') or '',
            origin=Origin.from_author_email(row.get('author_email')),
            status=row.get('status') or 'open',
            rating=row.get('rating'),
            x_position=row.get('x_position'),
            y_position=row.get('y_position'),
            page_url=row.get('page_url'),
            user_id=row.get('user_id'),
            stakeholder_id=row.get('stakeholder_id'),
            created_at=row.get('created_at'),
            viewed_at=row.get('viewed_at'),
        )


@dataclass
class Design:
    id: str
    project_id: str
    name: str
    source_type: str = 'manual'
    folder_id: Optional[str] = None
    source_url: Optional[str] = None
    image_url: Optional[str] = None
    share_token: Optional[str] = None

    @property
    def has_preview(self):
        return bool(self.image_url or self.source_url)

    @classmethod
    def from_row(cls, row):
        return cls(
            id=row['id'],
            project_id=row['project_id'],
            name=row.get('name') or '',
            source_type=row.get('source_type') or 'manual',
            folder_id=row.get('folder_id'),
            source_url=row.get('source_url'),
            image_url=row.get('image_url'),
            share_token=row.get('share_token'),
        )


@dataclass
class BoardItem:
    """A task on the feedback board."""

    user_id: str
    title: str
    description: str = ''
    project_id: Optional[str] = None
    design_id: Optional[str] = None
    status: str = 'open'
    priority: str = 'medium'
    stakeholder_role: Optional[str] = None

    def __post_init__(self):
        if self.priority not in BOARD_PRIORITIES:
            raise ValueError(f"Invalid priority '{self.priority}'")

    def to_row(self):
        return {
            'user_id': self.user_id,
            'project_id': self.project_id,
            'design_id': self.design_id,
            'title': self.title,
            'description': self.description,
            'status': self.status,
            'priority': self.priority,
            'stakeholder_role': self.stakeholder_role,
        }
