# Crit Integration Config
# Typed views of the per-user Figma/Slack settings, decoded once per event

import json
from dataclasses import dataclass, field
from typing import List, Optional

from .config import (
    DEFAULT_SLACK_CHANNEL,
    DESIGNS_TABLE,
    FIGMA_SYNC_PREFERENCES_TABLE,
    FIGMA_TRACKED_FILES_TABLE,
    PROFILES_TABLE,
    PROJECTS_TABLE
)

LISTENING_CHANNELS_SCHEMA_VERSION = 1


@dataclass
class SyncPreferences:
    sync_all_comments: bool = False
    # Stored and shown in settings, but not used when filtering yet
    sync_only_mentions: bool = False
    sync_unresolved_only: bool = False

    @classmethod
    def from_row(cls, row):
        return cls(
            sync_all_comments=bool(row.get('sync_all_comments')),
            sync_only_mentions=bool(row.get('sync_only_mentions')),
            sync_unresolved_only=bool(row.get('sync_unresolved_only')),
        )


@dataclass
class TrackedFile:
    id: str
    user_id: str
    project_id: Optional[str]
    file_key: str
    file_name: str
    file_url: str
    sync_enabled: bool = True

    @classmethod
    def from_row(cls, row):
        return cls(
            id=row['id'],
            user_id=row.get('user_id'),
            project_id=row.get('project_id'),
            file_key=row['file_key'],
            file_name=row.get('file_name') or '',
            file_url=row.get('file_url') or '',
            sync_enabled=bool(row.get('sync_enabled', True)),
        )


@dataclass
class ListeningChannels:
    """Slack channel ids a user wants messages captured from.

    Stored on the profile as a JSON array string. A versioned object
    ({"version": 1, "channels": [...]}) is also accepted.
    """

    channels: List[str] = field(default_factory=list)
    version: int = LISTENING_CHANNELS_SCHEMA_VERSION

    def __contains__(self, channel_id):
        return channel_id in self.channels

    def __bool__(self):
        return bool(self.channels)

    @classmethod
    def decode(cls, raw):
        if not raw:
            return cls()
        value = raw
        if isinstance(raw, str):
            try:
                value = json.loads(raw)
            except ValueError as e:
                print(f"Ignoring malformed listening channel list: {e}")
                return cls()

        version = LISTENING_CHANNELS_SCHEMA_VERSION
        if isinstance(value, dict):
            version = value.get('version', version)
            value = value.get('channels')
        if not isinstance(value, list):
            print(f"Ignoring listening channel list of type {type(value).__name__}")
            return cls()
        return cls(channels=[str(channel) for channel in value], version=version)

    def encode(self):
        return json.dumps(self.channels)


@dataclass
class SlackProfile:
    id: str
    team_id: Optional[str]
    listening_channels: ListeningChannels

    @classmethod
    def from_row(cls, row):
        return cls(
            id=row['id'],
            team_id=row.get('slack_team_id'),
            listening_channels=ListeningChannels.decode(row.get('slack_listening_channels')),
        )


@dataclass
class NotificationTarget:
    webhook_url: str
    channel: str
    design_name: str
    project_name: str


class TrackingConfig:
    """Looks up integration settings for one inbound event.

    Everything the filter, router and notifier need about a user's Figma or
    Slack setup comes through here rather than being read ad hoc.
    """

    def __init__(self, store):
        self.store = store

    def tracked_file(self, file_key):
        """The sync-enabled tracked file for a Figma file key, or None"""
        row = self.store.select_one(
            FIGMA_TRACKED_FILES_TABLE,
            {'file_key': file_key, 'sync_enabled': True}
        )
        return TrackedFile.from_row(row) if row else None

    def sync_preferences(self, tracked_file_id):
        """Preferences for a tracked file, or None if the user never set any"""
        row = self.store.select_one(
            FIGMA_SYNC_PREFERENCES_TABLE,
            {'tracked_file_id': tracked_file_id}
        )
        return SyncPreferences.from_row(row) if row else None

    def slack_profiles(self, team_id):
        """All profiles connected to a Slack workspace"""
        rows = self.store.select(PROFILES_TABLE, {'slack_team_id': team_id})
        return [SlackProfile.from_row(row) for row in rows]

    def first_owned_project(self, profile_id):
        return self.store.select_one(PROJECTS_TABLE, {'user_id': profile_id})

    def notification_target(self, design_id):
        """Resolve design -> project -> owner profile -> Slack webhook.

        Returns None when any link is missing or no webhook is configured.
        """
        design = self.store.select_one(DESIGNS_TABLE, {'id': design_id})
        if not design:
            return None

        project = self.store.select_one(PROJECTS_TABLE, {'id': design['project_id']})
        if not project:
            return None

        profile = self.store.select_one(PROFILES_TABLE, {'id': project['user_id']})
        if not profile or not profile.get('slack_webhook_url'):
            return None

        return NotificationTarget(
            webhook_url=profile['slack_webhook_url'],
            channel=profile.get('slack_channel') or DEFAULT_SLACK_CHANNEL,
            design_name=design.get('name') or '',
            project_name=project.get('name') or '',
        )
