"""Shared test fixtures for Crit."""

import copy
import itertools
from collections import defaultdict
from datetime import datetime, timedelta, timezone

import pytest

from crit.config import DESIGNS_TABLE, PROFILES_TABLE, PROJECTS_TABLE


class FakeStore:
    """In-memory stand-in for SupabaseStore with the same method surface."""

    def __init__(self):
        self.tables = defaultdict(list)
        self.users = {}
        self._ids = itertools.count(1)
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def _next_timestamp(self):
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()

    @staticmethod
    def _matches(row, filters):
        return all(row.get(column) == value for column, value in (filters or {}).items())

    def rows(self, table):
        return self.tables[table]

    def select(self, table, filters=None, order=None, desc=False, limit=None, columns='*'):
        rows = [copy.deepcopy(row) for row in self.tables[table] if self._matches(row, filters)]
        if order:
            rows.sort(key=lambda row: row.get(order) or '', reverse=desc)
        if limit:
            rows = rows[:limit]
        return rows

    def select_one(self, table, filters=None, order=None, desc=False):
        rows = self.select(table, filters, order=order, desc=desc, limit=1)
        return rows[0] if rows else None

    def insert(self, table, row):
        stored = dict(row)
        stored.setdefault('id', f'{table}-{next(self._ids)}')
        stored.setdefault('created_at', self._next_timestamp())
        self.tables[table].append(stored)
        return copy.deepcopy(stored)

    def update(self, table, filters, values):
        updated = []
        for row in self.tables[table]:
            if self._matches(row, filters):
                row.update(values)
                updated.append(copy.deepcopy(row))
        return updated

    def upsert(self, table, row, on_conflict):
        keys = on_conflict.split(',')
        for existing in self.tables[table]:
            if all(existing.get(key) == row.get(key) for key in keys):
                existing.update(row)
                return copy.deepcopy(existing)
        return self.insert(table, row)

    def delete(self, table, filters):
        removed = [row for row in self.tables[table] if self._matches(row, filters)]
        self.tables[table] = [row for row in self.tables[table] if not self._matches(row, filters)]
        return removed

    def get_user(self, access_token):
        return self.users.get(access_token)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def owner(store):
    """Project owner profile with a Slack webhook configured."""
    return store.insert(PROFILES_TABLE, {
        'id': 'user-1',
        'email': 'owner@studio.test',
        'slack_webhook_url': 'https://hooks.slack.test/services/T000/B000/XXX',
        'slack_channel': '#homepage-reviews',
        'slack_team_id': 'T123',
        'slack_access_token': 'xoxb-test',
        'slack_listening_channels': '["C001"]',
    })


@pytest.fixture
def project(store, owner):
    return store.insert(PROJECTS_TABLE, {
        'id': 'project-1',
        'user_id': owner['id'],
        'name': 'Homepage Redesign',
    })


@pytest.fixture
def design(store, project):
    return store.insert(DESIGNS_TABLE, {
        'id': 'design-1',
        'project_id': project['id'],
        'name': 'Landing v2',
        'source_type': 'manual',
        'image_url': 'https://cdn.test/landing-v2.png',
    })


@pytest.fixture
def auth_user(store, owner):
    """Registers a bearer token for the owner and returns request headers."""
    store.users['valid-token'] = {'id': owner['id'], 'email': owner['email']}
    return {'Authorization': 'Bearer valid-token'}
