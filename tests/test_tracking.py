"""Tests for crit.tracking: decoding stored integration settings."""

from crit.config import DESIGNS_TABLE, PROFILES_TABLE, PROJECTS_TABLE
from crit.tracking import ListeningChannels, SlackProfile, SyncPreferences, TrackingConfig


class TestListeningChannels:
    def test_json_array(self):
        channels = ListeningChannels.decode('["C001", "C002"]')
        assert 'C001' in channels
        assert 'C003' not in channels

    def test_versioned_object(self):
        channels = ListeningChannels.decode('{"version": 1, "channels": ["C009"]}')
        assert channels.channels == ['C009']
        assert channels.version == 1

    def test_already_decoded_list(self):
        assert ListeningChannels.decode(['C001']).channels == ['C001']

    def test_empty_values(self):
        assert not ListeningChannels.decode(None)
        assert not ListeningChannels.decode('')
        assert not ListeningChannels.decode('[]')

    def test_malformed_json(self):
        assert ListeningChannels.decode('["C001"').channels == []

    def test_wrong_type(self):
        assert ListeningChannels.decode('"C001"').channels == []

    def test_encode(self):
        assert ListeningChannels(channels=['C1', 'C2']).encode() == '["C1", "C2"]'


class TestSyncPreferences:
    def test_from_row(self):
        prefs = SyncPreferences.from_row({
            'sync_all_comments': False,
            'sync_only_mentions': True,
            'sync_unresolved_only': None,
        })
        assert prefs == SyncPreferences(False, True, False)


def test_slack_profile_from_row():
    profile = SlackProfile.from_row({
        'id': 'user-1',
        'slack_team_id': 'T1',
        'slack_listening_channels': '["C1"]',
    })
    assert 'C1' in profile.listening_channels


class TestNotificationTarget:
    def test_full_chain(self, store, design):
        target = TrackingConfig(store).notification_target(design['id'])
        assert target.webhook_url.startswith('https://hooks.slack.test/')
        assert target.channel == '#homepage-reviews'
        assert target.design_name == 'Landing v2'
        assert target.project_name == 'Homepage Redesign'

    def test_default_channel(self, store, design):
        store.update(PROFILES_TABLE, {'id': 'user-1'}, {'slack_channel': None})
        target = TrackingConfig(store).notification_target(design['id'])
        assert target.channel == '#design-feedback'

    def test_no_webhook(self, store, design):
        store.update(PROFILES_TABLE, {'id': 'user-1'}, {'slack_webhook_url': None})
        assert TrackingConfig(store).notification_target(design['id']) is None

    def test_missing_design(self, store):
        assert TrackingConfig(store).notification_target('nope') is None

    def test_missing_project(self, store):
        store.insert(DESIGNS_TABLE, {'id': 'orphan', 'project_id': 'gone', 'name': 'Orphan'})
        assert TrackingConfig(store).notification_target('orphan') is None

    def test_missing_owner_profile(self, store):
        store.insert(PROJECTS_TABLE, {'id': 'p2', 'user_id': 'ghost', 'name': 'P2'})
        store.insert(DESIGNS_TABLE, {'id': 'd2', 'project_id': 'p2', 'name': 'D2'})
        assert TrackingConfig(store).notification_target('d2') is None
