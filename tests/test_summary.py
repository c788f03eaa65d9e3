"""Tests for crit.summary: AI path, fallback and persistence."""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from crit import summary
from crit.config import COMMENTS_TABLE, FEEDBACK_SUMMARIES_TABLE
from crit.models import Comment
from crit.summary import (
    InvalidSummaryResponse,
    NothingToSummarize,
    build_transcript,
    fallback_summary,
    feedback_stats,
    generate_summary,
    parse_summary_response,
    rank_tokens
)

AI_SUMMARY = {
    'identifiedPatterns': [{
        'title': 'Button Sizing',
        'priority': 'high',
        'description': 'Buttons are too small',
        'examples': ['Button too small'],
        'mentions': 2
    }],
    'criticalIssues': ['Primary actions are hard to hit'],
    'actionableNextSteps': [{
        'title': 'Enlarge buttons',
        'description': 'Raise tap targets to 44px',
        'tag': 'Usability',
        'priority': 'urgent'
    }]
}


def fake_client(text=None, error=None):
    client = MagicMock()
    if error:
        client.messages.create.side_effect = error
    else:
        client.messages.create.return_value = SimpleNamespace(content=[SimpleNamespace(text=text)])
    return client


def failing_client():
    return fake_client(error=RuntimeError('API unavailable'))


def add_comments(store, design_id, feedback):
    """Insert (author, content, rating) tuples; later ones are newer."""
    for author, content, rating in feedback:
        store.insert(COMMENTS_TABLE, {
            'design_id': design_id,
            'author_name': author,
            'author_email': f'{author.lower()}@client.test',
            'content': content,
            'rating': rating,
            'status': 'open',
        })


def comments_from(feedback):
    return [
        Comment(design_id='design-1', author_name=author, author_email='', content=content, rating=rating)
        for author, content, rating in feedback
    ]


EXAMPLE_FEEDBACK = [
    ('Ana', 'Loved the color scheme', 5),
    ('Ben', 'Button text overflows', 1),
    ('Cy', 'Button too small', 1),
]


class TestTranscript:
    def test_format(self):
        transcript = build_transcript(comments_from([('Ana', 'Great', 5), ('Ben', 'Meh', None)]))
        assert transcript == '[1] Ana: Great (Rating: 5/5)\n\n[2] Ben: Meh'


class TestParseSummaryResponse:
    def test_plain_json(self):
        assert parse_summary_response(json.dumps(AI_SUMMARY)) == AI_SUMMARY

    def test_fenced_json(self):
        assert parse_summary_response('```json\n' + json.dumps(AI_SUMMARY) + '\n```') == AI_SUMMARY

    def test_leading_prose(self):
        text = 'Here is the analysis:\n' + json.dumps(AI_SUMMARY) + '\nLet me know!'
        assert parse_summary_response(text) == AI_SUMMARY

    def test_extra_keys_dropped(self):
        data = dict(AI_SUMMARY, mood='upbeat')
        assert 'mood' not in parse_summary_response(json.dumps(data))

    @pytest.mark.parametrize('text', [
        '',
        'Sorry, I cannot help with that.',
        '{"identifiedPatterns": [}',
        json.dumps({'identifiedPatterns': [], 'criticalIssues': []}),
        json.dumps({'identifiedPatterns': [], 'criticalIssues': 'none', 'actionableNextSteps': []}),
    ])
    def test_unusable(self, text):
        with pytest.raises(InvalidSummaryResponse):
            parse_summary_response(text)


class TestFallback:
    def test_example_feedback(self):
        comments = comments_from(EXAMPLE_FEEDBACK)
        stats = feedback_stats(comments)
        assert (stats.negative, stats.positive) == (2, 1)

        ranked = dict(rank_tokens(build_transcript(comments)))
        assert ranked['button'] >= 2

        result = fallback_summary(comments)
        button = next(p for p in result['identifiedPatterns'] if p['title'] == 'Button Issues')
        assert button['mentions'] >= 2
        assert button['examples'] == ['Button text overflows', 'Button too small']
        assert result['criticalIssues'][0] == 'Address 2 negative feedback item(s) requiring immediate attention'
        assert result['criticalIssues'][1] == 'Analyze 3 total feedback items for patterns'
        assert result['actionableNextSteps'][0]['description'] == 'Analyze 2 concern(s) and 1 positive comment(s)'
        assert result['actionableNextSteps'][0]['priority'] == 'urgent'

    def test_shape(self):
        result = fallback_summary(comments_from(EXAMPLE_FEEDBACK))

        assert set(result) == {'identifiedPatterns', 'criticalIssues', 'actionableNextSteps'}
        assert 1 <= len(result['identifiedPatterns']) <= 3
        assert len(result['criticalIssues']) == 2
        assert [step['title'] for step in result['actionableNextSteps']] == [
            'Review High Priority Feedback',
            'Address User Concerns',
            'Build on Positive Feedback'
        ]
        for pattern in result['identifiedPatterns']:
            assert set(pattern) == {'title', 'priority', 'description', 'examples', 'mentions'}
        assert [p['priority'] for p in result['identifiedPatterns']] == ['critical', 'high', 'medium'][:len(result['identifiedPatterns'])]

    def test_unrated_comments_are_neutral(self):
        stats = feedback_stats(comments_from([('Ana', 'Hmm', None), ('Ben', 'Nice', 4)]))
        assert (stats.negative, stats.positive) == (0, 1)
        assert stats.average_rating == 4

    def test_average_defaults_to_midpoint(self):
        assert feedback_stats(comments_from([('Ana', 'Hmm', None)])).average_rating == 3

    def test_no_negatives(self):
        result = fallback_summary(comments_from([('Ana', 'Wonderful palette', 5)]))
        assert result['criticalIssues'][0] == 'Review all feedback for potential improvements'
        steps = result['actionableNextSteps']
        assert [step['priority'] for step in steps] == ['high', 'medium', 'medium']

    def test_no_ratings_at_all(self):
        steps = fallback_summary(comments_from([('Ana', 'Needs spacing tweaks', None)]))['actionableNextSteps']
        assert [step['priority'] for step in steps] == ['high', 'medium', 'low']

    def test_examples_truncated(self):
        long_text = 'Navigation ' + 'x' * 200
        pattern = fallback_summary(comments_from([('Ana', long_text, None)]))['identifiedPatterns'][0]
        assert all(len(example) <= 100 for example in pattern['examples'])

    def test_short_words_still_yield_a_pattern(self):
        result = fallback_summary(comments_from([('Al', 'ok', None), ('Bo', 'nice', None)]))
        assert len(result['identifiedPatterns']) == 1
        assert result['identifiedPatterns'][0]['mentions'] == 2

    def test_repeatable(self):
        comments = comments_from(EXAMPLE_FEEDBACK)
        assert fallback_summary(comments) == fallback_summary(comments)

    def test_ties_keep_first_seen_order(self):
        ranked = rank_tokens('zebra-stripe apple-sauce zebra-stripe apple-sauce')
        assert [token for token, _ in ranked] == ['zebra-stripe', 'apple-sauce']


class TestGenerateSummary:
    def test_no_comments(self, store, design):
        with pytest.raises(NothingToSummarize):
            generate_summary(store, 'project-1', design['id'], client=failing_client())
        assert store.rows(FEEDBACK_SUMMARIES_TABLE) == []

    def test_ai_path(self, store, design):
        add_comments(store, design['id'], EXAMPLE_FEEDBACK)
        client = fake_client('```json\n' + json.dumps(AI_SUMMARY) + '\n```')

        row = generate_summary(store, 'project-1', design['id'], client=client)

        data = row['summary_data']
        assert data['identifiedPatterns'] == AI_SUMMARY['identifiedPatterns']
        assert data['feedbackCount'] == 3
        assert data['generated_at']
        prompt = client.messages.create.call_args.kwargs['messages'][0]['content']
        assert '[1] Cy: Button too small (Rating: 1/5)' in prompt
        assert '{feedback}' not in prompt

    def test_ai_failure_falls_back(self, store, design):
        add_comments(store, design['id'], EXAMPLE_FEEDBACK)

        row = generate_summary(store, 'project-1', design['id'], client=failing_client())

        data = row['summary_data']
        assert data['identifiedPatterns']
        assert len(data['criticalIssues']) == 2
        assert len(data['actionableNextSteps']) == 3
        assert data['feedbackCount'] == 3

    def test_invalid_ai_json_falls_back(self, store, design):
        add_comments(store, design['id'], EXAMPLE_FEEDBACK)

        row = generate_summary(store, 'project-1', design['id'], client=fake_client('{"identifiedPatterns": ['))

        assert row['summary_data']['actionableNextSteps'][0]['title'] == 'Review High Priority Feedback'

    def test_missing_api_key_falls_back(self, store, design, monkeypatch):
        monkeypatch.setattr(summary, 'ANTHROPIC_API_KEY', None)
        add_comments(store, design['id'], EXAMPLE_FEEDBACK)

        row = generate_summary(store, 'project-1', design['id'])

        assert len(row['summary_data']['criticalIssues']) == 2

    def test_regeneration_replaces(self, store, design):
        add_comments(store, design['id'], EXAMPLE_FEEDBACK)
        first = generate_summary(store, 'project-1', design['id'], client=fake_client(json.dumps(AI_SUMMARY)))

        add_comments(store, design['id'], [('Dee', 'Typography is gorgeous', 5)])
        second = generate_summary(store, 'project-1', design['id'], client=failing_client())

        rows = store.rows(FEEDBACK_SUMMARIES_TABLE)
        assert len(rows) == 1
        assert rows[0]['id'] == first['id']
        assert rows[0]['summary_data'] == second['summary_data']
        assert rows[0]['summary_data']['feedbackCount'] == 4
        assert 'Button Sizing' not in [p['title'] for p in rows[0]['summary_data']['identifiedPatterns']]

    def test_other_designs_untouched(self, store, design):
        add_comments(store, design['id'], EXAMPLE_FEEDBACK)
        add_comments(store, 'design-2', [('Eve', 'Different screen entirely', 3)])

        generate_summary(store, 'project-1', design['id'], client=failing_client())
        generate_summary(store, 'project-1', 'design-2', client=failing_client())

        assert len(store.rows(FEEDBACK_SUMMARIES_TABLE)) == 2


class TestAnthropicClient:
    def test_none_without_key(self, monkeypatch):
        monkeypatch.setattr(summary, 'ANTHROPIC_API_KEY', None)
        monkeypatch.setattr(summary, 'anthropic_client', None)
        assert summary.get_anthropic_client() is None

    def test_built_once_and_reused(self, monkeypatch):
        monkeypatch.setattr(summary, 'ANTHROPIC_API_KEY', 'test-key')
        monkeypatch.setattr(summary, 'anthropic_client', None)
        factory = MagicMock()
        monkeypatch.setattr(summary, 'Anthropic', factory)

        first = summary.get_anthropic_client()
        second = summary.get_anthropic_client()

        assert first is second
        assert factory.call_count == 1
        assert factory.call_args.kwargs['api_key'] == 'test-key'
