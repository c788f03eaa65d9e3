# Crit Summary Engine
# Digests all feedback on a design: Claude first, word-frequency fallback second

import json
import os
from collections import Counter
from dataclasses import dataclass

import httpx
from anthropic import Anthropic

from .config import (
    ANTHROPIC_API_KEY,
    ANTHROPIC_MODEL,
    COMMENTS_TABLE,
    FEEDBACK_SUMMARIES_TABLE
)
from .helpers import extract_json_object, strip_markdown_json, utc_now_iso
from .models import Comment

# Load prompt
PROMPT_PATH = os.path.join(os.path.dirname(__file__), 'prompts', 'summary.txt')
with open(PROMPT_PATH, 'r') as f:
    SUMMARY_PROMPT = f.read()

SYSTEM_PROMPT = 'You are an expert UX analyst. Always respond with valid JSON only, no markdown formatting.'

SUMMARY_KEYS = ('identifiedPatterns', 'criticalIssues', 'actionableNextSteps')

MIN_TOKEN_LENGTH = 6
TOP_TOKENS = 5
MAX_PATTERNS = 3
MAX_EXAMPLES = 3
EXAMPLE_LENGTH = 100
PATTERN_PRIORITIES = ('critical', 'high', 'medium')


class NothingToSummarize(Exception):
    """The design has no comments, so no summary is written."""


class InvalidSummaryResponse(Exception):
    """Claude's reply wasn't a usable summary object."""


# Anthropic client, shared by every summary request once built
anthropic_client = None


def get_anthropic_client():
    """The shared Anthropic client, or None when no API key is configured"""
    global anthropic_client
    if not ANTHROPIC_API_KEY:
        return None
    if anthropic_client is None:
        anthropic_client = Anthropic(
            api_key=ANTHROPIC_API_KEY,
            http_client=httpx.Client(timeout=60.0, follow_redirects=True)
        )
    return anthropic_client


def fetch_comments(store, design_id):
    """All comments on a design, newest first"""
    rows = store.select(COMMENTS_TABLE, {'design_id': design_id}, order='created_at', desc=True)
    return [Comment.from_row(row) for row in rows]


def build_transcript(comments):
    """Numbered 'author: content (Rating: n/5)' lines, blank-line separated"""
    lines = []
    for index, comment in enumerate(comments, start=1):
        rating_text = f' (Rating: {comment.rating}/5)' if comment.rating else ''
        lines.append(f'[{index}] {comment.author_name}: {comment.content}{rating_text}')
    return '\n\n'.join(lines)


# ===================
# AI PATH
# ===================

def parse_summary_response(text):
    """Pull the summary object out of Claude's reply.

    Raises InvalidSummaryResponse unless all three sections are present as
    lists; a partial answer is never used.
    """
    json_text = extract_json_object(strip_markdown_json(text or ''))
    if not json_text:
        raise InvalidSummaryResponse('No JSON object in response')

    try:
        data = json.loads(json_text)
    except json.JSONDecodeError as e:
        raise InvalidSummaryResponse(f'Invalid JSON: {e}') from e

    for key in SUMMARY_KEYS:
        if not isinstance(data.get(key), list):
            raise InvalidSummaryResponse(f"Missing '{key}' list")

    return {key: data[key] for key in SUMMARY_KEYS}


def summarize_with_ai(client, transcript):
    if client is None:
        raise InvalidSummaryResponse('ANTHROPIC_API_KEY not configured')

    response = client.messages.create(
        model=ANTHROPIC_MODEL,
        max_tokens=3000,
        temperature=0.3,
        system=SYSTEM_PROMPT,
        messages=[
            {'role': 'user', 'content': SUMMARY_PROMPT.replace('{feedback}', transcript)}
        ]
    )

    if not response.content:
        raise InvalidSummaryResponse('Empty response from Claude')
    return parse_summary_response(response.content[0].text)


# ===================
# FALLBACK PATH
# ===================

@dataclass
class FeedbackStats:
    total: int
    average_rating: float
    positive: int
    negative: int


def feedback_stats(comments):
    """Counts used by the fallback. Unrated comments are neither positive nor negative."""
    ratings = [c.rating for c in comments if c.rating is not None]
    return FeedbackStats(
        total=len(comments),
        average_rating=sum(ratings) / len(ratings) if ratings else 3,
        positive=sum(1 for r in ratings if r >= 4),
        negative=sum(1 for r in ratings if r <= 2),
    )


def rank_tokens(transcript, limit=TOP_TOKENS):
    """Most frequent whitespace tokens longer than five characters.

    Returns (token, count) pairs. Equal counts keep first-seen order.
    """
    counts = Counter(
        token for token in transcript.lower().split()
        if len(token) >= MIN_TOKEN_LENGTH
    )
    return counts.most_common(limit)


def _examples_for(token, comments):
    matches = [c.content for c in comments if token in c.content.lower()]
    return [content[:EXAMPLE_LENGTH] for content in matches[:MAX_EXAMPLES]]


def fallback_summary(comments, transcript=None):
    """Deterministic summary with the same shape Claude is asked for."""
    if transcript is None:
        transcript = build_transcript(comments)
    stats = feedback_stats(comments)

    patterns = []
    for rank, (token, count) in enumerate(rank_tokens(transcript)[:MAX_PATTERNS]):
        patterns.append({
            'title': token[0].upper() + token[1:] + ' Issues',
            'priority': PATTERN_PRIORITIES[min(rank, len(PATTERN_PRIORITIES) - 1)],
            'description': f'Multiple stakeholders mentioned issues related to {token}',
            'examples': _examples_for(token, comments),
            'mentions': count
        })

    if not patterns:
        # Nothing long enough to rank (e.g. only "ok", "nice")
        patterns.append({
            'title': 'General Feedback',
            'priority': 'medium',
            'description': 'Short comments without a recurring theme',
            'examples': [c.content[:EXAMPLE_LENGTH] for c in comments[:MAX_EXAMPLES]],
            'mentions': stats.total
        })

    if stats.negative > 0:
        first_issue = f'Address {stats.negative} negative feedback item(s) requiring immediate attention'
    else:
        first_issue = 'Review all feedback for potential improvements'

    return {
        'identifiedPatterns': patterns,
        'criticalIssues': [
            first_issue,
            f'Analyze {stats.total} total feedback items for patterns'
        ],
        'actionableNextSteps': [
            {
                'title': 'Review High Priority Feedback',
                'description': f'Analyze {stats.negative} concern(s) and {stats.positive} positive comment(s)',
                'tag': 'Usability',
                'priority': 'urgent' if stats.negative > stats.positive else 'high'
            },
            {
                'title': 'Address User Concerns',
                'description': 'Focus on resolving the issues identified in low-rated feedback',
                'tag': 'Development',
                'priority': 'high' if stats.negative > 0 else 'medium'
            },
            {
                'title': 'Build on Positive Feedback',
                'description': 'Identify and enhance aspects users appreciate',
                'tag': 'Design',
                'priority': 'medium' if stats.positive > 0 else 'low'
            }
        ]
    }


# ===================
# ENGINE
# ===================

def generate_summary(store, project_id, design_id, client=None):
    """Summarize every comment on a design and store it.

    Replaces any earlier summary for (project, design). Raises
    NothingToSummarize when the design has no comments; Claude failures of
    any kind fall back to the local summary instead of failing.

    Returns the stored feedback_summaries row.
    """
    comments = fetch_comments(store, design_id)
    print(f"Summarizing {len(comments)} comment(s) for design {design_id}")

    if not comments:
        raise NothingToSummarize('No feedback to summarize')

    transcript = build_transcript(comments)
    if client is None:
        client = get_anthropic_client()

    try:
        summary_data = summarize_with_ai(client, transcript)
    except Exception as e:
        print(f"AI processing failed, using fallback summary: {e}")
        summary_data = fallback_summary(comments, transcript)
        stats = feedback_stats(comments)
        print(f"Fallback summary: average rating {stats.average_rating:.1f}, "
              f"{stats.negative} negative, {stats.positive} positive")

    summary_data['feedbackCount'] = len(comments)
    summary_data['generated_at'] = utc_now_iso()

    return store.upsert(
        FEEDBACK_SUMMARIES_TABLE,
        {
            'project_id': project_id,
            'design_id': design_id,
            'summary_data': summary_data
        },
        on_conflict='project_id,design_id'
    )
