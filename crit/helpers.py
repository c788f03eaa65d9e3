# Crit Shared Helpers
# Utility functions used across all Crit services

from datetime import datetime, timezone


def strip_markdown_json(content):
    """Strip markdown code blocks from Claude's JSON response"""
    content = content.strip()
    if content.startswith('```'):
        # Remove first line (```json or ```)
        content = content.split('\n', 1)[1] if '\n' in content else content[3:]
    if content.endswith('```'):
        # Remove trailing ```
        content = content.rsplit('```', 1)[0]
    return content.strip()


def extract_json_object(content):
    """Return the first balanced {...} span in a string, or None.

    Braces inside JSON string literals are ignored, so quoted examples
    containing '{' or '}' don't end the span early.
    """
    start = content.find('{')
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(content)):
        char = content[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == '\\':
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == '{':
            depth += 1
        elif char == '}':
            depth -= 1
            if depth == 0:
                return content[start:index + 1]
    return None


def truncate_text(text, limit, suffix='...'):
    """Cut text to `limit` characters, adding `suffix` only when something was cut"""
    if len(text) <= limit:
        return text
    return text[:limit] + suffix


def render_stars(rating):
    """Render a 1-5 rating as stars (e.g. 3 -> '⭐⭐⭐'). Empty for no rating."""
    if not rating:
        return ''
    return '⭐' * rating


def utc_now_iso():
    """Current UTC time as an ISO 8601 string"""
    return datetime.now(timezone.utc).isoformat()
