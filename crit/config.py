# Crit Shared Config
# Central configuration for all Crit services

import os

# Supabase (Postgres REST + Auth)
SUPABASE_URL = os.environ.get('SUPABASE_URL', '').rstrip('/')
SUPABASE_SERVICE_ROLE_KEY = os.environ.get('SUPABASE_SERVICE_ROLE_KEY')

# Table names
COMMENTS_TABLE = 'comments'
DESIGNS_TABLE = 'designs'
PROJECTS_TABLE = 'projects'
PROFILES_TABLE = 'profiles'
BOARD_ITEMS_TABLE = 'board_items'
FEEDBACK_SUMMARIES_TABLE = 'feedback_summaries'
FIGMA_CONNECTIONS_TABLE = 'figma_connections'
FIGMA_TRACKED_FILES_TABLE = 'figma_tracked_files'
FIGMA_SYNC_PREFERENCES_TABLE = 'figma_sync_preferences'

# Anthropic
ANTHROPIC_API_KEY = os.environ.get('ANTHROPIC_API_KEY')
ANTHROPIC_MODEL = os.environ.get('ANTHROPIC_MODEL', 'claude-sonnet-4-20250514')

# Slack
DEFAULT_SLACK_CHANNEL = '#design-feedback'
SLACK_BOT_NAME = 'Crit'
SLACK_INBOX_DESIGN_NAME = 'Slack Inbox'

# Where matched Slack messages land: 'comment' (Slack Inbox design) or 'board'
SLACK_ROUTE_TARGET = os.environ.get('SLACK_ROUTE_TARGET', 'comment')

# External APIs
FIGMA_API_URL = 'https://api.figma.com/v1'
SLACK_API_URL = 'https://slack.com/api'

# Outbound HTTP timeout (seconds)
HTTP_TIMEOUT = 10.0
