# Crit Shared Module
# Feedback ingestion and summarization used by all Crit services

from .config import (
    ANTHROPIC_API_KEY,
    ANTHROPIC_MODEL,
    SLACK_ROUTE_TARGET,
    SUPABASE_URL
)

from .helpers import (
    strip_markdown_json,
    extract_json_object,
    truncate_text,
    render_stars,
    utc_now_iso
)

from .supabase import SupabaseStore, StoreError

from .models import Comment, Design, BoardItem, Origin, COMMENT_STATUSES, validate_rating

from .normalizer import from_web, from_figma, from_slack, role_tag, save_comment

from .tracking import (
    TrackingConfig,
    TrackedFile,
    SyncPreferences,
    ListeningChannels,
    SlackProfile,
    NotificationTarget
)

from .figma import (
    should_sync,
    resolve_tracked_design,
    ingest_figma_event,
    extract_file_key,
    fetch_file_info,
    extract_node_id,
    fetch_node_image,
    import_figma_design,
    FigmaAPIError
)

from .slack import (
    is_user_message,
    route_slack_event,
    handle_slack_payload,
    fetch_channels,
    save_listening_channels,
    SlackAPIError
)

from .notify import build_slack_message, send_comment_notification, notify_in_background

from .board import promote_next_step, board_item_from_slack, board_priority

from .summary import (
    generate_summary,
    fallback_summary,
    build_transcript,
    parse_summary_response,
    NothingToSummarize
)

from .web import enable_cors, error_response, require_user, health_response, AuthError
