"""Retrieval and chunking constants shared across the package."""

MS_PER_DAY = 86_400_000

# A record identical to the query and younger than this is the current turn echoing back
ECHO_WINDOW_MS = 3_000

TAG_MANUAL = "manual"
TAG_SUMMARY = "summary"
TAG_USER_INPUT = "user_input"
TAG_AI_OUTPUT = "ai_output"

DEFAULT_ALLOWED_TAGS: frozenset[str] = frozenset({TAG_MANUAL, TAG_SUMMARY, TAG_USER_INPUT})

# Conversation-turn tags subject to the session recency window
SESSION_WINDOW_TAGS: frozenset[str] = frozenset({TAG_USER_INPUT, TAG_AI_OUTPUT})

DEFAULT_TOP_K_CANDIDATES = 20
DEFAULT_MAX_CONTEXT_ITEMS = 5
DEFAULT_MIN_SIMILARITY = 0.30
DEFAULT_HALF_LIFE_DAYS = 14.0

CONTEXT_HEADER = "Relevant Memories (for reference):"
CONTEXT_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"

DEFAULT_CHUNK_SIZE = 500
DEFAULT_CHUNK_OVERLAP = 50

# Suffix appended to a tag when one memory is stored as several chunks
PART_TAG_INFIX = "_part_"
