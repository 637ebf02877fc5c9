"""Core constants: cache base keys, property names and shared literal values.

Single source of truth for cache key structure and property store naming
(DRY). Versioned keys are assembled by CacheVersioningService.build_key.
"""

# Cache version tag and TTLs (seconds); Settings falls back to these.
DEFAULT_CACHE_VERSION = "1.0.0"
DEFAULT_CACHE_TTL = 300
MAX_CACHE_TTL = 600
USER_DATA_TTL = 14_400  # 4 hours; capped by MAX_CACHE_TTL on write
SHEET_DATA_TTL = 14_400
ROLE_CONFIG_TTL = 600
SESSION_DURATION_SECONDS = 86_400  # 24 hours

# Versioned key layout: <base>_<name:value_...>_v<version>
CACHE_KEY_SEP = "_"
CACHE_PARAM_SEP = ":"
CACHE_VERSION_MARKER = "v"
WILDCARD = "*"

# Cache base keys (logical cached entries and data sources)
CACHE_KEY_USER = "user"
CACHE_KEY_ROLE_SHEET = "role_sheet"
CACHE_KEY_STAFF_DATA = "staff_data"
CACHE_KEY_SETTINGS_DATA = "settings_data"
CACHE_KEY_ROLE_MAPPINGS = "role_mappings"
CACHE_KEY_DOMAIN_MAPPINGS = "domain_mappings"

# Redis namespaces: KV cache keys live under the prefix, properties in one hash outside it
DEFAULT_CACHE_KEY_PREFIX = "observation_portal:cache:"
DEFAULT_PROPERTY_STORE_KEY = "observation_portal:properties"

# Property store names / prefixes
PROPERTY_MASTER_CACHE_VERSION = "MASTER_CACHE_VERSION"
PROPERTY_SOURCE_HASH_PREFIX = "SHEET_HASH_"
PROPERTY_USER_STATE_PREFIX = "user_state_"
PROPERTY_ROLE_HISTORY_PREFIX = "role_history_"
PROPERTY_SESSION_PREFIX = "session_"

# Retention for per-user bookkeeping (days) and role history length
USER_STATE_RETENTION_DAYS = 7
ROLE_HISTORY_RETENTION_DAYS = 30
ROLE_HISTORY_LIMIT = 10

# Sheets (logical data sources)
SHEET_STAFF = "Staff"
SHEET_SETTINGS = "Settings"

# Staff sheet columns (0-based)
STAFF_COL_NAME = 0
STAFF_COL_EMAIL = 1
STAFF_COL_ROLE = 2
STAFF_COL_YEAR = 3

# Roles and observation years
DEFAULT_ROLE = "Teacher"
AVAILABLE_ROLES: tuple[str, ...] = (
    "Teacher",
    "Nurse",
    "Therapeutic Specialist",
    "Library/Media Specialist",
    "Counselor",
    "School Psychologist",
    "Instructional Specialist",
    "Early Childhood",
    "Parent Educator",
    "Social Worker",
    "Sp.Ed.",
    "Peer Evaluator",
    "Administrator",
    "Full Access",
)
PROBATIONARY_OBSERVATION_YEAR = 0
DEFAULT_OBSERVATION_YEAR = 1
OBSERVATION_YEARS: tuple[int, ...] = (1, 2, 3, PROBATIONARY_OBSERVATION_YEAR)

# Roles that may view other users' data (context gating)
SPECIAL_ACCESS_ROLES: tuple[str, ...] = ("Peer Evaluator", "Administrator", "Full Access")
