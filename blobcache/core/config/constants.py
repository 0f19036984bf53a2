"""
System Constants and Enumerations

This module defines constants and enumerations shared across the cache
engine, its helpers and the admin API.

Architectural Decision: Centralized constants for maintainability
- Single source of truth for magic numbers (sentinels, sizes, durations)
- Type-safe enums for stage tagging and presets
"""

from enum import Enum

# ============================================================================
# Stage Identifiers (for structured logging)
# ============================================================================


class Stage(str, Enum):
    """
    Cache operation stages used to tag structured log events.

    Format: {SEQUENCE}_{DESCRIPTIVE_NAME}

    Examples:
        log_stage(logger, Stage.READ, "Cache hit", cache_key="user:1")
        -> {"event": "Cache hit", "stage": "2.0_CACHE_READ", ...}
    """

    INITIALIZATION = "0.0_INITIALIZATION"
    WRITE = "1.0_CACHE_WRITE"
    READ = "2.0_CACHE_READ"
    QUERY = "3.0_CACHE_QUERY"
    DELETE = "4.0_CACHE_DELETE"
    SWEEP = "5.0_EXPIRY_SWEEP"
    STATISTICS = "6.0_STATISTICS"
    OBSERVE = "7.0_OBSERVE"
    METADATA = "8.0_METADATA"

    # Cross-cutting concerns
    SCHEDULER = "S_CLEANUP_SCHEDULER"
    API = "A_ADMIN_API"


# ============================================================================
# Cache Strategy
# ============================================================================


class CacheStrategy(str, Enum):
    """
    Caller intent for combining cache and network reads.

    Documentation only: the engine never consults this value. Callers that
    fetch remote data use it to describe how they combine the two sources.
    """

    CACHE_ONLY = "cache_only"  # read cache, never write
    NETWORK_ONLY = "network_only"  # always fetch, never read cache
    CACHE_FIRST = "cache_first"  # cache, then fetch-and-store on miss
    NETWORK_FIRST = "network_first"  # fetch, fall back to cache on failure
    ALWAYS_REFRESH = "always_refresh"  # fetch and overwrite every time


# ============================================================================
# Configuration Presets
# ============================================================================


class CachePreset(str, Enum):
    """Named configuration shapes, see CacheConfig.from_preset()."""

    DEFAULT = "default"
    SHORT_TERM = "short_term"
    LONG_TERM = "long_term"
    PERMANENT = "permanent"
    IMAGE = "image"


# ============================================================================
# Expiry
# ============================================================================

# Expire timestamp meaning "never expires"
NEVER_EXPIRE = -1

MILLIS_PER_SECOND = 1000
MILLIS_PER_MINUTE = 60 * MILLIS_PER_SECOND
MILLIS_PER_HOUR = 60 * MILLIS_PER_MINUTE
MILLIS_PER_DAY = 24 * MILLIS_PER_HOUR

DEFAULT_EXPIRE_TIME_MS = 7 * MILLIS_PER_DAY
DEFAULT_CLEANUP_INTERVAL_MS = MILLIS_PER_HOUR

# ============================================================================
# Sizes
# ============================================================================

MEGABYTE = 1024 * 1024

DEFAULT_MAX_CACHE_SIZE = 100 * MEGABYTE
IMAGE_MAX_CACHE_SIZE = 200 * MEGABYTE
DEFAULT_MAX_MEMORY_ENTRIES = 1000

# Chunk size used when streaming a file payload into the blob store
FILE_COPY_CHUNK_SIZE = 64 * 1024

# ============================================================================
# Filesystem Layout
# ============================================================================

METADATA_DIR_NAME = ".metadata"
METADATA_FILE_SUFFIX = ".meta"
TEMP_FILE_SUFFIX = ".tmp"

DEFAULT_ROOT_DIR_NAME = "app_cache"

# ============================================================================
# Content Types
# ============================================================================

# Defaults recorded in metadata when the caller passes no mime_type.
# Observers of text entries receive str, of anything else the blob Path.
MIME_TEXT = "text/plain; charset=utf-8"
MIME_JSON = "application/json"
MIME_BINARY = "application/octet-stream"

# ============================================================================
# Cleanup Scheduler
# ============================================================================

SCHEDULER_MAX_ATTEMPTS = 3
SCHEDULER_RETRY_INITIAL_DELAY = 1.0  # seconds
SCHEDULER_RETRY_MAX_DELAY = 30.0  # seconds
SCHEDULER_SHUTDOWN_TIMEOUT = 5.0  # seconds

# ============================================================================
# Admin API
# ============================================================================

API_PREFIX = "/api/v1"
HEADER_CORRELATION_ID = "X-Correlation-ID"
