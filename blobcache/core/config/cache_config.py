"""
Cache Engine Configuration

Immutable, per-instance configuration handed to a CacheManager at
construction time. Each named cache in a process is simply another
CacheManager built from another CacheConfig.

Architectural Decision: Frozen Pydantic model
- Validated once at construction (fail fast on nonsense values)
- Immutable afterwards, safe to share between instances
- Presets are plain factory classmethods, no global registry
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

from blobcache.core.config.constants import (
    DEFAULT_CLEANUP_INTERVAL_MS,
    DEFAULT_EXPIRE_TIME_MS,
    DEFAULT_MAX_CACHE_SIZE,
    DEFAULT_MAX_MEMORY_ENTRIES,
    DEFAULT_ROOT_DIR_NAME,
    IMAGE_MAX_CACHE_SIZE,
    MILLIS_PER_DAY,
    MILLIS_PER_HOUR,
    NEVER_EXPIRE,
    CachePreset,
)


class CacheConfig(BaseModel):
    """
    Configuration for one cache engine instance.

    Durations are milliseconds. A non-positive default_expire_time_ms means
    entries written without an explicit TTL never expire.

    Usage:
        config = CacheConfig(default_expire_time_ms=1000)
        config = CacheConfig.from_preset(CachePreset.IMAGE)
        config = CacheConfig.short_term().model_copy(update={"root_dir_name": "api"})
    """

    model_config = {"frozen": True}

    root_dir_name: str = Field(
        default=DEFAULT_ROOT_DIR_NAME,
        min_length=1,
        description="Cache directory name, resolved under the base cache dir",
    )
    custom_cache_dir: Path | None = Field(
        default=None,
        description="Absolute cache directory; overrides root_dir_name when set",
    )
    default_expire_time_ms: int = Field(
        default=DEFAULT_EXPIRE_TIME_MS,
        description="TTL applied when a write has no override (<= 0: never expire)",
    )
    max_cache_size: int = Field(
        default=DEFAULT_MAX_CACHE_SIZE,
        description="Advisory total size cap in bytes (-1: unlimited); reported, not enforced",
    )
    enable_memory_cache: bool = Field(default=True, description="Enable the in-memory accelerator")
    max_memory_cache_entries: int = Field(
        default=DEFAULT_MAX_MEMORY_ENTRIES,
        ge=0,
        description="Accelerator capacity in entries",
    )
    auto_clean_expired: bool = Field(
        default=True,
        description="Whether a cleanup scheduler should be attached to this cache",
    )
    cleanup_interval_ms: int = Field(
        default=DEFAULT_CLEANUP_INTERVAL_MS,
        gt=0,
        description="Interval between scheduled expiry sweeps",
    )
    enable_encryption: bool = Field(default=False, description="Reserved; payloads are stored as-is")
    encryption_key: str | None = Field(default=None, description="Reserved encryption key")

    @field_validator("root_dir_name")
    @classmethod
    def validate_root_dir_name(cls, v: str) -> str:
        """Reject names that would escape the base directory."""
        if "/" in v or "\\" in v or v in (".", ".."):
            raise ValueError("root_dir_name must be a single directory name")
        return v

    @model_validator(mode="after")
    def validate_encryption(self):
        """An encryption flag without a key is a misconfiguration."""
        if self.enable_encryption and not self.encryption_key:
            raise ValueError("encryption_key is required when enable_encryption is set")
        return self

    @property
    def never_expires(self) -> bool:
        """True when writes without an override never expire."""
        return self.default_expire_time_ms <= 0

    def resolve_cache_dir(self, base_dir: Path) -> Path:
        """
        Resolve the root cache directory for this configuration.

        Args:
            base_dir: Base directory that root_dir_name is relative to

        Returns:
            custom_cache_dir if set, otherwise base_dir / root_dir_name
        """
        if self.custom_cache_dir is not None:
            return Path(self.custom_cache_dir).expanduser()
        return Path(base_dir).expanduser() / self.root_dir_name

    # -------------------------------------------------------------------------
    # Presets
    # -------------------------------------------------------------------------

    @classmethod
    def default(cls) -> "CacheConfig":
        """7 day expiry, 100MB advisory cap."""
        return cls()

    @classmethod
    def short_term(cls) -> "CacheConfig":
        """1 hour expiry."""
        return cls(root_dir_name="short_cache", default_expire_time_ms=MILLIS_PER_HOUR)

    @classmethod
    def long_term(cls) -> "CacheConfig":
        """30 day expiry."""
        return cls(root_dir_name="long_cache", default_expire_time_ms=30 * MILLIS_PER_DAY)

    @classmethod
    def permanent(cls) -> "CacheConfig":
        """Entries never expire and no cleanup scheduler is attached."""
        return cls(
            root_dir_name="permanent_cache",
            default_expire_time_ms=NEVER_EXPIRE,
            auto_clean_expired=False,
        )

    @classmethod
    def image(cls) -> "CacheConfig":
        """14 day expiry, 200MB advisory cap, memory accelerator on."""
        return cls(
            root_dir_name="image_cache",
            default_expire_time_ms=14 * MILLIS_PER_DAY,
            max_cache_size=IMAGE_MAX_CACHE_SIZE,
            enable_memory_cache=True,
        )

    @classmethod
    def from_preset(cls, preset: CachePreset | str) -> "CacheConfig":
        """
        Build a configuration from a named preset.

        Raises:
            ValueError: If the preset name is unknown
        """
        factories = {
            CachePreset.DEFAULT: cls.default,
            CachePreset.SHORT_TERM: cls.short_term,
            CachePreset.LONG_TERM: cls.long_term,
            CachePreset.PERMANENT: cls.permanent,
            CachePreset.IMAGE: cls.image,
        }
        return factories[CachePreset(preset)]()
