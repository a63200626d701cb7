"""
Authorization settings for the NeoMultiTenant platform.

Environment-driven configuration for permission caching and data scoping.
"""
from typing import Optional
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator


class AuthzSettings(BaseSettings):
    """Settings consumed by the permission caches and the data scope resolver."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Cache TTLs (milliseconds)
    permission_cache_ttl_ms: int = Field(default=600_000, validation_alias="PERMISSION_CACHE_TTL_MS")
    hierarchy_cache_ttl_ms: int = Field(default=600_000, validation_alias="PERMISSION_HIERARCHY_CACHE_TTL_MS")

    # Data scoping
    default_owner_column: str = Field(default="user_id", validation_alias="AUTHZ_DEFAULT_OWNER_COLUMN")
    include_own_in_team_scope: bool = Field(default=True, validation_alias="AUTHZ_INCLUDE_OWN_IN_TEAM_SCOPE")

    # Store layout
    db_schema: str = Field(default="public", validation_alias="AUTHZ_DB_SCHEMA")
    team_members_table: str = Field(default="team_members", validation_alias="AUTHZ_TEAM_MEMBERS_TABLE")

    # Optional shared cache backend
    redis_url: Optional[str] = Field(default=None, validation_alias="REDIS_URL")
    redis_key_prefix: str = Field(default="authz:perms:", validation_alias="AUTHZ_REDIS_KEY_PREFIX")

    @field_validator("permission_cache_ttl_ms", "hierarchy_cache_ttl_ms")
    @classmethod
    def validate_ttl(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Cache TTL must be a positive number of milliseconds")
        return v

    @property
    def permission_cache_ttl_seconds(self) -> float:
        return self.permission_cache_ttl_ms / 1000

    @property
    def hierarchy_cache_ttl_seconds(self) -> float:
        return self.hierarchy_cache_ttl_ms / 1000


@lru_cache()
def get_settings() -> AuthzSettings:
    """Get cached settings instance."""
    return AuthzSettings()
