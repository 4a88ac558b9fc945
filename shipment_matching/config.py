"""
Configuration management for shipment_matching.

Uses pydantic-settings for type-safe configuration with automatic
environment variable loading and validation.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shipment_matching.constants import (
    DATE_WINDOW_DAYS,
    DEFAULT_FIELD_LOOKUP_LIMIT,
    DEFAULT_INVOICE_WORKERS,
    DEFAULT_LOOKUP_WORKERS,
    DEFAULT_MATCH_TIMEOUT_SECONDS,
    DEFAULT_RANGE_LOOKUP_LIMIT,
    MAX_LOOKUP_BATCH_SIZE,
    PLATFORM_ID_PREFIX,
)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Scoring weights are deliberately absent: they are fixed constants,
    see shipment_matching.constants.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra env vars
    )

    # Neo4j Configuration (operational record store)
    neo4j_uri: str = Field(
        default="bolt://localhost:7687",
        description="Neo4j connection URI",
    )
    neo4j_user: str = Field(
        default="neo4j",
        description="Neo4j username",
    )
    neo4j_password: str = Field(
        default="",
        description="Neo4j password (required for the Neo4j store)",
    )
    neo4j_database: str = Field(
        default="neo4j",
        description="Neo4j database name",
    )

    # Identifier extraction
    platform_id_prefix: str = Field(
        default=PLATFORM_ID_PREFIX,
        description="Prefix of platform shipment IDs (e.g. ICAL for ICAL-9F3K2Q)",
    )

    # Lookup fan-out
    lookup_batch_size: int = Field(
        default=MAX_LOOKUP_BATCH_SIZE,
        ge=1,
        le=MAX_LOOKUP_BATCH_SIZE,
        description="Values per multi-value store lookup (store caps this at 10)",
    )
    lookup_max_workers: int = Field(
        default=DEFAULT_LOOKUP_WORKERS,
        ge=1,
        description="Concurrent store lookups per match",
    )
    invoice_max_workers: int = Field(
        default=DEFAULT_INVOICE_WORKERS,
        ge=1,
        description="Concurrent line items when matching a whole invoice",
    )
    field_lookup_limit: int = Field(
        default=DEFAULT_FIELD_LOOKUP_LIMIT,
        ge=1,
        description="Max shipments returned per looked-up value",
    )
    range_lookup_limit: int = Field(
        default=DEFAULT_RANGE_LOOKUP_LIMIT,
        ge=1,
        description="Max shipments returned by the booking-date range lookup",
    )
    match_timeout_seconds: float = Field(
        default=DEFAULT_MATCH_TIMEOUT_SECONDS,
        gt=0,
        description="Deadline for all lookups of a single match",
    )
    date_window_days: int = Field(
        default=DATE_WINDOW_DAYS,
        ge=0,
        description="Booking-date window (+/- days) for date/amount correlation",
    )
    store_requests_per_second: float | None = Field(
        default=None,
        description="Throttle for store queries (unset = unthrottled)",
    )
    require_amount_for_date_match: bool = Field(
        default=False,
        description="Discard date/amount candidates when either amount is unknown",
    )

    @field_validator("neo4j_password", "platform_id_prefix", mode="before")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        """Strip whitespace from string values."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("store_requests_per_second", mode="before")
    @classmethod
    def empty_to_none(cls, v):
        """Treat empty strings and non-positive rates as unthrottled."""
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return None
        if v is not None and float(v) <= 0:
            return None
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


def get_neo4j_uri() -> str:
    """Get Neo4j URI from settings."""
    return get_settings().neo4j_uri


def get_neo4j_user() -> str:
    """Get Neo4j username from settings."""
    return get_settings().neo4j_user


def get_neo4j_password() -> str:
    """Get Neo4j password from settings."""
    password = get_settings().neo4j_password
    if not password:
        raise ValueError("NEO4J_PASSWORD not set in .env file")
    return password


def get_neo4j_database() -> str:
    """Get Neo4j database name from settings."""
    return get_settings().neo4j_database
