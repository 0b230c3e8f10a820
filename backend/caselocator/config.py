"""
CaseLocator Backend — Application Configuration
================================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; validated before app starts.

Timing values are stored in milliseconds (as the form behaviour is
described) and exposed in seconds through properties for asyncio.
"""

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for development. The location API
    key may be left empty: requests are still attempted and fail over to
    the bundled dataset.
    """

    # ── Remote Location API ───────────────────────────────────────────────
    # What: Base URL of the hierarchical location API (countries/states/cities)
    location_api_base_url: str = Field(
        default="https://api.countrystatecity.in/v1",
        description="Base URL of the Country State City API",
    )

    # What: Static API key sent with every request
    # How to obtain: https://countrystatecity.in/
    country_state_city_api_key: str = Field(
        default="",
        description="API key for the Country State City API",
    )

    location_api_key_header: str = Field(default="X-CSCAPI-KEY")

    # What: Optional per-request timeout in seconds
    # Unset: a hung call never resolves and its loading flag stays active
    # Set:   the timeout surfaces as LocationLookupFailed and fails over
    location_api_timeout: Optional[float] = Field(default=None, gt=0, le=120)

    # What: Bound on the /health check, independent of location_api_timeout
    health_check_timeout: float = Field(default=5.0, gt=0, le=60)

    # ── Cascade Behaviour ─────────────────────────────────────────────────
    # What: Quiescence window for free-text city search
    search_debounce_ms: int = Field(default=300, ge=0, le=5000)

    # What: Queries shorter than this clear suggestions instead of searching
    search_min_query_length: int = Field(default=2, ge=1, le=10)

    # What: Maximum number of city suggestions returned by a search
    search_result_limit: int = Field(default=10, ge=1, le=100)

    # What: Caps applied to city lists (remote and fallback respectively)
    city_list_limit: int = Field(default=100, ge=1, le=10000)
    fallback_city_limit: int = Field(default=50, ge=1, le=1000)

    # What: Delay between a city selection and coordinate generation
    city_select_delay_ms: int = Field(default=100, ge=0, le=5000)

    # What: Artificial latency of the coordinate generator (loading affordance)
    coordinate_delay_ms: int = Field(default=1000, ge=0, le=10000)

    # ── Circuit Breaker ───────────────────────────────────────────────────
    # What: After N consecutive remote failures, serve fallback data
    #       directly for M seconds before probing the API again
    cb_failure_threshold: int = Field(default=5, ge=1, le=50)
    cb_recovery_timeout: int = Field(default=60, ge=0, le=3600)

    # ── Session Registry ──────────────────────────────────────────────────
    max_sessions: int = Field(default=1000, ge=1, le=100000)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: Comma-separated URLs
    cors_origins: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("location_api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    # ── Derived values (seconds) ──────────────────────────────────────────
    @property
    def search_debounce_seconds(self) -> float:
        return self.search_debounce_ms / 1000

    @property
    def city_select_delay_seconds(self) -> float:
        return self.city_select_delay_ms / 1000

    @property
    def coordinate_delay_seconds(self) -> float:
        return self.coordinate_delay_ms / 1000

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    def validate_required_for_production(self) -> None:
        """
        What:  Validates that critical settings are configured.
        When:  Called during app startup (lifespan).
        How:   Collects every problem and raises one ValueError listing them.
        """
        errors = []
        if not self.country_state_city_api_key or (
            self.country_state_city_api_key == "your_api_key_here"
        ):
            errors.append(
                "COUNTRY_STATE_CITY_API_KEY is not set. Location lookups will use "
                "the offline dataset. Request a key at https://countrystatecity.in/"
            )
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance — imported throughout the application
settings = Settings()
