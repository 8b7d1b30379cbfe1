"""
Application configuration — loaded from environment / .env file.

Scoring weights, miles factors and storage timings are product constants,
kept here so they can be tuned without touching the scoring code.
"""
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── App ──
    app_name: str = "flight-planner"
    app_env: str = "development"
    log_level: str = "INFO"

    # ── Durable storage (SQLAlchemy key/value table) ──
    database_url: str = "sqlite:///flight_planner.db"
    storage_max_value_bytes: int = 5_000_000  # browser-style per-origin quota

    # ── Scoring weights — must sum to 1.0 ──
    assessment_weight: float = 0.7
    tech_stack_weight: float = 0.3

    # ── Flight miles ──
    miles_per_score_point: int = 100
    miles_per_unlocked_city: int = 250

    # ── Cache layer ──
    write_debounce_ms: int = 100
    storage_retry_keep: int = 500  # list items kept when retrying a quota failure

    # ── Assessment resume ──
    assessment_progress_ttl_ms: int = 24 * 60 * 60 * 1000

    # ── Analytics ring buffer ──
    analytics_max_events: int = 1000

    # ── Storage keys ──
    state_key: str = "flightPlannerState"
    tech_stack_key: str = "techStack"
    history_key: str = "assessmentHistory"
    analytics_key: str = "flight_planner_analytics"
    assessment_progress_key: str = "assessmentProgress"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @model_validator(mode="after")
    def validate_weights(self) -> "Settings":
        if abs(self.assessment_weight + self.tech_stack_weight - 1.0) > 1e-9:
            raise ValueError("assessment_weight + tech_stack_weight must sum to 1.0")
        if self.miles_per_score_point < 0 or self.miles_per_unlocked_city < 0:
            raise ValueError("miles factors must be non-negative")
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
