"""
Moodwave Configuration
======================
All environment variables in one place. Pydantic Settings validates
types at startup so a bad deployment fails on boot, not on the first
login attempt.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Loaded from environment variables or a .env file."""

    # --- Supabase ---
    supabase_url: str = "http://localhost:54321"
    supabase_service_key: str = ""  # service_role key for table access + token checks
    supabase_anon_key: str = ""  # anon key for password sign-in / sign-up flows

    # --- App settings ---
    environment: str = "development"  # development | test | production
    log_level: str = "INFO"
    frontend_url: str = "http://localhost:5173"
    cors_origins: list[str] = ["http://localhost:5173"]
    cookie_domain: Optional[str] = None

    # --- Rate limiting (per client IP, fixed window) ---
    rate_limit_enabled: bool = True
    rate_limit_default: str = "100/minute"
    rate_limit_login: str = "5/minute"

    # --- Login soft-lock ---
    login_lock_threshold: int = 5
    login_lock_seconds: int = 300

    # --- Analytics ---
    # IANA zone used for day bucketing when the request doesn't pass ?tz=
    report_timezone: str = "UTC"

    # --- Recovery tendency (points on the 0-100 sensory scale) ---
    recovery_sharp_drop_points: float = 20
    recovery_gradual_drop_points: float = 10
    recovery_volatility_points: float = 25
    recovery_stagnation_points: float = 5
    recovery_grade_s: float = 80
    recovery_grade_a: float = 65
    recovery_grade_b: float = 50
    recovery_grade_c: float = 35

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
