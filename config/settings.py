"""Application settings — all configuration loaded from environment variables.

Usage:
    from config.settings import Settings
    settings = Settings()
    settings.validate()   # raises ValueError on unusable values

Credentials are optional at startup: a source whose keys are missing fails
its own fetches with ``API keys not configured`` instead of blocking the app.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field


def _env(name: str, fallback: str = "") -> str:
    """Return ``$name``, or ``$fallback`` (another variable) when unset."""
    value = os.environ.get(name, "")
    if not value and fallback:
        value = os.environ.get(fallback, "")
    return value


@dataclass
class Settings:
    """Centralised application configuration.

    All values are read from environment variables at instantiation time
    so that tests can override them by patching ``os.environ``.
    """

    # ── LLM completion endpoint ─────────────────────────────────────────────
    llm_api_key: str = field(default_factory=lambda: _env("GROQ_API_KEY"))
    llm_base_url: str = field(
        default_factory=lambda: os.environ.get(
            "LLM_BASE_URL", "https://api.groq.com/openai/v1"
        )
    )

    # ── Upstream content APIs ───────────────────────────────────────────────
    reddit_client_id: str = field(default_factory=lambda: _env("REDDIT_CLIENT_ID"))
    reddit_client_secret: str = field(
        default_factory=lambda: _env("REDDIT_CLIENT_SECRET")
    )
    rapidapi_key: str = field(default_factory=lambda: _env("RAPIDAPI_KEY"))
    #: X search runs on its own RapidAPI subscription when one is configured.
    x_rapidapi_key: str = field(
        default_factory=lambda: _env("X_RAPIDAPI_KEY", "RAPIDAPI_KEY")
    )
    facebook_rapidapi_key: str = field(
        default_factory=lambda: _env("FACEBOOK_RAPIDAPI_KEY", "RAPIDAPI_KEY")
    )
    facebook_llm_api_key: str = field(
        default_factory=lambda: _env("FACEBOOK_GROQ_API_KEY", "GROQ_API_KEY")
    )
    strategy_llm_api_key: str = field(
        default_factory=lambda: _env("STRATEGY_GROQ_API_KEY", "GROQ_API_KEY")
    )
    youtube_api_key: str = field(default_factory=lambda: _env("YOUTUBE_API_KEY"))
    tavily_api_key: str = field(default_factory=lambda: _env("TAVILY_API_KEY"))

    # ── HTTP ────────────────────────────────────────────────────────────────
    #: Total timeout (seconds) for every upstream and completion request.
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30"))
    )

    # ── Storage ─────────────────────────────────────────────────────────────
    db_path: str = field(
        default_factory=lambda: os.environ.get("DB_PATH", "data/pulse.db")
    )

    # ── Flask ───────────────────────────────────────────────────────────────
    debug: bool = field(
        default_factory=lambda: os.environ.get("FLASK_DEBUG", "0") == "1"
    )
    port: int = field(
        default_factory=lambda: int(os.environ.get("PORT", "5001"))
    )
    #: Cap on live dashboard widgets; the least recently used is evicted.
    max_widgets: int = field(
        default_factory=lambda: int(os.environ.get("MAX_WIDGETS", "500"))
    )

    def validate(self) -> None:
        """Raise ``ValueError`` if any setting is unusable."""
        if self.request_timeout <= 0:
            raise ValueError(
                f"REQUEST_TIMEOUT must be positive, got {self.request_timeout}."
            )
        if not self.llm_base_url:
            raise ValueError("LLM_BASE_URL must not be empty.")
        if not self.db_path:
            raise ValueError("DB_PATH must not be empty.")
        if self.max_widgets < 1:
            raise ValueError(f"MAX_WIDGETS must be at least 1, got {self.max_widgets}.")
