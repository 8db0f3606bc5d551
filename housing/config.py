"""Application configuration via environment variables."""

from __future__ import annotations

import logging
from typing import Literal

from pydantic_settings import BaseSettings

log = logging.getLogger("housing.config")


class Settings(BaseSettings):
    # Preference extraction (OpenAI)
    openai_api_key: str = ""
    extraction_model: str = "gpt-4o-mini"
    extraction_timeout_seconds: float = 8.0

    # Twilio (voice webhooks + SMS delivery)
    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_phone_number: str = ""

    # Dialogue
    max_turns: int = 5
    ranking_tie_break: Literal["distance", "bedrooms"] = "distance"

    # Admin auth
    admin_api_key: str = ""

    # Server
    host: str = "127.0.0.1"
    port: int = 3000
    shutdown_grace_seconds: float = 10.0
    debug: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def sms_configured(self) -> bool:
        return bool(
            self.twilio_account_sid and self.twilio_auth_token and self.twilio_phone_number
        )

    def validate_startup(self) -> list[str]:
        """Validate configuration at startup. Returns warnings, raises on errors.

        Outside debug mode every collaborator credential must be present.
        With DEBUG=true missing credentials only produce warnings and the
        app falls back to its offline extractor and logging notifier.
        """
        warnings: list[str] = []
        _placeholders = {"sk-...", "AC...", "+1..."}

        if not self.openai_api_key or self.openai_api_key in _placeholders:
            if not self.debug:
                raise ValueError(
                    "OPENAI_API_KEY is missing or still a placeholder. "
                    "Set it in .env to enable preference extraction."
                )
            warnings.append(
                "OPENAI_API_KEY not set. Every call will use the fallback preferences."
            )

        if not self.sms_configured or self.twilio_account_sid in _placeholders:
            if not self.debug:
                raise ValueError(
                    "TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_PHONE_NUMBER "
                    "must all be set to send result text messages."
                )
            warnings.append("Twilio SMS credentials incomplete. Text messages will only be logged.")

        if self.max_turns < 1:
            raise ValueError("MAX_TURNS must be at least 1.")

        if not self.admin_api_key:
            warnings.append(
                "ADMIN_API_KEY not set. Session APIs are "
                + ("open (DEBUG=true)." if self.debug else "locked.")
            )

        return warnings


settings = Settings()
