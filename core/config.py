# =============================================================================
# core/config.py  —  Settings from the environment
# =============================================================================
#
# Two secrets are mandatory: the Last.fm API key and the shared secret.
# Both come from the environment (or a .env file, which the entry points
# load with python-dotenv before anything reads os.environ).
#
#   LASTFM_API_KEY       required
#   LASTFM_SECRET_KEY    required
#   LASTFM_SESSION_KEY   optional; pre-authorised session for write tools
#   LASTFM_API_URL       optional; defaults to the public 2.0 endpoint
#   LASTFM_TIMEOUT       optional; seconds, default 10
#
# Secrets are opaque strings.  They are masked in repr() so a stray log
# line can't leak them.
# =============================================================================

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from core.composer import DEFAULT_ENDPOINT
from core.errors import ConfigurationError
from core.models import Credentials


@dataclass(frozen=True)
class Settings:
    api_key: str = field(repr=False)
    secret: str = field(repr=False)
    session_key: Optional[str] = field(default=None, repr=False)
    api_url: str = DEFAULT_ENDPOINT
    timeout: float = 10.0

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = os.environ) -> "Settings":
        """Read settings, raising ConfigurationError for a missing secret."""
        api_key = environ.get("LASTFM_API_KEY", "").strip()
        if not api_key:
            raise ConfigurationError("LASTFM_API_KEY")
        secret = environ.get("LASTFM_SECRET_KEY", "").strip()
        if not secret:
            raise ConfigurationError("LASTFM_SECRET_KEY")

        timeout_text = environ.get("LASTFM_TIMEOUT", "").strip()
        try:
            timeout = float(timeout_text) if timeout_text else 10.0
        except ValueError:
            raise ValueError(f"LASTFM_TIMEOUT must be a number, got {timeout_text!r}") from None

        return cls(
            api_key=api_key,
            secret=secret,
            session_key=environ.get("LASTFM_SESSION_KEY", "").strip() or None,
            api_url=environ.get("LASTFM_API_URL", "").strip() or DEFAULT_ENDPOINT,
            timeout=timeout,
        )

    @property
    def credentials(self) -> Credentials:
        return Credentials(api_key=self.api_key, secret=self.secret)
