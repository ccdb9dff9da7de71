# src/config/credentials.py

"""Per-provider secret material, passed explicitly into the core."""

import os
from collections.abc import Mapping
from dataclasses import dataclass

# Importing settings runs load_dotenv() so .env secrets are visible.
from src.config.settings import Settings  # noqa: F401


def _clean(value: str | None) -> str | None:
    """Strip a secret value; blank strings count as absent."""
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


@dataclass(frozen=True)
class ProviderCredentials:
    """Optional secrets for every known provider.

    A provider is configured for a call exactly when its required
    fields are non-empty. Missing secrets are never an error.
    """

    kroger_client_id: str | None = None
    kroger_client_secret: str | None = None
    walmart_publisher_id: str | None = None
    walmart_api_key: str | None = None

    def __post_init__(self) -> None:
        for name in (
            "kroger_client_id",
            "kroger_client_secret",
            "walmart_publisher_id",
            "walmart_api_key",
        ):
            object.__setattr__(
                self, name, _clean(getattr(self, name))
            )

    @property
    def has_kroger(self) -> bool:
        """Both Kroger client id and secret are present."""
        return bool(
            self.kroger_client_id and self.kroger_client_secret
        )

    @property
    def has_walmart(self) -> bool:
        """The Walmart publisher id is present."""
        return bool(self.walmart_publisher_id)

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None,
    ) -> "ProviderCredentials":
        """Build credentials from the process environment (or a mapping)."""
        env = os.environ if environ is None else environ
        return cls(
            kroger_client_id=env.get("KROGER_CLIENT_ID"),
            kroger_client_secret=env.get("KROGER_CLIENT_SECRET"),
            walmart_publisher_id=env.get("WALMART_PUBLISHER_ID"),
            walmart_api_key=env.get("WALMART_API_KEY"),
        )
