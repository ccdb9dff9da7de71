# src/config/settings.py

"""Central configuration for the dealscan engine."""

from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the dealscan engine."""

    # --- Networking ---
    REQUEST_TIMEOUT: int = 15           # Seconds before a request times out
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": "application/json",
        "Accept-Language": "en-US,en;q=0.9",
    }

    # --- Resolution ---
    DEFAULT_RADIUS_MILES: float = 5.0   # Store-locator radius
    SEARCH_RESULT_LIMIT: int = 20       # Max items per provider search
    DEAL_LOOKUP_CONCURRENCY: int = 1    # Per-store deal lookups in flight

    # --- Evaluation ---
    DEAL_MARGIN: float = 0.05           # SO-SO band above cheapest offer

    # --- Health ---
    HEALTH_SLOW_MS: float = 5000.0

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    LOGS_DIR: Path = BASE_DIR / "logs"

    # --- Providers (order is canonical-item precedence) ---
    AVAILABLE_PROVIDERS: list[dict[str, str]] = [
        {
            "id": "kroger",
            "label": "Kroger",
            "provider": "src.providers.kroger_provider.KrogerProvider",
        },
        {
            "id": "walmart",
            "label": "Walmart",
            "provider": "src.providers.walmart_provider.WalmartProvider",
        },
    ]
