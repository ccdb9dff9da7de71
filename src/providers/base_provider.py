# src/providers/base_provider.py

"""Provider contract and shared HTTP plumbing for retail data sources."""

import logging
import math
from abc import ABC, abstractmethod
from typing import Any, Protocol

from curl_cffi import requests as curl_requests

from src.config.credentials import ProviderCredentials
from src.config.settings import Settings
from src.models.item import CanonicalItem, Coordinate, StoreLocation


class RetailProvider(Protocol):
    """Capability set the aggregator depends on.

    Implementations never raise out of the four data operations: any
    failure collapses to ``None`` or an empty list.
    """

    provider_id: str

    def is_configured(self) -> bool: ...

    async def authenticate(self) -> str | None: ...

    async def locate_stores(
        self,
        coordinate: Coordinate,
        radius_miles: float,
        credential: str,
    ) -> list[StoreLocation]: ...

    async def lookup_by_identifier(
        self,
        identifier: str,
        store: StoreLocation,
        credential: str,
    ) -> CanonicalItem | None: ...

    async def search_by_term(
        self,
        term: str,
        coordinate: Coordinate,
        radius_miles: float,
        credential: str,
    ) -> list[CanonicalItem]: ...

    def offer_label(
        self, store: StoreLocation, item: CanonicalItem,
    ) -> str: ...

    async def close(self) -> None: ...


def first_price(*candidates: object) -> float:
    """Return the first finite numeric candidate, or ``0.0``.

    Candidates are tried in priority order. ``None`` and values that do
    not parse as a finite number are skipped; negatives clamp to zero.
    """
    for value in candidates:
        if value is None or isinstance(value, bool):
            continue
        try:
            number = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            continue
        if math.isnan(number) or math.isinf(number):
            continue
        return max(number, 0.0)
    return 0.0


def format_radius(radius_miles: float) -> str:
    """Render a radius as a query value; whole miles carry no ``.0``."""
    if float(radius_miles).is_integer():
        return str(int(radius_miles))
    return str(radius_miles)


def to_coordinate(lat: object, lon: object) -> Coordinate | None:
    """Build a Coordinate, or ``None`` if either value is not a finite number."""
    try:
        coordinate = Coordinate(
            lat=float(lat),  # type: ignore[arg-type]
            lon=float(lon),  # type: ignore[arg-type]
        )
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(coordinate.lat) and math.isfinite(coordinate.lon)):
        return None
    return coordinate


def mentions_organic(*texts: object) -> bool:
    """Case-insensitive ``organic`` substring heuristic."""
    return any(
        isinstance(t, str) and "organic" in t.lower()
        for t in texts
    )


class BaseProvider(ABC):
    """Abstract base class for all retail data providers."""

    def __init__(
        self,
        source_name: str,
        credentials: ProviderCredentials,
        session: Any | None = None,
    ) -> None:
        self.source_name = source_name
        self.provider_id = source_name
        self.logger = logging.getLogger(
            f"dealscan.{source_name}"
        )
        self.settings = Settings()
        self.credentials = credentials
        self.session: Any = (
            session
            if session is not None
            else curl_requests.AsyncSession()
        )
        self._request_timeout: int = (
            self.settings.REQUEST_TIMEOUT
        )

    def _diag(
        self,
        level: int,
        event: str,
        msg: str,
        *args: object,
        exc_info: bool = False,
    ) -> None:
        """Log a diagnostic record tagged with provider and event."""
        self.logger.log(
            level,
            "[%s] " + msg,
            self.source_name,
            *args,
            exc_info=exc_info,
            extra={
                "provider": self.source_name,
                "event": event,
            },
        )

    def _decode(self, resp: Any, url: str) -> Any | None:
        """Return the JSON body of a 200 response, else ``None``."""
        if resp.status_code != 200:
            self._diag(
                logging.WARNING,
                "http_error",
                "HTTP %d from %s: %s",
                resp.status_code,
                url,
                str(resp.text)[:200],
            )
            return None
        try:
            return resp.json()
        except (TypeError, ValueError) as exc:
            self._diag(
                logging.WARNING,
                "decode_error",
                "Invalid JSON from %s: %s",
                url,
                exc,
            )
            return None

    async def _get_json(
        self,
        url: str,
        params: dict[str, str],
        headers: dict[str, str],
    ) -> Any | None:
        """Single-attempt GET returning decoded JSON or ``None``."""
        try:
            resp = await self.session.get(
                url,
                params=params,
                headers=headers,
                timeout=self._request_timeout,
            )
        except Exception as exc:
            self._diag(
                logging.WARNING,
                "transport_error",
                "GET %s failed: %s",
                url,
                exc,
                exc_info=True,
            )
            return None
        return self._decode(resp, url)

    async def _post_form(
        self,
        url: str,
        data: dict[str, str],
        headers: dict[str, str],
    ) -> Any | None:
        """Single-attempt form POST returning decoded JSON or ``None``."""
        try:
            resp = await self.session.post(
                url,
                data=data,
                headers=headers,
                timeout=self._request_timeout,
            )
        except Exception as exc:
            self._diag(
                logging.WARNING,
                "transport_error",
                "POST %s failed: %s",
                url,
                exc,
                exc_info=True,
            )
            return None
        return self._decode(resp, url)

    @staticmethod
    def _records(
        payload: Any, *keys: str,
    ) -> list[dict[str, Any]]:
        """Pull the record list out of a bare list or the first list key."""
        raw: Any = []
        if isinstance(payload, list):
            raw = payload
        elif isinstance(payload, dict):
            for key in keys:
                value = payload.get(key)
                if isinstance(value, list):
                    raw = value
                    break
        return [r for r in raw if isinstance(r, dict)]

    async def close(self) -> None:
        """Release the underlying HTTP session."""
        try:
            await self.session.close()
        except Exception as exc:
            self.logger.debug(
                "[%s] Session close failed: %s",
                self.source_name,
                exc,
            )

    @abstractmethod
    def is_configured(self) -> bool:
        """Return True when the required secrets are present."""
        ...

    @abstractmethod
    async def authenticate(self) -> str | None:
        """Return a credential for this resolution, or ``None``."""
        ...

    @abstractmethod
    async def locate_stores(
        self,
        coordinate: Coordinate,
        radius_miles: float,
        credential: str,
    ) -> list[StoreLocation]:
        """Return stores near *coordinate*, nearest/default first."""
        ...

    @abstractmethod
    async def lookup_by_identifier(
        self,
        identifier: str,
        store: StoreLocation,
        credential: str,
    ) -> CanonicalItem | None:
        """Resolve one product identifier at *store*."""
        ...

    @abstractmethod
    async def search_by_term(
        self,
        term: str,
        coordinate: Coordinate,
        radius_miles: float,
        credential: str,
    ) -> list[CanonicalItem]:
        """Free-text catalog search near *coordinate*."""
        ...

    @abstractmethod
    def offer_label(
        self, store: StoreLocation, item: CanonicalItem,
    ) -> str:
        """Store label used when *item* becomes a competitor offer."""
        ...
