# src/services/price_aggregator.py

"""Resolves a scanned identifier across every configured provider."""

import asyncio
import importlib
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from src.config.credentials import ProviderCredentials
from src.config.settings import Settings
from src.filters.offer_filter import OfferFilter
from src.models.item import (
    CanonicalItem,
    Coordinate,
    Recommendation,
    StoreLocation,
)
from src.providers.base_provider import RetailProvider

logger = logging.getLogger("dealscan.aggregator")


@dataclass
class ResolveResult:
    """Canonical item plus its sorted, self-excluded competitor offers."""

    identifier: str
    item: CanonicalItem | None = None
    deals: list[Recommendation] = field(
        default_factory=lambda: list[Recommendation]()
    )
    source: str | None = None


@dataclass
class _ProviderRound:
    """One authenticated provider's state within a single resolve()."""

    provider: RetailProvider
    credential: str
    stores: list[StoreLocation] = field(
        default_factory=lambda: list[StoreLocation]()
    )
    candidate: CanonicalItem | None = None


def _load_provider_class(dotted_path: str) -> type[Any]:
    """Dynamically import a provider class from its dotted module path."""
    module_path, class_name = dotted_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls: type[Any] = getattr(module, class_name)
    return cls


def build_providers(
    credentials: ProviderCredentials,
    registry: list[dict[str, str]] | None = None,
) -> list[RetailProvider]:
    """Instantiate every registered provider, in precedence order."""
    entries = (
        Settings.AVAILABLE_PROVIDERS if registry is None else registry
    )
    return [
        _load_provider_class(entry["provider"])(credentials)
        for entry in entries
    ]


class PriceAggregator:
    """Fans a scan out to all providers and merges the answers.

    Providers are consulted in the order given; when more than one
    resolves the identifier, the first in that order supplies the
    canonical item. The aggregator keeps no state between calls:
    credentials and store lists are fetched fresh every time.
    """

    def __init__(
        self,
        credentials: ProviderCredentials | None = None,
        providers: Sequence[RetailProvider] | None = None,
        max_concurrent_lookups: int | None = None,
    ) -> None:
        self.settings = Settings()
        if providers is None:
            providers = build_providers(
                credentials or ProviderCredentials.from_env()
            )
        self.providers: list[RetailProvider] = list(providers)
        self.max_concurrent_lookups = max(
            1,
            max_concurrent_lookups
            or self.settings.DEAL_LOOKUP_CONCURRENCY,
        )

    # ── Private helpers ──────────────────────────────────

    def _configured(self) -> list[RetailProvider]:
        configured = [p for p in self.providers if p.is_configured()]
        skipped = [
            p.provider_id for p in self.providers
            if not p.is_configured()
        ]
        if skipped:
            logger.info(
                "Skipping unconfigured providers: %s",
                ", ".join(skipped),
                extra={"event": "unconfigured"},
            )
        return configured

    @staticmethod
    def _log_failure(
        provider: RetailProvider, stage: str, exc: BaseException,
    ) -> None:
        logger.error(
            "Provider %s raised during %s: %s",
            provider.provider_id,
            stage,
            exc,
            exc_info=exc,
            extra={
                "provider": provider.provider_id,
                "event": "provider_error",
            },
        )

    async def _authenticate_all(
        self, providers: list[RetailProvider],
    ) -> list[tuple[RetailProvider, str]]:
        """Authenticate concurrently, keeping providers that succeed."""
        results = await asyncio.gather(
            *(p.authenticate() for p in providers),
            return_exceptions=True,
        )
        sessions: list[tuple[RetailProvider, str]] = []
        for provider, result in zip(providers, results):
            if isinstance(result, BaseException):
                self._log_failure(provider, "authenticate", result)
            elif result:
                sessions.append((provider, result))
        return sessions

    async def _lookup_candidate(
        self,
        provider: RetailProvider,
        credential: str,
        identifier: str,
        coordinate: Coordinate,
        radius_miles: float,
    ) -> _ProviderRound:
        """Locate stores, then look the identifier up at the first one."""
        round_ = _ProviderRound(provider=provider, credential=credential)
        round_.stores = await provider.locate_stores(
            coordinate, radius_miles, credential
        )
        if not round_.stores:
            logger.info(
                "Provider %s found no stores within %.1f miles",
                provider.provider_id,
                radius_miles,
                extra={
                    "provider": provider.provider_id,
                    "event": "no_stores",
                },
            )
            return round_
        round_.candidate = await provider.lookup_by_identifier(
            identifier, round_.stores[0], credential
        )
        return round_

    async def _collect_offers(
        self, round_: _ProviderRound, identifier: str,
    ) -> list[Recommendation]:
        """Per-store lookups for one competitor, in store order.

        At most ``max_concurrent_lookups`` lookups are in flight; the
        default of 1 makes them strictly sequential.
        """
        provider = round_.provider
        limiter = asyncio.Semaphore(self.max_concurrent_lookups)

        async def lookup(store: StoreLocation) -> CanonicalItem | None:
            async with limiter:
                return await provider.lookup_by_identifier(
                    identifier, store, round_.credential
                )

        results = await asyncio.gather(
            *(lookup(s) for s in round_.stores),
            return_exceptions=True,
        )

        offers: list[Recommendation] = []
        for store, result in zip(round_.stores, results):
            if isinstance(result, BaseException):
                self._log_failure(provider, "deal lookup", result)
                continue
            # A zero price means the store has no price for it
            if result is None or result.price <= 0:
                continue
            offers.append(
                Recommendation(
                    id=result.id,
                    name=result.name,
                    price=result.price,
                    store=provider.offer_label(store, result),
                )
            )
        logger.debug(
            "Provider %s: %d offers from %d stores",
            provider.provider_id,
            len(offers),
            len(round_.stores),
        )
        return offers

    # ── Public API ───────────────────────────────────────

    async def resolve(
        self,
        identifier: str,
        latitude: float,
        longitude: float,
        radius_miles: float | None = None,
    ) -> ResolveResult:
        """Resolve *identifier* to a canonical item and sorted offers."""
        radius = (
            self.settings.DEFAULT_RADIUS_MILES
            if radius_miles is None
            else radius_miles
        )
        coordinate = Coordinate(lat=latitude, lon=longitude)
        result = ResolveResult(identifier=identifier)

        providers = self._configured()
        if not providers:
            logger.warning("No providers configured; nothing to resolve")
            return result

        sessions = await self._authenticate_all(providers)
        outcomes = await asyncio.gather(
            *(
                self._lookup_candidate(
                    p, cred, identifier, coordinate, radius
                )
                for p, cred in sessions
            ),
            return_exceptions=True,
        )
        rounds: list[_ProviderRound] = []
        for (provider, _), outcome in zip(sessions, outcomes):
            if isinstance(outcome, BaseException):
                self._log_failure(provider, "lookup", outcome)
            else:
                rounds.append(outcome)

        winner = next(
            (r for r in rounds if r.candidate is not None), None
        )
        if winner is None or winner.candidate is None:
            logger.info("Identifier %s not found by any provider", identifier)
            return result

        competitors = [r for r in rounds if r is not winner]
        batches = await asyncio.gather(
            *(self._collect_offers(r, identifier) for r in competitors)
        )
        offers = [offer for batch in batches for offer in batch]

        kept, _ = OfferFilter.exclude_store(
            offers, winner.candidate.store
        )
        result.item = winner.candidate
        result.source = winner.provider.provider_id
        result.deals = OfferFilter.sort_by_price(kept)
        logger.info(
            "Resolved %s via %s with %d competing offers",
            identifier,
            result.source,
            len(result.deals),
        )
        return result

    async def search(
        self,
        term: str,
        latitude: float,
        longitude: float,
        radius_miles: float | None = None,
    ) -> list[CanonicalItem]:
        """Search every provider; results concatenate in provider order."""
        radius = (
            self.settings.DEFAULT_RADIUS_MILES
            if radius_miles is None
            else radius_miles
        )
        coordinate = Coordinate(lat=latitude, lon=longitude)
        providers = self._configured()
        if not providers:
            logger.warning("No providers configured; nothing to search")
            return []

        sessions = await self._authenticate_all(providers)
        batches = await asyncio.gather(
            *(
                p.search_by_term(term, coordinate, radius, cred)
                for p, cred in sessions
            ),
            return_exceptions=True,
        )
        items: list[CanonicalItem] = []
        for (provider, _), batch in zip(sessions, batches):
            if isinstance(batch, BaseException):
                self._log_failure(provider, "search", batch)
                continue
            items.extend(batch)
        return items

    async def close(self) -> None:
        """Close every provider's HTTP session."""
        for provider in self.providers:
            await provider.close()
