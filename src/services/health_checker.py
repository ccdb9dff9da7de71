# src/services/health_checker.py

"""Provider configuration and authentication health checker."""

import asyncio
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass

from src.config.credentials import ProviderCredentials
from src.config.settings import Settings
from src.providers.base_provider import RetailProvider
from src.services.price_aggregator import build_providers

logger = logging.getLogger("dealscan.health")


@dataclass
class HealthResult:
    """Result of a single provider health check."""

    provider_id: str
    status: str  # "ok", "slow", "down", "unconfigured"
    latency_ms: float
    message: str


async def probe_provider(provider: RetailProvider) -> HealthResult:
    """Check that a provider is configured and can authenticate."""
    provider_id = provider.provider_id
    if not provider.is_configured():
        return HealthResult(
            provider_id=provider_id,
            status="unconfigured",
            latency_ms=0.0,
            message="Required secrets are not set",
        )

    start = time.monotonic()
    try:
        credential = await provider.authenticate()
    except Exception as exc:
        elapsed_ms = (time.monotonic() - start) * 1000
        return HealthResult(
            provider_id=provider_id,
            status="down",
            latency_ms=elapsed_ms,
            message=str(exc)[:80],
        )
    elapsed_ms = (time.monotonic() - start) * 1000

    if not credential:
        return HealthResult(
            provider_id=provider_id,
            status="down",
            latency_ms=elapsed_ms,
            message="Authentication failed",
        )

    if elapsed_ms > Settings.HEALTH_SLOW_MS:
        return HealthResult(
            provider_id=provider_id,
            status="slow",
            latency_ms=elapsed_ms,
            message="High latency",
        )

    return HealthResult(
        provider_id=provider_id,
        status="ok",
        latency_ms=elapsed_ms,
        message="",
    )


class HealthChecker:
    """Runs concurrent health probes against all providers."""

    def __init__(
        self,
        credentials: ProviderCredentials | None = None,
        providers: Sequence[RetailProvider] | None = None,
    ) -> None:
        if providers is None:
            providers = build_providers(
                credentials or ProviderCredentials.from_env()
            )
        self.providers: list[RetailProvider] = list(providers)

    async def check_all(self) -> list[HealthResult]:
        """Probe every registered provider concurrently."""
        try:
            results: list[HealthResult] = list(
                await asyncio.gather(
                    *(probe_provider(p) for p in self.providers)
                )
            )
        finally:
            for provider in self.providers:
                await provider.close()
        for r in results:
            logger.info(
                "Health check %s: %s (%.0fms) %s",
                r.provider_id,
                r.status,
                r.latency_ms,
                r.message,
                extra={"provider": r.provider_id, "event": "health"},
            )
        return results
