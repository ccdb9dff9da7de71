# src/models/item.py

"""Canonical product, store and offer models shared by every provider."""

from dataclasses import dataclass
from enum import Enum


class DealVerdict(str, Enum):
    """How the scanned price compares with the cheapest nearby offer."""

    DEAL = "DEAL"
    SO_SO = "SO-SO"
    NO_DEAL = "NO DEAL"


@dataclass(frozen=True)
class Coordinate:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lon: float


@dataclass(frozen=True)
class StoreLocation:
    """A provider store returned by a store-locator call."""

    location_id: str
    name: str
    coordinate: Coordinate | None = None
    postal_code: str | None = None


@dataclass(frozen=True)
class Recommendation:
    """A competitor's priced instance of the scanned product."""

    id: str
    name: str
    price: float
    store: str
    distance: float | None = None


@dataclass(frozen=True)
class CanonicalItem:
    """A normalised product record from any provider.

    ``price`` is always a finite non-negative number; providers coerce
    a missing price to ``0.0``.
    """

    id: str
    name: str
    price: float
    image: str = ""
    brand: str | None = None
    store: str | None = None
    coordinate: Coordinate | None = None
    is_organic: bool | None = None
    verdict: DealVerdict | None = None
    recommendations: tuple[Recommendation, ...] | None = None
