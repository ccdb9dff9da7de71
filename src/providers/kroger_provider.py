# src/providers/kroger_provider.py

"""Kroger Products/Locations API provider (OAuth client-credentials)."""

import base64
import logging
from typing import Any

from src.config.credentials import ProviderCredentials
from src.models.item import CanonicalItem, Coordinate, StoreLocation
from src.providers.base_provider import (
    BaseProvider,
    first_price,
    format_radius,
    mentions_organic,
    to_coordinate,
)


class KrogerProvider(BaseProvider):
    """Provider for the Kroger public API.

    A bearer token is exchanged for the client id/secret on every
    resolution (``product.compact`` scope). Pricing is only returned
    when a ``filter.locationId`` is supplied, so every product call is
    made against a located store.
    """

    AUTH_URL = "https://api.kroger.com/v1/connect/oauth2/token"
    API_URL = "https://api.kroger.com/v1"
    TOKEN_SCOPE = "product.compact"

    def __init__(
        self,
        credentials: ProviderCredentials,
        session: Any | None = None,
    ) -> None:
        super().__init__("kroger", credentials, session)

    def is_configured(self) -> bool:
        return self.credentials.has_kroger

    def _bearer(self, token: str) -> dict[str, str]:
        return {
            **self.settings.DEFAULT_HEADERS,
            "Authorization": f"Bearer {token}",
        }

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def authenticate(self) -> str | None:
        """Exchange client id/secret for a bearer token."""
        if not self.is_configured():
            self._diag(
                logging.INFO,
                "unconfigured",
                "Missing KROGER_CLIENT_ID or KROGER_CLIENT_SECRET",
            )
            return None
        try:
            raw = (
                f"{self.credentials.kroger_client_id}:"
                f"{self.credentials.kroger_client_secret}"
            )
            encoded = base64.b64encode(
                raw.encode("utf-8")
            ).decode("ascii")
            headers = {
                **self.settings.DEFAULT_HEADERS,
                "Content-Type": "application/x-www-form-urlencoded",
                "Authorization": f"Basic {encoded}",
            }
            payload = await self._post_form(
                self.AUTH_URL,
                {
                    "grant_type": "client_credentials",
                    "scope": self.TOKEN_SCOPE,
                },
                headers,
            )
            token = (
                payload.get("access_token")
                if isinstance(payload, dict)
                else None
            )
            if not token:
                self._diag(
                    logging.WARNING,
                    "auth_failed",
                    "Failed to obtain access token",
                )
                return None
            return str(token)
        except Exception as exc:
            self._diag(
                logging.WARNING,
                "auth_failed",
                "Token request error: %s",
                exc,
                exc_info=True,
            )
            return None

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_location(loc: dict[str, Any]) -> StoreLocation:
        """Convert a ``/locations`` entry to a StoreLocation."""
        address: dict[str, Any] = loc.get("address") or {}
        geo: dict[str, Any] = loc.get("geolocation") or {}
        location_id = str(loc.get("locationId") or "")
        zip_code = address.get("zipCode")
        return StoreLocation(
            location_id=location_id,
            name=str(
                loc.get("name")
                or address.get("name")
                or location_id
            ),
            coordinate=to_coordinate(
                geo.get("latitude") or 0,
                geo.get("longitude") or 0,
            ),
            postal_code=str(zip_code) if zip_code else None,
        )

    @staticmethod
    def _pick_image(images: Any) -> str:
        """Medium size of the first image, else its first size."""
        if not isinstance(images, list) or not images:
            return ""
        first = images[0] if isinstance(images[0], dict) else {}
        sizes = [
            s for s in first.get("sizes") or []
            if isinstance(s, dict)
        ]
        for size in sizes:
            if size.get("size") == "medium" and size.get("url"):
                return str(size["url"])
        return str(sizes[0].get("url") or "") if sizes else ""

    @classmethod
    def _parse_product(
        cls,
        record: dict[str, Any],
        item_id: str,
        store: StoreLocation,
    ) -> CanonicalItem:
        """Convert a ``/products`` entry to a CanonicalItem."""
        entries = record.get("items") or []
        first_entry: dict[str, Any] = (
            entries[0]
            if entries and isinstance(entries[0], dict)
            else {}
        )
        price_info: dict[str, Any] = first_entry.get("price") or {}
        attributes = record.get("attributes") or []
        brand = record.get("brand")
        return CanonicalItem(
            id=item_id,
            name=str(record.get("description") or "Unknown Product"),
            brand=str(brand) if brand else None,
            price=first_price(
                price_info.get("promo"),
                price_info.get("regular"),
            ),
            image=cls._pick_image(record.get("images")),
            store=store.name,
            coordinate=store.coordinate,
            is_organic=mentions_organic(*attributes),
        )

    # ------------------------------------------------------------------
    # Data operations
    # ------------------------------------------------------------------

    async def locate_stores(
        self,
        coordinate: Coordinate,
        radius_miles: float,
        credential: str,
    ) -> list[StoreLocation]:
        """Find Kroger stores within *radius_miles* of *coordinate*."""
        try:
            payload = await self._get_json(
                f"{self.API_URL}/locations",
                {
                    "filter.latLong": f"{coordinate.lat},{coordinate.lon}",
                    "filter.radiusInMiles": format_radius(radius_miles),
                    "filter.locationType": "STORE",
                },
                self._bearer(credential),
            )
            stores = [
                self._parse_location(loc)
                for loc in self._records(payload, "data")
            ]
            unplaced = [
                s.location_id for s in stores if s.coordinate is None
            ]
            if unplaced:
                self._diag(
                    logging.WARNING,
                    "decode_error",
                    "Unreadable geolocation for stores: %s",
                    ", ".join(unplaced),
                )
            return stores
        except Exception as exc:
            self._diag(
                logging.WARNING,
                "decode_error",
                "Location search failed: %s",
                exc,
                exc_info=True,
            )
            return []

    async def lookup_by_identifier(
        self,
        identifier: str,
        store: StoreLocation,
        credential: str,
    ) -> CanonicalItem | None:
        """Look up a single UPC at a Kroger location."""
        try:
            payload = await self._get_json(
                f"{self.API_URL}/products",
                {
                    "filter.upc": identifier,
                    "filter.locationId": store.location_id,
                    "filter.limit": "1",
                },
                self._bearer(credential),
            )
            records = self._records(payload, "data")
            if not records:
                self._diag(
                    logging.DEBUG,
                    "not_found",
                    "UPC %s not found at %s",
                    identifier,
                    store.location_id,
                )
                return None
            return self._parse_product(records[0], identifier, store)
        except Exception as exc:
            self._diag(
                logging.WARNING,
                "decode_error",
                "Product lookup failed: %s",
                exc,
                exc_info=True,
            )
            return None

    async def search_by_term(
        self,
        term: str,
        coordinate: Coordinate,
        radius_miles: float,
        credential: str,
    ) -> list[CanonicalItem]:
        """Search the catalog at the nearest Kroger store."""
        stores = await self.locate_stores(
            coordinate, radius_miles, credential
        )
        if not stores:
            self._diag(
                logging.INFO,
                "no_stores",
                "No stores near %s, skipping search",
                coordinate,
            )
            return []
        store = stores[0]
        limit = self.settings.SEARCH_RESULT_LIMIT
        try:
            payload = await self._get_json(
                f"{self.API_URL}/products",
                {
                    "filter.term": term,
                    "filter.locationId": store.location_id,
                    "filter.limit": str(limit),
                },
                self._bearer(credential),
            )
            return [
                self._parse_product(
                    record,
                    str(
                        record.get("upc")
                        or record.get("productId")
                        or ""
                    ),
                    store,
                )
                for record in self._records(payload, "data")[:limit]
            ]
        except Exception as exc:
            self._diag(
                logging.WARNING,
                "decode_error",
                "Product search failed: %s",
                exc,
                exc_info=True,
            )
            return []

    def offer_label(
        self, store: StoreLocation, item: CanonicalItem,
    ) -> str:
        return f"Kroger ({store.name})"
