# src/providers/walmart_provider.py

"""Walmart Affiliate API provider (publisher id + optional API key)."""

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


class WalmartProvider(BaseProvider):
    """Provider for the Walmart Affiliate product API.

    There is no token exchange: the publisher id is sent as the
    ``publisherId`` query parameter on every call and the optional API
    key as an ``apiKey`` header. Prices depend on ``storeId`` (or
    ``zipCode`` when the store has no id).
    """

    BASE_URL = (
        "https://developer.api.walmart.com"
        "/api-proxy/service/affil/product/v2"
    )

    def __init__(
        self,
        credentials: ProviderCredentials,
        session: Any | None = None,
    ) -> None:
        super().__init__("walmart", credentials, session)

    def is_configured(self) -> bool:
        return self.credentials.has_walmart

    async def authenticate(self) -> str | None:
        """Return the publisher id; no exchange is needed."""
        if not self.is_configured():
            self._diag(
                logging.INFO,
                "unconfigured",
                "Missing WALMART_PUBLISHER_ID",
            )
            return None
        return self.credentials.walmart_publisher_id

    async def _fetch(
        self,
        path: str,
        query: dict[str, object],
        credential: str,
    ) -> Any | None:
        """GET an affiliate endpoint, dropping empty query values."""
        params: dict[str, str] = {"publisherId": credential}
        for key, value in query.items():
            if value is not None and str(value):
                params[key] = str(value)
        headers = dict(self.settings.DEFAULT_HEADERS)
        if self.credentials.walmart_api_key:
            headers["apiKey"] = self.credentials.walmart_api_key
        return await self._get_json(
            f"{self.BASE_URL}{path}", params, headers
        )

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_store(store: dict[str, Any]) -> StoreLocation:
        """Convert a ``/stores`` entry to a StoreLocation."""
        raw_id = next(
            (
                store[k]
                for k in ("no", "storeId", "id")
                if store.get(k) is not None
            ),
            "",
        )
        zip_code = (
            store.get("zip")
            or store.get("zipCode")
            or store.get("postalCode")
        )
        coordinate = None
        coords = store.get("coordinates")
        if isinstance(coords, list) and len(coords) == 2:
            # GeoJSON order: [lon, lat]
            coordinate = to_coordinate(coords[1], coords[0])
        return StoreLocation(
            location_id=str(raw_id),
            name=str(
                store.get("name")
                or store.get("storeType")
                or "Walmart Store"
            ),
            coordinate=coordinate,
            postal_code=str(zip_code) if zip_code else None,
        )

    @staticmethod
    def _parse_item(
        record: dict[str, Any], item_id: str, store_label: str,
    ) -> CanonicalItem:
        """Convert an ``/items`` or ``/search`` entry to a CanonicalItem."""
        name = str(
            record.get("name")
            or record.get("title")
            or record.get("shortName")
            or "Unknown Product"
        )
        brand = record.get("brandName") or record.get("brand")
        return CanonicalItem(
            id=item_id,
            name=name,
            brand=str(brand) if brand else None,
            price=first_price(
                record.get("salePrice"),
                record.get("listPrice"),
                record.get("msrp"),
                record.get("price"),
            ),
            image=str(
                record.get("mediumImage")
                or record.get("imageUrl")
                or record.get("thumbnailImage")
                or ""
            ),
            store=store_label,
            coordinate=None,
            is_organic=mentions_organic(name),
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
        """Find Walmart stores near *coordinate*."""
        try:
            payload = await self._fetch(
                "/stores",
                {
                    "lat": coordinate.lat,
                    "lon": coordinate.lon,
                    "radius": format_radius(radius_miles),
                },
                credential,
            )
            records = self._records(payload, "data", "stores")
            stores = [self._parse_store(s) for s in records]
            unplaced = [
                store.location_id
                for store, record in zip(stores, records)
                if store.coordinate is None
                and record.get("coordinates") is not None
            ]
            if unplaced:
                self._diag(
                    logging.WARNING,
                    "decode_error",
                    "Unreadable coordinates for stores: %s",
                    ", ".join(unplaced),
                )
            return stores
        except Exception as exc:
            self._diag(
                logging.WARNING,
                "decode_error",
                "Store search failed: %s",
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
        """Look up a UPC priced at *store* (or its zip code)."""
        query: dict[str, object] = {"upc": identifier}
        if store.location_id:
            query["storeId"] = store.location_id
        elif store.postal_code:
            query["zipCode"] = store.postal_code
        try:
            payload = await self._fetch("/items", query, credential)
            records = self._records(payload, "items", "data")
            if not records:
                self._diag(
                    logging.DEBUG,
                    "not_found",
                    "UPC %s not found at %s",
                    identifier,
                    store.location_id or store.postal_code,
                )
                return None
            label = (
                f"Walmart ({store.location_id})"
                if store.location_id
                else "Walmart"
            )
            return self._parse_item(records[0], identifier, label)
        except Exception as exc:
            self._diag(
                logging.WARNING,
                "decode_error",
                "Item lookup failed: %s",
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
        """Search the affiliate catalog, labelled with the nearest store."""
        limit = self.settings.SEARCH_RESULT_LIMIT
        try:
            payload = await self._fetch(
                "/search",
                {
                    "query": term,
                    "sort": "bestseller",
                    "order": "ascending",
                    "numItems": limit,
                },
                credential,
            )
            records = self._records(payload, "items", "data")[:limit]
            if not records:
                return []
            stores = await self.locate_stores(
                coordinate, radius_miles, credential
            )
            label = (
                f"Walmart ({stores[0].name})" if stores else "Walmart"
            )
            return [
                self._parse_item(
                    record,
                    str(
                        record.get("upc")
                        or record.get("itemId")
                        or ""
                    ),
                    label,
                )
                for record in records
            ]
        except Exception as exc:
            self._diag(
                logging.WARNING,
                "decode_error",
                "Catalog search failed: %s",
                exc,
                exc_info=True,
            )
            return []

    def offer_label(
        self, store: StoreLocation, item: CanonicalItem,
    ) -> str:
        return item.store or "Walmart"
