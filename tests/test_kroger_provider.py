# tests/test_kroger_provider.py

"""Tests for the Kroger provider using mocked API responses."""

import base64
import json
import logging
import unittest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

from src.config.credentials import ProviderCredentials
from src.config.settings import Settings
from src.models.item import Coordinate, StoreLocation
from src.providers.kroger_provider import KrogerProvider

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> object:
    """Load a JSON fixture from tests/fixtures."""
    return json.loads((FIXTURES_DIR / name).read_text())


CREDS = ProviderCredentials(
    kroger_client_id="client-id", kroger_client_secret="client-secret"
)
ATLANTA = Coordinate(lat=33.749, lon=-84.388)
STORE = StoreLocation(
    location_id="01100482",
    name="Kroger Ponce de Leon",
    coordinate=Coordinate(lat=33.7726, lon=-84.3655),
    postal_code="30306",
)


def _response(data: object, status: int = 200) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.text = str(data)
    resp.json.return_value = data
    return resp


def _provider(
    creds: ProviderCredentials = CREDS,
) -> tuple[KrogerProvider, MagicMock]:
    session = MagicMock()
    session.get = AsyncMock()
    session.post = AsyncMock()
    return KrogerProvider(creds, session=session), session


class TestAuthenticate(unittest.IsolatedAsyncioTestCase):
    """Client-credentials token exchange."""

    async def test_returns_access_token(self) -> None:
        provider, session = _provider()
        session.post.return_value = _response(
            load_fixture("kroger_token.json")
        )
        token = await provider.authenticate()
        self.assertEqual(token, "eyJhbGciOiJSUzI1NiJ9.test-token")

    async def test_sends_basic_auth_and_scope(self) -> None:
        provider, session = _provider()
        session.post.return_value = _response(
            load_fixture("kroger_token.json")
        )
        await provider.authenticate()
        call = session.post.call_args
        self.assertEqual(call.args[0], KrogerProvider.AUTH_URL)
        self.assertEqual(
            call.kwargs["data"],
            {"grant_type": "client_credentials", "scope": "product.compact"},
        )
        expected = base64.b64encode(b"client-id:client-secret").decode()
        self.assertEqual(
            call.kwargs["headers"]["Authorization"], f"Basic {expected}"
        )

    async def test_missing_secrets_skip_network(self) -> None:
        provider, session = _provider(
            ProviderCredentials(kroger_client_id="only-id")
        )
        with self.assertLogs("dealscan.kroger", logging.INFO) as logs:
            self.assertIsNone(await provider.authenticate())
        session.post.assert_not_called()
        self.assertEqual(logs.records[0].event, "unconfigured")

    async def test_rejected_exchange_is_none(self) -> None:
        provider, session = _provider()
        session.post.return_value = _response(
            {"error": "invalid_client"}, status=401
        )
        with self.assertLogs("dealscan.kroger", logging.WARNING) as logs:
            self.assertIsNone(await provider.authenticate())
        events = [r.event for r in logs.records]
        self.assertIn("http_error", events)
        self.assertIn("auth_failed", events)

    async def test_missing_token_field_is_none(self) -> None:
        provider, session = _provider()
        session.post.return_value = _response({"token_type": "bearer"})
        self.assertIsNone(await provider.authenticate())

    async def test_network_error_is_none(self) -> None:
        provider, session = _provider()
        session.post.side_effect = TimeoutError("timed out")
        self.assertIsNone(await provider.authenticate())


class TestLocateStores(unittest.IsolatedAsyncioTestCase):
    """Store locator parsing."""

    async def test_parses_locations(self) -> None:
        provider, session = _provider()
        session.get.return_value = _response(
            load_fixture("kroger_locations.json")
        )
        stores = await provider.locate_stores(ATLANTA, 5.0, "tok")

        self.assertEqual(len(stores), 2)
        self.assertEqual(stores[0], STORE)
        # Falls back to address.name when there is no top-level name
        self.assertEqual(stores[1].name, "Kroger Edgewood")
        self.assertEqual(stores[1].postal_code, "30307")

    async def test_sends_geo_filters_and_bearer(self) -> None:
        provider, session = _provider()
        session.get.return_value = _response({"data": []})
        await provider.locate_stores(ATLANTA, 10.0, "tok")
        call = session.get.call_args
        self.assertEqual(
            call.kwargs["params"],
            {
                "filter.latLong": "33.749,-84.388",
                "filter.radiusInMiles": "10",
                "filter.locationType": "STORE",
            },
        )
        self.assertEqual(
            call.kwargs["headers"]["Authorization"], "Bearer tok"
        )

    async def test_default_radius_sent_as_whole_miles(self) -> None:
        provider, session = _provider()
        session.get.return_value = _response({"data": []})
        await provider.locate_stores(
            ATLANTA, Settings.DEFAULT_RADIUS_MILES, "tok"
        )
        self.assertEqual(
            session.get.call_args.kwargs["params"]["filter.radiusInMiles"],
            "5",
        )

    async def test_bad_geolocation_keeps_other_stores(self) -> None:
        provider, session = _provider()
        session.get.return_value = _response({"data": [
            {
                "locationId": "01100482",
                "name": "Kroger Ponce de Leon",
                "geolocation": {"latitude": 33.7726, "longitude": -84.3655},
            },
            {
                "locationId": "01100495",
                "name": "Kroger Edgewood",
                "geolocation": {"latitude": "n/a", "longitude": -84.34},
            },
        ]})
        with self.assertLogs("dealscan.kroger", logging.WARNING) as logs:
            stores = await provider.locate_stores(ATLANTA, 5.0, "tok")

        self.assertEqual(
            [s.location_id for s in stores], ["01100482", "01100495"]
        )
        self.assertEqual(
            stores[0].coordinate, Coordinate(lat=33.7726, lon=-84.3655)
        )
        self.assertIsNone(stores[1].coordinate)
        self.assertEqual(len(logs.records), 1)
        self.assertEqual(logs.records[0].event, "decode_error")

    async def test_failure_is_empty_list(self) -> None:
        provider, session = _provider()
        session.get.return_value = _response("boom", status=500)
        self.assertEqual(
            await provider.locate_stores(ATLANTA, 5.0, "tok"), []
        )

    async def test_name_falls_back_to_id(self) -> None:
        provider, session = _provider()
        session.get.return_value = _response(
            {"data": [{"locationId": "0700"}]}
        )
        stores = await provider.locate_stores(ATLANTA, 5.0, "tok")
        self.assertEqual(stores[0].name, "0700")
        self.assertEqual(stores[0].coordinate, Coordinate(lat=0.0, lon=0.0))


class TestLookupByIdentifier(unittest.IsolatedAsyncioTestCase):
    """Single-UPC product lookups."""

    async def test_parses_product(self) -> None:
        provider, session = _provider()
        session.get.return_value = _response(
            load_fixture("kroger_product.json")
        )
        item = await provider.lookup_by_identifier(
            "0000000004011", STORE, "tok"
        )
        assert item is not None
        self.assertEqual(item.id, "0000000004011")
        self.assertEqual(item.name, "Fresh Banana - Each")
        self.assertEqual(item.brand, "Kroger")
        # promo (0.25) is preferred over regular (0.29)
        self.assertEqual(item.price, 0.25)
        self.assertIn("/medium/", item.image)
        self.assertEqual(item.store, "Kroger Ponce de Leon")
        self.assertEqual(item.coordinate, STORE.coordinate)
        self.assertTrue(item.is_organic)

    async def test_filters_by_upc_and_location(self) -> None:
        provider, session = _provider()
        session.get.return_value = _response({"data": []})
        await provider.lookup_by_identifier("0000000004011", STORE, "tok")
        params = session.get.call_args.kwargs["params"]
        self.assertEqual(params["filter.upc"], "0000000004011")
        self.assertEqual(params["filter.locationId"], "01100482")
        self.assertEqual(params["filter.limit"], "1")

    async def test_no_match_is_none(self) -> None:
        provider, session = _provider()
        session.get.return_value = _response({"data": []})
        self.assertIsNone(
            await provider.lookup_by_identifier("123", STORE, "tok")
        )

    async def test_missing_price_is_zero(self) -> None:
        provider, session = _provider()
        session.get.return_value = _response(
            {"data": [{"description": "Mystery Item"}]}
        )
        item = await provider.lookup_by_identifier("123", STORE, "tok")
        assert item is not None
        self.assertEqual(item.price, 0.0)
        self.assertEqual(item.image, "")
        self.assertFalse(item.is_organic)

    async def test_malformed_payload_is_none(self) -> None:
        provider, session = _provider()
        session.get.return_value = _response(
            {"data": [{"items": [{"price": "not-a-dict"}]}]}
        )
        self.assertIsNone(
            await provider.lookup_by_identifier("123", STORE, "tok")
        )


class TestSearchByTerm(unittest.IsolatedAsyncioTestCase):
    """Catalog search at the nearest store."""

    async def test_search_returns_items(self) -> None:
        provider, session = _provider()
        session.get.side_effect = [
            _response(load_fixture("kroger_locations.json")),
            _response(load_fixture("kroger_search.json")),
        ]
        items = await provider.search_by_term("milk", ATLANTA, 5.0, "tok")

        self.assertEqual(len(items), 3)
        # promo=null falls through to regular
        self.assertEqual(items[0].price, 3.29)
        self.assertEqual(items[0].id, "0001111041700")
        self.assertEqual(items[1].price, 4.99)
        self.assertEqual(items[1].id, "0001111042852")
        self.assertTrue(items[1].is_organic)
        self.assertEqual(items[2].price, 0.0)
        self.assertTrue(
            all(i.store == "Kroger Ponce de Leon" for i in items)
        )

    async def test_search_uses_first_store(self) -> None:
        provider, session = _provider()
        session.get.side_effect = [
            _response(load_fixture("kroger_locations.json")),
            _response({"data": []}),
        ]
        await provider.search_by_term("milk", ATLANTA, 5.0, "tok")
        params = session.get.call_args.kwargs["params"]
        self.assertEqual(params["filter.term"], "milk")
        self.assertEqual(params["filter.locationId"], "01100482")
        self.assertEqual(params["filter.limit"], "20")

    async def test_results_capped_at_limit(self) -> None:
        provider, session = _provider()
        many = {"data": [{"upc": str(n)} for n in range(30)]}
        session.get.side_effect = [
            _response(load_fixture("kroger_locations.json")),
            _response(many),
        ]
        items = await provider.search_by_term("x", ATLANTA, 5.0, "tok")
        self.assertEqual(len(items), 20)

    async def test_no_stores_skips_search(self) -> None:
        provider, session = _provider()
        session.get.return_value = _response({"data": []})
        items = await provider.search_by_term("milk", ATLANTA, 5.0, "tok")
        self.assertEqual(items, [])
        self.assertEqual(session.get.await_count, 1)


class TestOfferLabel(unittest.TestCase):
    """Competitor offer labels."""

    def test_label_names_store(self) -> None:
        provider, _ = _provider()
        item = MagicMock()
        self.assertEqual(
            provider.offer_label(STORE, item),
            "Kroger (Kroger Ponce de Leon)",
        )


if __name__ == "__main__":
    unittest.main()
