# src/filters/offer_filter.py

"""Competitor offer filtering and ordering."""

import logging

from src.models.item import Recommendation

logger = logging.getLogger("dealscan.filters")


class OfferFilter:
    """Self-exclusion and price ordering for competitor offers."""

    @staticmethod
    def exclude_store(
        offers: list[Recommendation],
        store: str | None,
    ) -> tuple[list[Recommendation], int]:
        """Drop offers whose store label equals *store* (case-insensitive).

        Returns the kept offers and the count of excluded offers.
        """
        if store is None:
            return list(offers), 0

        scanned = store.lower()
        kept: list[Recommendation] = []
        excluded = 0
        for offer in offers:
            if offer.store.lower() == scanned:
                excluded += 1
            else:
                kept.append(offer)

        if excluded:
            logger.info(
                "Excluded %d offers from the scanned store '%s'",
                excluded,
                store,
            )

        return kept, excluded

    @staticmethod
    def sort_by_price(
        offers: list[Recommendation],
    ) -> list[Recommendation]:
        """Ascending by price; equal prices keep their input order."""
        return sorted(offers, key=lambda o: o.price)
