# src/services/deal_evaluator.py

"""Classify a scanned price against the nearby competitor offers."""

from collections.abc import Sequence
from dataclasses import replace

from src.config.settings import Settings
from src.models.item import CanonicalItem, DealVerdict, Recommendation


def evaluate_deal(
    scanned: CanonicalItem,
    offers: Sequence[Recommendation],
    margin: float = Settings.DEAL_MARGIN,
) -> CanonicalItem:
    """Attach a verdict and recommendations to *scanned*.

    *offers* must already be sorted ascending by price.

    - No offers: keep an existing verdict (default ``DEAL``), no
      recommendations.
    - At or below the cheapest offer: ``DEAL`` with the two cheapest.
    - Within *margin* above the cheapest: ``SO-SO`` with every offer
      whose price is within *margin* of the scanned price.
    - Otherwise: ``NO DEAL`` with the three cheapest.
    """
    if not offers:
        return replace(
            scanned,
            verdict=scanned.verdict or DealVerdict.DEAL,
            recommendations=None,
        )

    price = scanned.price
    cheapest = offers[0].price

    if price <= cheapest:
        verdict = DealVerdict.DEAL
        picks = tuple(offers[:2])
    elif price <= cheapest * (1 + margin):
        verdict = DealVerdict.SO_SO
        picks = tuple(
            o for o in offers
            if abs(o.price - price) / price <= margin
        )
    else:
        verdict = DealVerdict.NO_DEAL
        picks = tuple(offers[:3])

    return replace(scanned, verdict=verdict, recommendations=picks)
