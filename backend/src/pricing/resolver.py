"""Tier resolution and quoting.

Pure functions over a normalized band partition; no I/O. Works on both
normalizer Bands and persisted PriceTier rows (anything with min_qty/max_qty).

Quantity policy:
- qty must be an integer >= 1, anything else is rejected (no clamping)
- qty below the lowest band's min_qty falls back to the lowest band
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence

from .errors import TierValidationError
from .normalizer import as_int


@dataclass
class Quote:
    """Price quote for a quantity of one priced item."""
    qty: int
    unit_amount: int
    currency: str
    subtotal: int
    band: Any
    remote_price_ref: Optional[str] = None


def _check_qty(qty: Any) -> int:
    value = as_int(qty)
    if value is None or value < 1:
        raise TierValidationError(f"qty must be a positive integer, got {qty!r}")
    return value


def resolve(bands: Sequence[Any], qty: int) -> Optional[Any]:
    """Find the band that applies to qty.

    Args:
        bands: Normalized bands of one generation, sorted by min_qty ascending
        qty: Requested quantity

    Returns:
        The applicable band, or None if bands is empty

    Raises:
        TierValidationError: If qty is not a positive integer
    """
    qty = _check_qty(qty)
    if not bands:
        return None

    for band in reversed(bands):
        if qty >= band.min_qty and (band.max_qty is None or qty <= band.max_qty):
            return band

    # Below the lowest breakpoint: price at the lowest band
    return bands[0]


def quote(bands: Sequence[Any], qty: int) -> Optional[Quote]:
    """Resolve qty and compute the subtotal in minor units.

    Returns:
        Quote, or None if no band applies
    """
    band = resolve(bands, qty)
    if band is None:
        return None
    qty = _check_qty(qty)
    return Quote(
        qty=qty,
        unit_amount=band.unit_amount,
        currency=band.currency,
        subtotal=band.unit_amount * qty,
        band=band,
        remote_price_ref=getattr(band, "remote_price_ref", None),
    )
