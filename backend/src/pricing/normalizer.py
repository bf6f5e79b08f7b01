"""Tier normalization.

Turns client-submitted tier breakpoints into a gapless, non-overlapping band
partition. Clients only send breakpoints (min_qty + unit_amount); max_qty is
always derived from the next band's min_qty, so overlaps and gaps cannot be
expressed.

Policy decisions:
- entries whose min_qty is not an integer >= 1 are dropped
- duplicate min_qty values are rejected (never silently merged)
- the lowest band keeps the merchant's min_qty (no forcing to 1)
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from .errors import TierValidationError

logger = logging.getLogger(__name__)

DEFAULT_MAX_TIERS = 50

# Quantities are stored in 32-bit INTEGER columns
MAX_QTY = 2**31 - 1
# Largest unit_amount the payment provider accepts (minor units)
MAX_UNIT_AMOUNT = 99_999_999

_CURRENCY_RE = re.compile(r"^[a-z]{3}$")


@dataclass(frozen=True)
class Band:
    """A normalized quantity band. max_qty None means open-ended."""
    min_qty: int
    max_qty: Optional[int]
    unit_amount: int
    currency: str

    @property
    def is_open(self) -> bool:
        return self.max_qty is None


def as_int(value: Any) -> Optional[int]:
    """Coerce a JSON scalar to int, or None if it is not an integer.

    Accepts ints, integral floats and digit strings. Booleans are rejected.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        s = value.strip()
        if re.fullmatch(r"[+-]?\d+", s):
            return int(s)
    return None


def normalize_currency(value: Any, default: str) -> str:
    """Lowercase a currency code, falling back to default when absent."""
    if value is None or (isinstance(value, str) and not value.strip()):
        value = default
    if not isinstance(value, str):
        raise TierValidationError("currency must be a string")
    code = value.strip().lower()
    if not _CURRENCY_RE.match(code):
        raise TierValidationError(f"invalid currency code '{value}'")
    return code


def _field(entry: Any, name: str) -> Any:
    if isinstance(entry, dict):
        return entry.get(name)
    return getattr(entry, name, None)


def normalize(
    raw_tiers: Any,
    default_currency: str = "usd",
    max_tiers: int = DEFAULT_MAX_TIERS,
) -> list[Band]:
    """Normalize raw tier input into an ordered band partition.

    Args:
        raw_tiers: List of mappings (or objects) with min_qty, unit_amount,
            optional currency and optional (ignored) max_qty
        default_currency: Currency for entries that omit one
        max_tiers: Maximum accepted number of entries

    Returns:
        Bands sorted by min_qty; band[i].max_qty == band[i+1].min_qty - 1,
        last band open-ended

    Raises:
        TierValidationError: If the input is empty, too long, contains
            duplicate min_qty values, or any quantity, amount or currency is
            out of range or invalid
    """
    if not isinstance(raw_tiers, (list, tuple)):
        raise TierValidationError("tiers must be a non-empty array")
    if len(raw_tiers) > max_tiers:
        raise TierValidationError(f"too many tiers (max {max_tiers})")

    default_currency = normalize_currency(default_currency, "usd")

    kept = []
    for index, entry in enumerate(raw_tiers):
        min_qty = as_int(_field(entry, "min_qty"))
        if min_qty is None or min_qty < 1:
            logger.debug(f"Dropping tier entry {index}: min_qty is not an integer >= 1")
            continue
        if min_qty > MAX_QTY:
            raise TierValidationError(f"min_qty cannot exceed {MAX_QTY}", index=index)

        raw_amount = _field(entry, "unit_amount")
        if raw_amount is None:
            raise TierValidationError("unit_amount is required", index=index)
        unit_amount = as_int(raw_amount)
        if unit_amount is None:
            raise TierValidationError("unit_amount must be an integer (minor units)", index=index)
        if unit_amount < 0:
            raise TierValidationError("unit_amount cannot be negative", index=index)
        if unit_amount > MAX_UNIT_AMOUNT:
            raise TierValidationError(f"unit_amount cannot exceed {MAX_UNIT_AMOUNT}", index=index)

        try:
            currency = normalize_currency(_field(entry, "currency"), default_currency)
        except TierValidationError as e:
            raise TierValidationError(e.message, index=index)

        kept.append((min_qty, index, unit_amount, currency))

    if not kept:
        raise TierValidationError("tiers must contain at least one entry with an integer min_qty >= 1")

    kept.sort(key=lambda t: (t[0], t[1]))

    for prev, cur in zip(kept, kept[1:]):
        if prev[0] == cur[0]:
            raise TierValidationError(
                f"duplicate min_qty {cur[0]} (entries {prev[1]} and {cur[1]})",
                index=cur[1],
            )

    bands = []
    for i, (min_qty, _, unit_amount, currency) in enumerate(kept):
        max_qty = kept[i + 1][0] - 1 if i + 1 < len(kept) else None
        bands.append(Band(min_qty=min_qty, max_qty=max_qty, unit_amount=unit_amount, currency=currency))

    currencies = {b.currency for b in bands}
    if len(currencies) > 1:
        logger.warning(
            "Tier generation mixes currencies",
            extra={"currencies": sorted(currencies)},
        )

    return bands
