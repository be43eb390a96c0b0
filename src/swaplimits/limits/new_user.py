"""New-user EUR allowance for fiat-to-crypto swaps.

For a few days after the first EUR swap, fiat-to-crypto swaps are capped
at a fixed EUR amount. Once the first EUR swap is older than the window,
only the regular limits apply.
"""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable, Optional

from swaplimits.assets import CENTS_PER_UNIT, UNLIMITED
from swaplimits.config import Settings, get_settings
from swaplimits.history.models import as_utc
from swaplimits.limits.classifier import TimedSwap

logger = logging.getLogger(__name__)

EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def _chronological_key(swap: TimedSwap) -> tuple[bool, datetime]:
    # Pending swaps sort last
    return (swap.timestamp is None, as_utc(swap.timestamp) or EARLIEST)


def new_user_limit_eur(
    swaps: Iterable[TimedSwap],
    now: datetime,
    settings: Optional[Settings] = None,
) -> Decimal:
    """Remaining new-user allowance in EUR, or UNLIMITED if the window has passed."""
    settings = settings or get_settings()
    ordered = sorted(swaps, key=_chronological_key)

    window_start = as_utc(now) - timedelta(days=settings.new_user_window_days)
    if ordered and ordered[0].timestamp is not None and as_utc(ordered[0].timestamp) < window_start:
        logger.debug(f"First EUR swap {ordered[0].swap_hash} predates the new-user window")
        return UNLIMITED

    volume = sum((Decimal(swap.amount) for swap in ordered), Decimal("0"))
    remaining = max(Decimal("0"), settings.new_user_limit_eur - volume / CENTS_PER_UNIT)
    logger.debug(f"New-user allowance: {remaining} EUR ({len(ordered)} EUR swaps)")
    return remaining
