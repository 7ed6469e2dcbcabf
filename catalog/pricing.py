"""
catalog/pricing.py -- Dynamic fares and nightly rates with price history and freezes.

    current price = round(base * (1 + demand) * (1 + seasonal) * (1 + custom))

Every quote appends a point to the item's history (the last 30 points are
kept). A freeze pins the quote to the latest history price for 24 hours;
while frozen, quotes add no history. Timestamps are epoch milliseconds, as
the front end's charts expect.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger("makemytrip.catalog.pricing")

HISTORY_LIMIT = 30
FREEZE_MS = 24 * 60 * 60 * 1000
DAY_MS = 24 * 60 * 60 * 1000


def _now_ms() -> int:
    return int(time.time() * 1000)


def round_half_up(value: float) -> int:
    # round() is banker's rounding; prices round .5 up.
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class PricePoint:
    timestamp: int
    price: float


@dataclass(frozen=True)
class PricingRule:
    id: str
    base_price: float
    demand_factor: float  # 0..1
    seasonal_factor: float  # 0..1
    custom_rules_factor: float  # 0.2 means +20%
    # Prices for the last few days, oldest first; ends today.
    recent_prices: tuple[float, ...] = ()

    def calculate(self) -> int:
        return round_half_up(
            self.base_price * (1 + self.demand_factor) * (1 + self.seasonal_factor) * (1 + self.custom_rules_factor)
        )


@dataclass
class PriceQuote:
    id: str
    current_price: float
    price_history: list[PricePoint]
    price_freeze_until: Optional[int] = None


@dataclass
class _Track:
    rule: PricingRule
    history: list[PricePoint] = field(default_factory=list)
    freeze_until: Optional[int] = None


FLIGHT_PRICING: tuple[PricingRule, ...] = (
    PricingRule("1", 300, 0.5, 0.3, 0.2, recent_prices=(280, 290, 310, 320)),
    PricingRule("2", 200, 0.7, 0.1, 0.15, recent_prices=(190, 195, 210, 220)),
    PricingRule("3", 150, 0.3, 0.2, 0.1, recent_prices=(140, 145, 150, 155)),
)

HOTEL_PRICING: tuple[PricingRule, ...] = (
    PricingRule("1", 150, 0.6, 0.4, 0.25, recent_prices=(140, 145, 155, 160)),
    PricingRule("2", 200, 0.5, 0.3, 0.2, recent_prices=(190, 195, 210, 215)),
    PricingRule("3", 120, 0.4, 0.2, 0.15, recent_prices=(110, 115, 120, 125)),
)


class PriceBoard:
    """Live prices for one kind of inventory (flights or hotels).

    Usage:
        board = PriceBoard("Flight", FLIGHT_PRICING)
        quote = board.quote("1")        # None for unknown ids
        board.freeze("1")
    """

    def __init__(self, kind: str, rules: Iterable[PricingRule], clock: Callable[[], int] = _now_ms) -> None:
        self.kind = kind
        self._clock = clock
        self._lock = threading.Lock()
        self._tracks: dict[str, _Track] = {}
        now = clock()
        for rule in rules:
            if rule.id in self._tracks:
                raise ValueError(f"Duplicate {kind.lower()} pricing id {rule.id!r}")
            days = len(rule.recent_prices)
            history = [
                PricePoint(timestamp=now - DAY_MS * (days - 1 - i), price=price)
                for i, price in enumerate(rule.recent_prices)
            ]
            self._tracks[rule.id] = _Track(rule=rule, history=history)

    def quote(self, item_id: str) -> Optional[PriceQuote]:
        with self._lock:
            track = self._tracks.get(item_id)
            if track is None:
                return None
            now = self._clock()
            if track.freeze_until is not None and track.freeze_until > now and track.history:
                current = track.history[-1].price
            else:
                current = track.rule.calculate()
                track.history.append(PricePoint(timestamp=now, price=current))
                del track.history[:-HISTORY_LIMIT]
                if track.freeze_until is not None and track.freeze_until <= now:
                    track.freeze_until = None
            return PriceQuote(
                id=item_id,
                current_price=current,
                price_history=list(track.history),
                price_freeze_until=track.freeze_until,
            )

    def freeze(self, item_id: str) -> Optional[int]:
        """Pin the price for 24 hours. Returns the freeze expiry, or None for unknown ids."""
        with self._lock:
            track = self._tracks.get(item_id)
            if track is None:
                return None
            track.freeze_until = self._clock() + FREEZE_MS
            logger.info("%s %s price frozen until %d", self.kind, item_id, track.freeze_until)
            return track.freeze_until
