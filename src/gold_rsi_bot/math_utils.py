from __future__ import annotations

import random
from collections.abc import Sequence
from typing import Optional

from gold_rsi_bot.types import PricePoint

RSI_MIN_POINTS = 14


def rsi(values: Sequence[float], min_points: int = RSI_MIN_POINTS) -> Optional[float]:
    """Relative Strength Index over the whole window, rounded to 2 decimals.

    Gains and losses are averaged over every delta in the window. Returns
    ``None`` when there are fewer than ``min_points`` values or when the
    window is completely flat.
    """
    if len(values) < min_points or len(values) < 2:
        return None

    gains: list[float] = []
    losses: list[float] = []
    for prev, now in zip(values, values[1:]):
        change = now - prev
        if change > 0:
            gains.append(change)
            losses.append(0.0)
        else:
            gains.append(0.0)
            losses.append(abs(change))

    average_gain = sum(gains) / len(gains)
    average_loss = sum(losses) / len(losses)

    if average_loss == 0:
        return None if average_gain == 0 else 100.0

    relative_strength = average_gain / average_loss
    return round(100 - (100 / (1 + relative_strength)), 2)


def jitter_window(
    price: float,
    size: int,
    jitter: float,
    rng: Optional[random.Random] = None,
) -> list[PricePoint]:
    if size <= 0:
        raise ValueError("size must be > 0")
    rng = rng or random.Random()
    return [PricePoint(price=price + (rng.random() - 0.5) * jitter) for _ in range(size)]
