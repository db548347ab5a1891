from pathlib import Path
from typing import Any, Callable

import pytest

from gold_rsi_bot.settings import Settings


def feed_payload(*profiles: tuple[str, float]) -> list[dict[str, Any]]:
    return [
        {
            "topo": {"platform": "SwissquoteLtd", "server": "Live1"},
            "spreadProfilePrices": [
                {"spreadProfile": name, "bidSpread": 0.1, "askSpread": 0.1, "bid": bid, "ask": bid + 0.3}
                for name, bid in profiles
            ],
            "ts": 1_700_000_000_000,
        }
    ]


class StaticFeed:
    def __init__(self, price: float = 1900.0) -> None:
        self.price = price
        self.calls = 0

    async def fetch_prime_bid(self) -> float:
        self.calls += 1
        return self.price


@pytest.fixture
def make_settings(tmp_path: Path) -> Callable[..., Settings]:
    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "DATABASE_URL": "sqlite+aiosqlite://",
            "DATABASE_NAME": str(tmp_path / "trades.db"),
            "RUN_MODE": "test",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make
