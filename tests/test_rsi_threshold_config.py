from pathlib import Path

import pytest
from pydantic import ValidationError

from gold_rsi_bot.config.rsi_threshold import load_rsi_threshold_run_config


def test_load_rsi_threshold_config_reads_sections(tmp_path: Path) -> None:
    path = tmp_path / "rsi.toml"
    path.write_text(
        "\n".join(
            [
                "[feed]",
                "window_size = 20",
                "",
                "[policy]",
                "buy_below = 40",
                "sell_above = 60",
                "",
                "[scheduler]",
                "poll_interval_seconds = 30",
            ]
        ),
        encoding="utf-8",
    )

    cfg = load_rsi_threshold_run_config(path)
    params = cfg.to_params()

    assert cfg.feed.window_size == 20
    assert cfg.scheduler.poll_interval_seconds == 30
    assert params.buy_below == 40
    assert params.sell_above == 60
    assert params.stop_loss_offset == 10


def test_load_rsi_threshold_config_rejects_inverted_thresholds(tmp_path: Path) -> None:
    path = tmp_path / "rsi.toml"
    path.write_text("[policy]\nbuy_below = 60\nsell_above = 40\n", encoding="utf-8")

    with pytest.raises(ValueError, match="buy_below"):
        load_rsi_threshold_run_config(path)


def test_load_rsi_threshold_config_rejects_out_of_range(tmp_path: Path) -> None:
    path = tmp_path / "rsi.toml"
    path.write_text("[policy]\nsell_above = 120\n", encoding="utf-8")

    with pytest.raises(ValidationError):
        load_rsi_threshold_run_config(path)


def test_config_layers_over_settings(tmp_path: Path, make_settings) -> None:
    path = tmp_path / "rsi.toml"
    path.write_text("[policy]\nbuy_below = 45\nsell_above = 55\n", encoding="utf-8")

    settings = load_rsi_threshold_run_config(path).apply_to(make_settings())

    assert settings.rsi_buy_below == 45
    assert settings.rsi_sell_above == 55
    assert settings.database_name.endswith("trades.db")
