__all__ = [
    "RsiThresholdRunConfig",
    "load_rsi_threshold_run_config",
    "params_from_settings",
]

from gold_rsi_bot.config.rsi_threshold import (
    RsiThresholdRunConfig,
    load_rsi_threshold_run_config,
    params_from_settings,
)
