from __future__ import annotations

import os
from typing import Sequence

from .layout import MONTH_LABEL_FORMAT, PHASE_PALETTE


def _palette_from_env(default: Sequence[str]) -> tuple[str, ...]:
    raw = os.getenv("PHASE_TIMELINE_PALETTE", "")
    colors = tuple(color.strip() for color in raw.split(",") if color.strip())
    return colors or tuple(default)


class BaseConfig:
    def __init__(self) -> None:
        self.DATA_FILE = os.getenv("PHASE_TIMELINE_DATA", "phases.yaml")
        self.OUTPUT_PATH = os.getenv("PHASE_TIMELINE_OUT", "output/timeline.svg")
        self.LOG_LEVEL = os.getenv("PHASE_TIMELINE_LOG_LEVEL", "WARNING").upper()
        # Bars narrower than this (in percent of the axis) are widened when drawn
        self.MIN_BAR_WIDTH_PERCENT = float(os.getenv("PHASE_TIMELINE_MIN_BAR_WIDTH", "1.0"))
        self.PALETTE = _palette_from_env(PHASE_PALETTE)
        self.MONTH_LABEL_FORMAT = os.getenv("PHASE_TIMELINE_MONTH_FORMAT", MONTH_LABEL_FORMAT)
        self.OPEN_AFTER_RENDER = os.getenv("PHASE_TIMELINE_VIEW", "1") == "1"


class ProductionConfig(BaseConfig):
    def __init__(self) -> None:
        super().__init__()
        self.OPEN_AFTER_RENDER = os.getenv("PHASE_TIMELINE_VIEW", "0") == "1"


class DevelopmentConfig(BaseConfig):
    def __init__(self) -> None:
        super().__init__()
        self.LOG_LEVEL = os.getenv("PHASE_TIMELINE_LOG_LEVEL", "DEBUG").upper()


config_by_name: dict[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
}


def get_config() -> BaseConfig:
    env = os.getenv("PHASE_TIMELINE_ENV", "production").lower()
    return config_by_name.get(env, ProductionConfig)()
