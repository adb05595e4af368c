"""
Configuration for TMA Insights.

PURPOSE: Centralized contract thresholds and runtime settings.
AI CONTEXT: Every numeric threshold the engine uses lives here.

CONFIGURATION CATEGORIES:
- Daily targets: Goal and marathon counts
- Margins: Balance margin and closeness bands for differences
- Achievements: Rule-specific thresholds and display caps
- Fun facts: Durations used for whimsical unit conversions
- Runtime: Report timezone and default dataset path

ENVIRONMENT VARIABLES:
- TMA_INSIGHTS_TZ: IANA timezone used for "local" clock times (default: system local)
- TMA_INSIGHTS_DATA: Default dataset JSON path for CLI and dashboard

USAGE:
    from tma_insights.config import Config
    goal = Config.DAILY_GOAL
    tz = Config.get_timezone()
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import tzinfo
from functools import lru_cache
from typing import ClassVar
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


@lru_cache(maxsize=8)
def _resolve_timezone(name: str) -> tzinfo | None:
    """Resolve an IANA name once; unknown names warn a single time."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {name!r}, using system local time")
        return None


@dataclass(frozen=True)
class Config:
    """
    Immutable configuration container for TMA Insights.

    DESIGN: Frozen dataclass of class-level constants - no instance creation needed.
    The thresholds are part of the report contract; changing them changes which
    achievements unlock and which suggestions appear.
    """

    # =========================================================================
    # DAILY TARGETS
    # =========================================================================
    DAILY_GOAL: ClassVar[int] = 17
    """Transactions per day that count as hitting the goal."""

    MARATHON_COUNT: ClassVar[int] = 20

    # =========================================================================
    # MARGINS (seconds)
    # =========================================================================
    BALANCE_MARGIN_SECONDS: ClassVar[int] = 10 * 60
    """A day is 'fine' while |balance| stays within this band (positive or negative)."""

    NEAR_SECONDS: ClassVar[int] = 60
    PRECISE_SECONDS: ClassVar[int] = 20
    BIG_OUTLIER_SECONDS: ClassVar[int] = 10 * 60
    FIX_MARGIN_SECONDS: ClassVar[int] = 2 * 60
    FIX_STREAK_REQUIRED: ClassVar[int] = 3

    # =========================================================================
    # ACHIEVEMENT THRESHOLDS
    # =========================================================================
    MIN_SAMPLE_SIZE: ClassVar[int] = 10
    COMPLEX_ITEM: ClassVar[str] = "Complexa"
    RETURN_TYPE: ClassVar[str] = "retorno"
    COMPLEX_GOAL: ClassVar[int] = 10
    RETURN_RATIO_PCT: ClassVar[int] = 70
    BALANCE_ZERO_SECONDS: ClassVar[int] = 60
    BALANCE_CONTROLLED_SECONDS: ClassVar[int] = 5 * 60
    CONSISTENCY_PCT: ClassVar[int] = 60
    PRECISION_PCT: ClassVar[int] = 40
    NO_SCARES_MAX_SECONDS: ClassVar[int] = 5 * 60
    STABLE_P90_SECONDS: ClassVar[int] = 2 * 60
    STREAK_GOAL: ClassVar[int] = 5
    EPISODES_GOAL: ClassVar[int] = 5
    COMEBACK_WINDOW: ClassVar[int] = 10
    COMEBACK_MIN_WINDOW: ClassVar[int] = 5
    COMEBACK_GAIN_SECONDS: ClassVar[int] = 30
    EARLY_BIRD_MINUTES: ClassVar[int] = 8 * 60 + 10
    """Minutes since midnight; the first transaction must be strictly earlier."""

    NIGHT_OWL_HOUR: ClassVar[int] = 20
    MAX_AWARDS_SHOWN: ClassVar[int] = 18

    # =========================================================================
    # DAYPART TONES (average |difference|, seconds)
    # =========================================================================
    TONE_GOOD_SECONDS: ClassVar[int] = 60
    TONE_WARN_SECONDS: ClassVar[int] = 3 * 60

    # =========================================================================
    # ADVICE
    # =========================================================================
    ADVICE_WINDOW: ClassVar[int] = 10
    ON_TARGET_SECONDS: ClassVar[int] = 15
    MICRO_GOAL_THRESHOLD_SECONDS: ClassVar[int] = 20
    MICRO_GOAL_CAP_SECONDS: ClassVar[int] = 10 * 60
    MICRO_GOAL_PROJECTION_COUNT: ClassVar[int] = 20

    # =========================================================================
    # FUN FACT UNITS (seconds)
    # =========================================================================
    BREAK_SECONDS: ClassVar[int] = 15 * 60
    SONG_SECONDS: ClassVar[int] = 210
    NOODLE_SECONDS: ClassVar[int] = 3 * 60
    EPISODE_SECONDS: ClassVar[int] = 12 * 60

    # =========================================================================
    # LIST LIMITS
    # =========================================================================
    TOP_ITEMS_LIMIT: ClassVar[int] = 6
    RECENT_LIMIT: ClassVar[int] = 12
    PAUSED_LIMIT: ClassVar[int] = 10

    # =========================================================================
    # CHARTS
    # =========================================================================
    TIME_AXIS_MIN_RATIO: ClassVar[float] = 0.5

    # =========================================================================
    # STORAGE
    # =========================================================================
    DEFAULT_DATA_FILE: ClassVar[str] = "tma_dataset.json"
    EXPORT_FILENAME_TEMPLATE: ClassVar[str] = "TMA_Compensator_{date}.json"

    # =========================================================================
    # ENVIRONMENT-BASED SETTINGS (runtime configurable)
    # =========================================================================
    _timezone_override: ClassVar[str | None] = None
    _data_file_override: ClassVar[str | None] = None

    @classmethod
    def get_timezone_name(cls) -> str:
        """
        Get the configured report timezone name.

        Test overrides take precedence, then the TMA_INSIGHTS_TZ environment
        variable. An empty string means "system local time".

        Returns:
            IANA timezone name or "".
        """
        if cls._timezone_override is not None:
            return cls._timezone_override
        return os.environ.get("TMA_INSIGHTS_TZ", "").strip()

    @classmethod
    def get_timezone(cls) -> tzinfo | None:
        """
        Resolve the timezone used to read "local" clock times from timestamps.

        Business context: Dayparts, early-bird and night-owl achievements all
        depend on the wall-clock hour a transaction was registered. Aware
        timestamps are converted into this zone before reading the hour.

        Returns:
            ZoneInfo for the configured name, or None for system local time.
            Unknown names log one warning per name and fall back to system
            local time.

        Example:
            >>> Config.set_test_overrides(timezone="America/Sao_Paulo")
            >>> str(Config.get_timezone())
            'America/Sao_Paulo'
        """
        name = cls.get_timezone_name()
        if not name:
            return None
        return _resolve_timezone(name)

    @classmethod
    def get_data_file(cls) -> str:
        """
        Get the default dataset path for CLI and dashboard.

        Returns:
            Override, TMA_INSIGHTS_DATA, or DEFAULT_DATA_FILE.
        """
        if cls._data_file_override is not None:
            return cls._data_file_override
        return os.environ.get("TMA_INSIGHTS_DATA", cls.DEFAULT_DATA_FILE)

    @classmethod
    def set_test_overrides(
        cls,
        timezone: str | None = None,
        data_file: str | None = None,
    ) -> None:
        """
        Set test overrides for environment-based settings.

        Must call reset_test_overrides() in teardown to avoid leaking into
        other tests.

        Args:
            timezone: Override for the report timezone name. None to clear.
            data_file: Override for the default dataset path. None to clear.
        """
        cls._timezone_override = timezone
        cls._data_file_override = data_file

    @classmethod
    def reset_test_overrides(cls) -> None:
        """Reset all test overrides to use environment variables."""
        cls._timezone_override = None
        cls._data_file_override = None
        _resolve_timezone.cache_clear()
