"""Process configuration read from ``BOOKING_*`` environment variables."""

from __future__ import annotations

import os
from datetime import date, time
from functools import lru_cache
from typing import Mapping

from pydantic import BaseModel, Field

from booking_scheduler.domain.models import (
    DEFAULT_ACTIVE_STATUSES,
    BusinessRules,
    ReservationStatus,
    RulePolicy,
    WorkingHours,
)

_PREFIX = "BOOKING_"


class Settings(BaseModel):
    app_name: str = "Facility Booking Scheduler"
    log_level: str = "INFO"
    timezone: str = "UTC"
    rules: BusinessRules = Field(default_factory=BusinessRules)
    active_statuses: frozenset[ReservationStatus] = DEFAULT_ACTIVE_STATUSES
    low_capacity_threshold: int = Field(default=10, ge=0)
    seed_demo_data: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from ``environ`` (defaults to ``os.environ``).

        Unset variables fall back to the model defaults. List values are
        comma-separated, e.g. ``BOOKING_HOLIDAYS=2026-12-25,2027-01-01``.
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> str | None:
            value = env.get(_PREFIX + name)
            if value is None or not value.strip():
                return None
            return value.strip()

        rule_values: dict = {}
        for field_name, var in (
            ("min_advance_days", "MIN_ADVANCE_DAYS"),
            ("max_advance_days", "MAX_ADVANCE_DAYS"),
            ("max_duration_days", "MAX_DURATION_DAYS"),
            ("min_same_day_minutes", "MIN_SAME_DAY_MINUTES"),
            ("max_span_days", "MAX_SPAN_DAYS"),
        ):
            raw = get(var)
            if raw is not None:
                rule_values[field_name] = int(raw)

        for field_name, var in (
            ("weekend_policy", "WEEKEND_POLICY"),
            ("holiday_policy", "HOLIDAY_POLICY"),
            ("working_hours_policy", "WORKING_HOURS_POLICY"),
        ):
            raw = get(var)
            if raw is not None:
                rule_values[field_name] = RulePolicy(raw.lower())

        holidays = get("HOLIDAYS")
        if holidays is not None:
            rule_values["holidays"] = frozenset(
                date.fromisoformat(d.strip()) for d in holidays.split(",") if d.strip()
            )

        opens, closes = get("WORKING_HOURS_START"), get("WORKING_HOURS_END")
        if opens is not None or closes is not None:
            defaults = WorkingHours()
            rule_values["working_hours"] = WorkingHours(
                start=time.fromisoformat(opens) if opens else defaults.start,
                end=time.fromisoformat(closes) if closes else defaults.end,
            )

        values: dict = {"rules": BusinessRules(**rule_values)}
        if (level := get("LOG_LEVEL")) is not None:
            values["log_level"] = level
        if (tz_name := get("TIMEZONE")) is not None:
            values["timezone"] = tz_name
        if (statuses := get("ACTIVE_STATUSES")) is not None:
            values["active_statuses"] = frozenset(
                ReservationStatus(s.strip().lower())
                for s in statuses.split(",")
                if s.strip()
            )
        if (threshold := get("LOW_CAPACITY_THRESHOLD")) is not None:
            values["low_capacity_threshold"] = int(threshold)
        if (seed := get("SEED_DEMO_DATA")) is not None:
            values["seed_demo_data"] = seed.lower() in {"1", "true", "yes", "on"}
        return cls(**values)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, read once from the environment."""
    return Settings.from_env()
