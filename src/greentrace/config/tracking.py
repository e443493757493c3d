"""Timing defaults for record tracking."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta

DEFAULT_CACHE_TTL = timedelta(hours=24)

# Listening windows for the three kinds of caller intent
LISTEN_SHORT = timedelta(seconds=15)
LISTEN_DEFAULT = timedelta(seconds=30)
LISTEN_LONG = timedelta(seconds=45)

SUBMITTED_REFRESH_DELAY = timedelta(seconds=3)
REVIEW_REFRESH_DELAY = timedelta(seconds=2)
RETIRED_REFRESH_DELAY = timedelta(seconds=1)

REPROBE_DELAY = timedelta(seconds=5)
MAX_REPROBE_ATTEMPTS = 3


@dataclass(frozen=True, slots=True)
class RefreshDelays:
    """How long to wait after a chain event before re-reading contract state."""

    submitted: timedelta = SUBMITTED_REFRESH_DELAY
    reviewed: timedelta = REVIEW_REFRESH_DELAY
    asset_produced: timedelta = REVIEW_REFRESH_DELAY
    asset_retired: timedelta = RETIRED_REFRESH_DELAY


@dataclass(frozen=True, slots=True)
class TrackerSettings:
    cache_ttl: timedelta = DEFAULT_CACHE_TTL
    listen_duration: timedelta = LISTEN_DEFAULT
    refresh_delays: RefreshDelays = field(default_factory=RefreshDelays)
    reprobe_delay: timedelta = REPROBE_DELAY
    max_reprobe_attempts: int = MAX_REPROBE_ATTEMPTS


def get_tracker_settings() -> TrackerSettings:
    return TrackerSettings()
