"""
Heartbeat-derived device status.

The single place where the age of a device's latest heartbeat is turned into
online / problematic / offline, and where the uptime estimate is computed.
Endpoints only ever return the derived strings.

Rule (age measured in exact minutes, boundaries belong to the lower-severity
state):

    age <= 5          -> online
    5 < age <= 15     -> problematic
    age > 15          -> offline

Uptime is an estimate, not a measured duty cycle: the number of heartbeats
seen in the trailing window multiplied by the nominal interval (30 s).
Missed heartbeats therefore show up as less uptime, and a device that sends
faster than the nominal interval can exceed the window length.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, Optional

from core.config import settings
from db.enums import HeartbeatStatus


@dataclass(frozen=True)
class StatusThresholds:
    online_minutes: float = 5
    problematic_minutes: float = 15

    def __post_init__(self):
        if self.online_minutes > self.problematic_minutes:
            raise ValueError("online threshold must not exceed problematic threshold")

    @classmethod
    def from_settings(cls) -> "StatusThresholds":
        return cls(
            online_minutes=settings.heartbeat.online_threshold_minutes,
            problematic_minutes=settings.heartbeat.problematic_threshold_minutes,
        )


def age_minutes(last_seen: datetime, now: datetime) -> float:
    """Minutes elapsed between last_seen and now (negative if last_seen is ahead)."""
    return (now - last_seen).total_seconds() / 60.0


def derive_status(
    last_seen: datetime,
    now: datetime,
    thresholds: Optional[StatusThresholds] = None,
) -> HeartbeatStatus:
    """
    Derive a device status from the time of its latest heartbeat.

    A heartbeat stamped slightly in the future (clock skew between app
    servers) is treated as fresh.
    """
    thresholds = thresholds or StatusThresholds.from_settings()
    age = age_minutes(last_seen, now)

    if age <= thresholds.online_minutes:
        return HeartbeatStatus.ONLINE
    if age <= thresholds.problematic_minutes:
        return HeartbeatStatus.PROBLEMATIC
    return HeartbeatStatus.OFFLINE


def estimate_uptime_seconds(heartbeat_count: int, interval_seconds: Optional[int] = None) -> int:
    """Heartbeats in the window times the nominal interval."""
    if heartbeat_count < 0:
        raise ValueError("heartbeat_count must be >= 0")
    interval = interval_seconds if interval_seconds is not None else settings.heartbeat.interval_seconds
    return heartbeat_count * interval


def format_uptime(seconds: int) -> str:
    """Render seconds as "Hh Mm" (e.g. 7260 -> "2h 1m")."""
    seconds = max(int(seconds), 0)
    hours, remainder = divmod(seconds, 3600)
    return f"{hours}h {remainder // 60}m"


def summarize(statuses: Iterable[HeartbeatStatus]) -> Dict[str, int]:
    """Count devices per derived status."""
    summary = {"total": 0, "online": 0, "problematic": 0, "offline": 0}
    for status in statuses:
        summary["total"] += 1
        summary[HeartbeatStatus(status).value] += 1
    return summary
