"""
Attendance warnings

A watch session can raise one of three warnings. While a warning is
pending, attendance credit is withheld until the learner acknowledges it.
Acknowledged warnings can be raised again.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from mudhalvan.config import AttendanceThresholds


class WarningType(str, Enum):
    INACTIVE = "inactive"
    TAB_SWITCH = "tab_switch"
    FAST_FORWARD = "fast_forward"


# ==================== DETECTORS ====================

def is_inactive(seconds_since_activity: float, thresholds: AttendanceThresholds) -> bool:
    return seconds_since_activity >= thresholds.inactivity_seconds


def is_fast_forward(previous_position: float, current_position: float, elapsed_seconds: float,
                    thresholds: AttendanceThresholds) -> bool:
    """A seek counts when the video advanced well beyond the wall-clock time that passed"""
    jumped = current_position - previous_position
    return (jumped > elapsed_seconds + thresholds.seek_tolerance_seconds
            and jumped > thresholds.min_seek_seconds)


def is_tab_switch(visibility_state: str) -> bool:
    return visibility_state == "hidden"


# ==================== STATE ====================

def make_event(warning: WarningType, details: Optional[str] = None,
               timestamp: Optional[datetime] = None) -> dict:
    return {
        "type": warning.value,
        "timestamp": timestamp or datetime.utcnow(),
        "details": details,
        "acknowledged": False,
    }


@dataclass
class AttendanceWarnings:
    """Warning history of one lesson's attention events"""
    events: List[dict] = field(default_factory=list)

    @property
    def pending(self) -> List[dict]:
        return [e for e in self.events if not e.get("acknowledged", False)]

    @property
    def credit_allowed(self) -> bool:
        return not self.pending

    def raise_warning(self, warning: WarningType, details: Optional[str] = None) -> Optional[dict]:
        """Record a warning unless one of the same type is still waiting for acknowledgment"""
        if any(e["type"] == warning.value for e in self.pending):
            return None
        event = make_event(warning, details)
        self.events.append(event)
        return event

    def acknowledge(self, warning: Optional[WarningType] = None) -> int:
        count = 0
        for event in self.pending:
            if warning is None or event["type"] == warning.value:
                event["acknowledged"] = True
                event["acknowledgedAt"] = datetime.utcnow()
                count += 1
        return count
