"""
Decision records returned by the safety checker and the request adjudicator.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple

from models.snapshot import SystemSnapshot


class ReasonCode(Enum):
    """Outcome of a resource request."""
    GRANTED = "GRANTED"
    EXCEEDS_MAXIMUM_CLAIM = "EXCEEDS_MAXIMUM_CLAIM"
    INSUFFICIENT_AVAILABLE = "INSUFFICIENT_AVAILABLE"
    WOULD_DEADLOCK = "WOULD_DEADLOCK"


@dataclass(frozen=True)
class SafetyResult:
    """
    Result of the Banker's safety check.

    Attributes:
        is_safe: True if every process can finish
        order: Completion order discovered by the simulation
        blocked: Processes that could not finish (empty when safe)
    """
    is_safe: bool
    order: Tuple[int, ...]
    blocked: Tuple[int, ...] = ()


@dataclass(frozen=True)
class AdjudicationResult:
    """
    Result of a single resource request.

    Attributes:
        granted: True if the request was committed
        new_snapshot: State after the decision (the input snapshot when denied)
        reason: Why the request was granted or denied
        order: Safe sequence for display; empty for EXCEEDS_MAXIMUM_CLAIM
        process_id: Requesting process
        request: [R] Requested instances
    """
    granted: bool
    new_snapshot: SystemSnapshot
    reason: ReasonCode
    order: Tuple[int, ...]
    process_id: int
    request: Tuple[int, ...]

    def to_dict(self) -> Dict:
        """Serializable form of the decision."""
        return {
            "process": self.process_id,
            "request": list(self.request),
            "granted": self.granted,
            "reason": self.reason.value,
            "order": list(self.order),
            "snapshot": self.new_snapshot.to_dict(),
        }
