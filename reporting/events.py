"""
Event Model for the Banker's Allocator.

Records every decision a session makes and turns reason codes into the
alert level and message shown to a user.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from algorithms.vectors import format_vector
from models.decision import AdjudicationResult, ReasonCode, SafetyResult


class AlertLevel(Enum):
    """Severity of a decision as presented to a user."""
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class EventType(Enum):
    """Types of events in a session."""
    SAFETY_CHECK = "safety_check"
    REQUEST = "request"
    RESET = "reset"


def alert_level(reason: ReasonCode) -> AlertLevel:
    """
    Map a reason code to its alert level.

    A request that exceeds the declared claim is a caller error; a process
    that must wait or would cause an unsafe state is a normal denial.
    """
    if reason == ReasonCode.GRANTED:
        return AlertLevel.SUCCESS
    elif reason == ReasonCode.INSUFFICIENT_AVAILABLE:
        return AlertLevel.WARNING
    elif reason == ReasonCode.WOULD_DEADLOCK:
        return AlertLevel.WARNING
    elif reason == ReasonCode.EXCEEDS_MAXIMUM_CLAIM:
        return AlertLevel.ERROR
    raise ValueError(f"Unknown reason code: {reason!r}")


def describe(result: AdjudicationResult) -> str:
    """User-facing message for a decision."""
    pid = result.process_id

    if result.reason == ReasonCode.GRANTED:
        return f"Loan for Process {pid} granted. The system is in a safe state."
    elif result.reason == ReasonCode.EXCEEDS_MAXIMUM_CLAIM:
        return f"Process {pid} has exceeded its maximum claim. Request cannot be granted."
    elif result.reason == ReasonCode.INSUFFICIENT_AVAILABLE:
        return f"Request denied for Process {pid}. Resources not available. Process must wait."
    elif result.reason == ReasonCode.WOULD_DEADLOCK:
        return f"Request for Process {pid} denied. Granting it would lead to an unsafe state."
    raise ValueError(f"Unknown reason code: {result.reason!r}")


def format_sequence(order: Sequence[int]) -> str:
    """Format a safe sequence as ``P1 -> P3 -> P4``."""
    if not order:
        return "(none)"
    return " -> ".join(f"P{pid}" for pid in order)


@dataclass
class AllocationEvent:
    """
    Represents a single event in a session.

    Attributes:
        sequence: Position of the event in the session (0-based)
        event_type: Type of event
        process_id: Requesting process (REQUEST events only)
        request: [R] Requested instances (REQUEST events only)
        reason: Decision reason (REQUEST events only)
        is_safe: Whether the resulting state is safe
        order: Safe sequence reported with the event
        message: Human-readable description
    """
    sequence: int
    event_type: EventType
    process_id: Optional[int] = None
    request: Optional[Tuple[int, ...]] = None
    reason: Optional[ReasonCode] = None
    is_safe: bool = True
    order: Tuple[int, ...] = ()
    message: str = ""

    @property
    def level(self) -> AlertLevel:
        """Alert level of the event."""
        if self.reason is not None:
            return alert_level(self.reason)
        return AlertLevel.SUCCESS if self.is_safe else AlertLevel.ERROR

    def __str__(self) -> str:
        """Format event for logging."""
        base = f"#{self.sequence}:"

        if self.event_type == EventType.REQUEST:
            status = "GRANTED" if self.reason == ReasonCode.GRANTED else "DENIED"
            return (
                f"{base} P{self.process_id} requests {format_vector(self.request)} - "
                f"{status} [{self.reason.value}] ({self.message})"
            )
        elif self.event_type == EventType.SAFETY_CHECK:
            return f"{base} SAFETY CHECK - {self.message} (sequence: {format_sequence(self.order)})"
        elif self.event_type == EventType.RESET:
            return f"{base} RESET - {self.message}"
        else:
            return f"{base} {self.event_type.value}: {self.message}"


def safety_message(result: SafetyResult, subject: str = "State") -> str:
    """Message for a safety check, e.g. 'Initial state is safe.'"""
    return f"{subject} is {'safe' if result.is_safe else 'unsafe'}."


@dataclass
class EventLog:
    """Collection of session events."""
    events: List[AllocationEvent] = field(default_factory=list)

    def record_request(self, result: AdjudicationResult) -> AllocationEvent:
        """Append a REQUEST event for a decision."""
        event = AllocationEvent(
            sequence=len(self.events),
            event_type=EventType.REQUEST,
            process_id=result.process_id,
            request=result.request,
            reason=result.reason,
            order=result.order,
            message=describe(result)
        )
        self.events.append(event)
        return event

    def record_safety(self, result: SafetyResult, event_type: EventType, message: str) -> AllocationEvent:
        """Append a SAFETY_CHECK or RESET event."""
        event = AllocationEvent(
            sequence=len(self.events),
            event_type=event_type,
            is_safe=result.is_safe,
            order=result.order,
            message=message
        )
        self.events.append(event)
        return event

    def get_events_by_type(self, event_type: EventType) -> List[AllocationEvent]:
        """Get all events of a specific type."""
        return [e for e in self.events if e.event_type == event_type]

    def get_events_by_reason(self, reason: ReasonCode) -> List[AllocationEvent]:
        """Get all request events with a specific outcome."""
        return [e for e in self.events if e.reason == reason]

    def display(self) -> str:
        """Format all events for display."""
        return "\n".join(str(event) for event in self.events)
