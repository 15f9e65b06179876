#!/usr/bin/env python3
"""
Banker's Allocator
Main entry point for the deadlock-avoidance allocator.

Loads a system configuration, checks whether it is safe, and replays
resource requests one at a time through the Banker's request algorithm.
"""

import argparse
import json
import sys
import threading
from typing import Iterable, List, Optional, Sequence, Tuple

from algorithms.avoidance import adjudicate
from algorithms.safety import check_safety
from models.decision import AdjudicationResult, ReasonCode, SafetyResult
from models.snapshot import RequestValidationError, SystemSnapshot
from reporting.events import EventLog, EventType, describe, format_sequence, safety_message
from utils.logger import AllocatorLogger
from utils.scenario_loader import (
    QueuedRequest,
    Scenario,
    ScenarioLoadError,
    classic_scenario,
    load_scenario,
)


class AllocatorSession:
    """
    Holds the current snapshot and serializes requests against it.

    The adjudicator is a pure function; the session owns the single
    mutable reference to the current snapshot. A lock guarantees at most
    one adjudication is in flight, so two tentative states can never both
    be committed.
    """

    def __init__(
        self,
        initial: SystemSnapshot,
        resource_names: Optional[Sequence[str]] = None,
        logger: Optional[AllocatorLogger] = None
    ):
        """
        Initialize a session.

        Args:
            initial: Configuration snapshot, restored on reset()
            resource_names: Display names of the resource types
            logger: Logger for decisions (a quiet one if omitted)
        """
        self.initial = initial
        self.snapshot = initial
        self.resource_names = list(resource_names) if resource_names else None
        self.logger = logger or AllocatorLogger(quiet=True)
        self.event_log = EventLog()
        self.results: List[AdjudicationResult] = []
        self.lock = threading.Lock()

    @classmethod
    def from_scenario(cls, scenario: Scenario, logger: Optional[AllocatorLogger] = None) -> "AllocatorSession":
        """Create a session for a loaded scenario."""
        return cls(scenario.snapshot, scenario.resource_names, logger)

    def check(self, subject: str = "Current state") -> SafetyResult:
        """Run the safety check on the current snapshot and record it."""
        with self.lock:
            result = check_safety(self.snapshot)
            self.event_log.record_safety(result, EventType.SAFETY_CHECK, safety_message(result, subject))
        self.logger.log_safety(result, subject)
        return result

    def submit(self, process_id: int, request: Sequence[int]) -> AdjudicationResult:
        """
        Adjudicate one request and commit the resulting snapshot.

        Args:
            process_id: Requesting process
            request: [R] Instances requested

        Returns:
            AdjudicationResult for the request

        Raises:
            RequestValidationError: If the request is malformed
        """
        with self.lock:
            result = adjudicate(self.snapshot, process_id, request)
            self.snapshot = result.new_snapshot
            self.results.append(result)
            event = self.event_log.record_request(result)

        self.logger.log_request(result, event.message)
        if result.granted:
            self.logger.log_snapshot(self.snapshot, self.resource_names)
        return result

    def reset(self) -> SafetyResult:
        """Restore the initial configuration."""
        with self.lock:
            self.snapshot = self.initial
            result = check_safety(self.snapshot)
            self.event_log.record_safety(
                result, EventType.RESET, safety_message(result, "Initial state")
            )
        self.logger.log_reset(result)
        return result


def parse_request(text: str) -> Tuple[int, List[int]]:
    """
    Parse a command-line request of the form ``PID:a,b,c``.

    Args:
        text: Request text, e.g. "1:1,0,2"

    Returns:
        Tuple of (process_id, request vector)

    Raises:
        argparse.ArgumentTypeError: If the text is malformed
    """
    pid_text, sep, vector_text = text.partition(':')
    if not sep:
        raise argparse.ArgumentTypeError(f"Request must look like PID:a,b,c (got '{text}')")
    try:
        pid = int(pid_text)
        vector = [int(v) for v in vector_text.split(',')]
    except ValueError:
        raise argparse.ArgumentTypeError(f"Request must contain integers only (got '{text}')")
    return pid, vector


def run_scenario(
    scenario: Scenario,
    extra_requests: Iterable[Tuple[int, Sequence[int]]] = (),
    logger: Optional[AllocatorLogger] = None
) -> AllocatorSession:
    """
    Replay a scenario's requests, then any extra requests, through one session.

    Args:
        scenario: Loaded scenario
        extra_requests: Additional (process_id, request) pairs, run after the file's
        logger: Logger instance

    Returns:
        The session after every request was adjudicated

    Raises:
        RequestValidationError: If an extra request is malformed
    """
    logger = logger or AllocatorLogger(quiet=True)
    session = AllocatorSession.from_scenario(scenario, logger)

    logger.log(f"\n{'='*60}")
    logger.log("BANKER'S ALLOCATOR")
    if scenario.description:
        logger.log(f"Scenario: {scenario.description}")
    logger.log(f"{'='*60}\n")

    logger.log(session.snapshot.display(session.resource_names))
    session.check("Initial state")

    queued = list(scenario.requests) + [
        QueuedRequest(process_id=pid, request=tuple(vector)) for pid, vector in extra_requests
    ]
    for step, queued_request in enumerate(queued):
        logger.log(f"\n{'-'*60}")
        logger.log(f"Request {step}")
        logger.log(f"{'-'*60}")
        session.submit(queued_request.process_id, queued_request.request)

    logger.log(f"\n{'='*60}")
    logger.log("RUN COMPLETE")
    logger.log(f"{'='*60}\n")
    _display_statistics(session, logger)

    return session


def _display_statistics(session: AllocatorSession, logger: AllocatorLogger) -> None:
    """Display final decision counts and the current safe sequence."""
    log = session.event_log
    requests = log.get_events_by_type(EventType.REQUEST)

    logger.log("Run Statistics:")
    logger.log(f"  Requests: {len(requests)}")
    for reason in ReasonCode:
        logger.log(f"  {reason.value}: {len(log.get_events_by_reason(reason))}")

    final = check_safety(session.snapshot)
    logger.log(f"\n  Final state: {'SAFE' if final.is_safe else 'UNSAFE'}")
    logger.log(f"  Safe sequence: {format_sequence(final.order)}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the allocator."""
    parser = argparse.ArgumentParser(
        description="Banker's Algorithm deadlock-avoidance allocator"
    )
    parser.add_argument(
        '--scenario',
        type=str,
        default=None,
        help='Path to scenario JSON file (default: built-in classic example)'
    )
    parser.add_argument(
        '--request',
        type=parse_request,
        action='append',
        default=[],
        metavar='PID:a,b,c',
        help='Request to adjudicate after the scenario requests (repeatable)'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )
    parser.add_argument(
        '--log-file',
        type=str,
        default=None,
        help='Also write the log to this file'
    )
    parser.add_argument(
        '--json',
        action='store_true',
        help='Print decisions and the final snapshot as JSON instead of a log'
    )

    args = parser.parse_args(argv)

    logger = AllocatorLogger(verbose=args.verbose, log_file=args.log_file, quiet=args.json)
    try:
        scenario = load_scenario(args.scenario) if args.scenario else classic_scenario()
        session = run_scenario(scenario, args.request, logger)
    except ScenarioLoadError as e:
        logger.quiet = False
        logger.log(f"Failed to load scenario: {e}", "error")
        return 1
    except RequestValidationError as e:
        logger.quiet = False
        logger.log(f"Invalid request: {e}", "error")
        return 1
    finally:
        logger.close()

    if args.json:
        final = check_safety(session.snapshot)
        print(json.dumps({
            "decisions": [
                {**result.to_dict(), "message": describe(result)} for result in session.results
            ],
            "snapshot": session.snapshot.to_dict(),
            "safe": final.is_safe,
            "order": list(final.order),
        }, indent=2))

    return 0


if __name__ == '__main__':
    sys.exit(main())
