"""
Deadlock Avoidance Algorithm (Banker's Request Algorithm) for the Banker's Allocator.

Grants a request only if the state that results from granting it is safe.
"""

import numpy as np

from algorithms.safety import check_safety
from algorithms.vectors import as_count_array, as_tuple, is_less_or_equal
from models.decision import AdjudicationResult, ReasonCode
from models.snapshot import RequestValidationError, SystemSnapshot


def adjudicate(snapshot: SystemSnapshot, process_id: int, request) -> AdjudicationResult:
    """
    Handle a resource request using Banker's Algorithm.

    Steps:
    1. Validate: request <= need (otherwise EXCEEDS_MAXIMUM_CLAIM)
    2. Check: request <= available (otherwise INSUFFICIENT_AVAILABLE, process waits)
    3. Tentatively allocate on a copy of the snapshot
    4. Run safety algorithm on the tentative state
    5. If safe: commit the tentative snapshot
       If unsafe: keep the original snapshot (WOULD_DEADLOCK)

    Policy outcomes are returned as reason codes. Malformed input raises
    before any state is built.

    Args:
        snapshot: Current system state (never modified)
        process_id: Index of the requesting process
        request: [R] Instances requested of each resource type

    Returns:
        AdjudicationResult with the decision and resulting snapshot

    Raises:
        RequestValidationError: If process_id or request is malformed
        InvariantViolation: If the tentative state breaks conservation
    """
    process_id = _validate_process_id(snapshot, process_id)
    request = as_count_array(
        request, (snapshot.num_resources,), "request", RequestValidationError
    )
    requested = as_tuple(request)

    # Step 1: Request must stay within the remaining declared claim
    if not is_less_or_equal(request, snapshot.need[process_id]):
        return AdjudicationResult(
            granted=False,
            new_snapshot=snapshot,
            reason=ReasonCode.EXCEEDS_MAXIMUM_CLAIM,
            order=(),
            process_id=process_id,
            request=requested
        )

    # Step 2: Resources must be free right now, otherwise the process waits
    if not is_less_or_equal(request, snapshot.available):
        return AdjudicationResult(
            granted=False,
            new_snapshot=snapshot,
            reason=ReasonCode.INSUFFICIENT_AVAILABLE,
            order=check_safety(snapshot).order,
            process_id=process_id,
            request=requested
        )

    # Step 3: Tentatively allocate on an independent copy
    tentative = snapshot.apply_request(process_id, request)
    tentative.assert_resource_conservation(
        snapshot.total, f"after tentatively granting {list(requested)} to P{process_id}"
    )

    # Step 4: Commit only a state proven safe
    safety = check_safety(tentative)
    if safety.is_safe:
        return AdjudicationResult(
            granted=True,
            new_snapshot=tentative,
            reason=ReasonCode.GRANTED,
            order=safety.order,
            process_id=process_id,
            request=requested
        )

    # Step 5: Roll back by discarding the tentative snapshot
    return AdjudicationResult(
        granted=False,
        new_snapshot=snapshot,
        reason=ReasonCode.WOULD_DEADLOCK,
        order=check_safety(snapshot).order,
        process_id=process_id,
        request=requested
    )


def _validate_process_id(snapshot: SystemSnapshot, process_id) -> int:
    """Return process_id as an int, rejecting non-integers and out-of-range indices."""
    if isinstance(process_id, (bool, np.bool_)) or not isinstance(process_id, (int, np.integer)):
        raise RequestValidationError(
            f"Process id must be an integer, got {type(process_id).__name__}"
        )

    if process_id < 0 or process_id >= snapshot.num_processes:
        raise RequestValidationError(
            f"Invalid process id {process_id}: system has {snapshot.num_processes} processes"
        )

    return int(process_id)
