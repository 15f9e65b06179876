"""
System Snapshot model for the Banker's Allocator.

A snapshot holds every matrix and vector the Banker's safety check and
request algorithm need. Snapshots are immutable values: all arrays are
read-only, and a granted request produces a new snapshot instead of
modifying the current one.
"""

import numpy as np
from typing import Dict, List, Optional, Sequence
from dataclasses import dataclass

from algorithms.vectors import as_count_array, format_vector


class SnapshotValidationError(ValueError):
    """Raised when a snapshot is malformed or breaks an allocation invariant."""
    pass


class RequestValidationError(ValueError):
    """Raised when a request names an unknown process or a malformed vector."""
    pass


class InvariantViolation(RuntimeError):
    """Raised when a computed state breaks resource conservation or non-negativity."""
    pass


def _dimensions(available, maximum):
    """Return (P, R) for a configuration, rejecting non-vector input early."""
    try:
        available = np.asarray(available)
    except ValueError as e:
        raise SnapshotValidationError(f"available is not a vector of counts: {e}") from e
    if available.ndim != 1 or available.shape[0] == 0:
        raise SnapshotValidationError(
            "available must be a non-empty vector with one entry per resource type"
        )
    try:
        maximum_ndim = np.ndim(maximum)
    except ValueError as e:
        raise SnapshotValidationError(f"maximum is not a rectangular array of counts: {e}") from e
    if maximum_ndim == 0:
        raise SnapshotValidationError("maximum must be a matrix with one row per process")
    return len(maximum), available.shape[0]


def default_resource_names(count: int) -> List[str]:
    """Name resource types A, B, C, ... (R<index> past Z)."""
    return [chr(ord("A") + i) if i < 26 else f"R{i}" for i in range(count)]


@dataclass(frozen=True, eq=False)
class SystemSnapshot:
    """
    Complete state of the allocator at one instant.

    Attributes:
        available: [R] Free resource instances by type
        maximum: [P][R] Maximum demand declared by each process
        allocation: [P][R] Resources currently held by each process
        need: [P][R] Remaining claim, always Maximum - Allocation

    Invariants:
        0 <= allocation[p][r] <= maximum[p][r]
        need[p][r] == maximum[p][r] - allocation[p][r]
        available[r] + sum(allocation[:, r]) == total[r] across transitions
    """
    available: np.ndarray
    maximum: np.ndarray
    allocation: np.ndarray
    need: np.ndarray

    def __post_init__(self):
        """Coerce every field to a read-only int64 array and validate invariants."""
        num_processes, num_resources = _dimensions(self.available, self.maximum)
        shape = (num_processes, num_resources)

        available = as_count_array(self.available, (num_resources,), "available", SnapshotValidationError)
        maximum = as_count_array(self.maximum, shape, "maximum", SnapshotValidationError)
        allocation = as_count_array(self.allocation, shape, "allocation", SnapshotValidationError)

        over = np.argwhere(allocation > maximum)
        if len(over):
            p, r = (int(i) for i in over[0])
            raise SnapshotValidationError(
                f"allocation[{p}][{r}] ({allocation[p, r]}) exceeds maximum[{p}][{r}] ({maximum[p, r]})"
            )

        need = as_count_array(self.need, shape, "need", SnapshotValidationError)
        if not np.array_equal(need, maximum - allocation):
            raise SnapshotValidationError("need must equal maximum - allocation")

        object.__setattr__(self, "available", available)
        object.__setattr__(self, "maximum", maximum)
        object.__setattr__(self, "allocation", allocation)
        object.__setattr__(self, "need", need)

    @classmethod
    def from_config(
        cls,
        available: Sequence[int],
        maximum: Sequence[Sequence[int]],
        allocation: Sequence[Sequence[int]]
    ) -> "SystemSnapshot":
        """
        Build the initial snapshot from a system configuration.

        Need is always derived from maximum and allocation; it is never
        supplied by the caller.

        Args:
            available: [R] Unallocated instances of each resource type
            maximum: [P][R] Declared maximum demand of each process
            allocation: [P][R] Instances each process already holds

        Returns:
            Validated snapshot

        Raises:
            SnapshotValidationError: If shapes or values are invalid
        """
        shape = _dimensions(available, maximum)
        max_matrix = as_count_array(maximum, shape, "maximum", SnapshotValidationError)
        alloc_matrix = as_count_array(allocation, shape, "allocation", SnapshotValidationError)

        # Negative entries here are reported by __post_init__ as allocation > maximum
        need = np.maximum(max_matrix - alloc_matrix, 0)
        return cls(available=available, maximum=max_matrix, allocation=alloc_matrix, need=need)

    @property
    def num_processes(self) -> int:
        """Number of processes in the system."""
        return self.maximum.shape[0]

    @property
    def num_resources(self) -> int:
        """Number of resource types in the system."""
        return self.available.shape[0]

    @property
    def total(self) -> np.ndarray:
        """Total instances of each resource type (available + allocated)."""
        return self.available + self.allocation.sum(axis=0)

    def apply_request(self, process_id: int, request: np.ndarray) -> "SystemSnapshot":
        """
        Build the tentative snapshot that results from granting a request.

        Copies available, allocation and need; maximum is read-only and
        shared. This snapshot is left untouched.

        Args:
            process_id: Index of the requesting process
            request: [R] Instances requested of each resource type

        Returns:
            New snapshot with the request applied

        Raises:
            InvariantViolation: If the result would hold negative counts
        """
        available = self.available - request
        allocation = self.allocation.copy()
        allocation[process_id] += request
        need = self.need.copy()
        need[process_id] -= request

        try:
            return SystemSnapshot(
                available=available,
                maximum=self.maximum,
                allocation=allocation,
                need=need
            )
        except SnapshotValidationError as e:
            raise InvariantViolation(
                f"Applying {format_vector(request)} to P{process_id} corrupts the state: {e}"
            ) from e

    def assert_resource_conservation(self, expected_total: np.ndarray, context: str = "") -> None:
        """
        Verify resource conservation: allocated + available == total for all resources.

        Args:
            expected_total: [R] Total instances the state must account for
            context: Description of when this check is being run

        Raises:
            InvariantViolation: If conservation is violated
        """
        total = self.total
        for r in range(self.num_resources):
            if total[r] != expected_total[r]:
                raise InvariantViolation(
                    f"Resource conservation violated for R{r} {context}\n"
                    f"  Allocated: {self.allocation[:, r].sum()}, Available: {self.available[r]}, "
                    f"Expected total: {expected_total[r]}"
                )

    def to_dict(self) -> Dict:
        """Serializable form of the snapshot."""
        return {
            "processes": self.num_processes,
            "resources": self.num_resources,
            "available": self.available.tolist(),
            "maximum": self.maximum.tolist(),
            "allocation": self.allocation.tolist(),
            "need": self.need.tolist(),
        }

    def display(self, resource_names: Optional[Sequence[str]] = None) -> str:
        """
        Generate readable string representation of the snapshot.

        Args:
            resource_names: Column labels, defaults to A, B, C, ...

        Returns:
            Formatted string showing all matrices and vectors
        """
        names = list(resource_names) if resource_names else default_resource_names(self.num_resources)
        width = max(3, max(len(n) for n in names))
        header = "      " + " ".join(f"{n:>{width}}" for n in names)

        output = []
        output.append("\n" + "=" * 60)
        output.append("SYSTEM STATE")
        output.append("=" * 60)

        output.append("\nAvailable Resources:")
        output.append(header)
        output.append("      " + " ".join(f"{v:>{width}}" for v in self.available))

        for title, matrix in (
            ("Maximum Matrix", self.maximum),
            ("Allocation Matrix", self.allocation),
            ("Need Matrix (Max - Allocation)", self.need),
        ):
            output.append(f"\n{title}:")
            output.append(header)
            for p in range(self.num_processes):
                row = f"  P{p:<3}" + " ".join(f"{v:>{width}}" for v in matrix[p])
                output.append(row)

        output.append("\n" + "=" * 60)
        return "\n".join(output)

    def __eq__(self, other) -> bool:
        if not isinstance(other, SystemSnapshot):
            return NotImplemented
        return (
            np.array_equal(self.available, other.available)
            and np.array_equal(self.maximum, other.maximum)
            and np.array_equal(self.allocation, other.allocation)
            and np.array_equal(self.need, other.need)
        )
