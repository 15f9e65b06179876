"""
Scenario Loader for the Banker's Allocator.

Loads and validates JSON system configurations: available vector,
maximum and allocation matrices, resource names and an optional queue of
requests to replay.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple
from pathlib import Path

from algorithms.vectors import as_count_array, as_tuple
from models.snapshot import SnapshotValidationError, SystemSnapshot, default_resource_names


class ScenarioLoadError(Exception):
    """Exception raised when scenario file cannot be loaded or is invalid."""
    pass


@dataclass(frozen=True)
class QueuedRequest:
    """A request replayed against the session in file order."""
    process_id: int
    request: Tuple[int, ...]


@dataclass
class Scenario:
    """
    A loaded system configuration.

    Attributes:
        snapshot: Initial system snapshot (need derived)
        resource_names: Display name of each resource type
        requests: Requests to replay in order
        description: Free-text description from the file
    """
    snapshot: SystemSnapshot
    resource_names: List[str]
    requests: List[QueuedRequest] = field(default_factory=list)
    description: str = ""


def classic_scenario() -> Scenario:
    """
    The textbook 5-process, 3-resource configuration.

    Safe, with safe sequence P1 -> P3 -> P4 -> P0 -> P2.
    """
    return parse_scenario({
        "description": "Classic Banker's Algorithm example (Silberschatz, Chapter 7)",
        "resources": ["A", "B", "C"],
        "available": [3, 3, 2],
        "maximum": [
            [7, 5, 3],
            [3, 2, 2],
            [9, 0, 2],
            [2, 2, 2],
            [4, 3, 3],
        ],
        "allocation": [
            [0, 1, 0],
            [2, 0, 0],
            [3, 0, 2],
            [2, 1, 1],
            [0, 0, 2],
        ],
    })


def load_scenario(file_path: str) -> Scenario:
    """
    Load scenario from JSON file.

    Args:
        file_path: Path to scenario JSON file

    Returns:
        Scenario with a validated initial snapshot

    Raises:
        ScenarioLoadError: If file cannot be loaded or is invalid
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ScenarioLoadError(f"Scenario file not found: {file_path}")
    except OSError as e:
        raise ScenarioLoadError(f"Cannot read scenario file {file_path}: {e}")
    except UnicodeDecodeError as e:
        raise ScenarioLoadError(f"Scenario file is not valid UTF-8: {e}")
    except json.JSONDecodeError as e:
        raise ScenarioLoadError(f"Invalid JSON in scenario file: {e}")

    if not isinstance(data, dict):
        raise ScenarioLoadError(f"Scenario file must contain a JSON object: {file_path}")

    return parse_scenario(data)


def parse_scenario(data: Dict[str, Any]) -> Scenario:
    """
    Build a scenario from already-decoded data.

    Args:
        data: Scenario dictionary

    Returns:
        Scenario with a validated initial snapshot

    Raises:
        ScenarioLoadError: If the configuration is invalid
    """
    for key in ('available', 'maximum', 'allocation'):
        if key not in data:
            raise ScenarioLoadError(f"Scenario missing '{key}' field")

    if 'need' in data:
        raise ScenarioLoadError("Scenario must not supply 'need'; it is derived from maximum - allocation")

    maximum = data['maximum']
    if not isinstance(maximum, list) or len(maximum) < 1:
        raise ScenarioLoadError("At least one process is required")

    available = data['available']
    if not isinstance(available, list) or len(available) < 1:
        raise ScenarioLoadError("At least one resource is required")

    resource_names = _load_resource_names(data.get('resources', len(available)), len(available))

    try:
        snapshot = SystemSnapshot.from_config(available, maximum, data['allocation'])
    except SnapshotValidationError as e:
        raise ScenarioLoadError(f"Invalid system configuration: {e}") from e

    requests = [
        _load_request(req, index, snapshot)
        for index, req in enumerate(data.get('requests', []))
    ]

    return Scenario(
        snapshot=snapshot,
        resource_names=resource_names,
        requests=requests,
        description=data.get('description', '')
    )


def _load_resource_names(resources: Any, num_resources: int) -> List[str]:
    """
    Load resource names, given either as a list of names or a count.

    Args:
        resources: 'resources' field of the scenario
        num_resources: Length of the available vector

    Returns:
        List of resource names
    """
    if isinstance(resources, bool):
        raise ScenarioLoadError("'resources' must be a list of names or a count")

    if isinstance(resources, int):
        names = default_resource_names(resources)
    elif isinstance(resources, list) and all(isinstance(n, str) for n in resources):
        names = list(resources)
    else:
        raise ScenarioLoadError("'resources' must be a list of names or a count")

    if len(names) != num_resources:
        raise ScenarioLoadError(
            f"Resource count ({len(names)}) does not match available length ({num_resources})"
        )

    if len(set(names)) != len(names):
        raise ScenarioLoadError(f"Duplicate resource names: {names}")

    return names


def _load_request(req: Any, index: int, snapshot: SystemSnapshot) -> QueuedRequest:
    """
    Validate a queued request.

    Args:
        req: Request dictionary with 'process' and 'request'
        index: Position in the requests list (for error messages)
        snapshot: Initial snapshot (for bounds)

    Returns:
        QueuedRequest
    """
    if not isinstance(req, dict):
        raise ScenarioLoadError(f"Request {index}: must be an object")

    for key in ('process', 'request'):
        if key not in req:
            raise ScenarioLoadError(f"Request {index}: missing '{key}' field")

    pid = req['process']
    if isinstance(pid, bool) or not isinstance(pid, int):
        raise ScenarioLoadError(f"Request {index}: 'process' must be an integer")
    if pid < 0 or pid >= snapshot.num_processes:
        raise ScenarioLoadError(
            f"Request {index}: invalid process {pid} (system has {snapshot.num_processes} processes)"
        )

    vector = as_count_array(
        req['request'], (snapshot.num_resources,), f"Request {index}: request", ScenarioLoadError
    )
    return QueuedRequest(process_id=pid, request=as_tuple(vector))


def get_scenario_description(file_path: str) -> str:
    """
    Get description from scenario file without full loading.

    Args:
        file_path: Path to scenario JSON file

    Returns:
        Description string, or empty string if not present or unreadable
    """
    try:
        data = json.loads(Path(file_path).read_text(encoding='utf-8'))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return ''
    if not isinstance(data, dict):
        return ''
    return data.get('description', '')
