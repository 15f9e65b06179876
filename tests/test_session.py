"""
Session and CLI Tests

Tests AllocatorSession serialization and reset, the event log and alert
levels, the logger, and the banker command-line entry point.
"""

import json
import sys
import threading
from pathlib import Path

import argparse
import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from banker import AllocatorSession, main, parse_request, run_scenario
from models.decision import ReasonCode
from reporting.events import AlertLevel, EventType, alert_level, describe, format_sequence
from utils.logger import AllocatorLogger
from utils.scenario_loader import classic_scenario, load_scenario


SCENARIOS_DIR = project_root / "scenarios"


def test_submit_commits_and_reset_restores():
    """Granted requests replace the current snapshot; reset restores the initial one."""
    session = AllocatorSession.from_scenario(classic_scenario())
    initial = session.snapshot

    result = session.submit(1, [1, 0, 2])
    assert result.granted
    assert session.snapshot is result.new_snapshot
    assert session.snapshot.available.tolist() == [2, 3, 0]

    denied = session.submit(0, [0, 2, 0])
    assert denied.reason == ReasonCode.WOULD_DEADLOCK
    assert session.snapshot is result.new_snapshot

    reset = session.reset()
    assert reset.is_safe
    assert session.snapshot is initial
    assert [e.event_type for e in session.event_log.events] == [
        EventType.REQUEST, EventType.REQUEST, EventType.RESET
    ]


def test_concurrent_submits_are_serialized():
    """Only one of many identical concurrent requests fits P3's remaining claim."""
    session = AllocatorSession.from_scenario(classic_scenario())
    total_before = session.snapshot.total.tolist()

    threads = [threading.Thread(target=session.submit, args=(3, [0, 0, 1])) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    reasons = [r.reason for r in session.results]
    assert reasons.count(ReasonCode.GRANTED) == 1
    assert reasons.count(ReasonCode.EXCEEDS_MAXIMUM_CLAIM) == 7
    assert session.snapshot.allocation[3].tolist() == [2, 1, 2]
    assert session.snapshot.total.tolist() == total_before


def test_alert_levels_and_messages():
    """Severity comes from the reason code, never from message text."""
    assert alert_level(ReasonCode.GRANTED) == AlertLevel.SUCCESS
    assert alert_level(ReasonCode.INSUFFICIENT_AVAILABLE) == AlertLevel.WARNING
    assert alert_level(ReasonCode.WOULD_DEADLOCK) == AlertLevel.WARNING
    assert alert_level(ReasonCode.EXCEEDS_MAXIMUM_CLAIM) == AlertLevel.ERROR

    session = AllocatorSession.from_scenario(classic_scenario())
    result = session.submit(1, [2, 0, 0])
    assert describe(result) == (
        "Process 1 has exceeded its maximum claim. Request cannot be granted."
    )
    event = session.event_log.events[-1]
    assert event.level == AlertLevel.ERROR
    assert "EXCEEDS_MAXIMUM_CLAIM" in str(event)


def test_format_sequence():
    assert format_sequence((1, 3, 4, 0, 2)) == "P1 -> P3 -> P4 -> P0 -> P2"
    assert format_sequence(()) == "(none)"


def test_run_classic_file():
    """The shipped scenario exercises every outcome in order."""
    print("\n" + "="*60)
    print("TEST: Replay scenarios/classic.json")
    print("="*60)

    session = run_scenario(load_scenario(str(SCENARIOS_DIR / "classic.json")))

    print(session.event_log.display())
    assert [r.reason for r in session.results] == [
        ReasonCode.GRANTED,
        ReasonCode.WOULD_DEADLOCK,
        ReasonCode.EXCEEDS_MAXIMUM_CLAIM,
        ReasonCode.INSUFFICIENT_AVAILABLE,
    ]
    assert session.snapshot.available.tolist() == [2, 3, 0]


def test_run_unsafe_start_file():
    """An unsafe initial state is reported and every request is refused."""
    session = run_scenario(load_scenario(str(SCENARIOS_DIR / "unsafe_start.json")))

    initial_check = session.event_log.get_events_by_type(EventType.SAFETY_CHECK)[0]
    assert not initial_check.is_safe
    assert initial_check.level == AlertLevel.ERROR
    assert [r.reason for r in session.results] == [ReasonCode.WOULD_DEADLOCK]


def test_logger_writes_file(tmp_path):
    """Log file gets a header and every logged line, debug only when verbose."""
    log_path = tmp_path / "run.log"
    logger = AllocatorLogger(verbose=False, log_file=str(log_path), quiet=True)

    session = AllocatorSession.from_scenario(classic_scenario(), logger)
    session.submit(1, [1, 0, 2])
    logger.log("hidden", "debug")
    logger.close()

    text = log_path.read_text(encoding="utf-8")
    assert text.startswith("Allocator Log - ")
    assert "P1 requests [1, 0, 2] - GRANTED [GRANTED]" in text
    assert "Available: [2, 3, 0]" in text
    assert "hidden" not in text


def test_parse_request():
    assert parse_request("1:1,0,2") == (1, [1, 0, 2])
    with pytest.raises(argparse.ArgumentTypeError):
        parse_request("1-1,0,2")
    with pytest.raises(argparse.ArgumentTypeError):
        parse_request("1:a,b,c")


def test_main_classic_with_requests(capsys):
    """CLI replays command-line requests against the built-in example."""
    assert main(["--request", "1:1,0,2", "--request", "4:3,3,0"]) == 0

    out = capsys.readouterr().out
    assert "Initial state is SAFE" in out
    assert "P1 requests [1, 0, 2] - GRANTED" in out
    assert "INSUFFICIENT_AVAILABLE" in out


def test_main_json_output(capsys):
    """--json prints only a JSON document."""
    assert main(["--scenario", str(SCENARIOS_DIR / "classic.json"), "--json"]) == 0

    data = json.loads(capsys.readouterr().out)
    assert [d["reason"] for d in data["decisions"]] == [
        "GRANTED", "WOULD_DEADLOCK", "EXCEEDS_MAXIMUM_CLAIM", "INSUFFICIENT_AVAILABLE"
    ]
    assert data["snapshot"]["available"] == [2, 3, 0]
    assert data["safe"] is True
    assert data["order"] == [1, 3, 4, 0, 2]


def test_main_errors(capsys):
    """Bad scenarios and bad requests exit with status 1."""
    assert main(["--scenario", "missing.json"]) == 1
    assert "Failed to load scenario" in capsys.readouterr().out

    assert main(["--request", "9:0,0,0"]) == 1
    assert "Invalid request" in capsys.readouterr().out


def test_exceeds_claim_logged_as_error(capsys):
    """Log level follows the alert level of the reason code."""
    session = AllocatorSession.from_scenario(classic_scenario(), AllocatorLogger())

    session.submit(1, [2, 0, 0])
    session.submit(0, [4, 0, 0])
    session.submit(1, [1, 0, 2])

    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith("[ERROR] P1 requests [2, 0, 0] - DENIED [EXCEEDS_MAXIMUM_CLAIM]")
    assert lines[1].startswith("[WARNING] P0 requests [4, 0, 0] - DENIED [INSUFFICIENT_AVAILABLE]")
    assert lines[2].startswith("P1 requests [1, 0, 2] - GRANTED [GRANTED]")


def test_main_unreadable_scenarios(tmp_path, capsys):
    """Directories and ragged configurations exit with status 1, not a traceback."""
    assert main(["--scenario", str(tmp_path)]) == 1
    assert "Failed to load scenario" in capsys.readouterr().out

    ragged = tmp_path / "ragged.json"
    ragged.write_text(json.dumps({
        "available": [3, 3, 2],
        "maximum": [[7, 5, 3], [3, 2]],
        "allocation": [[0, 1, 0], [2, 0, 0]],
    }), encoding="utf-8")
    assert main(["--scenario", str(ragged)]) == 1
    assert "Invalid system configuration" in capsys.readouterr().out
