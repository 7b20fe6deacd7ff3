from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace

import pytest

from stats_sdk import reporter as reporter_module
from stats_sdk.config import StatisticsConfig
from stats_sdk.dispatcher import SendResult
from stats_sdk.errors import NetworkError, Timeout, ValidationError
from stats_sdk.reporter import StatisticsReporter

ACCEPTED = SendResult(204, "", False)


def _with_interval(config: StatisticsConfig, seconds: float) -> StatisticsConfig:
    fast = replace(config)
    # Sub-second intervals are not allowed by validation; tests need them to stay quick
    object.__setattr__(fast, "interval_seconds", seconds)
    return fast


def _wait_for(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_send_once_runs_full_cycle(monkeypatch: pytest.MonkeyPatch, config, source) -> None:
    sent = []
    monkeypatch.setattr(reporter_module, "measure_median_latency", lambda url, timeout, attempts: 42)
    monkeypatch.setattr(reporter_module, "send_payload", lambda cfg, payload: sent.append(payload) or ACCEPTED)

    result = StatisticsReporter(config, source).send_once()

    assert result == ACCEPTED
    assert source.calls == 1
    assert sent[0].to_json() == (
        '{"vanityUrl":"abc123","version":"1.0","playersOnline":5,"maxPlayers":10,"latencyMs":42}'
    )


def test_send_once_pings_with_configured_timeouts(monkeypatch: pytest.MonkeyPatch, config, source) -> None:
    probes = []

    def fake_probe(url, timeout, attempts):
        probes.append((url, timeout, attempts))
        return 0

    monkeypatch.setattr(reporter_module, "measure_median_latency", fake_probe)
    monkeypatch.setattr(reporter_module, "send_payload", lambda cfg, payload: ACCEPTED)

    StatisticsReporter(config, source).send_once()

    assert probes == [("https://example.com/api/v1/ping", (5, 20), 3)]


def test_send_once_propagates_errors(monkeypatch: pytest.MonkeyPatch, config, source, make_source) -> None:
    def fail(cfg, payload):
        raise NetworkError("unreachable")

    monkeypatch.setattr(reporter_module, "measure_median_latency", lambda url, timeout, attempts: 1)
    monkeypatch.setattr(reporter_module, "send_payload", fail)

    with pytest.raises(NetworkError):
        StatisticsReporter(config, source).send_once()

    bad_source = make_source(players=20, slots=10)
    with pytest.raises(ValidationError):
        StatisticsReporter(config, bad_source).send_once()


def test_end_to_end_against_local_server(telemetry_server, server_config, source) -> None:
    _, handler = telemetry_server

    result = StatisticsReporter(server_config, source).send_once()

    assert result.status_code == 204
    body = handler.requests[0]["body"]
    assert body["vanityUrl"] == "abc123"
    assert body["playersOnline"] == 5
    assert body["maxPlayers"] == 10
    assert body["latencyMs"] >= 0
    assert "players" not in body
    assert "plugins" not in body


def test_start_twice_runs_one_periodic_task(config, source) -> None:
    calls = []
    reporter = StatisticsReporter(config, source)
    reporter.send_once = lambda: calls.append(threading.current_thread().name) or ACCEPTED

    reporter.start()
    first_thread = reporter._thread
    reporter.start()
    try:
        assert reporter._thread is first_thread
        assert _wait_for(lambda: len(calls) == 1)
        time.sleep(0.1)
        assert calls == ["statistics-reporter"]
        assert reporter.running
    finally:
        reporter.close()


def test_close_is_idempotent_and_final(config, source, caplog: pytest.LogCaptureFixture) -> None:
    reporter = StatisticsReporter(config, source)
    reporter.send_once = lambda: ACCEPTED
    reporter.start()

    reporter.close()
    reporter.close()

    assert reporter.closed
    assert not reporter.running

    with caplog.at_level(logging.WARNING, logger="stats_sdk.reporter"):
        reporter.start()
    assert "after close()" in caplog.text
    assert reporter._thread is None


def test_close_without_start(config, source) -> None:
    reporter = StatisticsReporter(config, source)
    reporter.close()
    reporter.close()
    assert reporter.closed


def test_failures_never_cancel_future_ticks(config, source, caplog: pytest.LogCaptureFixture) -> None:
    outcomes = [
        Timeout("slow"),
        NetworkError("refused"),
        ValidationError("bad version"),
        RuntimeError("boom"),
        SendResult(401, "denied", False),
        ACCEPTED,
    ]
    calls = []

    def scripted():
        outcome = outcomes[min(len(calls), len(outcomes) - 1)]
        calls.append(outcome)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    reporter = StatisticsReporter(_with_interval(config, 0.02), source)
    reporter.send_once = scripted

    with caplog.at_level(logging.INFO, logger="stats_sdk.reporter"):
        reporter.start()
        try:
            assert _wait_for(lambda: len(calls) >= len(outcomes))
        finally:
            reporter.close()

    levels = {record.getMessage().split(":")[0]: record.levelno for record in caplog.records}
    assert levels["Statistics endpoint timed out (https"] == logging.WARNING
    assert levels["Statistics endpoint unreachable (https"] == logging.WARNING
    assert levels["Skipping telemetry cycle, invalid payload"] == logging.ERROR
    assert levels["Unexpected statistics dispatch failure"] == logging.CRITICAL
    assert any(r.levelno == logging.ERROR and "check bearerToken" in r.getMessage() for r in caplog.records)
    assert any(r.levelno == logging.INFO and "Telemetry accepted" in r.getMessage() for r in caplog.records)


def test_ticks_never_overlap(config, source) -> None:
    active = []
    overlaps = []
    calls = []
    lock = threading.Lock()

    def slow_send():
        with lock:
            if active:
                overlaps.append(True)
            active.append(1)
        time.sleep(0.05)
        with lock:
            active.pop()
            calls.append(1)
        return ACCEPTED

    # Every tick overruns the 10ms interval
    reporter = StatisticsReporter(_with_interval(config, 0.01), source)
    reporter.send_once = slow_send
    reporter.start()
    try:
        assert _wait_for(lambda: len(calls) >= 4)
    finally:
        reporter.close()

    assert overlaps == []


def test_close_gives_up_after_grace_period(config, source, caplog: pytest.LogCaptureFixture) -> None:
    release = threading.Event()
    entered = threading.Event()

    def stuck_send():
        entered.set()
        release.wait(5)
        return ACCEPTED

    reporter = StatisticsReporter(config, source, close_grace_period=0.1)
    reporter.send_once = stuck_send
    reporter.start()
    try:
        assert entered.wait(5)
        with caplog.at_level(logging.WARNING, logger="stats_sdk.reporter"):
            started = time.monotonic()
            reporter.close()
            elapsed = time.monotonic() - started
        assert elapsed < 2
        assert "did not stop" in caplog.text
    finally:
        release.set()


def test_close_waits_for_in_flight_tick(config, source) -> None:
    entered = threading.Event()
    finished = []

    def short_send():
        entered.set()
        time.sleep(0.1)
        finished.append(True)
        return ACCEPTED

    reporter = StatisticsReporter(config, source, close_grace_period=5)
    reporter.send_once = short_send
    reporter.start()
    assert entered.wait(5)

    reporter.close()

    assert finished == [True]


def test_context_manager_closes(config, source) -> None:
    with StatisticsReporter(config, source) as reporter:
        reporter.send_once = lambda: ACCEPTED
        reporter.start()
    assert reporter.closed


def _record_tick_starts(reporter: StatisticsReporter, count: int, tick_seconds) -> list:
    starts = []

    def timed_send():
        starts.append(time.monotonic())
        time.sleep(tick_seconds(len(starts)))
        return ACCEPTED

    reporter.send_once = timed_send
    reporter.start()
    try:
        assert _wait_for(lambda: len(starts) >= count, timeout=10)
    finally:
        reporter.close()
    return [later - earlier for earlier, later in zip(starts, starts[1:count])]


def test_ticks_run_at_fixed_rate(config, source) -> None:
    # A fixed delay would space the ticks 0.4s apart
    reporter = StatisticsReporter(_with_interval(config, 0.3), source)
    gaps = _record_tick_starts(reporter, 4, lambda n: 0.1)

    assert len(gaps) == 3
    assert all(0.25 <= gap < 0.37 for gap in gaps), gaps


def test_stalled_tick_is_followed_by_one_immediate_tick(config, source) -> None:
    # The second tick stalls for several intervals
    reporter = StatisticsReporter(_with_interval(config, 0.2), source)
    gaps = _record_tick_starts(reporter, 6, lambda n: 0.7 if n == 2 else 0.0)

    assert len(gaps) == 5
    assert 0.15 <= gaps[0] < 0.3, gaps
    # Next tick starts as soon as the stalled one returns
    assert 0.65 <= gaps[1] < 0.8, gaps
    assert all(0.15 <= gap < 0.3 for gap in gaps[2:]), gaps
