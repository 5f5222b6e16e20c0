# tests/test_cli.py
from ipaddress import ip_address
import json
import signal

import pytest

from pingtrace import cli
from pingtrace.errors import ResolutionError
from pingtrace.models import LimitExceeded, Reply
from pingtrace.prober import HopProber
from pingtrace.simulate import ScriptedProber, SimulatedTransport

TARGET = "203.0.113.50"


@pytest.fixture
def scripted(monkeypatch):
    """Route main() through a three-hop scripted path."""
    target = ip_address(TARGET)
    script = {
        1: [LimitExceeded(ip_address("10.0.0.1"), 1.0)] * 5,
        2: [LimitExceeded(ip_address("10.0.0.2"), 2.0)] * 5,
        3: [Reply(target, 3.0)] * 5,
    }
    prober = ScriptedProber(script)
    monkeypatch.setattr(cli, "_build_prober", lambda args, address: prober)
    return prober


def test_unresolvable_target_exits_1(monkeypatch, capsys):
    def _fail(target):
        raise ResolutionError(f"Failed to resolve {target}")
    monkeypatch.setattr(cli, "resolve_target", _fail)

    assert cli.main(["nope.invalid"]) == 1
    assert "Error: Failed to resolve nope.invalid" in capsys.readouterr().err


def test_report_mode_prints_one_table(scripted, capsys):
    assert cli.main(["-r", "-C", "2", "-i", "0", "-n", "-m", "5", TARGET]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out.count(f"pingtrace to {TARGET} ({TARGET})") == 1
    rows = [line for line in out if line.lstrip()[:2] in ("1.", "2.", "3.")]
    assert len(rows) == 3
    # round 1 probes 5 hops, round 2 only up to the target
    assert len(scripted.calls) == 5 + 3


def test_json_output(scripted, capsys):
    assert cli.main(["--json", "-C", "1", "-i", "0", "-n", "-m", "4", TARGET]) == 0
    doc = json.loads(capsys.readouterr().out)
    assert doc["address"] == TARGET
    assert doc["target_hop"] == 3
    assert [h["address"] for h in doc["hops"]] == ["10.0.0.1", "10.0.0.2", TARGET]


def test_signal_handlers_restored(scripted):
    before = signal.getsignal(signal.SIGINT)
    cli.main(["-r", "-C", "1", "-i", "0", "-n", "-m", "3", TARGET])
    assert signal.getsignal(signal.SIGINT) == before


def test_signal_cancels_token():
    token = cli.CancelToken()
    previous = cli.install_signal_handlers(token)
    try:
        signal.getsignal(signal.SIGTERM)(signal.SIGTERM, None)
    finally:
        cli.restore_signal_handlers(previous)
    assert token.cancelled


@pytest.mark.parametrize("argv", [
    ["-m", "0", TARGET],
    ["-m", "256", TARGET],
    ["-t", "0", TARGET],
    ["-c", "-1", TARGET],
    ["-C", "0", TARGET],
    ["--tui", "-r", TARGET],
])
def test_invalid_options_exit_2(argv):
    with pytest.raises(SystemExit) as exc:
        cli.main(argv)
    assert exc.value.code == 2


def test_defaults_map_to_config():
    args = cli.build_parser().parse_args([TARGET])
    config = cli.config_from_args(args)
    assert (config.count, config.interval_ms, config.max_ttl) == (0, 500, 30)
    assert (config.report, config.report_cycles, config.timeout_ms) == (False, 10, 500)
    assert config.resolve_names is True


def test_json_implies_report():
    args = cli.build_parser().parse_args(["--json", "-n", TARGET])
    config = cli.config_from_args(args)
    assert config.report is True
    assert config.resolve_names is False


def test_demo_uses_simulated_transport():
    args = cli.build_parser().parse_args(["--demo", TARGET])
    prober = cli._build_prober(args, ip_address(TARGET))
    assert isinstance(prober, HopProber)
    assert isinstance(prober.transport, SimulatedTransport)
