"""Tests for the command-line entry point."""

import json
import sys

import pytest

from hedge_signal import cli


def test_signal_command_prints_signal(monkeypatch, capsys):
    # log lines would otherwise share stdout with the JSON
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)
    monkeypatch.setattr(
        sys, "argv", ["hedge-signal", "signal", "--value", "10000", "--hedge", "20"]
    )
    cli.main()
    output = json.loads(capsys.readouterr().out)
    assert output["action"] in {"BUY_HEDGE", "SELL_HEDGE", "HOLD"}
    assert 0 <= output["confidence"] <= 100
    # no model key in tests
    assert output["source"] == "fallback"


def test_unknown_risk_rejected(monkeypatch):
    monkeypatch.setattr(
        sys,
        "argv",
        ["hedge-signal", "signal", "--value", "1", "--hedge", "1", "--risk", "wild"],
    )
    with pytest.raises(SystemExit):
        cli.main()
