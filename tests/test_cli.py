"""CLI tests for seal and verify subcommands."""

import json
from pathlib import Path
import sys

import pytest

from forensic_intake import cli
from forensic_intake._internal.io.journal_log import JournalWriter


def _run_cli(args, monkeypatch):
    monkeypatch.setattr(sys, "argv", ["forensic-intake"] + args)
    return cli.main()


def _make_packet(root: Path) -> Path:
    root.mkdir(parents=True)
    (root / "determination.json").write_text('{"category": "x"}\n', encoding="utf-8")
    journal = JournalWriter(root / "journal.ndjson")
    journal.append({"type": "RUN_START"})
    journal.append({"type": "DETERMINATION"})
    return root


def test_seal_and_verify_packet_ok(monkeypatch, capsys, tmp_path):
    packet = _make_packet(tmp_path / "packet")
    _run_cli(["seal", str(packet)], monkeypatch)
    out = capsys.readouterr().out
    assert "[OK] Packet sealed" in out
    assert "Files: 3" in out

    _run_cli(["verify", "packet", str(packet)], monkeypatch)
    out = capsys.readouterr().out
    assert "Status: OK" in out
    assert "Errors: 0" in out


def test_seal_twice_fails(monkeypatch, capsys, tmp_path):
    packet = _make_packet(tmp_path / "packet")
    _run_cli(["seal", str(packet)], monkeypatch)
    capsys.readouterr()
    with pytest.raises(SystemExit) as excinfo:
        _run_cli(["seal", str(packet)], monkeypatch)
    assert excinfo.value.code == 1
    assert "ALREADY_SEALED" in capsys.readouterr().err


def test_verify_packet_corrupted_fails(monkeypatch, capsys, tmp_path):
    packet = _make_packet(tmp_path / "packet")
    _run_cli(["seal", str(packet)], monkeypatch)
    capsys.readouterr()
    (packet / "determination.json").write_text("edited", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        _run_cli(["verify", "packet", str(packet)], monkeypatch)
    assert excinfo.value.code == 1
    out = capsys.readouterr().out
    assert "Status: FAILED" in out
    assert "[CORRUPTED_ARTIFACT]" in out


def test_verify_packet_unindexed_warns(monkeypatch, capsys, tmp_path):
    packet = _make_packet(tmp_path / "packet")
    _run_cli(["seal", str(packet)], monkeypatch)
    capsys.readouterr()
    (packet / "extra.txt").write_text("late", encoding="utf-8")

    _run_cli(["verify", "packet", str(packet)], monkeypatch)
    out = capsys.readouterr().out
    assert "Status: OK" in out
    assert "Warnings: 1" in out


def test_verify_packet_writes_report(monkeypatch, capsys, tmp_path):
    packet = _make_packet(tmp_path / "packet")
    _run_cli(["seal", str(packet)], monkeypatch)
    report_dir = tmp_path / "reports"
    _run_cli(["verify", "packet", str(packet), "--output-dir", str(report_dir)], monkeypatch)

    report = json.loads((report_dir / "verify_packet.json").read_text(encoding="utf-8"))
    assert report["ok"] is True
    assert report["errors"] == []


def test_verify_journal_ok(monkeypatch, capsys, tmp_path):
    packet = _make_packet(tmp_path / "packet")
    _run_cli(["verify", "journal", str(packet / "journal.ndjson")], monkeypatch)
    out = capsys.readouterr().out
    assert "Status: OK" in out


def test_verify_journal_tampered_fails(monkeypatch, capsys, tmp_path):
    packet = _make_packet(tmp_path / "packet")
    path = packet / "journal.ndjson"
    lines = path.read_text(encoding="utf-8").splitlines()
    record = json.loads(lines[0])
    record["data"]["type"] = "EDITED"
    lines[0] = json.dumps(record)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        _run_cli(["verify", "journal", str(path)], monkeypatch)
    assert excinfo.value.code == 1
    out = capsys.readouterr().out
    assert "Status: FAILED" in out
    assert "[JOURNAL_HASH_MISMATCH]" in out


def test_quiet_suppresses_output(monkeypatch, capsys, tmp_path):
    packet = _make_packet(tmp_path / "packet")
    _run_cli(["seal", str(packet), "--quiet"], monkeypatch)
    assert capsys.readouterr().out == ""


def test_intake_requires_inputs(monkeypatch, capsys, tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        _run_cli(["intake", "--out", str(tmp_path / "out")], monkeypatch)
    assert excinfo.value.code == 1
    assert "--config or --target-url" in capsys.readouterr().err


def test_no_command_prints_help(monkeypatch, capsys):
    with pytest.raises(SystemExit) as excinfo:
        _run_cli([], monkeypatch)
    assert excinfo.value.code == 1
