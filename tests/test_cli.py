import importlib.util
import json
import sys
from pathlib import Path

import pytest

from decay_source.errors import DataUnavailable
from decay_source.providers import DecayDataProvider

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "generate_source.py"


def _load_cli():
    spec = importlib.util.spec_from_file_location("generate_source", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class Offline(DecayDataProvider):
    """Every lookup fails as if the IAEA service were unreachable."""

    def _records(self, nuclide, codes):
        raise DataUnavailable(f"IAEA query for {nuclide} failed: no route to host")


@pytest.fixture
def cli():
    return _load_cli()


@pytest.fixture
def inventory(tmp_path):
    nuclides = [
        {"element": "Co", "isotope": 60, "state": "", "activity": 1.0e6},
        {"element": "Cs", "isotope": 137, "state": "", "activity": 2.0e6},
    ]
    doc = {"inventory_data": [{"irradiation_time": 3600.0, "cooling_time": 0.0, "nuclides": nuclides}]}
    path = tmp_path / "inventory.json"
    path.write_text(json.dumps(doc))
    return path


def _run(monkeypatch, cli, *argv):
    monkeypatch.setattr(sys, "argv", ["generate_source.py", *map(str, argv)])
    return cli.main()


def test_step_failure_exits_with_status_1(monkeypatch, capsys, tmp_path, cli, inventory):
    monkeypatch.setattr(cli, "make_provider", lambda *a, **kw: Offline())
    out = tmp_path / "out" / "step"

    with pytest.raises(SystemExit) as exc:
        _run(monkeypatch, cli, inventory, "0", "--mcnp", "--fetch", "-q", "-o", out)

    assert exc.value.code == 1
    assert "Failed steps: [0]" in capsys.readouterr().out
    assert not (tmp_path / "out" / "step_0.i").exists()


def test_bad_step_expression_exits_with_status_2(monkeypatch, capsys, cli, inventory):
    with pytest.raises(SystemExit) as exc:
        _run(monkeypatch, cli, inventory, "x", "--mcnp", "-q")

    assert exc.value.code == 2
    assert "ERROR" in capsys.readouterr().err


def test_unknown_radiation_exits_with_status_2(monkeypatch, cli, inventory):
    with pytest.raises(SystemExit) as exc:
        _run(monkeypatch, cli, inventory, "0", "--rad", "neutron", "--mcnp", "-q")
    assert exc.value.code == 2


def test_missing_inventory_exits_with_status_2(monkeypatch, capsys, tmp_path, cli):
    with pytest.raises(SystemExit) as exc:
        _run(monkeypatch, cli, tmp_path / "missing.json", "--mcnp", "-q")
    assert exc.value.code == 2
    assert "Failed to read inventory" in capsys.readouterr().err


def test_empty_selection_completes_without_outputs(monkeypatch, tmp_path, cli, inventory):
    def unused(*args, **kwargs):
        raise AssertionError("no provider needed for an empty selection")

    monkeypatch.setattr(cli, "make_provider", unused)
    out = tmp_path / "step"

    assert _run(monkeypatch, cli, inventory, "9", "--mcnp", "-q", "-o", out) is None
    assert not list(tmp_path.glob("step_*"))


def test_local_run_writes_requested_outputs(monkeypatch, capsys, tmp_path, cli, inventory, local_table):
    monkeypatch.setattr(cli, "make_provider", lambda *a, **kw: local_table)
    out = tmp_path / "step"

    assert _run(monkeypatch, cli, inventory, "all", "--mcnp", "--text", "-q", "-o", out) is None

    assert sorted(p.name for p in tmp_path.glob("step_*")) == ["step_0.i", "step_0.txt"]
    assert "si102 S 100 101" in (tmp_path / "step_0.i").read_text()
    assert "Failed steps: []" in capsys.readouterr().out


def test_summary_only_without_output_flags(monkeypatch, capsys, cli, inventory):
    assert _run(monkeypatch, cli, inventory, "-q") is None
    out = capsys.readouterr().out
    assert "Activity_Bq" in out
    assert "Source generation completed" not in out
