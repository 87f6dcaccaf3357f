import io
import json
from http.client import IncompleteRead

from decay_source.errors import DataUnavailable
from decay_source.nuclides import CalculationStep, DecayLine, NuclideId, RadiationType
from decay_source.pipeline import RunOptions, output_path, process_step, run_steps
from decay_source.providers import DecayDataProvider, RemoteDecayService

from conftest import CO60, CS137

ALL_FORMATS = ("text", "json", "csv", "png", "mcnp")


class FlakyTable(DecayDataProvider):
    """Wraps the local table but fails for selected nuclides."""

    def __init__(self, table, unavailable=()):
        self.table = table
        self.unavailable = set(unavailable)

    def _records(self, nuclide, codes):
        raise NotImplementedError

    def lookup(self, nuclide, radiation):
        if nuclide in self.unavailable:
            raise DataUnavailable(f"{nuclide}: connection refused")
        return self.table.lookup(nuclide, radiation)


def _steps():
    return [
        CalculationStep(index=0, activities={CO60: 1.0e6, CS137: 2.0e6}),
        CalculationStep(index=1, activities={NuclideId(11, 24): 5.0e5}),
        CalculationStep(index=2, activities={NuclideId(1, 3): 1.0e9}),
    ]


def test_output_path_naming(tmp_path):
    assert output_path("step", 2, "i").name == "step_2.i"
    assert output_path(str(tmp_path / "out" / "src.txt"), 0, "json") == tmp_path / "out" / "src_0.json"


def test_run_writes_every_format(tmp_path, local_table):
    options = RunOptions(formats=ALL_FORMATS, output=str(tmp_path / "out" / "step"))
    results = run_steps(_steps(), [0, 1, 2], local_table, options)

    assert [r.status for r in results] == ["ok", "ok", "empty"]
    names = sorted(p.name for p in (tmp_path / "out").iterdir())
    assert names == sorted(f"step_{i}.{ext}" for i in (0, 1) for ext in ("txt", "json", "csv", "png", "i"))

    cards = (tmp_path / "out" / "step_0.i").read_text()
    assert "si102 S 100 101" in cards
    doc = json.loads((tmp_path / "out" / "step_1.json").read_text())
    assert doc["nuclides"][0]["name"] == "Na24"


def test_unavailable_data_only_fails_that_step(tmp_path, local_table):
    provider = FlakyTable(local_table, unavailable=[CS137])
    options = RunOptions(formats=("mcnp", "text"), output=str(tmp_path / "step"))

    results = run_steps(_steps(), [0, 1], provider, options)

    assert results[0].failed
    assert "connection refused" in results[0].error
    assert results[1].status == "ok"
    assert not (tmp_path / "step_0.i").exists()
    assert not (tmp_path / "step_0.txt").exists()
    assert (tmp_path / "step_1.i").exists()


def test_parallel_run_matches_serial(local_table):
    options = RunOptions(radiation=RadiationType.BETA_MINUS, formats=("mcnp",))
    serial = run_steps(_steps(), [0, 1, 2], local_table, options, write=False)
    parallel = run_steps(_steps(), [0, 1, 2], local_table, options, workers=3, write=False)

    assert [r.index for r in parallel] == [0, 1, 2]
    assert [r.artifacts for r in parallel] == [r.artifacts for r in serial]
    assert all(not r.written for r in serial)


def test_corrupt_data_fails_step_without_outputs():
    class Corrupt(FlakyTable):
        def lookup(self, nuclide, radiation):
            return [DecayLine(100.0, float("nan"))]

    step = CalculationStep(index=4, activities={CO60: 1.0})
    result = process_step(step, Corrupt(None), RunOptions(formats=ALL_FORMATS))

    assert result.failed
    assert result.artifacts == {}
    assert result.distribution is None


def test_empty_step_is_not_an_error(local_table):
    result = process_step(_steps()[2], local_table, RunOptions(formats=ALL_FORMATS))
    assert result.status == "empty"
    assert not result.failed
    assert result.artifacts == {}


def test_truncated_remote_answer_only_fails_that_step(monkeypatch, tmp_path):
    co60_csv = "energy,intensity,p_energy\n1173.228,99.85,0\n1332.492,99.9826,0\n"

    class Truncated(io.BytesIO):
        def read(self, *args):
            raise IncompleteRead(b"energy", 100)

    def fake(req, timeout=None):
        if "nuclides=137cs" in req.full_url:
            return Truncated()
        body = co60_csv if "rad_types=g" in req.full_url else ""
        return io.BytesIO(body.encode("utf-8"))

    monkeypatch.setattr("decay_source.providers.urlopen", fake)
    steps = [
        CalculationStep(index=0, activities={CS137: 2.0e6}),
        CalculationStep(index=1, activities={CO60: 1.0e6}),
    ]
    options = RunOptions(formats=("mcnp",), output=str(tmp_path / "step"))

    results = run_steps(steps, [0, 1], RemoteDecayService(), options)

    assert results[0].failed
    assert "Cs137" in results[0].error
    assert results[1].status == "ok"
    assert (tmp_path / "step_1.i").exists()
    assert not (tmp_path / "step_0.i").exists()
