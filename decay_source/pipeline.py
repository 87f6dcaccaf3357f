"""
Per-step pipeline.

For each selected step:
    assemble spectrum -> build distribution -> render artifacts -> write

Steps are independent: a failing step (DataUnavailable, NormalizationError)
is reported and skipped while the others carry on. Artifacts are rendered in
memory first and each file is moved into place only once complete.

License: MIT
"""

from __future__ import annotations

import concurrent.futures
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from .config import DEFAULTS
from .distribution import SourceDistribution, build
from .errors import DataUnavailable, NormalizationError
from .export import (
    distribution_to_mcnp_bytes,
    spectrum_to_csv_bytes,
    spectrum_to_json_bytes,
    spectrum_to_png_bytes,
    spectrum_to_text_bytes,
)
from .nuclides import CalculationStep, CompositeSpectrumEntry, RadiationType, SortKey
from .providers import DecayDataProvider
from .spectrum import assemble, spectrum_to_dataframe

logger = logging.getLogger(__name__)

# file extension per output format
FORMATS = {
    "text": "txt",
    "json": "json",
    "csv": "csv",
    "png": "png",
    "mcnp": "i",
}


@dataclass(frozen=True)
class RunOptions:
    radiation: RadiationType = RadiationType.GAMMA
    sort_key: SortKey = SortKey.ENERGY
    start_id: int = DEFAULTS["start_id"]
    formats: Tuple[str, ...] = ()
    output: str = DEFAULTS["output"]


@dataclass
class StepResult:
    index: int
    status: str = "ok"  # ok | empty | failed
    spectrum: List[CompositeSpectrumEntry] = field(default_factory=list)
    distribution: Optional[SourceDistribution] = None
    artifacts: Dict[str, bytes] = field(default_factory=dict)
    written: List[Path] = field(default_factory=list)
    error: str = ""

    @property
    def failed(self) -> bool:
        return self.status == "failed"


def render_artifacts(result: StepResult, options: RunOptions) -> Dict[str, bytes]:
    """Render every requested format to bytes, keyed by file extension."""
    df = spectrum_to_dataframe(result.spectrum)
    title = f"Step {result.index} - {options.radiation.value}"
    out: Dict[str, bytes] = {}

    for fmt in options.formats:
        if fmt not in FORMATS:
            raise ValueError(f"Unknown output format '{fmt}' (use {', '.join(FORMATS)}).")
        ext = FORMATS[fmt]
        if fmt == "text":
            out[ext] = spectrum_to_text_bytes(df, title=title)
        elif fmt == "json":
            out[ext] = spectrum_to_json_bytes(
                result.spectrum, step_index=result.index, radiation=options.radiation.value
            )
        elif fmt == "csv":
            out[ext] = spectrum_to_csv_bytes(df)
        elif fmt == "png":
            out[ext] = spectrum_to_png_bytes(df, title=title)
        elif fmt == "mcnp" and result.distribution is not None:
            out[ext] = distribution_to_mcnp_bytes(result.distribution)
    return out


def compute_step(
    step: CalculationStep,
    provider: DecayDataProvider,
    options: RunOptions,
) -> StepResult:
    """Spectrum and distribution of one step; safe to run in a worker thread."""
    result = StepResult(index=step.index)
    try:
        result.spectrum = assemble(step, options.radiation, options.sort_key, provider)
        if not result.spectrum:
            logger.info("Step %d: no relevant decay data found", step.index)
            result.status = "empty"
            return result
        result.distribution = build(result.spectrum, start_id=options.start_id)
        if result.distribution is None:
            result.status = "empty"
    except (DataUnavailable, NormalizationError) as e:
        logger.error("Step %d failed: %s", step.index, e)
        result.status = "failed"
        result.error = str(e)
        result.spectrum = []
        result.distribution = None
    return result


def process_step(
    step: CalculationStep,
    provider: DecayDataProvider,
    options: RunOptions,
) -> StepResult:
    """Run one step through the pipeline without touching the filesystem."""
    result = compute_step(step, provider, options)
    if result.status == "ok":
        result.artifacts = render_artifacts(result, options)
    return result


def output_path(prefix: str, index: int, ext: str) -> Path:
    """'<dir>/<name>_<index>.<ext>' from an output prefix such as 'out/step'."""
    path = Path(prefix or DEFAULTS["output"])
    name = path.stem or DEFAULTS["output"]
    return path.with_name(f"{name}_{index}.{ext}")


def write_artifact(path: Path, data: bytes) -> Path:
    """Write to a temporary sibling and move into place."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    try:
        tmp.write_bytes(data)
        os.replace(tmp, path)
    finally:
        if tmp.exists():
            tmp.unlink()
    return path


def write_artifacts(result: StepResult, prefix: str) -> List[Path]:
    written = []
    for ext, data in result.artifacts.items():
        path = write_artifact(output_path(prefix, result.index, ext), data)
        logger.info("Step %d: wrote %s", result.index, path)
        written.append(path)
    return written


def run_steps(
    steps: Sequence[CalculationStep],
    indices: Sequence[int],
    provider: DecayDataProvider,
    options: RunOptions,
    *,
    workers: int = 1,
    write: bool = True,
) -> List[StepResult]:
    """
    Process the selected steps and write their artifacts.

    With workers > 1 the steps are computed in a thread pool sharing the
    provider; rendering and writing always happen here, one artifact at a
    time.
    """
    selected = [steps[i] for i in indices]

    if workers and workers > 1 and len(selected) > 1:
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as ex:
            results = list(ex.map(lambda s: compute_step(s, provider, options), selected))
    else:
        results = [compute_step(s, provider, options) for s in selected]

    for result in results:
        if result.status == "ok":
            result.artifacts = render_artifacts(result, options)

    if write:
        for result in results:
            if result.failed or not result.artifacts:
                continue
            try:
                result.written = write_artifacts(result, options.output)
            except OSError as e:
                logger.error("Step %d: cannot write outputs: %s", result.index, e)
                result.status = "failed"
                result.error = str(e)
    return results
