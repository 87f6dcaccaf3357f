"""
Source distribution builder.

Turns a composite spectrum into a two-level sampling structure:

- one energy law per nuclide (its lines renormalized to sum to 1)
- one selector law over nuclides (weights = activity / total activity)

Distribution numbers are handed out sequentially from `start_id`: one per
nuclide in ascending nuclide order, then the selector takes the next one.

License: MIT
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .config import DEFAULTS, NORMALIZATION_RTOL
from .errors import NormalizationError
from .nuclides import CompositeSpectrumEntry, NuclideId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NuclideDistribution:
    """Energy sampling law of a single nuclide."""
    id: int
    nuclide: NuclideId
    energies_keV: Tuple[float, ...]
    probabilities: Tuple[float, ...]
    activity: float
    yield_per_decay: float


@dataclass(frozen=True)
class SelectorDistribution:
    """Law used to pick which nuclide distribution to sample."""
    id: int
    nuclides: Tuple[NuclideId, ...]
    weights: Tuple[float, ...]


@dataclass(frozen=True)
class SourceDistribution:
    nuclides: Tuple[NuclideDistribution, ...]
    selector: SelectorDistribution

    @property
    def ids(self) -> List[int]:
        return [d.id for d in self.nuclides] + [self.selector.id]

    @property
    def total_activity(self) -> float:
        return float(sum(d.activity for d in self.nuclides))

    @property
    def emission_rate(self) -> float:
        """Particles per second emitted by all nuclides together."""
        return float(sum(d.activity * d.yield_per_decay for d in self.nuclides))

    @property
    def particles_per_decay(self) -> float:
        """Activity-weighted mean number of particles per decay."""
        total = self.total_activity
        return self.emission_rate / total if total > 0 else 0.0


def _renormalize(values: Sequence[float], label: str) -> np.ndarray:
    """Scale values to sum to 1; all-zero input gets equal weights."""
    p = np.asarray(values, dtype=float)
    if p.size == 0:
        raise NormalizationError(f"{label}: no values to normalize")
    if not np.all(np.isfinite(p)) or np.any(p < 0):
        raise NormalizationError(f"{label}: negative or non-finite values {p.tolist()}")

    s = float(p.sum())
    p = np.full(p.size, 1.0 / p.size) if s == 0 else p / s

    total = float(p.sum())
    if not np.isclose(total, 1.0, rtol=NORMALIZATION_RTOL, atol=0.0):
        raise NormalizationError(f"{label}: probabilities sum to {total!r}, expected 1")
    return p


def _group_by_nuclide(
    spectrum: Sequence[CompositeSpectrumEntry],
) -> Dict[NuclideId, List[CompositeSpectrumEntry]]:
    groups: Dict[NuclideId, List[CompositeSpectrumEntry]] = {}
    for entry in spectrum:
        groups.setdefault(entry.nuclide, []).append(entry)
    # ascending nuclide order is the order the assembler queried them in
    return {nuclide: groups[nuclide] for nuclide in sorted(groups)}


def build(
    spectrum: Sequence[CompositeSpectrumEntry],
    start_id: int = DEFAULTS["start_id"],
) -> Optional[SourceDistribution]:
    """
    Build the source distribution for one composite spectrum.

    Returns None when there is nothing to sample (empty spectrum or zero
    total activity). Raises NormalizationError for degenerate data that
    cannot be normalized.
    """
    if not spectrum:
        logger.info("Empty spectrum, no source distribution built")
        return None

    groups = _group_by_nuclide(spectrum)

    activities = [entries[0].activity for entries in groups.values()]
    if all(a == 0 for a in activities):
        logger.info("Total activity is zero, no source distribution built")
        return None
    weights = _renormalize(activities, "nuclide selector")

    laws: List[NuclideDistribution] = []
    for offset, (nuclide, entries) in enumerate(groups.items()):
        intensities = [e.line.intensity for e in entries]
        probs = _renormalize(intensities, nuclide.name)
        laws.append(
            NuclideDistribution(
                id=start_id + offset,
                nuclide=nuclide,
                energies_keV=tuple(e.line.energy_keV for e in entries),
                probabilities=tuple(float(p) for p in probs),
                activity=float(entries[0].activity),
                yield_per_decay=float(sum(intensities)),
            )
        )

    selector = SelectorDistribution(
        id=start_id + len(laws),
        nuclides=tuple(groups),
        weights=tuple(float(w) for w in weights),
    )
    logger.debug("Distributions %d-%d built for %d nuclides", start_id, selector.id, len(laws))
    return SourceDistribution(nuclides=tuple(laws), selector=selector)
