"""
Composite spectrum construction.

Implements:
- Decay data lookup for every active nuclide of a step
- One entry per (nuclide, decay line), weighted by the nuclide's activity
- Sorting by ascending energy or descending intensity
- A tabular (DataFrame) view for the text/CSV exports

License: MIT
"""

from __future__ import annotations

import logging
from typing import List, Sequence

import pandas as pd

from .nuclides import CalculationStep, CompositeSpectrumEntry, RadiationType, SortKey
from .providers import DecayDataProvider

logger = logging.getLogger(__name__)

SPECTRUM_COLUMNS = [
    "Nuclide",
    "Z",
    "A",
    "State",
    "Energy_keV",
    "Intensity",
    "Activity_Bq",
    "Emission_rate",
]


def _energy_key(entry: CompositeSpectrumEntry):
    return (entry.line.energy_keV, entry.nuclide, -entry.line.intensity)


def _intensity_key(entry: CompositeSpectrumEntry):
    return (-entry.line.intensity, entry.nuclide, entry.line.energy_keV)


def sort_entries(
    entries: Sequence[CompositeSpectrumEntry], sort_key: SortKey
) -> List[CompositeSpectrumEntry]:
    """Return a new list sorted by the requested key (ties broken by nuclide)."""
    if sort_key == SortKey.INTENSITY:
        return sorted(entries, key=_intensity_key)
    return sorted(entries, key=_energy_key)


def assemble(
    step: CalculationStep,
    radiation: RadiationType,
    sort_key: SortKey,
    provider: DecayDataProvider,
) -> List[CompositeSpectrumEntry]:
    """
    Build the activity-weighted composite spectrum of one step.

    Parameters
    ----------
    step:
        Time step with nuclide activities (Bq). Not modified.
    radiation:
        Radiation type to look up (gamma includes x-rays).
    sort_key:
        ENERGY (ascending) or INTENSITY (descending).
    provider:
        Decay data backend. DataUnavailable from it propagates.

    Returns
    -------
    list of CompositeSpectrumEntry, empty when no nuclide has data.
    """
    entries: List[CompositeSpectrumEntry] = []
    missing = []

    for nuclide in sorted(step.activities):
        activity = step.activities[nuclide]
        if not activity > 0:
            continue
        lines = provider.lookup(nuclide, radiation)
        if not lines:
            missing.append(nuclide.name)
            continue
        entries.extend(CompositeSpectrumEntry(nuclide, line, activity) for line in lines)

    if missing:
        logger.debug("Step %d: no %s data for %s", step.index, radiation.value, ", ".join(missing))

    return sort_entries(entries, sort_key)


def spectrum_to_dataframe(entries: Sequence[CompositeSpectrumEntry]) -> pd.DataFrame:
    """Tabular view of a composite spectrum, one row per line, order kept."""
    rows = [
        {
            "Nuclide": e.nuclide.name,
            "Z": e.nuclide.z,
            "A": e.nuclide.a,
            "State": e.nuclide.state,
            "Energy_keV": e.line.energy_keV,
            "Intensity": e.line.intensity,
            "Activity_Bq": e.activity,
            "Emission_rate": e.emission_rate,
        }
        for e in entries
    ]
    return pd.DataFrame(rows, columns=SPECTRUM_COLUMNS)
