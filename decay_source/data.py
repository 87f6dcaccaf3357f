"""
Data loading utilities.

Expected formats:

FISPACT-II JSON inventory:
- top-level "inventory_data": list of time steps, each with
  irradiation_time, cooling_time, total_mass, total_activity,
  dose_rate.dose and a "nuclides" list of
  {element, isotope, state, activity, ...}

Decay table CSV:
- z, a, parent_level_keV, radiation, energy_keV, intensity_pct

Notes:
- Intensities in the table are percent per decay (IAEA convention).
- Blank energies/intensities are allowed and mean "unobserved".

License: MIT
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List

import pandas as pd

from .nuclides import CalculationStep, NuclideId, element_number, parse_state

logger = logging.getLogger(__name__)

DECAY_TABLE_COLS = {"z", "a", "parent_level_keV", "radiation", "energy_keV", "intensity_pct"}


def _validate_columns(df: pd.DataFrame, expected: set, kind: str) -> None:
    """Raise an error if required columns are missing."""
    missing = expected - set(df.columns)
    if missing:
        raise ValueError(f"{kind} CSV missing columns: {sorted(missing)}")


def load_decay_table_csv(path: Path) -> pd.DataFrame:
    """Load and validate the pre-built decay table CSV."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(str(path))
    df = pd.read_csv(path, dtype={"radiation": str})
    _validate_columns(df, DECAY_TABLE_COLS, "Decay table")
    df["radiation"] = df["radiation"].str.strip().str.lower()
    for col in ("parent_level_keV", "energy_keV", "intensity_pct"):
        df[col] = pd.to_numeric(df[col], errors="coerce")
    return df


def _nuclide_from_record(rec: dict) -> NuclideId:
    return NuclideId(
        z=element_number(str(rec["element"])),
        a=int(rec["isotope"]),
        state=parse_state(rec.get("state")),
    )


def _step_from_record(index: int, rec: dict) -> CalculationStep:
    activities: Dict[NuclideId, float] = {}
    for nuc in rec.get("nuclides", []):
        try:
            nuclide = _nuclide_from_record(nuc)
        except (KeyError, TypeError, ValueError) as e:
            logger.debug("Step %d: skipping nuclide %r (%s)", index, nuc.get("element"), e)
            continue
        activity = float(nuc.get("activity", 0.0) or 0.0)
        # FISPACT can list the same nuclide twice under different names
        activities[nuclide] = activities.get(nuclide, 0.0) + activity

    irrad = float(rec.get("irradiation_time", 0.0) or 0.0)
    cool = float(rec.get("cooling_time", 0.0) or 0.0)
    dose = rec.get("dose_rate") or {}
    total = rec.get("total_activity")
    return CalculationStep(
        index=index,
        activities=activities,
        label=f"irrad {irrad:.3g} s, cool {cool:.3g} s",
        irradiation_time_s=irrad,
        cooling_time_s=cool,
        mass_g=float(rec.get("total_mass", 0.0) or 0.0),
        dose_rate_Sv_h=float(dose.get("dose", 0.0) or 0.0),
        total_activity_Bq=None if total is None else float(total),
    )


def load_inventory_json(path: Path) -> List[CalculationStep]:
    """Read a FISPACT-II JSON inventory into a list of CalculationStep."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(str(path))
    with path.open("r", encoding="utf-8") as f:
        doc = json.load(f)
    return inventory_from_dict(doc)


def inventory_from_dict(doc: dict) -> List[CalculationStep]:
    """Build CalculationSteps from an already parsed FISPACT-II JSON document."""
    if not isinstance(doc, dict) or "inventory_data" not in doc:
        raise ValueError("Inventory JSON missing 'inventory_data'")
    steps = [_step_from_record(i, rec) for i, rec in enumerate(doc["inventory_data"])]
    logger.debug("%d steps found in inventory", len(steps))
    return steps


def inventory_summary(steps: List[CalculationStep]) -> pd.DataFrame:
    """One row per step: times, mass, dose rate and total activity."""
    rows = []
    for s in steps:
        total = s.total_activity_Bq
        if total is None:
            total = float(sum(s.activities.values()))
        rows.append(
            {
                "Index": s.index,
                "Irrad_s": s.irradiation_time_s,
                "Cool_s": s.cooling_time_s,
                "Total_s": s.irradiation_time_s + s.cooling_time_s,
                "Mass_g": s.mass_g,
                "Dose_uSv_h": s.dose_rate_Sv_h * 1e6,
                "Activity_Bq": total,
                "Nuclides": len(s.activities),
            }
        )
    return pd.DataFrame(rows)
