"""
Decay data providers.

Two interchangeable backends answer the same question: "which lines does
this nuclide emit for this radiation type?"

- LocalDecayTable: pre-built CSV table, fast and deterministic
- RemoteDecayService: IAEA LiveChart API, always up to date but slow

Both return a list of DecayLine, or None when no data exist (NotFound).
A remote failure raises DataUnavailable so it is never confused with
"no data".

License: MIT
"""

from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod
from http.client import HTTPException
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from urllib.error import URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

import pandas as pd

from .config import DEFAULTS, IAEA_API_URL, IAEA_USER_AGENT
from .data import load_decay_table_csv
from .errors import DataUnavailable
from .nuclides import DecayLine, NuclideId, RadiationType

logger = logging.getLogger(__name__)

_RECORD_COLS = ["parent_level_keV", "energy_keV", "intensity_pct"]


def select_parent_level(records: pd.DataFrame, state: int) -> Optional[pd.DataFrame]:
    """
    Keep the records belonging to the requested metastable state.

    Records are matched on parent level energy: the distinct levels in
    ascending order are ground, first isomer, second isomer... When the data
    carry no 0 keV level the first level is taken as the first isomer and
    there is no ground state. Records with unknown parent level are kept.
    """
    levels = sorted(records["parent_level_keV"].dropna().unique())
    if not levels:
        return records

    if levels[0] == 0.0:
        if state >= len(levels):
            return None
        target = levels[state]
    else:
        if state == 0 or state > len(levels):
            return None
        target = levels[state - 1]

    known = records["parent_level_keV"]
    return records[(known == target) | known.isna()]


def records_to_lines(records: pd.DataFrame, label: str = "") -> List[DecayLine]:
    """Drop unobserved records and convert percent intensities to fractions."""
    observed = records.dropna(subset=["energy_keV", "intensity_pct"])
    n_dropped = len(records) - len(observed)
    if n_dropped:
        logger.debug("Skipped %d unobserved %s records", n_dropped, label)
    return [
        DecayLine(energy_keV=float(e), intensity=float(i) / 100.0)
        for e, i in zip(observed["energy_keV"], observed["intensity_pct"])
    ]


class DecayDataProvider(ABC):
    """Looks up decay lines for a (nuclide, radiation type) pair."""

    name = "provider"

    @abstractmethod
    def _records(self, nuclide: NuclideId, codes: Tuple[str, ...]) -> pd.DataFrame:
        """Raw records with columns parent_level_keV, energy_keV, intensity_pct."""

    def lookup(self, nuclide: NuclideId, radiation: RadiationType) -> Optional[List[DecayLine]]:
        """Decay lines for the nuclide, or None if there are none."""
        records = self._records(nuclide, radiation.codes)
        if records.empty:
            logger.debug("%s decay records for %s: 0", radiation.value, nuclide)
            return None

        matched = select_parent_level(records, nuclide.state)
        if matched is None or matched.empty:
            logger.debug("No %s records for state %d of %s", radiation.value, nuclide.state, nuclide)
            return None

        lines = records_to_lines(matched, label=nuclide.name)
        logger.debug("%s decay records for %s: %d", radiation.value, nuclide, len(lines))
        return lines or None


class LocalDecayTable(DecayDataProvider):
    """Pre-built decay table held in memory, indexed by (Z, A)."""

    name = "local"

    def __init__(self, table: pd.DataFrame):
        self._by_nuclide: Dict[Tuple[int, int], pd.DataFrame] = {
            (int(z), int(a)): sub_df for (z, a), sub_df in table.groupby(["z", "a"])
        }

    @classmethod
    def from_csv(cls, path: Path) -> "LocalDecayTable":
        return cls(load_decay_table_csv(path))

    def _records(self, nuclide: NuclideId, codes: Tuple[str, ...]) -> pd.DataFrame:
        sub_df = self._by_nuclide.get((nuclide.z, nuclide.a))
        if sub_df is None:
            return pd.DataFrame(columns=_RECORD_COLS)
        return sub_df[sub_df["radiation"].isin(codes)][_RECORD_COLS]


class RemoteDecayService(DecayDataProvider):
    """
    Queries the IAEA LiveChart API, one request per radiation code.

    Every request is bounded by `timeout_s`. Failures are raised as
    DataUnavailable and not retried.
    """

    name = "remote"

    def __init__(self, *, url: str = IAEA_API_URL, timeout_s: float = DEFAULTS["timeout_s"]):
        self.url = url
        self.timeout_s = float(timeout_s)

    def _fetch_csv(self, nuclide: NuclideId, code: str) -> str:
        query = urlencode({"fields": "decay_rads", "nuclides": nuclide.iaea_name, "rad_types": code})
        req = Request(f"{self.url}?{query}", headers={"User-Agent": IAEA_USER_AGENT})
        try:
            with urlopen(req, timeout=self.timeout_s) as response:
                return response.read().decode("utf-8")
        except (URLError, OSError, HTTPException, UnicodeDecodeError) as e:
            raise DataUnavailable(f"IAEA query for {nuclide} ({code}) failed: {e!r}") from e

    def _parse_csv(self, text: str, nuclide: NuclideId) -> pd.DataFrame:
        # The API answers unknown nuclides with an empty body or a bare code
        if "energy" not in text:
            return pd.DataFrame(columns=_RECORD_COLS)
        try:
            df = pd.read_csv(io.StringIO(text))
        except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise DataUnavailable(f"Malformed IAEA response for {nuclide}: {e}") from e
        out = pd.DataFrame(
            {
                "parent_level_keV": df.get("p_energy"),
                "energy_keV": df.get("energy"),
                "intensity_pct": df.get("intensity"),
            },
            index=df.index,
        )
        return out.apply(pd.to_numeric, errors="coerce")

    def _records(self, nuclide: NuclideId, codes: Tuple[str, ...]) -> pd.DataFrame:
        frames = [self._parse_csv(self._fetch_csv(nuclide, code), nuclide) for code in codes]
        frames = [f for f in frames if not f.empty]
        if not frames:
            return pd.DataFrame(columns=_RECORD_COLS)
        return pd.concat(frames, ignore_index=True)


def make_provider(
    fetch: bool = False,
    *,
    table_path: Optional[Path] = None,
    timeout_s: float = DEFAULTS["timeout_s"],
) -> DecayDataProvider:
    """Pick the remote service when `fetch` is set, the local table otherwise."""
    if fetch:
        return RemoteDecayService(timeout_s=timeout_s)
    return LocalDecayTable.from_csv(Path(table_path or DEFAULTS["decay_table"]))
