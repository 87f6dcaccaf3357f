"""
Value types shared by the decay source pipeline.

- NuclideId: (Z, A, metastable state), the join key against decay data
- DecayLine: one emission (energy in keV, intensity as a fraction per decay)
- RadiationType / SortKey: user-selectable enumerations
- CalculationStep: one time step of an activation inventory
- CompositeSpectrumEntry: one decay line weighted by its nuclide's activity

License: MIT
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

import periodictable

# FISPACT writes isomers as m, n, o...; IAEA as m1, m2, m3...
_STATE_LETTERS = "mno"
_NAME_RE = re.compile(r"^([A-Za-z]{1,2})-?(\d+)(m\d?|n|o)?$")


@dataclass(frozen=True, order=True)
class NuclideId:
    """Nuclide identity, ordered by (z, a, state)."""
    z: int
    a: int
    state: int = 0

    @property
    def symbol(self) -> str:
        return periodictable.elements[self.z].symbol

    @property
    def name(self) -> str:
        """FISPACT-style name, e.g. 'Co60', 'Tc99m', 'Ag110n'."""
        return f"{self.symbol}{self.a}{state_suffix(self.state)}"

    @property
    def iaea_name(self) -> str:
        """Lower-case mass-first name used by the IAEA API, e.g. '60co'."""
        return f"{self.a}{self.symbol.lower()}"

    def __str__(self) -> str:
        return self.name


def state_suffix(state: int) -> str:
    """Suffix for a metastable state (0 -> '', 1 -> 'm', 2 -> 'n', ...)."""
    if state <= 0:
        return ""
    if state <= len(_STATE_LETTERS):
        return _STATE_LETTERS[state - 1]
    return f"m{state}"


def parse_state(text: Optional[str]) -> int:
    """Parse a metastable marker ('', 'm', 'n', 'm2', ...) into an integer."""
    s = (text or "").strip().lower()
    if not s:
        return 0
    if s in _STATE_LETTERS:
        return _STATE_LETTERS.index(s) + 1
    if s.startswith("m") and s[1:].isdigit():
        return int(s[1:])
    raise ValueError(f"Unknown metastable state '{text}'")


def element_number(symbol: str) -> int:
    """Proton count for an element symbol (case-insensitive)."""
    sym = symbol.strip().capitalize()
    try:
        return periodictable.elements.symbol(sym).number
    except ValueError:
        raise ValueError(f"Unknown element symbol '{symbol}'") from None


def parse_nuclide(name: str) -> NuclideId:
    """
    Parse a nuclide name into a NuclideId.

    Accepts 'Co60', 'Co-60', 'co60', 'Tc99m', 'Tc-99m1', 'Ag110n'.
    """
    match = _NAME_RE.match(name.strip())
    if not match:
        raise ValueError(f"Cannot parse nuclide name '{name}'")
    return NuclideId(
        z=element_number(match.group(1)),
        a=int(match.group(2)),
        state=parse_state(match.group(3)),
    )


class RadiationType(str, Enum):
    ALPHA = "alpha"
    BETA_PLUS = "beta-plus"
    BETA_MINUS = "beta-minus"
    GAMMA = "gamma"
    ELECTRON = "electron"
    XRAY = "x-ray"

    @property
    def codes(self) -> Tuple[str, ...]:
        """
        IAEA decay radiation codes making up this type.

        Gamma is the union of gamma and x-ray photons, so x-ray is a strict
        subset of gamma. Pure gamma has to be obtained by subtracting x-ray.
        """
        return _RAD_CODES[self]


_RAD_CODES = {
    RadiationType.ALPHA: ("a",),
    RadiationType.BETA_PLUS: ("bp",),
    RadiationType.BETA_MINUS: ("bm",),
    RadiationType.GAMMA: ("g", "x"),
    RadiationType.ELECTRON: ("e",),
    RadiationType.XRAY: ("x",),
}

_RAD_ALIASES = {
    "a": RadiationType.ALPHA,
    "alpha": RadiationType.ALPHA,
    "bp": RadiationType.BETA_PLUS,
    "beta+": RadiationType.BETA_PLUS,
    "beta-plus": RadiationType.BETA_PLUS,
    "betaplus": RadiationType.BETA_PLUS,
    "bm": RadiationType.BETA_MINUS,
    "beta-": RadiationType.BETA_MINUS,
    "beta-minus": RadiationType.BETA_MINUS,
    "betaminus": RadiationType.BETA_MINUS,
    "g": RadiationType.GAMMA,
    "gamma": RadiationType.GAMMA,
    "e": RadiationType.ELECTRON,
    "electron": RadiationType.ELECTRON,
    "x": RadiationType.XRAY,
    "xray": RadiationType.XRAY,
    "x-ray": RadiationType.XRAY,
}


def parse_radiation(value: Optional[str]) -> RadiationType:
    """Parse a radiation type name or alias (default gamma)."""
    v = (value or "gamma").strip().lower().replace("_", "-")
    if v in _RAD_ALIASES:
        return _RAD_ALIASES[v]
    raise ValueError(
        f"Unknown radiation type '{value}' "
        "(use alpha, beta-plus, beta-minus, gamma, electron, x-ray)."
    )


class SortKey(str, Enum):
    ENERGY = "energy"
    INTENSITY = "intensity"


def parse_sort(value: Optional[str]) -> SortKey:
    """Parse a sort key string into SortKey (default energy)."""
    v = (value or "energy").strip().lower()
    if v in ("e", "energy"):
        return SortKey.ENERGY
    if v in ("i", "intensity"):
        return SortKey.INTENSITY
    raise ValueError(f"Unknown sort key '{value}' (use energy, intensity).")


@dataclass(frozen=True)
class DecayLine:
    """One discrete emission: energy in keV, intensity as a fraction per decay."""
    energy_keV: float
    intensity: float


@dataclass(frozen=True)
class CalculationStep:
    """One time step of an activation calculation (read-only)."""
    index: int
    activities: Dict[NuclideId, float]
    label: str = ""
    irradiation_time_s: float = 0.0
    cooling_time_s: float = 0.0
    mass_g: float = 0.0
    dose_rate_Sv_h: float = 0.0
    total_activity_Bq: Optional[float] = None


@dataclass(frozen=True)
class CompositeSpectrumEntry:
    nuclide: NuclideId
    line: DecayLine
    activity: float = field(default=0.0)

    @property
    def emission_rate(self) -> float:
        """Particles per second from this line (activity x intensity)."""
        return self.activity * self.line.intensity
