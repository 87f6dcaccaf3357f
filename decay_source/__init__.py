"""
Decay Source Builder - Core Package

This package contains reusable, testable building blocks for:
- Reading FISPACT-II JSON inventories and selecting time steps
- Looking up decay lines (local IAEA table or the IAEA LiveChart API)
- Building activity-weighted composite spectra per step
- Building normalized, numbered source distributions for Monte-Carlo codes
- Exporting spectra and MCNP SDEF cards

The command line script in `scripts/generate_source.py` and the Streamlit
UI in `app.py` use this package as their backend.

License: MIT
"""

from .config import DEFAULTS
from .data import inventory_summary, load_inventory_json
from .distribution import SourceDistribution, build
from .errors import DataUnavailable, DecaySourceError, NormalizationError, ParseError
from .indices import resolve
from .nuclides import (
    CalculationStep,
    CompositeSpectrumEntry,
    DecayLine,
    NuclideId,
    RadiationType,
    SortKey,
)
from .pipeline import RunOptions, StepResult, process_step, run_steps
from .providers import DecayDataProvider, LocalDecayTable, RemoteDecayService, make_provider
from .spectrum import assemble, spectrum_to_dataframe

__all__ = [
    "DEFAULTS",
    "inventory_summary",
    "load_inventory_json",
    "SourceDistribution",
    "build",
    "DataUnavailable",
    "DecaySourceError",
    "NormalizationError",
    "ParseError",
    "resolve",
    "CalculationStep",
    "CompositeSpectrumEntry",
    "DecayLine",
    "NuclideId",
    "RadiationType",
    "SortKey",
    "RunOptions",
    "StepResult",
    "process_step",
    "run_steps",
    "DecayDataProvider",
    "LocalDecayTable",
    "RemoteDecayService",
    "make_provider",
    "assemble",
    "spectrum_to_dataframe",
]
