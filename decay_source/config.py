"""
Configuration defaults.

Edit values here if you reorganize the repository or want different
defaults. Every entry can be overridden from the command line.

License: MIT
"""

from pathlib import Path

PACKAGE_DIR = Path(__file__).resolve().parent

# Pre-built decay data table (IAEA chart of nuclides extract)
DECAY_TABLE_PATH = PACKAGE_DIR / "tables" / "decay_lines.csv"

# IAEA LiveChart of Nuclides API
IAEA_API_URL = "https://nds.iaea.org/relnsd/v1/data"
IAEA_USER_AGENT = "decay-source-builder/1.0"

DEFAULTS = {
    "radiation": "gamma",
    "sort": "energy",
    "steps": "all",
    "start_id": 100,
    "fetch": False,
    "output": "step",
    "timeout_s": 30.0,
    "decay_table": DECAY_TABLE_PATH,
}

# Relative tolerance on renormalized probability sums
NORMALIZATION_RTOL = 1e-9

KEV_TO_MEV = 1.0e-3
