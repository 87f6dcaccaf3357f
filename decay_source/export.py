"""
Export helpers for composite spectra and source distributions.

Every exporter renders to bytes in memory so the caller can write a
complete artifact in one go (or offer it as a download in the UI).

- text table (.txt)
- JSON (.json)
- CSV (.csv)
- static PNG plot (.png)
- MCNP SDEF distribution cards (.i)

License: MIT
"""

from __future__ import annotations

import json
import textwrap
from io import BytesIO
from typing import Dict, List, Optional, Sequence

import matplotlib.pyplot as plt
import pandas as pd

from .config import KEV_TO_MEV
from .distribution import SourceDistribution
from .nuclides import CompositeSpectrumEntry

MCNP_WIDTH = 80
MCNP_INDENT = " " * 8
_RULE = "-" * 58


def spectrum_to_csv_bytes(df: pd.DataFrame) -> bytes:
    """Serialize spectrum DataFrame to UTF-8 CSV bytes."""
    return df.to_csv(index=False).encode("utf-8")


def _format_energy(energy: float) -> str:
    if energy >= 10.0:
        return f"{energy:.2f}"
    if energy >= 0.001:
        return f"{energy:.3f}"
    return f"{energy:.2e}"


def _format_intensity(percent: float) -> str:
    if percent >= 100.0:
        return f"{percent:.1f}"
    if percent >= 10.0:
        return f"{percent:.2f}"
    if percent >= 0.001:
        return f"{percent:.3f}"
    return f"{percent:.2e}"


def _nuclide_header(name: str, rows: pd.DataFrame) -> str:
    n = len(rows)
    per_decay = float(rows["Intensity"].sum())
    return (
        f" {name} [A = {rows['Activity_Bq'].iloc[0]:.5e} Bq, "
        f"{n} line{'s' if n != 1 else ''}, {per_decay:.5e} per decay]"
    )


def spectrum_to_text_bytes(df: pd.DataFrame, *, title: str = "") -> bytes:
    """
    Render the spectrum as a fixed-width text table.

    Lines are grouped under one header per parent nuclide (activity, line
    count and particles per decay). Nuclides appear in order of their first
    line, and lines keep the DataFrame order within each group. Intensities
    are shown in percent, emission rates in particles per second.
    """
    lines = []
    if title:
        lines.append(title)
    lines.append(_RULE)
    lines.append("  Energy [keV]  Intensity [%]   Emission [1/s]")
    lines.append(_RULE)
    for name, rows in df.groupby("Nuclide", sort=False):
        lines.append("")
        lines.append(_nuclide_header(name, rows))
        for row in rows.itertuples(index=False):
            lines.append(
                f"  {_format_energy(row.Energy_keV):>12}"
                f"  {_format_intensity(row.Intensity * 100.0):>13}"
                f"   {row.Emission_rate:>14.5e}"
            )
    if df.empty:
        lines.append("  (no decay lines)")
    return ("\n".join(lines) + "\n").encode("utf-8")


def _group_records(entries: Sequence[CompositeSpectrumEntry]) -> List[Dict]:
    records: Dict = {}
    for e in entries:
        rec = records.get(e.nuclide)
        if rec is None:
            rec = records[e.nuclide] = {
                "name": e.nuclide.name,
                "z": e.nuclide.z,
                "a": e.nuclide.a,
                "state": e.nuclide.state,
                "activity": e.activity,
                "energy": [],
                "intensity": [],
            }
        rec["energy"].append(e.line.energy_keV)
        rec["intensity"].append(e.line.intensity)
    return [records[k] for k in sorted(records)]


def spectrum_to_json_bytes(
    entries: Sequence[CompositeSpectrumEntry],
    *,
    step_index: Optional[int] = None,
    radiation: Optional[str] = None,
) -> bytes:
    """Serialize the spectrum grouped per nuclide (energies keV, intensities fraction)."""
    doc = {
        "step": step_index,
        "radiation": radiation,
        "nuclides": _group_records(entries),
    }
    return json.dumps(doc, indent=2).encode("utf-8")


def spectrum_to_png_bytes(
    df: pd.DataFrame,
    *,
    title: str,
    x_label: str = "Energy (keV)",
    y_label: str = "Emission rate (particles/s)",
    signature: str = "",
    dpi: int = 150,
) -> bytes:
    """Render the line spectrum (emission rate per line) to PNG bytes."""
    fig, ax = plt.subplots()
    if not df.empty:
        ax.vlines(df["Energy_keV"], 0.0, df["Emission_rate"])
        ax.set_yscale("log")
    ax.set_xlabel(x_label)
    ax.set_ylabel(y_label)
    ax.set_title(title)

    if signature:
        ax.text(
            0.99,
            0.01,
            signature,
            transform=ax.transAxes,
            ha="right",
            va="bottom",
            fontsize=8,
        )

    fig.tight_layout()
    buf = BytesIO()
    fig.savefig(buf, format="png", dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    buf.seek(0)
    return buf.read()


def _sci(x: float) -> str:
    return f"{x:.5e}"


def _wrap(card: str) -> str:
    """Wrap a card to MCNP line width with 8-space continuation lines."""
    return textwrap.fill(
        card,
        width=MCNP_WIDTH,
        subsequent_indent=MCNP_INDENT,
        break_long_words=False,
        break_on_hyphens=False,
    )


def distribution_to_mcnp_text(distribution: SourceDistribution) -> str:
    """
    MCNP SDEF distribution cards.

    One sc/si/sp block per nuclide (si in MeV, sp renormalized), followed by
    the selector block (si S <ids>, sp activity fractions).
    """
    blocks = []
    for law in distribution.nuclides:
        energies = " ".join(_sci(e * KEV_TO_MEV) for e in law.energies_keV)
        probs = " ".join(_sci(p) for p in law.probabilities)
        blocks.append(
            "\n".join(
                [
                    f"sc{law.id:<5} {law.nuclide.name} decay data, "
                    f"norm = {_sci(law.yield_per_decay)} particles/decay",
                    _wrap(f"si{law.id} L {energies}"),
                    _wrap(f"sp{law.id:<5} {probs}"),
                    "c",
                ]
            )
        )

    sel = distribution.selector
    comments = [
        f"c {law.nuclide.name:<8} {_sci(law.activity)} Bq x "
        f"{_sci(law.yield_per_decay)} particles/decay -> si{law.id}"
        for law in distribution.nuclides
    ]
    blocks.append(
        "\n".join(
            [
                f"sc{sel.id:<5} Nuclide selection ({_sci(distribution.total_activity)} Bq, "
                f"{_sci(distribution.particles_per_decay)} particles/decay)",
                *comments,
                _wrap(f"si{sel.id} S " + " ".join(str(law.id) for law in distribution.nuclides)),
                _wrap(f"sp{sel.id:<5} " + " ".join(_sci(w) for w in sel.weights)),
                "c",
            ]
        )
    )
    return "\n".join(blocks) + "\n"


def distribution_to_mcnp_bytes(distribution: SourceDistribution) -> bytes:
    return distribution_to_mcnp_text(distribution).encode("utf-8")
