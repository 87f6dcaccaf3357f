"""
Sampling utilities.

Draws source particle energies the way a transport code samples an SDEF
built from a SourceDistribution: first a nuclide from the selector law,
then an energy from that nuclide's law.

License: MIT
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from .distribution import SourceDistribution


def sample_energies(
    distribution: SourceDistribution,
    n: int,
    *,
    seed: Optional[int] = None,
) -> np.ndarray:
    """
    Sample n energies (keV) from the distribution WITH replacement.

    Returns a NumPy array of dtype float.
    """
    if n <= 0:
        return np.array([], dtype=float)

    rng = np.random.default_rng(seed)
    laws = distribution.nuclides
    picks = rng.choice(len(laws), size=n, p=np.asarray(distribution.selector.weights))

    out = np.empty(n, dtype=float)
    for k, law in enumerate(laws):
        mask = picks == k
        count = int(mask.sum())
        if count:
            out[mask] = rng.choice(
                np.asarray(law.energies_keV), size=count, p=np.asarray(law.probabilities)
            )
    return out
