"""
Particle-size statistics for particle records.

Computes equivalent-circle diameters and ISO 9276 style metrics:
  D10, D50, D90 (number),
  D32 (Sauter mean = Σd³/Σd²),
  D43 (De Brouckere mean = Σd⁴/Σd³),
  and basic descriptive stats.
"""

from __future__ import annotations
from typing import Dict, Iterable, Optional
import numpy as np


def equivalent_diameters(particles: Iterable, um_per_px: Optional[float] = None) -> np.ndarray:
    """Equivalent-circle diameter of each particle, in µm if a scale is given, else pixels."""
    area = np.array([p.area_px for p in particles], dtype=np.float64)
    d = 2.0 * np.sqrt(area / np.pi)
    if um_per_px and um_per_px > 0:
        d = d * um_per_px
    return d


def particle_size_stats(particles: Iterable, um_per_px: Optional[float] = None) -> Dict[str, float | int | str]:
    """Return number percentiles, descriptive stats and volume-weighted means."""
    d = equivalent_diameters(particles, um_per_px)
    out: Dict[str, float | int | str] = {
        "D10": 0.0, "D50": 0.0, "D90": 0.0,
        "D32": 0.0, "D43": 0.0,
        "mean": 0.0, "std": 0.0, "min": 0.0, "max": 0.0,
        "particles": int(d.size),
        "unit": "um" if um_per_px and um_per_px > 0 else "px",
    }
    if d.size == 0:
        return out

    d10, d50, d90 = np.percentile(d, [10, 50, 90])
    out.update(D10=float(d10), D50=float(d50), D90=float(d90))
    out["mean"] = float(np.mean(d))
    out["std"] = float(np.std(d))
    out["min"] = float(np.min(d))
    out["max"] = float(np.max(d))

    # Surface- and volume-weighted means
    s2, s3, s4 = (np.sum(d**k) for k in (2, 3, 4))
    out["D32"] = float(s3 / (s2 if s2 != 0 else 1.0))
    out["D43"] = float(s4 / (s3 if s3 != 0 else 1.0))
    return out
