"""
Add-ons package for HVS mineral analysis.

Provides helper functions for:
- particle size distribution statistics (D10/D50/D90, D32, D43)
"""

from .psd import equivalent_diameters, particle_size_stats


__all__ = [
    "equivalent_diameters", "particle_size_stats",
]
