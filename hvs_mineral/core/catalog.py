"""
Material catalog.

Immutable, priority-ordered list of material descriptors (HSV ranges,
optional hue wrap-around, priority weight). Built once from an in-memory
list of already-parsed descriptors; malformed entries are skipped.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Iterable, Iterator, Mapping, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


class MaterialKind(IntEnum):
    """Material family of a catalog entry. NONE marks background/indeterminate pixels."""

    NONE = 0
    METAL = 1
    CRYSTAL = 2
    GEM = 3

    @classmethod
    def parse(cls, value: Any) -> "MaterialKind":
        if isinstance(value, MaterialKind):
            return value
        key = str(value).strip().lower()
        aliases = {
            "metal": cls.METAL, "metals": cls.METAL, "metais": cls.METAL,
            "crystal": cls.CRYSTAL, "crystals": cls.CRYSTAL, "cristais": cls.CRYSTAL,
            "gem": cls.GEM, "gems": cls.GEM, "gemas": cls.GEM,
        }
        if key not in aliases:
            raise ValueError(f"Unknown material kind: {value!r}")
        return aliases[key]


@dataclass(frozen=True)
class MaterialRange:
    """Catalog entry: HSV acceptance ranges for one material."""

    id: str
    name: str
    group: str
    kind: MaterialKind
    hue: Tuple[float, float]          # degrees; min > max when the range wraps through 0°
    saturation: Tuple[float, float]   # 0..1
    value: Tuple[float, float]        # 0..1
    hue_wrap: bool = False
    priority: float = 1.0

    @property
    def hue_mid(self) -> float:
        lo, hi = self.hue
        if not self.hue_wrap:
            return (lo + hi) / 2.0
        return (lo + self.hue_half_span) % 360.0

    @property
    def hue_half_span(self) -> float:
        lo, hi = self.hue
        span = (hi - lo) if not self.hue_wrap else (360.0 - lo) + hi
        half = span / 2.0
        return half if half > 0 else 1.0

    def contains_hue(self, h: float) -> bool:
        lo, hi = self.hue
        if self.hue_wrap:
            return h >= lo or h <= hi
        return lo <= h <= hi


class MaterialCatalog(Sequence[MaterialRange]):
    """Read-only sequence of MaterialRange ordered by descending priority."""

    def __init__(self, entries: Iterable[MaterialRange] = ()):
        items = list(entries)
        # Stable: equal priorities keep their input order
        items.sort(key=lambda e: -e.priority)
        self._entries: Tuple[MaterialRange, ...] = tuple(items)
        self._index = {e.id.lower(): i for i, e in enumerate(self._entries)}

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, i):
        return self._entries[i]

    def __iter__(self) -> Iterator[MaterialRange]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"MaterialCatalog({[e.id for e in self._entries]})"

    def index_of(self, material_id: str) -> int:
        """Catalog index for an id (case-insensitive), -1 when absent."""
        return self._index.get(material_id.lower(), -1)

    def get(self, material_id: str) -> Optional[MaterialRange]:
        i = self.index_of(material_id)
        return self._entries[i] if i >= 0 else None

    def of_kind(self, kind: MaterialKind) -> Tuple[MaterialRange, ...]:
        return tuple(e for e in self._entries if e.kind == kind)

    def kind_codes(self):
        """Per-index MaterialKind codes as a tuple of ints."""
        return tuple(int(e.kind) for e in self._entries)


def _read_range(raw: Any, scale_if_percent: bool) -> Tuple[float, float]:
    lo, hi = raw
    lo, hi = float(lo), float(hi)
    if scale_if_percent and (lo > 1.0 or hi > 1.0):
        lo, hi = lo / 100.0, hi / 100.0
    return lo, hi


def material_from_mapping(m: Mapping[str, Any]) -> MaterialRange:
    """
    Build a MaterialRange from a plain mapping.

    Expected keys: id, kind, hue, saturation, value; optional name, group,
    hue_wrap, priority. Saturation/value given in percent are rescaled to
    0..1. A hue range whose min exceeds its max wraps through 0°.

    Raises:
        KeyError, TypeError, ValueError: if the mapping is incomplete or invalid.
    """
    mid = str(m["id"]).strip()
    if not mid:
        raise ValueError("empty material id")
    kind = MaterialKind.parse(m["kind"])
    if kind == MaterialKind.NONE:
        raise ValueError("material kind must be metal, crystal or gem")

    h = _read_range(m["hue"], scale_if_percent=False)
    s = _read_range(m["saturation"], scale_if_percent=True)
    v = _read_range(m["value"], scale_if_percent=True)
    if not (0.0 <= h[0] <= 360.0 and 0.0 <= h[1] <= 360.0):
        raise ValueError(f"hue range out of 0..360: {h}")
    for name, r in (("saturation", s), ("value", v)):
        if r[0] > r[1] or r[0] < 0.0 or r[1] > 1.0:
            raise ValueError(f"{name} range invalid: {r}")

    hue_wrap = bool(m.get("hue_wrap", False)) or h[0] > h[1]
    priority = float(m.get("priority", 1.0))
    if priority <= 0:
        raise ValueError(f"priority must be positive: {priority}")

    return MaterialRange(
        id=mid,
        name=str(m.get("name") or mid),
        group=str(m.get("group") or ""),
        kind=kind,
        hue=h,
        saturation=s,
        value=v,
        hue_wrap=hue_wrap,
        priority=priority,
    )


def build_catalog(entries: Iterable[Any]) -> MaterialCatalog:
    """
    Build a catalog from MaterialRange objects and/or descriptor mappings.

    Malformed entries and duplicate ids (case-insensitive, first one wins)
    are skipped with a warning; the catalog is simply shorter.
    """
    seen: dict[str, MaterialRange] = {}
    for raw in entries or ():
        try:
            entry = raw if isinstance(raw, MaterialRange) else material_from_mapping(raw)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed catalog entry %r: %s", raw, e)
            continue
        key = entry.id.lower()
        if key in seen:
            logger.warning("Skipping duplicate catalog id %r", entry.id)
            continue
        seen[key] = entry
    catalog = MaterialCatalog(seen.values())
    logger.debug("Catalog built with %d materials", len(catalog))
    return catalog


DEFAULT_MATERIALS: Tuple[dict, ...] = (
    # Metals
    {"id": "Au", "name": "Gold", "group": "noble", "kind": "metal",
     "hue": (35, 65), "saturation": (0.20, 0.70), "value": (0.35, 0.95), "priority": 1.0},
    {"id": "Ag", "name": "Silver", "group": "noble", "kind": "metal",
     "hue": (0, 360), "saturation": (0.0, 0.10), "value": (0.75, 1.0), "priority": 1.0},
    {"id": "Pt", "name": "Platinum", "group": "PGM", "kind": "metal",
     "hue": (0, 360), "saturation": (0.0, 0.15), "value": (0.40, 0.85), "priority": 1.0},
    {"id": "Pd", "name": "Palladium", "group": "PGM", "kind": "metal",
     "hue": (180, 300), "saturation": (0.0, 0.12), "value": (0.45, 0.90), "priority": 0.9},
    {"id": "Cu", "name": "Copper", "group": "base", "kind": "metal",
     "hue": (10, 35), "saturation": (0.40, 0.85), "value": (0.35, 0.85), "priority": 1.0},
    {"id": "Fe", "name": "Iron oxide", "group": "base", "kind": "metal",
     "hue": (15, 40), "saturation": (0.20, 0.50), "value": (0.15, 0.45), "priority": 0.8},
    # Crystals
    {"id": "SiO2", "name": "Quartz", "group": "silicate", "kind": "crystal",
     "hue": (0, 360), "saturation": (0.0, 0.08), "value": (0.85, 1.0), "priority": 0.9},
    {"id": "CaCO3", "name": "Calcite", "group": "carbonate", "kind": "crystal",
     "hue": (30, 60), "saturation": (0.03, 0.15), "value": (0.80, 1.0), "priority": 0.8},
    {"id": "CaF2", "name": "Fluorite", "group": "halide", "kind": "crystal",
     "hue": (260, 300), "saturation": (0.30, 0.90), "value": (0.30, 0.90), "priority": 0.8},
    # Gems
    {"id": "Ruby", "name": "Ruby", "group": "corundum", "kind": "gem",
     "hue": (345, 15), "saturation": (0.50, 1.0), "value": (0.25, 0.90), "priority": 0.9},
    {"id": "Sapphire", "name": "Sapphire", "group": "corundum", "kind": "gem",
     "hue": (200, 240), "saturation": (0.50, 1.0), "value": (0.25, 0.90), "priority": 0.9},
    {"id": "Emerald", "name": "Emerald", "group": "beryl", "kind": "gem",
     "hue": (120, 165), "saturation": (0.40, 1.0), "value": (0.25, 0.90), "priority": 0.9},
)


def default_catalog() -> MaterialCatalog:
    """Catalog built from the built-in representative descriptor list."""
    return build_catalog(DEFAULT_MATERIALS)
