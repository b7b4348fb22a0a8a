"""
Material-specific heuristic corrections.

Each rule is a (predicate, multiplier) pair: when the predicate reports a
violation of the material's known optical signature for a pixel, that
material's score is multiplied by the rule's penalty. Rules are grouped
into families (gold-like, copper-like, platinum-group, silver-like) and
families are matched to catalog entries by material id.

Predicates are vectorised: they receive float64 arrays of R, G, B (0..255)
and H (degrees), S, V (0..1) and return a boolean "violated" array.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple
import numpy as np

Predicate = Callable[..., np.ndarray]

GOLD_HUE_BAND = (35.0, 75.0)


@dataclass(frozen=True)
class HeuristicRule:
    """One penalty: multiply the score by `multiplier` where `violated` is True."""

    name: str
    violated: Predicate
    multiplier: float

    def factor(self, r, g, b, h, s, v) -> np.ndarray:
        return np.where(self.violated(r, g, b, h, s, v), self.multiplier, 1.0)


def _spread(r, g, b):
    return np.maximum(np.maximum(r, g), b) - np.minimum(np.minimum(r, g), b)


def _in_gold_band(h):
    return (h >= GOLD_HUE_BAND[0]) & (h <= GOLD_HUE_BAND[1])


GOLD_RULES: Tuple[HeuristicRule, ...] = (
    HeuristicRule(
        "warm_channels",
        lambda r, g, b, h, s, v: ~((r >= 1.2 * b) & (g >= 1.1 * b) & ((r + g) / 2.0 > b + 10.0)),
        0.30,
    ),
    HeuristicRule("balanced_red_green", lambda r, g, b, h, s, v: np.abs(r - g) > 60.0, 0.50),
    HeuristicRule(
        "min_brightness",
        lambda r, g, b, h, s, v: (v < 0.25) | ((r < 100.0) & (g < 80.0)),
        0.40,
    ),
    HeuristicRule("min_saturation", lambda r, g, b, h, s, v: s < 0.15, 0.35),
    HeuristicRule("warm_hue", lambda r, g, b, h, s, v: ~_in_gold_band(h), 0.25),
)

COPPER_RULES: Tuple[HeuristicRule, ...] = (
    HeuristicRule(
        "red_dominant",
        lambda r, g, b, h, s, v: ~((r > 1.15 * g) & (r > 1.3 * b)),
        0.40,
    ),
)

PLATINUM_GROUP_RULES: Tuple[HeuristicRule, ...] = (
    HeuristicRule("neutral_spread", lambda r, g, b, h, s, v: _spread(r, g, b) > 40.0, 0.30),
    HeuristicRule(
        "not_gold_band",
        lambda r, g, b, h, s, v: _in_gold_band(h) & (s > 0.15),
        0.15,
    ),
)

SILVER_RULES: Tuple[HeuristicRule, ...] = (
    HeuristicRule("very_bright", lambda r, g, b, h, s, v: v < 0.75, 0.50),
    HeuristicRule("very_unsaturated", lambda r, g, b, h, s, v: s > 0.12, 0.40),
    HeuristicRule("neutral_spread", lambda r, g, b, h, s, v: _spread(r, g, b) > 30.0, 0.60),
)

RULE_FAMILIES: Dict[str, Tuple[HeuristicRule, ...]] = {
    "gold": GOLD_RULES,
    "copper": COPPER_RULES,
    "platinum_group": PLATINUM_GROUP_RULES,
    "silver": SILVER_RULES,
}

FAMILY_BY_ID: Dict[str, str] = {
    "au": "gold", "gold": "gold", "ouro": "gold",
    "cu": "copper", "copper": "copper", "cobre": "copper",
    "pt": "platinum_group", "pd": "platinum_group", "rh": "platinum_group",
    "ir": "platinum_group", "ru": "platinum_group", "os": "platinum_group",
    "pgm": "platinum_group", "platinum": "platinum_group",
    "ag": "silver", "silver": "silver", "prata": "silver",
}


def rules_for(material_id: str) -> Tuple[HeuristicRule, ...]:
    """Heuristic rules that apply to a material id (empty when undocumented)."""
    family: Optional[str] = FAMILY_BY_ID.get(material_id.strip().lower())
    return RULE_FAMILIES.get(family, ()) if family else ()


def heuristic_factor(material_id: str, r, g, b, h, s, v) -> np.ndarray:
    """Product of all penalty multipliers that fire for each pixel."""
    out = np.ones(np.shape(h), dtype=np.float64)
    for rule in rules_for(material_id):
        out *= rule.factor(r, g, b, h, s, v)
    return out
