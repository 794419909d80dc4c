"""Risk colour policy and the district > state > country fallback resolver."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from riskmap.records import RISK_LEVELS, RegionRiskIndex

GREEN = '#00ff00'
YELLOW = '#ffff00'
ORANGE = '#ffa500'
RED = '#ff0000'
GRAY = '#cccccc'

RISK_LABELS = {
    1: 'No known risk',
    2: 'Low risk',
    3: 'Moderate risk',
    4: 'High risk',
}
UNRESOLVED_LABEL = 'No data'


@dataclass(frozen=True)
class ColorPolicy:
    level_colors: Tuple[str, str, str, str] = (GREEN, YELLOW, ORANGE, RED)
    unresolved_color: str = GRAY

    def color_of(self, level: int) -> str:
        if level not in RISK_LEVELS:
            raise ValueError(f"Risk level must be one of {RISK_LEVELS}, got {level!r}")
        return self.level_colors[level - 1]

    def legend(self) -> List[Dict]:
        entries = [
            {'level': level, 'label': RISK_LABELS[level], 'color': self.color_of(level)}
            for level in reversed(RISK_LEVELS)
        ]
        entries.append({'level': None, 'label': UNRESOLVED_LABEL, 'color': self.unresolved_color})
        return entries


DEFAULT_POLICY = ColorPolicy()


@dataclass(frozen=True)
class ColorTables:
    """Code to colour per level, as handed to the expression compiler."""

    country: Dict[str, str] = field(default_factory=dict)
    state: Dict[str, str] = field(default_factory=dict)
    district: Dict[str, str] = field(default_factory=dict)
    unresolved: str = GRAY


class RiskResolver:
    def __init__(self, index: RegionRiskIndex, policy: ColorPolicy = DEFAULT_POLICY):
        self.index = index
        self.policy = policy

    def resolve_color(
        self,
        district_code: Optional[str] = None,
        state_code: Optional[str] = None,
        country_code: Optional[str] = None,
    ) -> str:
        for code, table in (
            (district_code, self.index.district),
            (state_code, self.index.state),
            (country_code, self.index.country),
        ):
            if code and code in table:
                return self.policy.color_of(table[code])
        return self.policy.unresolved_color

    def color_tables(self) -> ColorTables:
        def _colors(table) -> Dict[str, str]:
            return {code: self.policy.color_of(level) for code, level in table.items()}

        return ColorTables(
            country=_colors(self.index.country),
            state=_colors(self.index.state),
            district=_colors(self.index.district),
            unresolved=self.policy.unresolved_color,
        )
