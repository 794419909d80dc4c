"""Compile resolved colour tables into renderer-agnostic style expressions.

The expression tree has three node kinds:

``Literal``
    a constant colour.
``FieldMatch``
    look a feature property up in a table of ``(value, colour)`` branches,
    falling back to another node when nothing matches.
``ConditionalMatch``
    evaluate a predicate and pick one of two subtrees.

Trees are built from sorted keys, so compiling the same index twice yields
equal trees regardless of the order the records were read in. ``to_mapbox``
translates a tree into the Mapbox GL expression grammar; ``evaluate`` runs it
directly against a feature's properties.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple, Union

from riskmap.records import RegionRiskIndex
from riskmap.resolver import DEFAULT_POLICY, ColorPolicy, ColorTables, RiskResolver
from riskmap.settings import COUNTRY_DEFAULT_COLOR, COUNTRY_FIELD, DISTRICT_FIELD, STATE_FIELD


@dataclass(frozen=True)
class Literal:
    color: str


@dataclass(frozen=True)
class HasEntry:
    field: str
    values: Tuple[str, ...]


@dataclass(frozen=True)
class FieldMatch:
    field: str
    branches: Tuple[Tuple[str, str], ...]
    fallback: 'StyleExpression'


@dataclass(frozen=True)
class ConditionalMatch:
    predicate: HasEntry
    then: 'StyleExpression'
    otherwise: 'StyleExpression'


StyleExpression = Union[Literal, FieldMatch, ConditionalMatch]


@dataclass(frozen=True)
class CompiledStyle:
    country: StyleExpression
    state: StyleExpression
    district: StyleExpression


def _branches(table: Mapping[str, str]) -> Tuple[Tuple[str, str], ...]:
    return tuple(sorted(table.items()))


def _guarded_level(field: str, table: Mapping[str, str], below: StyleExpression) -> StyleExpression:
    return ConditionalMatch(
        predicate=HasEntry(field, tuple(sorted(table))),
        then=FieldMatch(field, _branches(table), fallback=below),
        otherwise=below,
    )


def compile_country_level(tables: ColorTables) -> StyleExpression:
    return _guarded_level(COUNTRY_FIELD, tables.country, Literal(tables.unresolved))


def compile_state_expression(tables: ColorTables) -> StyleExpression:
    """Expression for the admin1 layer: state, then country, then unresolved."""
    return _guarded_level(STATE_FIELD, tables.state, compile_country_level(tables))


def compile_district_expression(tables: ColorTables) -> StyleExpression:
    """Expression for the admin2 layer: district, state, country, unresolved."""
    return _guarded_level(DISTRICT_FIELD, tables.district, compile_state_expression(tables))


def compile_country_expression(tables: ColorTables, default_color: str) -> StyleExpression:
    return FieldMatch(COUNTRY_FIELD, _branches(tables.country), fallback=Literal(default_color))


def compile_style(
    index: RegionRiskIndex,
    policy: ColorPolicy = DEFAULT_POLICY,
    country_default: Optional[str] = None,
) -> CompiledStyle:
    tables = RiskResolver(index, policy).color_tables()
    if country_default is None:
        country_default = COUNTRY_DEFAULT_COLOR or policy.color_of(1)
    return CompiledStyle(
        country=compile_country_expression(tables, country_default),
        state=compile_state_expression(tables),
        district=compile_district_expression(tables),
    )


def evaluate(node: StyleExpression, properties: Mapping[str, Any]) -> str:
    while True:
        if isinstance(node, Literal):
            return node.color
        if isinstance(node, FieldMatch):
            value = properties.get(node.field)
            for branch_value, color in node.branches:
                if value == branch_value:
                    return color
            node = node.fallback
        elif isinstance(node, ConditionalMatch):
            matched = properties.get(node.predicate.field) in node.predicate.values
            node = node.then if matched else node.otherwise
        else:
            raise TypeError(f"Unknown expression node: {node!r}")


def _predicate_to_mapbox(predicate: HasEntry) -> List:
    return ['in', ['get', predicate.field], ['literal', list(predicate.values)]]


def to_mapbox(node: StyleExpression) -> Union[str, List]:
    if isinstance(node, Literal):
        return node.color
    if isinstance(node, FieldMatch):
        fallback = to_mapbox(node.fallback)
        if not node.branches:
            # "match" needs at least one label/output pair
            return fallback
        expression: List = ['match', ['get', node.field]]
        for value, color in node.branches:
            expression.extend([value, color])
        expression.append(fallback)
        return expression
    if isinstance(node, ConditionalMatch):
        if not node.predicate.values:
            return to_mapbox(node.otherwise)
        return ['case', _predicate_to_mapbox(node.predicate), to_mapbox(node.then), to_mapbox(node.otherwise)]
    raise TypeError(f"Unknown expression node: {node!r}")

