import itertools
import random

from riskmap.expressions import (
    ConditionalMatch,
    FieldMatch,
    HasEntry,
    Literal,
    compile_style,
    evaluate,
    to_mapbox,
)
from riskmap.records import RegionRiskIndex, RiskRecord, classify_records
from riskmap.resolver import GRAY, GREEN, ORANGE, RED, YELLOW, RiskResolver
from riskmap.settings import COUNTRY_FIELD, DISTRICT_FIELD, STATE_FIELD

RECORDS = [
    RiskRecord(risk_level=2, country_code='EGY'),
    RiskRecord(risk_level=1, country_code='TZA'),
    RiskRecord(risk_level=3, country_code='KEN', elevation_min=1500),
    RiskRecord(risk_level=3, country_code='KEN', state_code='KEN.1_1'),
    RiskRecord(risk_level=4, country_code='KEN', state_code='KEN.1_1', district_code='KEN.1.2_1'),
    RiskRecord(risk_level=2, country_code='NGA', state_code='NGA.5_1'),
    RiskRecord(risk_level=4, country_code='NGA', state_code='NGA.5_1', district_code='NGA.5.3_1'),
]


def _index(records):
    index, _ = classify_records(records)
    return index


def test_compile_is_independent_of_record_order():
    shuffled = list(RECORDS)
    random.Random(7).shuffle(shuffled)

    assert compile_style(_index(RECORDS)) == compile_style(_index(shuffled))
    assert to_mapbox(compile_style(_index(RECORDS)).district) == to_mapbox(compile_style(_index(shuffled)).district)


def test_district_expression_matches_resolver_for_every_code_combination():
    index = _index(RECORDS)
    compiled = compile_style(index)
    resolver = RiskResolver(index)
    districts = [None, 'KEN.1.2_1', 'NGA.5.3_1', 'KEN.1.7_1']
    states = [None, 'KEN.1_1', 'NGA.5_1', 'KEN.4_1']
    countries = [None, 'EGY', 'TZA', 'KEN', 'NGA', 'LBY']

    for district, state, country in itertools.product(districts, states, countries):
        properties = {DISTRICT_FIELD: district, STATE_FIELD: state, COUNTRY_FIELD: country}
        assert evaluate(compiled.district, properties) == resolver.resolve_color(district, state, country)
        assert evaluate(compiled.state, properties) == resolver.resolve_color(None, state, country)


def test_district_expression_shape():
    index = RegionRiskIndex.from_dicts(country={'EGY': 2}, state={'EGY.1_1': 3}, district={'EGY.1.1_1': 4})

    compiled = compile_style(index)

    country_level = ConditionalMatch(
        HasEntry(COUNTRY_FIELD, ('EGY',)),
        FieldMatch(COUNTRY_FIELD, (('EGY', YELLOW),), Literal(GRAY)),
        Literal(GRAY),
    )
    state_level = ConditionalMatch(
        HasEntry(STATE_FIELD, ('EGY.1_1',)),
        FieldMatch(STATE_FIELD, (('EGY.1_1', ORANGE),), country_level),
        country_level,
    )
    assert compiled.state == state_level
    assert compiled.district == ConditionalMatch(
        HasEntry(DISTRICT_FIELD, ('EGY.1.1_1',)),
        FieldMatch(DISTRICT_FIELD, (('EGY.1.1_1', RED),), state_level),
        state_level,
    )


def test_country_expression_defaults_to_level_one_color():
    compiled = compile_style(_index(RECORDS))

    assert compiled.country == FieldMatch(COUNTRY_FIELD, (('EGY', YELLOW), ('TZA', GREEN)), Literal(GREEN))
    assert evaluate(compiled.country, {COUNTRY_FIELD: 'LBY'}) == GREEN


def test_country_default_can_be_overridden():
    compiled = compile_style(_index(RECORDS), country_default=GRAY)

    assert evaluate(compiled.country, {COUNTRY_FIELD: 'LBY'}) == GRAY
    assert evaluate(compiled.country, {COUNTRY_FIELD: 'EGY'}) == YELLOW


def test_to_mapbox_emits_match_and_case_expressions():
    index = RegionRiskIndex.from_dicts(country={'TZA': 1, 'EGY': 2}, state={'EGY.1_1': 3})
    compiled = compile_style(index)

    country_level = [
        'case',
        ['in', ['get', COUNTRY_FIELD], ['literal', ['EGY', 'TZA']]],
        ['match', ['get', COUNTRY_FIELD], 'EGY', YELLOW, 'TZA', GREEN, GRAY],
        GRAY,
    ]
    assert to_mapbox(compiled.country) == ['match', ['get', COUNTRY_FIELD], 'EGY', YELLOW, 'TZA', GREEN, GREEN]
    assert to_mapbox(compiled.state) == [
        'case',
        ['in', ['get', STATE_FIELD], ['literal', ['EGY.1_1']]],
        ['match', ['get', STATE_FIELD], 'EGY.1_1', ORANGE, country_level],
        country_level,
    ]
    # no district entries: the district level collapses onto the state expression
    assert to_mapbox(compiled.district) == to_mapbox(compiled.state)


def test_empty_index_compiles_to_unresolved_literal():
    compiled = compile_style(RegionRiskIndex.from_dicts())

    assert to_mapbox(compiled.district) == GRAY
    assert to_mapbox(compiled.state) == GRAY
    assert to_mapbox(compiled.country) == GREEN
    assert evaluate(compiled.district, {}) == GRAY
