import pytest

from roi_engines.display import (
    format_currency,
    format_number,
    format_payback,
    format_percent,
    format_result,
)
from roi_engines.estimator import evaluate


@pytest.mark.parametrize('value,expected', [
    (311205.68, '€311,206'),
    (0, '€0'),
    (-1234.4, '-€1,234'),
    (1_234_567.89, '€1,234,568'),
])
def test_format_currency(value, expected):
    assert format_currency(value) == expected


def test_format_currency_symbol():
    assert format_currency(-50, '$') == '-$50'


@pytest.mark.parametrize('fmt', [format_currency, format_number, format_percent, format_payback])
@pytest.mark.parametrize('value', [float('nan'), float('inf'), float('-inf'), None, 'x'])
def test_non_finite_is_placeholder(fmt, value):
    assert fmt(value) == '-'


def test_format_number():
    assert format_number(352800) == '352,800'
    assert format_number(52919.6) == '52,920'


def test_format_percent():
    assert format_percent(159.34) == '159%'
    assert format_percent(-100) == '-100%'


@pytest.mark.parametrize('months,expected', [(4.627, '4.6 months'), (0, '-'), (-3, '-'), (12, '12.0 months')])
def test_format_payback(months, expected):
    assert format_payback(months) == expected


def test_format_result(scenario_answers, config):
    display = format_result(evaluate(scenario_answers, config))
    assert display['headline'] == '€311,206'
    assert display['roi'] == '159%'
    assert display['payback'] == '4.6 months'
    assert display['investment'] == '€120,000'
    assert display['hoursSaved'] == '5,821'
    assert [line['label'] for line in display['breakdown']] == [
        'Handling time savings', 'QA and coaching savings', 'Contact reduction savings', 'Revenue protected']
    assert display['context']['Agents in scope'] == '40'
    assert display['context']['Baseline cost per contact'] == '€3'
