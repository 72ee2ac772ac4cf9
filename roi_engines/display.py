"""
Support ROI Navigator: Display Formatters
Turns an ROI result into the strings the results panel shows.
Non-finite values always render as "-".
"""
import math

PLACEHOLDER = '-'


def _is_finite(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def format_currency(value, symbol='€'):
    if not _is_finite(value):
        return PLACEHOLDER
    sign = '-' if value < 0 else ''
    return f"{sign}{symbol}{abs(value):,.0f}"


def format_number(value):
    if not _is_finite(value):
        return PLACEHOLDER
    return f"{value:,.0f}"


def format_percent(value):
    if not _is_finite(value):
        return PLACEHOLDER
    return f"{value:.0f}%"


def format_payback(months):
    """0 is the engine's "no payback" sentinel, so it shows as a dash, never as 0 months."""
    if not _is_finite(months) or months <= 0:
        return PLACEHOLDER
    return f"{months:.1f} months"


def format_result(result, symbol='€'):
    """Map an evaluate() result to labelled display strings."""
    return {
        'headline': format_currency(result['totalAnnualBenefit'], symbol),
        'netGain': format_currency(result['netGain'], symbol),
        'roi': format_percent(result['roiPercent']),
        'payback': format_payback(result['paybackMonths']),
        'hoursSaved': format_number(result['totalHoursSaved']),
        'investment': format_currency(result['resolvedAnnualInvestmentCost'], symbol),
        'breakdown': [
            {'label': line['label'], 'value': format_currency(line['value'], symbol)}
            for line in result.get('breakdown', [])
        ],
        'context': {
            'Agents in scope': format_number(result['numAgents']),
            'Contacts per year': format_number(result['contactsPerYear']),
            'Baseline cost per contact': format_currency(result['costPerContactBaseline'], symbol),
            'Contacts avoided per year': format_number(result['contactsAvoidedPerYear']),
        },
    }
