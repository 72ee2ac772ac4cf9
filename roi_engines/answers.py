"""
Support ROI Navigator: Wizard Answers
The answer record collected by the questionnaire, plus lenient numeric parsing
at the input boundary so nothing non-finite ever reaches the engine.
"""
import math
import re

PRIORITY_FLAGS = ('handlingTime', 'qaWorkload', 'contactDeflection', 'customerExperience')

# Direct numeric overrides; None means "not supplied, use the band".
NUMERIC_FIELDS = ('numAgents', 'costPerAgent', 'contactsPerMonth', 'ahtMinutes',
                  'annualRevenueInfluenced', 'customInvestmentCost')

BAND_FIELDS = ('teamSizeBand', 'costPerAgentBand', 'contactVolumeBand', 'automationLevel',
               'revenueBand', 'revenueImpactType', 'rolloutScope')

INVESTMENT_MODES = ('derived', 'custom')

_LEADING_NUMBER = re.compile(r'^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?')
_STRIP_CHARS = re.compile(r'[\s,€$£¥_]')


def default_answers():
    """Answer record the wizard opens with."""
    return {
        'teamSizeBand': '26-50',
        'numAgents': None,
        'costPerAgentBand': 'western-europe',
        'costPerAgent': None,
        'contactVolumeBand': '30-40',
        'contactsPerMonth': None,
        'complexityLevel': 3,
        'ahtMinutes': None,
        'automationLevel': 'medium',
        'priorities': {
            'handlingTime': True,
            'qaWorkload': True,
            'contactDeflection': True,
            'customerExperience': False,
        },
        'includeRevenue': False,
        'revenueBand': 'unknown',
        'revenueImpactType': None,
        'annualRevenueInfluenced': None,
        'rolloutScope': 'single',
        'investmentMode': 'derived',
        'customInvestmentCost': None,
    }


ANSWER_FIELDS = tuple(default_answers())


def parse_number(raw):
    """Parse free-text numeric entry leniently: anything unusable becomes 0.0.

    Accepts grouped thousands and a leading currency symbol ("€45,000"), and like
    a browser's parseFloat keeps the numeric prefix of trailing junk ("12 mins").
    """
    if raw is None or isinstance(raw, bool):
        return 0.0
    if isinstance(raw, (int, float)):
        try:
            value = float(raw)
        except OverflowError:
            return 0.0
    else:
        text = _STRIP_CHARS.sub('', str(raw))
        m = _LEADING_NUMBER.match(text)
        if not m:
            return 0.0
        try:
            value = float(m.group(0))
        except (ValueError, OverflowError):
            return 0.0
    return value if math.isfinite(value) else 0.0


def clean_number(raw):
    return max(0.0, parse_number(raw))


def clamp_complexity(raw):
    level = round(parse_number(raw))
    return max(1, min(5, level))


def update_answers(answers, field, value):
    """Return a new answer record with one field replaced.

    Priority flags are addressed as 'priorities.<flag>'. Unknown fields raise KeyError.
    """
    updated = dict(answers)
    updated['priorities'] = dict(answers.get('priorities') or {})

    if field.startswith('priorities.'):
        flag = field.split('.', 1)[1]
        if flag not in PRIORITY_FLAGS:
            raise KeyError(f"Unknown priority: {flag}")
        updated['priorities'][flag] = bool(value)
    elif field == 'priorities':
        updated['priorities'] = {f: bool((value or {}).get(f, False)) for f in PRIORITY_FLAGS}
    elif field in NUMERIC_FIELDS:
        updated[field] = None if value is None else clean_number(value)
    elif field == 'complexityLevel':
        updated[field] = clamp_complexity(value)
    elif field == 'includeRevenue':
        updated[field] = bool(value)
    elif field == 'investmentMode':
        updated[field] = value if value in INVESTMENT_MODES else 'derived'
    elif field in BAND_FIELDS:
        updated[field] = value.strip() if isinstance(value, str) else value
    else:
        raise KeyError(f"Unknown answer field: {field}")
    return updated


def answers_key(answers):
    """Hashable snapshot of an answer record, used as a memoisation key."""
    items = []
    for field in sorted(answers):
        value = answers[field]
        if field == 'priorities':
            value = tuple(sorted((f, bool(v)) for f, v in (value or {}).items()))
        elif isinstance(value, (list, dict, set)):
            value = repr(value)
        items.append((field, value))
    return tuple(items)


def answers_from_key(key):
    answers = dict(key)
    if 'priorities' in answers:
        answers['priorities'] = dict(answers['priorities'])
    return answers
