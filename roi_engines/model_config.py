"""
Support ROI Navigator: Model Configuration
Band tables, benchmark constants and investment sizing for the estimation engine.

Every band table is a closed mapping with an explicit default key in
config['defaults']; unknown or legacy band strings resolve to that default.
"""
import copy
import logging
import math

log = logging.getLogger(__name__)

# Revenue band that means "not disclosed"; revenue impact is never computed from it.
UNKNOWN_REVENUE_BAND = 'unknown'

TEAM_SIZE_BANDS = {
    '1-10': 5,
    '11-25': 18,
    '26-50': 40,
    '51-100': 75,
    '101-250': 175,
    '250+': 300,
}

# Fully loaded annual cost per agent (salary + benefits + overhead), EUR.
COST_PER_AGENT_BANDS = {
    'western-europe': 45000,
    'uk-ireland': 42000,
    'nordics': 58000,
    'north-america': 52000,
    'eastern-europe': 24000,
    'latam': 20000,
    'apac': 22000,
    'offshore': 14000,
}

# Contacts handled per agent per working day.
CONTACT_VOLUME_BANDS = {
    '<20': 15,
    '20-30': 25,
    '30-40': 35,
    '40-60': 50,
    '60+': 70,
}

COMPLEXITY_LEVELS = {
    1: {'label': 'Very simple', 'ahtMinutes': 3,
        'description': 'Order status, password resets and short FAQs',
        'impact': 'Quick lookups; most value comes from deflecting repeat contacts.'},
    2: {'label': 'Simple', 'ahtMinutes': 5,
        'description': 'Account changes and billing questions with a known answer',
        'impact': 'Agents gain from faster search and templated replies.'},
    3: {'label': 'Moderate', 'ahtMinutes': 7,
        'description': 'Troubleshooting with a few systems and some back-and-forth',
        'impact': 'Balanced gains across handling time, QA and deflection.'},
    4: {'label': 'Complex', 'ahtMinutes': 10,
        'description': 'Multi-step investigations, refunds and policy exceptions',
        'impact': 'Handling time dominates; context and summaries save the most.'},
    5: {'label': 'Highly complex', 'ahtMinutes': 15,
        'description': 'Escalations, technical cases and regulated conversations',
        'impact': 'Long contacts; every minute removed is worth the most here.'},
}

# Improvement headroom shrinks as existing automation matures.
AUTOMATION_LEVELS = {
    'low': {'label': 'Low', 'ahtReductionPct': 15, 'qaEfficiencyGainPct': 60, 'contactDeflectionPct': 20},
    'medium': {'label': 'Moderate', 'ahtReductionPct': 12, 'qaEfficiencyGainPct': 50, 'contactDeflectionPct': 15},
    'high': {'label': 'Advanced', 'ahtReductionPct': 8, 'qaEfficiencyGainPct': 35, 'contactDeflectionPct': 10},
}

# Factor applied to a dimension when its priority flag is OFF (ON is always 1).
PRIORITY_FACTORS = {
    'handlingTime': 0.3,
    'qaWorkload': 0.0,
    'contactDeflection': 0.0,
}

QA_ASSUMPTIONS = {
    'coveragePct': 5,          # % of contacts manually QA'd today
    'minutesPerEvaluation': 6,
    'hourlyMultiplier': 1.2,   # QA lead cost vs agent cost/hour
}

REVENUE_BANDS = {
    UNKNOWN_REVENUE_BAND: 0,
    'under-10m': 5_000_000,
    '10m-50m': 30_000_000,
    '50m-250m': 150_000_000,
    '250m-1b': 600_000_000,
    'over-1b': 1_500_000_000,
}

# % of influenced revenue protected, by how the support team drives revenue.
REVENUE_IMPACT_TYPES = {
    'cost-centre': 0.5,
    'retention': 1.0,
    'upsell': 1.5,
}

# Ordered breakpoints; maxAgents None is the open-ended top tier.
INVESTMENT_TIERS = [
    {'maxAgents': 25, 'annualCost': 60000},
    {'maxAgents': 50, 'annualCost': 120000},
    {'maxAgents': 100, 'annualCost': 180000},
    {'maxAgents': 250, 'annualCost': 300000},
    {'maxAgents': None, 'annualCost': 450000},
]

ROLLOUT_MULTIPLIERS = {
    'single': 1.0,
    'few': 1.8,
    'multi': 2.5,
}

BAND_TABLES = (
    'teamSizeBands', 'costPerAgentBands', 'contactVolumeBands', 'complexityLevels',
    'automationLevels', 'revenueBands', 'revenueImpactTypes', 'rolloutMultipliers',
)

BAND_ALIASES = {
    'automationLevels': {'moderate': 'medium', 'advanced': 'high', 'basic': 'low'},
    'revenueImpactTypes': {'cost-center': 'cost-centre', 'cost_centre': 'cost-centre',
                           'costcentre': 'cost-centre', 'cost centre': 'cost-centre'},
    'rolloutMultipliers': {'single-team': 'single', 'few-teams': 'few', 'multi-region': 'multi'},
    'teamSizeBands': {'250-plus': '250+', '>250': '250+'},
}

VOLUME_MODES = ('band', 'monthly')


def default_model_config():
    """Fresh copy of the compiled-in model configuration."""
    return copy.deepcopy({
        'workingHoursPerYear': 1760,
        'workingDaysPerMonth': 21,
        'monthsPerYear': 12,
        'teamSizeBands': TEAM_SIZE_BANDS,
        'costPerAgentBands': COST_PER_AGENT_BANDS,
        'contactVolumeBands': CONTACT_VOLUME_BANDS,
        'complexityLevels': COMPLEXITY_LEVELS,
        'automationLevels': AUTOMATION_LEVELS,
        'priorityFactors': PRIORITY_FACTORS,
        'qa': QA_ASSUMPTIONS,
        'revenueBands': REVENUE_BANDS,
        'revenueInfluenceFraction': 0.3,
        'revenueProtectionPct': 1.0,
        'revenueImpactTypes': REVENUE_IMPACT_TYPES,
        'investmentTiers': INVESTMENT_TIERS,
        'rolloutMultipliers': ROLLOUT_MULTIPLIERS,
        # 'band': contacts = agents x per-day band x working days.
        # 'monthly': contacts come straight from answers['contactsPerMonth'].
        'volumeMode': 'band',
        'currencySymbol': '€',
        'defaults': {
            'teamSizeBands': '26-50',
            'costPerAgentBands': 'western-europe',
            'contactVolumeBands': '30-40',
            'complexityLevels': 3,
            'automationLevels': 'medium',
            'revenueBands': UNKNOWN_REVENUE_BAND,
            'revenueImpactTypes': 'retention',
            'rolloutMultipliers': 'single',
        },
        'aliases': BAND_ALIASES,
    })


def normalize_band_key(key):
    if isinstance(key, bool):
        return None
    if isinstance(key, str):
        key = key.strip().lower()
        if key.isascii() and key.isdigit():
            return int(key)
        return key
    if isinstance(key, float):
        return int(key) if math.isfinite(key) and key.is_integer() else None
    if isinstance(key, int):
        return key
    return None


def resolve_band(config, table, key):
    """Look up a band value. Returns (resolvedKey, value); unknown keys fall back to the table default."""
    values = config[table]
    k = normalize_band_key(key)
    k = config.get('aliases', {}).get(table, {}).get(k, k)
    if k is not None and k in values:
        return k, values[k]
    default = config['defaults'][table]
    if key is not None:
        log.debug("Unknown %s band %r, using default %r", table, key, default)
    return default, values[default]


def investment_tier_cost(config, num_agents):
    tiers = config['investmentTiers']
    for tier in tiers:
        cap = tier.get('maxAgents')
        if cap is None or num_agents <= cap:
            return tier['annualCost']
    return tiers[-1]['annualCost'] if tiers else 0


def validate_model_config(config):
    """Return a list of problems; empty means the config is safe to evaluate with."""
    problems = []
    defaults = config.get('defaults', {})
    for table in BAND_TABLES:
        values = config.get(table)
        if not isinstance(values, dict) or not values:
            problems.append(f"{table}: missing or empty")
            continue
        if defaults.get(table) not in values:
            problems.append(f"{table}: default {defaults.get(table)!r} not in table")
    if isinstance(config.get('revenueBands'), dict) and UNKNOWN_REVENUE_BAND not in config['revenueBands']:
        problems.append(f"revenueBands: no {UNKNOWN_REVENUE_BAND!r} band")

    for key in ('workingHoursPerYear', 'workingDaysPerMonth', 'monthsPerYear',
                'revenueInfluenceFraction', 'revenueProtectionPct'):
        if not _non_negative(config.get(key)):
            problems.append(f"{key}: must be a non-negative number")
    for key in ('coveragePct', 'minutesPerEvaluation', 'hourlyMultiplier'):
        if not _non_negative(config.get('qa', {}).get(key)):
            problems.append(f"qa.{key}: must be a non-negative number")
    for flag in PRIORITY_FACTORS:
        factor = config.get('priorityFactors', {}).get(flag)
        if not _non_negative(factor) or factor > 1:
            problems.append(f"priorityFactors.{flag}: must be between 0 and 1")

    for level, row in (config.get('automationLevels') or {}).items():
        for pct in ('ahtReductionPct', 'qaEfficiencyGainPct', 'contactDeflectionPct'):
            value = row.get(pct) if isinstance(row, dict) else None
            if not _non_negative(value) or value > 100:
                problems.append(f"automationLevels.{level}.{pct}: must be between 0 and 100")
    for level, row in (config.get('complexityLevels') or {}).items():
        if not isinstance(row, dict) or not _non_negative(row.get('ahtMinutes')):
            problems.append(f"complexityLevels.{level}: ahtMinutes must be a non-negative number")

    tiers = config.get('investmentTiers') or []
    if not tiers:
        problems.append("investmentTiers: missing or empty")
    caps = [t.get('maxAgents') for t in tiers]
    bounded = [c for c in caps if c is not None]
    if bounded != sorted(bounded) or None in caps[:-1]:
        problems.append("investmentTiers: breakpoints must ascend with the open tier last")
    for t in tiers:
        if not _non_negative(t.get('annualCost')):
            problems.append(f"investmentTiers: bad annualCost {t.get('annualCost')!r}")

    if config.get('volumeMode') not in VOLUME_MODES:
        problems.append(f"volumeMode: expected one of {VOLUME_MODES}")
    return problems


def _non_negative(value):
    return (isinstance(value, (int, float)) and not isinstance(value, bool)
            and math.isfinite(value) and value >= 0)
