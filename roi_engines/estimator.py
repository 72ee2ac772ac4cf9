"""
Support ROI Navigator: Estimation Engine
Maps a finalized answer record to annual savings, ROI and payback.

Pipeline (each stage pure, fed only by earlier stages and the config):

  Volume:      agents × contacts/agent/day × working days → contacts/month → /year
  Cost:        annual cost per agent → cost per agent hour
  Baseline:    contacts/year × AHT → handling hours → handling cost → cost/contact
  Factors:     automation-maturity triple × priority dampening
  Savings:     AHT, QA, deflection, gated revenue protection
  Investment:  custom figure, or licence tier × rollout multiplier
  Aggregate:   benefit, net gain, ROI %, hours saved, payback months
"""
import copy
import logging
import math
from functools import lru_cache

from roi_engines.answers import answers_from_key, answers_key, clean_number, default_answers
from roi_engines.config_loader import get_model_config
from roi_engines.model_config import UNKNOWN_REVENUE_BAND, investment_tier_cost, resolve_band

log = logging.getLogger(__name__)

# (improvement percentage, priority flag that gates it)
IMPROVEMENT_DIMENSIONS = (
    ('ahtReductionPct', 'handlingTime'),
    ('qaEfficiencyGainPct', 'qaWorkload'),
    ('contactDeflectionPct', 'contactDeflection'),
)


def _finite(value):
    return value if isinstance(value, (int, float)) and math.isfinite(value) else 0


def derive_volume(answers, config):
    direct_agents = clean_number(answers.get('numAgents'))
    team_band, band_agents = resolve_band(config, 'teamSizeBands', answers.get('teamSizeBand'))
    num_agents = direct_agents if direct_agents > 0 else band_agents

    volume_band, per_day = resolve_band(config, 'contactVolumeBands', answers.get('contactVolumeBand'))
    days = config['workingDaysPerMonth']
    if config.get('volumeMode') == 'monthly':
        contacts_per_month = clean_number(answers.get('contactsPerMonth'))
        capacity_days = num_agents * days
        per_day = contacts_per_month / capacity_days if capacity_days > 0 else 0
        volume_band = None
    else:
        contacts_per_month = num_agents * per_day * days

    return {
        'numAgents': num_agents,
        'teamSizeBand': None if direct_agents > 0 else team_band,
        'contactVolumeBand': volume_band,
        'contactsPerAgentPerDay': per_day,
        'contactsPerMonth': contacts_per_month,
        'contactsPerYear': contacts_per_month * config['monthsPerYear'],
    }


def derive_cost(answers, config):
    direct = clean_number(answers.get('costPerAgent'))
    band, band_cost = resolve_band(config, 'costPerAgentBands', answers.get('costPerAgentBand'))
    annual = direct if direct > 0 else band_cost
    hours = config['workingHoursPerYear']
    return {
        'annualCostPerAgent': annual,
        'costPerAgentBand': None if direct > 0 else band,
        'costPerAgentHour': annual / hours if hours > 0 else 0,
    }


def derive_baseline(answers, volume, cost, config):
    level, row = resolve_band(config, 'complexityLevels', answers.get('complexityLevel'))
    direct_aht = clean_number(answers.get('ahtMinutes'))
    aht = direct_aht if direct_aht > 0 else row['ahtMinutes']

    contacts_per_year = volume['contactsPerYear']
    hours = contacts_per_year * (aht / 60 if aht > 0 else 0)
    handling_cost = hours * cost['costPerAgentHour']
    return {
        'complexityLevel': level,
        'ahtMinutes': aht,
        'baselineHandlingHours': hours,
        'baselineHandlingCost': handling_cost,
        'costPerContactBaseline': handling_cost / contacts_per_year if contacts_per_year > 0 else 0,
    }


def derive_improvement_factors(answers, config):
    """Automation-maturity percentages, dampened by the priorities the buyer ticked.

    A priority that is ON keeps the full percentage. OFF applies the configured
    factor: handling time keeps a residual share, QA and deflection drop to zero.
    """
    level, base = resolve_band(config, 'automationLevels', answers.get('automationLevel'))
    priorities = answers.get('priorities') or {}
    off_factors = config['priorityFactors']

    factors = {'automationLevel': level}
    for pct_key, flag in IMPROVEMENT_DIMENSIONS:
        factor = 1.0 if priorities.get(flag) else off_factors.get(flag, 0.0)
        factors[pct_key] = base[pct_key] * factor
        factors[pct_key.replace('Pct', 'Factor')] = factor
    return factors


def derive_savings(answers, volume, cost, baseline, factors, config):
    contacts_per_year = volume['contactsPerYear']
    per_hour = cost['costPerAgentHour']
    aht = baseline['ahtMinutes']

    # Handling time
    new_aht = aht * (1 - factors['ahtReductionPct'] / 100)
    new_hours = contacts_per_year * (new_aht / 60 if new_aht > 0 else 0)
    savings_aht = baseline['baselineHandlingCost'] - new_hours * per_hour
    hours_saved_aht = baseline['baselineHandlingHours'] - new_hours

    # QA, independent of AHT
    qa = config['qa']
    qa_hourly = per_hour * qa['hourlyMultiplier']
    baseline_qa_hours = contacts_per_year * (qa['coveragePct'] / 100) * (qa['minutesPerEvaluation'] / 60)
    new_qa_hours = baseline_qa_hours * (1 - factors['qaEfficiencyGainPct'] / 100)
    hours_saved_qa = baseline_qa_hours - new_qa_hours
    savings_qa = hours_saved_qa * qa_hourly

    # Deflection, priced at the baseline cost per contact
    avoided = contacts_per_year * (factors['contactDeflectionPct'] / 100)
    savings_deflection = avoided * baseline['costPerContactBaseline']

    revenue = derive_revenue(answers, config)

    return {
        'newAhtMinutes': new_aht,
        'savingsFromHandlingTime': savings_aht,
        'hoursSavedAht': hours_saved_aht,
        'baselineQaHours': baseline_qa_hours,
        'qaHourlyCost': qa_hourly,
        'savingsFromQa': savings_qa,
        'hoursSavedQa': hours_saved_qa,
        'contactsAvoidedPerYear': avoided,
        'savingsFromDeflection': savings_deflection,
        **revenue,
    }


def derive_revenue(answers, config):
    """Illustrative revenue protection; zero unless every gate is open."""
    band, approx_revenue = resolve_band(config, 'revenueBands', answers.get('revenueBand'))
    impact_type = answers.get('revenueImpactType')
    if impact_type is None:
        protection_pct = config['revenueProtectionPct']
    else:
        impact_type, protection_pct = resolve_band(config, 'revenueImpactTypes', impact_type)

    included = (bool(answers.get('includeRevenue'))
                and band != UNKNOWN_REVENUE_BAND
                and bool((answers.get('priorities') or {}).get('customerExperience')))
    if not included:
        return {
            'revenueIncluded': False, 'revenueBand': band, 'revenueImpactType': impact_type,
            'approxAnnualRevenue': 0, 'annualRevenueInfluenced': 0,
            'revenueProtectionPct': 0, 'revenueProtected': 0,
        }

    direct = clean_number(answers.get('annualRevenueInfluenced'))
    influenced = direct if direct > 0 else approx_revenue * config['revenueInfluenceFraction']
    return {
        'revenueIncluded': True, 'revenueBand': band, 'revenueImpactType': impact_type,
        'approxAnnualRevenue': approx_revenue,
        'annualRevenueInfluenced': influenced,
        'revenueProtectionPct': protection_pct,
        'revenueProtected': max(0, influenced * protection_pct / 100),
    }


def derive_investment(answers, volume, config):
    mode = answers.get('investmentMode') or 'derived'
    if mode == 'custom':
        amount = clean_number(answers.get('customInvestmentCost'))
        return {'investmentMode': 'custom', 'baseLicenceCost': amount, 'rolloutScope': None,
                'rolloutMultiplier': 1.0, 'resolvedAnnualInvestmentCost': amount}

    if mode != 'derived':
        log.debug("Unknown investment mode %r, deriving from team size", mode)
    base = investment_tier_cost(config, volume['numAgents'])
    scope = answers.get('rolloutScope')
    if scope is None:
        multiplier = 1.0
    else:
        scope, multiplier = resolve_band(config, 'rolloutMultipliers', scope)
    return {'investmentMode': 'derived', 'baseLicenceCost': base, 'rolloutScope': scope,
            'rolloutMultiplier': multiplier, 'resolvedAnnualInvestmentCost': base * multiplier}


def derive_aggregate(savings, investment):
    benefit = (_finite(savings['savingsFromHandlingTime']) + _finite(savings['savingsFromQa'])
               + _finite(savings['savingsFromDeflection']) + _finite(savings['revenueProtected']))
    cost = _finite(investment['resolvedAnnualInvestmentCost'])
    net_gain = benefit - cost
    monthly_benefit = benefit / 12 if benefit > 0 else 0
    return {
        'totalAnnualBenefit': benefit,
        'netGain': net_gain,
        'roiPercent': net_gain / cost * 100 if cost > 0 else 0,
        'totalHoursSaved': _finite(savings['hoursSavedAht']) + _finite(savings['hoursSavedQa']),
        'monthlyBenefit': monthly_benefit,
        # 0 means "no payback" (no positive benefit); displayed as "-"
        'paybackMonths': cost / monthly_benefit if monthly_benefit > 0 else 0,
    }


def evaluate(answers, config=None):
    """
    Run the full estimation pipeline for one answer snapshot.

    Args:
        answers: answer record (see answers.default_answers). Missing fields take
                 the wizard's opening values, so partial records are fine.
        config: model configuration dict; None uses the process-wide config.

    Returns:
        dict with every ROI result field, the intermediate values behind them,
        'assumptions' (resolved bands and effective percentages) and 'breakdown'
        (one line per benefit source with the arithmetic behind it).
    """
    config = config if config is not None else get_model_config()
    answers = {**default_answers(), **(answers or {})}

    volume = derive_volume(answers, config)
    cost = derive_cost(answers, config)
    baseline = derive_baseline(answers, volume, cost, config)
    factors = derive_improvement_factors(answers, config)
    savings = derive_savings(answers, volume, cost, baseline, factors, config)
    investment = derive_investment(answers, volume, config)
    aggregate = derive_aggregate(savings, investment)

    return {
        'numAgents': volume['numAgents'],
        'annualCostPerAgent': cost['annualCostPerAgent'],
        'contactsPerMonth': volume['contactsPerMonth'],
        'contactsPerYear': volume['contactsPerYear'],
        'ahtMinutes': baseline['ahtMinutes'],
        'costPerContactBaseline': baseline['costPerContactBaseline'],
        'contactsAvoidedPerYear': savings['contactsAvoidedPerYear'],
        'savingsFromHandlingTime': savings['savingsFromHandlingTime'],
        'savingsFromQa': savings['savingsFromQa'],
        'savingsFromDeflection': savings['savingsFromDeflection'],
        'revenueProtected': savings['revenueProtected'],
        'totalAnnualBenefit': aggregate['totalAnnualBenefit'],
        'netGain': aggregate['netGain'],
        'roiPercent': aggregate['roiPercent'],
        'totalHoursSaved': aggregate['totalHoursSaved'],
        'paybackMonths': aggregate['paybackMonths'],
        'resolvedAnnualInvestmentCost': investment['resolvedAnnualInvestmentCost'],
        # Supporting detail
        'costPerAgentHour': cost['costPerAgentHour'],
        'baselineHandlingHours': baseline['baselineHandlingHours'],
        'baselineHandlingCost': baseline['baselineHandlingCost'],
        'hoursSavedAht': savings['hoursSavedAht'],
        'hoursSavedQa': savings['hoursSavedQa'],
        'annualRevenueInfluenced': savings['annualRevenueInfluenced'],
        'revenueProtectionPct': savings['revenueProtectionPct'],
        'monthlyBenefit': aggregate['monthlyBenefit'],
        'assumptions': {
            'teamSizeBand': volume['teamSizeBand'],
            'contactVolumeBand': volume['contactVolumeBand'],
            'contactsPerAgentPerDay': volume['contactsPerAgentPerDay'],
            'costPerAgentBand': cost['costPerAgentBand'],
            'complexityLevel': baseline['complexityLevel'],
            'automationLevel': factors['automationLevel'],
            'ahtReductionPct': factors['ahtReductionPct'],
            'qaEfficiencyGainPct': factors['qaEfficiencyGainPct'],
            'contactDeflectionPct': factors['contactDeflectionPct'],
            'revenueIncluded': savings['revenueIncluded'],
            'revenueBand': savings['revenueBand'],
            'revenueImpactType': savings['revenueImpactType'],
            'investmentMode': investment['investmentMode'],
            'baseLicenceCost': investment['baseLicenceCost'],
            'rolloutScope': investment['rolloutScope'],
            'rolloutMultiplier': investment['rolloutMultiplier'],
        },
        'breakdown': _build_breakdown(volume, baseline, factors, savings),
    }


def _build_breakdown(volume, baseline, factors, savings):
    cpy = volume['contactsPerYear']
    return [
        {'key': 'handlingTime', 'label': 'Handling time savings',
         'value': savings['savingsFromHandlingTime'],
         'mechanism': f"{cpy:,.0f} contacts × ({baseline['ahtMinutes']:.2f} → "
                      f"{savings['newAhtMinutes']:.2f} min) → {savings['hoursSavedAht']:,.0f} hrs"},
        {'key': 'qa', 'label': 'QA and coaching savings',
         'value': savings['savingsFromQa'],
         'mechanism': f"{savings['baselineQaHours']:,.0f} QA hrs × {factors['qaEfficiencyGainPct']:.0f}% "
                      f"× {savings['qaHourlyCost']:,.2f}/hr"},
        {'key': 'deflection', 'label': 'Contact reduction savings',
         'value': savings['savingsFromDeflection'],
         'mechanism': f"{savings['contactsAvoidedPerYear']:,.0f} contacts avoided × "
                      f"{baseline['costPerContactBaseline']:,.2f}/contact"},
        {'key': 'revenue', 'label': 'Revenue protected',
         'value': savings['revenueProtected'],
         'mechanism': (f"{savings['annualRevenueInfluenced']:,.0f} influenced × "
                       f"{savings['revenueProtectionPct']:.1f}%")
                      if savings['revenueIncluded'] else 'Not included'},
    ]


_snapshot_config = None


@lru_cache(maxsize=256)
def _evaluate_snapshot(key):
    log.debug("Evaluating new answer snapshot")
    return evaluate(answers_from_key(key), _snapshot_config)


def evaluate_cached(answers):
    """evaluate() against the process-wide config, memoised on the full answer tuple.

    Memoised results belong to one config object; a reloaded config empties the memo.
    """
    global _snapshot_config
    config = get_model_config()
    if config is not _snapshot_config:
        if _snapshot_config is not None:
            log.info("Model config reloaded, dropping memoised results")
        _evaluate_snapshot.cache_clear()
        _snapshot_config = config
    return copy.deepcopy(_evaluate_snapshot(answers_key({**default_answers(), **(answers or {})})))


def clear_cache():
    global _snapshot_config
    _evaluate_snapshot.cache_clear()
    _snapshot_config = None
