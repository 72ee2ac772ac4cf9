"""
Support ROI Navigator: Config Loader
Reads optional model-table overrides from config/model_config.xlsx.

Each sheet replaces one table; anything missing keeps its compiled-in default.
A workbook that produces an unusable config is ignored as a whole.
"""
import logging
import os
from functools import lru_cache

import openpyxl

from roi_engines.model_config import default_model_config, normalize_band_key, validate_model_config

log = logging.getLogger(__name__)

DATA_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), 'data')
DEFAULT_CONFIG_PATH = os.path.join(DATA_DIR, 'config', 'model_config.xlsx')
CONFIG_PATH_ENV = 'ROI_CONFIG_PATH'

PARAMETER_MAP = {
    'Working Hours Per Year': ('workingHoursPerYear',),
    'Working Days Per Month': ('workingDaysPerMonth',),
    'Months Per Year': ('monthsPerYear',),
    'QA Coverage %': ('qa', 'coveragePct'),
    'QA Minutes Per Evaluation': ('qa', 'minutesPerEvaluation'),
    'QA Hourly Multiplier': ('qa', 'hourlyMultiplier'),
    'Revenue Influence Fraction': ('revenueInfluenceFraction',),
    'Revenue Protection %': ('revenueProtectionPct',),
    'AHT Factor When Not Prioritised': ('priorityFactors', 'handlingTime'),
    'QA Factor When Not Prioritised': ('priorityFactors', 'qaWorkload'),
    'Deflection Factor When Not Prioritised': ('priorityFactors', 'contactDeflection'),
    'Volume Mode': ('volumeMode',),
    'Currency Symbol': ('currencySymbol',),
    'Default Team Size Band': ('defaults', 'teamSizeBands'),
    'Default Cost Band': ('defaults', 'costPerAgentBands'),
    'Default Volume Band': ('defaults', 'contactVolumeBands'),
    'Default Complexity Level': ('defaults', 'complexityLevels'),
    'Default Automation Level': ('defaults', 'automationLevels'),
    'Default Revenue Impact Type': ('defaults', 'revenueImpactTypes'),
    'Default Rollout Scope': ('defaults', 'rolloutMultipliers'),
}
TEXT_PARAMETERS = {('volumeMode',), ('currencySymbol',)}

# sheet name -> (config table, key column, value column)
BAND_SHEETS = {
    'Team Size Bands': ('teamSizeBands', 'Band', 'Agents'),
    'Cost Bands': ('costPerAgentBands', 'Band', 'Annual Cost'),
    'Volume Bands': ('contactVolumeBands', 'Band', 'Contacts Per Day'),
    'Revenue Bands': ('revenueBands', 'Band', 'Revenue'),
    'Revenue Impact': ('revenueImpactTypes', 'Type', 'Protection %'),
    'Rollout': ('rolloutMultipliers', 'Scope', 'Multiplier'),
}


def read_xlsx_sheet(wb, sheet_name):
    if sheet_name not in wb.sheetnames:
        return None
    rows = list(wb[sheet_name].iter_rows(values_only=True))
    if len(rows) < 2:
        return []
    headers = [str(h).strip() if h else f'col_{i}' for i, h in enumerate(rows[0])]
    return [dict(zip(headers, row)) for row in rows[1:] if any(v is not None for v in row)]


def _to_float(value):
    if isinstance(value, bool) or value is None or value == '':
        raise ValueError(f"not a number: {value!r}")
    return float(value)


def _set_path(config, path, value):
    target = config
    for key in path[:-1]:
        target = target[key]
    target[path[-1]] = value


def _load_parameters(wb, config, path):
    rows = read_xlsx_sheet(wb, 'Parameters') or []
    for row in rows:
        name = str(row.get('Parameter') or '').strip()
        value = row.get('Value')
        if name not in PARAMETER_MAP or value is None:
            continue
        target = PARAMETER_MAP[name]
        if target in TEXT_PARAMETERS:
            value = str(value).strip()
            if target == ('volumeMode',):
                value = value.lower()
        elif target[0] == 'defaults':
            value = normalize_band_key(value)
        else:
            try:
                value = _to_float(value)
            except (ValueError, TypeError):
                log.warning("%s: Parameters row %r has a non-numeric value %r, skipped", path, name, value)
                continue
        _set_path(config, target, value)


def _load_band_sheet(wb, sheet, key_col, value_col, path):
    rows = read_xlsx_sheet(wb, sheet)
    if not rows:
        return None
    table = {}
    for row in rows:
        key = normalize_band_key(row.get(key_col))
        if key is None:
            log.warning("%s: sheet %r has a row without %s, skipped", path, sheet, key_col)
            continue
        try:
            table[key] = _to_float(row.get(value_col))
        except (ValueError, TypeError):
            log.warning("%s: sheet %r row %r skipped (bad %s)", path, sheet, key, value_col)
    return table or None


def _load_complexity(wb, path):
    rows = read_xlsx_sheet(wb, 'Complexity')
    if not rows:
        return None
    levels = {}
    for row in rows:
        try:
            level = int(_to_float(row.get('Level')))
            aht = _to_float(row.get('AHT Minutes'))
        except (ValueError, TypeError):
            log.warning("%s: Complexity row %r skipped", path, row.get('Level'))
            continue
        levels[level] = {
            'label': str(row.get('Label') or f'Level {level}'),
            'description': str(row.get('Description') or ''),
            'ahtMinutes': aht,
            'impact': str(row.get('Impact') or ''),
        }
    return levels or None


def _load_automation(wb, path):
    rows = read_xlsx_sheet(wb, 'Automation')
    if not rows:
        return None
    levels = {}
    for row in rows:
        key = normalize_band_key(row.get('Level'))
        if key is None:
            continue
        try:
            levels[key] = {
                'label': str(row.get('Label') or key),
                'ahtReductionPct': _to_float(row.get('AHT Reduction %')),
                'qaEfficiencyGainPct': _to_float(row.get('QA Efficiency %')),
                'contactDeflectionPct': _to_float(row.get('Deflection %')),
            }
        except (ValueError, TypeError):
            log.warning("%s: Automation row %r skipped", path, row.get('Level'))
    return levels or None


def _load_investment_tiers(wb, path):
    rows = read_xlsx_sheet(wb, 'Investment Tiers')
    if not rows:
        return None
    bounded, open_tier = [], None
    for row in rows:
        cap = row.get('Max Agents')
        try:
            cost = _to_float(row.get('Annual Cost'))
            if cap is None or cap == '':
                open_tier = {'maxAgents': None, 'annualCost': cost}
            else:
                bounded.append({'maxAgents': _to_float(cap), 'annualCost': cost})
        except (ValueError, TypeError):
            log.warning("%s: Investment Tiers row %r skipped", path, cap)
    tiers = sorted(bounded, key=lambda t: t['maxAgents'])
    if open_tier:
        tiers.append(open_tier)
    return tiers or None


def load_model_config(path=None):
    """Load model tables from an Excel workbook on top of the compiled-in defaults.

    Path resolution: explicit argument, then $ROI_CONFIG_PATH, then
    data/config/model_config.xlsx. A missing file simply yields the defaults.
    """
    path = path or os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH
    config = default_model_config()
    if not os.path.exists(path):
        return config

    wb = openpyxl.load_workbook(path, read_only=True, data_only=True)
    try:
        _load_parameters(wb, config, path)
        for sheet, (table, key_col, value_col) in BAND_SHEETS.items():
            values = _load_band_sheet(wb, sheet, key_col, value_col, path)
            if values:
                config[table] = values
        for table, loader in (('complexityLevels', _load_complexity),
                              ('automationLevels', _load_automation),
                              ('investmentTiers', _load_investment_tiers)):
            values = loader(wb, path)
            if values:
                config[table] = values
    finally:
        wb.close()

    problems = validate_model_config(config)
    if problems:
        log.warning("%s: unusable model config, falling back to defaults: %s", path, '; '.join(problems))
        return default_model_config()
    log.info("Model config loaded from %s", path)
    return config


@lru_cache()
def get_model_config():
    """Process-wide model config (treat as read-only). get_model_config.cache_clear() reloads it."""
    return load_model_config()
