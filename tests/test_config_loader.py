import logging

import openpyxl
import pytest

from roi_engines.config_loader import CONFIG_PATH_ENV, get_model_config, load_model_config
from roi_engines.estimator import evaluate
from roi_engines.model_config import default_model_config


def _write_workbook(path, sheets):
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(name)
        for row in rows:
            ws.append(list(row))
    wb.save(path)
    return str(path)


@pytest.fixture
def workbook(tmp_path):
    return _write_workbook(tmp_path / 'model_config.xlsx', {
        'Parameters': [
            ('Parameter', 'Value'),
            ('Working Hours Per Year', 1800),
            ('Volume Mode', 'Monthly'),
            ('Currency Symbol', '$'),
            ('Revenue Influence Fraction', '0.25'),
            ('Default Complexity Level', 4),
            ('Not A Parameter', 7),
        ],
        'Cost Bands': [
            ('Band', 'Annual Cost'),
            ('Western-Europe', 50000),
            ('US', 60000),
        ],
        'Investment Tiers': [
            ('Max Agents', 'Annual Cost'),
            (100, 90000),
            (None, 200000),
            (10, 30000),
        ],
        'Complexity': [
            ('Level', 'Label', 'Description', 'AHT Minutes', 'Impact'),
            (1, 'Quick', 'Lookups', 2, ''),
            (4, 'Long', 'Investigations', 12, 'Big'),
        ],
    })


class TestLoadModelConfig:

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_model_config(str(tmp_path / 'absent.xlsx')) == default_model_config()

    def test_parameters(self, workbook):
        config = load_model_config(workbook)
        assert config['workingHoursPerYear'] == 1800
        assert config['volumeMode'] == 'monthly'
        assert config['currencySymbol'] == '$'
        assert config['revenueInfluenceFraction'] == 0.25
        assert config['defaults']['complexityLevels'] == 4

    def test_band_sheet_replaces_table(self, workbook):
        config = load_model_config(workbook)
        assert config['costPerAgentBands'] == {'western-europe': 50000, 'us': 60000}
        # sheets not in the workbook keep their defaults
        assert config['teamSizeBands'] == default_model_config()['teamSizeBands']

    def test_investment_tiers_sorted_with_open_tier_last(self, workbook):
        config = load_model_config(workbook)
        assert [t['maxAgents'] for t in config['investmentTiers']] == [10, 100, None]

    def test_complexity(self, workbook):
        config = load_model_config(workbook)
        assert config['complexityLevels'][4]['ahtMinutes'] == 12
        assert set(config['complexityLevels']) == {1, 4}

    def test_env_path(self, workbook, monkeypatch):
        monkeypatch.setenv(CONFIG_PATH_ENV, workbook)
        assert load_model_config()['currencySymbol'] == '$'

    def test_bad_rows_are_skipped(self, tmp_path, caplog):
        path = _write_workbook(tmp_path / 'bad.xlsx', {
            'Parameters': [('Parameter', 'Value'), ('QA Coverage %', 'lots'), ('Months Per Year', 12)],
            'Volume Bands': [('Band', 'Contacts Per Day'), ('30-40', 'many'), ('30-40', 40),
                             (None, 10), ('60+', 80)],
        })
        with caplog.at_level(logging.WARNING):
            config = load_model_config(path)
        assert config['qa']['coveragePct'] == 5
        assert config['contactVolumeBands'] == {'30-40': 40, '60+': 80}
        assert 'QA Coverage %' in caplog.text

    def test_unusable_workbook_falls_back_to_defaults(self, tmp_path, caplog):
        path = _write_workbook(tmp_path / 'broken.xlsx', {
            'Automation': [('Level', 'AHT Reduction %', 'QA Efficiency %', 'Deflection %'), ('low', 10, 20, 30)],
        })
        with caplog.at_level(logging.WARNING):
            config = load_model_config(path)
        assert config == default_model_config()
        assert 'automationLevels' in caplog.text

    def test_loaded_config_drives_engine(self, workbook):
        config = load_model_config(workbook)
        r = evaluate({'contactsPerMonth': 10_000, 'costPerAgentBand': 'us', 'numAgents': 10}, config)
        assert r['contactsPerYear'] == 120_000
        assert r['annualCostPerAgent'] == 60000
        assert r['ahtMinutes'] == 12
        assert r['resolvedAnnualInvestmentCost'] == 30000


def test_get_model_config_is_cached(workbook, monkeypatch):
    first = get_model_config()
    assert first is get_model_config()
    assert first['currencySymbol'] == '€'

    monkeypatch.setenv(CONFIG_PATH_ENV, workbook)
    assert get_model_config()['currencySymbol'] == '€'
    get_model_config.cache_clear()
    assert get_model_config()['currencySymbol'] == '$'
