"""
Shared fixtures for the ROI navigator tests.

The reference scenario is the 40-agent, 35-contacts-per-day, complexity-3,
medium-automation team with every priority except customer experience ticked
and no revenue context. It prices out at roughly 311k of annual benefit
against a 120k licence.
"""
import pytest

from roi_engines import estimator
from roi_engines.answers import default_answers
from roi_engines.config_loader import get_model_config
from roi_engines.model_config import default_model_config


@pytest.fixture(autouse=True)
def _fresh_caches(monkeypatch):
    monkeypatch.delenv('ROI_CONFIG_PATH', raising=False)
    get_model_config.cache_clear()
    estimator.clear_cache()
    yield
    get_model_config.cache_clear()
    estimator.clear_cache()


@pytest.fixture
def config():
    return default_model_config()


@pytest.fixture
def scenario_answers():
    answers = default_answers()
    answers.update({
        'teamSizeBand': '26-50',
        'contactVolumeBand': '30-40',
        'complexityLevel': 3,
        'automationLevel': 'medium',
        'priorities': {
            'handlingTime': True,
            'qaWorkload': True,
            'contactDeflection': True,
            'customerExperience': False,
        },
        'includeRevenue': False,
        'revenueBand': 'unknown',
        'rolloutScope': 'single',
        'investmentMode': 'derived',
    })
    return answers


@pytest.fixture
def monthly_config():
    cfg = default_model_config()
    cfg['volumeMode'] = 'monthly'
    return cfg
