"""
Support ROI Navigator: Wizard Session
Externally-owned wizard state: the step cursor and the current answer snapshot.
Every answer change replaces the snapshot; results are recomputed from scratch
on the next read and reused while the answers stay the same.
"""
import copy
import logging

from roi_engines.answers import answers_key, default_answers, update_answers
from roi_engines.config_loader import get_model_config
from roi_engines.display import format_result
from roi_engines.estimator import evaluate

log = logging.getLogger(__name__)

STEPS = {
    1: 'Contact centre',
    2: 'Improvements',
    3: 'Investment',
}


class WizardSession:
    def __init__(self, config=None, answers=None, last_step=len(STEPS)):
        self.config = config if config is not None else get_model_config()
        self.answers = {**default_answers(), **(answers or {})}
        self.last_step = max(1, last_step)
        self.step = 1
        self._results_key = None
        self._results = None
        self.evaluations = 0

    # ── Navigation ──

    def go_to(self, step):
        self.step = max(1, min(self.last_step, int(step)))
        log.info("Wizard step %d (%s)", self.step, STEPS.get(self.step, ''))
        return self.step

    def next_step(self):
        return self.go_to(self.step + 1)

    def previous_step(self):
        return self.go_to(self.step - 1)

    @property
    def step_label(self):
        return STEPS.get(self.step, f'Step {self.step}')

    @property
    def is_complete(self):
        return self.step == self.last_step

    # ── Answers ──

    def set_answer(self, field, value):
        self.answers = update_answers(self.answers, field, value)
        return self.answers

    def toggle_priority(self, flag):
        current = bool(self.answers.get('priorities', {}).get(flag))
        return self.set_answer(f'priorities.{flag}', not current)

    # ── Results ──

    @property
    def results(self):
        key = answers_key(self.answers)
        if key != self._results_key:
            self._results = evaluate(self.answers, self.config)
            self._results_key = key
            self.evaluations += 1
        else:
            log.debug("Answers unchanged, reusing results")
        return copy.deepcopy(self._results)

    def visible_results(self):
        """Results are only shown once the buyer reaches the last step."""
        return self.results if self.is_complete else None

    def summary(self):
        results = self.visible_results()
        if results is None:
            return None
        return format_result(results, self.config.get('currencySymbol', '€'))
