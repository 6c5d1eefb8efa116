import pytest
from pydantic import ValidationError

from gritflow.engine import AdaptationSignals, calculate_complexity_adjustment, default_signals


class TestComplexityAdjustment:
	"""Reading signals map to a modifier in 0..2."""

	def test_comfortable_reader_gets_easy(self):
		signals = AdaptationSignals(scroll_speed=200, pause_points=0, revisit_count=0, time_on_page=10_000)
		adj = calculate_complexity_adjustment(signals, 2)
		assert adj.modifier == pytest.approx(1.65)
		assert adj.difficulty == "easy"
		assert adj.estimated_questions == 5

	def test_default_signals_are_normal(self):
		adj = calculate_complexity_adjustment(default_signals(), 2)
		assert adj.modifier == pytest.approx(0.95)
		assert adj.difficulty == "normal"
		assert adj.estimated_questions == 4

	def test_struggling_reader_gets_hard(self):
		signals = AdaptationSignals(scroll_speed=10, pause_points=20, revisit_count=9, time_on_page=600_000)
		adj = calculate_complexity_adjustment(signals, 1)
		assert adj.modifier == pytest.approx(0.05)
		assert adj.difficulty == "hard"
		assert adj.estimated_questions == 3

	def test_long_time_on_page_lowers_modifier(self):
		quick = AdaptationSignals(scroll_speed=60, pause_points=3, revisit_count=1, time_on_page=20_000)
		slow = AdaptationSignals(scroll_speed=60, pause_points=3, revisit_count=1, time_on_page=400_000)
		assert calculate_complexity_adjustment(slow, 3).modifier < calculate_complexity_adjustment(quick, 3).modifier

	@pytest.mark.parametrize("speed", [0, 40, 75, 120, 500])
	@pytest.mark.parametrize("pauses", [0, 4, 8, 30])
	@pytest.mark.parametrize("revisits", [0, 2, 3, 10])
	def test_modifier_bounds(self, speed, pauses, revisits):
		signals = AdaptationSignals(scroll_speed=speed, pause_points=pauses, revisit_count=revisits, time_on_page=90_000)
		adj = calculate_complexity_adjustment(signals, 3)
		assert 0 <= adj.modifier <= 2
		assert 3 <= adj.estimated_questions <= 10
		assert round(adj.modifier, 2) == adj.modifier

	def test_negative_signals_rejected(self):
		with pytest.raises(ValidationError):
			AdaptationSignals(scroll_speed=-1)

	def test_signals_accept_camel_case(self):
		signals = AdaptationSignals.model_validate({"scrollSpeed": 80, "pausePoints": 2, "revisitCount": 1, "timeOnPage": 5000})
		assert signals.pause_points == 2
