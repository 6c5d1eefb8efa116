"""Reading-behaviour signals to adaptation modifier.

Each signal is bucketed into a sub-score, the sub-scores are combined with
fixed weights and the result is clamped to 0..2. Higher means the reader
found the material easy, so the checkpoint gets more questions.
"""
from __future__ import annotations
from typing import Literal

from pydantic import Field

from ..schemas import ApiModel
from .numbers import clamp, round_half_up

SPEED_WEIGHT = 0.30
PAUSE_WEIGHT = 0.25
REVISIT_WEIGHT = 0.25
TIME_WEIGHT = 0.20

# Expected reading time per complexity point
MS_PER_COMPLEXITY_POINT = 60 * 1000


class AdaptationSignals(ApiModel):
	scroll_speed: float = Field(default=0, ge=0)  # px/s
	pause_points: int = Field(default=0, ge=0)  # pauses longer than 3s
	revisit_count: int = Field(default=0, ge=0)  # scroll-backs
	time_on_page: float = Field(default=0, ge=0)  # ms


class ComplexityAdjustment(ApiModel):
	modifier: float
	difficulty: Literal["easy", "normal", "hard"]
	estimated_questions: int


def default_signals() -> AdaptationSignals:
	return AdaptationSignals()


def _speed_score(scroll_speed: float) -> float:
	if scroll_speed > 150:
		return 2.0
	if scroll_speed > 100:
		return 1.5
	if scroll_speed > 50:
		return 1.0
	if scroll_speed > 30:
		return 0.5
	return 0.0


def _pause_score(pause_points: int) -> float:
	if pause_points <= 2:
		return 1.5
	if pause_points <= 5:
		return 1.0
	if pause_points <= 10:
		return 0.5
	return 0.0


def _revisit_score(revisit_count: int) -> float:
	if revisit_count == 0:
		return 1.5
	if revisit_count <= 2:
		return 1.0
	if revisit_count <= 4:
		return 0.5
	return 0.0


def _time_score(time_on_page: float, base_complexity: int) -> float:
	if time_on_page <= 0:
		return 1.0
	expected = max(base_complexity, 1) * MS_PER_COMPLEXITY_POINT
	ratio = time_on_page / expected
	if ratio < 0.5:
		return 1.5
	if ratio < 1:
		return 1.25
	if ratio <= 1.5:
		return 1.0
	if ratio <= 2:
		return 0.5
	return 0.25


def calculate_complexity_adjustment(signals: AdaptationSignals, base_complexity: int) -> ComplexityAdjustment:
	raw = (
		_speed_score(signals.scroll_speed) * SPEED_WEIGHT
		+ _pause_score(signals.pause_points) * PAUSE_WEIGHT
		+ _revisit_score(signals.revisit_count) * REVISIT_WEIGHT
		+ _time_score(signals.time_on_page, base_complexity) * TIME_WEIGHT
	)
	modifier = clamp(raw, 0.0, 2.0)

	if modifier >= 1.5:
		difficulty = "easy"
	elif modifier >= 0.75:
		difficulty = "normal"
	else:
		difficulty = "hard"

	base_questions = clamp(round_half_up(base_complexity / 2), 3, 10)
	estimated = round_half_up(base_questions * (0.5 + modifier * 0.75))

	return ComplexityAdjustment(
		modifier=round_half_up(modifier * 100) / 100,
		difficulty=difficulty,
		estimated_questions=clamp(estimated, 3, 10),
	)
