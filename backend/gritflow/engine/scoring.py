"""Checkpoint scoring.

Multiple-choice answers are checked by index. Short answers go through an
optional semantic check first; when that is missing or fails the local
keyword/edit-distance heuristic decides.
"""
from __future__ import annotations
import logging
import math
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import Field

from ..schemas import ApiModel
from .numbers import round_half_up
from .question_generator import MCQuestion, Question, ShortAnswerQuestion

logger = logging.getLogger(__name__)

PASS_THRESHOLD = 70
KEYWORD_MIN_LENGTH = 3
KEYWORD_MATCH_RATIO = 0.5
SIMILARITY_THRESHOLD = 0.7

BUCKET_BY_DIFFICULTY = {"easy": "foundation", "medium": "application", "hard": "synthesis"}
BUCKET_WEIGHTS = {"foundation": 0.40, "application": 0.35, "synthesis": 0.25}

# (question text, user answer, acceptable answers) -> is correct
SemanticCheck = Callable[[str, str, List[str]], Awaitable[bool]]


class SubmittedAnswer(ApiModel):
	question_id: str = Field(min_length=1)
	selected_answer: Union[int, str]


class ScoreEntry(ApiModel):
	is_correct: bool
	gemini_validated: bool = False


class ScoreBreakdown(ApiModel):
	foundation: int
	application: int
	synthesis: int


class CheckpointScore(ApiModel):
	score: int
	breakdown: ScoreBreakdown
	can_progress: bool
	entries: Dict[str, ScoreEntry]


def levenshtein_distance(a: str, b: str) -> int:
	if len(a) < len(b):
		a, b = b, a
	previous = list(range(len(b) + 1))
	for i, ca in enumerate(a, start=1):
		current = [i]
		for j, cb in enumerate(b, start=1):
			if ca == cb:
				current.append(previous[j - 1])
			else:
				current.append(1 + min(previous[j - 1], previous[j], current[j - 1]))
		previous = current
	return previous[-1]


def similarity(a: str, b: str) -> float:
	longer, shorter = (a, b) if len(a) > len(b) else (b, a)
	if not longer:
		return 1.0
	return (len(longer) - levenshtein_distance(longer, shorter)) / len(longer)


def is_short_answer_match(user_answer: str, acceptable_answers: Sequence[str]) -> bool:
	answer = user_answer.lower().strip()
	for acceptable in acceptable_answers:
		expected = acceptable.lower()
		keywords = [w for w in expected.split() if len(w) > KEYWORD_MIN_LENGTH]
		if keywords:
			matched = sum(1 for w in keywords if w in answer)
			if matched >= math.ceil(len(keywords) * KEYWORD_MATCH_RATIO):
				return True
		if answer and similarity(answer, expected) > SIMILARITY_THRESHOLD:
			return True
	return False


def grade_mcq(question: MCQuestion, selected: Union[int, str]) -> ScoreEntry:
	# bool is an int subclass; never treat True/False as an option index
	correct = isinstance(selected, int) and not isinstance(selected, bool) and selected == question.correct_answer_index
	return ScoreEntry(is_correct=correct)


async def grade_short_answer(
	question: ShortAnswerQuestion,
	selected: Union[int, str],
	semantic_check: Optional[SemanticCheck] = None,
) -> ScoreEntry:
	answer = str(selected)
	if semantic_check is not None and answer.strip():
		try:
			verdict = await semantic_check(question.question_text, answer, list(question.acceptable_answers))
			return ScoreEntry(is_correct=bool(verdict), gemini_validated=True)
		except Exception as err:
			logger.warning("Semantic validation failed for %s, using keyword match: %s", question.id, err)
	return ScoreEntry(is_correct=is_short_answer_match(answer, question.acceptable_answers))


def bucket_percentages(questions: Sequence[Question], entries: Dict[str, ScoreEntry]) -> Dict[str, float]:
	"""Percentage correct per bucket; a question without an entry counts as wrong."""
	tally: Dict[str, Tuple[int, int]] = {bucket: (0, 0) for bucket in BUCKET_WEIGHTS}
	for question in questions:
		entry = entries.get(question.id)
		bucket = BUCKET_BY_DIFFICULTY[question.difficulty]
		correct, total = tally[bucket]
		tally[bucket] = (correct + int(entry is not None and entry.is_correct), total + 1)
	return {
		bucket: (correct / total) * 100 if total else 0.0
		for bucket, (correct, total) in tally.items()
	}


def weighted_total(percentages: Dict[str, float]) -> int:
	return round_half_up(sum(percentages[bucket] * weight for bucket, weight in BUCKET_WEIGHTS.items()))


def breakdown_from(percentages: Dict[str, float]) -> ScoreBreakdown:
	return ScoreBreakdown(**{bucket: round_half_up(p) for bucket, p in percentages.items()})


async def score_checkpoint(
	questions: Sequence[Question],
	answers: Sequence[SubmittedAnswer],
	semantic_check: Optional[SemanticCheck] = None,
) -> CheckpointScore:
	by_id = {q.id: q for q in questions}
	selected = {a.question_id: a.selected_answer for a in answers}
	entries: Dict[str, ScoreEntry] = {}

	for question in questions:
		if question.id not in selected:
			entries[question.id] = ScoreEntry(is_correct=False)
		elif isinstance(question, MCQuestion):
			entries[question.id] = grade_mcq(question, selected[question.id])
		else:
			entries[question.id] = await grade_short_answer(question, selected[question.id], semantic_check)

	for question_id in selected:
		if question_id not in by_id:
			logger.info("Answer for unknown question %s marked incorrect", question_id)
			entries[question_id] = ScoreEntry(is_correct=False)

	percentages = bucket_percentages(questions, entries)
	score = weighted_total(percentages)
	return CheckpointScore(
		score=score,
		breakdown=breakdown_from(percentages),
		can_progress=score >= PASS_THRESHOLD,
		entries=entries,
	)
