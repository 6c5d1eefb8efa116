from __future__ import annotations
import json
import logging
from datetime import datetime
from typing import Dict, List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field, ValidationError
from sqlalchemy.orm import Session

from ..db import get_db
from ..engine import MCQuestion, PASS_THRESHOLD, ScoreBreakdown, ScoreEntry, parse_set_id
from ..engine.scoring import breakdown_from, bucket_percentages
from ..models import Attempt, Subtopic
from ..progress_repository import next_subtopic
from ..schemas import ApiModel
from .auth import get_actor_id
from .checkpoint import rebuild_question_set

router = APIRouter(prefix="/results", tags=["results"])

logger = logging.getLogger(__name__)


class ResultsRequest(ApiModel):
	attempt_id: str = Field(min_length=1)


class ResultQuestion(ApiModel):
	id: str
	question_text: str
	type: str
	difficulty: str
	options: Optional[List[str]] = None
	correct_answer_index: Optional[int] = None
	acceptable_answers: Optional[List[str]] = None
	explanation: str


class UserAnswer(ApiModel):
	question_id: str
	selected_answer: Union[int, str, None] = None
	is_correct: bool


class AttemptResults(ApiModel):
	attempt_id: str
	total_score: int
	can_progress: bool
	next_subtopic_id: Optional[str] = None
	time_spent_seconds: int
	created_at: datetime
	subtopic_id: str
	subtopic_title: str
	breakdown: Optional[ScoreBreakdown] = None
	questions: List[ResultQuestion]
	user_answers: List[UserAnswer]


def _load_json(raw: Optional[str], default):
	try:
		return json.loads(raw) if raw else default
	except ValueError:
		return default


def _describe_answer(selected) -> str:
	if isinstance(selected, int) and not isinstance(selected, bool):
		return f"You selected option {chr(65 + selected)}." if 0 <= selected < 26 else f"You selected option {selected}."
	return f'You answered: "{selected}".'


def _stored_questions(attempt: Attempt, subtopic: Subtopic) -> Optional[list]:
	"""Regenerate the exact question set an attempt was scored against."""
	reference = _load_json(attempt.questions_json, None)
	if not isinstance(reference, dict) or "setId" not in reference:
		return None
	set_id = str(reference["setId"])
	try:
		complexity, modifier = parse_set_id(set_id)
		question_set = rebuild_question_set(subtopic.id, complexity, modifier, set_id)
	except (HTTPException, ValueError):
		logger.warning("Could not rebuild question set for attempt %s", attempt.id)
		return None
	return question_set.questions


def get_results(req: ResultsRequest, db: Session, actor_id: Optional[str]) -> AttemptResults:
	attempt = None
	if actor_id:
		attempt = (
			db.query(Attempt)
			.filter(Attempt.id == req.attempt_id, Attempt.user_id == actor_id)
			.first()
		)
	if attempt is None:
		raise HTTPException(status_code=404, detail="Attempt not found")
	subtopic = db.get(Subtopic, attempt.subtopic_id)
	if subtopic is None:
		raise HTTPException(status_code=404, detail="Subtopic not found")

	answers = _load_json(attempt.answers_json, [])
	raw_scores = _load_json(attempt.scores_json, {})
	entries: Dict[str, ScoreEntry] = {}
	for question_id, value in raw_scores.items():
		try:
			entries[question_id] = ScoreEntry.model_validate(value if isinstance(value, dict) else {"isCorrect": bool(value)})
		except ValidationError:
			entries[question_id] = ScoreEntry(is_correct=False)
	selected = {a.get("questionId"): a.get("selectedAnswer") for a in answers if isinstance(a, dict)}

	questions = _stored_questions(attempt, subtopic)
	breakdown = None
	if questions is not None:
		display = [
			ResultQuestion(
				id=q.id,
				question_text=q.question_text,
				type=q.type,
				difficulty=q.difficulty,
				options=q.options if isinstance(q, MCQuestion) else None,
				correct_answer_index=q.correct_answer_index if isinstance(q, MCQuestion) else None,
				acceptable_answers=None if isinstance(q, MCQuestion) else q.acceptable_answers,
				explanation=q.explanation if isinstance(q, MCQuestion) else f"Hint: {q.hint}",
			)
			for q in questions
		]
		user_answers = [
			UserAnswer(
				question_id=q.id,
				selected_answer=selected.get(q.id),
				is_correct=entries[q.id].is_correct if q.id in entries else False,
			)
			for q in questions
		]
		breakdown = breakdown_from(bucket_percentages(questions, entries))
	else:
		# Set not reproducible; fall back to what the answers alone tell us
		display = [
			ResultQuestion(
				id=str(question_id),
				question_text=f"Question {i + 1}",
				type="mcq" if isinstance(value, int) else "shortAnswer",
				difficulty="medium",
				explanation=_describe_answer(value),
			)
			for i, (question_id, value) in enumerate(selected.items())
		]
		user_answers = [
			UserAnswer(
				question_id=str(question_id),
				selected_answer=value,
				is_correct=entries[question_id].is_correct if question_id in entries else False,
			)
			for question_id, value in selected.items()
		]

	can_progress = attempt.total_score >= PASS_THRESHOLD
	following = next_subtopic(db, subtopic) if can_progress else None
	return AttemptResults(
		attempt_id=attempt.id,
		total_score=attempt.total_score,
		can_progress=can_progress,
		next_subtopic_id=following.id if following is not None else None,
		time_spent_seconds=attempt.time_spent_seconds,
		created_at=attempt.created_at,
		subtopic_id=subtopic.id,
		subtopic_title=subtopic.title,
		breakdown=breakdown,
		questions=display,
		user_answers=user_answers,
	)


@router.get("/{attempt_id}", response_model=AttemptResults)
def results(attempt_id: str, db: Session = Depends(get_db), actor_id: Optional[str] = Depends(get_actor_id)):
	return get_results(ResultsRequest(attempt_id=attempt_id), db, actor_id)
