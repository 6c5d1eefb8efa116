from __future__ import annotations
import logging
import time
import uuid
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..answer_validation import validate_short_answer
from ..db import get_db
from ..engine import (
	QuestionSet,
	ScoreBreakdown,
	SemanticCheck,
	SubmittedAnswer,
	build_set_id,
	generate_question_set,
	parse_set_id,
	score_checkpoint,
)
from ..engine.numbers import round_half_up
from ..models import Attempt, Subtopic
from ..progress_repository import (
	COMPLETED,
	IN_PROGRESS,
	ExitPoint,
	dump_exit_point,
	dumps,
	next_subtopic,
	upsert_progress,
)
from ..schemas import ApiModel
from ..settings import settings
from .auth import get_actor_id, require_actor

router = APIRouter(prefix="/checkpoint", tags=["checkpoint"])

logger = logging.getLogger(__name__)

DEFAULT_ADAPTATION_MODIFIER = 1


class GenerateCheckpointRequest(ApiModel):
	subtopic_id: str = Field(min_length=1)
	complexity_score: int = Field(ge=1, le=4)
	# Content reports a 2dp modifier; the checkpoint uses it rounded
	adaptation_modifier: float = Field(default=DEFAULT_ADAPTATION_MODIFIER, ge=0, le=2)
	seed: Optional[str] = None


class SubmitCheckpointRequest(ApiModel):
	subtopic_id: str = Field(min_length=1)
	set_id: str = Field(min_length=1, max_length=64)
	answers: List[SubmittedAnswer]
	time_spent_seconds: float = Field(ge=0)


class SubmitCheckpointResponse(ApiModel):
	score: int
	breakdown: ScoreBreakdown
	can_progress: bool
	attempt_id: str
	next_subtopic_id: Optional[str] = None


def rebuild_question_set(subtopic_id: str, complexity_score: int, adaptation_modifier: int, set_id: str) -> QuestionSet:
	try:
		return generate_question_set(subtopic_id, complexity_score, adaptation_modifier, seed=set_id)
	except ValidationError as err:
		raise HTTPException(status_code=400, detail=f"Invalid checkpoint parameters: {err.errors()[0]['msg']}")


def set_parameters(set_id: str) -> Tuple[int, int]:
	try:
		return parse_set_id(set_id)
	except ValueError as err:
		raise HTTPException(status_code=400, detail=str(err))


def generate_checkpoint(req: GenerateCheckpointRequest) -> QuestionSet:
	modifier = round_half_up(req.adaptation_modifier)
	set_id = build_set_id(req.complexity_score, modifier, req.seed)
	question_set = rebuild_question_set(req.subtopic_id, req.complexity_score, modifier, set_id)
	logger.debug("Generated set %s with %d questions for %s", question_set.set_id, question_set.count, req.subtopic_id)
	return question_set


def semantic_check() -> Optional[SemanticCheck]:
	return validate_short_answer if settings.gemini_api_key else None


async def submit_checkpoint(req: SubmitCheckpointRequest, db: Session, actor_id: Optional[str]) -> SubmitCheckpointResponse:
	user_id = require_actor(actor_id)
	subtopic = db.get(Subtopic, req.subtopic_id)
	if subtopic is None:
		raise HTTPException(status_code=404, detail="Subtopic not found")

	complexity, modifier = set_parameters(req.set_id)
	if complexity != subtopic.complexity_score:
		raise HTTPException(
			status_code=400,
			detail=f"Question set was generated for complexity {complexity}, subtopic has {subtopic.complexity_score}",
		)
	question_set = rebuild_question_set(subtopic.id, complexity, modifier, req.set_id)
	result = await score_checkpoint(question_set.questions, req.answers, semantic_check())
	following = next_subtopic(db, subtopic) if result.can_progress else None

	exit_point = ExitPoint(
		type="checkpoint",
		position=100,
		timestamp=int(time.time() * 1000),
		score=result.score,
		passed=result.can_progress,
	)
	scores: Dict[str, dict] = {qid: entry.model_dump(by_alias=True) for qid, entry in result.entries.items()}
	attempt = Attempt(
		id=uuid.uuid4().hex,
		user_id=user_id,
		subtopic_id=subtopic.id,
		questions_json=dumps({
			"setId": question_set.set_id,
			"complexityScore": complexity,
			"adaptationModifier": modifier,
			"questionIds": [q.id for q in question_set.questions],
		}),
		answers_json=dumps([a.model_dump(by_alias=True) for a in req.answers]),
		scores_json=dumps(scores),
		total_score=result.score,
		time_spent_seconds=round_half_up(req.time_spent_seconds),
	)
	try:
		db.add(attempt)
		if result.can_progress:
			current = upsert_progress(
				db,
				user_id,
				subtopic.id,
				status=COMPLETED,
				current_phase="results",
				exit_point_json=dump_exit_point(exit_point),
				completed_at=datetime.utcnow(),
			)
			if following is not None:
				upsert_progress(db, user_id, following.id, keep_completed=True, status=IN_PROGRESS, current_phase="content")
		else:
			# A failed retake never revokes an earlier completion
			current = upsert_progress(
				db,
				user_id,
				subtopic.id,
				keep_completed=True,
				status=IN_PROGRESS,
				current_phase="checkpoint",
				exit_point_json=dump_exit_point(exit_point),
			)
		# Best foundation-bucket result so far, 0..1
		current.core_mastery = max(current.core_mastery or 0.0, result.breakdown.foundation / 100)
		db.commit()
	except SQLAlchemyError:
		db.rollback()
		logger.exception("Could not record attempt for %s on %s", user_id, subtopic.id)
		raise HTTPException(status_code=500, detail="Could not record checkpoint attempt")

	logger.info("User %s scored %d on %s (pass=%s)", user_id, result.score, subtopic.id, result.can_progress)
	return SubmitCheckpointResponse(
		score=result.score,
		breakdown=result.breakdown,
		can_progress=result.can_progress,
		attempt_id=attempt.id,
		next_subtopic_id=following.id if following is not None else None,
	)


@router.post("/generate", response_model=QuestionSet)
def generate(req: GenerateCheckpointRequest):
	return generate_checkpoint(req)


@router.post("/submit", response_model=SubmitCheckpointResponse)
async def submit(req: SubmitCheckpointRequest, db: Session = Depends(get_db), actor_id: Optional[str] = Depends(get_actor_id)):
	return await submit_checkpoint(req, db, actor_id)
