from __future__ import annotations
import json
import logging
from typing import Dict, List, Literal, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from .engine.adaptive import AdaptationSignals
from .models import Attempt, Subtopic, UserProgress
from .schemas import ApiModel

logger = logging.getLogger(__name__)

NOT_STARTED = "not_started"
IN_PROGRESS = "in_progress"
COMPLETED = "completed"


class ExitPoint(ApiModel):
	type: Literal["content", "checkpoint"]
	position: float = 0
	timestamp: int
	signals: Optional[AdaptationSignals] = None
	adaptation_modifier: Optional[float] = None
	score: Optional[int] = None
	passed: Optional[bool] = None


def dump_exit_point(exit_point: ExitPoint) -> str:
	return exit_point.model_dump_json(by_alias=True, exclude_none=True)


def load_exit_point(progress: Optional[UserProgress]) -> Optional[ExitPoint]:
	if progress is None or not progress.exit_point_json:
		return None
	try:
		return ExitPoint.model_validate_json(progress.exit_point_json)
	except ValidationError:
		logger.warning("Ignoring malformed exit point on progress %s", progress.id)
		return None


def ordered_subtopics(db: Session, topic_id: str) -> List[Subtopic]:
	return (
		db.query(Subtopic)
		.filter(Subtopic.topic_id == topic_id)
		.order_by(Subtopic.complexity_score.asc(), Subtopic.order_index.asc(), Subtopic.id.asc())
		.all()
	)


def next_subtopic(db: Session, subtopic: Subtopic) -> Optional[Subtopic]:
	siblings = ordered_subtopics(db, subtopic.topic_id)
	ids = [s.id for s in siblings]
	index = ids.index(subtopic.id)
	if index + 1 < len(siblings):
		return siblings[index + 1]
	return None


def get_progress(db: Session, user_id: str, subtopic_id: str) -> Optional[UserProgress]:
	return (
		db.query(UserProgress)
		.filter(UserProgress.user_id == user_id, UserProgress.subtopic_id == subtopic_id)
		.first()
	)


def completed_subtopic_ids(db: Session, user_id: str) -> set:
	rows = (
		db.query(UserProgress.subtopic_id)
		.filter(UserProgress.user_id == user_id, UserProgress.status == COMPLETED)
		.all()
	)
	return {r[0] for r in rows}


def upsert_progress(db: Session, user_id: str, subtopic_id: str, *, keep_completed: bool = False, **fields) -> UserProgress:
	"""Create or update the (user, subtopic) row. Does not commit.

	With ``keep_completed`` a row already marked completed keeps its status and
	phase; only the other fields (exit point) are updated.
	"""
	row = get_progress(db, user_id, subtopic_id)
	if row is None:
		row = UserProgress(user_id=user_id, subtopic_id=subtopic_id)
		db.add(row)
	elif keep_completed and row.status == COMPLETED:
		fields.pop("status", None)
		fields.pop("current_phase", None)
	for key, value in fields.items():
		setattr(row, key, value)
	return row


def latest_attempt(db: Session, user_id: str, subtopic_id: str) -> Optional[Attempt]:
	return (
		db.query(Attempt)
		.filter(Attempt.user_id == user_id, Attempt.subtopic_id == subtopic_id)
		.order_by(Attempt.created_at.desc())
		.first()
	)


def dumps(value) -> str:
	return json.dumps(value, separators=(",", ":"))


def mastery_by_subtopic(db: Session, user_id: str) -> Dict[str, float]:
	rows = (
		db.query(UserProgress.subtopic_id, UserProgress.core_mastery)
		.filter(UserProgress.user_id == user_id)
		.all()
	)
	return {subtopic_id: mastery or 0.0 for subtopic_id, mastery in rows}
