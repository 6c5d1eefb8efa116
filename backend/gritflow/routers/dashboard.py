from __future__ import annotations
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..engine.numbers import round_half_up
from ..models import Attempt, Subtopic, Topic, UserProgress
from ..progress_repository import (
	COMPLETED,
	IN_PROGRESS,
	completed_subtopic_ids,
	latest_attempt,
	mastery_by_subtopic,
	ordered_subtopics,
	upsert_progress,
)
from ..schemas import ApiModel
from .auth import get_actor_id

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

logger = logging.getLogger(__name__)


class TopicRequest(ApiModel):
	topic_id: str


class SubtopicSummary(ApiModel):
	id: str
	title: str
	order_index: int
	status: str
	estimated_minutes: int
	complexity_score: int
	core_mastery: float = 0.0


class TopicWithProgress(ApiModel):
	id: str
	title: str
	description: str
	status: str
	progress_percentage: int
	badge: int
	subtopics: List[SubtopicSummary]


class HistoryItem(ApiModel):
	attempt_id: str
	subtopic_id: str
	subtopic_title: str
	topic_title: str
	total_score: int
	time_spent_seconds: int
	completed_at: datetime


class ResumeMetadata(ApiModel):
	topic_title: str
	subtopic_title: str


class ResumePoint(ApiModel):
	url: str
	phase: str
	metadata: ResumeMetadata


class StartTopicResponse(ApiModel):
	success: bool
	first_subtopic_id: Optional[str] = None


class FirstSubtopic(ApiModel):
	id: str
	title: str


def badge_for(percentage: int) -> int:
	if percentage >= 75:
		return 100
	if percentage >= 25:
		return 50
	return 0


def get_topics(db: Session, actor_id: Optional[str]) -> List[TopicWithProgress]:
	topics = db.query(Topic).order_by(Topic.order_index.asc(), Topic.id.asc()).all()
	completed = completed_subtopic_ids(db, actor_id) if actor_id else set()
	mastery = mastery_by_subtopic(db, actor_id) if actor_id else {}

	result: List[TopicWithProgress] = []
	for topic in topics:
		subtopics = ordered_subtopics(db, topic.id)
		done = sum(1 for s in subtopics if s.id in completed)
		percentage = round_half_up(done / len(subtopics) * 100) if subtopics else 0
		status = COMPLETED if subtopics and done == len(subtopics) else topic.status
		result.append(TopicWithProgress(
			id=topic.id,
			title=topic.title,
			description=topic.description or "",
			status=status,
			progress_percentage=percentage,
			badge=badge_for(percentage),
			subtopics=[
				SubtopicSummary(
					id=s.id,
					title=s.title,
					order_index=i + 1,
					status=COMPLETED if s.id in completed else s.status,
					estimated_minutes=s.estimated_minutes,
					complexity_score=s.complexity_score,
					core_mastery=mastery.get(s.id, 0.0),
				)
				for i, s in enumerate(subtopics)
			],
		))
	return result


def get_history(db: Session, actor_id: Optional[str]) -> List[HistoryItem]:
	if not actor_id:
		return []
	rows = (
		db.query(Attempt, Subtopic, Topic)
		.join(Subtopic, Attempt.subtopic_id == Subtopic.id)
		.outerjoin(Topic, Subtopic.topic_id == Topic.id)
		.filter(Attempt.user_id == actor_id)
		.order_by(Attempt.created_at.desc())
		.all()
	)
	return [
		HistoryItem(
			attempt_id=attempt.id,
			subtopic_id=attempt.subtopic_id,
			subtopic_title=subtopic.title,
			topic_title=topic.title if topic is not None else "Unknown Topic",
			total_score=attempt.total_score,
			time_spent_seconds=attempt.time_spent_seconds,
			completed_at=attempt.created_at,
		)
		for attempt, subtopic, topic in rows
	]


def get_resume_point(db: Session, actor_id: Optional[str]) -> Optional[ResumePoint]:
	if not actor_id:
		return None
	progress = (
		db.query(UserProgress)
		.filter(UserProgress.user_id == actor_id, UserProgress.status == IN_PROGRESS)
		.order_by(UserProgress.updated_at.desc())
		.first()
	)
	if progress is None:
		return None
	subtopic = db.get(Subtopic, progress.subtopic_id)
	if subtopic is None:
		return None
	topic = db.get(Topic, subtopic.topic_id)

	url = f"/modules/content?subtopicId={subtopic.id}"
	if progress.current_phase == "checkpoint":
		url = f"/modules/checkpoint?subtopicId={subtopic.id}"
	elif progress.current_phase == "results":
		attempt = latest_attempt(db, actor_id, subtopic.id)
		if attempt is not None:
			url = f"/modules/results?attemptId={attempt.id}"
	return ResumePoint(
		url=url,
		phase=progress.current_phase,
		metadata=ResumeMetadata(topic_title=topic.title if topic is not None else "", subtopic_title=subtopic.title),
	)


def start_topic(req: TopicRequest, db: Session, actor_id: Optional[str]) -> StartTopicResponse:
	if not actor_id:
		return StartTopicResponse(success=False)
	subtopics = ordered_subtopics(db, req.topic_id)
	if not subtopics:
		return StartTopicResponse(success=False)
	completed = completed_subtopic_ids(db, actor_id)
	first = next((s for s in subtopics if s.id not in completed), subtopics[0])
	upsert_progress(db, actor_id, first.id, keep_completed=True, status=IN_PROGRESS, current_phase="content")
	db.commit()
	logger.info("User %s started topic %s at %s", actor_id, req.topic_id, first.id)
	return StartTopicResponse(success=True, first_subtopic_id=first.id)


def get_first_subtopic(req: TopicRequest, db: Session) -> Optional[FirstSubtopic]:
	subtopics = ordered_subtopics(db, req.topic_id)
	if not subtopics:
		return None
	return FirstSubtopic(id=subtopics[0].id, title=subtopics[0].title)


@router.get("/topics", response_model=List[TopicWithProgress])
def topics(db: Session = Depends(get_db), actor_id: Optional[str] = Depends(get_actor_id)):
	return get_topics(db, actor_id)


@router.get("/history", response_model=List[HistoryItem])
def history(db: Session = Depends(get_db), actor_id: Optional[str] = Depends(get_actor_id)):
	return get_history(db, actor_id)


@router.get("/resume", response_model=Optional[ResumePoint])
def resume(db: Session = Depends(get_db), actor_id: Optional[str] = Depends(get_actor_id)):
	return get_resume_point(db, actor_id)


@router.post("/topics/{topic_id}/start", response_model=StartTopicResponse)
def start(topic_id: str, db: Session = Depends(get_db), actor_id: Optional[str] = Depends(get_actor_id)):
	return start_topic(TopicRequest(topic_id=topic_id), db, actor_id)


@router.get("/topics/{topic_id}/first", response_model=Optional[FirstSubtopic])
def first_subtopic(topic_id: str, db: Session = Depends(get_db)):
	return get_first_subtopic(TopicRequest(topic_id=topic_id), db)
