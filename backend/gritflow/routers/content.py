from __future__ import annotations
import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field
from sqlalchemy.orm import Session

from ..db import get_db
from ..engine import AdaptationSignals, calculate_complexity_adjustment, default_signals
from ..models import Subtopic
from ..progress_repository import (
	IN_PROGRESS,
	NOT_STARTED,
	ExitPoint,
	dump_exit_point,
	get_progress,
	load_exit_point,
	upsert_progress,
)
from ..schemas import ApiModel, SuccessResponse
from .auth import get_actor_id

router = APIRouter(prefix="/content", tags=["content"])

logger = logging.getLogger(__name__)

DEFAULT_ADAPTATION_MODIFIER = 1.0


class ContentRequest(ApiModel):
	subtopic_id: str = Field(min_length=1)


class SaveContentProgressRequest(ApiModel):
	subtopic_id: str = Field(min_length=1)
	position: float = Field(ge=0, le=100)
	timestamp: int
	signals: Optional[AdaptationSignals] = None


class ContentResponse(ApiModel):
	content: Dict[str, Any]
	title: str
	complexity_score: int
	resume_position: float
	status: str
	current_phase: str
	adaptation_modifier: float


def _parse_content(subtopic: Subtopic) -> Dict[str, Any]:
	try:
		data = json.loads(subtopic.content_json or "{}")
	except ValueError:
		logger.warning("Subtopic %s has malformed content JSON", subtopic.id)
		return {}
	return data if isinstance(data, dict) else {"body": data}


def get_content(req: ContentRequest, db: Session, actor_id: Optional[str]) -> ContentResponse:
	subtopic = db.get(Subtopic, req.subtopic_id)
	if subtopic is None:
		raise HTTPException(status_code=404, detail="Subtopic not found")

	resume_position = 0.0
	status = NOT_STARTED
	current_phase = "content"
	modifier = DEFAULT_ADAPTATION_MODIFIER

	progress = get_progress(db, actor_id, subtopic.id) if actor_id else None
	if progress is not None:
		status = progress.status
		current_phase = progress.current_phase
		exit_point = load_exit_point(progress)
		if exit_point is not None:
			resume_position = exit_point.position
			if exit_point.adaptation_modifier is not None:
				modifier = exit_point.adaptation_modifier

	return ContentResponse(
		content=_parse_content(subtopic),
		title=subtopic.title,
		complexity_score=subtopic.complexity_score,
		resume_position=resume_position,
		status=status,
		current_phase=current_phase,
		adaptation_modifier=modifier,
	)


def save_content_progress(req: SaveContentProgressRequest, db: Session, actor_id: Optional[str]) -> SuccessResponse:
	# Anonymous readers without a demo identity have nowhere to store progress
	if not actor_id:
		return SuccessResponse()
	subtopic = db.get(Subtopic, req.subtopic_id)
	if subtopic is None:
		raise HTTPException(status_code=404, detail="Subtopic not found")

	signals = req.signals or default_signals()
	modifier = DEFAULT_ADAPTATION_MODIFIER
	if req.signals is not None:
		modifier = calculate_complexity_adjustment(req.signals, subtopic.complexity_score).modifier
	exit_point = ExitPoint(
		type="content",
		position=req.position,
		timestamp=req.timestamp,
		signals=signals,
		adaptation_modifier=modifier,
	)
	upsert_progress(
		db,
		actor_id,
		subtopic.id,
		keep_completed=True,
		status=IN_PROGRESS,
		current_phase="content",
		exit_point_json=dump_exit_point(exit_point),
	)
	db.commit()
	return SuccessResponse()


@router.get("/{subtopic_id}", response_model=ContentResponse)
def content(subtopic_id: str, db: Session = Depends(get_db), actor_id: Optional[str] = Depends(get_actor_id)):
	return get_content(ContentRequest(subtopic_id=subtopic_id), db, actor_id)


@router.post("/progress", response_model=SuccessResponse)
def save_progress(req: SaveContentProgressRequest, db: Session = Depends(get_db), actor_id: Optional[str] = Depends(get_actor_id)):
	return save_content_progress(req, db, actor_id)
