from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import Subtopic
from ..progress_repository import IN_PROGRESS, ExitPoint, dump_exit_point, upsert_progress
from ..schemas import ApiModel, SuccessResponse
from .auth import get_actor_id

router = APIRouter(prefix="/progress", tags=["progress"])


class SaveCheckpointProgressRequest(ApiModel):
	subtopic_id: str = Field(min_length=1)
	position: float = Field(ge=0, le=100)
	timestamp: int


def save_checkpoint_progress(req: SaveCheckpointProgressRequest, db: Session, actor_id: Optional[str]) -> SuccessResponse:
	if not actor_id:
		return SuccessResponse()
	if db.get(Subtopic, req.subtopic_id) is None:
		raise HTTPException(status_code=404, detail="Subtopic not found")
	exit_point = ExitPoint(type="checkpoint", position=req.position, timestamp=req.timestamp)
	upsert_progress(
		db,
		actor_id,
		req.subtopic_id,
		keep_completed=True,
		status=IN_PROGRESS,
		current_phase="checkpoint",
		exit_point_json=dump_exit_point(exit_point),
	)
	db.commit()
	return SuccessResponse()


@router.post("", response_model=SuccessResponse)
def save(req: SaveCheckpointProgressRequest, db: Session = Depends(get_db), actor_id: Optional[str] = Depends(get_actor_id)):
	return save_checkpoint_progress(req, db, actor_id)
