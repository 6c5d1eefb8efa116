"""Batched procedure endpoint.

``POST /api/rpc`` takes one call ``{"id", "method", "params"}`` or a list of
them and answers with ``{"id", "result"}`` or ``{"id", "error"}`` per call, in
order. Each call fails on its own; the HTTP status is 200 unless the request
itself is malformed.
"""
from __future__ import annotations
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Type, Union

from fastapi import APIRouter, Depends, HTTPException
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from ..db import get_db
from . import checkpoint, content, dashboard, gemini, health, progress, results
from .auth import SessionUser, get_optional_user, resolve_actor_id

router = APIRouter(prefix="/api", tags=["rpc"])

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 25

ERROR_CODES = {
	400: "BAD_REQUEST",
	401: "UNAUTHORIZED",
	403: "FORBIDDEN",
	404: "NOT_FOUND",
	409: "CONFLICT",
	429: "TOO_MANY_REQUESTS",
}


@dataclass(frozen=True)
class Procedure:
	handler: Callable[..., Any]
	input_model: Optional[Type[BaseModel]] = None


PROCEDURES: Dict[str, Procedure] = {
	"health": Procedure(health.health_status),
	"checkpoint.generate": Procedure(checkpoint.generate_checkpoint, checkpoint.GenerateCheckpointRequest),
	"checkpoint.submit": Procedure(checkpoint.submit_checkpoint, checkpoint.SubmitCheckpointRequest),
	"dashboard.getTopics": Procedure(dashboard.get_topics),
	"dashboard.getHistory": Procedure(dashboard.get_history),
	"dashboard.getResumePoint": Procedure(dashboard.get_resume_point),
	"dashboard.startTopic": Procedure(dashboard.start_topic, dashboard.TopicRequest),
	"dashboard.getFirstSubtopic": Procedure(dashboard.get_first_subtopic, dashboard.TopicRequest),
	"content.getContent": Procedure(content.get_content, content.ContentRequest),
	"content.saveProgress": Procedure(content.save_content_progress, content.SaveContentProgressRequest),
	"progress.save": Procedure(progress.save_checkpoint_progress, progress.SaveCheckpointProgressRequest),
	"results.get": Procedure(results.get_results, results.ResultsRequest),
	"gemini.feedback": Procedure(gemini.question_feedback, gemini.FeedbackRequest),
}


class RpcCall(BaseModel):
	id: Optional[Union[int, str]] = None
	method: str
	params: Optional[Dict[str, Any]] = None


def _error(call_id, code: str, status: int, message: str) -> Dict[str, Any]:
	return {"id": call_id, "error": {"code": code, "status": status, "message": message}}


class _CallContext:
	def __init__(self, db: Session, user: Optional[SessionUser]) -> None:
		self.db = db
		self.user = user
		self._actor_resolved = False
		self._actor_id: Optional[str] = None

	@property
	def actor_id(self) -> Optional[str]:
		# Resolved on first use so procedures without identity never create the demo user
		if not self._actor_resolved:
			self._actor_id = resolve_actor_id(self.db, self.user)
			self._actor_resolved = True
		return self._actor_id


async def _invoke(call: RpcCall, ctx: _CallContext) -> Dict[str, Any]:
	procedure = PROCEDURES.get(call.method)
	if procedure is None:
		return _error(call.id, "METHOD_NOT_FOUND", 404, f"Unknown method '{call.method}'")

	kwargs: Dict[str, Any] = {}
	wanted = inspect.signature(procedure.handler).parameters
	try:
		if procedure.input_model is not None:
			kwargs["req"] = procedure.input_model.model_validate(call.params or {})
		if "db" in wanted:
			kwargs["db"] = ctx.db
		if "actor_id" in wanted:
			kwargs["actor_id"] = ctx.actor_id
		result = procedure.handler(**kwargs)
		if inspect.isawaitable(result):
			result = await result
	except ValidationError as err:
		return _error(call.id, "BAD_REQUEST", 400, str(err))
	except HTTPException as err:
		return _error(call.id, ERROR_CODES.get(err.status_code, "INTERNAL_SERVER_ERROR"), err.status_code, str(err.detail))
	except Exception:
		logger.exception("Procedure %s failed", call.method)
		ctx.db.rollback()
		return _error(call.id, "INTERNAL_SERVER_ERROR", 500, "Internal server error")
	return {"id": call.id, "result": jsonable_encoder(result)}


@router.post("/rpc")
async def rpc(
	body: Union[List[RpcCall], RpcCall],
	db: Session = Depends(get_db),
	user: Optional[SessionUser] = Depends(get_optional_user),
):
	calls = body if isinstance(body, list) else [body]
	if len(calls) > MAX_BATCH_SIZE:
		raise HTTPException(status_code=400, detail=f"At most {MAX_BATCH_SIZE} calls per batch")
	ctx = _CallContext(db, user)
	responses = [await _invoke(call, ctx) for call in calls]
	return responses if isinstance(body, list) else responses[0]
