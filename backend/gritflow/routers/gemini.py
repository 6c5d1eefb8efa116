from __future__ import annotations
import logging
from typing import Literal, Optional

from fastapi import APIRouter, HTTPException, Depends
from pydantic import Field

from ..feedback import feedback_with_fallback
from ..gemini_client import GeminiClient, GeminiError
from ..schemas import ApiModel
from ..settings import settings
from .auth import get_current_user, SessionUser

router = APIRouter(prefix="/gemini", tags=["gemini"])

logger = logging.getLogger(__name__)


class FeedbackRequest(ApiModel):
	question: str
	user_answer: str
	correct_answer: str


class FeedbackResponse(ApiModel):
	feedback: str
	source: Literal["gemini", "local"]


class GenerateRequest(ApiModel):
	prompt: str
	temperature: Optional[float] = Field(default=None, ge=0, le=2)
	max_tokens: Optional[int] = Field(default=None, ge=1, le=8192)


async def question_feedback(req: FeedbackRequest) -> FeedbackResponse:
	for name in ("question", "user_answer", "correct_answer"):
		if not getattr(req, name).strip():
			raise HTTPException(status_code=400, detail=f"Missing or invalid '{name}' field")
	text, source = await feedback_with_fallback(req.question, req.user_answer, req.correct_answer)
	return FeedbackResponse(feedback=text, source=source)


@router.get("")
def status():
	return {"status": "ready" if settings.gemini_api_key else "unconfigured", "model": settings.gemini_model}


@router.post("/feedback", response_model=FeedbackResponse)
async def feedback(req: FeedbackRequest):
	return await question_feedback(req)


@router.post("/generate")
async def generate(req: GenerateRequest, user: SessionUser = Depends(get_current_user)):
	if not req.prompt.strip():
		raise HTTPException(status_code=400, detail="Missing or invalid 'prompt' field")
	try:
		client = GeminiClient()
	except ValueError as e:
		raise HTTPException(status_code=500, detail=f"API configuration error: {e}")
	try:
		text = await client.generate(
			req.prompt,
			temperature=0.7 if req.temperature is None else req.temperature,
			max_output_tokens=req.max_tokens or 2048,
		)
	except GeminiError as e:
		logger.warning("Gemini generate failed for %s: %s", user.id, e)
		status_code = 429 if "rate limit" in str(e) else 500
		raise HTTPException(status_code=status_code, detail=str(e))
	finally:
		await client.aclose()
	return {"content": text}
