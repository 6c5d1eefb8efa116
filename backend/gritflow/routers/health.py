from __future__ import annotations
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..db import get_db
from ..schemas import ApiModel
from ..settings import settings

router = APIRouter(tags=["health"])

logger = logging.getLogger(__name__)


class HealthStatus(ApiModel):
	status: str
	database: str
	gemini_configured: bool


def health_status(db: Session) -> HealthStatus:
	try:
		db.execute(text("SELECT 1"))
		database = "ok"
	except SQLAlchemyError:
		logger.warning("Database health check failed", exc_info=True)
		database = "error"
	return HealthStatus(status="ok", database=database, gemini_configured=bool(settings.gemini_api_key))


@router.get("/health", response_model=HealthStatus)
def health(db: Session = Depends(get_db)):
	return health_status(db)
