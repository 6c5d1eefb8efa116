import logging
from typing import Optional

import sentry_sdk

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import models  # noqa: F401  registers tables on Base
from .db import Base, engine, ensure_schema
from .settings import settings
from .routers import health, gemini
from .routers import auth
from .routers import checkpoint
from .routers import content
from .routers import dashboard
from .routers import progress
from .routers import results
from .routers import rpc

logging.basicConfig(
	level=getattr(logging, settings.log_level.upper(), logging.INFO),
	format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("gritflow")


def init_sentry(dsn: Optional[str] = None) -> bool:
	dsn = dsn or settings.sentry_dsn
	if not dsn:
		return False
	# The FastAPI integration is picked up automatically once initialised
	sentry_sdk.init(dsn=dsn, traces_sample_rate=settings.sentry_traces_sample_rate)
	logger.info("Sentry error reporting enabled")
	return True


init_sentry()

app = FastAPI(title="Grit Flow API")
app.add_middleware(
	CORSMiddleware,
	allow_origins=settings.cors_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)
app.include_router(health.router)
app.include_router(gemini.router)
app.include_router(auth.router)
app.include_router(checkpoint.router)
app.include_router(content.router)
app.include_router(dashboard.router)
app.include_router(progress.router)
app.include_router(results.router)
app.include_router(rpc.router)


@app.get("/info")
def root():
	return {"status": "ok", "gemini_configured": bool(settings.gemini_api_key)}


@app.on_event("startup")
async def startup_event():
	Base.metadata.create_all(bind=engine)
	ensure_schema()
	logger.info("Grit Flow API started (demo_mode=%s)", settings.demo_mode)
