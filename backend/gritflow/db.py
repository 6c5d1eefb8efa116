from __future__ import annotations
import logging

from sqlalchemy import create_engine, inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base
from .settings import settings

logger = logging.getLogger(__name__)

DATABASE_URL = settings.database_url or "sqlite:///./gritflow.db"

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=_connect_args, future=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


def get_db():
	db = SessionLocal()
	try:
		yield db
	finally:
		db.close()


# Best-effort lightweight migrations for development (SQLite-friendly)
_ADDED_COLUMNS = {
	"user_progress": {
		"core_mastery": "ALTER TABLE user_progress ADD COLUMN core_mastery FLOAT DEFAULT 0.0 NOT NULL",
		"completed_at": "ALTER TABLE user_progress ADD COLUMN completed_at DATETIME",
	},
	"subtopics": {
		"order_index": "ALTER TABLE subtopics ADD COLUMN order_index INTEGER DEFAULT 0 NOT NULL",
	},
}


def ensure_schema(bind=None) -> None:
	bind = bind or engine
	try:
		inspector = inspect(bind)
		tables = set(inspector.get_table_names())
	except SQLAlchemyError:
		logger.warning("Could not inspect database schema", exc_info=True)
		return
	for table, columns in _ADDED_COLUMNS.items():
		if table not in tables:
			continue
		existing = {c["name"] for c in inspector.get_columns(table)}
		with bind.begin() as conn:
			for name, ddl in columns.items():
				if name not in existing:
					logger.info("Adding column %s.%s", table, name)
					conn.exec_driver_sql(ddl)
