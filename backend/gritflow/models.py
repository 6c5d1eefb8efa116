from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Float, Text, ForeignKey, UniqueConstraint
from .db import Base


def _new_id() -> str:
	return uuid.uuid4().hex


class User(Base):
	__tablename__ = "users"
	id = Column(String(64), primary_key=True, default=_new_id)
	email = Column(String(256), unique=True, index=True, nullable=False)
	name = Column(String(256), nullable=True)
	# Null for users that never set a password (demo user)
	password_hash = Column(String(256), nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class AuthSession(Base):
	__tablename__ = "auth_sessions"
	session_id = Column(String(64), primary_key=True)
	user_id = Column(String(64), ForeignKey("users.id"), index=True, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	last_activity_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Topic(Base):
	__tablename__ = "topics"
	id = Column(String(64), primary_key=True, default=_new_id)
	title = Column(String(256), nullable=False)
	description = Column(Text, nullable=False, default="")
	order_index = Column(Integer, default=0, nullable=False)
	# locked | available | completed
	status = Column(String(32), default="available", nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Subtopic(Base):
	__tablename__ = "subtopics"
	id = Column(String(64), primary_key=True, default=_new_id)
	topic_id = Column(String(64), ForeignKey("topics.id"), index=True, nullable=False)
	title = Column(String(256), nullable=False)
	order_index = Column(Integer, default=0, nullable=False)
	complexity_score = Column(Integer, default=1, nullable=False)
	estimated_minutes = Column(Integer, default=30, nullable=False)
	status = Column(String(32), default="available", nullable=False)
	content_json = Column(Text, nullable=False, default="{}")
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class UserProgress(Base):
	__tablename__ = "user_progress"
	__table_args__ = (UniqueConstraint("user_id", "subtopic_id", name="uq_user_progress_user_subtopic"),)
	id = Column(String(64), primary_key=True, default=_new_id)
	user_id = Column(String(64), ForeignKey("users.id"), index=True, nullable=False)
	subtopic_id = Column(String(64), ForeignKey("subtopics.id"), index=True, nullable=False)
	# not_started | in_progress | completed
	status = Column(String(32), default="not_started", nullable=False)
	# content | checkpoint | results
	current_phase = Column(String(32), default="content", nullable=False)
	exit_point_json = Column(Text, nullable=True)
	core_mastery = Column(Float, default=0.0, nullable=False)
	completed_at = Column(DateTime, nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class Attempt(Base):
	__tablename__ = "attempts"
	id = Column(String(64), primary_key=True, default=_new_id)
	user_id = Column(String(64), ForeignKey("users.id"), index=True, nullable=False)
	subtopic_id = Column(String(64), ForeignKey("subtopics.id"), index=True, nullable=False)
	questions_json = Column(Text, nullable=False)  # question set reference, see checkpoint router
	answers_json = Column(Text, nullable=False)
	scores_json = Column(Text, nullable=False)
	total_score = Column(Integer, default=0, nullable=False)
	time_spent_seconds = Column(Integer, default=0, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
