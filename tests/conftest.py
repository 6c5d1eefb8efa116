"""Shared fixtures: in-memory database, seeded catalog, API client."""

import json
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gritflow.db import Base, get_db
from gritflow.main import app
from gritflow.models import Subtopic, Topic
from gritflow.settings import settings


@pytest.fixture(autouse=True)
def offline_settings(monkeypatch):
	"""Never reach Gemini from tests and start each test in demo mode."""
	monkeypatch.setattr(settings, "gemini_api_key", None)
	monkeypatch.setattr(settings, "demo_mode", True)


@pytest.fixture
def engine():
	eng = create_engine(
		"sqlite://",
		connect_args={"check_same_thread": False},
		poolclass=StaticPool,
		future=True,
	)
	Base.metadata.create_all(eng)
	yield eng
	eng.dispose()


@pytest.fixture
def session_factory(engine):
	return sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


@pytest.fixture
def db(session_factory):
	session = session_factory()
	yield session
	session.close()


@pytest.fixture
def client(session_factory):
	def override_get_db():
		session = session_factory()
		try:
			yield session
		finally:
			session.close()

	app.dependency_overrides[get_db] = override_get_db
	yield TestClient(app)
	app.dependency_overrides.clear()


@pytest.fixture
def catalog(db):
	"""Two topics: 'basics' with three subtopics, 'advanced' with one."""
	basics = Topic(id="basics", title="TypeScript Fundamentals", description="Types and interfaces.", order_index=1)
	advanced = Topic(id="advanced", title="Advanced Patterns", description="Harder things.", order_index=2, status="locked")
	db.add_all([basics, advanced])
	db.add_all([
		Subtopic(
			id="basic-types",
			topic_id="basics",
			title="Basic Types",
			order_index=1,
			complexity_score=1,
			estimated_minutes=30,
			content_json=json.dumps({"title": "Basic Types", "learningObjectives": ["Primitives"]}),
		),
		Subtopic(id="interfaces", topic_id="basics", title="Interfaces", order_index=2, complexity_score=1),
		Subtopic(id="generics", topic_id="basics", title="Generics", order_index=3, complexity_score=2),
		Subtopic(id="state", topic_id="advanced", title="State Management", order_index=1, complexity_score=4),
	])
	db.commit()
	return {"basics": basics, "advanced": advanced}


@pytest.fixture
def auth_headers(client):
	"""Register a user and return bearer headers for them."""
	client.post("/auth/register", json={"email": "ada@example.com", "password": "correct horse", "name": "Ada"})
	response = client.post("/auth/token", data={"username": "ada@example.com", "password": "correct horse"})
	token = response.json()["access_token"]
	return {"Authorization": f"Bearer {token}"}


def correct_answers(question_set):
	"""Answers that score every question in a generated set as correct."""
	answers = []
	for q in question_set["questions"]:
		if q["type"] == "mcq":
			answers.append({"questionId": q["id"], "selectedAnswer": q["correctAnswerIndex"]})
		else:
			answers.append({"questionId": q["id"], "selectedAnswer": q["acceptableAnswers"][0]})
	return answers


def wrong_answers(question_set):
	answers = []
	for q in question_set["questions"]:
		if q["type"] == "mcq":
			answers.append({"questionId": q["id"], "selectedAnswer": (q["correctAnswerIndex"] + 1) % 4})
		else:
			answers.append({"questionId": q["id"], "selectedAnswer": "no idea"})
	return answers
