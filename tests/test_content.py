import json

from gritflow.models import UserProgress
from gritflow.settings import settings

COMFORTABLE = {"scrollSpeed": 200, "pausePoints": 0, "revisitCount": 0, "timeOnPage": 10000}


def stored_exit_point(db, subtopic_id, user_id="demo-user"):
	db.expire_all()
	row = db.query(UserProgress).filter_by(user_id=user_id, subtopic_id=subtopic_id).one()
	return row, json.loads(row.exit_point_json)


class TestContent:
	"""Reading a subtopic and saving the reader's place."""

	def test_fresh_content(self, client, catalog):
		body = client.get("/content/basic-types").json()
		assert body["title"] == "Basic Types"
		assert body["content"]["learningObjectives"] == ["Primitives"]
		assert body["complexityScore"] == 1
		assert body["resumePosition"] == 0
		assert body["status"] == "not_started"
		assert body["currentPhase"] == "content"
		assert body["adaptationModifier"] == 1.0

	def test_unknown_subtopic(self, client, catalog):
		assert client.get("/content/missing").status_code == 404

	def test_save_and_resume(self, client, db, catalog):
		r = client.post(
			"/content/progress",
			json={"subtopicId": "basic-types", "position": 42.5, "timestamp": 1700000000000, "signals": COMFORTABLE},
		)
		assert r.json() == {"success": True}

		row, exit_point = stored_exit_point(db, "basic-types")
		assert row.status == "in_progress"
		assert exit_point["type"] == "content"
		assert exit_point["adaptationModifier"] == 1.65
		assert exit_point["signals"]["scrollSpeed"] == 200

		body = client.get("/content/basic-types").json()
		assert body["resumePosition"] == 42.5
		assert body["status"] == "in_progress"
		assert body["adaptationModifier"] == 1.65

	def test_save_without_signals_uses_defaults(self, client, db, catalog):
		client.post("/content/progress", json={"subtopicId": "generics", "position": 10, "timestamp": 1})
		_, exit_point = stored_exit_point(db, "generics")
		assert exit_point["adaptationModifier"] == 1.0
		assert exit_point["signals"] == {"scrollSpeed": 0.0, "pausePoints": 0, "revisitCount": 0, "timeOnPage": 0.0}

	def test_position_out_of_range(self, client, catalog):
		r = client.post("/content/progress", json={"subtopicId": "generics", "position": 120, "timestamp": 1})
		assert r.status_code == 422

	def test_save_unknown_subtopic(self, client, catalog):
		r = client.post("/content/progress", json={"subtopicId": "missing", "position": 10, "timestamp": 1})
		assert r.status_code == 404

	def test_completed_status_survives_rereading(self, client, db, catalog):
		db.add(UserProgress(user_id="demo-user", subtopic_id="interfaces", status="completed", current_phase="results"))
		db.commit()
		client.post("/content/progress", json={"subtopicId": "interfaces", "position": 5, "timestamp": 2})
		row, exit_point = stored_exit_point(db, "interfaces")
		assert row.status == "completed"
		assert row.current_phase == "results"
		assert exit_point["position"] == 5

	def test_anonymous_save_is_noop(self, client, db, catalog, monkeypatch):
		monkeypatch.setattr(settings, "demo_mode", False)
		r = client.post("/content/progress", json={"subtopicId": "basic-types", "position": 10, "timestamp": 1})
		assert r.json() == {"success": True}
		assert db.query(UserProgress).count() == 0
		assert client.get("/content/basic-types").json()["status"] == "not_started"


class TestCheckpointProgress:
	def test_save_checkpoint_position(self, client, db, catalog):
		r = client.post("/progress", json={"subtopicId": "basic-types", "position": 60, "timestamp": 3})
		assert r.json() == {"success": True}
		row, exit_point = stored_exit_point(db, "basic-types")
		assert row.current_phase == "checkpoint"
		assert exit_point == {"type": "checkpoint", "position": 60.0, "timestamp": 3}

	def test_unknown_subtopic(self, client, catalog):
		r = client.post("/progress", json={"subtopicId": "missing", "position": 60, "timestamp": 3})
		assert r.status_code == 404
