import json

from conftest import correct_answers, wrong_answers
from gritflow.models import Attempt


def submit(client, answers_for, subtopic_id="basic-types", complexity=1, headers=None):
	qs = client.post("/checkpoint/generate", json={"subtopicId": subtopic_id, "complexityScore": complexity}).json()
	body = {"subtopicId": subtopic_id, "setId": qs["setId"], "answers": answers_for(qs), "timeSpentSeconds": 30}
	return qs, client.post("/checkpoint/submit", json=body, headers=headers or {}).json()


class TestResults:
	"""Reviewing a recorded attempt."""

	def test_passing_attempt(self, client, catalog):
		qs, submitted = submit(client, correct_answers)
		body = client.get(f"/results/{submitted['attemptId']}").json()
		assert body["totalScore"] == 100
		assert body["canProgress"] is True
		assert body["nextSubtopicId"] == "interfaces"
		assert body["subtopicTitle"] == "Basic Types"
		assert body["timeSpentSeconds"] == 30
		assert body["breakdown"] == submitted["breakdown"]
		assert [q["id"] for q in body["questions"]] == [q["id"] for q in qs["questions"]]
		assert all(a["isCorrect"] for a in body["userAnswers"])

	def test_questions_match_generated_set(self, client, catalog):
		qs, submitted = submit(client, wrong_answers)
		body = client.get(f"/results/{submitted['attemptId']}").json()
		first = body["questions"][0]
		assert first["options"] == qs["questions"][0]["options"]
		assert first["correctAnswerIndex"] == qs["questions"][0]["correctAnswerIndex"]
		last = body["questions"][-1]
		assert last["type"] == "shortAnswer"
		assert last["acceptableAnswers"] == qs["questions"][-1]["acceptableAnswers"]
		assert last["explanation"].startswith("Hint: ")
		assert body["canProgress"] is False
		assert body["nextSubtopicId"] is None
		assert not any(a["isCorrect"] for a in body["userAnswers"])

	def test_other_users_attempt_is_hidden(self, client, catalog, auth_headers):
		_, submitted = submit(client, correct_answers)
		r = client.get(f"/results/{submitted['attemptId']}", headers=auth_headers)
		assert r.status_code == 404

	def test_unknown_attempt(self, client, catalog):
		assert client.get("/results/does-not-exist").status_code == 404

	def test_attempt_without_stored_set(self, client, db, catalog):
		client.get("/dashboard/topics")
		db.add(Attempt(
			id="legacy",
			user_id="demo-user",
			subtopic_id="basic-types",
			questions_json="[]",
			answers_json=json.dumps([
				{"questionId": "q1", "selectedAnswer": 2},
				{"questionId": "q2", "selectedAnswer": "types"},
			]),
			scores_json=json.dumps({"q1": True, "q2": {"isCorrect": False, "geminiValidated": False}}),
			total_score=50,
			time_spent_seconds=10,
		))
		db.commit()
		body = client.get("/results/legacy").json()
		assert body["breakdown"] is None
		assert [q["questionText"] for q in body["questions"]] == ["Question 1", "Question 2"]
		assert body["questions"][0]["explanation"] == "You selected option C."
		assert body["questions"][1]["type"] == "shortAnswer"
		assert [a["isCorrect"] for a in body["userAnswers"]] == [True, False]
		assert body["canProgress"] is False
