"""Tests for checkpoint scoring."""

import asyncio

import pytest

from gritflow.engine import (
	MCQuestion,
	ShortAnswerQuestion,
	SubmittedAnswer,
	generate_question_set,
	is_short_answer_match,
	score_checkpoint,
)
from gritflow.engine.scoring import grade_mcq, levenshtein_distance, similarity


def mcq(qid, difficulty):
	return MCQuestion(
		id=qid,
		difficulty=difficulty,
		question_text="Pick one",
		topic_id="t",
		options=["a", "b", "c", "d"],
		correct_answer_index=0,
		explanation="a is right",
	)


def short(qid, difficulty, answer):
	return ShortAnswerQuestion(
		id=qid,
		difficulty=difficulty,
		question_text="Explain",
		topic_id="t",
		acceptable_answers=[answer],
		hint="think",
	)


def answer(qid, value):
	return SubmittedAnswer(question_id=qid, selected_answer=value)


def score(questions, answers, semantic_check=None):
	return asyncio.run(score_checkpoint(questions, answers, semantic_check))


class TestStringMatching:
	def test_levenshtein(self):
		assert levenshtein_distance("kitten", "sitting") == 3
		assert levenshtein_distance("", "abc") == 3
		assert levenshtein_distance("same", "same") == 0

	def test_similarity(self):
		assert similarity("", "") == 1.0
		assert similarity("abcd", "abce") == pytest.approx(0.75)

	def test_keyword_majority_matches(self):
		expected = ["It provides a foundation for building larger applications."]
		assert is_short_answer_match("it provides a foundation for larger applications", expected)

	def test_too_few_keywords_fails(self):
		expected = ["It provides a foundation for building larger applications."]
		assert not is_short_answer_match("a foundation", expected)

	def test_case_and_whitespace_ignored(self):
		assert is_short_answer_match("  STATE MANAGEMENT keeps data predictable ", ["State management keeps data flow predictable."])

	def test_close_spelling_matches_short_answer(self):
		assert is_short_answer_match("abstracton", ["abstraction"])

	def test_empty_answer_never_matches(self):
		assert not is_short_answer_match("   ", ["abstraction"])


class TestScoreCheckpoint:
	"""Weighted scoring over foundation/application/synthesis buckets."""

	def test_weighted_example_passes_at_seventy(self):
		questions = (
			[mcq(f"e{i}", "easy") for i in range(4)]
			+ [mcq(f"m{i}", "medium") for i in range(3)]
			+ [mcq(f"h{i}", "hard") for i in range(3)]
		)
		wrong = {"e3", "m2", "h2"}
		answers = [answer(q.id, 1 if q.id in wrong else 0) for q in questions]
		result = score(questions, answers)
		assert result.score == 70
		assert result.can_progress is True
		assert (result.breakdown.foundation, result.breakdown.application, result.breakdown.synthesis) == (75, 67, 67)

	def test_all_correct_scores_hundred(self):
		qs = generate_question_set("basic-types", 2, 1, seed="full")
		answers = [
			answer(q.id, q.correct_answer_index if isinstance(q, MCQuestion) else q.acceptable_answers[0])
			for q in qs.questions
		]
		result = score(qs.questions, answers)
		assert result.score == 100
		assert all(entry.is_correct for entry in result.entries.values())

	def test_unanswered_questions_count_as_wrong(self):
		questions = [mcq("e1", "easy"), mcq("m1", "medium"), mcq("h1", "hard")]
		result = score(questions, [answer("e1", 0)])
		assert result.score == 40
		assert result.can_progress is False
		assert result.entries["m1"].is_correct is False

	def test_unknown_question_ids_are_recorded_but_ignored(self):
		questions = [mcq("e1", "easy"), mcq("m1", "medium"), mcq("h1", "hard")]
		answers = [answer("e1", 0), answer("m1", 0), answer("h1", 0), answer("ghost", 0)]
		result = score(questions, answers)
		assert result.score == 100
		assert result.entries["ghost"].is_correct is False

	def test_empty_bucket_contributes_zero(self):
		result = score([mcq("e1", "easy")], [answer("e1", 0)])
		assert result.score == 40
		assert result.breakdown.application == 0

	def test_boolean_is_not_an_option_index(self):
		assert grade_mcq(mcq("e1", "easy"), False).is_correct is False
		assert grade_mcq(mcq("e1", "easy"), 0).is_correct is True

	def test_text_answer_to_mcq_is_wrong(self):
		result = score([mcq("e1", "easy")], [answer("e1", "0")])
		assert result.entries["e1"].is_correct is False


class TestSemanticCheck:
	def test_semantic_verdict_used(self):
		calls = []

		async def judge(question, user_answer, acceptable):
			calls.append(user_answer)
			return True

		questions = [short("s1", "easy", "abstraction")]
		result = score(questions, [answer("s1", "something unrelated")], judge)
		assert calls == ["something unrelated"]
		assert result.entries["s1"].is_correct is True
		assert result.entries["s1"].gemini_validated is True

	def test_falls_back_to_keywords_on_failure(self):
		async def broken(question, user_answer, acceptable):
			raise RuntimeError("service down")

		questions = [short("s1", "easy", "abstraction")]
		result = score(questions, [answer("s1", "abstraction")], broken)
		assert result.entries["s1"].is_correct is True
		assert result.entries["s1"].gemini_validated is False

	def test_blank_answers_skip_semantic_check(self):
		async def judge(question, user_answer, acceptable):
			raise AssertionError("should not be called")

		result = score([short("s1", "easy", "abstraction")], [answer("s1", "  ")], judge)
		assert result.entries["s1"].is_correct is False
