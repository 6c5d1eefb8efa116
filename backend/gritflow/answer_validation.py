from __future__ import annotations
import logging
from typing import List

from .gemini_client import GeminiClient

logger = logging.getLogger(__name__)

VALIDATION_TEMPERATURE = 0.1
VALIDATION_MAX_TOKENS = 10


def _validation_prompt(question: str, user_answer: str, acceptable_answers: List[str]) -> str:
	return (
		"You are an answer validation system. Decide whether a student's answer is correct "
		"or close enough to the expected answer.\n\n"
		f"Question: {question}\n"
		f"Student's Answer: {user_answer}\n"
		f"Acceptable Answers: {', '.join(acceptable_answers)}\n\n"
		"Judge the answer on:\n"
		"1. Does it use the key terms of an acceptable answer, or synonyms of them?\n"
		"2. Does it show understanding of the core concept?\n"
		"3. Is it close enough in meaning to count as correct?\n\n"
		"Treat word variations as matches (\"running\" matches \"run\").\n"
		'Reply with ONLY one word: "TRUE" if the answer captures the key concepts, '
		'"FALSE" if it is wrong or unrelated.'
	)


def parse_verdict(raw: str) -> bool:
	verdict = raw.strip().upper()
	if "TRUE" in verdict:
		return True
	if "FALSE" in verdict:
		return False
	logger.warning("Ambiguous validation response: %r", raw)
	return False


async def validate_short_answer(question: str, user_answer: str, acceptable_answers: List[str]) -> bool:
	"""Ask Gemini whether ``user_answer`` is semantically acceptable.

	Raises ``ValueError`` on empty input or when Gemini is not configured, and
	``GeminiError`` when the call fails. Callers fall back to the local matcher.
	"""
	if not question.strip() or not user_answer.strip():
		raise ValueError("question and user_answer are required")
	if not acceptable_answers:
		raise ValueError("at least one acceptable answer is required")
	async with GeminiClient() as client:
		raw = await client.generate(
			_validation_prompt(question, user_answer, acceptable_answers),
			temperature=VALIDATION_TEMPERATURE,
			max_output_tokens=VALIDATION_MAX_TOKENS,
		)
	return parse_verdict(raw)
