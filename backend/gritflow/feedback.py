from __future__ import annotations
import logging
import re
from typing import Tuple

from .gemini_client import GeminiClient

logger = logging.getLogger(__name__)

FEEDBACK_TEMPERATURE = 0.3
FEEDBACK_MAX_TOKENS = 150
MIN_FEEDBACK_LENGTH = 10


def _feedback_prompt(question: str, user_answer: str, correct_answer: str) -> str:
	return (
		"You are a helpful tutor giving a student brief feedback.\n\n"
		f"Question: {question}\n"
		f"User's Answer: {user_answer}\n"
		f"Correct Answer: {correct_answer}\n\n"
		"Write exactly 2 sentences:\n"
		"1. Why the user's answer is right or wrong.\n"
		"2. The underlying concept.\n\n"
		"Return ONLY plain text: no markdown, bullet points or numbered lists."
	)


def strip_markdown(text: str) -> str:
	text = re.sub(r"```[\s\S]*?```", "", text)
	text = re.sub(r"\*\*(.*?)\*\*", r"\1", text)
	text = re.sub(r"\*(.*?)\*", r"\1", text)
	text = re.sub(r"^[-*+]\s+", "", text, flags=re.MULTILINE)
	text = re.sub(r"^\d+\.\s+", "", text, flags=re.MULTILINE)
	return text.replace("`", "").strip()


async def generate_question_feedback(question: str, user_answer: str, correct_answer: str) -> str:
	async with GeminiClient() as client:
		raw = await client.generate(
			_feedback_prompt(question, user_answer, correct_answer),
			temperature=FEEDBACK_TEMPERATURE,
			max_output_tokens=FEEDBACK_MAX_TOKENS,
		)
	feedback = strip_markdown(raw)
	if len(feedback) < MIN_FEEDBACK_LENGTH:
		raise ValueError("Generated feedback is too short or empty")
	return feedback


def local_feedback(question: str, user_answer: str, correct_answer: str) -> str:
	if user_answer.strip().lower() == correct_answer.strip().lower():
		first = "Your answer matches the expected answer."
	else:
		first = f'Your answer "{user_answer.strip()}" does not match the expected answer "{correct_answer.strip()}".'
	return f"{first} Review the section behind this question: {question.strip()}"


async def feedback_with_fallback(question: str, user_answer: str, correct_answer: str) -> Tuple[str, str]:
	try:
		return await generate_question_feedback(question, user_answer, correct_answer), "gemini"
	except Exception as err:
		logger.warning("Feedback generation failed, using local feedback: %s", err)
		return local_feedback(question, user_answer, correct_answer), "local"
