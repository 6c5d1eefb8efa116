"""Checkpoint question set generation.

A set is derived entirely from (subtopic, complexity score, adaptation modifier,
seed), so the same set can be rebuilt at submit time instead of being stored.
"""
from __future__ import annotations
import random
import re
import time
import uuid
from typing import Annotated, Dict, List, Literal, Optional, Tuple, Union

from pydantic import Field

from ..schemas import ApiModel
from .numbers import round_half_up

Difficulty = Literal["easy", "medium", "hard"]

BASE_COUNT = 5
MAX_COUNT = 10

# c<complexity>m<modifier>_<token>: the set id carries what is needed to rebuild it
SET_ID_PATTERN = re.compile(r"^c([1-4])m([0-2])_([A-Za-z0-9_]+)$")


class QuestionGeneratorConfig(ApiModel):
	subtopic_id: str = Field(min_length=1)
	complexity_score: int = Field(ge=1, le=4, strict=True)
	adaptation_modifier: int = Field(ge=0, le=2, strict=True)
	seed: Optional[str] = Field(default=None, min_length=1, max_length=64, pattern=r"^[A-Za-z0-9_]+$")


class QuestionDistribution(ApiModel):
	mcq: int
	short_answer: int


class MCQuestion(ApiModel):
	id: str
	type: Literal["mcq"] = "mcq"
	difficulty: Difficulty
	question_text: str
	topic_id: str
	options: List[str]
	correct_answer_index: int
	explanation: str


class ShortAnswerQuestion(ApiModel):
	id: str
	type: Literal["shortAnswer"] = "shortAnswer"
	difficulty: Difficulty
	question_text: str
	topic_id: str
	acceptable_answers: List[str]
	hint: str


Question = Union[MCQuestion, ShortAnswerQuestion]


class QuestionSet(ApiModel):
	set_id: str
	subtopic_id: str
	count: int
	distribution: QuestionDistribution
	difficulty_curve: List[Difficulty]
	questions: List[Annotated[Question, Field(discriminator="type")]]
	generated_at: int


MCQ_PROMPTS: Dict[str, List[str]] = {
	"easy": [
		"What is the main purpose of this concept?",
		"Which statement best describes this idea?",
		"Pick the correct definition:",
		"What is the defining characteristic of this feature?",
	],
	"medium": [
		"Which approach works best when applying this in practice?",
		"What separates this technique from its closest alternative?",
		"In which situation should this pattern be used?",
		"What is the outcome of applying this operation?",
	],
	"hard": [
		"Weigh these implementation strategies against each other:",
		"Under the given constraints, which option balances performance and maintainability?",
		"Why does this approach break down in edge cases?",
		"Which design would resolve this architectural problem?",
	],
}

# The first option of each list is the correct one before shuffling
MCQ_OPTIONS: Dict[str, List[str]] = {
	"easy": [
		"It is the fundamental building block the rest depends on",
		"It is a minor implementation detail",
		"It is an optional add-on with no core role",
		"It is a deprecated leftover",
	],
	"medium": [
		"Apply it where it removes duplication without hiding control flow",
		"Cache every intermediate result at the application layer",
		"Replace all direct calls with global event broadcasts",
		"Defer every decision to runtime configuration",
	],
	"hard": [
		"Isolate the volatile part behind a narrow interface and measure before optimizing",
		"Inline every abstraction to avoid any indirection",
		"Duplicate the logic per caller so each can diverge freely",
		"Move all state into a single shared mutable object",
	],
}

SHORT_ANSWER_PROMPTS: Dict[str, List[str]] = {
	"easy": [
		"Define the basic concept in one sentence.",
		"What is the main benefit of this approach?",
		"Name the key component this technique relies on.",
		"Describe the simplest form of this pattern.",
	],
	"medium": [
		"Compare the two approaches in terms of performance.",
		"Explain what role state plays in this context.",
		"What should you consider when designing with this?",
		"Describe how data moves through this design.",
	],
	"hard": [
		"Analyze how this pattern affects scalability and suggest improvements.",
		"Explain the reasoning that makes this solution correct.",
		"Critique this implementation for production use.",
		"Propose a design that satisfies these competing requirements.",
	],
}

SHORT_ANSWER_ANSWERS: Dict[str, List[str]] = {
	"easy": [
		"It provides a foundation for building larger applications.",
		"It keeps code organized and makes parts reusable.",
		"It simplifies complex problems through abstraction.",
		"It improves developer productivity and maintainability.",
	],
	"medium": [
		"Performance depends on balancing computation cost against memory usage.",
		"State management keeps data flow predictable and updates efficient.",
		"The design must weigh current requirements against future extensibility.",
		"Data should flow in one direction through clearly separated layers.",
	],
	"hard": [
		"Scaling requires measuring bottlenecks under realistic load and removing shared contention.",
		"Correctness follows from invariants that every operation preserves.",
		"Production code needs error handling, observability, and tests for edge cases.",
		"Balance the requirements by isolating tradeoffs behind explicit configuration boundaries.",
	],
}

SHORT_ANSWER_HINTS: Dict[str, List[str]] = {
	"easy": [
		"Think about the core purpose.",
		"Consider which problem this solves.",
		"Focus on the essential characteristics.",
	],
	"medium": [
		"Consider both advantages and disadvantages.",
		"Think about a real-world use.",
		"Balance theory with practical concerns.",
	],
	"hard": [
		"Consider what happens at scale.",
		"Think about failure modes and edge cases.",
		"Apply system design principles.",
	],
}


def calculate_question_count(complexity_score: int, adaptation_modifier: int) -> int:
	return min(BASE_COUNT + (complexity_score - 1) + adaptation_modifier, MAX_COUNT)


def calculate_distribution(total_count: int, complexity_score: int) -> QuestionDistribution:
	mcq_share = 0.7 if complexity_score <= 2 else 0.5
	mcq = round_half_up(total_count * mcq_share)
	return QuestionDistribution(mcq=mcq, short_answer=total_count - mcq)


def generate_difficulty_curve(total_count: int, complexity_score: int) -> List[str]:
	easy_ratio = 0.4 - complexity_score * 0.05
	medium_ratio = 0.4
	easy = max(1, round_half_up(total_count * easy_ratio))
	medium = max(1, round_half_up(total_count * medium_ratio))
	hard = total_count - easy - medium
	return ["easy"] * easy + ["medium"] * medium + ["hard"] * hard


def _question_id(subtopic_id: str, position: int, seed: str) -> str:
	return f"{subtopic_id}-q{position}-{seed}"


def _pick(table: Dict[str, List[str]], difficulty: str, index: int) -> str:
	options = table[difficulty]
	return options[index % len(options)]


def _mcq(subtopic_id: str, difficulty: str, index: int, position: int, seed: str) -> MCQuestion:
	rng = random.Random(f"{seed}:{position}")
	order = [0, 1, 2, 3]
	rng.shuffle(order)
	base = MCQ_OPTIONS[difficulty]
	correct = order.index(0)
	return MCQuestion(
		id=_question_id(subtopic_id, position, seed),
		difficulty=difficulty,
		question_text=_pick(MCQ_PROMPTS, difficulty, index),
		topic_id=subtopic_id,
		options=[base[i] for i in order],
		correct_answer_index=correct,
		explanation=f"The correct answer is option {correct + 1} because it directly addresses the question requirement.",
	)


def _short_answer(subtopic_id: str, difficulty: str, index: int, position: int, seed: str) -> ShortAnswerQuestion:
	return ShortAnswerQuestion(
		id=_question_id(subtopic_id, position, seed),
		difficulty=difficulty,
		question_text=_pick(SHORT_ANSWER_PROMPTS, difficulty, index),
		topic_id=subtopic_id,
		acceptable_answers=[_pick(SHORT_ANSWER_ANSWERS, difficulty, index)],
		hint=_pick(SHORT_ANSWER_HINTS, difficulty, index),
	)


def build_set_id(complexity_score: int, adaptation_modifier: int, token: Optional[str] = None) -> str:
	return f"c{complexity_score}m{adaptation_modifier}_{token or uuid.uuid4().hex[:8]}"


def parse_set_id(set_id: str) -> Tuple[int, int]:
	"""Return the (complexity score, adaptation modifier) a set id was built with."""
	match = SET_ID_PATTERN.match(set_id)
	if match is None:
		raise ValueError(f"Malformed question set id {set_id!r}")
	return int(match.group(1)), int(match.group(2))


def generate_question_set(
	subtopic_id: str,
	complexity_score: int,
	adaptation_modifier: int,
	seed: Optional[str] = None,
) -> QuestionSet:
	"""Build the checkpoint for a subtopic.

	Raises ``pydantic.ValidationError`` (a ``ValueError``) when the complexity
	score is outside 1..4 or the modifier outside 0..2.
	"""
	config = QuestionGeneratorConfig(
		subtopic_id=subtopic_id,
		complexity_score=complexity_score,
		adaptation_modifier=adaptation_modifier,
		seed=seed,
	)
	set_id = config.seed or uuid.uuid4().hex[:8]
	count = calculate_question_count(config.complexity_score, config.adaptation_modifier)
	distribution = calculate_distribution(count, config.complexity_score)
	curve = generate_difficulty_curve(count, config.complexity_score)

	questions: List[Question] = []
	mcq_index = 0
	short_index = 0
	for position, difficulty in enumerate(curve):
		if position < distribution.mcq:
			questions.append(_mcq(config.subtopic_id, difficulty, mcq_index, position, set_id))
			mcq_index += 1
		else:
			questions.append(_short_answer(config.subtopic_id, difficulty, short_index, position, set_id))
			short_index += 1

	return QuestionSet(
		set_id=set_id,
		subtopic_id=config.subtopic_id,
		count=count,
		distribution=distribution,
		difficulty_curve=curve,
		questions=questions,
		generated_at=int(time.time() * 1000),
	)
