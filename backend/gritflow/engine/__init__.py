from .adaptive import AdaptationSignals, ComplexityAdjustment, calculate_complexity_adjustment, default_signals
from .question_generator import (
	MCQuestion,
	QuestionDistribution,
	QuestionGeneratorConfig,
	QuestionSet,
	ShortAnswerQuestion,
	build_set_id,
	calculate_distribution,
	calculate_question_count,
	generate_difficulty_curve,
	generate_question_set,
	parse_set_id,
)
from .scoring import (
	PASS_THRESHOLD,
	CheckpointScore,
	ScoreBreakdown,
	ScoreEntry,
	SemanticCheck,
	SubmittedAnswer,
	is_short_answer_match,
	score_checkpoint,
)

__all__ = [
	"AdaptationSignals",
	"ComplexityAdjustment",
	"calculate_complexity_adjustment",
	"default_signals",
	"MCQuestion",
	"QuestionDistribution",
	"QuestionGeneratorConfig",
	"QuestionSet",
	"ShortAnswerQuestion",
	"build_set_id",
	"calculate_distribution",
	"calculate_question_count",
	"generate_difficulty_curve",
	"generate_question_set",
	"parse_set_id",
	"PASS_THRESHOLD",
	"CheckpointScore",
	"ScoreBreakdown",
	"ScoreEntry",
	"SemanticCheck",
	"SubmittedAnswer",
	"is_short_answer_match",
	"score_checkpoint",
]
