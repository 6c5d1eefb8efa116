import math


def round_half_up(value: float) -> int:
	# Python's round() is banker's rounding; scores and counts round .5 upwards
	return int(math.floor(value + 0.5))


def clamp(value, low, high):
	return max(low, min(high, value))
