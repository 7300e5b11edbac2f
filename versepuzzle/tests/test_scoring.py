"""Tests for versepuzzle.engine.scoring and versepuzzle.engine.validator."""

import pytest

from versepuzzle.engine.scoring import character_points, compute_score, match_points
from versepuzzle.engine.tokenizer import tokenize
from versepuzzle.engine.validator import answer_matches, is_correct
from versepuzzle.modes import FRAGMENT_PUZZLE, VERSE_PUZZLE, ScoringPolicy, resolve_mode

VERSE_POLICY = resolve_mode(VERSE_PUZZLE).scoring


class TestComputeScore:
    def test_full_time_no_hints(self) -> None:
        assert compute_score("correct", 30, 30, 0, 5, VERSE_POLICY) == 100

    def test_time_bonus_is_floored(self) -> None:
        # 50 * 7/30 = 11.67
        assert compute_score("correct", 7, 30, 0, 5, VERSE_POLICY) == 61

    def test_hint_penalty(self) -> None:
        policy = ScoringPolicy(base_points=100, time_bonus_max=0, penalty_per_hint=33)
        assert compute_score("correct", 10, 30, 3, 3, policy) == 1

    def test_fragment_mode(self) -> None:
        policy = resolve_mode(FRAGMENT_PUZZLE).scoring
        assert compute_score("correct", 90, 180, 3, 3, policy) == 450

    def test_hints_beyond_budget_not_charged(self) -> None:
        assert compute_score("correct", 30, 30, 7, 5, VERSE_POLICY) == 50

    def test_never_negative(self) -> None:
        policy = ScoringPolicy(base_points=10, time_bonus_max=0, penalty_per_hint=100)
        assert compute_score("correct", 0, 30, 1, 3, policy) == 0

    @pytest.mark.parametrize("outcome", ["incorrect", "timed_out", "abandoned"])
    def test_non_correct_outcomes_score_zero(self, outcome: str) -> None:
        assert compute_score(outcome, 30, 30, 0, 5, VERSE_POLICY) == 0

    def test_zero_budget_gives_no_bonus(self) -> None:
        assert compute_score("correct", 0, 0, 0, 5, VERSE_POLICY) == 50


class TestCharacterPoints:
    @pytest.mark.parametrize(
        ("hints_used", "expected"), [(0, 100), (1, 67), (2, 34), (3, 1)]
    )
    def test_each_hint_costs_a_slice(self, hints_used: int, expected: int) -> None:
        assert character_points(100, 3, hints_used) == expected

    def test_single_hint_level(self) -> None:
        assert character_points(250, 1, 1) == 0


class TestMatchPoints:
    def test_quick_answer_with_streak(self) -> None:
        assert match_points(3.0, 1) == 175

    def test_slow_answer_no_streak(self) -> None:
        assert match_points(6.0, 0) == 100

    def test_boundary_is_quick(self) -> None:
        assert match_points(5.0, 0) == 150


class TestValidator:
    def test_exact_order_is_correct(self) -> None:
        tokens = tokenize("In the beginning")
        assert is_correct(tokens, tokens)

    def test_wrong_order(self) -> None:
        tokens = tokenize("In the beginning")
        assert not is_correct([tokens[1], tokens[0], tokens[2]], tokens)

    def test_incomplete(self) -> None:
        tokens = tokenize("In the beginning")
        assert not is_correct(tokens[:2], tokens)

    def test_duplicate_words_interchangeable(self) -> None:
        tokens = tokenize("holy holy")
        assert is_correct([tokens[1], tokens[0]], tokens)

    def test_case_sensitive(self) -> None:
        expected = tokenize("In the beginning")
        assert not is_correct(tokenize("in the beginning"), expected)

    def test_answer_matches_ignores_case_and_space(self) -> None:
        assert answer_matches("  moses ", "Moses")
        assert not answer_matches("Moshe", "Moses")
