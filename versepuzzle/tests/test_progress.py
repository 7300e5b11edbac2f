"""Tests for versepuzzle.engine.progress — folding finished rounds into progress."""

from datetime import datetime, timezone

from versepuzzle.engine.progress import (
    PERFECT_ANSWER,
    PERFECT_VERSE,
    STREAK_MASTER,
    default_progress,
    record_character_result,
    record_match_result,
    record_puzzle_result,
    reset_mode,
)
from versepuzzle.modes import CHARACTER_MODE, MATCH_MODE, VERSE_PUZZLE
from versepuzzle.schemas import CharacterSnapshot, MatchCard, MatchSnapshot

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _character_snapshot(**overrides) -> CharacterSnapshot:
    defaults = {
        "round_id": "round-1",
        "player_id": "player-1",
        "level": 4,
        "character_name": "Moses",
        "hints": ["Leader", "Egypt"],
        "max_hints": 3,
        "points_per_correct": 120,
        "time_budget_seconds": 60,
        "time_remaining_seconds": 40,
        "outcome": "correct",
        "score": 120,
    }
    defaults.update(overrides)
    return CharacterSnapshot(**defaults)


def _match_snapshot(**overrides) -> MatchSnapshot:
    defaults = {
        "round_id": "match-1",
        "player_id": "player-1",
        "cards": [
            MatchCard(card_id=0, reference="John 3:16", first_half="a", second_half="b", matched=True),
            MatchCard(card_id=1, reference="Genesis 1:1", first_half="c", second_half="d", matched=True),
        ],
        "option_order": [1, 0],
        "score": 350,
        "streak": 2,
        "best_streak": 2,
        "outcome": "correct",
        "achievements": ["Perfect Score"],
    }
    defaults.update(overrides)
    return MatchSnapshot(**defaults)


class TestPuzzleResults:
    def test_correct_answer_levels_up(self, make_puzzle_snapshot) -> None:
        updated = record_puzzle_result(default_progress("player-1"), make_puzzle_snapshot(), NOW)
        mode = updated.modes[VERSE_PUZZLE]
        assert updated.total_score == 100
        assert updated.streak == 1
        assert mode.level == 2
        assert mode.completed_levels == [1]
        assert mode.games_played == 1
        assert mode.last_played == NOW
        assert updated.level == 2
        assert updated.completed_levels == [1]
        assert PERFECT_VERSE in updated.achievements

    def test_hinted_answer_is_not_perfect(self, make_puzzle_snapshot) -> None:
        snapshot = make_puzzle_snapshot(hints_used=2, score=80)
        updated = record_puzzle_result(default_progress("player-1"), snapshot)
        assert PERFECT_VERSE not in updated.achievements
        assert updated.modes[VERSE_PUZZLE].hints_used == 2

    def test_miss_resets_streak_and_keeps_level(self, make_puzzle_snapshot) -> None:
        progress = record_puzzle_result(default_progress("player-1"), make_puzzle_snapshot())
        updated = record_puzzle_result(progress, make_puzzle_snapshot(outcome="timed_out", score=0))
        assert updated.streak == 0
        assert updated.modes[VERSE_PUZZLE].level == 2
        assert updated.modes[VERSE_PUZZLE].games_played == 2
        assert updated.total_score == 100

    def test_five_in_a_row_earns_streak_master(self, make_puzzle_snapshot) -> None:
        progress = default_progress("player-1")
        for _ in range(5):
            progress = record_puzzle_result(progress, make_puzzle_snapshot())
        assert progress.streak == 5
        assert STREAK_MASTER in progress.achievements
        assert progress.achievements.count(PERFECT_VERSE) == 1

    def test_input_is_not_mutated(self, make_puzzle_snapshot) -> None:
        original = default_progress("player-1")
        record_puzzle_result(original, make_puzzle_snapshot())
        assert original.total_score == 0
        assert original.modes == {}


class TestCharacterResults:
    def test_solved_round_moves_to_next_level(self) -> None:
        updated = record_character_result(default_progress("player-1"), _character_snapshot())
        mode = updated.modes[CHARACTER_MODE]
        assert mode.level == 5
        assert mode.completed_levels == [4]
        assert updated.total_score == 120
        assert PERFECT_ANSWER in updated.achievements

    def test_failed_round_stays_on_level(self) -> None:
        snapshot = _character_snapshot(outcome="timed_out", score=0, hints_used=1)
        updated = record_character_result(default_progress("player-1"), snapshot)
        assert updated.modes[CHARACTER_MODE].level == 4
        assert updated.modes[CHARACTER_MODE].completed_levels == []
        assert PERFECT_ANSWER not in updated.achievements


class TestMatchResults:
    def test_completed_board_records_references(self) -> None:
        updated = record_match_result(default_progress("player-1"), _match_snapshot())
        assert updated.matched_references == ["John 3:16", "Genesis 1:1"]
        assert updated.modes[MATCH_MODE].score == 350
        assert "Perfect Score" in updated.achievements
        assert updated.modes[MATCH_MODE].level == 2

    def test_abandoned_board_scores_nothing(self) -> None:
        snapshot = _match_snapshot(outcome="abandoned", achievements=[])
        updated = record_match_result(default_progress("player-1"), snapshot)
        assert updated.total_score == 0
        assert updated.matched_references == []
        assert updated.modes[MATCH_MODE].games_played == 1


class TestResetMode:
    def test_resets_one_mode_only(self, make_puzzle_snapshot) -> None:
        progress = record_puzzle_result(default_progress("player-1"), make_puzzle_snapshot())
        progress = record_character_result(progress, _character_snapshot())
        updated = reset_mode(progress, VERSE_PUZZLE)
        assert updated.modes[VERSE_PUZZLE].level == 1
        assert updated.modes[CHARACTER_MODE].level == 5
        assert updated.level == 5
        assert updated.total_score == progress.total_score
