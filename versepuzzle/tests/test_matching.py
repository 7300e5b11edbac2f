"""Tests for Match the Verse — split_verse and MatchRound."""

import random

import pytest

from versepuzzle.engine.errors import ContentUnavailable
from versepuzzle.engine.matching import (
    PERFECT_SCORE,
    SPEED_RUNNER,
    STREAK_MASTER,
    MatchRound,
    split_verse,
)
from versepuzzle.tests.conftest import PSALM


@pytest.fixture
def make_round(make_verse):
    def _make(count: int = 3) -> MatchRound:
        verses = [
            make_verse(reference=f"Verse {i}", text=f"first part {i}, second part {i}")
            for i in range(count)
        ]
        return MatchRound(round_id="match-1", player_id="player-1", verses=verses, rng=random.Random(0))

    return _make


class TestSplitVerse:
    def test_prefers_clause_break_near_middle(self) -> None:
        assert split_verse(PSALM) == ("The LORD is my shepherd;", "I shall not want.")

    def test_exact_middle_without_marks(self) -> None:
        assert split_verse("one two three four") == ("one two", "three four")

    def test_two_words(self) -> None:
        assert split_verse("Jesus wept.") == ("Jesus", "wept.")

    def test_single_word_is_content_error(self) -> None:
        with pytest.raises(ContentUnavailable):
            split_verse("Amen")


class TestMatchRound:
    def test_deals_cards_and_options(self, make_round) -> None:
        rnd = make_round()
        assert [c.first_half for c in rnd.cards] == [f"first part {i}," for i in range(3)]
        assert sorted(o["option_id"] for o in rnd.options()) == [0, 1, 2]

    def test_quick_match_scores_with_streak(self, make_round) -> None:
        rnd = make_round()
        assert rnd.reveal(0, now=0.0)
        assert rnd.choose(0, now=2.0) is True
        assert rnd.score == 175
        assert rnd.streak == 1

    def test_miss_resets_streak(self, make_round) -> None:
        rnd = make_round()
        rnd.reveal(0, now=0.0)
        rnd.choose(0, now=1.0)
        rnd.reveal(1, now=10.0)
        assert rnd.choose(2, now=20.0) is False
        assert rnd.streak == 0
        assert rnd.cards[1].incorrect_attempts == 1
        assert rnd.is_active

    def test_one_card_at_a_time(self, make_round) -> None:
        rnd = make_round()
        assert rnd.reveal(0, now=0.0)
        assert not rnd.reveal(1, now=0.0)

    def test_choose_without_selection_is_noop(self, make_round) -> None:
        rnd = make_round()
        assert rnd.choose(0, now=0.0) is None

    def test_matched_card_cannot_be_revealed(self, make_round) -> None:
        rnd = make_round()
        rnd.reveal(0, now=0.0)
        rnd.choose(0, now=0.0)
        assert not rnd.reveal(0, now=1.0)

    def test_perfect_fast_board(self, make_round) -> None:
        rnd = make_round()
        for card in rnd.cards:
            rnd.reveal(card.card_id, now=0.0)
            rnd.choose(card.card_id, now=1.0)
        assert rnd.outcome == "correct"
        assert rnd.accuracy() == 100
        assert PERFECT_SCORE in rnd.achievements
        assert SPEED_RUNNER in rnd.achievements
        assert STREAK_MASTER not in rnd.achievements

    def test_long_streak_earns_streak_master(self, make_round) -> None:
        rnd = make_round(count=5)
        for card in rnd.cards:
            rnd.reveal(card.card_id, now=0.0)
            rnd.choose(card.card_id, now=20.0)
        assert STREAK_MASTER in rnd.achievements
        assert SPEED_RUNNER not in rnd.achievements

    def test_accuracy_counts_misses(self, make_round) -> None:
        rnd = make_round()
        rnd.reveal(0, now=0.0)
        rnd.choose(1, now=0.0)
        for card in rnd.cards:
            rnd.reveal(card.card_id, now=0.0)
            rnd.choose(card.card_id, now=0.0)
        assert rnd.accuracy() == 75
        assert PERFECT_SCORE not in rnd.achievements

    def test_snapshot_round_trip(self, make_round) -> None:
        rnd = make_round()
        rnd.reveal(0, now=0.0)
        rnd.choose(0, now=1.0)
        rnd.reveal(1, now=2.0)
        restored = MatchRound.from_snapshot(rnd.snapshot())
        assert restored.score == rnd.score
        assert restored.matched_count == 1
        assert restored.selected_card is None
        assert restored.options() == rnd.options()

    def test_abandon(self, make_round) -> None:
        rnd = make_round()
        assert rnd.abandon()
        assert rnd.outcome == "abandoned"
        assert rnd.choose(0, now=0.0) is None

    def test_no_verses_is_content_error(self) -> None:
        with pytest.raises(ContentUnavailable):
            MatchRound(round_id="m", player_id="p", verses=[])
