"""Tests for the text views."""
import random

from Combomon.combodex import card_label, dex_entries, render_board_text, render_combodex
from Combomon.generator import generate_round


class TestCombodex:
    """Test cases for the Combodex listing."""

    def test_locked_entries_are_hidden(self, product_catalog):
        text = render_combodex(product_catalog, set())
        assert "COMBODEX  0 / 81 unlocked" in text
        assert "#001  ? Combomon 001" in text
        assert "Mon1" not in text

    def test_unlocked_entries_show_details(self, token_factory, product_catalog):
        text = render_combodex(product_catalog, {1})
        assert "COMBODEX  1 / 81 unlocked" in text
        assert "Mon1  (Fire, Base, Bold, North)" in text

    def test_entries_follow_catalog_order(self, product_catalog):
        entries = dex_entries(product_catalog, {2})
        assert [e.number for e in entries[:3]] == ["#001", "#002", "#003"]
        assert [e.unlocked for e in entries[:3]] == [False, True, False]
        assert entries[1].evolution == "Stage 1"


class TestBoardText:
    """Test cases for the board view."""

    def test_board_lists_slots_and_requests(self, product_catalog, characters):
        round_ = generate_round(product_catalog, frozenset(), 2, random.Random(3), characters)
        text = render_board_text(round_)
        assert "=== Difficulty 2 ===" in text
        assert " 1. " in text and "12. " in text
        for trainer in round_.trainers:
            assert trainer.request in text
        assert text.count("(empty)") == 9
        assert text.count("[...]") == 3

    def test_card_label(self, token_factory):
        label = card_label(token_factory(7, "Water", "Shy", "South", "2"))
        assert label.startswith("#007 Mon7 [")
        assert "Water | Stage 2 | Shy | South" in label
        assert card_label(None) == "(empty)"
