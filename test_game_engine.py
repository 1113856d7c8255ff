"""
Yambo Rules Test Suite

Rules of the pure engine: dice, combinations, column policy and the
score sheet. Every rule has both positive and negative cases.

Sections:
    1. Dice — values, immutability, rolling, holding
    2. Combinations — counts, full house, straight, yambo, candidates
    3. Column policy — roll windows, fill order, open columns
    4. Score sheet — save, scratch, chance order, totals, game over
"""
import itertools
import random

import pytest

from game_engine import (
    COLUMN_RULES, LOWER_ROWS, ROW_ORDER, UPPER_ROWS,
    ActionError, ActionResult, Cell, CellEntry, CellState, Column, ColumnPolicy,
    DiceSet, DieState, FillOrder, Row, ScoreSheet, Section,
    best_combination, candidate_scores, combinations, counts,
    is_four_of_a_kind, is_full_house, is_straight, is_three_of_a_kind, is_yambo,
    total, upper_score,
)


# ── Helpers ──────────────────────────────────────────────────────────────────

def fill_column(sheet, column, value=5, rows=ROW_ORDER):
    """Save a non-zero value into the given rows of a column."""
    for row in rows:
        # Chance - has to stay under Chance +
        v = value - 1 if row == Row.CHANCE_MINUS else value
        assert sheet.save(column, row, v)


def fill_sheet(sheet, value=5):
    for column in Column:
        fill_column(sheet, column, value)


# ═══════════════════════════════════════════════════════════════════════════════
# 1. DICE
# ═══════════════════════════════════════════════════════════════════════════════

class TestDieState:

    def test_die_defaults_to_unheld(self):
        assert DieState(value=4).held is False

    def test_die_is_immutable(self):
        die = DieState(value=3)
        with pytest.raises(AttributeError):
            die.value = 6

    def test_rolling_unheld_die_produces_value_1_through_6(self):
        die = DieState(value=1)
        rng = random.Random(7)
        seen = {die.roll(rng).value for _ in range(300)}
        assert seen == {1, 2, 3, 4, 5, 6}

    def test_rolling_held_die_preserves_value(self):
        rng = random.Random(0)
        for v in range(1, 7):
            die = DieState(value=v, held=True)
            assert die.roll(rng) is die

    def test_toggle_held_returns_new_instance(self):
        die = DieState(value=4)
        toggled = die.toggle_held()
        assert toggled.held is True
        assert die.held is False


class TestDiceSet:

    def test_starts_with_one_to_five_unheld(self):
        dice = DiceSet()
        assert dice.values == (1, 2, 3, 4, 5)
        assert dice.held == (False,) * 5

    def test_always_five_dice(self):
        dice = DiceSet(rng=random.Random(1))
        for _ in range(20):
            dice.roll()
            assert len(dice.dice) == 5

    @pytest.mark.parametrize("values", [(1, 2, 3, 4), (1, 2, 3, 4, 5, 6), (0, 1, 2, 3, 4), (1, 2, 3, 4, 7)])
    def test_set_values_rejects_bad_input(self, values):
        with pytest.raises(ValueError):
            DiceSet().set_values(values)

    def test_set_values_keeps_holds(self):
        dice = DiceSet()
        dice.toggle_hold(2)
        dice.set_values((6, 6, 6, 6, 6))
        assert dice.values == (6, 6, 6, 6, 6)
        assert dice.held_indices == [2]

    def test_roll_keeps_held_values(self):
        dice = DiceSet(values=(6, 6, 6, 6, 6), rng=random.Random(3))
        dice.toggle_hold(0)
        dice.toggle_hold(4)
        for _ in range(30):
            values = dice.roll()
            assert values[0] == 6 and values[4] == 6
            assert all(1 <= v <= 6 for v in values)

    def test_roll_with_explicit_mask_ignores_hold_flags(self):
        dice = DiceSet(values=(2, 2, 2, 2, 2), rng=random.Random(11))
        for _ in range(30):
            values = dice.roll(held_mask=(True, True, True, True, True))
            assert values == (2, 2, 2, 2, 2)

    def test_roll_is_reproducible_with_seed(self):
        a = DiceSet(rng=random.Random(42))
        b = DiceSet(rng=random.Random(42))
        assert [a.roll() for _ in range(5)] == [b.roll() for _ in range(5)]

    def test_roll_uses_override_rng(self):
        a = DiceSet(rng=random.Random(1))
        b = DiceSet(rng=random.Random(2))
        assert a.roll(rng=random.Random(9)) == b.roll(rng=random.Random(9))

    def test_toggle_hold_flips(self):
        dice = DiceSet()
        assert dice.toggle_hold(1) is True
        assert dice.toggle_hold(1) is False

    def test_toggle_hold_only_touches_one_die(self):
        dice = DiceSet(values=(3, 3, 3, 1, 2))
        dice.toggle_hold(0)
        assert dice.held_indices == [0]

    def test_toggle_hold_matching_value_holds_all_same_face(self):
        dice = DiceSet(values=(3, 1, 3, 2, 3))
        assert dice.toggle_hold_matching_value(2) is True
        assert dice.held_indices == [0, 2, 4]

    def test_toggle_hold_matching_value_syncs_to_clicked_die(self):
        dice = DiceSet(values=(3, 1, 3, 2, 3))
        dice.toggle_hold(0)
        # Die 2 goes unheld -> held, so every 3 ends up held
        dice.toggle_hold_matching_value(2)
        assert dice.held_indices == [0, 2, 4]
        # And back: die 2 held -> unheld releases every 3
        assert dice.toggle_hold_matching_value(2) is False
        assert dice.held_indices == []

    def test_all_held(self):
        dice = DiceSet()
        for i in range(5):
            assert not dice.all_held
            dice.toggle_hold(i)
        assert dice.all_held

    def test_clear_holds(self):
        dice = DiceSet()
        dice.toggle_hold(0)
        dice.toggle_hold(3)
        dice.clear_holds()
        assert dice.held_indices == []


# ═══════════════════════════════════════════════════════════════════════════════
# 2. COMBINATIONS
# ═══════════════════════════════════════════════════════════════════════════════

class TestCounts:

    def test_counts_always_sum_to_five(self):
        for values in itertools.product(range(1, 7), repeat=5):
            assert sum(counts(values)) == 5

    def test_counts_by_face(self):
        assert counts([1, 1, 3, 6, 6]) == (2, 0, 1, 0, 0, 2)

    def test_total(self):
        assert total([1, 2, 3, 4, 6]) == 16

    @pytest.mark.parametrize("face,expected", [(1, 2), (2, 0), (3, 3), (6, 6)])
    def test_upper_score(self, face, expected):
        assert upper_score([1, 1, 3, 6, 4], face) == expected


class TestCombinations:

    def test_three_of_a_kind(self):
        assert is_three_of_a_kind([2, 2, 2, 5, 6])
        assert not is_three_of_a_kind([2, 2, 5, 5, 6])

    def test_three_of_a_kind_means_exactly_three(self):
        assert not is_three_of_a_kind([2, 2, 2, 2, 6])

    def test_four_of_a_kind(self):
        assert is_four_of_a_kind([4, 4, 4, 4, 1])
        assert not is_four_of_a_kind([4, 4, 4, 4, 4])

    def test_full_house(self):
        assert is_full_house([1, 1, 1, 2, 2]) is True
        assert is_full_house([1, 1, 2, 2, 3]) is False

    def test_five_of_a_kind_is_also_full_house(self):
        assert is_full_house([1, 1, 1, 1, 1]) is True

    def test_four_of_a_kind_is_not_full_house(self):
        assert is_full_house([3, 3, 3, 3, 2]) is False

    def test_low_straight(self):
        assert is_straight([2, 3, 4, 5, 1]) is True

    def test_high_straight(self):
        assert is_straight([2, 3, 4, 5, 6]) is True

    @pytest.mark.parametrize("values", [[1, 1, 2, 3, 4], [1, 2, 3, 4, 6], [3, 4, 5, 6, 6], [2, 3, 4, 5, 5]])
    def test_not_straight(self, values):
        assert is_straight(values) is False

    def test_yambo(self):
        assert is_yambo([4, 4, 4, 4, 4]) is True
        assert is_yambo([4, 4, 4, 4, 3]) is False

    def test_yambo_only_for_five_of_a_kind(self):
        for values in itertools.product(range(1, 7), repeat=5):
            assert is_yambo(values) == (len(set(values)) == 1)

    def test_combination_flags(self):
        assert combinations([5, 5, 5, 5, 5]) == {
            "three_of_a_kind": False,
            "four_of_a_kind": False,
            "full_house": True,
            "straight": False,
            "yambo": True,
        }

    @pytest.mark.parametrize("values,name", [
        ([5, 5, 5, 5, 5], "Yambo!!!"),
        ([1, 2, 3, 4, 5], "Straight"),
        ([2, 2, 6, 6, 6], "Full House"),
        ([2, 6, 6, 6, 6], "Four of a Kind"),
        ([2, 3, 6, 6, 6], "Three of a Kind"),
        ([1, 1, 2, 3, 6], None),
    ])
    def test_best_combination(self, values, name):
        assert best_combination(values) == name


class TestCandidateScores:

    def test_every_row_has_a_candidate(self):
        assert set(candidate_scores([1, 2, 3, 4, 5])) == set(Row)

    def test_upper_rows(self):
        scores = candidate_scores([6, 6, 6, 2, 1])
        assert scores[Row.ONES] == 1
        assert scores[Row.TWOS] == 2
        assert scores[Row.THREES] == 0
        assert scores[Row.SIXES] == 18

    def test_full_house_scores_twenty(self):
        assert candidate_scores([1, 1, 1, 2, 2])[Row.FULL_HOUSE] == 20
        assert candidate_scores([1, 1, 3, 2, 2])[Row.FULL_HOUSE] == 0

    def test_straight_scores_thirty(self):
        assert candidate_scores([6, 5, 4, 3, 2])[Row.STRAIGHT] == 30
        assert candidate_scores([6, 5, 4, 3, 3])[Row.STRAIGHT] == 0

    def test_yambo_scores_forty(self):
        scores = candidate_scores([3, 3, 3, 3, 3])
        assert scores[Row.YAMBO] == 40
        assert scores[Row.FULL_HOUSE] == 20

    def test_both_chances_get_the_total(self):
        scores = candidate_scores([6, 5, 4, 1, 1])
        assert scores[Row.CHANCE_PLUS] == 17
        assert scores[Row.CHANCE_MINUS] == 17


# ═══════════════════════════════════════════════════════════════════════════════
# 3. COLUMN POLICY
# ═══════════════════════════════════════════════════════════════════════════════

class TestRowsAndColumns:

    def test_eleven_rows_six_upper(self):
        assert len(ROW_ORDER) == 11
        assert all(r.section == Section.UPPER for r in UPPER_ROWS)
        assert all(r.section == Section.LOWER for r in LOWER_ROWS)

    def test_upper_row_faces(self):
        assert [r.face for r in UPPER_ROWS] == [1, 2, 3, 4, 5, 6]
        assert Row.YAMBO.face is None

    def test_column_rules(self):
        assert COLUMN_RULES[Column.DOWN].fill_order == FillOrder.TOP_DOWN
        assert COLUMN_RULES[Column.UP].fill_order == FillOrder.BOTTOM_UP
        assert {c for c in Column if c.rules.fill_order == FillOrder.ANY} == {
            Column.FREE, Column.ONE, Column.TWO}
        assert [ColumnPolicy.max_tries_of(c) for c in Column] == [3, 3, 3, 1, 2]

    def test_stable_ids(self):
        assert Column("dn") is Column.DOWN
        assert Row("chanceMinus") is Row.CHANCE_MINUS


class TestRollWindows:

    @pytest.mark.parametrize("roll_count,allowed", [(1, True), (2, True), (3, False)])
    def test_two_try_column(self, roll_count, allowed):
        assert ColumnPolicy().is_roll_allowed_for_column(Column.TWO, roll_count) is allowed

    @pytest.mark.parametrize("roll_count,allowed", [(1, True), (2, False), (3, False)])
    def test_one_try_column(self, roll_count, allowed):
        assert ColumnPolicy().is_roll_allowed_for_column(Column.ONE, roll_count) is allowed

    @pytest.mark.parametrize("column", [Column.DOWN, Column.FREE, Column.UP])
    def test_three_try_columns_always_allowed(self, column):
        policy = ColumnPolicy()
        assert all(policy.is_roll_allowed_for_column(column, n) for n in (1, 2, 3))

    def test_scratched_column_never_allowed(self):
        policy = ColumnPolicy()
        policy.toggle_scratch(Column.FREE)
        assert not any(policy.is_roll_allowed_for_column(Column.FREE, n) for n in (1, 2, 3))

    def test_toggle_scratch_flips_back(self):
        policy = ColumnPolicy()
        assert policy.toggle_scratch(Column.UP) is True
        assert policy.toggle_scratch(Column.UP) is False
        assert policy.is_roll_allowed_for_column(Column.UP, 1)


class TestEligibleCells:

    def setup_method(self):
        self.policy = ColumnPolicy()
        self.sheet = ScoreSheet()
        self.scores = candidate_scores([1, 1, 1, 2, 2])

    def eligible(self, column, roll_count=1):
        return self.policy.eligible_cells(self.sheet, column, roll_count, self.scores)

    def test_nothing_before_first_roll(self):
        assert self.eligible(Column.FREE, roll_count=0) == {}

    def test_any_order_offers_every_open_cell(self):
        cells = self.eligible(Column.FREE)
        assert set(cells) == {Cell(Column.FREE, r) for r in ROW_ORDER}
        assert cells[Cell(Column.FREE, Row.FULL_HOUSE)] == 20
        assert cells[Cell(Column.FREE, Row.ONES)] == 3

    def test_any_order_skips_filled_cells(self):
        self.sheet.save(Column.FREE, Row.ONES, 3)
        self.sheet.save(Column.FREE, Row.STRAIGHT, 0)
        cells = self.eligible(Column.FREE)
        assert Cell(Column.FREE, Row.ONES) not in cells
        assert Cell(Column.FREE, Row.STRAIGHT) not in cells
        assert len(cells) == 9

    def test_top_down_offers_only_first_open_row(self):
        assert self.eligible(Column.DOWN) == {Cell(Column.DOWN, Row.ONES): 3}

    def test_top_down_advances_after_save(self):
        self.sheet.save(Column.DOWN, Row.ONES, 0)
        assert self.eligible(Column.DOWN) == {Cell(Column.DOWN, Row.TWOS): 4}

    def test_bottom_up_starts_at_yambo(self):
        assert self.eligible(Column.UP) == {Cell(Column.UP, Row.YAMBO): 0}

    def test_bottom_up_crosses_into_upper_section(self):
        fill_column(self.sheet, Column.UP, rows=LOWER_ROWS[:3])
        assert self.sheet.save(Column.UP, Row.CHANCE_MINUS, 4)
        assert self.sheet.save(Column.UP, Row.YAMBO, 40)
        assert self.eligible(Column.UP) == {Cell(Column.UP, Row.SIXES): 0}

    def test_full_ordered_column_offers_nothing(self):
        fill_sheet(self.sheet)
        assert self.eligible(Column.DOWN) == {}
        assert self.policy.next_open_row(self.sheet, Column.DOWN) is None

    def test_roll_window_applies(self):
        assert self.eligible(Column.ONE, roll_count=2) == {}
        assert self.eligible(Column.TWO, roll_count=3) == {}
        assert len(self.eligible(Column.TWO, roll_count=2)) == 11

    def test_scratched_column_offers_nothing(self):
        self.policy.toggle_scratch(Column.DOWN)
        assert self.eligible(Column.DOWN) == {}

    def test_rows_without_candidate_are_not_offered(self):
        partial = {Row.ONES: 3}
        cells = self.policy.eligible_cells(self.sheet, Column.FREE, 1, partial)
        assert cells == {Cell(Column.FREE, Row.ONES): 3}


class TestOpenColumns:

    def test_all_open_at_start(self):
        policy = ColumnPolicy()
        sheet = ScoreSheet()
        assert policy.open_columns(sheet) == list(Column)
        assert all(policy.has_open_cells(sheet, c) for c in Column)

    def test_full_column_is_not_open(self):
        policy = ColumnPolicy()
        sheet = ScoreSheet()
        fill_column(sheet, Column.DOWN)
        assert not policy.has_open_cells(sheet, Column.DOWN)
        assert Column.DOWN not in policy.open_columns(sheet)

    def test_scratched_column_is_not_open(self):
        policy = ColumnPolicy()
        policy.toggle_scratch(Column.ONE)
        assert Column.ONE not in policy.open_columns(ScoreSheet())


# ═══════════════════════════════════════════════════════════════════════════════
# 4. SCORE SHEET
# ═══════════════════════════════════════════════════════════════════════════════

class TestSave:

    def test_new_sheet_is_empty(self):
        sheet = ScoreSheet()
        assert len(sheet.cells) == 55
        assert all(e == CellEntry() for e in sheet.cells.values())

    def test_save_nonzero_value(self):
        sheet = ScoreSheet()
        result = sheet.save(Column.DOWN, Row.ONES, 3)
        assert result.ok and result.value == 3
        assert sheet.entry(Column.DOWN, Row.ONES) == CellEntry(CellState.SAVED, 3)

    def test_save_zero_scratches(self):
        sheet = ScoreSheet()
        assert sheet.save(Column.FREE, Row.YAMBO, 0)
        assert sheet.state(Column.FREE, Row.YAMBO) == CellState.SCRATCHED
        assert sheet.entry(Column.FREE, Row.YAMBO).value is None

    def test_filled_cell_is_terminal(self):
        sheet = ScoreSheet()
        sheet.save(Column.FREE, Row.TWOS, 4)
        result = sheet.save(Column.FREE, Row.TWOS, 8)
        assert result.error == ActionError.CELL_NOT_ELIGIBLE
        assert sheet.saved_value(Column.FREE, Row.TWOS) == 4

    def test_scratched_cell_is_terminal(self):
        sheet = ScoreSheet()
        sheet.save(Column.FREE, Row.TWOS, 0)
        assert not sheet.save(Column.FREE, Row.TWOS, 8)
        assert sheet.state(Column.FREE, Row.TWOS) == CellState.SCRATCHED

    def test_marking_does_not_touch_filled_cells(self):
        sheet = ScoreSheet()
        sheet.save(Column.FREE, Row.TWOS, 4)
        sheet.mark_available(Cell(Column.FREE, Row.TWOS), 10)
        assert sheet.entry(Column.FREE, Row.TWOS) == CellEntry(CellState.SAVED, 4)

    def test_save_clears_all_available_marks(self):
        sheet = ScoreSheet()
        sheet.mark_available(Cell(Column.FREE, Row.ONES), 2)
        sheet.mark_available(Cell(Column.UP, Row.YAMBO), 0)
        sheet.save(Column.FREE, Row.ONES, 2)
        assert sheet.available_cells() == {}
        assert sheet.state(Column.UP, Row.YAMBO) == CellState.EMPTY

    def test_action_result_truthiness(self):
        assert ActionResult()
        assert not ActionResult.fail(ActionError.NO_ROLLS_LEFT)


class TestChanceOrder:

    def test_minus_must_be_below_saved_plus(self):
        sheet = ScoreSheet()
        sheet.save(Column.FREE, Row.CHANCE_PLUS, 20)
        sheet.mark_available(Cell(Column.FREE, Row.CHANCE_MINUS), 25)
        result = sheet.save(Column.FREE, Row.CHANCE_MINUS, 25)
        assert result.error == ActionError.INVALID_CHANCE_ORDER
        assert sheet.entry(Column.FREE, Row.CHANCE_MINUS) == CellEntry(CellState.AVAILABLE, 25)

    def test_minus_equal_to_plus_rejected(self):
        sheet = ScoreSheet()
        sheet.save(Column.FREE, Row.CHANCE_PLUS, 20)
        assert not sheet.save(Column.FREE, Row.CHANCE_MINUS, 20)

    def test_minus_below_plus_accepted(self):
        sheet = ScoreSheet()
        sheet.save(Column.FREE, Row.CHANCE_PLUS, 20)
        assert sheet.save(Column.FREE, Row.CHANCE_MINUS, 19)

    def test_plus_must_be_above_saved_minus(self):
        sheet = ScoreSheet()
        sheet.save(Column.UP, Row.CHANCE_MINUS, 12)
        assert sheet.save(Column.UP, Row.CHANCE_PLUS, 12).error == ActionError.INVALID_CHANCE_ORDER
        assert sheet.save(Column.UP, Row.CHANCE_PLUS, 13)

    def test_other_column_does_not_constrain(self):
        sheet = ScoreSheet()
        sheet.save(Column.FREE, Row.CHANCE_PLUS, 10)
        assert sheet.save(Column.TWO, Row.CHANCE_MINUS, 28)

    def test_scratched_partner_does_not_constrain(self):
        sheet = ScoreSheet()
        sheet.save(Column.FREE, Row.CHANCE_PLUS, 0)
        assert sheet.save(Column.FREE, Row.CHANCE_MINUS, 28)

    def test_rejection_leaves_totals_alone(self):
        sheet = ScoreSheet()
        sheet.save(Column.FREE, Row.CHANCE_PLUS, 20)
        before = sheet.totals(Column.FREE)
        sheet.save(Column.FREE, Row.CHANCE_MINUS, 26)
        assert sheet.totals(Column.FREE) == before


class TestTotals:

    def test_three_of_each_face_earns_bonus(self):
        sheet = ScoreSheet()
        for face, row in enumerate(UPPER_ROWS, start=1):
            sheet.save(Column.FREE, row, upper_score([face, face, face, 7 - face, 7 - face], face))
        totals = sheet.totals(Column.FREE)
        assert totals.upper_total == 3 + 6 + 9 + 12 + 15 + 18 == 63
        assert totals.bonus == 30
        assert totals.grand_total == 93

    def test_sixty_two_earns_no_bonus(self):
        sheet = ScoreSheet()
        for row, value in zip(UPPER_ROWS, (2, 6, 9, 12, 15, 18)):
            sheet.save(Column.DOWN, row, value)
        totals = sheet.totals(Column.DOWN)
        assert totals.upper_total == 62
        assert totals.bonus == 0

    def test_lower_total_and_grand_total(self):
        sheet = ScoreSheet()
        sheet.save(Column.UP, Row.YAMBO, 40)
        sheet.save(Column.UP, Row.CHANCE_MINUS, 10)
        sheet.save(Column.UP, Row.SIXES, 24)
        totals = sheet.totals(Column.UP)
        assert totals.lower_total == 50
        assert totals.upper_total == 24
        assert totals.grand_total == 74

    def test_scratched_cells_count_as_zero(self):
        sheet = ScoreSheet()
        sheet.save(Column.ONE, Row.FULL_HOUSE, 0)
        sheet.save(Column.ONE, Row.STRAIGHT, 30)
        assert sheet.totals(Column.ONE).lower_total == 30

    def test_totals_are_per_column(self):
        sheet = ScoreSheet()
        sheet.save(Column.ONE, Row.STRAIGHT, 30)
        sheet.save(Column.TWO, Row.FULL_HOUSE, 20)
        assert sheet.totals(Column.ONE).grand_total == 30
        assert sheet.totals(Column.TWO).grand_total == 20
        assert sheet.totals(Column.DOWN).grand_total == 0
        assert sheet.grand_total() == 50

    def test_cached_totals_match_fold(self):
        sheet = ScoreSheet()
        fill_column(sheet, Column.FREE, value=11, rows=UPPER_ROWS + (Row.YAMBO,))
        assert sheet.totals(Column.FREE) == sheet.compute_totals(Column.FREE)


class TestGameOver:

    def test_not_over_at_start(self):
        assert not ScoreSheet().is_game_over()

    def test_not_over_with_one_cell_left(self):
        sheet = ScoreSheet()
        fill_sheet(sheet)
        sheet.cells[Cell(Column.TWO, Row.YAMBO)] = CellEntry()
        assert not sheet.is_game_over()

    def test_over_when_all_cells_saved_or_scratched(self):
        sheet = ScoreSheet()
        fill_sheet(sheet, value=5)
        assert sheet.is_game_over()

    def test_reset_empties_sheet(self):
        sheet = ScoreSheet()
        fill_sheet(sheet)
        sheet.reset()
        assert not sheet.is_game_over()
        assert sheet.grand_total() == 0
