"""
Yambo Game Engine - Pure rule logic without any frontend dependencies

This module holds the dice, the combination checks, the per-column rules
and the score sheet for Yambo, a five-column Yahtzee variant. Dice state is
immutable (DieState); the sheet and the dice set are small mutable owners
that the TurnController drives.
"""
from __future__ import annotations

import logging
import random
from collections import Counter
from dataclasses import dataclass, replace
from enum import Enum

logger = logging.getLogger(__name__)

NUM_DICE = 5
FACES = (1, 2, 3, 4, 5, 6)

UPPER_BONUS_THRESHOLD = 63
UPPER_BONUS_VALUE = 30

FULL_HOUSE_SCORE = 20
STRAIGHT_SCORE = 30
YAMBO_SCORE = 40


# ── Errors ───────────────────────────────────────────────────────────────────

class ActionError(Enum):
    """Why an engine action was rejected. Values are user-facing messages."""
    ALL_DICE_HELD = "All dice are held"
    NO_ROLLS_LEFT = "No rolls left"
    CELL_NOT_ELIGIBLE = "Cell is not available"
    INVALID_CHANCE_ORDER = "Chance - must be lower than Chance +"


@dataclass(frozen=True)
class ActionResult:
    """Outcome of an engine action. Truthy on success."""
    error: ActionError | None = None
    value: int | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok

    @staticmethod
    def fail(error: ActionError) -> ActionResult:
        return ActionResult(error=error)


# ── Rows and columns ─────────────────────────────────────────────────────────

class Section(Enum):
    UPPER = "upper"
    LOWER = "lower"


class Row(Enum):
    """Yambo score rows, keyed by stable id"""
    ONES = "ones"
    TWOS = "twos"
    THREES = "threes"
    FOURS = "fours"
    FIVES = "fives"
    SIXES = "sixes"
    FULL_HOUSE = "fullHouse"
    STRAIGHT = "straight"
    CHANCE_PLUS = "chancePlus"
    CHANCE_MINUS = "chanceMinus"
    YAMBO = "yambo"

    @property
    def section(self) -> Section:
        return Section.UPPER if self in UPPER_ROWS else Section.LOWER

    @property
    def face(self) -> int | None:
        """Die face scored by an upper row, None for lower rows."""
        if self in UPPER_ROWS:
            return UPPER_ROWS.index(self) + 1
        return None

    @property
    def label(self) -> str:
        return ROW_LABELS[self]


UPPER_ROWS = (Row.ONES, Row.TWOS, Row.THREES, Row.FOURS, Row.FIVES, Row.SIXES)
LOWER_ROWS = (Row.FULL_HOUSE, Row.STRAIGHT, Row.CHANCE_PLUS, Row.CHANCE_MINUS, Row.YAMBO)
ROW_ORDER = UPPER_ROWS + LOWER_ROWS

ROW_LABELS = {
    Row.ONES: "Ones",
    Row.TWOS: "Twos",
    Row.THREES: "Threes",
    Row.FOURS: "Fours",
    Row.FIVES: "Fives",
    Row.SIXES: "Sixes",
    Row.FULL_HOUSE: "Full House",
    Row.STRAIGHT: "Straight",
    Row.CHANCE_PLUS: "Chance +",
    Row.CHANCE_MINUS: "Chance -",
    Row.YAMBO: "YAMBO!",
}


class FillOrder(Enum):
    TOP_DOWN = "down"
    BOTTOM_UP = "up"
    ANY = "random"


@dataclass(frozen=True)
class ColumnRules:
    """Static rules of a column"""
    label: str
    max_tries: int     # 1-3
    fill_order: FillOrder


class Column(Enum):
    """The five scoring columns, in sheet order"""
    DOWN = "dn"
    FREE = "w"
    UP = "up"
    ONE = "one"
    TWO = "two"

    @property
    def rules(self) -> ColumnRules:
        return COLUMN_RULES[self]


COLUMN_RULES = {
    Column.DOWN: ColumnRules("↓", 3, FillOrder.TOP_DOWN),
    Column.FREE: ColumnRules("W", 3, FillOrder.ANY),
    Column.UP: ColumnRules("↑", 3, FillOrder.BOTTOM_UP),
    Column.ONE: ColumnRules("1", 1, FillOrder.ANY),
    Column.TWO: ColumnRules("2", 2, FillOrder.ANY),
}


# ── Dice ─────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class DieState:
    """Pure representation of a single die's state - immutable"""
    value: int  # 1-6
    held: bool = False

    def roll(self, rng: random.Random) -> DieState:
        """Return new DieState with random value (if not held)"""
        if self.held:
            return self
        return replace(self, value=rng.randint(1, 6))

    def toggle_held(self) -> DieState:
        """Return new DieState with held status toggled"""
        return replace(self, held=not self.held)


class DiceSet:
    """Five dice with hold flags. Always exactly five."""

    def __init__(self, values=(1, 2, 3, 4, 5), rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()
        self.dice: tuple[DieState, ...] = ()
        self.set_values(values)

    @property
    def values(self) -> tuple[int, ...]:
        return tuple(die.value for die in self.dice)

    @property
    def held(self) -> tuple[bool, ...]:
        return tuple(die.held for die in self.dice)

    @property
    def held_indices(self) -> list[int]:
        return [i for i, die in enumerate(self.dice) if die.held]

    @property
    def all_held(self) -> bool:
        return all(die.held for die in self.dice)

    def set_values(self, values) -> None:
        """Replace face values, keeping hold flags where dice already exist.

        Raises:
            ValueError: if there are not exactly five values in 1..6.
        """
        values = tuple(values)
        if len(values) != NUM_DICE or not all(v in FACES for v in values):
            raise ValueError(f"expected {NUM_DICE} dice values in 1..6, got {values!r}")
        if self.dice:
            self.dice = tuple(replace(die, value=v) for die, v in zip(self.dice, values))
        else:
            self.dice = tuple(DieState(value=v) for v in values)

    def roll(self, held_mask=None, rng: random.Random | None = None) -> tuple[int, ...]:
        """
        Re-roll every die not held.

        Args:
            held_mask: Optional five booleans overriding the dice's own hold flags
            rng: Optional random source overriding the set's own

        Returns:
            The five face values after rolling
        """
        rng = rng or self.rng
        if held_mask is None:
            self.dice = tuple(die.roll(rng) for die in self.dice)
        else:
            self.dice = tuple(
                die if keep else replace(die, value=rng.randint(1, 6))
                for die, keep in zip(self.dice, held_mask)
            )
        return self.values

    def toggle_hold(self, index: int) -> bool:
        """Flip hold on one die. Returns the new hold state."""
        dice_list = list(self.dice)
        dice_list[index] = dice_list[index].toggle_held()
        self.dice = tuple(dice_list)
        return self.dice[index].held

    def toggle_hold_matching_value(self, index: int) -> bool:
        """Flip hold on one die and give every die with the same face that hold state."""
        held = self.toggle_hold(index)
        value = self.dice[index].value
        self.dice = tuple(
            replace(die, held=held) if die.value == value else die
            for die in self.dice
        )
        return held

    def clear_holds(self) -> None:
        self.dice = tuple(replace(die, held=False) for die in self.dice)


# ── Combinatorics ────────────────────────────────────────────────────────────

def counts(values) -> tuple[int, ...]:
    """
    Count occurrences of each face

    Args:
        values: Five die values

    Returns:
        Six counts, index 0 for face 1 through index 5 for face 6
    """
    counter = Counter(values)
    return tuple(counter[face] for face in FACES)


def total(values) -> int:
    """Sum of all dice"""
    return sum(values)


def upper_score(values, face: int) -> int:
    """Score of an upper row: number of dice showing face, times face"""
    return counts(values)[face - 1] * face


def is_three_of_a_kind(values) -> bool:
    return 3 in counts(values)


def is_four_of_a_kind(values) -> bool:
    return 4 in counts(values)


def is_full_house(values) -> bool:
    """Three of one face and two of another. Five of a kind also counts."""
    c = counts(values)
    return (3 in c and 2 in c) or 5 in c


def is_straight(values) -> bool:
    """2, 3, 4 and 5 present, plus either 1 or 6"""
    present = set(values)
    return {2, 3, 4, 5} <= present and (1 in present or 6 in present)


def is_yambo(values) -> bool:
    return 5 in counts(values)


def combinations(values) -> dict[str, bool]:
    """Flags for every named combination the dice form"""
    return {
        "three_of_a_kind": is_three_of_a_kind(values),
        "four_of_a_kind": is_four_of_a_kind(values),
        "full_house": is_full_house(values),
        "straight": is_straight(values),
        "yambo": is_yambo(values),
    }


# Highest first; only the best one is announced
COMBINATION_NAMES = (
    ("yambo", "Yambo!!!"),
    ("straight", "Straight"),
    ("full_house", "Full House"),
    ("four_of_a_kind", "Four of a Kind"),
    ("three_of_a_kind", "Three of a Kind"),
)


def best_combination(values) -> str | None:
    """Display name of the best combination rolled, or None"""
    flags = combinations(values)
    for key, name in COMBINATION_NAMES:
        if flags[key]:
            return name
    return None


def candidate_scores(values) -> dict[Row, int]:
    """
    Score every row would get with these dice

    Chance + and Chance - both get the dice total here; their relative
    order is only checked when one of them is saved.

    Args:
        values: Five die values

    Returns:
        Mapping of every Row to its candidate score
    """
    scores = {row: upper_score(values, row.face) for row in UPPER_ROWS}
    dice_total = total(values)
    scores[Row.FULL_HOUSE] = FULL_HOUSE_SCORE if is_full_house(values) else 0
    scores[Row.STRAIGHT] = STRAIGHT_SCORE if is_straight(values) else 0
    scores[Row.CHANCE_PLUS] = dice_total
    scores[Row.CHANCE_MINUS] = dice_total
    scores[Row.YAMBO] = YAMBO_SCORE if is_yambo(values) else 0
    return scores


# ── Score sheet ──────────────────────────────────────────────────────────────

class CellState(Enum):
    EMPTY = "empty"
    AVAILABLE = "available"
    SAVED = "saved"
    SCRATCHED = "scratched"


TERMINAL_STATES = (CellState.SAVED, CellState.SCRATCHED)


@dataclass(frozen=True)
class Cell:
    """Stable address of a sheet cell"""
    column: Column
    row: Row


@dataclass(frozen=True)
class CellEntry:
    """Contents of a cell. value is the saved score, or the candidate while AVAILABLE."""
    state: CellState = CellState.EMPTY
    value: int | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES


@dataclass(frozen=True)
class ColumnTotals:
    upper_total: int = 0
    bonus: int = 0
    lower_total: int = 0
    grand_total: int = 0


class ScoreSheet:
    """Manages the 5x11 Yambo score sheet"""

    def __init__(self):
        """Initialize an empty sheet"""
        self.reset()

    def reset(self) -> None:
        """Empty every cell and zero the totals"""
        self.cells = {Cell(col, row): CellEntry() for col in Column for row in ROW_ORDER}
        self._totals = {col: ColumnTotals() for col in Column}

    def entry(self, column: Column, row: Row) -> CellEntry:
        return self.cells[Cell(column, row)]

    def state(self, column: Column, row: Row) -> CellState:
        return self.entry(column, row).state

    def is_filled(self, column: Column, row: Row) -> bool:
        """Check if a cell is saved or scratched"""
        return self.entry(column, row).is_terminal

    def saved_value(self, column: Column, row: Row) -> int | None:
        """Saved score of a cell, None unless SAVED"""
        entry = self.entry(column, row)
        return entry.value if entry.state == CellState.SAVED else None

    def mark_available(self, cell: Cell, value: int) -> None:
        """Highlight a candidate cell. Terminal cells are left alone."""
        if self.cells[cell].is_terminal:
            return
        self.cells[cell] = CellEntry(CellState.AVAILABLE, value)

    def clear_available(self) -> None:
        """Drop every candidate highlight"""
        for cell, entry in self.cells.items():
            if entry.state == CellState.AVAILABLE:
                self.cells[cell] = CellEntry()

    def available_cells(self) -> dict[Cell, int]:
        return {cell: entry.value for cell, entry in self.cells.items()
                if entry.state == CellState.AVAILABLE}

    def check_chance_order(self, column: Column, row: Row, value: int) -> bool:
        """
        Check Chance - stays strictly below Chance + in one column

        Only a SAVED partner cell constrains the value; an empty or
        scratched partner does not.

        Args:
            column: Column being saved into
            row: Row being saved
            value: Score about to be saved

        Returns:
            True if the save keeps the ordering valid
        """
        if row == Row.CHANCE_MINUS:
            plus = self.saved_value(column, Row.CHANCE_PLUS)
            return plus is None or value < plus
        if row == Row.CHANCE_PLUS:
            minus = self.saved_value(column, Row.CHANCE_MINUS)
            return minus is None or value > minus
        return True

    def save(self, column: Column, row: Row, value: int) -> ActionResult:
        """
        Commit a score into a cell

        A value of 0 scratches the cell. On success the column's totals are
        recomputed and every candidate highlight is cleared. A rejected save
        changes nothing.

        Returns:
            ActionResult carrying the committed value or the rejection reason
        """
        if self.is_filled(column, row):
            logger.debug("Save into filled cell %s/%s rejected", column.value, row.value)
            return ActionResult.fail(ActionError.CELL_NOT_ELIGIBLE)
        if not self.check_chance_order(column, row, value):
            logger.debug("Save %d into %s/%s breaks chance order", value, column.value, row.value)
            return ActionResult.fail(ActionError.INVALID_CHANCE_ORDER)

        if value == 0:
            self.cells[Cell(column, row)] = CellEntry(CellState.SCRATCHED)
        else:
            self.cells[Cell(column, row)] = CellEntry(CellState.SAVED, value)
        self._totals[column] = self.compute_totals(column)
        self.clear_available()
        return ActionResult(value=value)

    def compute_totals(self, column: Column) -> ColumnTotals:
        """Fold the SAVED cells of a column into its totals"""
        upper_total = sum(self.saved_value(column, row) or 0 for row in UPPER_ROWS)
        lower_total = sum(self.saved_value(column, row) or 0 for row in LOWER_ROWS)
        bonus = UPPER_BONUS_VALUE if upper_total >= UPPER_BONUS_THRESHOLD else 0
        return ColumnTotals(
            upper_total=upper_total,
            bonus=bonus,
            lower_total=lower_total,
            grand_total=upper_total + bonus + lower_total,
        )

    def totals(self, column: Column) -> ColumnTotals:
        return self._totals[column]

    def grand_total(self) -> int:
        """Sum of every column's grand total"""
        return sum(t.grand_total for t in self._totals.values())

    def is_game_over(self) -> bool:
        """Check if every cell is saved or scratched"""
        return all(entry.is_terminal for entry in self.cells.values())


# ── Column policy ────────────────────────────────────────────────────────────

class ColumnPolicy:
    """Per-column roll windows and fill order. Owns only the scratched flags."""

    def __init__(self):
        self.scratched = {col: False for col in Column}

    @staticmethod
    def max_tries_of(column: Column) -> int:
        return column.rules.max_tries

    def is_scratched(self, column: Column) -> bool:
        return self.scratched[column]

    def toggle_scratch(self, column: Column) -> bool:
        """Flip a column's scratched flag. Returns the new flag."""
        self.scratched[column] = not self.scratched[column]
        return self.scratched[column]

    def reset(self) -> None:
        self.scratched = {col: False for col in Column}

    def is_roll_allowed_for_column(self, column: Column, roll_count: int) -> bool:
        """
        Check whether the current roll may be scored in a column

        A one-try column only takes the first roll, a two-try column the
        first two; three-try columns take any roll.
        """
        if self.scratched[column]:
            return False
        max_tries = self.max_tries_of(column)
        if max_tries == 1:
            return roll_count == 1
        if max_tries == 2:
            return roll_count in (1, 2)
        return True

    @staticmethod
    def has_open_cells(sheet: ScoreSheet, column: Column) -> bool:
        return any(not sheet.is_filled(column, row) for row in ROW_ORDER)

    def open_columns(self, sheet: ScoreSheet) -> list[Column]:
        """Columns that are not scratched and still have cells to fill"""
        return [col for col in Column
                if not self.scratched[col] and self.has_open_cells(sheet, col)]

    @staticmethod
    def next_open_row(sheet: ScoreSheet, column: Column) -> Row | None:
        """First unfilled row in the column's fill direction, None if full"""
        order = ROW_ORDER
        if column.rules.fill_order == FillOrder.BOTTOM_UP:
            order = tuple(reversed(ROW_ORDER))
        for row in order:
            if not sheet.is_filled(column, row):
                return row
        return None

    def eligible_cells(self, sheet: ScoreSheet, column: Column, roll_count: int,
                       candidates: dict[Row, int]) -> dict[Cell, int]:
        """
        Cells of one column the current roll may be saved into

        Args:
            sheet: Score sheet to inspect
            column: Column to evaluate
            roll_count: Rolls made this turn
            candidates: Candidate score per row for the current dice

        Returns:
            Mapping of eligible Cell to the value it would receive
        """
        if roll_count < 1 or not self.is_roll_allowed_for_column(column, roll_count):
            return {}

        if column.rules.fill_order == FillOrder.ANY:
            rows = [row for row in ROW_ORDER if not sheet.is_filled(column, row)]
        else:
            next_row = self.next_open_row(sheet, column)
            rows = [next_row] if next_row is not None else []

        return {Cell(column, row): candidates[row] for row in rows if row in candidates}

