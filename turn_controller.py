"""
TurnController — Turn and roll state machine for Yambo.

Owns the dice and the turn state, asks ColumnPolicy and ScoreSheet what is
legal, and notifies listeners of rolls, saves and game over. Frontends call
the action methods and read properties; nothing here renders or plays sound.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from game_engine import (
    NUM_DICE,
    ActionError,
    ActionResult,
    Cell,
    Column,
    ColumnPolicy,
    ColumnTotals,
    DiceSet,
    Row,
    ScoreSheet,
    best_combination,
    candidate_scores,
    combinations,
)

logger = logging.getLogger(__name__)

ROLL_LABELS = ("Roll Dice", "2nd Roll", "Last Roll")


def roll_label(roll_count: int) -> str:
    """Caption for the roll button after roll_count rolls this turn."""
    if 0 <= roll_count < len(ROLL_LABELS):
        return ROLL_LABELS[roll_count]
    return ROLL_LABELS[0]


class Phase(Enum):
    IDLE = "idle"                    # nothing rolled this turn
    AWAITING_SAVE = "awaiting_save"  # candidates on the sheet
    GAME_OVER = "game_over"


@dataclass
class TurnState:
    """Roll bookkeeping for the current turn"""
    roll_count: int = 0
    max_rolls_for_turn: int = 3
    game_over: bool = False
    phase: Phase = Phase.IDLE
    turn: int = 1


# ── Events ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RollComplete:
    values: tuple[int, ...]
    combinations: dict[str, bool]
    roll_number: int
    best_combination: str | None = None


@dataclass(frozen=True)
class ScoreSaved:
    column: Column
    row: Row
    value: int
    turn: int

    @property
    def scratched(self) -> bool:
        return self.value == 0


@dataclass(frozen=True)
class ColumnScratchToggled:
    column: Column
    scratched: bool


@dataclass(frozen=True)
class MaxRollsChanged:
    max_rolls: int


@dataclass(frozen=True)
class GameOver:
    grand_total: int


class TurnController:
    """Coordinates dice, column policy and score sheet for one game.

    Every action that can be refused returns an ActionResult; a refused
    action leaves all state untouched.
    """

    def __init__(self, dice: DiceSet | None = None, policy: ColumnPolicy | None = None,
                 sheet: ScoreSheet | None = None, rng: random.Random | None = None,
                 seed: int | None = None) -> None:
        """Initialize the controller.

        Args:
            dice: Dice to play with. Built from rng when omitted.
            policy: Column rules and scratch flags.
            sheet: Score sheet to fill.
            rng: Random source for a freshly built DiceSet.
            seed: Seed for rng when rng is omitted.
        """
        if rng is None:
            rng = random.Random(seed)
        self.dice = dice if dice is not None else DiceSet(rng=rng)
        self.policy = policy if policy is not None else ColumnPolicy()
        self.sheet = sheet if sheet is not None else ScoreSheet()
        self.state = TurnState()

        # Candidate score per row for the current dice, and where they may go
        self.candidates: dict[Row, int] = {}
        self.eligible: dict[Cell, int] = {}

        self._listeners: dict[type, list[Callable]] = {}
        self._update_max_rolls()

    # ── Events ────────────────────────────────────────────────────────────

    def on(self, event_type: type, callback: Callable) -> Callable[[], None]:
        """Subscribe callback to an event class. Returns an unsubscribe function."""
        self._listeners.setdefault(event_type, []).append(callback)

        def unsubscribe() -> None:
            callbacks = self._listeners.get(event_type, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def _emit(self, event) -> None:
        for callback in list(self._listeners.get(type(event), [])):
            callback(event)

    # ── Properties ────────────────────────────────────────────────────────

    @property
    def roll_count(self) -> int:
        return self.state.roll_count

    @property
    def max_rolls_for_turn(self) -> int:
        return self.state.max_rolls_for_turn

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def turn(self) -> int:
        return self.state.turn

    @property
    def game_over(self) -> bool:
        return self.state.game_over

    @property
    def dice_values(self) -> tuple[int, ...]:
        return self.dice.values

    @property
    def can_roll(self) -> bool:
        """Whether roll_dice() would succeed right now."""
        return (not self.state.game_over
                and self.state.roll_count < self.state.max_rolls_for_turn
                and not self.dice.all_held)

    @property
    def rolls_left(self) -> int:
        return max(0, self.state.max_rolls_for_turn - self.state.roll_count)

    @property
    def roll_label(self) -> str:
        return roll_label(self.state.roll_count)

    # ── Queries ───────────────────────────────────────────────────────────

    def get_eligible_cells(self) -> dict[Cell, int]:
        """Cells the current roll may be saved into, with their values."""
        return dict(self.eligible)

    def get_totals(self, column: Column) -> ColumnTotals:
        return self.sheet.totals(column)

    def get_grand_total(self) -> int:
        return self.sheet.grand_total()

    def is_game_over(self) -> bool:
        return self.state.game_over

    # ── Actions ───────────────────────────────────────────────────────────

    def roll_dice(self) -> ActionResult:
        """Roll every unheld die and offer the resulting candidates.

        Refused with NO_ROLLS_LEFT once the turn's rolls are used up or the
        game is over, and with ALL_DICE_HELD when nothing would be rolled.
        """
        if self.state.game_over or self.state.roll_count >= self.state.max_rolls_for_turn:
            logger.debug("Roll refused: %d/%d rolls used", self.state.roll_count,
                         self.state.max_rolls_for_turn)
            return ActionResult.fail(ActionError.NO_ROLLS_LEFT)
        if self.dice.all_held:
            logger.debug("Roll refused: all dice held")
            return ActionResult.fail(ActionError.ALL_DICE_HELD)

        self.state.roll_count += 1
        values = self.dice.roll()
        self.candidates = candidate_scores(values)
        self._refresh_eligible()
        self.state.phase = Phase.AWAITING_SAVE

        self._emit(RollComplete(
            values=values,
            combinations=combinations(values),
            roll_number=self.state.roll_count,
            best_combination=best_combination(values),
        ))
        return ActionResult()

    def toggle_hold(self, index: int) -> bool:
        """Toggle hold on one die. Returns the new hold state."""
        self._check_die_index(index)
        if self.state.game_over:
            return self.dice.dice[index].held
        return self.dice.toggle_hold(index)

    def toggle_hold_matching_value(self, index: int) -> bool:
        """Toggle hold on one die and every die showing the same face."""
        self._check_die_index(index)
        if self.state.game_over:
            return self.dice.dice[index].held
        return self.dice.toggle_hold_matching_value(index)

    def toggle_column_scratch(self, column: Column) -> bool:
        """Flip a column's scratched flag. Returns the new flag.

        Cell states are untouched; the column simply stops (or resumes)
        taking saves. Between turns the roll limit follows the remaining
        columns; mid-turn it stays put until the next save.
        """
        scratched = self.policy.toggle_scratch(column)
        if self.state.phase == Phase.AWAITING_SAVE:
            self._refresh_eligible()
        elif self.state.phase == Phase.IDLE:
            self._update_max_rolls()
        self._emit(ColumnScratchToggled(column=column, scratched=scratched))
        return scratched

    def save_score(self, column: Column, row: Row) -> ActionResult:
        """Commit the offered value of a cell and start the next turn.

        Refused with CELL_NOT_ELIGIBLE unless the current roll offered the
        cell, and with INVALID_CHANCE_ORDER when Chance - would not stay
        below Chance +.
        """
        cell = Cell(column, row)
        if self.state.game_over or cell not in self.eligible:
            logger.debug("Save refused: %s/%s not offered", column.value, row.value)
            return ActionResult.fail(ActionError.CELL_NOT_ELIGIBLE)

        value = self.eligible[cell]
        result = self.sheet.save(column, row, value)
        if not result:
            return result

        saved_turn = self.state.turn
        self.state.roll_count = 0
        self.state.turn += 1
        self.dice.clear_holds()
        self.candidates = {}
        self.eligible = {}
        self._update_max_rolls()

        if self.sheet.is_game_over():
            self.state.game_over = True
            self.state.phase = Phase.GAME_OVER
        else:
            self.state.phase = Phase.IDLE

        self._emit(ScoreSaved(column=column, row=row, value=value, turn=saved_turn))
        if self.state.game_over:
            logger.info("Game over, grand total %d", self.get_grand_total())
            self._emit(GameOver(grand_total=self.get_grand_total()))
        return result

    def reset_game(self) -> None:
        """Start over with a fresh sheet, unscratched columns and dice 1-5."""
        self.dice.set_values((1, 2, 3, 4, 5))
        self.dice.clear_holds()
        self.policy.reset()
        self.sheet.reset()
        self.state = TurnState()
        self.candidates = {}
        self.eligible = {}
        self._update_max_rolls(force_emit=True)

    # ── Internal ──────────────────────────────────────────────────────────

    @staticmethod
    def _check_die_index(index: int) -> None:
        if not 0 <= index < NUM_DICE:
            raise IndexError(f"die index {index} out of range")

    def _refresh_eligible(self) -> None:
        """Recompute the eligible cells from the candidates and re-mark the sheet."""
        self.sheet.clear_available()
        self.eligible = {}
        for column in Column:
            self.eligible.update(self.policy.eligible_cells(
                self.sheet, column, self.state.roll_count, self.candidates))
        for cell, value in self.eligible.items():
            self.sheet.mark_available(cell, value)

    def _update_max_rolls(self, force_emit: bool = False) -> None:
        """Set the roll limit to the largest try count among open columns."""
        open_columns = self.policy.open_columns(self.sheet)
        max_rolls = max((self.policy.max_tries_of(c) for c in open_columns), default=0)
        changed = max_rolls != self.state.max_rolls_for_turn
        self.state.max_rolls_for_turn = max_rolls
        if changed or force_emit:
            self._emit(MaxRollsChanged(max_rolls=max_rolls))
