"""FrontendAdapter — Shared UI state management for all Yambo frontends.

Owns the zero-score confirmation, keyboard cell navigation, the last error
message, sound cues, settings persistence and the JSON snapshot.
Pure Python — no Textual, Flask or other frontend dependency.

Each frontend (TUI, web) creates a FrontendAdapter wrapping a
TurnController and delegates UI-state logic here, keeping only rendering
and input translation frontend-specific.
"""

from abc import ABC, abstractmethod

from game_engine import (
    ROW_ORDER,
    UPPER_ROWS,
    LOWER_ROWS,
    Cell,
    CellState,
    Column,
    Row,
)
from game_log import GameLog
from settings import load_settings, save_settings
from turn_controller import (
    ColumnScratchToggled,
    GameOver,
    RollComplete,
    ScoreSaved,
    TurnController,
)


# ── Shared constants ─────────────────────────────────────────────────────────

COLUMN_ORDER = list(Column)

SCRATCH_MARK = "×"

# Dice juggle length in ms, by the name shown in the options
ROLL_SPEEDS = {
    100: "Fast",
    200: "Normal",
    400: "Slow",
    800: "Very Slow",
}

ROW_TOOLTIPS = {
    Row.ONES: "Sum of all dice showing 1",
    Row.TWOS: "Sum of all dice showing 2",
    Row.THREES: "Sum of all dice showing 3",
    Row.FOURS: "Sum of all dice showing 4",
    Row.FIVES: "Sum of all dice showing 5",
    Row.SIXES: "Sum of all dice showing 6",
    Row.FULL_HOUSE: "3 of one + 2 of another (or 5 of a kind) = 20",
    Row.STRAIGHT: "2-3-4-5 plus a 1 or a 6 = 30",
    Row.CHANCE_PLUS: "Sum of all dice, must beat Chance -",
    Row.CHANCE_MINUS: "Sum of all dice, must stay under Chance +",
    Row.YAMBO: "All 5 dice the same = 40",
}

COLUMN_TOOLTIPS = {
    Column.DOWN: "Top to bottom, 3 rolls",
    Column.FREE: "Any order, 3 rolls",
    Column.UP: "Bottom to top, 3 rolls",
    Column.ONE: "Any order, first roll only",
    Column.TWO: "Any order, first two rolls",
}


# ── Sound interface ───────────────────────────────────────────────────────────

class SoundInterface(ABC):
    """Abstract sound interface — each frontend provides its own implementation."""

    @abstractmethod
    def play_roll(self): ...

    @abstractmethod
    def play_select(self, held): ...

    @abstractmethod
    def play_combination(self, name): ...

    @abstractmethod
    def play_save(self): ...

    @abstractmethod
    def play_scratch(self): ...

    @abstractmethod
    def play_error(self): ...

    @abstractmethod
    def play_fanfare(self): ...

    @abstractmethod
    def toggle(self): ...

    @property
    @abstractmethod
    def enabled(self) -> bool: ...


class NullSound(SoundInterface):
    """No-op sound for frontends without audio (TUI, server-side web)."""

    def __init__(self):
        self._enabled = False

    def play_roll(self): pass
    def play_select(self, held): pass
    def play_combination(self, name): pass
    def play_save(self): pass
    def play_scratch(self): pass
    def play_error(self): pass
    def play_fanfare(self): pass

    def toggle(self):
        self._enabled = not self._enabled
        return self._enabled

    @property
    def enabled(self):
        return self._enabled


# ── Frontend Adapter ──────────────────────────────────────────────────────────

class FrontendAdapter:
    """Shared UI state management for all Yambo frontends.

    Wraps a TurnController and manages the zero-confirm flow, keyboard
    navigation, error messages, sound cues, settings and snapshots.
    """

    def __init__(self, controller=None, sound=None, settings_path=None):
        self.controller = controller if controller is not None else TurnController()
        self.sound = sound or NullSound()
        self.settings_path = settings_path

        self.game_log = GameLog()
        self.game_log.attach(self.controller)
        self.controller.on(RollComplete, self._on_roll)
        self.controller.on(ScoreSaved, self._on_save)
        self.controller.on(ColumnScratchToggled, self._on_column_scratch)
        self.controller.on(GameOver, self._on_game_over)

        # Overlay state
        self.showing_help = False

        # Zero-score confirmation
        self.confirm_zero_cell = None

        # Keyboard navigation over eligible cells
        self.kb_selected_index = None

        # Feedback
        self.last_error = None
        self.last_saved_cell = None

        # Settings
        self.dark_mode = False
        self.player_name = "Player 1"
        self.juggle_time = 200

    # ── Event handlers ────────────────────────────────────────────────────

    def _on_roll(self, event):
        self.sound.play_roll()
        if event.best_combination:
            self.sound.play_combination(event.best_combination)

    def _on_save(self, event):
        if event.scratched:
            self.sound.play_scratch()
        else:
            self.sound.play_save()
        self.last_saved_cell = Cell(event.column, event.row)

    def _on_column_scratch(self, event):
        self.sound.play_save()

    def _on_game_over(self, event):
        self.sound.play_fanfare()

    def _reject(self, result):
        """Surface a refused action: remember, log and sound it."""
        self.last_error = result.error.value
        self.game_log.log_error(result.error)
        self.sound.play_error()

    # ── Overlays ──────────────────────────────────────────────────────────

    def toggle_help(self):
        """Toggle help overlay."""
        self.showing_help = not self.showing_help
        if self.showing_help:
            self.kb_selected_index = None

    @property
    def is_input_blocked(self):
        """Whether game input should be blocked (overlay or confirm dialog)."""
        return self.showing_help or self.confirm_zero_cell is not None

    # ── Game actions ──────────────────────────────────────────────────────

    def do_roll(self):
        """Roll dice. Returns True if the roll happened."""
        self.last_error = None
        result = self.controller.roll_dice()
        if not result:
            self._reject(result)
            return False
        self.kb_selected_index = None
        return True

    def do_hold(self, die_index, match_value=False):
        """Toggle hold on a die, or on every die with its face when match_value."""
        if match_value:
            held = self.controller.toggle_hold_matching_value(die_index)
        else:
            held = self.controller.toggle_hold(die_index)
        self.sound.play_select(held)
        return held

    def do_scratch_column(self, column):
        """Toggle a column's scratched flag. Returns the new flag."""
        self.kb_selected_index = None
        return self.controller.toggle_column_scratch(column)

    def try_save(self, column, row):
        """Attempt to save a cell. Shows confirm dialog if the value is 0.

        Returns True if the save happened immediately, False otherwise.
        """
        self.last_error = None
        cell = Cell(column, row)
        eligible = self.controller.get_eligible_cells()
        if cell in eligible and eligible[cell] == 0:
            self.confirm_zero_cell = cell
            return False
        return self._save(cell)

    def confirm_zero_yes(self):
        """Confirm scratching the pending cell. Returns True if saved."""
        cell = self.confirm_zero_cell
        if cell is None:
            return False
        self.confirm_zero_cell = None
        return self._save(cell)

    def confirm_zero_no(self):
        """Cancel the zero-score confirmation."""
        self.confirm_zero_cell = None

    def _save(self, cell):
        result = self.controller.save_score(cell.column, cell.row)
        if not result:
            self._reject(result)
            return False
        self.kb_selected_index = None
        return True

    def do_reset(self):
        """Start a new game."""
        self.controller.reset_game()
        self.game_log.clear()
        self.game_log.attach(self.controller)
        self.confirm_zero_cell = None
        self.kb_selected_index = None
        self.last_error = None
        self.last_saved_cell = None

    # ── Keyboard navigation ───────────────────────────────────────────────

    def eligible_cell_order(self):
        """Eligible cells in sheet order: column by column, top to bottom."""
        eligible = self.controller.get_eligible_cells()
        return [Cell(col, row) for col in COLUMN_ORDER for row in ROW_ORDER
                if Cell(col, row) in eligible]

    def navigate_cell(self, direction):
        """Move keyboard selection to the next/previous eligible cell.

        Args:
            direction: +1 for forward, -1 for backward
        """
        order = self.eligible_cell_order()
        if not order:
            self.kb_selected_index = None
            return
        if self.kb_selected_index is None or self.kb_selected_index >= len(order):
            self.kb_selected_index = 0 if direction > 0 else len(order) - 1
        else:
            self.kb_selected_index = (self.kb_selected_index + direction) % len(order)

    @property
    def selected_cell(self):
        """Cell under the keyboard cursor, or None."""
        if self.kb_selected_index is None:
            return None
        order = self.eligible_cell_order()
        if self.kb_selected_index >= len(order):
            return None
        return order[self.kb_selected_index]

    def save_selected(self):
        """Save the keyboard-selected cell (with zero confirmation)."""
        cell = self.selected_cell
        if cell is None:
            return False
        return self.try_save(cell.column, cell.row)

    # ── Settings ──────────────────────────────────────────────────────────

    def load_settings(self):
        """Load persisted settings and apply them."""
        settings = load_settings(self.settings_path)
        self.sound._enabled = settings.get("sound_enabled", True)
        self.dark_mode = settings.get("dark_mode", False)
        self.player_name = settings.get("player_name") or "Player 1"
        juggle_time = settings.get("juggle_time", 200)
        if isinstance(juggle_time, int) and juggle_time > 0:
            self.juggle_time = juggle_time

    def _save_settings(self):
        """Persist current settings to disk."""
        save_settings({
            "sound_enabled": self.sound.enabled,
            "dark_mode": self.dark_mode,
            "player_name": self.player_name,
            "juggle_time": self.juggle_time,
        }, self.settings_path)

    def toggle_dark_mode(self):
        """Toggle dark mode and save."""
        self.dark_mode = not self.dark_mode
        self._save_settings()

    def toggle_sound(self):
        """Toggle sound and save."""
        self.sound.toggle()
        self._save_settings()

    def set_player_name(self, name):
        """Rename the player and save. Blank names fall back to the default."""
        self.player_name = (name or "").strip() or "Player 1"
        self._save_settings()

    def set_juggle_time(self, ms):
        """Pick one of the ROLL_SPEEDS and save. Returns False for an unknown length."""
        if isinstance(ms, bool) or not isinstance(ms, int) or ms not in ROLL_SPEEDS:
            return False
        self.juggle_time = ms
        self._save_settings()
        return True

    def cycle_roll_speed(self):
        """Step to the next slower roll speed, wrapping back to the fastest."""
        speeds = list(ROLL_SPEEDS)
        if self.juggle_time in speeds:
            index = (speeds.index(self.juggle_time) + 1) % len(speeds)
        else:
            index = 0
        self.set_juggle_time(speeds[index])
        return self.juggle_time

    @property
    def roll_speed_name(self):
        return ROLL_SPEEDS.get(self.juggle_time, f"{self.juggle_time} ms")

    # ── Display helpers ───────────────────────────────────────────────────

    def cell_text(self, column, row):
        """Text a frontend shows in a cell: saved score, scratch mark, candidate or blank."""
        entry = self.controller.sheet.entry(column, row)
        if entry.state == CellState.SAVED:
            return str(entry.value)
        if entry.state == CellState.SCRATCHED:
            return SCRATCH_MARK
        if entry.state == CellState.AVAILABLE:
            return str(entry.value) if entry.value else ""
        return ""

    # ── Full state snapshot (for web frontend) ────────────────────────────

    def get_game_snapshot(self):
        """Return a complete JSON-serializable dict of game + UI state.

        Used by the web frontend to push full state over WebSocket.
        """
        ctrl = self.controller
        sheet = ctrl.sheet

        dice = [{"value": d.value, "held": d.held} for d in ctrl.dice.dice]

        columns = []
        for col in COLUMN_ORDER:
            cells = {}
            for row in ROW_ORDER:
                entry = sheet.entry(col, row)
                cells[row.value] = {
                    "state": entry.state.value,
                    "value": entry.value,
                    "text": self.cell_text(col, row),
                }
            totals = sheet.totals(col)
            columns.append({
                "id": col.value,
                "label": col.rules.label,
                "max_tries": col.rules.max_tries,
                "scratched": ctrl.policy.is_scratched(col),
                "cells": cells,
                "upper_total": totals.upper_total,
                "bonus": totals.bonus,
                "lower_total": totals.lower_total,
                "grand_total": totals.grand_total,
            })

        eligible = [
            {"column": cell.column.value, "row": cell.row.value, "value": value}
            for cell, value in ctrl.get_eligible_cells().items()
        ]

        selected = self.selected_cell
        confirm = self.confirm_zero_cell

        return {
            "player_name": self.player_name,
            "dice": dice,
            "roll_count": ctrl.roll_count,
            "max_rolls": ctrl.max_rolls_for_turn,
            "roll_label": ctrl.roll_label,
            "can_roll": ctrl.can_roll,
            "turn": ctrl.turn,
            "phase": ctrl.phase.value,
            "game_over": ctrl.game_over,
            "rows": [{"id": r.value, "label": r.label, "section": r.section.value}
                     for r in UPPER_ROWS + LOWER_ROWS],
            "columns": columns,
            "eligible": eligible,
            "grand_total": ctrl.get_grand_total(),
            "last_error": self.last_error,
            "log": self.game_log.lines(limit=20),
            "showing_help": self.showing_help,
            "selected_cell": ({"column": selected.column.value, "row": selected.row.value}
                              if selected else None),
            "confirm_zero_cell": ({"column": confirm.column.value, "row": confirm.row.value}
                                  if confirm else None),
            "dark_mode": self.dark_mode,
            "sound_enabled": self.sound.enabled,
            "juggle_time": self.juggle_time,
            "roll_speed": self.roll_speed_name,
        }
