"""Game log for Yambo — records every roll, save and rejection of a game.

Pure Python, no frontend dependency. The log subscribes to a
TurnController's events; rejected actions are recorded by whoever
received the failed ActionResult (see FrontendAdapter).
"""
from __future__ import annotations

from dataclasses import dataclass

from game_engine import ActionError, Column, Row
from turn_controller import ColumnScratchToggled, GameOver, RollComplete, ScoreSaved

ROLL_NAMES = ("First roll", "Second roll", "Last roll")


@dataclass
class LogEntry:
    """A single logged game event."""
    turn: int
    event_type: str                             # "roll", "combination", "save", "scratch_column", "error", "game_over"
    dice_values: tuple[int, ...] = ()
    roll_number: int = 0                        # 1-3 for rolls
    column: Column | None = None
    row: Row | None = None
    score: int | None = None
    message: str = ""


def roll_name(roll_number: int) -> str:
    if 1 <= roll_number <= len(ROLL_NAMES):
        return ROLL_NAMES[roll_number - 1]
    return f"Roll {roll_number}"


def format_entry(entry: LogEntry) -> str:
    """Render a log entry as a single line of text."""
    if entry.event_type == "roll":
        dice = " : ".join(str(v) for v in entry.dice_values)
        return f"{roll_name(entry.roll_number)} ({dice})"
    if entry.event_type == "combination":
        return f" -- {entry.message} --"
    if entry.event_type == "save":
        if entry.score == 0:
            return f"Scratched {entry.row.label} in {entry.column.rules.label}"
        return f"Saved {entry.score} to {entry.row.label} in {entry.column.rules.label}"
    if entry.event_type == "scratch_column":
        return f"Column {entry.column.rules.label} {entry.message}"
    if entry.event_type == "error":
        return f" -- {entry.message} --"
    if entry.event_type == "game_over":
        return f" -- GAME OVER ({entry.score}) --"
    return entry.message


class GameLog:
    """Accumulates LogEntry records during a game."""

    def __init__(self) -> None:
        self.entries: list[LogEntry] = []
        self._turn = 1
        self._unsubscribers = []

    def attach(self, controller) -> None:
        """Start recording a controller's events."""
        self.detach()
        self._turn = controller.turn
        self._unsubscribers = [
            controller.on(RollComplete, self._on_roll),
            controller.on(ScoreSaved, self._on_save),
            controller.on(ColumnScratchToggled, self._on_column_scratch),
            controller.on(GameOver, self._on_game_over),
        ]

    def detach(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    # ── Event handlers ────────────────────────────────────────────────────

    def _on_roll(self, event: RollComplete) -> None:
        self.log_roll(self._turn, event.roll_number, event.values)
        if event.best_combination:
            self.log_combination(self._turn, event.best_combination, event.values)

    def _on_save(self, event: ScoreSaved) -> None:
        self.log_save(event.turn, event.column, event.row, event.value)
        self._turn = event.turn + 1

    def _on_column_scratch(self, event: ColumnScratchToggled) -> None:
        self.entries.append(LogEntry(
            turn=self._turn,
            event_type="scratch_column",
            column=event.column,
            message="scratched" if event.scratched else "restored",
        ))

    def _on_game_over(self, event: GameOver) -> None:
        self.entries.append(LogEntry(
            turn=self._turn,
            event_type="game_over",
            score=event.grand_total,
        ))

    # ── Recording ─────────────────────────────────────────────────────────

    def log_roll(self, turn: int, roll_number: int, dice_values) -> None:
        """Record a dice roll."""
        self.entries.append(LogEntry(
            turn=turn,
            event_type="roll",
            dice_values=tuple(dice_values),
            roll_number=roll_number,
        ))

    def log_combination(self, turn: int, name: str, dice_values) -> None:
        """Record the best combination of a roll."""
        self.entries.append(LogEntry(
            turn=turn,
            event_type="combination",
            dice_values=tuple(dice_values),
            message=name,
        ))

    def log_save(self, turn: int, column: Column, row: Row, score: int) -> None:
        """Record a saved (or scratched, when score is 0) cell."""
        self.entries.append(LogEntry(
            turn=turn,
            event_type="save",
            column=column,
            row=row,
            score=score,
        ))

    def log_error(self, error: ActionError) -> None:
        """Record a rejected action."""
        self.entries.append(LogEntry(
            turn=self._turn,
            event_type="error",
            message=error.value,
        ))

    # ── Queries ───────────────────────────────────────────────────────────

    def get_turn_entries(self, turn: int) -> list[LogEntry]:
        """Return all entries for a specific turn."""
        return [e for e in self.entries if e.turn == turn]

    def get_save_entries(self) -> list[LogEntry]:
        """Return only save entries."""
        return [e for e in self.entries if e.event_type == "save"]

    def lines(self, limit: int | None = None) -> list[str]:
        """Formatted entries, oldest first, optionally only the last limit."""
        if limit is None:
            entries = self.entries
        else:
            entries = self.entries[-limit:] if limit > 0 else []
        return [format_entry(e) for e in entries]

    def clear(self) -> None:
        """Remove all entries."""
        self.entries = []
        self._turn = 1
