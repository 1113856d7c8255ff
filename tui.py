#!/usr/bin/env python3
"""
Yambo TUI — Terminal-based frontend using Textual.

Keyboard-driven interface with ASCII dice, the five-column score sheet,
the game log, and help / zero-confirmation overlays.
"""
import argparse
import random

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Center, Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Footer, Header, Static

from game_engine import LOWER_ROWS, UPPER_ROWS, CellState, DieState
from turn_controller import TurnController
from frontend_adapter import (
    COLUMN_ORDER, COLUMN_TOOLTIPS, ROW_TOOLTIPS, FrontendAdapter, NullSound,
)


JUGGLE_TICK_MS = 50


# ── Box-art die faces ─────────────────────────────────────────────────────────

PIPS = {
    1: ("       ", "   ●   ", "       "),
    2: (" ●     ", "       ", "     ● "),
    3: (" ●     ", "   ●   ", "     ● "),
    4: (" ●   ● ", "       ", " ●   ● "),
    5: (" ●   ● ", "   ●   ", " ●   ● "),
    6: (" ●   ● ", " ●   ● ", " ●   ● "),
}


def die_lines(value, held):
    """Five lines of box art for one die; held dice get a double border."""
    if held:
        top, bottom, side = "╔═══════╗", "╚═══════╝", "║"
    else:
        top, bottom, side = "┌───────┐", "└───────┘", "│"
    return [top] + [f"{side}{line}{side}" for line in PIPS[value]] + [bottom]


def render_dice_box(dice):
    """Render 5 dice as box art, side by side, with key labels below."""
    columns = [die_lines(die.value, die.held) for die in dice]
    lines = ["  ".join(parts) for parts in zip(*columns)]
    labels = []
    for i, die in enumerate(dice):
        labels.append(f"  [{i + 1}]{' HELD' if die.held else ''}".ljust(11))
    lines.append("".join(labels))
    return "\n".join(lines)


# ── Widgets ──────────────────────────────────────────────────────────────────

class DiceDisplay(Static):
    """Renders the 5 dice using box art."""

    def render(self):
        dice = self.app.controller.dice.dice
        faces = self.app.juggle_faces
        if faces is not None:
            dice = [DieState(value, die.held) for value, die in zip(faces, dice)]
        return render_dice_box(dice)


class StatusDisplay(Static):
    """Shows roll status, last error and game over."""

    def render(self):
        app = self.app
        ctrl = app.controller
        lines = [f"[bold]{app.adapter.player_name}[/bold]  Turn {ctrl.turn}"]

        if ctrl.game_over:
            lines.append(f"[bold]GAME OVER! Total: {ctrl.get_grand_total()}[/bold]")
        elif ctrl.roll_count == 0:
            lines.append("[bold]Roll the dice![/bold]")
        else:
            lines.append(f"Rolls left: {ctrl.rolls_left}")

        lines.append(f"[dim]Roll speed: {app.adapter.roll_speed_name}[/dim]")

        if app.adapter.last_error:
            lines.append(f"[red]{app.adapter.last_error}[/red]")
        return "\n".join(lines)


class SheetDisplay(Static):
    """Renders the score sheet as a text table."""

    def render(self):
        app = self.app
        ctrl = app.controller
        adapter = app.adapter
        selected = adapter.selected_cell

        header = f"{'':<12}" + "".join(
            f"[strike]{col.rules.label:^6}[/strike]" if ctrl.policy.is_scratched(col)
            else f"{col.rules.label:^6}"
            for col in COLUMN_ORDER
        )
        lines = [f"[bold]{header}[/bold]"]

        for row in UPPER_ROWS:
            lines.append(self._format_row(row, ctrl, adapter, selected))
        lines.append(self._totals_row("Upper", lambda t: t.upper_total, ctrl))
        lines.append(self._totals_row("Bonus", lambda t: t.bonus, ctrl))
        lines.append("─" * 42)
        for row in LOWER_ROWS:
            lines.append(self._format_row(row, ctrl, adapter, selected))
        lines.append(self._totals_row("Lower", lambda t: t.lower_total, ctrl))
        lines.append(f"[bold]{self._totals_row('TOTAL', lambda t: t.grand_total, ctrl)}[/bold]")
        lines.append(f"[bold]  GRAND TOTAL: {ctrl.get_grand_total()}[/bold]")

        if selected is not None:
            lines.append(f"\n[dim]{COLUMN_TOOLTIPS[selected.column]} — "
                         f"{ROW_TOOLTIPS[selected.row]}[/dim]")
        return "\n".join(lines)

    @staticmethod
    def _format_row(row, ctrl, adapter, selected):
        parts = [f"{row.label:<12}"]
        for col in COLUMN_ORDER:
            entry = ctrl.sheet.entry(col, row)
            text = f"{adapter.cell_text(col, row):^6}"
            if selected is not None and selected.column == col and selected.row == row:
                parts.append(f"[reverse]{text}[/reverse]")
            elif entry.state == CellState.AVAILABLE:
                parts.append(f"[green]{text if text.strip() else '  ·   '}[/green]")
            elif entry.state == CellState.SCRATCHED:
                parts.append(f"[dim]{text}[/dim]")
            else:
                parts.append(text)
        return "".join(parts)

    @staticmethod
    def _totals_row(label, pick, ctrl):
        values = "".join(f"{pick(ctrl.get_totals(col)) or '':^6}" for col in COLUMN_ORDER)
        return f"{label:<12}{values}"


class LogDisplay(Static):
    """Last lines of the game log."""

    def render(self):
        lines = self.app.adapter.game_log.lines(limit=12)
        return "[bold]Game Log[/bold]\n" + ("\n".join(lines) if lines else "[dim]No rolls yet[/dim]")


# ── Modal Screens ────────────────────────────────────────────────────────────

class HelpScreen(ModalScreen):
    """Help overlay showing key bindings."""

    BINDINGS = [
        Binding("escape", "dismiss", "Close"),
        Binding("question_mark", "dismiss", "Close"),
        Binding("f1", "dismiss", "Close"),
    ]

    def compose(self) -> ComposeResult:
        controls = [
            ("Space", "Roll dice"),
            ("1-5", "Toggle die hold"),
            ("Shift+1-5", "Toggle hold on all dice with that face"),
            ("Tab / ↓", "Next available cell"),
            ("Shift+Tab / ↑", "Previous available cell"),
            ("Enter", "Save selected cell"),
            ("F2-F6", "Scratch / restore column"),
            ("D", "Dark mode"),
            ("S", "Sound"),
            ("R", "Roll speed"),
            ("N", "New game"),
            ("Esc", "Close overlay / Quit"),
            ("? / F1", "This help screen"),
        ]
        text = "[bold]CONTROLS[/bold]\n\n"
        for key, desc in controls:
            text += f"  {key:<20} {desc}\n"
        text += "\n[dim]Press Esc or ? to close[/dim]"
        yield Center(Static(text, id="help-panel"))


class ConfirmZeroScreen(ModalScreen[bool]):
    """Confirm scratching a cell by saving 0."""

    BINDINGS = [
        Binding("y", "confirm", "Yes"),
        Binding("enter", "confirm", "Yes"),
        Binding("n", "cancel", "No"),
        Binding("escape", "cancel", "No"),
    ]

    def __init__(self, cell_name: str):
        super().__init__()
        self.cell_name = cell_name

    def compose(self) -> ComposeResult:
        text = f"[bold]Scratch {self.cell_name}?[/bold]\n\n"
        text += "Y / Enter to confirm,  N / Esc to cancel"
        yield Center(Static(text, id="confirm-panel"))

    def action_confirm(self):
        self.dismiss(True)

    def action_cancel(self):
        self.dismiss(False)


# ── Main App ─────────────────────────────────────────────────────────────────

SHIFTED_DIGITS = ["exclamation_mark", "at", "number_sign", "dollar_sign", "percent_sign"]


class YamboApp(App):
    """Yambo terminal UI application."""

    CSS = """
    Screen {
        layout: vertical;
    }
    #game-area {
        layout: horizontal;
        height: 1fr;
    }
    #dice-panel {
        width: 60;
        padding: 1 2;
    }
    #sheet-panel {
        width: 1fr;
        padding: 1 2;
    }
    #status-display, #log-display {
        height: auto;
        margin-top: 1;
    }
    #roll-btn {
        margin-top: 1;
        width: 20;
    }
    #help-panel, #confirm-panel {
        padding: 2 4;
        border: thick $accent;
        background: $surface;
        width: 70;
        height: auto;
        max-height: 80vh;
    }
    """

    BINDINGS = [
        Binding("space", "roll", "Roll", show=True),
        Binding("1", "hold(0)", "Hold 1"),
        Binding("2", "hold(1)", "Hold 2"),
        Binding("3", "hold(2)", "Hold 3"),
        Binding("4", "hold(3)", "Hold 4"),
        Binding("5", "hold(4)", "Hold 5"),
        *[Binding(key, f"hold_same({i})", f"Hold all like {i + 1}")
          for i, key in enumerate(SHIFTED_DIGITS)],
        Binding("tab", "next_cell", "Next cell", show=True),
        Binding("shift+tab", "prev_cell", "Prev cell"),
        Binding("down", "next_cell", "Next"),
        Binding("up", "prev_cell", "Prev"),
        Binding("enter", "save", "Save", show=True),
        *[Binding(f"f{i + 2}", f"scratch_column({i})", f"Scratch {col.rules.label}")
          for i, col in enumerate(COLUMN_ORDER)],
        Binding("question_mark", "help", "Help"),
        Binding("f1", "help", "Help"),
        Binding("d", "dark", "Dark mode"),
        Binding("s", "sound", "Sound"),
        Binding("r", "roll_speed", "Roll speed"),
        Binding("n", "new_game", "New game"),
        Binding("escape", "quit", "Quit"),
    ]

    def __init__(self, controller=None, seed=None):
        super().__init__()
        self.controller = controller if controller is not None else TurnController(seed=seed)
        self.adapter = FrontendAdapter(self.controller, sound=NullSound())

        # Faces shown while the dice juggle, None when settled
        self.juggle_faces = None
        self._juggle_ticks = 0
        self._juggle_timer = None
        self._juggle_rng = random.Random()

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="game-area"):
            with Vertical(id="dice-panel"):
                yield DiceDisplay(id="dice-display")
                yield Button("Roll Dice", id="roll-btn", variant="primary")
                yield StatusDisplay(id="status-display")
                yield LogDisplay(id="log-display")
            with Vertical(id="sheet-panel"):
                yield SheetDisplay(id="sheet-display")
        yield Footer()

    def on_mount(self):
        self.title = "Yambo"
        self.adapter.load_settings()
        self._apply_theme()
        self._refresh_display()

    def _refresh_display(self):
        """Refresh all display widgets."""
        for widget_id, widget_type in (("#dice-display", DiceDisplay),
                                       ("#status-display", StatusDisplay),
                                       ("#sheet-display", SheetDisplay),
                                       ("#log-display", LogDisplay)):
            self.query_one(widget_id, widget_type).refresh()
        button = self.query_one("#roll-btn", Button)
        button.label = self.controller.roll_label
        button.disabled = not self.controller.can_roll

    # ── Actions ──────────────────────────────────────────────────────────

    def action_roll(self):
        if self.controller.game_over or self._juggle_timer is not None:
            return
        if self.adapter.do_roll():
            self._start_juggle()
        self._refresh_display()

    def _start_juggle(self):
        """Show random faces on the rolled dice for juggle_time ms."""
        self._juggle_ticks = max(1, self.adapter.juggle_time // JUGGLE_TICK_MS)
        self._shuffle_faces()
        self._juggle_timer = self.set_interval(JUGGLE_TICK_MS / 1000, self._juggle_tick)

    def _shuffle_faces(self):
        self.juggle_faces = [die.value if die.held else self._juggle_rng.randint(1, 6)
                             for die in self.controller.dice.dice]

    def _juggle_tick(self):
        self._juggle_ticks -= 1
        if self._juggle_ticks > 0:
            self._shuffle_faces()
        else:
            self._juggle_timer.stop()
            self._juggle_timer = None
            self.juggle_faces = None
        self.query_one("#dice-display", DiceDisplay).refresh()

    @on(Button.Pressed, "#roll-btn")
    def on_roll_button(self):
        self.action_roll()

    def action_hold(self, index: int):
        self.adapter.do_hold(index)
        self._refresh_display()

    def action_hold_same(self, index: int):
        self.adapter.do_hold(index, match_value=True)
        self._refresh_display()

    def action_next_cell(self):
        self.adapter.navigate_cell(+1)
        self._refresh_display()

    def action_prev_cell(self):
        self.adapter.navigate_cell(-1)
        self._refresh_display()

    def action_save(self):
        adapter = self.adapter
        if adapter.selected_cell is None:
            return
        adapter.save_selected()
        if adapter.confirm_zero_cell is not None:
            cell = adapter.confirm_zero_cell
            name = f"{cell.row.label} in {cell.column.rules.label}"
            self.push_screen(ConfirmZeroScreen(name), self._on_confirm_zero)
        self._refresh_display()

    def _on_confirm_zero(self, confirmed: bool):
        if confirmed:
            self.adapter.confirm_zero_yes()
        else:
            self.adapter.confirm_zero_no()
        self._refresh_display()

    def action_scratch_column(self, index: int):
        self.adapter.do_scratch_column(COLUMN_ORDER[index])
        self._refresh_display()

    def action_help(self):
        self.push_screen(HelpScreen())

    def action_dark(self):
        self.adapter.toggle_dark_mode()
        self._apply_theme()

    def _apply_theme(self):
        self.theme = "textual-dark" if self.adapter.dark_mode else "textual-light"

    def action_sound(self):
        self.adapter.toggle_sound()

    def action_roll_speed(self):
        self.adapter.cycle_roll_speed()
        self._refresh_display()

    def action_new_game(self):
        self.adapter.do_reset()
        self._refresh_display()


def parse_args(argv=None):
    """Parse TUI command-line arguments."""
    parser = argparse.ArgumentParser(description="Yambo (terminal)")
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible dice")
    return parser.parse_args(argv)


def main(argv=None):
    """Entry point for the TUI."""
    args = parse_args(argv)
    app = YamboApp(seed=args.seed)
    app.run()


if __name__ == "__main__":
    main()
