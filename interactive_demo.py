"""
Interactive terminal editor for station layouts.
Move a cursor over the current sector and place buildings and roads with
keyboard commands. Layouts are autosaved to a directory.
"""

import logging
import sys
from pathlib import Path

import readchar
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from ascii_render import render_sector
from config_loader import load_config
from dialogs import AwaitingConfirmation, AwaitingInput
from layout_storage import FileStorage, LayoutMetadata
from snapshot import DeserializeResult
from station import PlacementMode, StationState

DEFAULT_CONFIG = Path(__file__).with_name("buildings.yaml")
DEFAULT_SAVE_DIR = Path.home() / ".station-layouts"


class InteractiveEditor:
    """Keyboard-driven editor over a StationState."""

    def __init__(self, state: StationState) -> None:
        self.state = state
        self.console = Console()
        self.cursor = (state.sectors.current_grid.height // 2, state.sectors.current_grid.width // 2)
        self.template_names = list(state.registry)
        self.template_index = -1
        self.input_buffer = ""
        self.status_message = "Ready"

    def generate_display(self) -> Panel:
        """Generate the current display with grid and status."""
        state = self.state
        row, col = self.cursor

        if state.mode == PlacementMode.PLACING:
            preview = state.preview_cells(row, col)
            preview_ok = state.can_place_selected(row, col)
        elif state.road_start is not None:
            preview = state.road_preview(row, col)
            preview_ok = state.mode == PlacementMode.ROAD_PLACING
        else:
            preview, preview_ok = [], True

        lines = render_sector(
            state.sectors.current_grid,
            state.placed_buildings,
            title=f"Sector {state.sector_number}",
            highlight_pos=self.cursor,
            preview=preview,
            preview_ok=preview_ok,
            show_inactive=state.show_inactive_indicators,
        )

        status = Text()
        status.append(Text.from_ansi("\n".join(lines)))
        status.append("\n\n")
        status.append("Mode: ", style="bold")
        status.append(f"{state.mode.value}")
        building = state.selected_building
        if building is not None:
            status.append(f"  [{building.name} {building.size_label(state.selected_rotation)}"
                          f" rot={state.selected_rotation * 90}°]")
        status.append(f"\nCursor: [{row}, {col}]  Cell: {state.cell(row, col)}\n\n")

        match state.dialogs.state:
            case AwaitingConfirmation(title=title, message=message):
                status.append(f"{title}: ", style="bold yellow")
                status.append(f"{message} (y/n)\n")
            case AwaitingInput(prompt=prompt, default=default):
                status.append(f"{prompt}: ", style="bold yellow")
                status.append(f"{self.input_buffer or default}_\n")
            case _:
                status.append("Keys:\n", style="bold cyan")
                status.append("  W/A/S/D - Move cursor     1-6 / [ ] - Switch sector\n")
                status.append("  B - Next building         R - Rotate / road mode\n")
                status.append("  X - Road delete mode      Space - Act at cursor\n")
                status.append("  Z - Delete building       C - Clear sector\n")
                status.append("  P - Save layout           O - Open saved layout\n")
                status.append("  T - Toggle indicators     Esc - Cancel\n")
                status.append("  Q - Quit\n")

        status.append("─" * 40 + "\n", style="dim")
        status.append("Status: ", style="bold")
        status.append(self.status_message)

        return Panel(status, title="Station Layout Editor", border_style="green")

    def move_cursor(self, d_row: int, d_col: int) -> None:
        grid = self.state.sectors.current_grid
        row = min(max(self.cursor[0] + d_row, 0), grid.height - 1)
        col = min(max(self.cursor[1] + d_col, 0), grid.width - 1)
        self.cursor = (row, col)

    def next_building(self) -> None:
        self.template_index = (self.template_index + 1) % len(self.template_names)
        name = self.template_names[self.template_index]
        self.state.start_placing(name)
        self.status_message = f"Selected {name}"

    def act(self) -> None:
        """Space: place the selected building or click a road endpoint."""
        state = self.state
        row, col = self.cursor
        if state.mode == PlacementMode.PLACING:
            instance = state.place_selected(row, col)
            self.status_message = (
                f"✓ Placed {instance.building.name}" if instance else "✗ Cannot place here"
            )
        elif state.mode in (PlacementMode.ROAD_PLACING, PlacementMode.ROAD_DELETING):
            had_start = state.road_start is not None
            changed = state.road_click(row, col)
            if not had_start:
                self.status_message = f"Road start at [{row}, {col}]"
            else:
                self.status_message = "✓ Road updated" if changed else "✗ Road unchanged"

    def on_saved(self, metadata: LayoutMetadata | None) -> None:
        if metadata is None:
            self.status_message = "✗ Layout could not be saved"
        else:
            self.status_message = f"✓ Saved layout '{metadata.name}'"

    def on_loaded(self, result: DeserializeResult | None) -> None:
        if result is None:
            self.status_message = "✗ No such layout"
        elif result.complete:
            self.status_message = "✓ Layout loaded"
        else:
            self.status_message = f"✓ Layout loaded, {len(result.skipped)} buildings skipped"

    def handle_dialog_key(self, key: str) -> None:
        dialogs = self.state.dialogs
        match dialogs.state:
            case AwaitingConfirmation():
                if key.lower() == "y":
                    dialogs.confirm()
                    self.status_message = "Confirmed"
                elif key.lower() == "n" or key == readchar.key.ESC:
                    dialogs.decline()
                    self.status_message = "Cancelled"
            case AwaitingInput():
                if key in (readchar.key.ENTER, "\r", "\n"):
                    dialogs.submit(self.input_buffer)
                    self.input_buffer = ""
                elif key == readchar.key.ESC:
                    dialogs.cancel()
                    self.input_buffer = ""
                    self.status_message = "Cancelled"
                elif key == readchar.key.BACKSPACE:
                    self.input_buffer = self.input_buffer[:-1]
                elif key.isprintable():
                    self.input_buffer += key

    def handle_key(self, key: str) -> bool:
        """Apply one key press. Returns False when the editor should exit."""
        state = self.state
        if state.dialogs.is_open:
            self.handle_dialog_key(key)
            return True

        lower = key.lower()
        if lower == "q":
            return False
        elif lower in "wasd" and len(lower) == 1:
            self.move_cursor(*{"w": (-1, 0), "s": (1, 0), "a": (0, -1), "d": (0, 1)}[lower])
        elif key in "123456" and len(key) == 1:
            state.switch_sector(int(key))
            self.status_message = f"Sector {state.sector_number}"
        elif key == "[":
            state.navigate("left")
        elif key == "]":
            state.navigate("right")
        elif lower == "b":
            self.next_building()
        elif lower == "r":
            if state.mode == PlacementMode.PLACING:
                state.rotate_selected()
            elif state.mode == PlacementMode.VIEW:
                state.start_road_placing()
                self.status_message = "Road mode: pick two endpoints"
        elif lower == "x":
            if state.mode == PlacementMode.VIEW:
                state.start_road_deleting()
                self.status_message = "Road delete mode: pick two endpoints"
        elif key == " ":
            self.act()
        elif lower == "z":
            removed = state.delete_building_at(*self.cursor)
            self.status_message = "✓ Building removed" if removed else "Nothing to remove"
        elif lower == "c":
            state.request_clear_current_sector()
        elif lower == "p":
            state.request_save_layout(self.on_saved)
        elif lower == "o":
            if not state.request_load_layout(self.on_loaded):
                self.status_message = "No saved layouts"
        elif lower == "t":
            state.toggle_inactive_indicators()
        elif key == readchar.key.ESC:
            state.cancel()
            self.status_message = "Cancelled"
        else:
            self.status_message = f"Unknown key: {repr(key)}"
        return True

    def run(self) -> None:
        with Live(self.generate_display(), console=self.console, refresh_per_second=4) as live:
            try:
                while True:
                    live.update(self.generate_display())
                    key = readchar.readkey()
                    if not self.handle_key(key):
                        break
                    self.state.tick()
            except KeyboardInterrupt:
                self.status_message = "Interrupted by user"
                live.update(self.generate_display())
            finally:
                if self.state.autosave is not None:
                    self.state.autosave.flush()


def main(config_path: Path, save_dir: Path) -> None:
    """Run the editor with autosave restored from `save_dir`."""
    registry = load_config(config_path)
    state = StationState(registry, storage=FileStorage(save_dir))
    state.restore_autosave()
    InteractiveEditor(state).run()


if __name__ == "__main__":
    logging.basicConfig(
        filename="station-editor.log", level=logging.INFO, format="%(levelname)s: %(name)s: %(message)s"
    )
    config = Path(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_CONFIG
    saves = Path(sys.argv[2]) if len(sys.argv) > 2 else DEFAULT_SAVE_DIR
    main(config, saves)
