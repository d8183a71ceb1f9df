"""PySide6 window for playing Jump61 against the automated player."""

from __future__ import annotations

import logging
import os
import sys
from typing import List, Optional

from PySide6.QtCore import QObject, QThread, QTimer, Qt, Signal, Slot
from PySide6.QtGui import QCloseEvent, QFont
from PySide6.QtWidgets import (
    QApplication,
    QCheckBox,
    QComboBox,
    QFrame,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QPushButton,
    QSpinBox,
    QVBoxLayout,
    QWidget,
)

from jump61_ai import DEFAULT_DEPTH, SearchResult, search
from jump61_board import BLUE, NEUTRAL, RED, Board, ConstantBoard, Square
from jump61_telemetry import TelemetrySink, ThreadedTCPSink, parse_host_port

logger = logging.getLogger(__name__)

DEFAULT_SIZE = 6
MAX_SIZE = 10
MAX_DEPTH = 6
SEARCH_DELAY_MS = 150
SEARCH_CLOSE_TIMEOUT_MS = 3_000
CONTROLLER_HUMAN = "Human"
CONTROLLER_AI = "AI"
SIDE_COLORS = {
    NEUTRAL: "#efe6d4",
    RED: "#d9534f",
    BLUE: "#3f7fbf",
}


class SearchWorker(QObject):
    """Runs searches on its own thread; each request brings a private board copy."""

    result_ready = Signal(int, object)
    search_failed = Signal(int, str)

    def __init__(self, telemetry_sink: Optional[TelemetrySink] = None) -> None:
        super().__init__()
        self._telemetry_sink = telemetry_sink

    @Slot(int, object, str, int)
    def search(self, request_id: int, board: object, side: str, depth: int) -> None:
        if not isinstance(board, Board):
            self.search_failed.emit(request_id, "Invalid search board payload")
            return
        try:
            result = search(board, side, depth=depth, telemetry_sink=self._telemetry_sink)
        except Exception as exc:
            logger.exception("search request %d failed", request_id)
            self.search_failed.emit(request_id, f"{type(exc).__name__}: {exc}")
            return
        self.result_ready.emit(request_id, result)


class SquareButton(QPushButton):
    def __init__(self, index: int, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.index = index
        self.setCursor(Qt.PointingHandCursor)
        self.setMinimumSize(52, 52)
        self.setProperty("side", NEUTRAL)

    def set_square(self, sq: Square) -> None:
        self.setText(str(sq.spots) if sq.spots > 0 else "")
        if self.property("side") == sq.side:
            return
        self.setProperty("side", sq.side)
        self.style().unpolish(self)
        self.style().polish(self)


class Jump61Window(QMainWindow):
    search_requested = Signal(int, object, str, int)

    def __init__(self, telemetry_sink: Optional[TelemetrySink] = None) -> None:
        super().__init__()
        self.setWindowTitle("Jump61")
        self.setMinimumSize(760, 560)

        self.telemetry_sink = telemetry_sink
        self.board = Board(DEFAULT_SIZE)
        self.view: ConstantBoard = self.board.readonly_board()
        self.square_buttons: List[SquareButton] = []
        self.search_request_id = 0
        self.searching = False
        self.closing = False
        self.last_move_desc = "-"
        self.error_text: Optional[str] = None

        self._build_ui()
        self._setup_search()
        self._apply_style()
        self.board.set_notifier(self.on_board_changed)
        self.reset_game()

    def _build_ui(self) -> None:
        root = QWidget(self)
        self.setCentralWidget(root)
        main_layout = QHBoxLayout(root)
        main_layout.setContentsMargins(18, 18, 18, 18)
        main_layout.setSpacing(16)

        self.grid_frame = QFrame()
        self.grid_frame.setObjectName("Grid")
        self.grid_layout = QGridLayout(self.grid_frame)
        self.grid_layout.setContentsMargins(12, 12, 12, 12)
        self.grid_layout.setSpacing(6)
        main_layout.addWidget(self.grid_frame, 1)

        side_widget = QFrame()
        side_widget.setObjectName("SidePanel")
        side_panel = QVBoxLayout(side_widget)
        side_panel.setContentsMargins(12, 12, 12, 12)
        side_panel.setSpacing(10)

        size_label = QLabel("Board size")
        size_label.setObjectName("SideHeader")
        side_panel.addWidget(size_label)
        self.size_spin = QSpinBox()
        self.size_spin.setRange(1, MAX_SIZE)
        self.size_spin.setValue(DEFAULT_SIZE)
        side_panel.addWidget(self.size_spin)

        self.classic_check = QCheckBox("Classic opening (one spot per square)")
        side_panel.addWidget(self.classic_check)

        players_label = QLabel("Players")
        players_label.setObjectName("SideHeader")
        side_panel.addWidget(players_label)
        self.red_combo = QComboBox()
        self.red_combo.addItems([CONTROLLER_HUMAN, CONTROLLER_AI])
        self.blue_combo = QComboBox()
        self.blue_combo.addItems([CONTROLLER_HUMAN, CONTROLLER_AI])
        self.blue_combo.setCurrentText(CONTROLLER_AI)
        side_panel.addWidget(QLabel("Red"))
        side_panel.addWidget(self.red_combo)
        side_panel.addWidget(QLabel("Blue"))
        side_panel.addWidget(self.blue_combo)
        self.red_combo.currentTextChanged.connect(lambda _text: self.schedule_ai_if_needed())
        self.blue_combo.currentTextChanged.connect(lambda _text: self.schedule_ai_if_needed())

        depth_label = QLabel("Search depth")
        depth_label.setObjectName("SideHeader")
        side_panel.addWidget(depth_label)
        self.depth_spin = QSpinBox()
        self.depth_spin.setRange(1, MAX_DEPTH)
        self.depth_spin.setValue(DEFAULT_DEPTH)
        side_panel.addWidget(self.depth_spin)

        self.new_button = QPushButton("New Game")
        self.new_button.clicked.connect(self.reset_game)
        side_panel.addWidget(self.new_button)

        self.undo_button = QPushButton("Undo")
        self.undo_button.clicked.connect(self.undo_move)
        side_panel.addWidget(self.undo_button)

        side_panel.addStretch(1)
        self.status_label = QLabel()
        self.status_label.setObjectName("Status")
        self.status_label.setWordWrap(True)
        side_panel.addWidget(self.status_label)
        self.last_move_label = QLabel()
        self.last_move_label.setObjectName("LastMove")
        side_panel.addWidget(self.last_move_label)

        main_layout.addWidget(side_widget)
        self._rebuild_grid(self.board.size())

    def _rebuild_grid(self, size: int) -> None:
        for button in self.square_buttons:
            self.grid_layout.removeWidget(button)
            button.deleteLater()
        self.square_buttons = []
        for n in range(size * size):
            button = SquareButton(n)
            button.clicked.connect(lambda _, b=button: self.handle_square_click(b))
            self.grid_layout.addWidget(button, n // size, n % size)
            self.square_buttons.append(button)

    def _setup_search(self) -> None:
        self.search_thread = QThread(self)
        self.search_worker = SearchWorker(self.telemetry_sink)
        self.search_worker.moveToThread(self.search_thread)
        self.search_requested.connect(self.search_worker.search)
        self.search_worker.result_ready.connect(self.on_search_result)
        self.search_worker.search_failed.connect(self.on_search_failed)
        self.search_thread.start()

    def _apply_style(self) -> None:
        app = QApplication.instance()
        if app is not None:
            app.setStyle("Fusion")
            app.setFont(QFont("Avenir", 11))

        self.setStyleSheet(
            f"""
            QMainWindow {{ background: #2b3a4a; }}
            QLabel {{ color: #f4efe6; }}
            QLabel#SideHeader {{ font-weight: 600; margin-top: 6px; }}
            QLabel#Status {{ font-size: 13px; font-weight: 600; }}
            QLabel#LastMove {{ color: #d8ccb9; font-size: 10px; }}
            QFrame#Grid, QFrame#SidePanel {{
                background: rgba(10, 18, 26, 0.35);
                border: 1px solid rgba(255, 255, 255, 0.08);
                border-radius: 12px;
            }}
            QPushButton {{
                background: #f2e0c2;
                border: 2px solid #b08a5a;
                border-radius: 8px;
                padding: 6px 10px;
                font-weight: 600;
            }}
            SquareButton {{ font-size: 18px; color: #1d1d1d; }}
            SquareButton[side="{NEUTRAL}"] {{ background: {SIDE_COLORS[NEUTRAL]}; }}
            SquareButton[side="{RED}"] {{ background: {SIDE_COLORS[RED]}; color: #fff7f0; }}
            SquareButton[side="{BLUE}"] {{ background: {SIDE_COLORS[BLUE]}; color: #f0f7ff; }}
            """
        )

    def _is_ai(self, side: str) -> bool:
        combo = self.red_combo if side == RED else self.blue_combo
        return combo.currentText() == CONTROLLER_AI

    def _invalidate_search(self) -> None:
        self.search_request_id += 1
        self.searching = False

    def reset_game(self) -> None:
        self._invalidate_search()
        size = self.size_spin.value()
        if len(self.square_buttons) != size * size:
            self._rebuild_grid(size)
        self.last_move_desc = "-"
        self.error_text = None
        self.board.clear(size, spots=1 if self.classic_check.isChecked() else 0)
        self.schedule_ai_if_needed()

    def undo_move(self) -> None:
        if self.board.num_moves() == 0:
            return
        self._invalidate_search()
        self.board.undo()
        while self.board.num_moves() > 0 and self._is_ai(self.board.whose_move()):
            self.board.undo()
        self.last_move_desc = "undo"
        self.schedule_ai_if_needed()

    def handle_square_click(self, button: SquareButton) -> None:
        if self.searching or self.board.get_winner() is not None:
            return
        side = self.board.whose_move()
        if self._is_ai(side):
            return
        if not self.board.is_legal(side, button.index):
            self.error_text = "That square belongs to your opponent."
            self.update_status()
            return
        self.play_move(side, button.index)

    def play_move(self, side: str, n: int) -> None:
        self.error_text = None
        self.board.add_spot(side, n)
        self.last_move_desc = f"{side.capitalize()} {self.board.move_string(n)}"
        logger.info("%s plays %s", side, self.board.move_string(n))
        self.schedule_ai_if_needed()

    def schedule_ai_if_needed(self) -> None:
        if self.closing or self.board.get_winner() is not None:
            self.update_status()
            return
        side = self.board.whose_move()
        if not self._is_ai(side) or self.searching:
            self.update_status()
            return
        self.searching = True
        request_id = self.search_request_id
        self.update_status()
        QTimer.singleShot(SEARCH_DELAY_MS, lambda rid=request_id: self._start_search(rid))

    def _start_search(self, request_id: int) -> None:
        if self.closing or not self.searching or request_id != self.search_request_id:
            return
        side = self.board.whose_move()
        self.search_requested.emit(request_id, Board.from_board(self.board), side, self.depth_spin.value())

    @Slot(int, object)
    def on_search_result(self, request_id: int, result: object) -> None:
        if self.closing or request_id != self.search_request_id:
            return
        if not isinstance(result, SearchResult):
            return
        self.searching = False
        side = self.board.whose_move()
        if result.best_move is None or not self.board.is_legal(side, result.best_move):
            self.update_status()
            return
        self.play_move(side, result.best_move)

    @Slot(int, str)
    def on_search_failed(self, request_id: int, error_text: str) -> None:
        if self.closing or request_id != self.search_request_id:
            return
        self.searching = False
        self.error_text = error_text
        self.update_status()

    def on_board_changed(self, _board: Board) -> None:
        self.refresh_board()

    def refresh_board(self) -> None:
        size = self.view.size()
        if len(self.square_buttons) != size * size:
            self._rebuild_grid(size)
        for button in self.square_buttons:
            button.set_square(self.view.get(button.index))
        self.update_status()

    def update_status(self) -> None:
        winner = self.view.get_winner()
        if winner is not None:
            text = f"{winner.capitalize()} wins after {self.view.num_moves()} moves."
        elif self.searching:
            text = f"{self.view.whose_move().capitalize()} (AI) is thinking..."
        else:
            text = f"{self.view.whose_move().capitalize()} to move."
        if self.error_text:
            text = f"{text}\n{self.error_text}"
        self.status_label.setText(text)
        self.last_move_label.setText(f"Last move: {self.last_move_desc}")
        self.undo_button.setEnabled(self.view.num_moves() > 0)

    def closeEvent(self, event: QCloseEvent) -> None:
        self.closing = True
        self._invalidate_search()
        thread = getattr(self, "search_thread", None)
        if thread is not None:
            thread.quit()
            if not thread.wait(SEARCH_CLOSE_TIMEOUT_MS):
                logger.warning("search thread did not stop within %d ms", SEARCH_CLOSE_TIMEOUT_MS)
        if self.telemetry_sink is not None:
            self.telemetry_sink.close()
        super().closeEvent(event)


def main() -> int:
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    sink: Optional[ThreadedTCPSink] = None
    endpoint_raw = os.environ.get("JUMP61_TELEMETRY", "").strip()
    endpoint = parse_host_port(endpoint_raw) if endpoint_raw else None
    if endpoint is not None:
        sink = ThreadedTCPSink(endpoint[0], endpoint[1])
    app = QApplication(sys.argv)
    window = Jump61Window(telemetry_sink=sink)
    window.show()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
