import unittest
from unittest.mock import patch

try:
    from PySide6.QtGui import QCloseEvent
    from PySide6.QtTest import QSignalSpy
    from PySide6.QtWidgets import QApplication

    import jump61_gui as gui_mod
    from jump61_ai import SearchResult
    from jump61_board import BLUE, RED, Board, ConstantBoard, Square

    HAS_QT = True
except Exception:
    HAS_QT = False


if HAS_QT:
    class _DummyWorker:
        def __init__(self) -> None:
            self.search_calls = []

        def search(self, *args) -> None:
            self.search_calls.append(args)


    def _fake_setup_search(window: "gui_mod.Jump61Window") -> None:
        window.search_worker = _DummyWorker()
        window.search_requested.connect(window.search_worker.search)


@unittest.skipUnless(HAS_QT, "PySide6 is required for GUI integration tests")
class TestGUIIntegration(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.app = QApplication.instance() or QApplication([])

    def setUp(self) -> None:
        self.delay_patch = patch.object(gui_mod, "SEARCH_DELAY_MS", 1)
        self.setup_patch = patch.object(gui_mod.Jump61Window, "_setup_search", _fake_setup_search)
        self.delay_patch.start()
        self.setup_patch.start()
        self.window = gui_mod.Jump61Window()
        self.window.blue_combo.setCurrentText(gui_mod.CONTROLLER_HUMAN)

    def tearDown(self) -> None:
        if self.window is not None:
            self.window.close()
            self.app.processEvents()
        self.setup_patch.stop()
        self.delay_patch.stop()

    def test_renders_through_readonly_view(self) -> None:
        self.assertIsInstance(self.window.view, ConstantBoard)
        self.assertEqual(len(self.window.square_buttons), gui_mod.DEFAULT_SIZE ** 2)
        self.assertIn("Red to move", self.window.status_label.text())

    def test_click_adds_spot_and_repaints(self) -> None:
        button = self.window.square_buttons[0]
        self.window.handle_square_click(button)
        self.assertEqual(self.window.board.get(0), Square(RED, 1))
        self.assertEqual(button.text(), "1")
        self.assertEqual(button.property("side"), RED)
        self.assertIn("Blue to move", self.window.status_label.text())

    def test_click_on_opponent_square_is_refused(self) -> None:
        self.window.handle_square_click(self.window.square_buttons[0])
        self.window.handle_square_click(self.window.square_buttons[0])
        self.assertEqual(self.window.board.num_moves(), 1)
        self.assertIn("belongs to your opponent", self.window.status_label.text())

    def test_ai_turn_requests_search_on_a_copy(self) -> None:
        self.window.blue_combo.setCurrentText(gui_mod.CONTROLLER_AI)
        spy = QSignalSpy(self.window.search_requested)
        self.window.handle_square_click(self.window.square_buttons[0])

        self.assertTrue(spy.wait(1000))
        request_id, board, side, depth = spy.at(0)
        self.assertEqual(request_id, self.window.search_request_id)
        self.assertEqual(side, BLUE)
        self.assertEqual(depth, self.window.depth_spin.value())
        self.assertIsInstance(board, Board)
        self.assertIsNot(board, self.window.board)
        self.assertTrue(self.window.searching)

    def test_search_result_plays_move(self) -> None:
        self.window.blue_combo.setCurrentText(gui_mod.CONTROLLER_AI)
        self.window.handle_square_click(self.window.square_buttons[0])
        result = SearchResult(best_move=5, score=0, depth=4, nodes=10, cutoffs=1, elapsed_ms=1)
        self.window.on_search_result(self.window.search_request_id, result)
        self.assertEqual(self.window.board.get(5), Square(BLUE, 1))
        self.assertFalse(self.window.searching)

    def test_stale_search_result_is_ignored(self) -> None:
        self.window.blue_combo.setCurrentText(gui_mod.CONTROLLER_AI)
        self.window.handle_square_click(self.window.square_buttons[0])
        stale_id = self.window.search_request_id
        self.window.undo_move()
        result = SearchResult(best_move=5, score=0, depth=4, nodes=10, cutoffs=1, elapsed_ms=1)
        self.window.on_search_result(stale_id, result)
        self.assertEqual(self.window.board.num_moves(), 0)
        self.assertEqual(self.window.board.get(5), Square("NEUTRAL", 0))

    def test_failed_search_releases_the_board(self) -> None:
        self.window.blue_combo.setCurrentText(gui_mod.CONTROLLER_AI)
        self.window.handle_square_click(self.window.square_buttons[0])
        self.assertTrue(self.window.searching)
        self.window.on_search_failed(self.window.search_request_id, "RuntimeError: boom")
        self.assertFalse(self.window.searching)
        self.assertIn("RuntimeError: boom", self.window.status_label.text())

        self.window.blue_combo.setCurrentText(gui_mod.CONTROLLER_HUMAN)
        self.window.handle_square_click(self.window.square_buttons[5])
        self.assertEqual(self.window.board.get(5), Square(BLUE, 1))

    def test_new_game_resizes_board(self) -> None:
        self.window.handle_square_click(self.window.square_buttons[0])
        self.window.size_spin.setValue(3)
        self.window.classic_check.setChecked(True)
        self.window.reset_game()
        self.assertEqual(self.window.board.size(), 3)
        self.assertEqual(len(self.window.square_buttons), 9)
        self.assertEqual(self.window.board.num_moves(), 0)
        self.assertEqual(self.window.square_buttons[4].text(), "1")

    def test_close_event_closes_telemetry(self) -> None:
        closed = []

        class _Sink:
            def emit(self, envelope) -> None:
                return

            def close(self) -> None:
                closed.append(True)

        self.window.telemetry_sink = _Sink()
        self.window.closeEvent(QCloseEvent())
        self.assertTrue(self.window.closing)
        self.assertEqual(closed, [True])
        self.window = None


class TestSearchWorker(unittest.TestCase):
    @unittest.skipUnless(HAS_QT, "PySide6 is required for GUI integration tests")
    def test_worker_reports_result(self) -> None:
        worker = gui_mod.SearchWorker()
        results = []
        worker.result_ready.connect(lambda request_id, result: results.append((request_id, result)))
        worker.search(7, Board(2), RED, 1)
        self.assertEqual(len(results), 1)
        self.assertEqual(results[0][0], 7)
        self.assertEqual(results[0][1].best_move, 0)

    @unittest.skipUnless(HAS_QT, "PySide6 is required for GUI integration tests")
    def test_worker_reports_unexpected_errors(self) -> None:
        worker = gui_mod.SearchWorker()
        results = []
        failures = []
        worker.result_ready.connect(lambda request_id, result: results.append(request_id))
        worker.search_failed.connect(lambda request_id, text: failures.append((request_id, text)))
        with (
            patch.object(gui_mod, "search", side_effect=RuntimeError("boom")),
            patch.object(gui_mod.logger, "exception"),
        ):
            worker.search(3, Board(2), RED, 1)
        self.assertEqual(results, [])
        self.assertEqual(failures, [(3, "RuntimeError: boom")])


if __name__ == "__main__":
    unittest.main()
