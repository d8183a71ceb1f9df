import random
import unittest

import jump61_ai as ai_mod
from jump61_ai import AIPlayer, board_key, find_move, search, static_eval
from jump61_board import BLUE, NEUTRAL, RED, Board


def make_board(size, cells):
    board = Board(size)
    for n, (side, spots) in cells.items():
        board.set(board.row(n), board.col(n), spots, side)
    return Board.from_board(board)


def random_position(size, plies, seed):
    rng = random.Random(seed)
    board = Board(size)
    for _ in range(plies):
        if board.get_winner() is not None:
            break
        side = board.whose_move()
        moves = [n for n in range(size * size) if board.is_legal(side, n)]
        board.add_spot(side, rng.choice(moves))
    return Board.from_board(board)


class TestStaticEval(unittest.TestCase):
    def test_counts_squares(self):
        board = make_board(2, {0: (RED, 1), 1: (BLUE, 1), 2: (BLUE, 2)})
        self.assertEqual(static_eval(board), -1)
        self.assertEqual(static_eval(Board(3)), 0)

    def test_won_positions(self):
        red = make_board(2, {n: (RED, 1) for n in range(4)})
        blue = make_board(1, {0: (BLUE, 1)})
        self.assertEqual(static_eval(red), ai_mod.WIN_VALUE)
        self.assertEqual(static_eval(blue), -ai_mod.WIN_VALUE)
        self.assertEqual(static_eval(red, winning_value=50), 50)

    def test_board_key(self):
        board = make_board(2, {0: (RED, 2), 3: (BLUE, 1)})
        self.assertEqual(board_key(board), "2|R2,N0,N0,B1")


class TestSearch(unittest.TestCase):
    def test_finds_immediate_win(self):
        board = make_board(2, {0: (RED, 2), 1: (RED, 2)})
        self.assertEqual(board.whose_move(), RED)
        result = search(board, RED, depth=1)
        self.assertEqual(result.best_move, 0)
        self.assertEqual(result.score, ai_mod.WIN_VALUE)

    def test_first_best_square_wins_ties(self):
        result = search(Board(2), RED, depth=1)
        self.assertEqual(result.best_move, 0)
        self.assertEqual(result.score, 1)

    def test_search_leaves_board_untouched(self):
        board = Board(3)
        board.add_spot(BLUE, 4)
        before = board.squares()
        search(board, RED, depth=3)
        self.assertEqual(board.squares(), before)
        self.assertEqual(board.num_moves(), 1)

    def test_search_accepts_readonly_view(self):
        board = Board(2)
        result = search(board.readonly_board(), RED, depth=2)
        self.assertIsNotNone(result.best_move)

    def test_search_on_won_board_has_no_move(self):
        board = make_board(1, {0: (BLUE, 1)})
        result = search(board, RED, depth=4)
        self.assertIsNone(result.best_move)
        self.assertEqual(result.score, -ai_mod.WIN_VALUE)

    def test_search_rejects_neutral_side(self):
        with self.assertRaises(ValueError):
            search(Board(2), NEUTRAL)

    def test_pruning_matches_plain_minimax(self):
        for seed in range(6):
            board = random_position(3, plies=seed * 2, seed=seed)
            if board.get_winner() is not None:
                continue
            side = board.whose_move()
            pruned = search(board, side, depth=3)
            plain = search(board, side, depth=3, prune=False)
            self.assertEqual(pruned.score, plain.score, msg=board_key(board))
            self.assertEqual(pruned.best_move, plain.best_move, msg=board_key(board))
            self.assertLessEqual(pruned.nodes, plain.nodes)
            self.assertEqual(plain.cutoffs, 0)

    def test_pruning_cuts_at_default_depth(self):
        result = search(Board(2), RED)
        self.assertEqual(result.depth, ai_mod.DEFAULT_DEPTH)
        self.assertGreater(result.cutoffs, 0)


class TestPlayers(unittest.TestCase):
    def test_find_move_preconditions(self):
        with self.assertRaises(ValueError):
            find_move(Board(2), RED, depth=0)
        with self.assertRaises(ValueError):
            find_move(make_board(1, {0: (BLUE, 1)}), RED)

    def test_ai_player_plays_winning_square(self):
        board = make_board(2, {0: (RED, 2), 1: (RED, 2)})
        player = AIPlayer(RED)
        self.assertEqual(player.choose_move(board), 0)
        self.assertEqual(player.move_string(board), "1 1")

    def test_ai_player_refuses_out_of_turn(self):
        board = Board(2)
        with self.assertRaises(ValueError):
            AIPlayer(BLUE).choose_move(board)
        with self.assertRaises(ValueError):
            AIPlayer(NEUTRAL)

    def test_ai_player_on_single_square(self):
        board = Board(1)
        move = AIPlayer(BLUE).choose_move(board)
        self.assertEqual(move, 0)


if __name__ == "__main__":
    unittest.main()
