"""Terminal driver for Jump61: human and automated players on one board."""

from __future__ import annotations

import argparse
import logging
from typing import Dict, List, Optional

from jump61_ai import DEFAULT_DEPTH, AIPlayer
from jump61_board import BLUE, RED, Board, dump, pretty_print
from jump61_telemetry import ThreadedTCPSink, parse_host_port

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def print_help() -> None:
    print("Controls: 'row col' = add a spot, u=undo, d=dump, n=new game, q=quit, h=help.")
    print("Rows and columns are numbered from 1; you may play on your own or neutral squares.")


def read_command(prompt: str) -> str:
    while True:
        try:
            raw = input(prompt).strip().lower()
        except EOFError:
            print()
            return "q"
        if raw == "":
            print("Please enter a move as 'row col', or a command.")
            continue
        return raw


def parse_move(raw: str, board: Board) -> Optional[int]:
    """Square number for a 'row col' string, or None if malformed or off the board."""
    parts = raw.replace(",", " ").split()
    if len(parts) != 2 or not all(part.isdigit() for part in parts):
        return None
    r, c = int(parts[0]), int(parts[1])
    if not board.exists(r, c):
        return None
    return board.sq_num(r, c)


def new_board(size: int, classic: bool) -> Board:
    board = Board(size)
    if classic:
        board.clear(size, spots=1)
    return board


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Jump61 for the terminal")
    parser.add_argument(
        "--size",
        type=int,
        default=6,
        help="squares on a side (default: 6); on an odd size Blue moves first unless --classic is given",
    )
    parser.add_argument("--red", choices=("human", "ai"), default="human", help="who plays Red (default: human)")
    parser.add_argument("--blue", choices=("human", "ai"), default="ai", help="who plays Blue (default: ai)")
    parser.add_argument(
        "--depth",
        type=int,
        default=DEFAULT_DEPTH,
        help=f"search depth in plies for AI players (default: {DEFAULT_DEPTH})",
    )
    parser.add_argument(
        "--classic",
        action="store_true",
        help="start with one neutral spot on every square, so Red always moves first",
    )
    parser.add_argument("--telemetry", default="", help="stream search telemetry to HOST:PORT")
    parser.add_argument("--log-level", default="WARNING", choices=LOG_LEVELS, help="logging level (default: WARNING)")
    args = parser.parse_args(argv)

    if args.size < 1:
        print("--size must be at least 1")
        return 2
    if args.depth < 1:
        print("--depth must be at least 1")
        return 2
    endpoint = None
    if args.telemetry:
        endpoint = parse_host_port(args.telemetry)
        if endpoint is None:
            print("--telemetry must look like HOST:PORT")
            return 2

    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")
    if args.size % 2 == 1 and not args.classic:
        print(f"Blue moves first on an empty {args.size}x{args.size} board; use --classic for a Red start.")

    sink: Optional[ThreadedTCPSink] = None
    if endpoint is not None:
        sink = ThreadedTCPSink(endpoint[0], endpoint[1])
    try:
        return _play(args, sink)
    finally:
        if sink is not None:
            sink.close()


def _play(args: argparse.Namespace, sink: Optional[ThreadedTCPSink]) -> int:
    players: Dict[str, Optional[AIPlayer]] = {
        RED: AIPlayer(RED, depth=args.depth, telemetry_sink=sink) if args.red == "ai" else None,
        BLUE: AIPlayer(BLUE, depth=args.depth, telemetry_sink=sink) if args.blue == "ai" else None,
    }
    board = new_board(args.size, args.classic)

    while True:
        print()
        print(pretty_print(board))

        winner = board.get_winner()
        if winner is not None:
            print()
            print(f"{winner.capitalize()} wins after {board.num_moves()} moves.")
            return 0

        side = board.whose_move()
        ai = players[side]
        if ai is not None:
            move = ai.choose_move(board)
            print(f"{side.capitalize()} plays {board.move_string(move)}.")
            board.add_spot(side, move)
            continue

        raw = read_command(f"{side.capitalize()} move (row col, u=undo, d=dump, n=new, h=help, q=quit): ")
        if raw in {"q", "quit"}:
            return 0
        if raw in {"h", "help"}:
            print_help()
            continue
        if raw in {"d", "dump"}:
            print(dump(board))
            continue
        if raw in {"n", "new"}:
            board = new_board(args.size, args.classic)
            continue
        if raw in {"u", "undo"}:
            if board.num_moves() == 0:
                print("Nothing to undo.")
                continue
            board.undo()
            # Step back past automated replies so a human is on move again.
            while board.num_moves() > 0 and players[board.whose_move()] is not None:
                board.undo()
            continue

        move = parse_move(raw, board)
        if move is None:
            print(f"Please enter a row and column between 1 and {board.size()}, e.g. '1 2'.")
            continue
        if not board.is_legal(side, move):
            print("Illegal move: that square belongs to your opponent.")
            continue
        logger.info("%s plays %s", side, board.move_string(move))
        board.add_spot(side, move)


if __name__ == "__main__":
    raise SystemExit(main())
