"""Depth-limited minimax with alpha-beta pruning for the Jump61 automated player."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple
import logging
import time

from jump61_board import (
    BLUE,
    RED,
    Board,
    ConstantBoard,
    is_player,
)
from jump61_telemetry import (
    RootMoveEvent,
    SearchEndEvent,
    SearchStartEvent,
    TelemetrySink,
    emit_dataclass_event,
)

logger = logging.getLogger(__name__)

INF = 10**9
WIN_VALUE = 1000
DEFAULT_DEPTH = 4
MAXIMIZER = RED


@dataclass(frozen=True)
class SearchResult:
    best_move: Optional[int]
    score: int
    depth: int
    nodes: int
    cutoffs: int
    elapsed_ms: int


@dataclass
class _SearchContext:
    board: Board
    telemetry: Optional[TelemetrySink] = None
    prune: bool = True
    nodes: int = 0
    cutoffs: int = 0


def board_key(board: "Board | ConstantBoard") -> str:
    cells = ",".join(f"{sq.side[0]}{sq.spots}" for sq in board.squares())
    return f"{board.size()}|{cells}"


def static_eval(board: "Board | ConstantBoard", winning_value: int = WIN_VALUE) -> int:
    """Heuristic value of BOARD from Red's point of view.

    A won position scores +/-WINNING_VALUE whatever the spot distribution;
    otherwise the score is Red's square count minus Blue's.
    """
    winner = board.get_winner()
    if winner == RED:
        return winning_value
    if winner == BLUE:
        return -winning_value
    return board.num_of_side(RED) - board.num_of_side(BLUE)


def _min_max(
    context: _SearchContext,
    depth: int,
    sense: int,
    alpha: int,
    beta: int,
    root: bool = False,
) -> Tuple[int, Optional[int]]:
    """Value of the scratch board and the move reaching it.

    SENSE is 1 when Red (maximising) is to play and -1 for Blue. Every move
    tried is undone before returning, so the scratch board is left as found.
    """
    board = context.board
    context.nodes += 1
    if depth <= 0 or board.get_winner() is not None:
        return static_eval(board), None

    player = RED if sense == 1 else BLUE
    best = -INF if sense == 1 else INF
    best_move: Optional[int] = None
    for n in range(board.size() * board.size()):
        if not board.is_legal(player, n):
            continue
        board.add_spot(player, n)
        try:
            value, _ = _min_max(context, depth - 1, -sense, alpha, beta)
        finally:
            board.undo()
        if sense == 1:
            if value > best:
                best = value
                best_move = n
                alpha = max(alpha, value)
        elif value < best:
            best = value
            best_move = n
            beta = min(beta, value)
        if root:
            emit_dataclass_event(
                context.telemetry,
                "root_move",
                RootMoveEvent(move=n, score=value, best_move=best_move, best_score=best),
            )
        if context.prune and alpha >= beta:
            context.cutoffs += 1
            break
    return best, best_move


def search(
    board: "Board | ConstantBoard",
    side: str,
    depth: int = DEFAULT_DEPTH,
    telemetry_sink: Optional[TelemetrySink] = None,
    prune: bool = True,
) -> SearchResult:
    """Search DEPTH plies for SIDE on a private copy of BOARD."""
    if not is_player(side):
        raise ValueError(f"{side} is not a player side")
    start = time.perf_counter()
    depth = max(0, depth)
    context = _SearchContext(board=Board.from_board(board), telemetry=telemetry_sink, prune=prune)
    emit_dataclass_event(
        telemetry_sink,
        "search_start",
        SearchStartEvent(board_key=board_key(board), side=side, depth=depth),
    )
    sense = 1 if side == MAXIMIZER else -1
    score, move = _min_max(context, depth, sense, -INF, INF, root=True)
    elapsed_ms = int((time.perf_counter() - start) * 1000)
    result = SearchResult(
        best_move=move,
        score=score,
        depth=depth,
        nodes=context.nodes,
        cutoffs=context.cutoffs,
        elapsed_ms=elapsed_ms,
    )
    logger.debug(
        "search side=%s depth=%d move=%s score=%d nodes=%d cutoffs=%d elapsed_ms=%d",
        side,
        depth,
        move,
        score,
        result.nodes,
        result.cutoffs,
        elapsed_ms,
    )
    emit_dataclass_event(
        telemetry_sink,
        "search_end",
        SearchEndEvent(
            best_move=move,
            score=score,
            nodes=result.nodes,
            cutoffs=result.cutoffs,
            elapsed_ms=elapsed_ms,
        ),
    )
    return result


def find_move(
    board: "Board | ConstantBoard",
    side: str,
    depth: int = DEFAULT_DEPTH,
    telemetry_sink: Optional[TelemetrySink] = None,
) -> int:
    """Square number SIDE should play on BOARD."""
    if depth < 1:
        raise ValueError("search depth must be at least 1")
    if board.get_winner() is not None:
        raise ValueError("the game is already over")
    result = search(board, side, depth=depth, telemetry_sink=telemetry_sink)
    if result.best_move is None:
        raise ValueError(f"{side} has no legal move")
    return result.best_move


class AIPlayer:
    """An automated player for one side."""

    def __init__(
        self,
        side: str,
        depth: int = DEFAULT_DEPTH,
        telemetry_sink: Optional[TelemetrySink] = None,
    ) -> None:
        if not is_player(side):
            raise ValueError(f"{side} is not a player side")
        self.side = side
        self.depth = depth
        self.telemetry_sink = telemetry_sink

    def choose_move(self, board: "Board | ConstantBoard") -> int:
        if board.whose_move() != self.side:
            raise ValueError(f"it is not {self.side}'s move")
        move = find_move(board, self.side, depth=self.depth, telemetry_sink=self.telemetry_sink)
        logger.info("%s plays %s", self.side, board.move_string(move))
        return move

    def move_string(self, board: "Board | ConstantBoard") -> str:
        return board.move_string(self.choose_move(board))
