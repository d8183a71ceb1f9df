"""Board state machine for Jump61: moves, avalanches, win detection and undo."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, List, Optional, Tuple

NEUTRAL = "NEUTRAL"
RED = "RED"
BLUE = "BLUE"

SIDE_A = RED
SIDE_B = BLUE
PLAYERS: Tuple[str, str] = (RED, BLUE)

Notifier = Callable[["Board"], None]


def is_player(side: str) -> bool:
    return side in PLAYERS


def opponent(side: str) -> str:
    if side == RED:
        return BLUE
    if side == BLUE:
        return RED
    return NEUTRAL


@dataclass(frozen=True)
class Square:
    side: str
    spots: int


def square(side: str, spots: int) -> Square:
    """Build a square, normalising empty squares to the neutral side."""
    if spots < 0:
        raise ValueError("spot count must be non-negative")
    if spots == 0:
        return Square(NEUTRAL, 0)
    return Square(side, spots)


EMPTY = Square(NEUTRAL, 0)

Snapshot = Tuple[Square, ...]


def _nop(_board: "Board") -> None:
    return


class ReadonlyBoardError(RuntimeError):
    """Raised when a mutation is attempted through a read-only board view."""


class Board:
    """An N x N Jump61 board.

    Squares are addressed either by (row, col), both 1-based, or by a
    row-major square number starting at 0. ``history[num_moves]`` always
    equals the current contents; ``undo`` steps back one ``add_spot``.
    """

    def __init__(self, size: int) -> None:
        if size < 1:
            raise ValueError("board size must be at least 1")
        self._size = size
        self._squares: List[Square] = [EMPTY] * (size * size)
        self._history: List[Snapshot] = [tuple(self._squares)]
        self._num_moves = 0
        self._notifier: Notifier = _nop
        self._work_queue: Deque[int] = deque()
        self._readonly: Optional[ConstantBoard] = None

    @classmethod
    def from_board(cls, board0: "Board | ConstantBoard") -> "Board":
        """A board with BOARD0's current contents, a clear undo history and no notifier."""
        board = cls(board0.size())
        board._squares = list(board0.squares())
        board._history = [tuple(board._squares)]
        return board

    def readonly_board(self) -> "ConstantBoard":
        if self._readonly is None:
            self._readonly = ConstantBoard(self)
        return self._readonly

    # --- Addressing -------------------------------------------------------
    def size(self) -> int:
        return self._size

    def row(self, n: int) -> int:
        return n // self._size + 1

    def col(self, n: int) -> int:
        return n % self._size + 1

    def sq_num(self, r: int, c: int) -> int:
        return (c - 1) + (r - 1) * self._size

    def exists(self, r: int, c: Optional[int] = None) -> bool:
        size = self._size
        if c is None:
            return 0 <= r < size * size
        return 1 <= r <= size and 1 <= c <= size

    def _index(self, r: int, c: Optional[int]) -> int:
        if not self.exists(r, c):
            if c is None:
                raise ValueError(f"square number {r} is off the board")
            raise ValueError(f"square ({r}, {c}) is off the board")
        return r if c is None else self.sq_num(r, c)

    # --- Queries ----------------------------------------------------------
    def get(self, r: int, c: Optional[int] = None) -> Square:
        return self._squares[self._index(r, c)]

    def squares(self) -> Snapshot:
        return tuple(self._squares)

    def num_moves(self) -> int:
        return self._num_moves

    def history_length(self) -> int:
        return len(self._history)

    def num_pieces(self) -> int:
        return sum(sq.spots for sq in self._squares)

    def num_of_side(self, side: str) -> int:
        return sum(1 for sq in self._squares if sq.side == side)

    def whose_move(self) -> str:
        """Side to move, derived from spot parity. Once won, this is the loser."""
        return RED if (self.num_pieces() + self._size) % 2 == 0 else BLUE

    def get_winner(self) -> Optional[str]:
        total = self._size * self._size
        if self.num_of_side(RED) == total:
            return RED
        if self.num_of_side(BLUE) == total:
            return BLUE
        return None

    def is_legal(self, player: str, r: Optional[int] = None, c: Optional[int] = None) -> bool:
        """With no square, whether PLAYER may move now; otherwise whether
        PLAYER may add a spot to the given square."""
        if r is None:
            return player == self.whose_move() and self.get_winner() is None
        side = self.get(r, c).side
        return side == player or side == NEUTRAL

    def neighbors(self, r: int, c: Optional[int] = None) -> int:
        if c is None:
            r, c = self.row(r), self.col(r)
        size = self._size
        n = 0
        if r > 1:
            n += 1
        if c > 1:
            n += 1
        if r < size:
            n += 1
        if c < size:
            n += 1
        return n

    def find_neighbors(self, r: int, c: int) -> List[int]:
        """Square numbers orthogonally adjacent to (R, C): up, down, left, right."""
        out: List[int] = []
        if self.exists(r - 1, c):
            out.append(self.sq_num(r - 1, c))
        if self.exists(r + 1, c):
            out.append(self.sq_num(r + 1, c))
        if self.exists(r, c - 1):
            out.append(self.sq_num(r, c - 1))
        if self.exists(r, c + 1):
            out.append(self.sq_num(r, c + 1))
        return out

    def move_string(self, r: int, c: Optional[int] = None) -> str:
        if c is None:
            return f"{self.row(r)} {self.col(r)}"
        return f"{r} {c}"

    # --- Mutation ---------------------------------------------------------
    def add_spot(self, player: str, r: int, c: Optional[int] = None) -> None:
        """Add a spot for PLAYER and resolve any avalanche as one undoable move."""
        n = self._index(r, c)
        if not is_player(player):
            raise ValueError(f"{player} cannot move")
        if not self.is_legal(player, n):
            raise ValueError(f"illegal move: square {self.move_string(n)} belongs to {opponent(player)}")
        self._num_moves += 1
        spots = self._squares[n].spots + 1
        self._internal_set(n, spots, player)
        if spots > self.neighbors(n):
            self._jump(n)
        self._history.append(tuple(self._squares))
        self._announce()

    def set(self, r: int, c: int, num: int, player: str) -> None:
        """Put NUM spots of PLAYER on (R, C), bypassing avalanches and history."""
        n = self._index(r, c)
        self._internal_set(n, num, player)
        self._announce()

    def undo(self) -> None:
        if self._num_moves == 0 or len(self._history) <= 1:
            return
        self._history.pop()
        self._num_moves -= 1
        self._squares = list(self._history[-1])
        self._announce()

    def clear(self, size: int, spots: int = 0) -> None:
        """Reset to a SIZE x SIZE board of neutral squares holding SPOTS each."""
        if size < 1:
            raise ValueError("board size must be at least 1")
        blank = square(NEUTRAL, spots)
        self._size = size
        self._squares = [blank] * (size * size)
        self._history = [tuple(self._squares)]
        self._num_moves = 0
        self._announce()

    def copy(self, board: "Board") -> None:
        """Copy BOARD's contents and undo history into me."""
        self._size = board.size()
        self._squares = list(board._squares)
        self._history = list(board._history)
        self._num_moves = board._num_moves
        self._announce()

    def set_notifier(self, notify: Optional[Notifier]) -> None:
        self._notifier = notify if notify is not None else _nop
        self._announce()

    def _announce(self) -> None:
        self._notifier(self)

    def _internal_set(self, n: int, num: int, player: str) -> None:
        self._squares[n] = square(player, num)

    def _simple_add(self, player: str, n: int, delta: int) -> None:
        self._internal_set(n, self._squares[n].spots + delta, player)

    def _over_full(self, n: int) -> bool:
        return self._squares[n].spots > self.neighbors(n)

    def _jump(self, start: int) -> None:
        """Resolve the avalanche started by square START, the only over-full square.

        START spreads into its neighbours first; after that, queued squares
        are discharged breadth-first. A neighbour that is already over-full
        is queued again without receiving a spot.
        """
        if self.get_winner() is not None:
            return
        player = self._squares[start].side
        work = self._work_queue
        for neigh in self.find_neighbors(self.row(start), self.col(start)):
            self._simple_add(player, neigh, 1)
            self._simple_add(player, start, -1)
            if self._over_full(neigh):
                work.append(neigh)
        while self.get_winner() is None and work:
            n = work.popleft()
            self._internal_set(n, 1, player)
            for neigh in self.find_neighbors(self.row(n), self.col(n)):
                if self._over_full(neigh):
                    work.append(neigh)
                else:
                    self._simple_add(player, neigh, 1)
                    if self._over_full(neigh):
                        work.append(neigh)
        work.clear()


class ConstantBoard:
    """Read-only view of a Board: queries pass through, mutators raise."""

    def __init__(self, board: Board) -> None:
        self._board = board

    def size(self) -> int:
        return self._board.size()

    def row(self, n: int) -> int:
        return self._board.row(n)

    def col(self, n: int) -> int:
        return self._board.col(n)

    def sq_num(self, r: int, c: int) -> int:
        return self._board.sq_num(r, c)

    def exists(self, r: int, c: Optional[int] = None) -> bool:
        return self._board.exists(r, c)

    def get(self, r: int, c: Optional[int] = None) -> Square:
        return self._board.get(r, c)

    def squares(self) -> Snapshot:
        return self._board.squares()

    def num_moves(self) -> int:
        return self._board.num_moves()

    def history_length(self) -> int:
        return self._board.history_length()

    def num_pieces(self) -> int:
        return self._board.num_pieces()

    def num_of_side(self, side: str) -> int:
        return self._board.num_of_side(side)

    def whose_move(self) -> str:
        return self._board.whose_move()

    def get_winner(self) -> Optional[str]:
        return self._board.get_winner()

    def is_legal(self, player: str, r: Optional[int] = None, c: Optional[int] = None) -> bool:
        return self._board.is_legal(player, r, c)

    def neighbors(self, r: int, c: Optional[int] = None) -> int:
        return self._board.neighbors(r, c)

    def find_neighbors(self, r: int, c: int) -> List[int]:
        return self._board.find_neighbors(r, c)

    def move_string(self, r: int, c: Optional[int] = None) -> str:
        return self._board.move_string(r, c)

    def add_spot(self, player: str, r: int, c: Optional[int] = None) -> None:
        raise ReadonlyBoardError("cannot add spots to a read-only board")

    def set(self, r: int, c: int, num: int, player: str) -> None:
        raise ReadonlyBoardError("cannot set squares on a read-only board")

    def undo(self) -> None:
        raise ReadonlyBoardError("cannot undo on a read-only board")

    def clear(self, size: int, spots: int = 0) -> None:
        raise ReadonlyBoardError("cannot clear a read-only board")

    def copy(self, board: Board) -> None:
        raise ReadonlyBoardError("cannot copy into a read-only board")

    def set_notifier(self, notify: Optional[Notifier]) -> None:
        raise ReadonlyBoardError("cannot set the notifier of a read-only board")


def dump(board: "Board | ConstantBoard") -> str:
    """Compact dump: one line per row, each square as spots plus side initial."""
    lines = ["", "==="]
    for r in range(1, board.size() + 1):
        cells = []
        for c in range(1, board.size() + 1):
            sq = board.get(r, c)
            mark = "-" if sq.side == NEUTRAL else sq.side[0].lower()
            cells.append(f"{sq.spots}{mark}")
        lines.append("    " + " ".join(cells))
    lines.append("===")
    return "\n".join(lines)


def pretty_print(board: "Board | ConstantBoard") -> str:
    """Dump with row numbers down the side and column numbers underneath."""
    size = board.size()
    lines = []
    for r in range(1, size + 1):
        cells = []
        for c in range(1, size + 1):
            sq = board.get(r, c)
            mark = "-" if sq.side == NEUTRAL else sq.side[0].lower()
            cells.append(f"{sq.spots}{mark}")
        lines.append(f"{r:2d} " + " ".join(cells))
    lines.append("  " + "".join(f"{c:3d}" for c in range(1, size + 1)))
    lines.append(f"Turn: {board.whose_move()}")
    return "\n".join(lines)
