"""Deterministic benchmark harness for the Jump61 search."""

from __future__ import annotations

import argparse
import gc
import json
import math
import platform
import random
import statistics
import sys
import time
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from jump61_ai import board_key, search
from jump61_board import NEUTRAL, PLAYERS, Board, square


def _generate_positions(
    *,
    positions: int,
    size: int,
    max_plies: int,
    seed: int,
) -> List[Board]:
    rng = random.Random(seed)
    out: List[Board] = []
    attempts = 0
    while len(out) < positions:
        attempts += 1
        if attempts > positions * 100:
            raise ValueError(f"could not find {positions} unfinished positions on a {size}x{size} board")
        board = Board(size)
        for _ in range(rng.randint(0, max_plies)):
            if board.get_winner() is not None:
                break
            side = board.whose_move()
            moves = [n for n in range(size * size) if board.is_legal(side, n)]
            if not moves:
                break
            board.add_spot(side, rng.choice(moves))
        if board.get_winner() is None:
            out.append(Board.from_board(board))
    return out


def _key_to_board(key: str) -> Optional[Board]:
    try:
        size_raw, cells_raw = key.split("|", 1)
        size = int(size_raw)
    except ValueError:
        return None
    if size < 1:
        return None
    cells = cells_raw.split(",")
    if len(cells) != size * size:
        return None
    sides = {side[0]: side for side in (NEUTRAL,) + PLAYERS}
    board = Board(size)
    snapshot = []
    for cell in cells:
        side = sides.get(cell[:1])
        if side is None or not cell[1:].isdigit():
            return None
        snapshot.append(square(side, int(cell[1:])))
    for n, sq in enumerate(snapshot):
        board.set(board.row(n), board.col(n), sq.spots, sq.side)
    return Board.from_board(board)


def _load_positions(path: Path, limit: int) -> List[Board]:
    boards: List[Board] = []
    with path.open("r", encoding="utf-8") as handle:
        for line_no, raw in enumerate(handle, start=1):
            key = raw.strip()
            if not key:
                continue
            board = _key_to_board(key)
            if board is None:
                raise ValueError(f"invalid board key at line {line_no}: {key!r}")
            if board.get_winner() is not None:
                continue
            boards.append(board)
            if len(boards) >= limit:
                break
    return boards


def _save_positions(path: Path, positions: Sequence[Board]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        for board in positions:
            handle.write(board_key(board) + "\n")


def _percentile(values: Sequence[float], percentile: float) -> float:
    if not values:
        return 0.0
    ordered = sorted(values)
    if len(ordered) == 1:
        return float(ordered[0])
    rank = (len(ordered) - 1) * percentile
    lo = math.floor(rank)
    hi = math.ceil(rank)
    if lo == hi:
        return float(ordered[lo])
    frac = rank - lo
    return float(ordered[lo] * (1.0 - frac) + ordered[hi] * frac)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Deterministic Jump61 search benchmark")
    parser.add_argument("--positions", type=int, default=20, help="number of positions (default: 20)")
    parser.add_argument("--size", type=int, default=4, help="board size (default: 4)")
    parser.add_argument("--max-plies", type=int, default=12, help="max random plies from start (default: 12)")
    parser.add_argument("--seed", type=int, default=12345, help="random seed for position generation")
    parser.add_argument("--depth", type=int, default=4, help="search depth in plies (default: 4)")
    parser.add_argument("--no-prune", action="store_true", help="disable alpha-beta cutoffs")
    parser.add_argument("--repeat", type=int, default=1, help="benchmark repeats for p50/p95 summaries")
    parser.add_argument("--no-gc", action="store_true", help="disable GC during benchmark loop")
    parser.add_argument("--json", action="store_true", help="print one JSON summary instead of tables")
    parser.add_argument("--save-positions", type=Path, default=None, help="write sampled positions (board keys) to file")
    parser.add_argument("--load-positions", type=Path, default=None, help="load positions (board keys) from file")
    args = parser.parse_args(argv)

    if args.positions <= 0:
        print("--positions must be > 0")
        return 2
    if args.size <= 0:
        print("--size must be > 0")
        return 2
    if args.max_plies < 0:
        print("--max-plies must be >= 0")
        return 2
    if args.depth <= 0:
        print("--depth must be > 0")
        return 2
    if args.repeat <= 0:
        print("--repeat must be > 0")
        return 2
    if args.load_positions is not None and not args.load_positions.exists():
        print(f"--load-positions not found: {args.load_positions}")
        return 2

    try:
        if args.load_positions is not None:
            positions = _load_positions(args.load_positions, args.positions)
        else:
            positions = _generate_positions(
                positions=args.positions,
                size=args.size,
                max_plies=args.max_plies,
                seed=args.seed,
            )
    except ValueError as exc:
        print(f"failed to prepare positions: {exc}")
        return 2
    if not positions:
        print("no usable positions")
        return 2
    if args.save_positions is not None:
        _save_positions(args.save_positions, positions)

    prune = not args.no_prune
    if not args.json:
        print(
            f"python={sys.version.split()[0]} platform={platform.platform()} "
            f"depth={args.depth} prune={prune} repeats={args.repeat}"
        )
        print(f"rep idx side nodes cutoffs search_ms best score (positions={len(positions)} seed={args.seed})")

    gc_was_enabled = gc.isenabled()
    repeat_summaries: List[Dict[str, float]] = []
    if args.no_gc and gc_was_enabled:
        gc.disable()
    try:
        for rep in range(1, args.repeat + 1):
            total_nodes = 0
            total_cutoffs = 0
            total_search_ms = 0
            wall_start_ns = time.perf_counter_ns()
            for idx, board in enumerate(positions, start=1):
                side = board.whose_move()
                result = search(board, side, depth=args.depth, prune=prune)
                total_nodes += result.nodes
                total_cutoffs += result.cutoffs
                total_search_ms += result.elapsed_ms
                if not args.json:
                    best = "-" if result.best_move is None else board.move_string(result.best_move)
                    print(
                        f"{rep:>3d} {idx:03d} {side:>4} {result.nodes:>9d} {result.cutoffs:>7d} "
                        f"{result.elapsed_ms:>9d} {best:>5} {result.score:>+5d}"
                    )
            total_wall_ms = max(1, (time.perf_counter_ns() - wall_start_ns) // 1_000_000)
            summary = {
                "total_nodes": float(total_nodes),
                "total_cutoffs": float(total_cutoffs),
                "total_search_ms": float(total_search_ms),
                "total_wall_ms": float(total_wall_ms),
                "nps_wall": float(int(total_nodes * 1000 / total_wall_ms)),
                "avg_nodes": total_nodes / len(positions),
            }
            repeat_summaries.append(summary)
            if not args.json:
                print(
                    "summary "
                    f"rep={rep} positions={len(positions)} total_nodes={total_nodes} cutoffs={total_cutoffs} "
                    f"total_search_ms={total_search_ms} total_wall_ms={total_wall_ms} "
                    f"nps_wall={int(summary['nps_wall'])} avg_nodes={summary['avg_nodes']:.1f}"
                )
    finally:
        if args.no_gc and gc_was_enabled:
            gc.enable()

    def _dist(key: str) -> Dict[str, float]:
        values = [summary[key] for summary in repeat_summaries]
        return {
            "min": min(values),
            "p50": _percentile(values, 0.50),
            "p95": _percentile(values, 0.95),
            "max": max(values),
            "mean": statistics.fmean(values),
        }

    if args.json:
        payload = {
            "positions": len(positions),
            "size": positions[0].size(),
            "depth": args.depth,
            "prune": prune,
            "repeats": args.repeat,
            "nps_wall": _dist("nps_wall"),
            "avg_nodes": _dist("avg_nodes"),
            "total_cutoffs": _dist("total_cutoffs"),
        }
        print(json.dumps(payload, sort_keys=True))
    elif args.repeat > 1:
        for name in ("nps_wall", "avg_nodes", "total_cutoffs"):
            dist = _dist(name)
            print(
                f"dist {name} min={dist['min']:.2f} p50={dist['p50']:.2f} "
                f"p95={dist['p95']:.2f} max={dist['max']:.2f} mean={dist['mean']:.2f}"
            )

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
