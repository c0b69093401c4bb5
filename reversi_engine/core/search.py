import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Tuple

from reversi_engine.config import CONFIG
from reversi_engine.core.board import Board, Cell, PlayerMove
from reversi_engine.core.evaluator import Evaluator
from reversi_engine.core.utils import format_info

logger = logging.getLogger(__name__)

INF = 1000000000


class NoLegalMoveError(ValueError):
    """The mover has nothing to play; the caller has to pass instead."""


@dataclass(frozen=True)
class SearchResult:
    move: PlayerMove
    score: int
    depth: int
    nodes: int
    elapsed_ms: int
    root_scores: Tuple[Tuple[str, int], ...] = ()


class _BestSlot:
    """Shared best (score, move) of the root fan-out.

    `offer` is a compare-and-update under one lock: a candidate replaces the
    current best when it scores higher, or scores the same on a lower board
    index.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.score = -INF - 1
        self.move: Optional[PlayerMove] = None

    def offer(self, score: int, move: PlayerMove) -> bool:
        with self._lock:
            if (
                self.move is None
                or score > self.score
                or (score == self.score and move.target < self.move.target)
            ):
                self.score = score
                self.move = move
                return True
            return False


class SearchEngine:
    def __init__(
        self,
        evaluator: Optional[Evaluator] = None,
        depth: int = 4,
        is_anti: bool = False,
        threads: Optional[int] = None,
        use_parity: Optional[bool] = None,
    ):
        self.evaluator = evaluator or Evaluator()
        self.max_depth = depth
        self.is_anti = is_anti
        self.threads = threads
        self.use_parity = CONFIG.eval.use_parity if use_parity is None else use_parity
        self.nodes = 0

    def search_best_move(self, board: Board, color: Cell) -> SearchResult:
        """Alpha-beta negamax over every root move, one worker per move."""
        if self.max_depth < 1:
            raise ValueError("search depth must be at least 1")
        moves = board.legal_moves(color)
        if not moves:
            raise NoLegalMoveError(f"{color.name} has no legal move")

        start_time = time.perf_counter()
        if len(moves) == 1:
            return SearchResult(moves[0], 0, 0, 0, 0)

        slot = _BestSlot()
        opponent = color.opposite()

        def worker(move: PlayerMove) -> Tuple[int, int]:
            counter = [0]
            child = board.with_move(move, color)
            score = -self._negamax(
                child, self.max_depth - 1, -INF, INF, opponent, color, counter
            )
            slot.offer(score, move)
            return score, counter[0]

        workers = self.threads or len(moves)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            outcomes = list(executor.map(worker, moves))

        self.nodes = sum(nodes for _, nodes in outcomes)
        elapsed_ms = int((time.perf_counter() - start_time) * 1000)
        root_scores = tuple(
            (move.to_ab(), score) for move, (score, _) in zip(moves, outcomes)
        )
        logger.debug("root scores: %s", root_scores)
        logger.info(
            format_info("minimax", slot.move, slot.score, self.nodes, elapsed_ms, self.max_depth)
        )
        return SearchResult(slot.move, slot.score, self.max_depth, self.nodes, elapsed_ms, root_scores)

    def negamax(self, board: Board, depth: int, color: Cell, engine_color: Cell) -> int:
        """Full-window negamax value of `board` for the side to move (`color`)."""
        return self._negamax(board, depth, -INF, INF, color, engine_color, [0])

    def _leaf_score(self, board: Board, mover: Cell, engine_color: Cell) -> int:
        parity = (self.max_depth % 2 == 0) if self.use_parity else None
        score = self.evaluator.evaluate(board, engine_color, parity)
        # The mover maximizes the engine's evaluation iff (mover is engine) XOR anti.
        if (mover == engine_color) != self.is_anti:
            return score
        return -score

    def _negamax(
        self,
        board: Board,
        depth: int,
        alpha: int,
        beta: int,
        color: Cell,
        engine_color: Cell,
        counter: List[int],
    ) -> int:
        counter[0] += 1
        moves = board.legal_moves(color)
        if depth <= 0 or not moves:
            return self._leaf_score(board, color, engine_color)

        opponent = color.opposite()
        best = -INF
        for move in moves:
            child = board.with_move(move, color)
            score = -self._negamax(child, depth - 1, -beta, -alpha, opponent, engine_color, counter)
            if score > best:
                best = score
            if best > alpha:
                alpha = best
            if alpha >= beta:
                break
        return best


def best_move(board: Board, color: Cell, depth: int, is_anti: bool) -> PlayerMove:
    return SearchEngine(depth=depth, is_anti=is_anti).search_best_move(board, color).move
