"""
Time-boxed Monte-Carlo Tree Search with UCT selection.

Every legal root move gets its own search tree, rooted at the position after
that move with the opponent to move. The trees grow concurrently until a timer
sets a shared stop event. With fewer workers than root moves, each worker
owns several trees and grows them in turn, so every move gets simulated. The
move whose tree root shows the best win ratio is played.

Trees are arenas: nodes live in a list and refer to each other by index, so a
whole tree is dropped at once when the decision is made.
"""

from __future__ import annotations

import logging
import math
import random
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from reversi_engine.config import CONFIG
from .board import Board, Cell, EndState, PlayerMove
from .game import wincheck
from .search import NoLegalMoveError
from .utils import format_info, format_ratios

logger = logging.getLogger(__name__)

ROOT = 0


def uct_score(parent_visits: int, wins: int, visits: int, c: float) -> float:
    """UCT priority of a child; unvisited children always come first."""
    if visits == 0:
        return math.inf
    return wins / visits + c * math.sqrt(math.log(parent_visits) / visits)


def rollout(board: Board, color: Cell, is_anti: bool, rng: random.Random) -> EndState:
    """Play uniformly random moves, passing when stuck, until the game ends."""
    board = board.copy()
    while True:
        moves = board.legal_moves(color)
        state = wincheck(board, color, is_anti, moves)
        if state.is_over():
            return state
        if moves:
            board.apply_move(rng.choice(moves), color)
        color = color.opposite()


@dataclass
class Node:
    board: Board
    color: Cell  # side to move at this node
    move: Optional[PlayerMove]
    parent: Optional[int]
    children: List[int] = field(default_factory=list)
    wins: int = 0
    visits: int = 0
    terminal: bool = False


class SearchTree:
    """Node arena for one root move. Only its own worker touches it."""

    def __init__(self, board: Board, color: Cell, move: Optional[PlayerMove] = None):
        self.nodes: List[Node] = [Node(board, color, move, None)]

    @property
    def root(self) -> Node:
        return self.nodes[ROOT]

    def select(self, exploration: float) -> int:
        handle = ROOT
        node = self.nodes[handle]
        while node.children and not node.terminal:
            parent_visits = node.visits
            handle = max(
                node.children,
                key=lambda h: uct_score(
                    parent_visits, self.nodes[h].wins, self.nodes[h].visits, exploration
                ),
            )
            node = self.nodes[handle]
        return handle

    def expand(self, handle: int, rng: random.Random) -> int:
        """Add every legal move of the node at once and pick one at random.

        A node without moves becomes terminal and is simulated itself.
        """
        node = self.nodes[handle]
        if node.terminal or node.children:
            return handle
        moves = node.board.legal_moves(node.color)
        if not moves:
            node.terminal = True
            return handle
        child_color = node.color.opposite()
        for move in moves:
            self.nodes.append(Node(node.board.with_move(move, node.color), child_color, move, handle))
            node.children.append(len(self.nodes) - 1)
        return rng.choice(node.children)

    def simulate(self, handle: int, is_anti: bool, rng: random.Random) -> EndState:
        node = self.nodes[handle]
        return rollout(node.board, node.color, is_anti, rng)

    def backpropagate(self, handle: Optional[int], result: EndState) -> None:
        """Walk to the root, crediting nodes whose incoming move was made by the winner.

        `result` already accounts for anti mode.
        """
        while handle is not None:
            node = self.nodes[handle]
            node.visits += 1
            if result.won(node.color.opposite()):
                node.wins += 1
            handle = node.parent

    def iterate(self, exploration: float, is_anti: bool, rng: random.Random) -> None:
        selected = self.select(exploration)
        expanded = self.expand(selected, rng)
        result = self.simulate(expanded, is_anti, rng)
        self.backpropagate(expanded, result)


@dataclass(frozen=True)
class RootStats:
    move: PlayerMove
    wins: int
    visits: int

    @property
    def ratio(self) -> float:
        """Win ratio; a tree that was never visited ranks below any visited one."""
        if self.visits == 0:
            return -1.0
        return self.wins / self.visits


def select_root(stats: Tuple[RootStats, ...]) -> RootStats:
    """Highest win ratio, lowest board index on ties."""
    return max(stats, key=lambda s: (s.ratio, -s.move.target))


@dataclass(frozen=True)
class MCTSResult:
    move: PlayerMove
    stats: Tuple[RootStats, ...]
    iterations: int
    elapsed_ms: int

    def stats_for(self, move: PlayerMove) -> RootStats:
        for s in self.stats:
            if s.move.target == move.target:
                return s
        raise KeyError(move.to_ab())


class MCTSEngine:
    def __init__(
        self,
        time_limit_ms: Optional[int] = None,
        exploration: Optional[float] = None,
        is_anti: bool = False,
        seed: Optional[int] = None,
        max_iterations: Optional[int] = None,
        threads: Optional[int] = None,
    ):
        self.time_limit_ms = CONFIG.search.time_limit_ms if time_limit_ms is None else time_limit_ms
        self.exploration = CONFIG.search.exploration if exploration is None else exploration
        self.is_anti = is_anti
        self.seed = seed
        self.max_iterations = max_iterations
        self.threads = threads

    def _rng(self, index: int) -> random.Random:
        if self.seed is None:
            return random.Random()
        return random.Random(self.seed + index)

    def search_best_move(self, board: Board, color: Cell) -> MCTSResult:
        moves = board.legal_moves(color)
        if not moves:
            raise NoLegalMoveError(f"{color.name} has no legal move")
        if len(moves) == 1:
            return MCTSResult(moves[0], (RootStats(moves[0], 0, 0),), 0, 0)

        start_time = time.perf_counter()
        opponent = color.opposite()
        # Latched once the budget is spent; workers started late see it as well.
        stop = threading.Event()
        workers = min(self.threads or len(moves), len(moves))
        # Worker k owns root moves k, k + workers, ... and grows them in turn.
        groups = [list(range(k, len(moves), workers)) for k in range(workers)]

        def worker(group: List[int]) -> List[Tuple[int, RootStats, int]]:
            rng = self._rng(group[0])
            trees = [SearchTree(board.with_move(moves[i], color), opponent, moves[i]) for i in group]
            counts = [0] * len(trees)
            while not stop.is_set():
                pending = [
                    t for t in range(len(trees))
                    if self.max_iterations is None or counts[t] < self.max_iterations
                ]
                if not pending:
                    break
                for t in pending:
                    if stop.is_set():
                        break
                    trees[t].iterate(self.exploration, self.is_anti, rng)
                    counts[t] += 1
            return [
                (i, RootStats(moves[i], tree.root.wins, tree.root.visits), n)
                for i, tree, n in zip(group, trees, counts)
            ]

        timer = threading.Timer(self.time_limit_ms / 1000, stop.set)
        timer.daemon = True
        timer.start()
        try:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                outcomes = [row for rows in executor.map(worker, groups) for row in rows]
        finally:
            timer.cancel()
            stop.set()

        outcomes.sort(key=lambda row: row[0])
        stats = tuple(s for _, s, _ in outcomes)
        iterations = sum(n for _, _, n in outcomes)
        best = select_root(stats)
        if best.visits == 0:
            logger.warning("no simulation finished within %d ms, playing %s",
                           self.time_limit_ms, best.move.to_ab())
        elapsed_ms = int((time.perf_counter() - start_time) * 1000)
        logger.debug("final scores: [%s]", format_ratios((s.move.to_ab(), s.wins, s.visits) for s in stats))
        logger.info(format_info("mcts", best.move, f"{best.ratio:.3f}", iterations, elapsed_ms))
        return MCTSResult(best.move, stats, iterations, elapsed_ms)


def best_move(
    board: Board,
    color: Cell,
    time_budget_ms: int,
    exploration: float = math.sqrt(2),
    is_anti: bool = False,
    seed: Optional[int] = None,
) -> PlayerMove:
    engine = MCTSEngine(time_budget_ms, exploration, is_anti, seed)
    return engine.search_best_move(board, color).move
