from typing import Optional

from reversi_engine.config import CONFIG, Config
from reversi_engine.core.board import Board, Cell, PlayerMove
from reversi_engine.core.evaluator import Evaluator
from reversi_engine.core.mcts import MCTSEngine
from reversi_engine.core.search import SearchEngine


class Engine:
    """Picks moves with the search selected in the configuration."""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or CONFIG
        search = self.config.search
        is_anti = self.config.game.anti
        if search.engine == "minimax":
            self.search = SearchEngine(
                Evaluator(self.config.eval),
                depth=search.depth,
                is_anti=is_anti,
                threads=search.threads,
                use_parity=self.config.eval.use_parity,
            )
        else:
            self.search = MCTSEngine(
                time_limit_ms=search.time_limit_ms,
                exploration=search.exploration,
                is_anti=is_anti,
                seed=search.seed,
                max_iterations=search.max_iterations,
                threads=search.threads,
            )

    @property
    def name(self) -> str:
        return self.config.search.engine

    def best_move(self, board: Board, color: Cell) -> PlayerMove:
        return self.search.search_best_move(board, color).move
