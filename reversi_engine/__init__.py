"""Black-hole Reversi engine: alpha-beta and MCTS move selection."""

__version__ = "1.0.0"
