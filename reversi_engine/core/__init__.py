"""Core engine components: board, evaluator, searches and the match state machine."""

from .board import Board, Cell, EndState, PlayerMove
from .evaluator import Evaluator
from .game import Match, TurnAction
from .mcts import MCTSEngine
from .point import Point
from .search import SearchEngine
