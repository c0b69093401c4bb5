"""Line protocol with the arbiter and the match loop driving the engine.

Tokens, one per line: a coordinate ("D3"), a color ("black"/"white") or
"pass". At start-up the arbiter sends the black-hole coordinate (unless the
black hole is disabled) followed by the engine's color.
"""

import logging
import sys
import time
from typing import Optional, TextIO, Union

from reversi_engine.core.board import BoardFormatError, Cell, EndState, PlayerMove
from reversi_engine.core.game import Match, TurnAction
from reversi_engine.core.point import Point
from reversi_engine.main import Engine

logger = logging.getLogger(__name__)

PASS = "pass"

Token = Union[Point, Cell, str]


class ProtocolError(ValueError):
    """Malformed or unexpected token from the arbiter."""


class ChannelClosed(EOFError):
    """The arbiter closed our input."""


class Channel:
    def __init__(self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None):
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout

    def read(self) -> Token:
        """Block until the next non-blank line and parse it."""
        while True:
            line = self.stdin.readline()
            if not line:
                raise ChannelClosed("input closed")
            token = line.strip()
            if token:
                break
        lowered = token.lower()
        if lowered == PASS:
            return PASS
        if lowered == "black":
            return Cell.BLACK
        if lowered == "white":
            return Cell.WHITE
        point = Point.from_ab(token)
        if point is None:
            raise ProtocolError(f"unexpected command: {token!r}")
        return point

    def read_point(self) -> Point:
        token = self.read()
        if not isinstance(token, Point):
            raise ProtocolError(f"expected coordinate, got {token!r}")
        return token

    def read_color(self) -> Cell:
        token = self.read()
        if not isinstance(token, Cell):
            raise ProtocolError(f"expected color, got {token!r}")
        return token

    def send(self, value: Union[Point, str]) -> None:
        if isinstance(value, Point):
            line = value.to_ab()
        elif value == PASS:
            line = PASS
        else:
            raise ProtocolError(f"cannot send {value!r}")
        self.stdout.write(line + "\n")
        self.stdout.flush()


class Runner:
    """Plays one match over a channel."""

    def __init__(self, engine: Engine, channel: Channel, black_hole: bool = True, is_anti: bool = True):
        self.engine = engine
        self.channel = channel
        self.black_hole = black_hole
        self.is_anti = is_anti
        self.match: Optional[Match] = None

    def setup(self) -> Match:
        black_hole = self.channel.read_point() if self.black_hole else None
        my_color = self.channel.read_color()
        try:
            self.match = Match.new(my_color, self.is_anti, black_hole)
        except BoardFormatError as e:
            raise ProtocolError(f"bad black hole: {e}") from e
        logger.info("alg: %s", self.engine.name)
        logger.info("black hole: %s", black_hole.to_ab() if black_hole else None)
        logger.info("my color: %s", my_color.name)
        logger.info("anti reversi mode: %s", self.is_anti)
        return self.match

    def run(self) -> EndState:
        match = self.setup()
        while True:
            action = match.advance()
            if action is TurnAction.OVER:
                break
            if action is TurnAction.PASS:
                passer = match.current.opposite()
                if passer == match.my_color:
                    self.channel.send(PASS)
                    logger.info("my move: pass")
                else:
                    self.channel.read()
                    logger.info("their move: pass")
                continue

            if match.is_my_turn():
                start = time.perf_counter()
                move = self.engine.best_move(match.board, match.current)
                match.play(move)
                self.channel.send(move.point)
                logger.info("my move: %s; %dms passed", move.to_ab(),
                            (time.perf_counter() - start) * 1000)
            else:
                move = self._read_opponent_move(match)
                match.play(move)
                logger.info("their move: %s", move.to_ab())
            logger.debug("\n%s", match.board.render())

        result = match.result()
        black, white = match.score()
        logger.info("game over: %s (black %d, white %d, %d moves, %d passes)",
                    result.value, black, white, len(match.history) - match.passes, match.passes)
        return result

    def _read_opponent_move(self, match: Match) -> PlayerMove:
        while True:
            point = self.channel.read_point()
            move = match.find_move(point)
            if move is not None:
                return move
            logger.warning("ignoring illegal opponent move %s", point.to_ab())
