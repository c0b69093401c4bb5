"""FastAPI REST interface over one shared match."""

import copy
import threading

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from typing import Optional

from reversi_engine.config import CONFIG, ConfigError
from reversi_engine.core.board import Board, BoardFormatError, Cell, IllegalMoveError
from reversi_engine.core.game import Match, TurnAction
from reversi_engine.core.point import Point
from reversi_engine.core.search import NoLegalMoveError
from reversi_engine.main import Engine

app = FastAPI(title=CONFIG.ui.engine_name, version="1.0.0")

_COLORS = {"black": Cell.BLACK, "white": Cell.WHITE}

# Shared match; the API plays both sides.
match = Match.new(Cell.BLACK, CONFIG.game.anti)
_match_lock = threading.Lock()


class PositionRequest(BaseModel):
    board: str  # 64 chars of B/W/H/_, whitespace ignored
    turn: str = "black"
    anti: Optional[bool] = None


class MoveRequest(BaseModel):
    move: str  # algebraic, e.g. "D3"


class SearchRequest(BaseModel):
    engine: Optional[str] = None
    depth: Optional[int] = None
    time_limit_ms: Optional[int] = None


class ResetRequest(BaseModel):
    black_hole: Optional[str] = None
    anti: Optional[bool] = None


def _describe(m: Match) -> dict:
    status = m.status()
    black, white = m.score()
    return {
        "board": m.board.to_string(),
        "turn": m.current.name.lower(),
        "anti": m.is_anti,
        "legal_moves": [mv.to_ab() for mv in m.legal_moves()],
        "is_game_over": status.is_over(),
        "result": status.value if status.is_over() else None,
        "score": {"black": black, "white": white},
    }


@app.get("/board")
def get_board():
    with _match_lock:
        return _describe(match)


@app.post("/position")
def set_position(req: PositionRequest):
    global match
    turn = _COLORS.get(req.turn.lower())
    if turn is None:
        raise HTTPException(status_code=400, detail=f"Invalid turn: {req.turn}")
    try:
        board = Board.from_string(req.board)
    except BoardFormatError as e:
        raise HTTPException(status_code=400, detail=f"Invalid board: {e}")
    with _match_lock:
        anti = match.is_anti if req.anti is None else req.anti
        match = Match(board, Cell.BLACK, anti, current=turn)
        return _describe(match)


@app.post("/move")
def make_move(req: MoveRequest):
    point = Point.from_ab(req.move)
    if point is None:
        raise HTTPException(status_code=400, detail=f"Invalid coordinate: {req.move}")
    with _match_lock:
        try:
            match.play_point(point)
        except IllegalMoveError:
            raise HTTPException(status_code=400, detail=f"Illegal move: {req.move}")
        return {"move": point.to_ab(), **_describe(match)}


@app.post("/pass")
def pass_turn():
    with _match_lock:
        action = match.advance()
        if action is TurnAction.MOVE:
            raise HTTPException(status_code=400, detail="Side to move has legal moves")
        if action is TurnAction.OVER:
            raise HTTPException(status_code=400, detail="Game is already over")
        return _describe(match)


@app.post("/search")
def search_move(req: SearchRequest = SearchRequest()):
    cfg = copy.deepcopy(CONFIG)
    if req.engine is not None:
        cfg.search.engine = req.engine
    if req.depth is not None:
        cfg.search.depth = req.depth
    if req.time_limit_ms is not None:
        cfg.search.time_limit_ms = req.time_limit_ms
    try:
        cfg.validate()
    except ConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))

    with _match_lock:
        if match.status().is_over():
            raise HTTPException(status_code=400, detail="Game is already over")
        cfg.game.anti = match.is_anti
        board = match.board.copy()
        color = match.current

    engine = Engine(cfg)
    try:
        result = engine.search.search_best_move(board, color)
    except NoLegalMoveError:
        raise HTTPException(status_code=400, detail="Side to move must pass")
    return {
        "best_move": result.move.to_ab(),
        "engine": engine.name,
        "elapsed_ms": result.elapsed_ms,
        "board": board.to_string(),
    }


@app.post("/reset")
def reset_board(req: ResetRequest = ResetRequest()):
    global match
    black_hole = None
    if req.black_hole:
        black_hole = Point.from_ab(req.black_hole)
        if black_hole is None:
            raise HTTPException(status_code=400, detail=f"Invalid coordinate: {req.black_hole}")
    with _match_lock:
        anti = CONFIG.game.anti if req.anti is None else req.anti
        try:
            match = Match.new(Cell.BLACK, anti, black_hole)
        except BoardFormatError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _describe(match)
