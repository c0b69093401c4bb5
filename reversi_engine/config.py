# reversi_engine/config.py
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Tuple
import math
import os
import tomllib  # python >=3.11

ENGINES = ("minimax", "mcts")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Octant weights in unmirror8 order: cells 0, 1, 2, 3, 9, 10, 11, 18, 19, 27.
# Corners are gold, the X-squares next to them are poison.
TILE_WEIGHTS: Tuple[int, ...] = (410, 23, 13, 8, -75, -22, -51, 41, 3, -87)


class ConfigError(ValueError):
    """Raised for configuration values the engine cannot run with."""


@dataclass
class SearchConfig:
    engine: str = "mcts"
    depth: int = 4  # plies, minimax only
    time_limit_ms: int = 4950  # per move, mcts only
    exploration: float = math.sqrt(2)
    threads: Optional[int] = None  # None means one worker per root move
    seed: Optional[int] = None
    max_iterations: Optional[int] = None  # per root-move tree, None means time-only


@dataclass
class GameConfig:
    anti: bool = True
    black_hole: bool = True  # the arbiter sends a black-hole coordinate first


@dataclass
class EvalConfig:
    tile_weights: List[int] = field(default_factory=lambda: list(TILE_WEIGHTS))
    mobility_weight: int = 8
    surrounded_neighbours: int = 6  # a cell with no empty neighbour counts as this many
    line_penalty: int = 86
    use_parity: bool = False


@dataclass
class UIConfig:
    engine_name: str = "HoleFlip"


@dataclass
class Config:
    search: SearchConfig = field(default_factory=SearchConfig)
    game: GameConfig = field(default_factory=GameConfig)
    eval: EvalConfig = field(default_factory=EvalConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @staticmethod
    def load_from_toml(path: str = "config.toml") -> "Config":
        cfg = Config()
        if not os.path.exists(path):
            return cfg
        with open(path, "rb") as f:
            raw = tomllib.load(f)
        for section in ("search", "game", "eval", "ui"):
            if section in raw:
                target = getattr(cfg, section)
                for k, v in raw[section].items():
                    if hasattr(target, k):
                        setattr(target, k, v)
        for k in ("log_level", "log_file"):
            if k in raw:
                setattr(cfg, k, raw[k])
        return cfg

    def apply_env(self, environ: Mapping[str, str]) -> "Config":
        """Apply the arbiter-style environment overrides in place."""
        try:
            if environ.get("MAX_DEPTH"):
                self.search.depth = int(environ["MAX_DEPTH"])
            if environ.get("MAX_TIME"):
                self.search.time_limit_ms = int(environ["MAX_TIME"])
            if environ.get("EXP"):
                self.search.exploration = float(environ["EXP"])
        except ValueError as e:
            raise ConfigError(f"bad numeric environment override: {e}") from e
        if environ.get("BOT_IMPL"):
            self.search.engine = environ["BOT_IMPL"]
        if environ.get("NO_ANTI"):
            self.game.anti = False
        if environ.get("NO_BLACKHOLE"):
            self.game.black_hole = False
        if environ.get("LOG"):
            self.log_file = environ["LOG"]
        return self

    def validate(self) -> "Config":
        s = self.search
        if s.engine not in ENGINES:
            raise ConfigError(f"unknown engine {s.engine!r}, expected one of {ENGINES}")
        if s.depth < 1:
            raise ConfigError("search depth must be at least 1")
        if s.time_limit_ms < 0:
            raise ConfigError("time limit must be non-negative")
        if s.exploration < 0:
            raise ConfigError("exploration constant must be non-negative")
        if s.threads is not None and s.threads < 1:
            raise ConfigError("threads must be positive")
        if s.max_iterations is not None and s.max_iterations < 1:
            raise ConfigError("max_iterations must be positive")
        if len(self.eval.tile_weights) != len(TILE_WEIGHTS):
            raise ConfigError(f"tile_weights needs {len(TILE_WEIGHTS)} octant values")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigError(f"unknown log level {self.log_level!r}")
        return self


# single globally importable config instance
CONFIG = Config.load_from_toml(os.environ.get("REVERSI_CONFIG_TOML", "config.toml"))
