"""Command line entry point: configure, then play one match over stdin/stdout."""

import argparse
import atexit
import copy
import logging
import logging.handlers
import os
import queue
import sys
from typing import List, Optional, Tuple

from reversi_engine import __version__
from reversi_engine.config import CONFIG, ENGINES, Config, ConfigError
from reversi_engine.main import Engine
from interface.protocol import Channel, ChannelClosed, ProtocolError, Runner

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="reversi-bot", description="Black-hole Reversi bot")
    parser.add_argument("-v", "--version", action="store_true", help="Show version")
    parser.add_argument("--max-depth", type=int, default=None, help="Maximum tree depth (only for minimax)")
    parser.add_argument("-t", "--time-limit", type=int, default=None,
                        help="Time limit per move in milliseconds (only for MCTS)")
    parser.add_argument("--bot-impl", choices=ENGINES, default=None, help="Search implementation")
    parser.add_argument("--mcts-exp", type=float, default=None, help="MCTS exploration constant")
    parser.add_argument("--no-anti", action="store_true", help="Play regular reversi")
    parser.add_argument("--no-blackhole", action="store_true", help="Disable BlackHole mode")
    parser.add_argument("--log", default=None, help="File for logging")
    parser.add_argument("--log-level", default=None, help="Logging level (DEBUG, INFO, ...)")
    parser.add_argument("--seed", type=int, default=None, help="Seed for MCTS playouts")
    return parser


def build_config(args: argparse.Namespace, base: Config, environ=os.environ) -> Config:
    """Config file values, then environment, then command line flags."""
    cfg = copy.deepcopy(base).apply_env(environ)
    if args.max_depth is not None:
        cfg.search.depth = args.max_depth
    if args.time_limit is not None:
        cfg.search.time_limit_ms = args.time_limit
    if args.bot_impl is not None:
        cfg.search.engine = args.bot_impl
    if args.mcts_exp is not None:
        cfg.search.exploration = args.mcts_exp
    if args.seed is not None:
        cfg.search.seed = args.seed
    if args.no_anti:
        cfg.game.anti = False
    if args.no_blackhole:
        cfg.game.black_hole = False
    if args.log is not None:
        cfg.log_file = args.log
    if args.log_level is not None:
        cfg.log_level = args.log_level.upper()
    return cfg.validate()


def setup_logging(cfg: Config) -> Tuple[logging.Handler, Optional[logging.handlers.QueueListener]]:
    """Route records through a queue so search threads never wait on file I/O.

    Without a log file only warnings reach stderr; stdout belongs to the
    protocol.
    """
    root = logging.getLogger()
    root.setLevel(cfg.log_level.upper())
    if cfg.log_file is None:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.WARNING)
        root.addHandler(handler)
        return handler, None

    file_handler = logging.FileHandler(cfg.log_file, mode="w", encoding="utf-8")
    file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    records: "queue.Queue[logging.LogRecord]" = queue.Queue()
    handler = logging.handlers.QueueHandler(records)
    root.addHandler(handler)
    listener = logging.handlers.QueueListener(records, file_handler)
    listener.start()
    atexit.register(listener.stop)
    return handler, listener


def teardown_logging(handler: logging.Handler, listener: Optional[logging.handlers.QueueListener]) -> None:
    logging.getLogger().removeHandler(handler)
    if listener is not None:
        listener.stop()
        atexit.unregister(listener.stop)
        for h in listener.handlers:
            h.close()


def main(argv: Optional[List[str]] = None, stdin=None, stdout=None) -> int:
    args = build_parser().parse_args(argv)
    if args.version:
        print(__version__, file=stdout or sys.stdout)
        return 0
    try:
        cfg = build_config(args, CONFIG)
    except ConfigError as e:
        print(f"configuration error: {e}", file=sys.stderr)
        return 2

    handler, listener = setup_logging(cfg)
    runner = Runner(Engine(cfg), Channel(stdin, stdout), cfg.game.black_hole, cfg.game.anti)
    try:
        runner.run()
    except ChannelClosed:
        logger.info("arbiter closed the channel")
    except ProtocolError as e:
        logger.error("protocol error: %s", e)
        return 1
    finally:
        teardown_logging(handler, listener)
    return 0


if __name__ == "__main__":
    sys.exit(main())
