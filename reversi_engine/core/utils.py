from typing import Iterable, Optional, Tuple


def format_info(engine, move, score, nodes, elapsed_ms, depth: Optional[int] = None) -> str:
    nps = int(nodes * 1000 / elapsed_ms) if elapsed_ms > 0 else 0
    depth_str = f" depth {depth}" if depth is not None else ""
    return (
        f"info engine {engine}{depth_str} move {move.to_ab()} score {score} "
        f"nodes {nodes} nps {nps} time {int(elapsed_ms)}"
    )


def format_ratios(stats: Iterable[Tuple[str, int, int]]) -> str:
    """'D3 12/40, C4 30/41' from (coordinate, wins, visits) triples."""
    return ", ".join(f"{ab} {wins}/{visits}" for ab, wins, visits in stats)
