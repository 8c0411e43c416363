import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
from tqdm import trange

from merge2048.game_core import EngineConfig
from merge2048.sim.rollout import EpisodeResult, make_policy, play_episode


logger = logging.getLogger(__name__)


@dataclass
class BatchSummary:
    games: int
    mean_score: float
    median_score: float
    max_score: int
    win_rate: float
    mean_steps: float
    tile_counts: Dict[int, int] = field(default_factory=dict)
    results: List[EpisodeResult] = field(default_factory=list)

    def lines(self) -> List[str]:
        out = [
            f"Games: {self.games}",
            f"Score mean={self.mean_score:.1f} median={self.median_score:.1f} max={self.max_score}",
            f"Steps mean={self.mean_steps:.1f}",
            f"Win rate: {self.win_rate * 100:.1f}%",
        ]
        for tile in sorted(self.tile_counts):
            out.append(f"  max tile {tile:>5d}: {self.tile_counts[tile]}")
        return out


def summarize(results: List[EpisodeResult]) -> BatchSummary:
    if not results:
        raise ValueError("No episodes to summarize")
    scores = np.array([r.score for r in results], dtype=np.int64)
    steps = np.array([r.steps for r in results], dtype=np.int64)
    wins = np.array([r.won for r in results], dtype=bool)
    return BatchSummary(
        games=len(results),
        mean_score=float(scores.mean()),
        median_score=float(np.median(scores)),
        max_score=int(scores.max()),
        win_rate=float(wins.mean()),
        mean_steps=float(steps.mean()),
        tile_counts=dict(Counter(r.max_tile for r in results)),
        results=list(results),
    )


def run_batch(
    policy_name: str = "random",
    games: int = 100,
    seed: int = 42,
    max_steps: int = 10_000,
    config: Optional[EngineConfig] = None,
    progress: bool = True,
) -> BatchSummary:
    if games <= 0:
        raise ValueError("games must be positive")
    # 每局使用 seed + i，保证整批可复现
    policy = make_policy(policy_name, seed=seed)
    results: List[EpisodeResult] = []
    best = 0
    for i in trange(games, desc=f"Playing ({policy_name})", disable=not progress):
        result = play_episode(policy, seed=seed + i, max_steps=max_steps, config=config)
        results.append(result)
        if result.score > best:
            best = result.score
            logger.info("game %d: new best score %d (max tile %d)", i, result.score, result.max_tile)
    return summarize(results)
