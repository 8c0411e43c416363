import random
from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np

from merge2048.game_core import ACTIONS, EngineConfig, Game2048Core


Policy = Callable[[List[List[int]], List[int]], Optional[int]]


@dataclass
class EpisodeResult:
    score: int
    max_tile: int
    steps: int
    won: bool


# 观测：将每个格子转为 log2(value)/16 的浮点数（空为0）
def board_to_obs(state: List[List[int]]) -> np.ndarray:
    arr = np.array(state, dtype=np.int64)
    obs = np.zeros_like(arr, dtype=np.float32)
    nz = arr > 0
    if np.any(nz):
        obs[nz] = np.log2(arr[nz]).astype(np.float32) / 16.0
    return obs.flatten()


def random_policy(rng: random.Random) -> Policy:
    def act(state: List[List[int]], legal: List[int]) -> Optional[int]:
        return rng.choice(legal) if legal else None
    return act


def first_legal_policy(state: List[List[int]], legal: List[int]) -> Optional[int]:
    # 上右下左中第一个合法
    for a in ACTIONS:
        if a in legal:
            return a
    return None


CORNER_ORDER = (3, 2, 1, 0)


def corner_policy(state: List[List[int]], legal: List[int]) -> Optional[int]:
    # 尽量把大块压在左下角
    for a in CORNER_ORDER:
        if a in legal:
            return a
    return None


def make_policy(name: str, seed: Optional[int] = None) -> Policy:
    if name == "random":
        return random_policy(random.Random(seed))
    if name == "first":
        return first_legal_policy
    if name == "corner":
        return corner_policy
    raise ValueError(f"Unknown policy: {name}")


POLICY_NAMES = ("random", "first", "corner")


def play_episode(
    policy: Policy,
    seed: Optional[int] = None,
    max_steps: int = 10_000,
    config: Optional[EngineConfig] = None,
) -> EpisodeResult:
    core = Game2048Core(seed=seed, config=config)
    state = core.new_game()
    steps = 0
    while not core.is_over() and steps < max_steps:
        legal = core.legal_actions()
        action = policy(state, legal)
        if action is None:
            break
        state, _, _, _ = core.step(action)
        steps += 1
    return EpisodeResult(score=core.score, max_tile=core.max_tile(), steps=steps, won=core.won)
