from __future__ import annotations
from typing import Callable, Dict, List, MutableMapping, Optional, Tuple, Union
from merge2048.game_core import (
    ACTIONS,
    ACTION_NAMES,
    EngineConfig,
    Game2048Core,
)


BEST_SCORE_KEY = "best_score"
DIRECTIONS: Dict[str, int] = {name.lower(): a for a, name in ACTION_NAMES.items()}

__all__ = ["BEST_SCORE_KEY", "DIRECTIONS", "Game2048Env", "parse_direction"]


def parse_direction(value: Union[int, str]) -> int:
    if isinstance(value, str):
        key = value.strip().lower()
        if key in DIRECTIONS:
            return DIRECTIONS[key]
    elif isinstance(value, int) and not isinstance(value, bool) and value in ACTIONS:
        return value
    raise ValueError(f"Invalid direction: {value!r}")


class Game2048Env:
    """
    Facade for a presentation layer:
    - new_game / reset(seed) -> state
    - move(direction) -> bool, direction is an action int or "up"/"right"/"down"/"left"
    - undo() -> bool
    - step(action) -> (state, reward, done, info)
    - get_state() / get_ids() / legal_actions()
    - score, best_score, can_undo, won, lost properties

    The best score lives in ``store`` (any mutable mapping); saving it across
    sessions is up to the caller.
    """
    def __init__(
        self,
        seed: Optional[int] = None,
        config: Optional[EngineConfig] = None,
        store: Optional[MutableMapping[str, int]] = None,
    ):
        self.core = Game2048Core(seed=seed, config=config)
        self.store: MutableMapping[str, int] = store if store is not None else {}
        self.core.subscribe(self._track_best)

    @property
    def score(self) -> int:
        return self.core.score

    @property
    def best_score(self) -> int:
        return max(self.store.get(BEST_SCORE_KEY, 0), self.core.score)

    @property
    def can_undo(self) -> bool:
        return self.core.can_undo

    @property
    def won(self) -> bool:
        return self.core.won

    @property
    def lost(self) -> bool:
        return self.core.lost

    def new_game(self, seed: Optional[int] = None) -> List[List[int]]:
        return self.core.new_game(seed=seed)

    reset = new_game

    def move(self, direction: Union[int, str]) -> bool:
        return self.core.move(parse_direction(direction))

    def undo(self) -> bool:
        return self.core.undo()

    def step(self, action: Union[int, str]) -> Tuple[List[List[int]], int, bool, Dict]:
        return self.core.step(parse_direction(action))

    def get_state(self) -> List[List[int]]:
        return self.core.get_state()

    def get_ids(self) -> List[List[Optional[int]]]:
        return self.core.get_ids()

    def legal_actions(self) -> List[int]:
        return self.core.legal_actions()

    def is_over(self) -> bool:
        return self.core.is_over()

    def subscribe(self, callback: Callable[[Game2048Core], None]) -> Callable[[], None]:
        return self.core.subscribe(callback)

    def _track_best(self, core: Game2048Core) -> None:
        if core.score > self.store.get(BEST_SCORE_KEY, 0):
            self.store[BEST_SCORE_KEY] = core.score

