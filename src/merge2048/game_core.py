from __future__ import annotations
from dataclasses import dataclass
from itertools import count
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar
import logging
import random


logger = logging.getLogger(__name__)

SIZE = 4

# 行为定义：0=上, 1=右, 2=下, 3=左
ACTIONS: Tuple[int, int, int, int] = (0, 1, 2, 3)
ACTION_NAMES: Dict[int, str] = {0: "UP", 1: "RIGHT", 2: "DOWN", 3: "LEFT"}


@dataclass(frozen=True)
class Tile:
    value: int
    id: int


@dataclass
class EngineConfig:
    win_value: int = 2048
    four_probability: float = 0.1
    start_tiles: int = 2


Grid = List[List[Optional[Tile]]]
Observer = Callable[["Game2048Core"], None]
T = TypeVar("T")


def _build_lines() -> Dict[int, List[List[Tuple[int, int]]]]:
    # 每条线从移动方向的前沿开始排列
    lines: Dict[int, List[List[Tuple[int, int]]]] = {}
    lines[0] = [[(r, c) for r in range(SIZE)] for c in range(SIZE)]
    lines[1] = [[(r, c) for c in reversed(range(SIZE))] for r in range(SIZE)]
    lines[2] = [[(r, c) for r in reversed(range(SIZE))] for c in range(SIZE)]
    lines[3] = [[(r, c) for c in range(SIZE)] for r in range(SIZE)]
    return lines


LINES = _build_lines()


def collapse(items: Sequence[T], value_of: Callable[[T], int], combine: Callable[[T], T]) -> Tuple[List[T], int]:
    """
    Merge adjacent equal items toward index 0; ``items`` holds no gaps.
    Returns (collapsed, gained). A merged item never merges again.
    """
    out: List[T] = []
    gained = 0
    i = 0
    while i < len(items):
        if i + 1 < len(items) and value_of(items[i]) == value_of(items[i + 1]):
            merged = combine(items[i])
            out.append(merged)
            gained += value_of(merged)
            i += 2
        else:
            out.append(items[i])
            i += 1
    return out, gained


def merge_values(line: Sequence[int]) -> Tuple[List[int], int]:
    """Collapse one line of values toward index 0; returns (new_line, gained)."""
    out, gained = collapse([x for x in line if x != 0], int, lambda v: v * 2)
    out += [0] * (len(line) - len(out))
    return out, gained


def has_moves(values: Sequence[Sequence[int]]) -> bool:
    """True when the value grid has an empty cell or an adjacent equal pair."""
    # 任一空格
    if any(0 in row for row in values):
        return True
    # 任一相邻可合并
    for r in range(SIZE):
        for c in range(SIZE):
            v = values[r][c]
            if r + 1 < SIZE and values[r + 1][c] == v:
                return True
            if c + 1 < SIZE and values[r][c + 1] == v:
                return True
    return False


def _is_power_of_two(v: int) -> bool:
    return v >= 2 and (v & (v - 1)) == 0


class Game2048Core:
    """
    Authoritative state of one 4x4 game.

    The grid holds ``Tile`` objects or ``None``. Every mutation goes through
    ``new_game``, ``move``, ``undo`` or ``load_state`` and leaves the grid,
    score and one-slot history consistent; ``won`` and ``lost`` are
    recomputed after each of them.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        config: Optional[EngineConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.size = SIZE
        self.config = config or EngineConfig()
        self.rng = rng if rng is not None else random.Random(seed)
        self.grid: Grid = [[None] * SIZE for _ in range(SIZE)]
        self.score: int = 0
        self.won: bool = False
        self.lost: bool = False
        self.last_gain: int = 0
        self.last_merged_ids: List[int] = []
        self.last_spawned: Optional[Tuple[int, int, Tile]] = None
        self._history: Optional[Tuple[Grid, int]] = None
        self._ids = count(1)
        self._observers: List[Observer] = []
        self._started = False

    # ---- 生命周期 ----

    def new_game(self, seed: Optional[int] = None) -> List[List[int]]:
        if seed is not None:
            self.rng.seed(seed)
        self.grid = [[None] * SIZE for _ in range(SIZE)]
        self.score = 0
        self._history = None
        self._reset_hints()
        self._started = True
        for _ in range(self.config.start_tiles):
            self._spawn_tile()
        self._refresh_terminal()
        logger.debug("new game, tiles=%s", self.get_state())
        self._notify()
        return self.get_state()

    reset = new_game

    def load_state(self, values: Sequence[Sequence[int]], score: int = 0) -> List[List[int]]:
        """Install an explicit value grid (0 = empty). History is cleared."""
        if len(values) != SIZE or any(len(row) != SIZE for row in values):
            raise ValueError(f"Grid must be {SIZE}x{SIZE}")
        for row in values:
            for v in row:
                if v != 0 and not _is_power_of_two(int(v)):
                    raise ValueError(f"Invalid tile value: {v}")
        if score < 0:
            raise ValueError("Score must be non-negative")
        self.grid = [
            [Tile(int(v), next(self._ids)) if v else None for v in row]
            for row in values
        ]
        self.score = int(score)
        self._history = None
        self._reset_hints()
        self._started = True
        self._refresh_terminal()
        self._notify()
        return self.get_state()

    # ---- 读取 ----

    @property
    def can_undo(self) -> bool:
        return self._history is not None

    def get_state(self) -> List[List[int]]:
        return [[t.value if t is not None else 0 for t in row] for row in self.grid]

    def get_ids(self) -> List[List[Optional[int]]]:
        return [[t.id if t is not None else None for t in row] for row in self.grid]

    def tiles(self) -> List[Tuple[int, int, Tile]]:
        return [
            (r, c, t)
            for r, row in enumerate(self.grid)
            for c, t in enumerate(row)
            if t is not None
        ]

    def is_over(self) -> bool:
        return self.lost

    def max_tile(self) -> int:
        return max(max(row) for row in self.get_state())

    def legal_actions(self) -> List[int]:
        # 只在数值副本上模拟，不修改棋盘
        values = self.get_state()
        legal = []
        for a in ACTIONS:
            for line in LINES[a]:
                before = [values[r][c] for r, c in line]
                after, _ = merge_values(before)
                if after != before:
                    legal.append(a)
                    break
        return legal

    # ---- 观察者 ----

    def subscribe(self, callback: Observer) -> Callable[[], None]:
        self._observers.append(callback)

        def unsubscribe() -> None:
            if callback in self._observers:
                self._observers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for cb in list(self._observers):
            cb(self)

    # ---- 变更 ----

    def move(self, action: int) -> bool:
        """
        Slide and merge toward ``action``. Returns True when the board changed;
        a move that changes nothing leaves score, history and tiles untouched
        and clears the last_* animation hints.
        """
        if isinstance(action, bool) or not isinstance(action, int) or action not in ACTIONS:
            raise ValueError(f"Invalid action: {action!r}")
        self._require_started()

        before_values = self.get_state()
        pending = (self._copy_grid(self.grid), self.score)

        new_grid, gained, merged_ids = self._resolve(self.grid, action)
        after_values = [[t.value if t is not None else 0 for t in row] for row in new_grid]

        if after_values == before_values:
            self._reset_hints()
            logger.debug("move %s changed nothing", ACTION_NAMES[action])
            return False

        self._history = pending
        self.grid = new_grid
        self.score += gained
        self.last_gain = gained
        self.last_merged_ids = merged_ids
        self.last_spawned = self._spawn_tile()
        self._refresh_terminal()
        logger.debug("move %s: +%d, score=%d", ACTION_NAMES[action], gained, self.score)
        self._notify()
        return True

    def undo(self) -> bool:
        self._require_started()
        if self._history is None:
            return False
        grid, score = self._history
        self.grid = grid
        self.score = score
        self._history = None
        self._reset_hints()
        self._refresh_terminal()
        logger.debug("undo, score=%d", self.score)
        self._notify()
        return True

    def step(self, action: int) -> Tuple[List[List[int]], int, bool, Dict]:
        if self.lost:
            return self.get_state(), 0, True, {"score": self.score}
        moved = self.move(action)
        reward = self.last_gain if moved else 0
        return self.get_state(), reward, self.lost, {"score": self.score, "moved": moved}

    # ---- 内部 ----

    def _require_started(self) -> None:
        if not self._started:
            raise RuntimeError("Game not started; call new_game() first")

    def _reset_hints(self) -> None:
        self.last_gain = 0
        self.last_merged_ids = []
        self.last_spawned = None

    @staticmethod
    def _copy_grid(grid: Grid) -> Grid:
        # Tile 不可变，复制行即可
        return [row[:] for row in grid]

    def _resolve(self, grid: Grid, action: int) -> Tuple[Grid, int, List[int]]:
        out = self._copy_grid(grid)
        total = 0
        merged_ids: List[int] = []

        def merge(tile: Tile) -> Tile:
            # 合并产生新身份，两块源方块被消耗
            merged = Tile(tile.value * 2, next(self._ids))
            merged_ids.append(merged.id)
            return merged

        for line in LINES[action]:
            tiles = [grid[r][c] for r, c in line if grid[r][c] is not None]
            collapsed: List[Optional[Tile]]
            collapsed, gained = collapse(tiles, lambda t: t.value, merge)
            total += gained
            collapsed += [None] * (SIZE - len(collapsed))
            for (r, c), t in zip(line, collapsed):
                out[r][c] = t
        return out, total, merged_ids

    def _spawn_tile(self) -> Optional[Tuple[int, int, Tile]]:
        empties = [(r, c) for r in range(SIZE) for c in range(SIZE) if self.grid[r][c] is None]
        if not empties:
            return None
        r, c = self.rng.choice(empties)
        value = 4 if self.rng.random() < self.config.four_probability else 2
        tile = Tile(value, next(self._ids))
        self.grid[r][c] = tile
        return r, c, tile

    def _refresh_terminal(self) -> None:
        values = self.get_state()
        won = any(v >= self.config.win_value for row in values for v in row)
        lost = not has_moves(values)
        if won and not self.won:
            logger.debug("winning tile reached (>= %d)", self.config.win_value)
        if lost and not self.lost:
            logger.debug("no moves left, final score=%d", self.score)
        self.won = won
        self.lost = lost
