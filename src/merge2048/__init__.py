from merge2048.game_core import (
    ACTIONS,
    ACTION_NAMES,
    EngineConfig,
    Game2048Core,
    Tile,
)
from merge2048.api import Game2048Env, parse_direction

__all__ = [
    "ACTIONS",
    "ACTION_NAMES",
    "EngineConfig",
    "Game2048Core",
    "Game2048Env",
    "Tile",
    "parse_direction",
]
