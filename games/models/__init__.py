from .game import (
    MIN_PLAYERS_LIMIT,
    Game,
    GamePlayer,
    normalize_game_code,
)

__all__ = ["Game", "GamePlayer", "MIN_PLAYERS_LIMIT", "normalize_game_code"]
