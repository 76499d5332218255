"""Game-based permission helpers.

All permission denials return 404 Not Found to hide game existence.
"""

from typing import Optional, Tuple, Union

from django.contrib.auth.models import AnonymousUser
from rest_framework import status
from rest_framework.response import Response

from .models import Game

DM = "DM"
PLAYER = "PLAYER"


def get_user_game_role(user, game: Game) -> Optional[str]:
    """Return DM, PLAYER or None for the user's relationship to the game."""
    if isinstance(user, AnonymousUser):
        return None
    if game.is_dm(user):
        return DM
    if game.is_player(user):
        return PLAYER
    return None


def get_game_with_permissions(
    game_id, user, dm_only: bool = False
) -> Union[Tuple[Game, str], Response]:
    """
    Retrieve a game and validate the user's access for API views.

    Args:
        game_id: The game ID to retrieve
        user: The requesting user
        dm_only: Whether only the game's DM may access it

    Returns:
        tuple: (game, role) if authorized, otherwise a 404 Response
    """
    not_found = Response(
        {"detail": "Game not found."}, status=status.HTTP_404_NOT_FOUND
    )
    try:
        game = Game.objects.select_related("dm").get(id=game_id)
    except (Game.DoesNotExist, ValueError, TypeError):
        return not_found

    role = get_user_game_role(user, game)
    if role is None or (dm_only and role != DM):
        return not_found

    return game, role
