"""
API views for games, roster membership and the DM's consent overview.

Key Features:
- Game lookup through get_game_with_permissions, which hides games from
  users who are neither the DM nor on the roster
- Roster entries expose only whether a form was shared, never which one
- The consent overview carries aggregate data only while the sharing gate
  is open
"""

import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from api.errors import APIError, handle_common_api_exceptions
from api.messages import ErrorMessages
from api.serializers import (
    GameConsentOverviewSerializer,
    GameDetailSerializer,
    GamePlayerSerializer,
    GameSerializer,
    GameWriteSerializer,
    JoinGameSerializer,
    ShareFormSerializer,
)
from consent.models import ConsentForm
from games.models import Game
from games.permissions import DM, get_game_with_permissions
from games.services import GameConsentService, GameService, RosterService

logger = logging.getLogger(__name__)


@api_view(["GET", "POST"])
@permission_classes([IsAuthenticated])
@handle_common_api_exceptions
def game_list_view(request):
    """List the games the user runs or plays in, or create a new game."""
    if request.method == "GET":
        games = Game.objects.visible_to_user(request.user).select_related("dm")
        serializer = GameSerializer(games, many=True, context={"request": request})
        return Response(serializer.data, status=status.HTTP_200_OK)

    serializer = GameWriteSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = dict(serializer.validated_data)
    data.pop("game_code", None)
    game = GameService().create_game(request.user, **data)
    return Response(
        GameSerializer(game, context={"request": request}).data,
        status=status.HTTP_201_CREATED,
    )


@api_view(["GET", "PUT", "DELETE"])
@permission_classes([IsAuthenticated])
@handle_common_api_exceptions
def game_detail_view(request, game_id):
    """Get a game with its roster; the DM can also update or delete it."""
    result = get_game_with_permissions(game_id, request.user)
    if isinstance(result, Response):
        return result
    game, role = result

    if request.method == "GET":
        return Response(
            GameDetailSerializer(game, context={"request": request}).data,
            status=status.HTTP_200_OK,
        )

    if role != DM:
        return APIError.permission_denied()

    service = GameService(game)

    if request.method == "PUT":
        serializer = GameWriteSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        game = service.update_game(request.user, **serializer.validated_data)
        return Response(
            GameSerializer(game, context={"request": request}).data,
            status=status.HTTP_200_OK,
        )

    service.delete_game(request.user)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
@handle_common_api_exceptions
def join_game_view(request):
    """Join a game with its game code."""
    serializer = JoinGameSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    entry = RosterService.join_by_code(serializer.validated_data["game_code"], request.user)
    logger.info(f"{request.user.username} joined game {entry.game_id} via API")
    return Response(
        GameSerializer(entry.game, context={"request": request}).data,
        status=status.HTTP_200_OK,
    )


@api_view(["POST", "DELETE"])
@permission_classes([IsAuthenticated])
@handle_common_api_exceptions
def game_share_view(request, game_id):
    """Share one of the user's consent forms with a game, or stop sharing."""
    result = get_game_with_permissions(game_id, request.user)
    if isinstance(result, Response):
        return result
    game, _role = result
    service = RosterService(game)

    if request.method == "DELETE":
        entry = service.unshare_form(request.user)
        return Response(GamePlayerSerializer(entry).data, status=status.HTTP_200_OK)

    serializer = ShareFormSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        form = ConsentForm.objects.get(
            id=serializer.validated_data["consent_form_id"], owner=request.user
        )
    except ConsentForm.DoesNotExist:
        return APIError.not_found(ErrorMessages.CONSENT_FORM_NOT_FOUND)

    entry = service.share_form(request.user, form)
    return Response(GamePlayerSerializer(entry).data, status=status.HTTP_200_OK)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
@handle_common_api_exceptions
def leave_game_view(request, game_id):
    """Leave a game."""
    result = get_game_with_permissions(game_id, request.user)
    if isinstance(result, Response):
        return result
    game, _role = result

    entry = RosterService(game).leave_game(request.user)
    return Response(GamePlayerSerializer(entry).data, status=status.HTTP_200_OK)


@api_view(["GET"])
@permission_classes([IsAuthenticated])
@handle_common_api_exceptions
def game_consent_view(request, game_id):
    """Return the DM's consent overview for a game."""
    result = get_game_with_permissions(game_id, request.user, dm_only=True)
    if isinstance(result, Response):
        return result
    game, _role = result

    overview = GameConsentService(game).get_consent_overview(request.user)
    return Response(
        GameConsentOverviewSerializer(overview).data, status=status.HTTP_200_OK
    )
