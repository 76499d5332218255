"""
API serializers for the consent application.
"""

from django.contrib.auth import get_user_model
from rest_framework import serializers

from consent.models import ConsentForm, ConsentResponse
from consent.topics import MOVIE_RATINGS
from games.models import MIN_PLAYERS_LIMIT, Game, GamePlayer
from games.permissions import get_user_game_role
from games.services.aggregation import TopicStatus

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """Public view of a user."""

    display_name = serializers.CharField(source="get_display_name", read_only=True)

    class Meta:
        model = User
        fields = ("id", "username", "display_name")
        read_only_fields = fields


class ConsentResponseSerializer(serializers.ModelSerializer):
    """Serializer for a single topic rating."""

    class Meta:
        model = ConsentResponse
        fields = ("topic_category", "topic_name", "comfort_level", "is_custom")


class ConsentFormSerializer(serializers.ModelSerializer):
    """
    Read serializer for consent forms.

    The share token is only included for the form's owner.
    """

    owner = UserSerializer(read_only=True)
    responses = ConsentResponseSerializer(many=True, read_only=True)

    class Meta:
        model = ConsentForm
        fields = (
            "id",
            "owner",
            "name",
            "is_public",
            "movie_rating",
            "movie_rating_other",
            "follow_up_response",
            "share_token",
            "responses",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields

    def to_representation(self, instance):
        data = super().to_representation(instance)
        request = self.context.get("request")
        user = getattr(request, "user", None)
        if user is None or instance.owner_id != user.pk:
            data.pop("share_token", None)
        return data


class ConsentFormWriteSerializer(serializers.Serializer):
    """
    Input for creating or replacing a consent form.

    Responses are validated as a complete set by ConsentFormService.
    """

    name = serializers.CharField(max_length=255)
    is_public = serializers.BooleanField(default=False)
    movie_rating = serializers.ChoiceField(
        choices=MOVIE_RATINGS, required=False, allow_blank=True, default=""
    )
    movie_rating_other = serializers.CharField(
        max_length=255, required=False, allow_blank=True, default=""
    )
    follow_up_response = serializers.CharField(
        required=False, allow_blank=True, default=""
    )
    responses = serializers.ListField(child=serializers.DictField())


class GamePlayerSerializer(serializers.ModelSerializer):
    """
    Roster entry as shown to the DM and other players.

    Only says whether a form was shared, never which one.
    """

    player = UserSerializer(read_only=True)
    has_shared_consent_form = serializers.BooleanField(read_only=True)

    class Meta:
        model = GamePlayer
        fields = ("id", "player", "status", "joined_at", "has_shared_consent_form")
        read_only_fields = fields


class GameSerializer(serializers.ModelSerializer):
    """Serializer for Game model."""

    dm = UserSerializer(read_only=True)
    user_role = serializers.SerializerMethodField()
    player_count = serializers.SerializerMethodField()

    class Meta:
        model = Game
        fields = (
            "id",
            "name",
            "description",
            "dm",
            "game_code",
            "status",
            "minimum_players",
            "user_role",
            "player_count",
            "created_at",
            "updated_at",
        )
        read_only_fields = (
            "id",
            "dm",
            "game_code",
            "user_role",
            "player_count",
            "created_at",
            "updated_at",
        )

    def get_user_role(self, obj):
        """Return DM or PLAYER for the requesting user."""
        request = self.context.get("request")
        if not request:
            return None
        return get_user_game_role(request.user, obj)

    def get_player_count(self, obj):
        """Return the number of joined players."""
        return obj.players.filter(status=GamePlayer.JOINED).count()


class GameDetailSerializer(GameSerializer):
    """Game with its roster."""

    players = GamePlayerSerializer(many=True, read_only=True)

    class Meta(GameSerializer.Meta):
        fields = GameSerializer.Meta.fields + ("players",)
        read_only_fields = GameSerializer.Meta.read_only_fields + ("players",)


class GameWriteSerializer(serializers.Serializer):
    """Input for creating or updating a game."""

    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=Game.STATUS_CHOICES, required=False)
    minimum_players = serializers.IntegerField(
        min_value=1, max_value=MIN_PLAYERS_LIMIT, required=False
    )
    game_code = serializers.CharField(required=False)


class JoinGameSerializer(serializers.Serializer):
    """Input for joining a game by code."""

    game_code = serializers.CharField(max_length=20)


class ShareFormSerializer(serializers.Serializer):
    """Input for sharing a consent form with a game."""

    consent_form_id = serializers.IntegerField()


class TopicVerdictSerializer(serializers.Serializer):
    """Counts and verdict for one topic of the aggregate."""

    status = serializers.ChoiceField(choices=TopicStatus.CHOICES)
    red_count = serializers.IntegerField()
    yellow_count = serializers.IntegerField()
    green_count = serializers.IntegerField()
    total_count = serializers.IntegerField()
    is_custom = serializers.BooleanField()


class GameConsentOverviewSerializer(serializers.Serializer):
    """DM-facing consent overview; aggregate is null while the gate is closed."""

    game_id = serializers.IntegerField()
    game_name = serializers.CharField()
    minimum_players = serializers.IntegerField()
    shared_count = serializers.IntegerField()
    joined_count = serializers.IntegerField()
    can_disclose = serializers.BooleanField()
    meets_minimum_threshold = serializers.BooleanField()
    aggregate = serializers.DictField(
        child=serializers.DictField(child=TopicVerdictSerializer()), allow_null=True
    )
