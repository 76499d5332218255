from django.contrib import admin
from django.db.models import Count, F, Q
from django.utils.html import format_html

from .models import Game, GamePlayer


class SharingFilter(admin.SimpleListFilter):
    """Filter games by how far their players are with sharing."""

    title = "sharing"
    parameter_name = "sharing"

    def lookups(self, request, model_admin):
        return [
            ("complete", "Every joined player shared"),
            ("incomplete", "Waiting on players"),
        ]

    def queryset(self, request, queryset):
        # Counts are annotated by GameAdmin.get_queryset
        if self.value() == "complete":
            return queryset.filter(joined_count__gt=0, joined_count=F("shared_count"))
        if self.value() == "incomplete":
            return queryset.filter(joined_count__gt=F("shared_count"))
        return queryset


class GamePlayerInline(admin.TabularInline):
    """Inline admin for a game's roster."""

    model = GamePlayer
    extra = 0
    fields = ["player", "status", "consent_form", "joined_at"]
    readonly_fields = ["joined_at"]
    raw_id_fields = ["player", "consent_form"]

    def get_queryset(self, request):
        """Optimize inline queryset."""
        return super().get_queryset(request).select_related("player")


@admin.register(Game)
class GameAdmin(admin.ModelAdmin):
    """Admin configuration for Game model."""

    list_display = ["name", "dm", "game_code", "status", "sharing_display"]
    list_filter = ["status", "created_at", SharingFilter]
    search_fields = ["name", "game_code", "dm__username", "dm__email"]
    readonly_fields = ["game_code", "created_at", "updated_at"]
    date_hierarchy = "created_at"
    raw_id_fields = ["dm"]
    inlines = [GamePlayerInline]

    fieldsets = [
        (
            "Basic Information",
            {"fields": ["name", "description", "game_code", "status"]},
        ),
        (
            "Consent",
            {
                "fields": ["dm", "minimum_players"],
                "description": "The DM sees aggregated consent data only after "
                "every joined player has shared a form and at least "
                "minimum_players forms are shared.",
            },
        ),
        (
            "Timestamps",
            {"fields": ["created_at", "updated_at"], "classes": ["collapse"]},
        ),
    ]

    def get_queryset(self, request):
        """Optimize queryset with select_related and sharing counts."""
        return (
            super()
            .get_queryset(request)
            .select_related("dm")
            .annotate(
                joined_count=Count(
                    "players", filter=Q(players__status=GamePlayer.JOINED)
                ),
                shared_count=Count(
                    "players",
                    filter=Q(
                        players__status=GamePlayer.JOINED,
                        players__consent_form__isnull=False,
                    ),
                ),
            )
        )

    def sharing_display(self, obj):
        """Display how many joined players have shared a form."""
        return format_html(
            "<strong>Shared:</strong> {} / {} | <strong>Minimum:</strong> {}",
            getattr(obj, "shared_count", 0),
            getattr(obj, "joined_count", 0),
            obj.minimum_players,
        )

    sharing_display.short_description = "Sharing"
    sharing_display.admin_order_field = "shared_count"


@admin.register(GamePlayer)
class GamePlayerAdmin(admin.ModelAdmin):
    """Admin configuration for GamePlayer model."""

    list_display = ["player", "game", "status", "has_shared", "joined_at"]
    list_filter = ["status", "joined_at"]
    search_fields = ["player__username", "player__email", "game__name"]
    readonly_fields = ["joined_at"]
    date_hierarchy = "joined_at"
    raw_id_fields = ["player", "game", "consent_form"]

    def get_queryset(self, request):
        """Optimize queryset with select_related."""
        return super().get_queryset(request).select_related("player", "game")

    @admin.display(boolean=True, description="Shared form")
    def has_shared(self, obj):
        return obj.has_shared_consent_form()
