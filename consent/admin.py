from django.contrib import admin
from django.db.models import Count

from .models import ConsentForm, ConsentResponse


class ConsentResponseInline(admin.TabularInline):
    """Inline admin for the responses of a consent form."""

    model = ConsentResponse
    extra = 0
    fields = ["topic_category", "topic_name", "comfort_level", "is_custom"]
    ordering = ["topic_category", "topic_name"]


@admin.register(ConsentForm)
class ConsentFormAdmin(admin.ModelAdmin):
    """Admin configuration for ConsentForm model."""

    list_display = ["name", "owner", "is_public", "response_count", "created_at"]
    list_filter = ["is_public", "movie_rating", "created_at"]
    search_fields = ["name", "owner__username", "owner__email"]
    readonly_fields = ["share_token", "created_at", "updated_at"]
    date_hierarchy = "created_at"
    raw_id_fields = ["owner"]
    inlines = [ConsentResponseInline]

    fieldsets = [
        ("Basic Information", {"fields": ["name", "owner", "is_public"]}),
        (
            "Checklist",
            {"fields": ["movie_rating", "movie_rating_other", "follow_up_response"]},
        ),
        (
            "Sharing",
            {
                "fields": ["share_token"],
                "description": "The share token is generated once and never changes.",
            },
        ),
        ("Timestamps", {"fields": ["created_at", "updated_at"], "classes": ["collapse"]}),
    ]

    def get_queryset(self, request):
        return (
            super()
            .get_queryset(request)
            .select_related("owner")
            .annotate(_response_count=Count("responses"))
        )

    @admin.display(description="Responses", ordering="_response_count")
    def response_count(self, obj):
        return obj._response_count


@admin.register(ConsentResponse)
class ConsentResponseAdmin(admin.ModelAdmin):
    """Admin configuration for ConsentResponse model."""

    list_display = [
        "topic_category",
        "topic_name",
        "comfort_level",
        "is_custom",
        "consent_form",
    ]
    list_filter = ["comfort_level", "is_custom", "topic_category"]
    search_fields = ["topic_name", "topic_category", "consent_form__name"]
    raw_id_fields = ["consent_form"]
