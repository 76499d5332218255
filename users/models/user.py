from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Account that owns consent forms, runs games as DM or joins them."""

    display_name = models.CharField(  # type: ignore[var-annotated]
        max_length=100,
        blank=True,
        unique=True,
        null=True,
        help_text="Name shown to the other people at the table",
    )

    created_at = models.DateTimeField(auto_now_add=True)  # type: ignore[var-annotated]
    updated_at = models.DateTimeField(auto_now=True)  # type: ignore[var-annotated]

    class Meta:
        db_table = "users_user"
        ordering = ["username"]
        verbose_name = "User"
        verbose_name_plural = "Users"

    def get_display_name(self) -> str:
        return self.display_name or self.username

    def save(self, *args, **kwargs):
        # NULL, not "", so several users may leave it unset
        if not self.display_name:
            self.display_name = None
        super().save(*args, **kwargs)
