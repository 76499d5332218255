"""
Django signals for game roster changes.

These handlers log roster events (joins, leaves and sharing changes) so a
game's sharing history can be followed in the logs without exposing any
consent responses.
"""

import logging

from django.db.models.signals import post_save, pre_delete, pre_save
from django.dispatch import receiver

logger = logging.getLogger(__name__)


@receiver(pre_save, sender="games.GamePlayer")
def roster_entry_pre_save_handler(sender, instance, **kwargs):
    """Store the previous status and shared form before saving."""
    instance._old_status = None
    instance._old_consent_form_id = None
    if instance.pk:
        old = (
            sender.objects.filter(pk=instance.pk)
            .values("status", "consent_form_id")
            .first()
        )
        if old:
            instance._old_status = old["status"]
            instance._old_consent_form_id = old["consent_form_id"]


@receiver(post_save, sender="games.GamePlayer")
def roster_entry_saved_handler(sender, instance, created, **kwargs):
    """Log status and sharing changes for a roster entry."""
    if created:
        logger.info(
            f"Player {instance.player_id} added to game {instance.game_id} "
            f"as {instance.status}"
        )
        return

    old_status = getattr(instance, "_old_status", None)
    if old_status and old_status != instance.status:
        logger.info(
            f"Player {instance.player_id} in game {instance.game_id} changed "
            f"status from {old_status} to {instance.status}"
        )

    old_form_id = getattr(instance, "_old_consent_form_id", None)
    if old_form_id != instance.consent_form_id:
        if instance.consent_form_id is None:
            logger.info(
                f"Player {instance.player_id} stopped sharing a consent form "
                f"with game {instance.game_id}"
            )
        else:
            logger.info(
                f"Player {instance.player_id} shared consent form "
                f"{instance.consent_form_id} with game {instance.game_id}"
            )


@receiver(pre_delete, sender="consent.ConsentForm")
def consent_form_pre_delete_handler(sender, instance, **kwargs):
    """Log the games a consent form is about to be unshared from."""
    game_ids = list(instance.game_shares.values_list("game_id", flat=True))
    if game_ids:
        logger.info(
            f"Consent form {instance.pk} is being deleted; "
            f"unsharing it from games {game_ids}"
        )
