"""
Django management command to verify the services the consent app depends on.
"""

import sys

from django.apps import apps
from django.core.cache import caches
from django.core.management.base import BaseCommand
from django.db import DatabaseError, connections

CHECKED_MODELS = ("consent.ConsentForm", "games.Game", "games.GamePlayer")


class Command(BaseCommand):
    help = "Check the database, the cache and the consent tables"

    def add_arguments(self, parser):
        parser.add_argument(
            "--skip-cache",
            action="store_true",
            help="Do not check the cache backend",
        )

    def handle(self, *args, **options):
        """Run health checks and exit non-zero when any of them fails."""
        results = [self.check_database()]
        if results[0]:
            results.append(self.check_tables())
        if not options["skip_cache"]:
            results.append(self.check_cache())

        if all(results):
            self.stdout.write(self.style.SUCCESS("\n✅ All services OK"))
        else:
            self.stdout.write(self.style.ERROR("\n❌ Health check failed"))
            sys.exit(1)

    def check_database(self) -> bool:
        try:
            connections["default"].ensure_connection()
        except Exception as e:
            self.stdout.write(self.style.ERROR(f"❌ Database connection failed: {e}"))
            return False
        self.stdout.write(self.style.SUCCESS("✅ Database connection: OK"))
        return True

    def check_tables(self) -> bool:
        ok = True
        for label in CHECKED_MODELS:
            model = apps.get_model(label)
            try:
                count = model.objects.count()
            except DatabaseError as e:
                self.stdout.write(self.style.ERROR(f"❌ {label} unavailable: {e}"))
                ok = False
                continue
            self.stdout.write(f"{label}: {count} rows")
        return ok

    def check_cache(self) -> bool:
        try:
            cache = caches["default"]
            cache.set("health_check", "ok", 1)
            result = cache.get("health_check")
        except Exception as e:
            self.stdout.write(self.style.ERROR(f"❌ Cache connection failed: {e}"))
            return False
        if result != "ok":
            self.stdout.write(
                self.style.ERROR("❌ Cache connection failed: round trip mismatch")
            )
            return False
        self.stdout.write(self.style.SUCCESS("✅ Cache connection: OK"))
        return True
