"""
``python manage.py sweep_overdue`` — run the overdue sweeper.

    sweep_overdue               # loop forever, every OVERDUE_SWEEP_INTERVAL_SECONDS
    sweep_overdue --interval 30
    sweep_overdue --once        # single sweep (cron-friendly)
"""

import threading

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from apps.tasks.sweeper import DEFAULT_INTERVAL_SECONDS, OverdueSweeper


class Command(BaseCommand):
    help = "Flag open tasks whose due date has passed as overdue."

    def add_arguments(self, parser):
        parser.add_argument(
            "--once",
            action="store_true",
            help="Run a single sweep and exit.",
        )
        parser.add_argument(
            "--interval",
            type=int,
            default=None,
            help="Seconds between sweeps (defaults to OVERDUE_SWEEP_INTERVAL_SECONDS).",
        )

    def handle(self, *args, **options):
        interval = options["interval"]
        if interval is None:
            interval = getattr(
                settings, "OVERDUE_SWEEP_INTERVAL_SECONDS", DEFAULT_INTERVAL_SECONDS
            )
        try:
            sweeper = OverdueSweeper(interval=interval)
        except ValueError as exc:
            raise CommandError(str(exc))

        if options["once"]:
            updated = sweeper.run_once()
            self.stdout.write(f"Marked {updated} tasks as overdue.")
            return

        stop_event = threading.Event()
        try:
            sweeper.run_forever(stop_event)
        except KeyboardInterrupt:
            stop_event.set()
            self.stdout.write("Overdue sweeper interrupted.")
