"""
Overdue sweeper — flags open tasks whose due date has passed.

Runs independently of any request.  Each sweep is one ``UPDATE``
statement whose predicate re-checks status and the current flag, so:

  - tasks already flagged are never rewritten (a repeat sweep is a no-op)
  - a task completed or cancelled concurrently is never flagged
  - status is never changed, and the completion coordinator is not involved

``OverdueSweeper`` wraps the sweep in a fixed-interval loop; the
``sweep_overdue`` management command is the process entry point.
"""

import logging
import threading

from django.db import close_old_connections
from django.utils import timezone

from .models import Task

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 60


def sweep_overdue_tasks(now=None):
    """Flag every open, unflagged task due before ``now``.  Returns rows written."""
    now = now or timezone.now()
    updated = Task.objects.filter(
        due_date__lt=now,
        is_overdue=False,
        status__in=Task.OPEN_STATUSES,
    ).update(is_overdue=True, updated_at=now)

    if updated:
        logger.info("Marked %d tasks as overdue at %s", updated, now.isoformat())
    else:
        logger.debug("No new overdue tasks found.")
    return updated


class OverdueSweeper:
    """
    Recurring runner for ``sweep_overdue_tasks``.

    A failed run is logged and the loop carries on; each run is
    independent, so nothing is retried or carried over between ticks.
    """

    def __init__(self, interval=DEFAULT_INTERVAL_SECONDS, clock=timezone.now):
        if interval <= 0:
            raise ValueError("Sweep interval must be positive.")
        self.interval = interval
        self.clock = clock

    def run_once(self):
        return sweep_overdue_tasks(now=self.clock())

    def run_forever(self, stop_event=None):
        stop_event = stop_event or threading.Event()
        logger.info("Overdue sweeper started (interval=%ss)", self.interval)
        while not stop_event.is_set():
            close_old_connections()
            try:
                self.run_once()
            except Exception:
                logger.exception("Overdue sweep failed; retrying on next tick")
            finally:
                close_old_connections()
            stop_event.wait(self.interval)
        logger.info("Overdue sweeper stopped")
