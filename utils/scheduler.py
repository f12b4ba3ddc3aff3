"""Background jobs.

The PIN attempt tracker does not schedule itself; the application factory
calls :func:`start_pin_sweep` once per process.
"""

from __future__ import annotations

import atexit
import os

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger


def _is_reloader_parent(app):
    """True in the watcher process of ``flask run --debug``; only the serving child runs jobs."""
    return (
        app.debug
        and os.environ.get('FLASK_RUN_FROM_CLI') == 'true'
        and os.environ.get('WERKZEUG_RUN_MAIN') != 'true'
    )


def start_pin_sweep(app, tracker):
    """Run ``tracker.sweep()`` every PIN_SWEEP_INTERVAL_MINUTES.

    Returns the started scheduler, or None when disabled.
    """
    if not app.config.get('PIN_SWEEP_ENABLED', True):
        return None

    if _is_reloader_parent(app):
        return None

    existing = app.extensions.get('scheduler')
    if existing is not None:
        return existing

    minutes = int(app.config.get('PIN_SWEEP_INTERVAL_MINUTES', 30))

    def sweep_job():
        removed = tracker.sweep()
        if removed:
            app.logger.info('PIN attempt sweep removed %d stale record(s)', removed)

    scheduler = BackgroundScheduler(daemon=True)
    scheduler.add_job(
        sweep_job,
        IntervalTrigger(minutes=minutes),
        id='pin_attempt_sweep',
        replace_existing=True,
    )
    scheduler.start()
    atexit.register(lambda: scheduler.shutdown(wait=False))

    app.extensions['scheduler'] = scheduler
    return scheduler
