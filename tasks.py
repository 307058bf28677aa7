"""Background task processing via RQ with synchronous fallback.

When Redis and RQ are available, tasks are enqueued for a worker process.
Otherwise, tasks execute synchronously in the request thread.

Usage:
    from tasks import enqueue, recompute_course_effort
    enqueue(recompute_course_effort, course_id)
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

_queue = None


def init_tasks(app) -> None:
    """Initialize RQ queue if Redis is available. Call once from create_app()."""
    global _queue
    _queue = None

    redis_url = app.config.get("REDIS_URL", "")
    if not redis_url or app.config.get("TESTING"):
        app.logger.info("Task backend: synchronous (no REDIS_URL)")
        return

    try:
        import redis
        from rq import Queue
        conn = redis.Redis.from_url(redis_url)
        conn.ping()
        _queue = Queue(connection=conn)
        app.logger.info("Task backend: RQ (%s)", redis_url)
    except ImportError:
        app.logger.info("Task backend: synchronous (rq not installed)")
    except Exception as e:
        app.logger.warning("Task backend: synchronous (Redis error: %s)", e)


def enqueue(func, *args, **kwargs):
    """Push a task to RQ if available, else call synchronously.

    Returns the RQ Job object or the function's return value.
    """
    if _queue is not None:
        try:
            job = _queue.enqueue(func, *args, **kwargs)
            logger.debug("Enqueued %s (job=%s)", func.__name__, job.id)
            return job
        except Exception as e:
            logger.warning("RQ enqueue failed (%s), falling back to sync: %s", func.__name__, e)

    logger.debug("Running %s synchronously", func.__name__)
    return func(*args, **kwargs)


def recompute_course_effort(course_id: str) -> list[dict]:
    """Recompute effort for every enrolled student of a course.

    Runs inside the current app context when called synchronously; an RQ
    worker builds its own app.
    """
    from flask import has_app_context

    from effort_service import get_effort_service

    if has_app_context():
        return get_effort_service().recompute_course(course_id)

    from app import create_app
    app = create_app()
    with app.app_context():
        from database import init_db, run_migrations
        init_db()
        run_migrations()
        return get_effort_service().recompute_course(course_id)
