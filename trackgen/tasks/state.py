"""GenerationTask lifecycle.

    PENDING -> GENERATING -> GENERATED -> DOWNLOADING -> DEPLOYING -> DEPLOYED
        \\___________\\____________\\______________\\____________\\--> FAILED
    FAILED -> PENDING (retry only)

DEPLOYED is terminal. Every function mutates the task in place and returns it;
a rejected transition raises InvalidTransition and leaves the task untouched.
"""

from __future__ import annotations

import logging

from trackgen.errors import InvalidTransition
from trackgen.schemas.models import GenerationTask, TaskStatus, TaskSummary, utcnow

logger = logging.getLogger(__name__)

HAPPY_PATH = [
    TaskStatus.PENDING,
    TaskStatus.GENERATING,
    TaskStatus.GENERATED,
    TaskStatus.DOWNLOADING,
    TaskStatus.DEPLOYING,
    TaskStatus.DEPLOYED,
]
IN_FLIGHT = HAPPY_PATH[:-1]
CANCEL_MESSAGE = "Manually cancelled by admin"


def is_terminal(task: GenerationTask) -> bool:
    return task.status in (TaskStatus.DEPLOYED, TaskStatus.FAILED)


def advance(task: GenerationTask, target: TaskStatus, **fields) -> GenerationTask:
    """Move forward along the happy path; same state is a no-op apart from ``fields``."""
    target = TaskStatus(target)
    current = task.status
    if current == TaskStatus.DEPLOYED:
        raise InvalidTransition(current.value, target.value, "task already deployed")
    if target == TaskStatus.FAILED:
        raise InvalidTransition(current.value, target.value, "use fail() with an error")
    if current == TaskStatus.FAILED:
        raise InvalidTransition(current.value, target.value, "failed tasks only move via retry")
    if HAPPY_PATH.index(target) < HAPPY_PATH.index(current):
        raise InvalidTransition(current.value, target.value)

    for key, value in fields.items():
        setattr(task, key, value)
    if target != current:
        logger.debug("Task %s: %s -> %s", task.id, current.value, target.value)
        task.status = target
    task.updated_at = utcnow()
    return task


def fail(task: GenerationTask, error: str) -> GenerationTask:
    if task.status == TaskStatus.DEPLOYED:
        raise InvalidTransition(task.status.value, TaskStatus.FAILED.value, "task already deployed")
    if not error:
        raise ValueError("A failure reason is required")
    now = utcnow()
    logger.info("Task %s failed from %s: %s", task.id, task.status.value, error)
    task.status = TaskStatus.FAILED
    task.error = error
    task.failed_at = task.failed_at or now
    task.updated_at = now
    return task


def retry(task: GenerationTask) -> GenerationTask:
    """FAILED -> PENDING with a fresh retry budget."""
    if task.status != TaskStatus.FAILED:
        raise InvalidTransition(task.status.value, TaskStatus.PENDING.value, "only failed tasks can be retried")
    task.status = TaskStatus.PENDING
    task.retry_count = 0
    task.error = None
    task.failed_at = None
    task.updated_at = utcnow()
    return task


def cancel(task: GenerationTask) -> GenerationTask:
    if task.status == TaskStatus.DEPLOYED:
        raise InvalidTransition(task.status.value, TaskStatus.FAILED.value, "cannot cancel a deployed task")
    return fail(task, CANCEL_MESSAGE)


def summarize(counts: dict[str, int], total: int | None = None) -> TaskSummary:
    """Reporting summary from raw counts by status. Success rate is deployed/total in percent."""
    total = sum(counts.values()) if total is None else total
    deployed = counts.get(TaskStatus.DEPLOYED.value, 0)
    pending = sum(counts.get(s.value, 0) for s in IN_FLIGHT)
    rate = f"{deployed / total * 100:.2f}" if total > 0 else "0.00"
    return TaskSummary(
        total=total,
        deployed=deployed,
        pending=pending,
        failed=counts.get(TaskStatus.FAILED.value, 0),
        success_rate=rate,
    )
