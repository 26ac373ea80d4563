"""A persistent FIFO job queue driven by the host's scheduler.

Jobs name a registered handler and carry a JSON-serializable payload. The
queue, the running set and the failure log live in a `KeyValueStore`, so a
recurring trigger can pick the work up across process restarts. The trigger
registers itself when jobs are added and cancels itself once the queue and
the running set are both empty.

Bookkeeping is best effort: two processors sharing one store may both pick
up the same job.
"""

from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
import json
import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .exceptions import ValidationError
from .hosts import KeyValueStore, Scheduler

log = logging.getLogger(__name__)

MAX_CONCURRENT_KEY = "MAX_CONCURRENT_JOBS"
QUEUE_KEY = "JOB_QUEUE"
RUNNING_KEY = "RUNNING_JOBS"
FAILED_KEY = "FAILED_JOBS"
TRIGGER_KEY = "JOB_TRIGGER_ACTIVE"

DEFAULT_MAX_CONCURRENT_JOBS = 1

JobHandler = Callable[["Job"], Any]


def _now() -> str:
    return datetime.now(UTC).isoformat()


class _StoredModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Job(_StoredModel):
    id: str = Field(min_length=1)
    type: str = Field(min_length=1)
    handler: str = Field(min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)
    created_at: str = Field(default_factory=_now)
    status: str = "queued"


class FailedJob(_StoredModel):
    job_id: str
    type: str
    handler: str
    data: dict[str, Any] = Field(default_factory=dict)
    error: str
    timestamp: str = Field(default_factory=_now)


def _to_job(job: Job | Mapping[str, Any], position: int | None = None) -> Job:
    where = f"Job at index {position}" if position is not None else "Job"
    if isinstance(job, Job):
        return job.model_copy(update={"status": "queued"})
    if not isinstance(job, Mapping) or not all(job.get(k) for k in ("id", "type", "handler")):
        raise ValidationError(f"{where} must have id, type, and handler properties")
    try:
        return Job(
            id=job["id"],
            type=job["type"],
            handler=job["handler"],
            data=job.get("data") or {},
        )
    except PydanticValidationError as e:
        raise ValidationError(f"{where} is invalid: {e}") from e


class JobQueue:
    """Runs queued jobs through registered handlers with bounded concurrency."""

    def __init__(
        self,
        store: KeyValueStore,
        scheduler: Scheduler,
        handlers: Mapping[str, JobHandler] | None = None,
        handler_name: str = "process_jobs",
        interval_minutes: int = 1,
    ):
        self.store = store
        self.scheduler = scheduler
        self.handlers: dict[str, JobHandler] = dict(handlers or {})
        self.handler_name = handler_name
        self.interval_minutes = interval_minutes

    # --- Persistence helpers ---

    def _load_list(self, key: str) -> list[Any]:
        raw = self.store.get(key)
        if not raw:
            return []
        try:
            value = json.loads(raw)
        except json.JSONDecodeError:
            log.error("Discarding unreadable value stored under %s", key)
            return []
        return value if isinstance(value, list) else []

    def _save_list(self, key: str, values: list[Any]) -> None:
        self.store.set(key, json.dumps(values))

    def _queue(self) -> list[Job]:
        return [Job.model_validate(j) for j in self._load_list(QUEUE_KEY)]

    def _save_queue(self, queue: list[Job]) -> None:
        self._save_list(QUEUE_KEY, [j.model_dump(by_alias=True) for j in queue])

    def _running(self) -> list[str]:
        return [str(job_id) for job_id in self._load_list(RUNNING_KEY)]

    def _save_running(self, job_ids: list[str]) -> None:
        self._save_list(RUNNING_KEY, job_ids)

    # --- Configuration ---

    def set_max_concurrent_jobs(self, max_concurrent: int) -> None:
        if not isinstance(max_concurrent, int) or max_concurrent < 1:
            raise ValidationError("Max concurrent jobs must be at least 1")
        self.store.set(MAX_CONCURRENT_KEY, str(max_concurrent))
        log.info("Max concurrent jobs set to %d", max_concurrent)

    def get_max_concurrent_jobs(self) -> int:
        raw = self.store.get(MAX_CONCURRENT_KEY)
        try:
            return int(raw) if raw else DEFAULT_MAX_CONCURRENT_JOBS
        except ValueError:
            return DEFAULT_MAX_CONCURRENT_JOBS

    def register_handler(self, name: str, handler: JobHandler) -> None:
        if not name:
            raise ValidationError("Handler name must be a non-empty string")
        if not callable(handler):
            raise ValidationError(f"Handler '{name}' must be callable")
        self.handlers[name] = handler

    # --- Trigger ---

    def start_processing(self) -> None:
        """Register the recurring trigger unless it is already active."""
        if self.store.get(TRIGGER_KEY) == "1":
            return
        self.scheduler.register_recurring(self.handler_name, self.interval_minutes)
        self.store.set(TRIGGER_KEY, "1")
        log.info(
            "Job processor scheduled every %d minute(s) as '%s'",
            self.interval_minutes,
            self.handler_name,
        )

    def stop_processing(self) -> None:
        self.scheduler.cancel(self.handler_name)
        self.store.set(TRIGGER_KEY, "0")
        log.info("Job processor '%s' stopped", self.handler_name)

    # --- Enqueueing ---

    def add_job(self, job: Job | Mapping[str, Any]) -> str:
        """Queue one job and make sure the processor trigger is running."""
        queued = _to_job(job)
        self._save_queue([*self._queue(), queued])
        self.start_processing()
        log.info("Job %s added to queue", queued.id)
        return queued.id

    def add_jobs(self, jobs: Iterable[Job | Mapping[str, Any]]) -> list[str]:
        """Queue several jobs; nothing is queued unless every job is valid."""
        jobs = list(jobs)
        if not jobs:
            raise ValidationError("Jobs must be a non-empty sequence")
        queued = [_to_job(job, index) for index, job in enumerate(jobs)]

        self._save_queue([*self._queue(), *queued])
        self.start_processing()
        job_ids = [j.id for j in queued]
        log.info("%d jobs added to queue: %s", len(job_ids), ", ".join(job_ids))
        return job_ids

    # --- Processing ---

    def process_jobs(self) -> None:
        """Run as many queued jobs as there are free slots.

        Handler failures are recorded in the failure log; a job always leaves
        the running set once its handler returns or raises.
        """
        max_concurrent = self.get_max_concurrent_jobs()
        running = self._running()
        queue = self._queue()

        if not queue and not running:
            self.stop_processing()
            return

        available = max_concurrent - len(running)
        if available <= 0:
            log.info("Max concurrent jobs (%d) reached. Waiting...", max_concurrent)
            return

        batch, remaining = queue[:available], queue[available:]
        if not batch:
            return

        self._save_running([*running, *(j.id for j in batch)])
        self._save_queue(remaining)

        for job in batch:
            job = job.model_copy(update={"status": "running"})
            try:
                log.info("Processing job %s (%s)", job.id, job.type)
                handler = self.handlers.get(job.handler)
                if handler is None:
                    raise LookupError(f"Handler function '{job.handler}' not found")
                handler(job)
                log.info("Job %s completed successfully", job.id)
            except Exception as e:
                log.error("Job %s failed: %s", job.id, e, exc_info=True)
                self._add_failed_job(
                    FailedJob(
                        job_id=job.id,
                        type=job.type,
                        handler=job.handler,
                        data=job.data,
                        error=f"{type(e).__name__}: {e}",
                    )
                )
            finally:
                self._save_running([j for j in self._running() if j != job.id])

    # --- Status and maintenance ---

    def get_queue_status(self) -> dict[str, Any]:
        queue = self._queue()
        running = self._running()
        max_concurrent = self.get_max_concurrent_jobs()
        return {
            "queued_count": len(queue),
            "running_count": len(running),
            "max_concurrent": max_concurrent,
            "available_slots": max_concurrent - len(running),
            "queued_jobs": [
                {"id": j.id, "type": j.type, "created_at": j.created_at} for j in queue
            ],
            "running_job_ids": running,
        }

    def clear_job_queue(self) -> None:
        """Drop every queued job; running jobs are unaffected."""
        self._save_queue([])
        log.info("Job queue cleared")

    def clear_running_jobs(self) -> None:
        """Forget the running set, e.g. after a processor crashed mid-job."""
        self._save_running([])
        log.info("Running jobs cleared")

    def _add_failed_job(self, failed: FailedJob) -> None:
        self._save_list(
            FAILED_KEY, [*self._load_list(FAILED_KEY), failed.model_dump(by_alias=True)]
        )
        log.info("Job %s added to failed jobs list", failed.job_id)

    def get_failed_jobs(self) -> list[FailedJob]:
        return [FailedJob.model_validate(f) for f in self._load_list(FAILED_KEY)]

    def clear_failed_jobs(self) -> None:
        self._save_list(FAILED_KEY, [])
        log.info("Failed jobs list cleared")

    def remove_failed_job(self, job_id: str) -> bool:
        """Remove a failure record; returns False if no record matched."""
        failed = self.get_failed_jobs()
        kept = [f for f in failed if f.job_id != job_id]
        if len(kept) == len(failed):
            log.info("Failed job %s not found", job_id)
            return False
        self._save_list(FAILED_KEY, [f.model_dump(by_alias=True) for f in kept])
        log.info("Failed job %s removed", job_id)
        return True
