"""
Unit tests for the persistent job queue.
"""

import json

import pytest

from gemini_app.exceptions import ValidationError
from gemini_app.hosts import InMemoryKeyValueStore
from gemini_app.jobs import FAILED_KEY, QUEUE_KEY, Job, JobQueue
from tests.helpers import FakeScheduler


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def queue(store, scheduler):
    return JobQueue(store, scheduler)


def _job(job_id, handler="summarize", **data):
    return {"id": job_id, "type": "ai-analysis", "handler": handler, "data": data}


@pytest.mark.unit
class TestEnqueue:
    def test_add_job_persists_and_starts_trigger(self, queue, store, scheduler):
        job_id = queue.add_job(_job("job-1", prompt="hi"))

        stored = json.loads(store.get(QUEUE_KEY))
        assert job_id == "job-1"
        assert stored[0]["id"] == "job-1"
        assert stored[0]["status"] == "queued"
        assert stored[0]["data"] == {"prompt": "hi"}
        assert "createdAt" in stored[0]
        assert scheduler.registered == [("process_jobs", 1)]

    def test_trigger_registered_once(self, queue, scheduler):
        queue.add_job(_job("a"))
        queue.add_job(_job("b"))

        assert scheduler.registered == [("process_jobs", 1)]

    @pytest.mark.parametrize("bad", [{}, {"id": "x", "type": "t"}, {"id": "", "type": "t", "handler": "h"}, "job"])
    def test_add_job_validates(self, queue, bad):
        with pytest.raises(ValidationError, match="id, type, and handler"):
            queue.add_job(bad)

    def test_add_jobs_validates_whole_batch_first(self, queue, store):
        with pytest.raises(ValidationError, match="index 1"):
            queue.add_jobs([_job("ok"), {"id": "broken"}])

        assert store.get(QUEUE_KEY) is None

    def test_add_jobs_rejects_empty(self, queue):
        with pytest.raises(ValidationError):
            queue.add_jobs([])

    def test_add_jobs_keeps_fifo_order(self, queue):
        assert queue.add_jobs([_job("1"), _job("2")]) == ["1", "2"]
        queue.add_job(Job(id="3", type="t", handler="h"))

        status = queue.get_queue_status()
        assert [j["id"] for j in status["queued_jobs"]] == ["1", "2", "3"]


@pytest.mark.unit
class TestProcessing:
    def test_runs_one_job_per_slot(self, queue):
        seen = []
        queue.register_handler("summarize", lambda job: seen.append(job.id))
        queue.add_jobs([_job("1"), _job("2")])

        queue.process_jobs()

        assert seen == ["1"]
        status = queue.get_queue_status()
        assert status["queued_count"] == 1
        assert status["running_count"] == 0

    def test_respects_max_concurrency(self, queue):
        seen = []
        queue.register_handler("summarize", lambda job: seen.append(job.id))
        queue.set_max_concurrent_jobs(2)
        queue.add_jobs([_job("1"), _job("2"), _job("3")])

        queue.process_jobs()

        assert seen == ["1", "2"]
        assert queue.get_max_concurrent_jobs() == 2

    def test_handler_sees_running_job(self, queue):
        statuses = []
        queue.register_handler("summarize", lambda job: statuses.append((job.status, job.data)))
        queue.add_job(_job("1", prompt="p"))

        queue.process_jobs()

        assert statuses == [("running", {"prompt": "p"})]

    def test_failures_are_logged_and_slot_released(self, queue, store):
        def explode(job):
            raise RuntimeError("model unavailable")

        queue.register_handler("summarize", explode)
        queue.add_job(_job("bad", prompt="p"))

        queue.process_jobs()

        failed = queue.get_failed_jobs()
        assert len(failed) == 1
        assert failed[0].job_id == "bad"
        assert failed[0].handler == "summarize"
        assert failed[0].data == {"prompt": "p"}
        assert "model unavailable" in failed[0].error
        assert json.loads(store.get(FAILED_KEY))[0]["jobId"] == "bad"
        assert queue.get_queue_status()["running_count"] == 0

    def test_unknown_handler_is_a_failure(self, queue):
        queue.add_job(_job("1", handler="missing"))

        queue.process_jobs()

        assert "missing" in queue.get_failed_jobs()[0].error

    def test_no_free_slots_waits(self, queue, store):
        queue.register_handler("summarize", lambda job: None)
        queue.add_job(_job("1"))
        store.set("RUNNING_JOBS", json.dumps(["stuck"]))

        queue.process_jobs()

        assert queue.get_queue_status()["queued_count"] == 1

    def test_empty_queue_stops_trigger(self, queue, scheduler, store):
        queue.add_job(_job("1"))
        queue.register_handler("summarize", lambda job: None)
        queue.process_jobs()

        queue.process_jobs()

        assert scheduler.cancelled == ["process_jobs"]
        queue.add_job(_job("2"))
        assert len(scheduler.registered) == 2


@pytest.mark.unit
class TestMaintenance:
    def test_set_max_concurrent_validates(self, queue):
        with pytest.raises(ValidationError):
            queue.set_max_concurrent_jobs(0)

    def test_default_max_concurrent(self, queue):
        assert queue.get_max_concurrent_jobs() == 1

    def test_queue_status_shape(self, queue):
        queue.add_job(_job("1"))

        status = queue.get_queue_status()

        assert status["queued_count"] == 1
        assert status["available_slots"] == 1
        assert status["running_job_ids"] == []
        assert status["queued_jobs"][0]["id"] == "1"

    def test_clear_functions(self, queue, store):
        queue.add_job(_job("1"))
        store.set("RUNNING_JOBS", json.dumps(["x"]))

        queue.clear_job_queue()
        queue.clear_running_jobs()

        status = queue.get_queue_status()
        assert status["queued_count"] == 0
        assert status["running_count"] == 0

    def test_failed_job_management(self, queue):
        queue.add_jobs([_job("a", handler="nope"), _job("b", handler="nope")])
        queue.set_max_concurrent_jobs(2)
        queue.process_jobs()

        assert queue.remove_failed_job("a") is True
        assert queue.remove_failed_job("a") is False
        assert [f.job_id for f in queue.get_failed_jobs()] == ["b"]

        queue.clear_failed_jobs()
        assert queue.get_failed_jobs() == []

    def test_register_handler_validates(self, queue):
        with pytest.raises(ValidationError):
            queue.register_handler("x", "not callable")

    def test_stop_processing_cancels(self, queue, scheduler):
        queue.start_processing()
        queue.stop_processing()

        assert scheduler.cancelled == ["process_jobs"]
