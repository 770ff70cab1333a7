"""Tests for the in-memory job store and the Job record model."""

import threading
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from tryon.jobs.models import Job, JobStatus
from tryon.jobs.store import InvalidTransitionError, JobStore


def make_job(job_id="job-1", **overrides) -> Job:
    fields = dict(
        job_id=job_id,
        status=JobStatus.QUEUED,
        source_product_id="p1",
        prompt="wear it",
        created_at=datetime.now(timezone.utc),
        estimated_duration_seconds=120,
    )
    fields.update(overrides)
    return Job(**fields)


def test_put_get_and_missing_id():
    store = JobStore()
    job = make_job()
    store.put(job)
    assert store.get("job-1") is job
    assert store.get("nope") is None


def test_put_replaces_by_id():
    store = JobStore()
    store.put(make_job(prompt="first"))
    store.put(make_job(prompt="second"))
    assert len(store.list()) == 1
    assert store.get("job-1").prompt == "second"


def test_list_is_a_snapshot():
    store = JobStore()
    store.put(make_job("job-1"))
    snapshot = store.list()
    store.put(make_job("job-2"))
    assert [j.job_id for j in snapshot] == ["job-1"]
    assert len(store.list()) == 2


def test_transition_to_running_then_succeeded_sets_timestamps():
    store = JobStore()
    store.put(make_job())

    running = store.transition("job-1", JobStatus.RUNNING)
    assert running.status == JobStatus.RUNNING
    assert running.started_at is not None
    assert running.completed_at is None

    done = store.transition("job-1", JobStatus.SUCCEEDED, result_image_url="http://x/results/job-1.png")
    assert done.status == JobStatus.SUCCEEDED
    assert done.completed_at >= done.started_at
    assert done.result_image_url == "http://x/results/job-1.png"
    assert done.error_message is None
    assert done.prompt == "wear it"
    assert done.created_at == running.created_at


def test_transition_replaces_record_without_mutating_old_one():
    store = JobStore()
    queued = make_job()
    store.put(queued)
    store.transition("job-1", JobStatus.RUNNING)
    assert queued.status == JobStatus.QUEUED
    assert queued.started_at is None


def test_failed_transition_keeps_only_error():
    store = JobStore()
    store.put(make_job())
    store.transition("job-1", JobStatus.RUNNING)
    failed = store.transition("job-1", JobStatus.FAILED, result_image_url="ignored", error_message="boom")
    assert failed.error_message == "boom"
    assert failed.result_image_url is None


@pytest.mark.parametrize(
    "path",
    [
        [JobStatus.SUCCEEDED],
        [JobStatus.FAILED],
        [JobStatus.RUNNING, JobStatus.QUEUED],
        [JobStatus.RUNNING, JobStatus.RUNNING],
    ],
)
def test_forbidden_transitions_raise(path):
    store = JobStore()
    store.put(make_job())
    *allowed, forbidden = path
    for status in allowed:
        store.transition("job-1", status)
    with pytest.raises(InvalidTransitionError):
        store.transition("job-1", forbidden, result_image_url="u", error_message="e")


def test_terminal_job_is_never_changed_again():
    store = JobStore()
    store.put(make_job())
    store.transition("job-1", JobStatus.RUNNING)
    done = store.transition("job-1", JobStatus.SUCCEEDED, result_image_url="u")
    for status in JobStatus:
        with pytest.raises(InvalidTransitionError):
            store.transition("job-1", status, result_image_url="u", error_message="e")
    assert store.get("job-1") is done


def test_transition_unknown_job_raises_key_error():
    with pytest.raises(KeyError):
        JobStore().transition("missing", JobStatus.RUNNING)


def test_concurrent_transitions_are_not_lost():
    store = JobStore()
    ids = [f"job-{i}" for i in range(200)]
    for job_id in ids:
        store.put(make_job(job_id))

    def work(chunk):
        for job_id in chunk:
            store.transition(job_id, JobStatus.RUNNING)
            store.transition(job_id, JobStatus.SUCCEEDED, result_image_url=f"u/{job_id}")

    threads = [threading.Thread(target=work, args=(ids[i::8],)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert all(job.status == JobStatus.SUCCEEDED for job in store.list())
    assert store.get("job-7").result_image_url == "u/job-7"


def test_prune_completed_removes_only_old_terminal_jobs():
    store = JobStore()
    now = datetime.now(timezone.utc)
    old = make_job(
        "job-old",
        status=JobStatus.FAILED,
        started_at=now - timedelta(hours=2),
        completed_at=now - timedelta(hours=2),
        error_message="x",
    )
    recent = make_job(
        "job-recent",
        status=JobStatus.SUCCEEDED,
        started_at=now,
        completed_at=now,
        result_image_url="u",
    )
    store.put(old)
    store.put(recent)
    store.put(make_job("job-queued", created_at=now - timedelta(hours=3)))

    assert store.prune_completed(timedelta(hours=1)) == 1
    assert store.get("job-old") is None
    assert store.get("job-recent") is not None
    assert store.get("job-queued") is not None


@pytest.mark.parametrize(
    "overrides",
    [
        dict(status=JobStatus.SUCCEEDED, started_at=datetime.now(timezone.utc)),
        dict(status=JobStatus.FAILED, started_at=datetime.now(timezone.utc), completed_at=datetime.now(timezone.utc)),
        dict(status=JobStatus.QUEUED, completed_at=datetime.now(timezone.utc)),
        dict(status=JobStatus.QUEUED, result_image_url="u"),
        dict(status=JobStatus.RUNNING, started_at=datetime.now(timezone.utc), error_message="e"),
        dict(status=JobStatus.RUNNING),
    ],
)
def test_job_model_rejects_inconsistent_fields(overrides):
    with pytest.raises(ValidationError):
        make_job(**overrides)


def test_job_is_immutable():
    job = make_job()
    with pytest.raises(ValidationError):
        job.status = JobStatus.RUNNING
