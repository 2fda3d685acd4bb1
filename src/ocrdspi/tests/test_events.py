"""Tests for job event registration, dispatch and the asynchronous job."""

from __future__ import annotations

import threading
import time
from collections.abc import Iterator

import pytest
from pydantic import ValidationError

from ocrdspi.foundation.config import clear_settings_cache
from ocrdspi.runtime import (
    ArgumentBinder,
    AsyncProcessorJob,
    BoundArguments,
    Command,
    EventController,
    Framework,
    JobEvent,
    ProcessState,
)
from ocrdspi.runtime.process import CommandBuilder
from ocrdspi.tools import SEGMENT_LINE_PARAMETERS, SegmentLineArgument

from conftest import Recorder, ScriptCommand


@pytest.fixture
def controller() -> Iterator[EventController]:
    controller = EventController(workers=2)
    yield controller
    controller.shutdown()


# ═════════════════════════════════════════════════════════════════════════════
# Registration
# ═════════════════════════════════════════════════════════════════════════════


def test_handler_ids_are_positive_and_unique(controller: EventController) -> None:
    ids = {controller.register("job", lambda e: None) for _ in range(5)}
    assert len(ids) == 5
    assert min(ids) > 0
    assert len(controller) == 5


def test_unregister(controller: EventController) -> None:
    handler_id = controller.register("job", lambda e: None)

    assert controller.unregister(handler_id) is True
    assert controller.unregister(handler_id) is False
    assert controller.unregister(0) is False
    assert controller.unregister(-3) is False
    assert len(controller) == 0


def test_concurrent_registration_for_many_jobs(controller: EventController) -> None:
    ids: list[int] = []
    removed: list[bool] = []
    lock = threading.Lock()
    start = threading.Barrier(8)

    def churn(job: int) -> None:
        start.wait()
        mine = [controller.register(f"job-{job}", lambda e: None) for _ in range(50)]
        results = [controller.unregister(handler_id) for handler_id in mine]
        with lock:
            ids.extend(mine)
            removed.extend(results)

    threads = [threading.Thread(target=churn, args=(n,)) for n in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(ids) == len(set(ids)) == 400
    assert all(removed)
    assert len(controller) == 0
    assert all(controller.handlers(f"job-{n}") == [] for n in range(8))


def test_workers_default_from_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OCRDSPI_EVENTS_WORKERS", "7")
    clear_settings_cache()
    assert EventController()._workers == 7


# ═════════════════════════════════════════════════════════════════════════════
# Dispatch
# ═════════════════════════════════════════════════════════════════════════════


def test_dispatch_reaches_handlers_of_the_key_only(controller: EventController) -> None:
    received: list[tuple[str, object]] = []
    lock = threading.Lock()

    def handler(name: str):
        def handle(event: object) -> None:
            with lock:
                received.append((name, event))
        return handle

    controller.register("a", handler("first"))
    controller.register("a", handler("second"))
    controller.register("b", handler("other"))

    assert controller.dispatch("a", "ping") == 2
    assert controller.dispatch("missing", "ping") == 0
    controller.shutdown()

    assert sorted(received) == [("first", "ping"), ("second", "ping")]


def test_handlers_run_off_the_dispatching_thread(controller: EventController) -> None:
    seen = threading.Event()
    threads: list[threading.Thread] = []

    def handle(event: object) -> None:
        threads.append(threading.current_thread())
        seen.set()

    controller.register("a", handle)
    controller.dispatch("a", None)

    assert seen.wait(5)
    assert threads[0] is not threading.current_thread()


def test_failing_handler_does_not_stop_delivery(controller: EventController) -> None:
    delivered = threading.Event()

    def broken(event: object) -> None:
        raise RuntimeError("handler failed")

    controller.register("a", broken)
    controller.register("a", lambda e: delivered.set())

    assert controller.dispatch("a", None) == 2
    assert delivered.wait(5)


def test_job_event_validation() -> None:
    with pytest.raises(ValidationError):
        JobEvent(job_key="")
    with pytest.raises(ValidationError):
        JobEvent(job_key="k", progress=1.5)


# ═════════════════════════════════════════════════════════════════════════════
# Asynchronous Job
# ═════════════════════════════════════════════════════════════════════════════


def _async_job(command: CommandBuilder, controller: EventController) -> AsyncProcessorJob:
    binder = ArgumentBinder("ocrd-test", SEGMENT_LINE_PARAMETERS, SegmentLineArgument)
    return AsyncProcessorJob("ocrd-test", binder, command, controller=controller)


def test_job_applies_its_own_events(controller: EventController, recorder: Recorder) -> None:
    job = _async_job(ScriptCommand(""), controller)
    job.initialize("ocrd-test", recorder, None)

    job.handle(JobEvent(job_key=job.key, progress=0.5, standard_output="remote says hi"))
    job.handle(JobEvent(job_key="someone-else", progress=0.9, standard_error="not mine"))
    job.handle("not an event")

    assert job.progress == 0.5
    assert job.standard_output == "remote says hi"
    assert job.standard_error == ""
    assert recorder.progress == [0.5]


def test_handler_registered_only_while_running(
        controller: EventController, framework: Framework, producing: ScriptCommand) -> None:
    during: list[int] = []

    def build(fw: Framework, bound: BoundArguments) -> Command:
        during.append(len(controller.handlers(job.key)))
        return producing(fw, bound)

    job = _async_job(build, controller)

    assert job.handler_id == 0
    assert job.execute(None, framework, None) == ProcessState.COMPLETED
    assert during == [1]
    assert job.handler_id == 0
    assert controller.handlers(job.key) == []


def test_dispatched_event_reaches_running_job(controller: EventController, framework: Framework,
                                              script: type[ScriptCommand]) -> None:
    job = _async_job(script("import time\ntime.sleep(30)"), controller)

    def report_then_cancel() -> None:
        controller.dispatch(job.key, JobEvent(job_key=job.key, progress=0.5, standard_output="step 1 of 2"))
        deadline = time.monotonic() + 10
        while "step 1 of 2" not in job.standard_output and time.monotonic() < deadline:
            time.sleep(0.05)
        job.cancel()

    timer = threading.Timer(0.3, report_then_cancel)
    timer.start()
    try:
        state = job.execute(None, framework, None)
    finally:
        timer.join()

    assert state == ProcessState.CANCELED
    assert "step 1 of 2" in job.standard_output
    assert job.progress == 0.5
