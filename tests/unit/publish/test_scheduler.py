"""Tests for the publish scheduler."""

import asyncio
from pathlib import Path

import pytest

from pyworkspaces.errors import AvailabilityTimeoutError, PublishError
from pyworkspaces.publish import (
    PublishPlan,
    PublishScheduler,
    PublishState,
    PublishStep,
    build_publish_plan,
    publish_plan,
)


def flat_plan(*names: str) -> PublishPlan:
    plan = PublishPlan()
    for index, name in enumerate(names):
        plan.steps[name] = PublishStep(name, "1.0.0", Path(name), index=index)
    return plan


def states(report):
    return {name: r.state for name, r in report.results.items()}


class TestOrdering:
    async def test_dependencies_available_before_dependents(
        self, chain, fake_registry, fast_backoff
    ):
        scheduler = PublishScheduler(fake_registry, backoff=fast_backoff)

        report = await scheduler.run(build_publish_plan(chain))

        assert report.success
        events = fake_registry.events
        assert events.index("available:core") < events.index("publish:api")
        assert events.index("available:api") < events.index("publish:app")
        assert report.published == ["core", "api", "app", "tools"]

    async def test_submission_order_with_single_slot(self, chain, fake_registry, fast_backoff):
        scheduler = PublishScheduler(fake_registry, concurrency=1, backoff=fast_backoff)

        report = await scheduler.run(build_publish_plan(chain))

        assert report.submission_order == ["core", "api", "app", "tools"]
        assert fake_registry.max_in_flight == 1

    async def test_concurrency_limit(self, make_registry, fast_backoff):
        registry = make_registry(delay=0.02)
        scheduler = PublishScheduler(registry, concurrency=2, backoff=fast_backoff)

        report = await scheduler.run(flat_plan("a", "b", "c", "d"))

        assert report.success
        assert registry.max_in_flight == 2
        assert sorted(registry.published) == [(n, "1.0.0") for n in "abcd"]

    async def test_state_sequence(self, fake_registry, fast_backoff):
        seen = []
        scheduler = PublishScheduler(
            fake_registry,
            backoff=fast_backoff,
            on_state=lambda name, state: seen.append(state),
        )

        await scheduler.run(flat_plan("a"))

        assert seen == [
            PublishState.PENDING,
            PublishState.PUBLISHING,
            PublishState.AWAITING_AVAILABILITY,
            PublishState.AVAILABLE,
        ]
        assert scheduler.state("a") is PublishState.AVAILABLE

    async def test_plan_skips_become_warnings(self, fake_registry, fast_backoff):
        plan = flat_plan("a")
        plan.skipped["b"] = "private"

        report = await PublishScheduler(fake_registry, backoff=fast_backoff).run(plan)

        assert report.warnings == ["b not published: private"]
        assert list(report.results) == ["a"]


class TestSkipPublished:
    async def test_existing_version_not_uploaded(self, chain, make_registry, fast_backoff):
        registry = make_registry(existing=[("core", "1.2.0")])

        report = await PublishScheduler(registry, backoff=fast_backoff).run(
            build_publish_plan(chain)
        )

        assert report.success
        assert report.results["core"].already_published
        assert "core" not in report.published
        assert "publish:core" not in registry.events

    async def test_disabled(self, make_registry, fast_backoff):
        registry = make_registry(existing=[("a", "1.0.0")])

        await PublishScheduler(registry, backoff=fast_backoff, skip_published=False).run(
            flat_plan("a")
        )

        assert registry.published == [("a", "1.0.0")]


class TestFailures:
    async def test_fail_fast_halts_everything(self, chain, make_registry, fast_backoff):
        registry = make_registry(reject=["core"])
        scheduler = PublishScheduler(registry, concurrency=1, backoff=fast_backoff)

        report = await scheduler.run(build_publish_plan(chain))

        assert not report.success
        assert states(report) == {
            "core": PublishState.FAILED,
            "api": PublishState.SKIPPED,
            "app": PublishState.SKIPPED,
            "tools": PublishState.SKIPPED,
        }
        assert report.results["core"].error == "upload rejected"
        assert report.results["api"].error == "dependency core was not published"
        assert report.results["app"].error == "dependency api was not published"
        assert report.results["tools"].error == "publishing halted after a failure"
        assert report.errors == ["core: upload rejected"]
        assert report.fatal.package == "core"

    async def test_without_fail_fast_only_dependents_skipped(
        self, chain, make_registry, fast_backoff
    ):
        registry = make_registry(reject=["core"])
        scheduler = PublishScheduler(
            registry, concurrency=1, fail_fast=False, backoff=fast_backoff
        )

        report = await scheduler.run(build_publish_plan(chain))

        assert report.failed == ["core"]
        assert report.skipped == ["api", "app"]
        assert report.published == ["tools"]
        assert report.fatal is None
        with pytest.raises(PublishError, match="upload rejected"):
            report.raise_for_status()

    async def test_availability_timeout_is_fatal(self, chain, make_registry, fast_backoff):
        registry = make_registry(never_available=["core"])
        scheduler = PublishScheduler(
            registry, concurrency=1, fail_fast=False, backoff=fast_backoff
        )

        report = await scheduler.run(build_publish_plan(chain))

        assert isinstance(report.fatal, AvailabilityTimeoutError)
        assert report.fatal.package == "core"
        assert report.results["core"].state is PublishState.FAILED
        assert report.results["tools"].state is PublishState.SKIPPED
        assert "publish:tools" not in registry.events
        with pytest.raises(AvailabilityTimeoutError):
            report.raise_for_status()

    async def test_success_does_not_raise(self, fake_registry, fast_backoff):
        report = await PublishScheduler(fake_registry, backoff=fast_backoff).run(
            flat_plan("a", "b")
        )
        report.raise_for_status()


class TestCancel:
    async def test_cancel_while_awaiting_availability(self, chain, make_registry, fast_backoff):
        registry = make_registry(visible_after=100)
        scheduler = None

        def on_state(name, state):
            if state is PublishState.AWAITING_AVAILABILITY:
                scheduler.cancel()

        scheduler = PublishScheduler(
            registry, concurrency=1, backoff=fast_backoff, on_state=on_state
        )

        report = await scheduler.run(build_publish_plan(chain))

        assert report.cancelled
        assert not report.success
        assert states(report) == {
            "core": PublishState.CANCELLED,
            "api": PublishState.SKIPPED,
            "app": PublishState.SKIPPED,
            "tools": PublishState.CANCELLED,
        }
        assert report.results["tools"].error == "publishing was cancelled"
        assert registry.published == [("core", "1.2.0")]

    async def test_task_cancel_lets_in_flight_upload_finish(self, make_registry, fast_backoff):
        registry = make_registry(delay=0.2)
        scheduler = PublishScheduler(registry, concurrency=1, backoff=fast_backoff)

        task = asyncio.create_task(scheduler.run(flat_plan("a", "b")))
        await asyncio.sleep(0.05)
        task.cancel()
        report = await task

        assert registry.published == [("a", "1.0.0")]
        assert report.cancelled
        assert report.submission_order == ["a"]
        assert report.uploaded == ["a"]
        assert states(report) == {
            "a": PublishState.CANCELLED,
            "b": PublishState.CANCELLED,
        }
        assert report.results["b"].error == "publishing was cancelled"


async def test_publish_plan_function(chain, fake_registry, fast_backoff):
    report = await publish_plan(build_publish_plan(chain), fake_registry, backoff=fast_backoff)
    assert report.success
    assert len(fake_registry.published) == 4
