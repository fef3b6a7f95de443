"""Dependency-ordered concurrent publishing."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field

from pyworkspaces.errors import AvailabilityTimeoutError, PublishError
from pyworkspaces.log import get_logger
from pyworkspaces.publish.availability import BackoffPolicy, wait_until_available
from pyworkspaces.publish.plan import PublishPlan, PublishState, PublishStep
from pyworkspaces.registry import RegistryClient

logger = get_logger(__name__)

StateCallback = Callable[[str, PublishState], None]


@dataclass
class PublishResult:
    """Final state of one package.

    Attributes:
        name: Package name.
        version: Version that was (or would have been) published.
        state: Terminal state.
        error: Failure or skip reason.
        already_published: The version was on the index before this run.
        uploaded: The registry accepted the upload during this run.
    """

    name: str
    version: str
    state: PublishState
    error: str | None = None
    already_published: bool = False
    uploaded: bool = False


@dataclass
class PublishReport:
    """Outcome of a scheduler run.

    Attributes:
        results: Result per package, in plan order.
        submission_order: Packages in the order they were handed to the registry.
        fatal: The error that halted scheduling, if any.
        cancelled: The run was aborted.
        warnings: Non-fatal findings, such as packages left out of the plan.
    """

    results: dict[str, PublishResult] = field(default_factory=dict)
    submission_order: list[str] = field(default_factory=list)
    fatal: PublishError | None = None
    cancelled: bool = False
    warnings: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.cancelled and all(
            r.state is PublishState.AVAILABLE for r in self.results.values()
        )

    @property
    def errors(self) -> list[str]:
        return [
            f"{name}: {r.error}"
            for name, r in self.results.items()
            if r.state is PublishState.FAILED and r.error
        ]

    def with_state(self, state: PublishState) -> list[str]:
        return [name for name, r in self.results.items() if r.state is state]

    @property
    def published(self) -> list[str]:
        return [
            name
            for name, r in self.results.items()
            if r.state is PublishState.AVAILABLE and not r.already_published
        ]

    @property
    def uploaded(self) -> list[str]:
        return [name for name, r in self.results.items() if r.uploaded]

    @property
    def failed(self) -> list[str]:
        return self.with_state(PublishState.FAILED)

    @property
    def skipped(self) -> list[str]:
        return self.with_state(PublishState.SKIPPED)

    def raise_for_status(self) -> None:
        """Raise the halting error, or a summary of failures.

        Raises:
            PublishError: If any package failed.
        """
        if self.fatal is not None:
            raise self.fatal
        for name in self.failed:
            result = self.results[name]
            raise PublishError(
                result.error or "publish failed", package=name, version=result.version
            )


class PublishScheduler:
    """Publish packages once their workspace dependencies are available.

    Ready packages are submitted in plan order, at most ``concurrency`` at a
    time. Each in-flight package owns its own state; the scheduler loop only
    touches packages it never submitted.

    Attributes:
        registry: Registry capability.
        concurrency: Maximum packages in flight.
        fail_fast: Stop all further submissions after the first failure.
            When False only the failed package's dependents are skipped.
        backoff: Availability polling policy.
        skip_published: Query the index first and skip versions already there.
    """

    def __init__(
        self,
        registry: RegistryClient,
        *,
        concurrency: int = 4,
        fail_fast: bool = True,
        backoff: BackoffPolicy | None = None,
        skip_published: bool = True,
        on_state: StateCallback | None = None,
    ) -> None:
        self.registry = registry
        self.concurrency = max(1, concurrency)
        self.fail_fast = fail_fast
        self.backoff = backoff or BackoffPolicy()
        self.skip_published = skip_published
        self._on_state = on_state
        self._abort = asyncio.Event()
        self._states: dict[str, PublishState] = {}

    def cancel(self) -> None:
        """Stop scheduling and availability polling.

        Registry uploads already issued are allowed to finish.
        """
        self._abort.set()

    def state(self, name: str) -> PublishState | None:
        return self._states.get(name)

    def _set_state(self, name: str, state: PublishState) -> None:
        self._states[name] = state
        if self._on_state is not None:
            self._on_state(name, state)

    async def _publish_one(self, step: PublishStep) -> PublishResult:
        name, version = step.name, step.version

        if self.skip_published and await self.registry.query(name, version):
            logger.info("publish_skip_existing", package=name, version=version)
            self._set_state(name, PublishState.AVAILABLE)
            return PublishResult(name, version, PublishState.AVAILABLE, already_published=True)
        if self._abort.is_set():
            self._set_state(name, PublishState.CANCELLED)
            return PublishResult(
                name, version, PublishState.CANCELLED, error="publishing was cancelled"
            )

        self._set_state(name, PublishState.PUBLISHING)
        logger.info("publish_started", package=name, version=version)
        try:
            await self.registry.publish(name, version, step.path)
        except PublishError as e:
            logger.error("publish_failed", package=name, version=version, error=e.message)
            self._set_state(name, PublishState.FAILED)
            return PublishResult(name, version, PublishState.FAILED, error=e.message)

        self._set_state(name, PublishState.AWAITING_AVAILABILITY)
        try:
            available = await wait_until_available(
                self.registry, name, version, self.backoff, self._abort
            )
        except AvailabilityTimeoutError:
            self._set_state(name, PublishState.FAILED)
            raise

        if not available:
            self._set_state(name, PublishState.CANCELLED)
            return PublishResult(
                name,
                version,
                PublishState.CANCELLED,
                error="uploaded, aborted while awaiting availability",
                uploaded=True,
            )
        self._set_state(name, PublishState.AVAILABLE)
        return PublishResult(name, version, PublishState.AVAILABLE, uploaded=True)

    async def run(self, plan: PublishPlan) -> PublishReport:
        """Publish every step of the plan.

        Cancelling the task running this coroutine acts like :meth:`cancel`:
        nothing new is submitted, in-flight uploads finish and the report is
        still returned.

        Args:
            plan: Steps in topological order.

        Returns:
            Report with one result per step. Failures are reported, not
            raised; see :meth:`PublishReport.raise_for_status`.
        """
        report = PublishReport()
        report.warnings.extend(
            f"{name} not published: {reason}" for name, reason in plan.skipped.items()
        )
        self._states = {}
        for name in plan.order:
            self._set_state(name, PublishState.PENDING)

        available: set[str] = set()
        blocked: dict[str, str] = {}
        running: dict[asyncio.Task[PublishResult], PublishStep] = {}
        halted = False

        while True:
            for name in plan.order:
                step = plan.steps[name]
                if self._states[name] is not PublishState.PENDING or name in blocked:
                    continue
                upstream = next((d for d in step.dependencies if d in blocked), None)
                if upstream is not None:
                    blocked[name] = f"dependency {upstream} was not published"

            if not halted and not self._abort.is_set():
                for name in plan.order:
                    if len(running) >= self.concurrency:
                        break
                    step = plan.steps[name]
                    if self._states[name] is not PublishState.PENDING or name in blocked:
                        continue
                    if not step.is_ready(available):
                        continue
                    # claimed by the task from here on
                    self._states[name] = PublishState.PUBLISHING
                    report.submission_order.append(name)
                    task = asyncio.create_task(self._publish_one(step), name=f"publish-{name}")
                    running[task] = step

            if not running:
                break

            try:
                done, _ = await asyncio.wait(running, return_when=asyncio.FIRST_COMPLETED)
            except asyncio.CancelledError:
                # uploads already issued run to completion
                logger.warning(
                    "publish_interrupted", in_flight=[s.name for s in running.values()]
                )
                self.cancel()
                continue
            for task in done:
                step = running.pop(task)
                try:
                    result = task.result()
                except AvailabilityTimeoutError as e:
                    result = PublishResult(
                        step.name,
                        step.version,
                        PublishState.FAILED,
                        error=e.message,
                        uploaded=True,
                    )
                    report.fatal = report.fatal or e
                    halted = True
                report.results[step.name] = result

                if result.state is PublishState.AVAILABLE:
                    available.add(step.name)
                elif result.state is PublishState.FAILED:
                    blocked[step.name] = result.error or "failed"
                    if self.fail_fast and not halted:
                        halted = True
                        report.fatal = PublishError(
                            result.error or "publish failed",
                            package=step.name,
                            version=step.version,
                        )
                else:
                    blocked[step.name] = result.error or result.state.value

        report.cancelled = self._abort.is_set()
        for name in plan.order:
            if name in report.results:
                continue
            step = plan.steps[name]
            if name in blocked:
                state, reason = PublishState.SKIPPED, blocked[name]
            elif report.cancelled:
                state, reason = PublishState.CANCELLED, "publishing was cancelled"
            else:
                state, reason = PublishState.SKIPPED, "publishing halted after a failure"
            self._set_state(name, state)
            report.results[name] = PublishResult(name, step.version, state, error=reason)
            logger.info("publish_not_submitted", package=name, state=state.value, reason=reason)

        report.results = {name: report.results[name] for name in plan.order}
        return report


async def publish_plan(
    plan: PublishPlan,
    registry: RegistryClient,
    *,
    concurrency: int = 4,
    fail_fast: bool = True,
    backoff: BackoffPolicy | None = None,
    skip_published: bool = True,
) -> PublishReport:
    """Convenience function to run a publish plan."""
    scheduler = PublishScheduler(
        registry,
        concurrency=concurrency,
        fail_fast=fail_fast,
        backoff=backoff,
        skip_published=skip_published,
    )
    return await scheduler.run(plan)
