"""Dependency-ordered publishing."""

from pyworkspaces.publish.availability import BackoffPolicy, wait_until_available
from pyworkspaces.publish.plan import PublishPlan, PublishState, PublishStep, build_publish_plan
from pyworkspaces.publish.scheduler import (
    PublishReport,
    PublishResult,
    PublishScheduler,
    publish_plan,
)

__all__ = [
    "BackoffPolicy",
    "PublishPlan",
    "PublishReport",
    "PublishResult",
    "PublishScheduler",
    "PublishState",
    "PublishStep",
    "build_publish_plan",
    "publish_plan",
    "wait_until_available",
]
