"""
Watches the rollout of a submitted resource until it completes, fails or times out.
"""

from collections.abc import Callable
from dataclasses import dataclass
import enum
import time
from typing import ClassVar

from loguru import logger

from kd.accessor import ClusterAccessError, ClusterAccessor
from kd.config import RunConfig
from kd.errors import DecodeError, KdError
from kd.resources import ResourceObject, decode_resource
from kd.resources.readiness import RolloutCheck
from kd.tools.duration import format_duration


class RolloutOutcome(enum.Enum):
    READY = "Ready"
    TIMED_OUT = "TimedOut"
    QUERY_FAILED = "QueryFailed"
    SUPERSEDED = "Superseded"
    NOT_WATCHED = "NotWatched"


class RolloutError(KdError):
    """
    Base class for the errors that end the watch of a rollout unsuccessfully.
    """

    outcome: ClassVar[RolloutOutcome]


@dataclass
class RolloutTimeoutError(RolloutError):
    """
    Raised when a rollout did not complete within the configured timeout.
    """

    outcome = RolloutOutcome.TIMED_OUT

    kind: str
    name: str
    timeout: str

    def __str__(self) -> str:
        return f"{self.kind} rolling update {self.name!r} timed out after {self.timeout}"


@dataclass
class StatusQueryError(RolloutError):
    """
    Raised when the status of a resource could not be fetched within the retry budget.
    """

    outcome = RolloutOutcome.QUERY_FAILED

    kind: str
    name: str
    attempts: int
    reason: str

    def __str__(self) -> str:
        return f"Failed to fetch status of {self.kind} {self.name!r} after {self.attempts} attempt(s): {self.reason}"


@dataclass
class SupersededError(RolloutError):
    """
    Raised when the resource was updated by someone else while its rollout was being watched.
    """

    outcome = RolloutOutcome.SUPERSEDED

    kind: str
    name: str

    def __str__(self) -> str:
        return f"{self.kind} {self.name!r} update failed. It has been superseded by another update"


class RolloutWatcher:
    """
    Polls the status of a resource until its rollout is complete.

    After an initial delay that gives the submission time to propagate, the status is refreshed once every
    `check_interval` seconds until the resource is ready or `timeout` seconds have passed. A refresh retries failed
    status queries a fixed number of times before giving up.

    Args:
        accessor: The cluster accessor used to query the status.
        config: The run configuration, providing the intervals, timeout and the supersession policy.
        sleep: The function used to wait. Replaceable for testing.
        monotonic: The clock used to measure the intervals. Replaceable for testing.
    """

    def __init__(
        self,
        accessor: ClusterAccessor,
        config: RunConfig,
        sleep: Callable[[float], None] = time.sleep,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.accessor = accessor
        self.config = config
        self._sleep = sleep
        self._monotonic = monotonic

    def watch(self, resource: ResourceObject) -> RolloutOutcome:
        """
        Wait for the rollout of *resource* to complete.

        Returns:
            `READY` when the rollout completed, `NOT_WATCHED` if resources of this kind or update strategy are not
            watched.
        Raises:
            RolloutTimeoutError: If the rollout did not complete in time.
            StatusQueryError: If the status could not be fetched.
            SupersededError: If the resource was updated by someone else and `fail_superseded` is enabled.
        """

        check = RolloutCheck.for_kind(resource.kind)
        if check is None:
            return RolloutOutcome.NOT_WATCHED

        # The manifest may leave the strategy to the server's default, in which case we look at the live object.
        strategy = resource.spec.updateStrategy.type
        if strategy and not check.watches(strategy):
            logger.debug("Only {} with type of RollingUpdate will be watched for completion", resource.kind_name)
            return RolloutOutcome.NOT_WATCHED

        logger.debug(
            "Sleeping {} before checking {} status for the first time",
            format_duration(self.config.initial_delay),
            resource.kind_name,
        )
        self._sleep(self.config.initial_delay)
        self.refresh(resource)

        if not check.watches(resource.spec.updateStrategy.type):
            logger.debug("Only {} with type of RollingUpdate will be watched for completion", resource.kind_name)
            return RolloutOutcome.NOT_WATCHED

        return self._poll(resource, check)

    def _poll(self, resource: ResourceObject, check: RolloutCheck) -> RolloutOutcome:
        generation = resource.status.observedGeneration
        interval = self.config.check_interval
        started = self._monotonic()
        deadline = started + self.config.timeout
        next_tick = started + interval

        while True:
            now = self._monotonic()
            if now >= deadline:
                raise RolloutTimeoutError(resource.kind_name, resource.name, format_duration(self.config.timeout))
            if now < next_tick:
                self._sleep(min(next_tick, deadline) - now)
                continue

            self.refresh(resource)
            logger.debug("Fetched {} {!r} status: {}", resource.kind_name, resource.name, resource.status)

            readiness = check.evaluate(resource)
            if readiness.ready:
                logger.info(
                    "{} {!r} is complete. Available objects: {}",
                    resource.kind_name,
                    resource.name,
                    readiness.available,
                )
                return RolloutOutcome.READY

            logger.info(
                "{} {!r} update in progress. Waiting for {} objects.",
                resource.kind_name,
                resource.name,
                readiness.unavailable,
            )

            if self.config.fail_superseded and resource.status.observedGeneration != generation:
                raise SupersededError(resource.kind_name, resource.name)

            next_tick += interval
            now = self._monotonic()
            if next_tick < now:
                # Ticks that were missed during the refresh collapse into one that fires right away.
                next_tick = now

    def refresh(self, resource: ResourceObject) -> None:
        """
        Fetch the current state of *resource* and replace its status and spec with it.

        Raises:
            StatusQueryError: If every attempt to fetch the status failed.
        """

        attempts = self.config.status_retries
        for attempt in range(1, attempts + 1):
            try:
                document = self.accessor.fetch_status(resource.kind_name, resource.name, resource.namespace)
                live = decode_resource(document, origin=f"{resource.kind_name}/{resource.name}")
            except (ClusterAccessError, DecodeError, OSError) as exc:
                if attempt == attempts:
                    raise StatusQueryError(resource.kind_name, resource.name, attempts, str(exc)) from exc
                logger.debug(
                    "Fetching {} {!r} status failed (attempt {}/{}): {}",
                    resource.kind_name,
                    resource.name,
                    attempt,
                    attempts,
                    exc,
                )
                self._sleep(self.config.status_retry_pause)
            else:
                resource.status = live.status
                resource.spec = live.spec
                return
