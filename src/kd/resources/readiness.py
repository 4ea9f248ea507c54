"""
Kind-specific rules that decide whether the rollout of a workload is complete.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar

from kd.resources import ResourceKind, ResourceObject

ROLLING_UPDATE = "RollingUpdate"


@dataclass(frozen=True)
class Readiness:
    ready: bool
    available: int
    """ The number of objects that are available, reported when the rollout is complete. """

    unavailable: int
    """ The number of objects that are still being waited for, reported while the rollout is in progress. """


class RolloutCheck(ABC):
    """
    Base class for the readiness rule of a watchable resource kind. Subclasses register themselves for the kind they
    are declared with.
    """

    kind: ClassVar[ResourceKind]
    _registry: ClassVar[dict[ResourceKind, "RolloutCheck"]] = {}

    def __init_subclass__(cls, kind: ResourceKind, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        cls.kind = kind
        RolloutCheck._registry[kind] = cls()

    @staticmethod
    def for_kind(kind: ResourceKind) -> "RolloutCheck | None":
        """
        Return the check for the given kind, or `None` if resources of that kind are not watched.
        """

        return RolloutCheck._registry.get(kind)

    def watches(self, update_strategy: str) -> bool:
        """
        Whether a resource with the given update strategy type can be watched for completion.
        """

        return True

    @abstractmethod
    def evaluate(self, resource: ResourceObject) -> Readiness:
        """
        Evaluate the latest status of *resource*.
        """

        raise NotImplementedError


class DeploymentCheck(RolloutCheck, kind=ResourceKind.DEPLOYMENT):
    def evaluate(self, resource: ResourceObject) -> Readiness:
        status = resource.status
        ready = (
            status.unavailableReplicas == 0
            and status.availableReplicas == status.replicas
            and status.replicas == status.updatedReplicas
        )
        return Readiness(ready, status.availableReplicas, status.unavailableReplicas)


class StatefulSetCheck(RolloutCheck, kind=ResourceKind.STATEFUL_SET):
    def watches(self, update_strategy: str) -> bool:
        return update_strategy == ROLLING_UPDATE

    def evaluate(self, resource: ResourceObject) -> Readiness:
        status = resource.status
        ready = status.readyReplicas == resource.spec.replicas and status.currentRevision == status.updateRevision
        return Readiness(ready, status.readyReplicas, resource.spec.replicas - status.readyReplicas)


class DaemonSetCheck(RolloutCheck, kind=ResourceKind.DAEMON_SET):
    def watches(self, update_strategy: str) -> bool:
        return update_strategy == ROLLING_UPDATE

    def evaluate(self, resource: ResourceObject) -> Readiness:
        status = resource.status
        ready = (
            status.desiredNumberScheduled == status.numberAvailable
            and status.updatedNumberScheduled == status.desiredNumberScheduled
        )
        return Readiness(
            ready,
            status.numberAvailable,
            status.desiredNumberScheduled - status.updatedNumberScheduled,
        )


class JobCheck(RolloutCheck, kind=ResourceKind.JOB):
    def evaluate(self, resource: ResourceObject) -> Readiness:
        # A Job is complete once its single pod succeeded.
        ready = resource.status.succeeded == 1
        return Readiness(ready, 1 if ready else 0, 1)
