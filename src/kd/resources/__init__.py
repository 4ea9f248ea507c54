"""
This package contains the model of the Kubernetes resources that kd deploys and watches.
"""

from dataclasses import dataclass, field
import enum
from typing import Any

from databind.core import ConversionError, ExtraKeys
from databind.json import dump as ser, load as deser
import yaml

from kd.errors import DecodeError


class ResourceKind(str, enum.Enum):
    DEPLOYMENT = "Deployment"
    STATEFUL_SET = "StatefulSet"
    DAEMON_SET = "DaemonSet"
    JOB = "Job"
    OTHER = "Other"

    @classmethod
    def parse(cls, kind: str) -> "ResourceKind":
        """
        Map a Kubernetes kind name to a `ResourceKind`. Kinds that kd does not know about map to `OTHER`.
        """

        for member in cls:
            if member is not cls.OTHER and member.value == kind:
                return member
        return cls.OTHER

    @property
    def watchable(self) -> bool:
        """
        Whether kd waits for the rollout of resources of this kind to complete.
        """

        return self is not ResourceKind.OTHER


@ExtraKeys()
@dataclass
class ObjectMetadata:
    """
    The subset of Kubernetes object metadata that kd needs to address a resource.
    """

    name: str = ""
    generateName: str = ""
    """ If set, the server generates the final name of the resource when it is created. """

    namespace: str | None = None


@ExtraKeys()
@dataclass
class UpdateStrategy:
    type: str = ""


@ExtraKeys()
@dataclass
class ObjectSpec:
    """
    The subset of a workload's spec that is relevant for deciding whether its rollout is complete.
    """

    replicas: int = 0
    updateStrategy: UpdateStrategy = field(default_factory=UpdateStrategy)
    """ Only relevant for StatefulSets and DaemonSets. """


@ExtraKeys()
@dataclass
class ResourceStatus:
    """
    A snapshot of the status of a workload. Which fields are populated depends on the resource kind.
    """

    observedGeneration: int = 0

    # Deployment, StatefulSet
    replicas: int = 0
    availableReplicas: int = 0
    unavailableReplicas: int = 0
    updatedReplicas: int = 0
    readyReplicas: int = 0

    # StatefulSet
    currentRevision: str = ""
    updateRevision: str = ""

    # DaemonSet
    desiredNumberScheduled: int = 0
    numberAvailable: int = 0
    updatedNumberScheduled: int = 0

    # Job
    succeeded: int = 0


@dataclass
class ResourceObject:
    """
    A Kubernetes resource decoded from a rendered manifest.
    """

    kind_name: str
    """ The kind as it is written in the manifest. """

    metadata: ObjectMetadata = field(default_factory=ObjectMetadata)
    spec: ObjectSpec = field(default_factory=ObjectSpec)
    status: ResourceStatus = field(default_factory=ResourceStatus)

    origin: str = "<string>"
    """ The file that the resource was loaded from. """

    manifest: str = ""
    """ The rendered manifest that is submitted to the cluster. """

    @property
    def kind(self) -> ResourceKind:
        return ResourceKind.parse(self.kind_name)

    @property
    def name(self) -> str:
        return self.metadata.name

    @name.setter
    def name(self, value: str) -> None:
        self.metadata.name = value

    @property
    def generate_name(self) -> str:
        return self.metadata.generateName

    @property
    def namespace(self) -> str | None:
        return self.metadata.namespace

    def dump(self) -> dict[str, Any]:
        """
        Dump the resource to a manifest. Only the fields known to kd are included.
        """

        return {
            "kind": self.kind_name,
            "metadata": ser(self.metadata, ObjectMetadata),
            "spec": ser(self.spec, ObjectSpec),
            "status": ser(self.status, ResourceStatus),
        }


def decode_resource(document: str, origin: str = "<string>") -> ResourceObject:
    """
    Decode a rendered YAML document into a `ResourceObject`. Unknown fields are ignored. The spec and status are only
    decoded for the kinds that kd watches.

    Raises:
        DecodeError: If the document is not valid YAML or does not describe a Kubernetes resource.
    """

    try:
        data = yaml.safe_load(document)
    except yaml.YAMLError as exc:
        raise DecodeError(origin, str(exc)) from exc

    if not isinstance(data, dict):
        raise DecodeError(origin, f"expected a mapping, got {type(data).__name__}")

    kind_name = data.get("kind") or ""
    if not isinstance(kind_name, str):
        raise DecodeError(origin, f"expected 'kind' to be a string, got {type(kind_name).__name__}")

    resource = ResourceObject(kind_name, origin=origin, manifest=document)
    try:
        resource.metadata = deser(data.get("metadata") or {}, ObjectMetadata, filename=origin)
        if resource.kind.watchable:
            resource.spec = deser(data.get("spec") or {}, ObjectSpec, filename=origin)
            resource.status = deser(data.get("status") or {}, ResourceStatus, filename=origin)
    except (ConversionError, ValueError, TypeError) as exc:
        raise DecodeError(origin, str(exc)) from exc

    return resource
