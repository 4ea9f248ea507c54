from abc import ABC, abstractmethod
from dataclasses import dataclass


class ClusterAccessError(Exception):
    """
    Base class for errors reported by a `ClusterAccessor`.
    """


@dataclass
class ClusterCommandError(ClusterAccessError):
    """
    Raised when a command against the cluster exits with a non-zero status. `stderr` carries the diagnostic output of
    the command, if there was any.
    """

    statuscode: int
    stderr: str | None = None
    stdout: str | None = None

    def __str__(self) -> str:
        message = f"Cluster command failed with status code {self.statuscode}"
        if self.stderr:
            message += f": {self.stderr}"
        return message


@dataclass
class SubmitResult:
    stdout: str
    stderr: str


class ClusterAccessor(ABC):
    """
    Executes read and write operations against a Kubernetes cluster. Implementations are configured with everything
    needed to connect and authenticate to the cluster.
    """

    @abstractmethod
    def submit(self, verb: str, manifest: str) -> SubmitResult:
        """
        Submit a manifest to the cluster.

        Args:
            verb: The submission verb, either `apply` or `create`.
            manifest: The manifest to submit.
        Raises:
            ClusterAccessError: If the submission failed.
        """

    @abstractmethod
    def fetch_status(self, kind: str, name: str, namespace: str | None = None) -> str:
        """
        Fetch the current state of a resource from the cluster.

        Returns:
            The resource serialized as YAML.
        Raises:
            ClusterAccessError: If the resource could not be fetched.
        """
