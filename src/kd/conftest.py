from typing import Any

import pytest
import yaml

from kd.accessor import ClusterAccessor, SubmitResult
from kd.tools.kubectl import KubectlError


class FakeClock:
    """
    A clock that only advances when something sleeps.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeCluster(ClusterAccessor):
    """
    A scripted cluster. Status queries are answered from a queue of responses, the last response is repeated once
    the queue is drained. A response that is an exception is raised instead of returned.
    """

    def __init__(self) -> None:
        self.submissions: list[tuple[str, str]] = []
        self.submit_results: list[SubmitResult | Exception] = []
        self.queries: list[tuple[str, str, str | None]] = []
        self.responses: list[str | Exception] = []

    def add_status(self, kind: str, name: str, status: dict[str, Any], spec: dict[str, Any] | None = None) -> None:
        document = {"apiVersion": "apps/v1", "kind": kind, "metadata": {"name": name}, "spec": spec or {}}
        document["status"] = status
        self.responses.append(yaml.safe_dump(document))

    def add_error(self, error: Exception | None = None) -> None:
        self.responses.append(error or KubectlError(1, "Error from server (NotFound)"))

    def submit(self, verb: str, manifest: str) -> SubmitResult:
        self.submissions.append((verb, manifest))
        result = self.submit_results.pop(0) if self.submit_results else SubmitResult("", "")
        if isinstance(result, Exception):
            raise result
        return result

    def fetch_status(self, kind: str, name: str, namespace: str | None = None) -> str:
        self.queries.append((kind, name, namespace))
        if not self.responses:
            raise AssertionError(f"unexpected status query for {kind}/{name}")
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cluster() -> FakeCluster:
    return FakeCluster()
