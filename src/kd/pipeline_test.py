from pathlib import Path

import pytest

from kd.accessor import SubmitResult
from kd.config import RunConfig
from kd.conftest import FakeClock, FakeCluster
from kd.errors import CommandExecutionError, DecodeError, TemplateError
from kd.pipeline import ManifestDocument, Pipeline
from kd.tools.kubectl import KubectlError
from kd.watcher import RolloutOutcome, RolloutWatcher, StatusQueryError

DEPLOYMENT = """\
apiVersion: apps/v1
kind: Deployment
metadata:
  name: {{ NAME }}
spec:
  replicas: 2
---
apiVersion: v1
kind: Service
metadata:
  name: {{ NAME }}
"""

DEPLOYMENT_READY = dict(replicas=2, availableReplicas=2, unavailableReplicas=0, updatedReplicas=2)


def _pipeline(cluster: FakeCluster, clock: FakeClock, **config: object) -> Pipeline:
    run_config = RunConfig(**config)  # type: ignore
    watcher = RolloutWatcher(cluster, run_config, sleep=clock.sleep, monotonic=clock.monotonic)
    return Pipeline(run_config, cluster, watcher=watcher)


def test__Pipeline__load(cluster: FakeCluster, clock: FakeClock) -> None:
    documents = [ManifestDocument("---\n" + DEPLOYMENT + "---\n  \n", "app.yaml")]

    resources = _pipeline(cluster, clock).load(documents, {"NAME": "web"})

    assert [(r.kind_name, r.name, r.origin) for r in resources] == [
        ("Deployment", "web", "app.yaml"),
        ("Service", "web", "app.yaml"),
    ]
    assert resources[0].spec.replicas == 2


def test__Pipeline__dry_run_submits_nothing(cluster: FakeCluster, clock: FakeClock) -> None:
    results = _pipeline(cluster, clock, dry_run=True).run([ManifestDocument(DEPLOYMENT, "app.yaml")], {"NAME": "web"})

    assert results == []
    assert cluster.submissions == []
    assert cluster.queries == []


def test__Pipeline__deploys_and_watches_in_order(cluster: FakeCluster, clock: FakeClock) -> None:
    cluster.add_status("Deployment", "web", DEPLOYMENT_READY)

    results = _pipeline(cluster, clock).run([ManifestDocument(DEPLOYMENT, "app.yaml")], {"NAME": "web"})

    assert [verb for verb, _ in cluster.submissions] == ["apply", "apply"]
    assert "kind: Deployment" in cluster.submissions[0][1]
    assert "kind: Service" in cluster.submissions[1][1]
    assert [(result.resource.kind_name, result.outcome) for result in results] == [
        ("Deployment", RolloutOutcome.READY),
        ("Service", RolloutOutcome.NOT_WATCHED),
    ]


def test__Pipeline__decodes_everything_before_submitting(cluster: FakeCluster, clock: FakeClock) -> None:
    documents = [
        ManifestDocument(DEPLOYMENT, "app.yaml"),
        ManifestDocument("kind: Deployment\nmetadata: [broken\n", "broken.yaml"),
    ]

    with pytest.raises(DecodeError) as excinfo:
        _pipeline(cluster, clock).run(documents, {"NAME": "web"})

    assert excinfo.value.origin == "broken.yaml"
    assert cluster.submissions == []


def test__Pipeline__template_errors_abort_before_submitting(cluster: FakeCluster, clock: FakeClock) -> None:
    with pytest.raises(TemplateError):
        _pipeline(cluster, clock).run([ManifestDocument(DEPLOYMENT, "app.yaml")], {})
    assert cluster.submissions == []


def test__Pipeline__submission_failure_aborts_the_run(cluster: FakeCluster, clock: FakeClock) -> None:
    cluster.submit_results.append(KubectlError(1, "error: unable to recognize\n"))

    with pytest.raises(CommandExecutionError):
        _pipeline(cluster, clock).run([ManifestDocument(DEPLOYMENT, "app.yaml")], {"NAME": "web"})

    assert len(cluster.submissions) == 1


def test__Pipeline__rollout_failure_aborts_the_run(cluster: FakeCluster, clock: FakeClock) -> None:
    cluster.add_error()

    with pytest.raises(StatusQueryError):
        _pipeline(cluster, clock).run([ManifestDocument(DEPLOYMENT, "app.yaml")], {"NAME": "web"})

    assert len(cluster.submissions) == 1


def test__ManifestDocument__read(tmp_path: Path) -> None:
    path = tmp_path / "app.yaml"
    path.write_text("kind: Service\n")

    assert ManifestDocument.read(path) == ManifestDocument("kind: Service\n", str(path))


def test__ManifestDocument__read_keeps_crlf_line_endings(tmp_path: Path) -> None:
    path = tmp_path / "app.yaml"
    path.write_bytes(b"kind: Service\r\n")

    assert ManifestDocument.read(path).source == "kind: Service\r\n"
