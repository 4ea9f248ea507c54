from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from kd.accessor import ClusterAccessError, ClusterAccessor
from kd.config import RunConfig
from kd.dispatch import Dispatcher
from kd.documents import split_documents
from kd.errors import KdError
from kd.resources import ResourceObject, decode_resource
from kd.templating import TemplateRenderer
from kd.watcher import RolloutOutcome, RolloutWatcher


@dataclass(frozen=True)
class ManifestDocument:
    """
    The template source of one or more manifests, as read from a file.
    """

    source: str
    origin: str

    @staticmethod
    def read(file: Path) -> "ManifestDocument":
        return ManifestDocument(file.read_bytes().decode("utf-8"), str(file))


@dataclass
class DeployResult:
    resource: ResourceObject
    outcome: RolloutOutcome


class Pipeline:
    """
    Renders manifest templates, submits the resulting resources one after another and waits for each of them to be
    rolled out before moving on to the next. The first error aborts the run.
    """

    def __init__(
        self,
        config: RunConfig,
        accessor: ClusterAccessor,
        renderer: TemplateRenderer | None = None,
        dispatcher: Dispatcher | None = None,
        watcher: RolloutWatcher | None = None,
    ) -> None:
        self.config = config
        self.renderer = renderer or TemplateRenderer()
        self.dispatcher = dispatcher or Dispatcher(accessor)
        self.watcher = watcher or RolloutWatcher(accessor, config)

    def load(self, documents: Sequence[ManifestDocument], context: Mapping[str, str]) -> list[ResourceObject]:
        """
        Render, split and decode all *documents*.

        Raises:
            TemplateError: If a template cannot be rendered.
            DecodeError: If a rendered document is not a valid resource.
        """

        resources: list[ResourceObject] = []
        for document in documents:
            logger.debug("Rendering manifests from '{}'", document.origin)
            rendered = self.renderer.render(document.source, context, document.origin)
            for part in split_documents(rendered):
                if not part.strip():
                    logger.debug("Skipping empty document in '{}'", document.origin)
                    continue
                if self.config.debug_templates:
                    logger.info("Template ({}):\n{}", document.origin, part)
                resources.append(decode_resource(part, document.origin))
        return resources

    def run(self, documents: Sequence[ManifestDocument], context: Mapping[str, str]) -> list[DeployResult]:
        """
        Deploy all resources from *documents*. Unless running in dry-run mode, every resource is submitted and, if
        it is of a watchable kind, watched until its rollout is complete before the next resource is submitted.
        """

        resources = self.load(documents, context)
        if self.config.dry_run:
            logger.info("Dry run, skipping the deployment of {} resource(s)", len(resources))
            return []

        results = []
        for resource in resources:
            try:
                self.dispatcher.dispatch(resource)
                outcome = self.watcher.watch(resource) if resource.kind.watchable else RolloutOutcome.NOT_WATCHED
            except (KdError, ClusterAccessError, OSError):
                logger.error(
                    "Deployment of {}/{} from '{}' failed",
                    resource.kind_name,
                    resource.name or resource.generate_name,
                    resource.origin,
                )
                raise
            results.append(DeployResult(resource, outcome))
        return results
