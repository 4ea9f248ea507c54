import re

from loguru import logger

from kd.accessor import ClusterAccessor, ClusterCommandError
from kd.errors import CommandExecutionError, DispatchError
from kd.resources import ResourceObject

CREATED_PATTERN = re.compile(r"^(?P<kind>[^/\s]+)/(?P<name>\S+) created$")
""" Matches the confirmation that `kubectl create` prints, e.g. `job.batch/migrate-x7k2p created`. """


class Dispatcher:
    """
    Submits resources to the cluster. Resources with a `generateName` are created, all others are applied.
    """

    def __init__(self, accessor: ClusterAccessor) -> None:
        self.accessor = accessor

    def dispatch(self, resource: ResourceObject) -> None:
        """
        Submit *resource* to the cluster. If the server generated the name of the resource, it is stored in the
        resource's metadata so that it can be watched afterwards.

        Raises:
            CommandExecutionError: If the submission failed with a diagnostic message.
            DispatchError: If the generated name could not be determined.
        """

        if resource.generate_name:
            verb, target = "create", resource.generate_name
        else:
            verb, target = "apply", resource.name

        logger.debug("About to deploy resource {}/{} (from file: '{}')", resource.kind_name, target, resource.origin)
        logger.info("Deploying {}/{}", resource.kind_name.lower(), target)

        try:
            result = self.accessor.submit(verb, resource.manifest)
        except ClusterCommandError as exc:
            if exc.stderr:
                raise CommandExecutionError(exc.stderr) from exc
            raise

        logger.info(result.stdout.rstrip("\n"))

        if resource.generate_name:
            resource.name = parse_created_name(result.stdout)
            logger.debug("Server generated name '{}' for {}/{}", resource.name, resource.kind_name, target)


def parse_created_name(output: str) -> str:
    """
    Extract the name of a created resource from the output of `kubectl create`.
    """

    match = CREATED_PATTERN.match(output.strip())
    if match is None:
        raise DispatchError(f"Could not determine the generated resource name from output: {output!r}")
    return match.group("name")
