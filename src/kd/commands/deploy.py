import os

from dotenv import load_dotenv
from loguru import logger
from typer import Exit

from kd.accessor import ClusterAccessError
from kd.errors import KdError
from kd.pipeline import ManifestDocument, Pipeline
from kd.tools.fs import list_manifest_files
from kd.tools.kubectl import Kubectl

from . import CliState


def deploy(state: CliState) -> None:
    """
    Render the manifests given on the command line and deploy them. Exits with status 1 on any error.
    """

    if not state.files:
        logger.error("No kubernetes resource files specified")
        raise Exit(1)

    if state.env_file is not None:
        if not state.env_file.is_file():
            logger.error("Error loading env file '{}'", state.env_file)
            raise Exit(1)
        # Variables that are already set in the environment take precedence.
        load_dotenv(state.env_file, override=False)

    try:
        files = list_manifest_files(state.files)
        logger.debug("Files to load: {}", [str(file) for file in files])
        documents = [ManifestDocument.read(file) for file in files]
        pipeline = Pipeline(state.config, Kubectl(state.kubectl))
        pipeline.run(documents, dict(os.environ))
    except (KdError, ClusterAccessError, OSError) as exc:
        logger.error("{}", exc)
        raise Exit(1)
