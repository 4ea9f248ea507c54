"""
kd is a simple Kubernetes resources deployment tool. It renders the given manifest templates with the environment,
applies them with `kubectl` and waits for Deployments, StatefulSets, DaemonSets and Jobs to be rolled out.

Arguments after `--` are passed on to every `kubectl` invocation, e.g. `kd -f app.yaml -- --validate=false`.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
import sys
from typing import List, Optional

from loguru import logger
from typer import Context, Exit, Option

from kd import __version__
from kd.config import RunConfig
from kd.tools.kubectl import DEFAULT_CERTIFICATE_AUTHORITY_FILE, KubectlOptions
from kd.tools.typer import EXTRA_ARGS, PassthroughGroup, duration_option, new_typer, plugin_envvar


app = new_typer(name="kd", help=__doc__, no_args_is_help=False, cls=PassthroughGroup)


@dataclass
class CliState:
    """
    The options given to the `kd` command, shared with its subcommands.
    """

    kubectl: KubectlOptions
    config: RunConfig
    files: list[Path] = field(default_factory=list)
    env_file: Path | None = None


class LogLevel(str, Enum):
    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


def _version_callback(value: bool) -> None:
    if value:
        print(f"kd {__version__}")
        raise Exit()


@app.callback(invoke_without_command=True)
def _callback(
    ctx: Context,
    log_level: LogLevel = Option(LogLevel.INFO, "--log-level", "-l", help="The log level to use."),
    debug: bool = Option(False, envvar=["DEBUG", "PLUGIN_DEBUG"], help="Debug output, same as `--log-level debug`."),
    debug_templates: bool = Option(False, envvar=plugin_envvar("DEBUG_TEMPLATES"), help="Log rendered templates."),
    dryrun: bool = Option(False, envvar="DRY_RUN", help="Exit after rendering the templates, prior to deployment."),
    insecure_skip_tls_verify: bool = Option(
        False,
        envvar=plugin_envvar("INSECURE_SKIP_TLS_VERIFY"),
        help="Do not check the validity of the server's certificate.",
    ),
    kube_server: Optional[str] = Option(
        None, "--kube-server", "-s", envvar=plugin_envvar("KUBE_SERVER"), help="Kubernetes API server URL."
    ),
    kube_token: Optional[str] = Option(
        None, "--kube-token", "-t", envvar=plugin_envvar("KUBE_TOKEN"), help="Kubernetes auth token."
    ),
    config: Optional[Path] = Option(
        None, envvar=plugin_envvar("CONFIG_FILE"), help="Env file to load into the environment before rendering."
    ),
    context: Optional[str] = Option(
        None, "--context", "-c", envvar=["KUBE_CONTEXT", "PLUGIN_CONTEXT"], help="Kube config context."
    ),
    namespace: Optional[str] = Option(
        None, "--namespace", "-n", envvar=plugin_envvar("KUBE_NAMESPACE"), help="Kubernetes namespace."
    ),
    fail_superseded: bool = Option(
        False,
        envvar=plugin_envvar("FAIL_SUPERSEDED"),
        help="Fail the deployment if it has been superseded by another deployment.",
    ),
    certificate_authority: Optional[Path] = Option(
        None,
        envvar=plugin_envvar("KUBE_CERTIFICATE_AUTHORITY"),
        help="The path to a file containing the CA for the Kubernetes API.",
    ),
    certificate_authority_data: Optional[str] = Option(
        None,
        envvar=plugin_envvar("KUBE_CERTIFICATE_AUTHORITY_DATA"),
        help="The certificate authority data for the Kubernetes API.",
    ),
    certificate_authority_file: Path = Option(
        DEFAULT_CERTIFICATE_AUTHORITY_FILE,
        help="The file to write the --certificate-authority-data to.",
    ),
    file: Optional[List[Path]] = Option(
        None,
        "--file",
        "-f",
        envvar=plugin_envvar("FILES"),
        help="A file or directory containing Kubernetes resources. Can be specified multiple times.",
    ),
    timeout: float = Option(
        "3m",
        "--timeout",
        "-T",
        parser=duration_option,
        envvar=plugin_envvar("TIMEOUT"),
        help="The amount of time to wait for a successful rollout, e.g. `3m`.",
    ),
    check_interval: float = Option(
        "1s",
        parser=duration_option,
        envvar=plugin_envvar("CHECK_INTERVAL"),
        help="The interval between two rollout status checks, e.g. `500ms`.",
    ),
    version: bool = Option(False, "--version", callback=_version_callback, is_eager=True, help="Show the version."),
) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if debug else log_level.name)

    ctx.obj = CliState(
        kubectl=KubectlOptions(
            server=kube_server,
            token=kube_token,
            context=context,
            namespace=namespace,
            insecure_skip_tls_verify=insecure_skip_tls_verify,
            certificate_authority=certificate_authority,
            certificate_authority_data=certificate_authority_data,
            certificate_authority_file=certificate_authority_file,
            extra_args=list(ctx.meta.get(EXTRA_ARGS, [])),
        ),
        config=RunConfig(
            dry_run=dryrun,
            fail_superseded=fail_superseded,
            timeout=timeout,
            check_interval=check_interval,
            debug_templates=debug_templates,
        ),
        files=list(file or []),
        env_file=config,
    )

    if ctx.invoked_subcommand is None:
        deploy.deploy(ctx.obj)


from . import deploy  # noqa: E402
from . import run  # noqa: F401,E402
