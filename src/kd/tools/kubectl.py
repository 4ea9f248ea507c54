import contextlib
from dataclasses import dataclass, field
from pathlib import Path
import shlex
import subprocess
from tempfile import TemporaryFile
import threading
from typing import IO, Sequence

from loguru import logger

from kd.accessor import ClusterAccessor, ClusterCommandError, SubmitResult

DEFAULT_CERTIFICATE_AUTHORITY_FILE = Path("/tmp/kube-ca.pem")


class KubectlError(ClusterCommandError):
    def __str__(self) -> str:
        message = f"Kubectl command failed with status code {self.statuscode}"
        if self.stderr:
            message += f": {self.stderr}"
        return message


@dataclass
class KubectlOptions:
    """
    Connection and authentication options that are passed to every `kubectl` invocation.
    """

    server: str | None = None
    token: str | None = None
    context: str | None = None
    namespace: str | None = None
    insecure_skip_tls_verify: bool = False

    certificate_authority: Path | None = None
    """ Path to a file containing the certificate authority of the Kubernetes API. """

    certificate_authority_data: str | None = None
    """
    The certificate authority data for the Kubernetes API. It is written to `certificate_authority_file` unless that
    file already exists.
    """

    certificate_authority_file: Path = DEFAULT_CERTIFICATE_AUTHORITY_FILE

    extra_args: list[str] = field(default_factory=list)
    """ Arguments appended to every `kubectl` invocation. """

    executable: str = "kubectl"


class Kubectl(ClusterAccessor):
    """
    Wrapper for interfacing with `kubectl`.
    """

    def __init__(self, options: KubectlOptions | None = None) -> None:
        self.options = options or KubectlOptions()

    def command(self, args: Sequence[str], namespace: str | None = None) -> list[str]:
        """
        Build the `kubectl` command line for the given arguments, including the connection flags.

        Args:
            args: The `kubectl` arguments, e.g. `["get", "deployment/foo"]`.
            namespace: Overrides the configured namespace.
        """

        options = self.options
        flags: list[str] = []
        if options.server:
            flags.append(f"--server={options.server}")
        if options.insecure_skip_tls_verify:
            flags.append("--insecure-skip-tls-verify")
        if options.certificate_authority:
            flags.append(f"--certificate-authority={options.certificate_authority}")
        if options.certificate_authority_data:
            create_certificate_authority(options.certificate_authority_file, options.certificate_authority_data)
            flags.append(f"--certificate-authority={options.certificate_authority_file}")
        if options.token:
            flags.append(f"--token={options.token}")
        if options.context:
            flags.append(f"--context={options.context}")
        if namespace or options.namespace:
            flags.append(f"--namespace={namespace or options.namespace}")
        return [options.executable, *flags, *args, *options.extra_args]

    def submit(self, verb: str, manifest: str) -> SubmitResult:
        command = self.command([verb, "-f", "-"])
        logger.debug("Submitting manifest with command: $ {command}", command=_redact(command))
        returncode, stdout, stderr = run_with_input(command, manifest)
        if returncode:
            raise KubectlError(returncode, stderr, stdout)
        return SubmitResult(stdout, stderr)

    def fetch_status(self, kind: str, name: str, namespace: str | None = None) -> str:
        command = self.command(["get", f"{kind}/{name}", "-o", "yaml"], namespace=namespace)
        logger.trace("Fetching status with command: $ {command}", command=_redact(command))
        status = subprocess.run(command, capture_output=True)
        if status.returncode:
            raise KubectlError(status.returncode, status.stderr.decode("utf-8", errors="replace"))
        return status.stdout.decode("utf-8", errors="replace")

    def run(self, args: Sequence[str]) -> int:
        """
        Run `kubectl` with the given arguments, inheriting the standard streams of this process.
        """

        command = self.command(args)
        logger.debug("About to run $ {command}", command=_redact(command))
        return subprocess.run(command).returncode


def run_with_input(command: list[str], input: str) -> tuple[int, str, str]:
    """
    Run *command*, writing *input* to its stdin from a separate thread while waiting for the process to exit. The
    output streams are buffered in temporary files, so the process never blocks on a full pipe regardless of how much
    is written in either direction.

    Returns:
        The exit code, stdout and stderr of the process.
    """

    write_errors: list[OSError] = []

    with TemporaryFile() as stdout, TemporaryFile() as stderr:
        process = subprocess.Popen(command, stdin=subprocess.PIPE, stdout=stdout, stderr=stderr)
        assert process.stdin is not None
        writer = threading.Thread(
            target=_write_and_close,
            args=(process.stdin, input.encode("utf-8"), write_errors),
            daemon=True,
        )
        writer.start()
        returncode = process.wait()
        writer.join()

        stdout.seek(0)
        stderr.seek(0)
        out = stdout.read().decode("utf-8", errors="replace")
        err = stderr.read().decode("utf-8", errors="replace")

    if write_errors and returncode == 0:
        raise write_errors[0]

    return returncode, out, err


def _write_and_close(stream: IO[bytes], data: bytes, errors: list[OSError]) -> None:
    try:
        stream.write(data)
        stream.flush()
    except BrokenPipeError:
        logger.debug("Process closed its stdin before the manifest was fully written")
    except OSError as exc:
        errors.append(exc)
    finally:
        with contextlib.suppress(BrokenPipeError):
            stream.close()


def create_certificate_authority(path: Path, content: str) -> None:
    """
    Write the certificate authority *content* to *path*, unless a file already exists there.
    """

    if path.is_file():
        return

    logger.debug("Writing certificate authority to '{}'", path)
    path.write_text(content)
    path.chmod(0o444)


def _redact(command: list[str]) -> str:
    return " ".join(shlex.quote("--token=***" if arg.startswith("--token=") else arg) for arg in command)
