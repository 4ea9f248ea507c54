"""
Errors raised by kd. Every error aborts the remainder of a deployment run.
"""

from dataclasses import dataclass
import textwrap


class KdError(Exception):
    """
    Base class for all errors raised by kd.
    """


@dataclass
class TemplateError(KdError):
    """
    Raised when a manifest template cannot be rendered, for example because of malformed control syntax or a
    reference to an undefined function.
    """

    origin: str
    message: str
    lineno: int | None = None

    def __str__(self) -> str:
        location = self.origin if self.lineno is None else f"{self.origin}:{self.lineno}"
        return f"Failed to render template '{location}': {self.message}"


@dataclass
class DecodeError(KdError):
    """
    Raised when a rendered document is not a valid Kubernetes resource.
    """

    origin: str
    message: str

    def __str__(self) -> str:
        if "\n" in self.message:
            message = "\n\n" + textwrap.indent(self.message, "  ")
        else:
            message = self.message
        return f"Failed to decode resource from '{self.origin}': {message}"


@dataclass
class CommandExecutionError(KdError):
    """
    Raised when submitting a resource exits with a non-zero status and wrote a diagnostic to stderr. The message is
    the verbatim stderr output.
    """

    stderr: str

    def __str__(self) -> str:
        return self.stderr


@dataclass
class DispatchError(KdError):
    message: str

    def __str__(self) -> str:
        return self.message


