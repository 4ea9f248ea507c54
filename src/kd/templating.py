"""
Rendering of manifest templates. Templates use the Jinja2 syntax and are evaluated against a flat mapping of strings,
usually the process environment.
"""

import base64
import json
from collections.abc import Mapping
from typing import Any

import jinja2
import yaml

from kd.errors import TemplateError


class TemplateRenderer:
    """
    Helper class to evaluate manifest templates.

    Every key of the context is available as a variable in the template. The full context is also available as
    `env`, which allows iterating over it or accessing keys that are not valid identifiers (`env["MY-KEY"]`).
    """

    def __init__(self) -> None:
        self._env = jinja2.Environment(
            undefined=jinja2.StrictUndefined,
            keep_trailing_newline=True,
            autoescape=False,
        )
        self._functions = Functions()

        for key in dir(self._functions):
            if not key.startswith("_"):
                self._env.globals[key] = getattr(self._functions, key)

        self._env.filters["to_yaml"] = Functions.to_yaml
        self._env.filters["to_json"] = Functions.to_json
        self._env.filters["b64enc"] = Functions.b64enc
        self._env.filters["b64dec"] = Functions.b64dec

        # Jinja2 normalizes line endings to `newline_sequence`.
        self._crlf_env = self._env.overlay(newline_sequence="\r\n")

    def render(self, template: str, context: Mapping[str, str], origin: str = "<string>") -> str:
        """
        Render the given template.

        Args:
            template: The template source.
            context: The values available to the template.
            origin: A label for the template used in error messages, usually the file it was read from.
        Raises:
            TemplateError: If the template is malformed or references an undefined function or variable.
        """

        try:
            env = self._crlf_env if "\r\n" in template else self._env
            return env.from_string(template).render({**context, "env": dict(context)})
        except jinja2.TemplateSyntaxError as exc:
            raise TemplateError(origin, exc.message or str(exc), exc.lineno) from exc
        except jinja2.TemplateError as exc:
            raise TemplateError(origin, str(exc)) from exc


def render(template: str, context: Mapping[str, str], origin: str = "<string>") -> str:
    """
    Render a template with a fresh `TemplateRenderer`.
    """

    return TemplateRenderer().render(template, context, origin)


class Functions:
    """
    The function library available in templates.
    """

    @staticmethod
    def replace(value: str, old: str, new: str) -> str:
        return value.replace(old, new)

    @staticmethod
    def equal_fold(a: str, b: str) -> bool:
        """
        Compare two strings case-insensitively.
        """

        return a.casefold() == b.casefold()

    @staticmethod
    def to_yaml(value: Any) -> str:
        return yaml.safe_dump(value, default_flow_style=False, sort_keys=False).rstrip("\n")

    @staticmethod
    def to_json(value: Any) -> str:
        return json.dumps(value)

    @staticmethod
    def indent(value: str, spaces: int) -> str:
        """
        Indent every line of *value* by the given number of spaces, including the first line.
        """

        pad = " " * spaces
        return "\n".join(pad + line if line else line for line in value.split("\n"))

    @staticmethod
    def contains(value: str, substring: str) -> bool:
        return substring in value

    @staticmethod
    def has_prefix(value: str, prefix: str) -> bool:
        return value.startswith(prefix)

    @staticmethod
    def has_suffix(value: str, suffix: str) -> bool:
        return value.endswith(suffix)

    @staticmethod
    def split(value: str, separator: str) -> list[str]:
        return value.split(separator)

    @staticmethod
    def lower(value: str) -> str:
        return value.lower()

    @staticmethod
    def upper(value: str) -> str:
        return value.upper()

    @staticmethod
    def b64enc(value: str) -> str:
        return base64.b64encode(value.encode("utf-8")).decode("ascii")

    @staticmethod
    def b64dec(value: str) -> str:
        return base64.b64decode(value.encode("ascii")).decode("utf-8")
