from typing import Any

from click import Context
from typer import BadParameter, Typer
from typer.core import TyperGroup

from kd.tools.duration import parse_duration

EXTRA_ARGS = "kd.extra_args"
""" The `Context.meta` key under which `PassthroughGroup` stores the arguments that follow `--`. """


class PassthroughGroup(TyperGroup):
    """
    A command group that takes everything after a `--` separator out of command parsing. The arguments are stored in
    `ctx.meta[EXTRA_ARGS]`, which is shared with the contexts of subcommands.
    """

    def parse_args(self, ctx: Context, args: list[str]) -> list[str]:
        if "--" in args:
            index = args.index("--")
            args, ctx.meta[EXTRA_ARGS] = args[:index], args[index + 1 :]
        return super().parse_args(ctx, args)


def new_typer(**kwargs: Any) -> Typer:
    kwargs.setdefault("no_args_is_help", True)
    return Typer(pretty_exceptions_enable=False, **kwargs)


def plugin_envvar(name: str) -> list[str]:
    """
    Return the environment variables an option can be read from: the plain *name* and the same name prefixed with
    `PLUGIN_`, which is how CI plugin settings are passed to the process.
    """

    return [name, f"PLUGIN_{name}"]


def duration_option(value: str) -> float:
    """
    Typer callback that parses a duration string like `3m` or `500ms` into seconds. Only positive durations are
    accepted.
    """

    try:
        seconds = parse_duration(value)
    except ValueError as exc:
        raise BadParameter(str(exc)) from exc
    if seconds <= 0:
        raise BadParameter(f"duration must be positive, got {value!r}")
    return seconds
