from loguru import logger
from typer import Context, Exit

from kd.tools.kubectl import Kubectl

from . import CliState, app


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def run(ctx: Context) -> None:
    """
    Run kubectl with the given arguments, applying the kd connection flags, e.g. `kd -n my-ns run get pods`.
    """

    state: CliState = ctx.obj
    kubectl = Kubectl(state.kubectl)
    try:
        returncode = kubectl.run(ctx.args)
    except OSError as exc:
        logger.error("Failed to run kubectl: {}", exc)
        raise Exit(1)

    if returncode != 0:
        logger.error(
            "Error running 'kubectl {}': exit status {}",
            " ".join(ctx.args),
            returncode,
        )
        raise Exit(returncode)
