"""Access token helpers for CLI commands."""

from typing import Any

from .config import config
from .output import OutputFormatter


def require_access_token(ctx: Any, out: OutputFormatter) -> str:
    """Return the access token or exit with an error message.

    The ``--access-token`` option (or DROPBOX_ACCESS_TOKEN) wins over the
    token stored by ``autodrop init``.

    Args:
        ctx: Click context
        out: Output formatter for error messages

    Returns:
        Access token
    """
    token = ctx.obj.get("access_token") or config.access_token
    if not token:
        out.error("No access token configured.")
        out.info("Run 'autodrop init' or set DROPBOX_ACCESS_TOKEN.")
        ctx.exit(1)
    return token
