"""
Detached execution of user-defined shell commands.

The child runs ``/bin/sh -c <command>`` in its own session with every
inherited descriptor except stdin/stdout/stderr closed. The parent never
waits for it; the only trace of success or failure is the log.
"""

import subprocess
from datetime import datetime

from logging_config import get_logger
from utils.template import TemplateFields, format_template

logger = get_logger(__name__)

SHELL = "/bin/sh"


def spawn_detached(command_line: str) -> subprocess.Popen | None:
    """
    Starts a shell command without waiting for it.

    Returns:
        The Popen handle, or None if the process could not be started.
    """
    try:
        return subprocess.Popen(
            [SHELL, "-c", command_line],
            start_new_session=True,
            close_fds=True,
        )
    except (OSError, ValueError) as e:
        logger.error(f"Unable to start external command '{command_line}': {e}")
        return None


def exec_command(
    ctx,
    command: str,
    filename: str | None = None,
    filetype: int = 0,
    timestamp: datetime | None = None,
) -> subprocess.Popen | None:
    """
    Formats a command template and runs it fire-and-forget.

    Args:
        ctx: DaemonContext providing the template fields.
        command: Raw command template (e.g. ON_PICTURE_SAVE).
        filename: Value for %f.
        filetype: Subtype bitmask for %n.
        timestamp: Time used for the date/time fields.

    Returns:
        The Popen handle, or None on failure. Callers only log with it.
    """
    if not command:
        return None
    timestamp = timestamp or getattr(ctx, "current_time", None) or datetime.now()
    stamp = format_template(
        command,
        timestamp,
        filename=filename,
        filetype=filetype,
        fields=TemplateFields.from_context(ctx),
    )
    process = spawn_detached(stamp)
    if process is not None:
        logger.debug(f"Executing external command '{stamp}' (pid {process.pid})")
    return process
