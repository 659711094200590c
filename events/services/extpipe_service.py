"""
External Pipe Service - Long-lived Encoder Process.

Feeds raw frames of a motion sequence to an external encoder (typically
ffmpeg) through its stdin. One session per context:

    CLOSED --create()--> OPEN --close()--> CLOSED

Creation validates the target path before anything is spawned; writes while
closed are dropped; close waits for the encoder to exit.
"""

import errno
import os
import subprocess
from datetime import datetime
from enum import Enum

from events.types import EventKind, FileType, ImageData, raw_bytes
from logging_config import get_logger
from utils.template import MAX_EXPANDED_LENGTH, TemplateFields, format_template

logger = get_logger(__name__)


class PipeState(Enum):
    CLOSED = "closed"
    OPEN = "open"


def _probe_writable(path: str) -> bool:
    """
    Creates and removes an empty file at path.

    Returns:
        True if the location is writable.
    """
    try:
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(path, "w"):
            pass
        os.unlink(path)
        return True
    except OSError as e:
        if e.errno == errno.EACCES:
            logger.error(
                f"Error opening file {path} ... check access rights to target directory: {e}"
            )
        else:
            logger.error(f"Error opening file {path}: {e}")
        return False


def _descriptor_valid(stream) -> bool:
    if stream is None or stream.closed:
        return False
    try:
        return stream.fileno() >= 0
    except (OSError, ValueError):
        return False


class ExternalPipeSession:
    """
    Lifecycle wrapper around the external encoder process.

    The session is owned by a DaemonContext and only touched from the
    dispatch thread.
    """

    def __init__(self):
        self._state = PipeState.CLOSED
        self._process: subprocess.Popen | None = None
        self._filename = ""

    @property
    def state(self) -> PipeState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is PipeState.OPEN

    @property
    def filename(self) -> str:
        """Output file of the current (or last) session."""
        return self._filename

    @property
    def process(self) -> subprocess.Popen | None:
        return self._process

    def create(self, ctx, timestamp: datetime | None = None) -> bool:
        """
        Opens a new session for a motion sequence.

        Emits FILECREATE for the movie before the encoder is spawned.

        Returns:
            True if the session is now open.
        """
        config = ctx.config
        if not (config.get("USE_EXTPIPE") and config.get("EXTPIPE")):
            return False
        if self.is_open:
            logger.error(f"External pipe for {self._filename} is already open, not creating another")
            return False

        timestamp = timestamp or ctx.current_time or datetime.now()
        fields = TemplateFields.from_context(ctx)

        stamp = format_template(config.get("MOVIE_FILENAME") or "", timestamp, fields=fields)
        filename = os.path.join(config.get("TARGET_DIR") or ".", stamp)
        # Leave room for an extension the encoder may append.
        filename = filename[: MAX_EXPANDED_LENGTH - 4]

        if not _probe_writable(filename):
            return False

        command = format_template(
            config["EXTPIPE"], timestamp, filename=filename, fields=fields
        )
        logger.info(f"pipe: {command}")
        logger.info(f"movie fps: {ctx.movie_fps}")

        self._filename = filename
        ctx.events.dispatch(ctx, EventKind.FILECREATE, None, filename, FileType.MPEG, timestamp)

        try:
            self._process = subprocess.Popen(
                command,
                shell=True,
                stdin=subprocess.PIPE,
                bufsize=0,
            )
        except (OSError, ValueError) as e:
            logger.error(f"Failed to start external pipe '{command}': {e}")
            self._process = None
            return False

        self._state = PipeState.OPEN
        return True

    def put(self, ctx, image_data: ImageData | None) -> bool:
        """
        Writes one frame to the encoder.

        Returns:
            True if the frame bytes were written.
        """
        if not ctx.config.get("USE_EXTPIPE") or image_data is None:
            return False
        if not isinstance(image_data, ImageData):
            logger.error(
                f"External pipe expects an ImageData payload, got {type(image_data).__name__}"
            )
            return False
        if not self.is_open or self._process is None:
            logger.debug("External pipe not open, frame dropped")
            return False

        if image_data.secondary_image is not None and ctx.config.get("EXTPIPE_SECONDARY"):
            img = image_data.secondary_image
        else:
            img = image_data.image

        stdin = self._process.stdin
        if not _descriptor_valid(stdin):
            logger.error(f"External pipe for {self._filename} not created or closed already")
            return False
        try:
            # Unbuffered pipes may take a large frame in several writes.
            view = memoryview(raw_bytes(img))
            while view:
                written = stdin.write(view)
                view = view[written:]
        except (OSError, ValueError) as e:
            logger.error(f"Error writing in pipe for {self._filename}: {e}")
            return False
        return True

    def close(self, ctx, timestamp: datetime | None = None) -> bool:
        """
        Ends the session and waits for the encoder to exit.

        Idempotent: closing a closed session does nothing.

        Returns:
            True if an open session was closed.
        """
        if not self.is_open:
            return False

        self._state = PipeState.CLOSED
        process = self._process
        self._process = None
        stdin = process.stdin
        try:
            if stdin is not None and not stdin.closed:
                stdin.flush()
                stdin.close()
        except OSError as e:
            logger.error(f"Error closing external pipe for {self._filename}: {e}")

        returncode = process.wait()
        logger.info(f"External pipe for {self._filename} closed, exit status {returncode}")

        ctx.events.dispatch(
            ctx, EventKind.FILECLOSE, None, self._filename, FileType.MPEG, timestamp
        )
        return True
