"""
Event Types - Kinds, File Subtypes and Payload Records.

Defines the vocabulary shared by the perception pipeline, the event bus
and every handler.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntFlag
from typing import Any, Callable

import numpy as np


class EventKind(Enum):
    """Kinds of events the perception pipeline can raise."""

    FILECREATE = 1
    MOTION = 2
    FIRSTMOTION = 3
    ENDMOTION = 4
    STOP = 5
    STREAM = 6
    IMAGE_DETECTED = 7
    IMAGEM_DETECTED = 8
    IMAGE_SNAPSHOT = 9
    IMAGE = 10
    IMAGEM = 11
    FILECLOSE = 12
    AREA_DETECTED = 13
    CAMERA_LOST = 14
    FFMPEG_PUT = 15


class FileType(IntFlag):
    """
    Subtype bitmask carried by FILECREATE / FILECLOSE events.

    A single event may carry several flags at once.
    """

    NONE = 0
    IMAGE = 1
    IMAGE_SNAPSHOT = 2
    IMAGE_MOTION = 4
    MPEG = 8
    MPEG_MOTION = 16
    MPEG_TIMELAPSE = 32

    IMAGE_ANY = IMAGE | IMAGE_SNAPSHOT | IMAGE_MOTION
    MPEG_ANY = MPEG | MPEG_MOTION | MPEG_TIMELAPSE

    @classmethod
    def describe(cls, mask) -> str:
        """
        Returns the symbolic name of a subtype bitmask.

        Examples: 1 -> "image", 9 -> "image+movie", 0 -> "none".
        """
        mask = int(mask or 0)
        names = [name for flag, name in _FILETYPE_NAMES if mask & flag]
        return "+".join(names) if names else "none"


_FILETYPE_NAMES = (
    (FileType.IMAGE, "image"),
    (FileType.IMAGE_SNAPSHOT, "snapshot"),
    (FileType.IMAGE_MOTION, "motion_image"),
    (FileType.MPEG, "movie"),
    (FileType.MPEG_MOTION, "motion_movie"),
    (FileType.MPEG_TIMELAPSE, "timelapse"),
)


def raw_bytes(buffer) -> bytes:
    """Returns the raw, un-framed bytes of a pixel buffer."""
    if buffer is None:
        return b""
    if isinstance(buffer, np.ndarray):
        return buffer.tobytes()
    return bytes(buffer)


@dataclass
class ImageData:
    """
    Raw image record carried as payload of frame events.

    Attributes:
        image: Primary frame (BGR numpy array or raw bytes).
        secondary_image: Optional secondary buffer (lower resolution or
            already JPEG-encoded, see SECONDARY_TYPE).
        timestamp: Capture time of the frame.
    """

    image: np.ndarray | bytes | None
    secondary_image: np.ndarray | bytes | None = None
    timestamp: datetime | None = None


@dataclass
class Event:
    """A single dispatched event. Never persisted."""

    kind: EventKind
    image: np.ndarray | bytes | None = None
    filename: str | None = None
    payload: Any = None
    timestamp: datetime | None = None


# handler(ctx, kind, image, filename, payload, timestamp)
EventHandler = Callable[..., None]


@dataclass(frozen=True)
class HandlerBinding:
    """Binds one handler to one event kind."""

    kind: EventKind
    handler: EventHandler
