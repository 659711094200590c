from __future__ import annotations

import threading

import numpy as np

from events.interfaces.stream import StreamInterface
from logging_config import get_logger
from utils.image_ops import encode_jpeg

logger = get_logger(__name__)


class LatestFrameStream(StreamInterface):
    """Keeps the most recent JPEG-encoded frame for a live-view server to poll."""

    def __init__(self, quality: int = 80):
        """Starts active with no frame."""
        self.quality = quality
        self._lock = threading.Lock()
        self._latest: bytes | None = None
        self._active = True
        self.frames_accepted = 0

    @property
    def is_active(self) -> bool:
        return self._active

    def put(self, frame: np.ndarray) -> bool:
        """Encodes and stores a raw frame; dropped when stopped or unencodable."""
        if not self._active or frame is None:
            return False
        if not isinstance(frame, np.ndarray):
            logger.debug(f"Dropping non-array frame of type {type(frame).__name__}")
            return False
        data = encode_jpeg(frame, self.quality)
        if data is None:
            logger.error("Failed to encode frame.")
            return False
        return self._store(data)

    def put_encoded(self, data: bytes) -> bool:
        """Stores an already JPEG-encoded frame."""
        if not self._active or not data:
            return False
        return self._store(bytes(data))

    def _store(self, data: bytes) -> bool:
        with self._lock:
            self._latest = data
            self.frames_accepted += 1
        return True

    def latest_jpeg(self) -> bytes | None:
        """Returns the latest JPEG frame, or None if none was accepted yet."""
        with self._lock:
            return self._latest

    def stop(self) -> None:
        """Stops accepting frames and drops the buffered one."""
        if not self._active:
            return
        self._active = False
        with self._lock:
            self._latest = None
        logger.info("Live stream stopped.")
