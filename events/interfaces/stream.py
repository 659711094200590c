"""
Stream Interface - Live View Collaborator.

Defines the contract the stream sink forwards frames to. The transport
(HTTP, MJPEG, ...) lives behind this interface.
"""

from abc import ABC, abstractmethod

import numpy as np


class StreamInterface(ABC):
    """
    Interface for a live-view frame consumer.

    Implementations should handle:
    - Accepting raw frames (encoding them as needed)
    - Accepting already-encoded JPEG buffers
    - Dropping frames they cannot take, without raising
    """

    @abstractmethod
    def put(self, frame: np.ndarray) -> bool:
        """
        Accepts a raw frame.

        Returns:
            True if the frame was taken, False if it was dropped.
        """
        pass

    @abstractmethod
    def put_encoded(self, data: bytes) -> bool:
        """
        Accepts an already JPEG-encoded frame.

        Returns:
            True if the frame was taken, False if it was dropped.
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """
        Stops serving and releases resources.

        Should be idempotent (safe to call multiple times).
        """
        pass

    @property
    @abstractmethod
    def is_active(self) -> bool:
        """Returns True while the stream accepts frames."""
        pass
