"""
Stream Service - Live View Forwarding.

Hands frames to the live-view collaborator attached to the context.
No retry and no buffering: a rejected frame is lost for that cycle.
"""

from events.interfaces.stream import StreamInterface
from events.types import ImageData
from logging_config import get_logger

logger = get_logger(__name__)

SECONDARY_TYPE_RAW = "raw"
SECONDARY_TYPE_JPEG = "jpeg"


def _stream_of(ctx) -> StreamInterface | None:
    if not ctx.config.get("STREAM_PORT"):
        return None
    return ctx.stream


def stream_put(ctx, image=None, payload: ImageData | None = None) -> bool:
    """
    Forwards a frame to the live view.

    With only a payload, its secondary image is preferred when
    STREAM_SECONDARY is on; otherwise the primary payload image is used.

    Returns:
        True if the collaborator accepted a frame.
    """
    stream = _stream_of(ctx)
    if stream is None:
        return False

    try:
        if payload is not None and image is None:
            secondary = getattr(payload, "secondary_image", None)
            if secondary is not None and ctx.config.get("STREAM_SECONDARY"):
                secondary_type = str(ctx.config.get("SECONDARY_TYPE") or SECONDARY_TYPE_RAW).lower()
                if secondary_type == SECONDARY_TYPE_JPEG:
                    return bool(stream.put_encoded(bytes(secondary)))
                return bool(stream.put(secondary))
            image = getattr(payload, "image", None)

        if image is None:
            return False
        accepted = bool(stream.put(image))
    except Exception as e:
        logger.error(f"Error forwarding frame to live stream: {e}")
        return False
    if not accepted:
        logger.debug("Live stream rejected frame")
    return accepted


def stop_stream(ctx) -> bool:
    """
    Stops the live view if it is running.

    Returns:
        True if a running stream was stopped.
    """
    stream = _stream_of(ctx)
    if stream is None or not stream.is_active:
        return False
    stream.stop()
    return True
