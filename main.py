# ------------------------------------------------------------------------------
# Main Script for the Motion Event Handling Layer
# main.py
# ------------------------------------------------------------------------------
import atexit
import json
import os
from datetime import datetime, timedelta

import numpy as np

from config import get_config

config = get_config()
from logging_config import get_logger

logger = get_logger(__name__)

from camera.frame_stream import LatestFrameStream
from events.context import begin_event, create_context, shutdown_context
from events.types import EventKind, ImageData
from utils.settings import mask_secrets

# --------------------------------------------------------------------------
# Configuration Parameters
# --------------------------------------------------------------------------
_debug = config["DEBUG_MODE"]
target_dir = config["TARGET_DIR"]

logger.info(f"Debug mode is {'enabled' if _debug else 'disabled'}.")
logger.info(f"Configuration: {json.dumps(mask_secrets(config), indent=2, default=str)}")


def build_context():
    """Creates the event context for the configured camera."""
    os.makedirs(target_dir, exist_ok=True)
    stream = LatestFrameStream() if config["STREAM_PORT"] else None
    ctx = create_context(config, stream=stream)
    atexit.register(shutdown_context, ctx)
    return ctx


def replay_sequence(ctx, frames=5, width=320, height=240, fps=10):
    """
    Replays a short synthetic motion sequence through the bus.

    Lets an operator check the commands, pipe and database wiring without a
    camera: start -> detected frames + snapshot -> end.
    """
    start = datetime.now()
    ctx.lastrate = fps
    begin_event(ctx, start)

    for shot in range(frames):
        timestamp = start + timedelta(seconds=shot / fps)
        ctx.shots = shot
        image = np.full((height, width, 3), (shot * 40) % 256, dtype=np.uint8)
        data = ImageData(image=image, timestamp=timestamp)
        ctx.events.dispatch(ctx, EventKind.MOTION, image, None, None, timestamp)
        ctx.events.dispatch(ctx, EventKind.IMAGE_DETECTED, image, None, data, timestamp)
        ctx.events.dispatch(ctx, EventKind.STREAM, image, None, None, timestamp)

    ctx.snapshot_pending = True
    ctx.events.dispatch(ctx, EventKind.IMAGE_SNAPSHOT, image, None, None, timestamp)
    ctx.events.dispatch(ctx, EventKind.ENDMOTION, None, None, None, timestamp)
    logger.info(f"Replayed event {ctx.event_nr} with {frames} frames.")


if __name__ == "__main__":
    context = build_context()
    try:
        replay_sequence(context)
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt received. Shutting down...")
    finally:
        context.events.dispatch(context, EventKind.STOP)
