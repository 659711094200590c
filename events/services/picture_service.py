"""
Picture Service - Image and Snapshot Storage.

Writes detected frames, motion overlays and snapshots below TARGET_DIR and
announces every written file with a FILECREATE event.
"""

import os
from datetime import datetime

from events.types import EventKind, FileType
from logging_config import get_logger
from utils.image_ops import write_picture
from utils.template import TemplateFields, format_template

logger = get_logger(__name__)

DEFAULT_PICTURE_FILENAME = "%v-%Y%m%d%H%M%S-%q"
DEFAULT_SNAPSHOT_FILENAME = "%v-%Y%m%d%H%M%S-snapshot"
LASTSNAP = "lastsnap"


def image_ext(config: dict) -> str:
    """Returns the file extension for the configured PICTURE_TYPE."""
    picture_type = str(config.get("PICTURE_TYPE") or "jpeg").lower()
    if picture_type == "ppm":
        return "ppm"
    if picture_type == "webp":
        return "webp"
    return "jpg"


def put_picture(ctx, path: str, frame, filetype: FileType, timestamp: datetime | None = None) -> bool:
    """
    Writes a frame and emits FILECREATE for it.

    Returns:
        True if the file was written.
    """
    config = ctx.config
    try:
        written = write_picture(
            path,
            frame,
            picture_type=str(config.get("PICTURE_TYPE") or "jpeg").lower(),
            quality=int(config.get("PICTURE_QUALITY") or 75),
        )
    except Exception as e:
        logger.error(f"Error saving picture {path}: {e}", exc_info=True)
        return False
    if not written:
        logger.error(f"Failed to save picture: {path}")
        return False

    ctx.events.dispatch(ctx, EventKind.FILECREATE, None, path, filetype, timestamp)
    return True


def _picture_stem(ctx, template_key: str, default: str, timestamp: datetime) -> str:
    # An empty template (e.g. cleared at runtime) falls back to the default.
    template = ctx.config.get(template_key) or default
    return format_template(template, timestamp, fields=TemplateFields.from_context(ctx))


def _frame_of(image, payload):
    if image is not None:
        return image
    return getattr(payload, "image", None)


def save_detected_image(ctx, image, payload, timestamp: datetime | None = None) -> bool:
    """Saves a detected frame as TARGET_DIR/<PICTURE_FILENAME>.<ext>."""
    if not ctx.config.get("PICTURE_OUTPUT"):
        return False
    timestamp = timestamp or ctx.current_time or datetime.now()
    stem = _picture_stem(ctx, "PICTURE_FILENAME", DEFAULT_PICTURE_FILENAME, timestamp)
    path = os.path.join(ctx.config.get("TARGET_DIR") or ".", f"{stem}.{image_ext(ctx.config)}")
    return put_picture(ctx, path, _frame_of(image, payload), FileType.IMAGE, timestamp)


def save_motion_image(ctx, image, payload, timestamp: datetime | None = None) -> bool:
    """Saves the motion overlay under the picture name plus an 'm'."""
    if not ctx.config.get("PICTURE_OUTPUT_MOTION"):
        return False
    timestamp = timestamp or ctx.current_time or datetime.now()
    stem = _picture_stem(ctx, "PICTURE_FILENAME", DEFAULT_PICTURE_FILENAME, timestamp)
    path = os.path.join(ctx.config.get("TARGET_DIR") or ".", f"{stem}m.{image_ext(ctx.config)}")
    return put_picture(ctx, path, _frame_of(image, payload), FileType.IMAGE_MOTION, timestamp)


def update_link(target_name: str, link_path: str) -> bool:
    """
    Points link_path at target_name.

    The new link is created under a temporary name and renamed over the old
    one, so readers of link_path always see either the old or the new target.

    Returns:
        True if the link now points at target_name.
    """
    tmp_path = f"{link_path}.tmp-{os.getpid()}"
    try:
        if os.path.lexists(tmp_path):
            os.remove(tmp_path)
        os.symlink(target_name, tmp_path)
        os.replace(tmp_path, link_path)
        return True
    except OSError as e:
        logger.error(f"Could not create symbolic link [{link_path}] -> [{target_name}]: {e}")
        try:
            if os.path.lexists(tmp_path):
                os.remove(tmp_path)
        except OSError:
            pass
        return False


def save_snapshot(ctx, image, payload, timestamp: datetime | None = None) -> bool:
    """
    Saves a snapshot and maintains TARGET_DIR/lastsnap.<ext>.

    With a timestamped SNAPSHOT_FILENAME the real file is written first and
    the lastsnap link is switched to it afterwards. With SNAPSHOT_FILENAME
    set to "lastsnap" the fixed file is simply rewritten.

    Returns:
        True if the snapshot file was written.
    """
    config = ctx.config
    timestamp = timestamp or ctx.current_time or datetime.now()
    target_dir = config.get("TARGET_DIR") or "."
    ext = image_ext(config)
    frame = _frame_of(image, payload)
    snappath = config.get("SNAPSHOT_FILENAME") or DEFAULT_SNAPSHOT_FILENAME

    if snappath != LASTSNAP:
        stem = _picture_stem(ctx, "SNAPSHOT_FILENAME", DEFAULT_SNAPSHOT_FILENAME, timestamp)
        filename = f"{stem}.{ext}"
        written = put_picture(
            ctx, os.path.join(target_dir, filename), frame, FileType.IMAGE_SNAPSHOT, timestamp
        )
        if written:
            # Link target is relative to TARGET_DIR, where the link lives.
            update_link(filename, os.path.join(target_dir, f"{LASTSNAP}.{ext}"))
    else:
        fullfilename = os.path.join(target_dir, f"{LASTSNAP}.{ext}")
        try:
            if os.path.lexists(fullfilename):
                os.remove(fullfilename)
        except OSError as e:
            logger.warning(f"Could not remove old snapshot {fullfilename}: {e}")
        written = put_picture(ctx, fullfilename, frame, FileType.IMAGE_SNAPSHOT, timestamp)

    ctx.snapshot_pending = False
    if written:
        ctx.snapshot_count += 1
    return written
