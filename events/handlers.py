"""
Event Handlers and the default handler table.

Every handler has the signature

    handler(ctx, kind, image, filename, payload, timestamp)

and is responsible for logging its own failures. The order of
DEFAULT_HANDLERS is the dispatch order: for FILECREATE the SQL record is
written before the on_picture_save command runs, and for FIRSTMOTION the
movie frame rate is fixed before the external pipe is created.
"""

import os
import sys

from events.services.database_service import DatabaseSink
from events.services.picture_service import (
    save_detected_image,
    save_motion_image,
    save_snapshot,
)
from events.services import stream_service
from events.types import EventKind, FileType, HandlerBinding, raw_bytes
from logging_config import get_logger
from utils.launcher import exec_command

logger = get_logger(__name__)

MOVIE_FPS_MIN = 2
MOVIE_FPS_MAX = 30

_database_sink = DatabaseSink()


def _filetype(payload) -> int:
    try:
        return int(payload or 0)
    except (TypeError, ValueError):
        return 0


def _run_hook(ctx, key, timestamp, filename=None, filetype=0):
    command = ctx.config.get(key)
    if command:
        exec_command(ctx, command, filename, filetype, timestamp)


# --- FILECREATE / FILECLOSE ---


def sql_newfile(ctx, kind, image, filename, payload, timestamp):
    _database_sink.log_file(ctx, filename, _filetype(payload), timestamp)


def on_picture_save_command(ctx, kind, image, filename, payload, timestamp):
    """Runs ON_PICTURE_SAVE for pictures and ON_MOVIE_START for movies."""
    filetype = _filetype(payload)
    if filetype & FileType.IMAGE_ANY:
        _run_hook(ctx, "ON_PICTURE_SAVE", timestamp, filename, filetype)
    if filetype & FileType.MPEG_ANY:
        _run_hook(ctx, "ON_MOVIE_START", timestamp, filename, filetype)


def newfile_log(ctx, kind, image, filename, payload, timestamp):
    logger.info(f"File of type {_filetype(payload)} saved to: {filename}")


def on_movie_end_command(ctx, kind, image, filename, payload, timestamp):
    filetype = _filetype(payload)
    if filetype & FileType.MPEG_ANY:
        _run_hook(ctx, "ON_MOVIE_END", timestamp, filename, filetype)


# --- Motion state hooks ---


def beep(ctx, kind, image, filename, payload, timestamp):
    if not ctx.config.get("QUIET"):
        sys.stdout.write("\a")
        sys.stdout.flush()


def on_motion_detected_command(ctx, kind, image, filename, payload, timestamp):
    _run_hook(ctx, "ON_MOTION_DETECTED", timestamp)


def on_area_command(ctx, kind, image, filename, payload, timestamp):
    _run_hook(ctx, "ON_AREA_DETECTED", timestamp)


def on_event_start_command(ctx, kind, image, filename, payload, timestamp):
    _run_hook(ctx, "ON_EVENT_START", timestamp)


def on_event_end_command(ctx, kind, image, filename, payload, timestamp):
    _run_hook(ctx, "ON_EVENT_END", timestamp)


def camera_lost_command(ctx, kind, image, filename, payload, timestamp):
    _run_hook(ctx, "ON_CAMERA_LOST", timestamp)


def new_video(ctx, kind, image, filename, payload, timestamp):
    """Fixes the movie frame rate for the sequence that is starting."""
    ctx.movie_last_shot = -1
    ctx.movie_fps = min(max(int(ctx.lastrate or 0), MOVIE_FPS_MIN), MOVIE_FPS_MAX)
    logger.info(f"Movie FPS {ctx.movie_fps}")


# --- Pictures ---


def image_detect(ctx, kind, image, filename, payload, timestamp):
    save_detected_image(ctx, image, payload, timestamp)


def imagem_detect(ctx, kind, image, filename, payload, timestamp):
    save_motion_image(ctx, image, payload, timestamp)


def image_snapshot(ctx, kind, image, filename, payload, timestamp):
    save_snapshot(ctx, image, payload, timestamp)


# --- Frame sinks ---


def vid_putpipe(ctx, kind, image, filename, payload, timestamp):
    """Writes the frame to an open video loopback descriptor (payload)."""
    if not isinstance(payload, int) or payload < 0 or image is None:
        return
    try:
        view = memoryview(raw_bytes(image))
        while view:
            written = os.write(payload, view)
            view = view[written:]
    except OSError as e:
        logger.error(f"Failed to put image into video pipe: {e}")


def stream_put(ctx, kind, image, filename, payload, timestamp):
    stream_service.stream_put(ctx, image, payload)


def stop_stream(ctx, kind, image, filename, payload, timestamp):
    stream_service.stop_stream(ctx)


# --- External pipe ---


def create_extpipe(ctx, kind, image, filename, payload, timestamp):
    ctx.extpipe.create(ctx, timestamp)


def extpipe_put(ctx, kind, image, filename, payload, timestamp):
    ctx.extpipe.put(ctx, payload)


def extpipe_end(ctx, kind, image, filename, payload, timestamp):
    ctx.extpipe.close(ctx, timestamp)


DEFAULT_HANDLERS = (
    HandlerBinding(EventKind.FILECREATE, sql_newfile),
    HandlerBinding(EventKind.FILECREATE, on_picture_save_command),
    HandlerBinding(EventKind.FILECREATE, newfile_log),
    HandlerBinding(EventKind.MOTION, beep),
    HandlerBinding(EventKind.MOTION, on_motion_detected_command),
    HandlerBinding(EventKind.AREA_DETECTED, on_area_command),
    HandlerBinding(EventKind.FIRSTMOTION, on_event_start_command),
    HandlerBinding(EventKind.ENDMOTION, on_event_end_command),
    HandlerBinding(EventKind.IMAGE_DETECTED, image_detect),
    HandlerBinding(EventKind.IMAGEM_DETECTED, imagem_detect),
    HandlerBinding(EventKind.IMAGE_SNAPSHOT, image_snapshot),
    HandlerBinding(EventKind.IMAGE, vid_putpipe),
    HandlerBinding(EventKind.IMAGEM, vid_putpipe),
    HandlerBinding(EventKind.STREAM, stream_put),
    HandlerBinding(EventKind.FIRSTMOTION, new_video),
    HandlerBinding(EventKind.FILECLOSE, on_movie_end_command),
    HandlerBinding(EventKind.FIRSTMOTION, create_extpipe),
    HandlerBinding(EventKind.IMAGE_DETECTED, extpipe_put),
    HandlerBinding(EventKind.FFMPEG_PUT, extpipe_put),
    HandlerBinding(EventKind.ENDMOTION, extpipe_end),
    HandlerBinding(EventKind.CAMERA_LOST, camera_lost_command),
    HandlerBinding(EventKind.STOP, stop_stream),
)
