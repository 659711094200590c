"""
Tests for the ExternalPipeSession.

Uses `cat > %f` as the encoder so the raw bytes written through the pipe
can be checked on disk.
"""

import logging
import os
from datetime import datetime
from unittest.mock import MagicMock

import pytest

from events import handlers
from events.services.extpipe_service import ExternalPipeSession, PipeState
from events.types import EventKind, FileType, ImageData

TS = datetime(2024, 5, 1, 12, 30, 0)


@pytest.fixture
def pipe_ctx(make_ctx, recorder):
    """Context with the pipe handlers and a FILECREATE/FILECLOSE recorder."""
    ctx = make_ctx(
        [
            (EventKind.FIRSTMOTION, handlers.create_extpipe),
            (EventKind.IMAGE_DETECTED, handlers.extpipe_put),
            (EventKind.FFMPEG_PUT, handlers.extpipe_put),
            (EventKind.ENDMOTION, handlers.extpipe_end),
            (EventKind.FILECREATE, recorder),
            (EventKind.FILECLOSE, recorder),
        ],
        USE_EXTPIPE=True,
        EXTPIPE="cat > %f",
        MOVIE_FILENAME="movie-%v",
    )
    ctx.event_nr = 3
    yield ctx
    ctx.extpipe.close(ctx)


class TestPipeLifecycle:
    def test_motion_sequence_writes_frames_to_encoder(self, pipe_ctx, recorder):
        ctx = pipe_ctx
        frames = [b"\x01\x02\x03", b"\x04\x05", b"\x06"]

        ctx.events.dispatch(ctx, EventKind.FIRSTMOTION, timestamp=TS)
        assert ctx.extpipe.state is PipeState.OPEN
        for frame in frames:
            ctx.events.dispatch(ctx, EventKind.IMAGE_DETECTED, frame, None, ImageData(frame), TS)
        ctx.events.dispatch(ctx, EventKind.ENDMOTION, timestamp=TS)

        movie = f"{ctx.config['TARGET_DIR']}/movie-03"
        assert ctx.extpipe.state is PipeState.CLOSED
        with open(movie, "rb") as f:
            assert f.read() == b"".join(frames)

        created = recorder.of_kind(EventKind.FILECREATE)
        closed = recorder.of_kind(EventKind.FILECLOSE)
        assert [(c[2], c[3]) for c in created] == [(movie, FileType.MPEG)]
        assert [(c[2], c[3]) for c in closed] == [(movie, FileType.MPEG)]

    def test_second_create_is_refused_while_open(self, pipe_ctx, recorder):
        ctx = pipe_ctx
        assert ctx.extpipe.create(ctx, TS) is True
        process = ctx.extpipe.process

        assert ctx.extpipe.create(ctx, TS) is False
        assert ctx.extpipe.process is process
        assert len(recorder.of_kind(EventKind.FILECREATE)) == 1

    def test_close_is_idempotent(self, pipe_ctx, recorder):
        ctx = pipe_ctx
        ctx.extpipe.create(ctx, TS)

        assert ctx.extpipe.close(ctx, TS) is True
        assert ctx.extpipe.close(ctx, TS) is False
        assert len(recorder.of_kind(EventKind.FILECLOSE)) == 1

    def test_close_without_session_does_nothing(self, pipe_ctx, recorder):
        assert pipe_ctx.extpipe.close(pipe_ctx) is False
        assert recorder.calls == []

    def test_write_while_closed_is_dropped(self, pipe_ctx):
        assert pipe_ctx.extpipe.put(pipe_ctx, ImageData(b"frame")) is False

    def test_disabled_pipe_never_opens(self, pipe_ctx, recorder):
        pipe_ctx.config["USE_EXTPIPE"] = False
        assert pipe_ctx.extpipe.create(pipe_ctx, TS) is False
        assert recorder.calls == []


class TestPathProbe:
    def test_unwritable_target_aborts_before_spawn(self, pipe_ctx, recorder, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("x")
        pipe_ctx.config["TARGET_DIR"] = str(blocker)

        assert pipe_ctx.extpipe.create(pipe_ctx, TS) is False
        assert pipe_ctx.extpipe.process is None
        assert pipe_ctx.extpipe.state is PipeState.CLOSED
        assert recorder.calls == []

    def test_probe_leaves_no_file_behind(self, pipe_ctx):
        pipe_ctx.config["EXTPIPE"] = "cat > /dev/null"
        assert pipe_ctx.extpipe.create(pipe_ctx, TS) is True
        pipe_ctx.extpipe.close(pipe_ctx, TS)

        assert not os.path.exists(pipe_ctx.extpipe.filename)


class TestFrameSelection:
    def _open_with_fake_process(self, ctx):
        session = ExternalPipeSession()
        process = MagicMock()
        process.stdin.closed = False
        process.stdin.fileno.return_value = 5
        process.stdin.write.side_effect = lambda view: len(view)
        session._process = process
        session._state = PipeState.OPEN
        ctx.extpipe = session
        return process

    def test_secondary_buffer_used_when_configured(self, make_ctx):
        ctx = make_ctx(USE_EXTPIPE=True, EXTPIPE_SECONDARY=True)
        process = self._open_with_fake_process(ctx)

        assert ctx.extpipe.put(ctx, ImageData(b"primary", secondary_image=b"second")) is True

        written = b"".join(bytes(c.args[0]) for c in process.stdin.write.call_args_list)
        assert written == b"second"

    def test_primary_buffer_used_by_default(self, make_ctx):
        ctx = make_ctx(USE_EXTPIPE=True)
        process = self._open_with_fake_process(ctx)

        ctx.extpipe.put(ctx, ImageData(b"primary", secondary_image=b"second"))

        written = b"".join(bytes(c.args[0]) for c in process.stdin.write.call_args_list)
        assert written == b"primary"

    def test_partial_writes_are_completed(self, make_ctx):
        ctx = make_ctx(USE_EXTPIPE=True)
        process = self._open_with_fake_process(ctx)
        chunks = []

        def write_two_bytes(view):
            chunks.append(bytes(view[:2]))
            return min(2, len(view))

        process.stdin.write.side_effect = write_two_bytes

        assert ctx.extpipe.put(ctx, ImageData(b"abcde")) is True
        assert b"".join(chunks) == b"abcde"

    def test_write_error_is_reported(self, make_ctx):
        ctx = make_ctx(USE_EXTPIPE=True)
        process = self._open_with_fake_process(ctx)
        process.stdin.write.side_effect = BrokenPipeError("gone")

        assert ctx.extpipe.put(ctx, ImageData(b"abc")) is False

    def test_closed_descriptor_is_not_written(self, make_ctx):
        ctx = make_ctx(USE_EXTPIPE=True)
        process = self._open_with_fake_process(ctx)
        process.stdin.closed = True

        assert ctx.extpipe.put(ctx, ImageData(b"abc")) is False
        process.stdin.write.assert_not_called()

    def test_non_image_payload_is_rejected(self, make_ctx, caplog):
        ctx = make_ctx(USE_EXTPIPE=True)
        process = self._open_with_fake_process(ctx)

        with caplog.at_level(logging.ERROR, logger="events.services.extpipe_service"):
            assert ctx.extpipe.put(ctx, 42) is False

        process.stdin.write.assert_not_called()
        assert "got int" in caplog.text
