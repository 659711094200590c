"""
Tests for the EventBus.

Dispatch order, isolation of failing handlers, nested dispatch and the
compiled-in default table.
"""

from datetime import datetime

from events import handlers
from events.bus import EventBus, create_event_bus
from events.types import Event, EventKind, HandlerBinding

from conftest import Recorder


class TestDispatchOrder:
    """Handlers run in registration order, per kind."""

    def test_handlers_run_in_table_order(self, make_ctx):
        log = []
        first = Recorder("first", log)
        second = Recorder("second", log)
        third = Recorder("third", log)
        ctx = make_ctx(
            [
                (EventKind.MOTION, first),
                (EventKind.FIRSTMOTION, second),
                (EventKind.MOTION, third),
            ]
        )

        ctx.events.dispatch(ctx, EventKind.MOTION)

        assert log == ["first", "third"]
        assert second.calls == []

    def test_all_arguments_are_passed(self, make_ctx, recorder):
        ctx = make_ctx([(EventKind.FILECREATE, recorder)])
        ts = datetime(2024, 5, 1, 12, 0, 0)

        ctx.events.dispatch(ctx, EventKind.FILECREATE, b"img", "/tmp/a.jpg", 1, ts)

        assert recorder.calls == [(EventKind.FILECREATE, b"img", "/tmp/a.jpg", 1, ts)]

    def test_dispatch_without_handlers_is_noop(self, make_ctx):
        ctx = make_ctx()
        ctx.events.dispatch(ctx, EventKind.CAMERA_LOST)
        assert ctx.current_time is None

    def test_timestamp_is_recorded_on_context(self, make_ctx):
        ctx = make_ctx()
        ts = datetime(2024, 5, 1, 12, 0, 0)
        ctx.events.dispatch(ctx, EventKind.MOTION, timestamp=ts)
        assert ctx.current_time == ts

    def test_emit_forwards_event_record(self, make_ctx, recorder):
        ctx = make_ctx([(EventKind.STOP, recorder)])
        ctx.events.emit(ctx, Event(EventKind.STOP, filename="x"))
        assert recorder.calls[0][2] == "x"


class TestHandlerIsolation:
    """A failing handler does not stop the ones after it."""

    def test_exception_is_logged_and_dispatch_continues(self, make_ctx, caplog):
        after = Recorder("after")

        def broken(ctx, kind, image, filename, payload, timestamp):
            raise RuntimeError("boom")

        ctx = make_ctx([(EventKind.MOTION, broken), (EventKind.MOTION, after)])

        ctx.events.dispatch(ctx, EventKind.MOTION)

        assert len(after.calls) == 1
        assert "broken" in caplog.text
        assert "boom" in caplog.text


class TestNestedDispatch:
    """Secondary events complete before the outer dispatch moves on."""

    def test_nested_events_are_delivered_depth_first(self, make_ctx):
        log = []
        created = Recorder("created", log)
        tail = Recorder("tail", log)

        def opener(ctx, kind, image, filename, payload, timestamp):
            log.append("opener")
            ctx.events.dispatch(ctx, EventKind.FILECREATE, None, "movie", 8, timestamp)

        ctx = make_ctx(
            [
                (EventKind.FIRSTMOTION, opener),
                (EventKind.FILECREATE, created),
                (EventKind.FIRSTMOTION, tail),
            ]
        )

        ctx.events.dispatch(ctx, EventKind.FIRSTMOTION)

        assert log == ["opener", "created", "tail"]


class TestRegistry:
    def test_register_and_introspect(self, recorder):
        bus = EventBus()
        bus.register(EventKind.STREAM, recorder)
        assert bus.handlers_for(EventKind.STREAM) == [recorder]
        assert bus.handlers_for(EventKind.STOP) == []
        assert bus.bindings == [HandlerBinding(EventKind.STREAM, recorder)]

    def test_default_table_order(self):
        bus = create_event_bus()

        assert bus.handlers_for(EventKind.FILECREATE) == [
            handlers.sql_newfile,
            handlers.on_picture_save_command,
            handlers.newfile_log,
        ]
        assert bus.handlers_for(EventKind.FIRSTMOTION) == [
            handlers.on_event_start_command,
            handlers.new_video,
            handlers.create_extpipe,
        ]
        assert bus.handlers_for(EventKind.IMAGE_DETECTED) == [
            handlers.image_detect,
            handlers.extpipe_put,
        ]
        assert bus.handlers_for(EventKind.ENDMOTION) == [
            handlers.on_event_end_command,
            handlers.extpipe_end,
        ]
        assert bus.handlers_for(EventKind.MOTION) == [
            handlers.beep,
            handlers.on_motion_detected_command,
        ]
        assert bus.handlers_for(EventKind.IMAGE) == [handlers.vid_putpipe]
        assert bus.handlers_for(EventKind.IMAGEM) == [handlers.vid_putpipe]
        assert bus.handlers_for(EventKind.STOP) == [handlers.stop_stream]

    def test_default_table_covers_every_kind(self):
        bus = create_event_bus()
        for kind in EventKind:
            assert bus.handlers_for(kind), kind
