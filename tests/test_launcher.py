"""
Tests for detached command execution.
"""

from datetime import datetime
from unittest.mock import MagicMock, patch

from utils.launcher import SHELL, exec_command, spawn_detached

TS = datetime(2024, 5, 1, 12, 30, 0)


class TestExecCommand:
    def test_command_is_expanded_and_run_through_shell(self, make_ctx):
        ctx = make_ctx()
        ctx.event_nr = 9
        with patch("utils.launcher.subprocess.Popen") as mock_popen:
            mock_popen.return_value = MagicMock(pid=123)

            process = exec_command(ctx, "notify %v %f %n", "/out/a.jpg", 1, TS)

        assert process.pid == 123
        args, kwargs = mock_popen.call_args
        assert args[0] == [SHELL, "-c", "notify 09 /out/a.jpg image"]
        assert kwargs["start_new_session"] is True
        assert kwargs["close_fds"] is True

    def test_context_time_is_used_without_timestamp(self, make_ctx):
        ctx = make_ctx()
        ctx.current_time = TS
        with patch("utils.launcher.subprocess.Popen") as mock_popen:
            exec_command(ctx, "echo %Y%m%d")
        assert mock_popen.call_args[0][0][2] == "echo 20240501"

    def test_empty_command_spawns_nothing(self, make_ctx):
        with patch("utils.launcher.subprocess.Popen") as mock_popen:
            assert exec_command(make_ctx(), "") is None
        mock_popen.assert_not_called()

    def test_spawn_failure_is_logged(self, caplog):
        with patch("utils.launcher.subprocess.Popen", side_effect=OSError("no shell")):
            assert spawn_detached("true") is None
        assert "no shell" in caplog.text

    def test_child_runs_detached(self, make_ctx, tmp_path):
        marker = tmp_path / "marker"
        process = exec_command(make_ctx(), "touch %f", str(marker), 0, TS)

        assert process is not None
        assert process.wait(timeout=10) == 0
        assert marker.exists()
