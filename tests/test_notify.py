"""Tests for notifications: platform gating and message helpers."""

from unittest.mock import patch


class TestSend:
    @patch("avocado_sync.notify.subprocess.run")
    @patch("avocado_sync.notify.platform.system", return_value="Linux")
    def test_noop_off_macos(self, mock_system, mock_run):
        from avocado_sync.notify import send

        send("Avocado", "hello")
        mock_run.assert_not_called()

    @patch("avocado_sync.notify.subprocess.run")
    @patch("avocado_sync.notify.platform.system", return_value="Darwin")
    def test_uses_terminal_notifier(self, mock_system, mock_run):
        from avocado_sync.notify import send

        send("Avocado", "hello")
        args = mock_run.call_args.args[0]
        assert args[0] == "terminal-notifier"
        assert "hello" in args

    @patch("avocado_sync.notify.subprocess.run")
    @patch("avocado_sync.notify.platform.system", return_value="Darwin")
    def test_falls_back_to_osascript(self, mock_system, mock_run):
        from avocado_sync.notify import send

        mock_run.side_effect = [FileNotFoundError(), None]
        send("Avocado", 'say "hi"')

        args = mock_run.call_args.args[0]
        assert args[0] == "osascript"
        assert 'say \\"hi\\"' in args[2]

    @patch("avocado_sync.notify.subprocess.run", side_effect=OSError("boom"))
    @patch("avocado_sync.notify.platform.system", return_value="Darwin")
    def test_never_raises(self, mock_system, mock_run):
        from avocado_sync.notify import send

        send("Avocado", "hello")


class TestHelpers:
    @patch("avocado_sync.notify.send")
    def test_summary_skipped_when_nothing_happened(self, mock_send):
        from avocado_sync.notify import notify_summary

        notify_summary(0, 0)
        mock_send.assert_not_called()

    @patch("avocado_sync.notify.send")
    def test_summary_pluralizes(self, mock_send):
        from avocado_sync.notify import notify_summary

        notify_summary(1, 3)
        mock_send.assert_called_once_with("Avocado", "1 new book, 3 notes updated")

    @patch("avocado_sync.notify.send")
    def test_invalid_token_message(self, mock_send):
        from avocado_sync.notify import invalid_token

        invalid_token()
        mock_send.assert_called_once_with("Avocado", "Invalid token")
