from __future__ import annotations

from unittest.mock import Mock, patch

from xlsx_transcoder.services.progress import ProgressTracker, is_tty_enabled


def test_is_tty_enabled_returns_stdout_isatty():
    """Test that is_tty_enabled returns sys.stdout.isatty()."""
    with patch('sys.stdout.isatty', return_value=True):
        assert is_tty_enabled() is True

    with patch('sys.stdout.isatty', return_value=False):
        assert is_tty_enabled() is False


class TestProgressTracker:
    """Test cases for ProgressTracker class."""

    def test_init_with_tty_enabled(self):
        """Bar is created with the fixed display settings."""
        with patch('xlsx_transcoder.services.progress.is_tty_enabled', return_value=True), \
             patch('xlsx_transcoder.services.progress.tqdm') as mock_tqdm:

            tracker = ProgressTracker(5, description="Test files")

            assert tracker.total_files == 5
            assert tracker.description == "Test files"
            assert tracker.completed == 0
            assert tracker.enabled is True
            mock_tqdm.assert_called_once_with(
                total=5,
                desc="Test files",
                unit="file",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )

    def test_init_with_tty_disabled(self):
        """No bar outside a TTY."""
        with patch('xlsx_transcoder.services.progress.is_tty_enabled', return_value=False), \
             patch('xlsx_transcoder.services.progress.tqdm') as mock_tqdm:
            tracker = ProgressTracker(5)

            assert tracker.enabled is False
            assert tracker.pbar is None
            mock_tqdm.assert_not_called()

    def test_finish_file_updates_bar(self):
        mock_pbar = Mock()
        with patch('xlsx_transcoder.services.progress.is_tty_enabled', return_value=True), \
             patch('xlsx_transcoder.services.progress.tqdm', return_value=mock_pbar):
            tracker = ProgressTracker(2)
            tracker.finish_file("a.xlsx", success=True)
            tracker.finish_file("b.xlsx", success=False)

        assert tracker.completed == 2
        assert tracker.failed == 1
        assert mock_pbar.update.call_count == 2
        mock_pbar.set_postfix.assert_called_with(last="b.xlsx", failed=1)

    def test_finish_file_counts_without_tty(self):
        with patch('xlsx_transcoder.services.progress.is_tty_enabled', return_value=False):
            tracker = ProgressTracker(1)
            tracker.finish_file("a.xlsx", success=False)
        assert tracker.completed == 1
        assert tracker.failed == 1

    def test_context_manager_closes_bar(self):
        mock_pbar = Mock()
        with patch('xlsx_transcoder.services.progress.is_tty_enabled', return_value=True), \
             patch('xlsx_transcoder.services.progress.tqdm', return_value=mock_pbar):
            with ProgressTracker(1) as tracker:
                tracker.finish_file("a.xlsx")

        mock_pbar.close.assert_called_once()
        assert tracker.pbar is None
