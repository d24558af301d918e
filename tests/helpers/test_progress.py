"""Tests for progress bar utilities."""

from io import StringIO

from rich.console import Console
from rich.progress import Progress

from blockfees.helpers.progress import create_standard_progress, track_batches


class TestCreateStandardProgress:
    """Tests for create_standard_progress function."""

    def test_creates_progress_instance(self) -> None:
        """Test that function creates Progress instance."""
        progress = create_standard_progress()
        assert isinstance(progress, Progress)

    def test_uses_provided_console(self) -> None:
        """Test that function uses provided console."""
        console = Console(file=StringIO())
        progress = create_standard_progress(console=console)
        assert progress.console == console

    def test_expand(self) -> None:
        """Test that the expand flag is passed through."""
        progress = create_standard_progress(expand=True)
        assert progress.expand is True


class TestTrackBatches:
    """Tests for track_batches function."""

    def test_advances_and_describes(self) -> None:
        """Test that the task advances by the batch size with a batch counter."""
        progress = create_standard_progress(console=Console(file=StringIO()))
        task_id = progress.add_task("Estimating fees", total=100)

        track_batches(progress, task_id, 2, 5, 20, "Estimating fees")

        task = progress.tasks[0]
        assert task.completed == 20
        assert task.description == "Estimating fees [batch 2/5]"
