"""Base classes and utilities for backfill operations."""

from abc import ABC, abstractmethod

from rich.console import Console


class BackfillBase(ABC):
    """Abstract base class for backfill operations.

    Provides the console for progress display and the batch size setting.

    Subclasses must implement:
    - run(): Main backfill orchestration logic
    """

    def __init__(self, batch_size: int, console: Console | None = None) -> None:
        """Initialize backfill with common configuration.

        Args:
            batch_size: Number of items to process per batch
            console: Console for progress output, a new one by default

        Raises:
            ValueError: If batch_size is not positive
        """
        if batch_size <= 0:
            msg = f"batch_size must be positive, got {batch_size}"
            raise ValueError(msg)
        self.batch_size = batch_size
        self.console = console or Console()

    @abstractmethod
    async def run(self, *args, **kwargs):  # type: ignore[no-untyped-def]
        """Run the backfill process."""
        ...


__all__ = ["BackfillBase"]
