"""Base orchestrator for pipeline execution.

Provides common infrastructure for pipeline orchestrators:
- Database engine and session management
- Timing around each run
- A common run() interface

Usage:
    class MyOrchestrator(BaseOrchestrator):
        async def _run_pipeline(self, **options):
            # Implementation
            return report

        def _log_summary(self, report, elapsed):
            # Log final statistics
            pass
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from sticker_drive.db.engine import get_async_session, get_engine, init_db

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker


class BaseOrchestrator(ABC):
    """Abstract base class for pipeline orchestrators.

    Provides:
    - Database engine and session factory (cached)
    - Table initialization
    - Timing infrastructure

    Subclasses must implement:
    - _run_pipeline(): The actual pipeline logic
    - _log_summary(): Log final statistics
    """

    def __init__(self, database_url: str) -> None:
        """Initialize the orchestrator.

        Args:
            database_url: Database connection URL.
        """
        self.database_url = database_url
        self.engine: AsyncEngine = get_engine(database_url)
        self.async_session: async_sessionmaker[AsyncSession] = get_async_session(
            database_url
        )

    async def init_db(self) -> None:
        """Create tables if they don't exist."""
        await init_db(self.engine)

    async def run(self, **options: Any) -> Any:
        """Run the pipeline once and log its summary.

        Timing is kept local so skipped concurrent calls cannot disturb
        the run in flight.
        """
        start = time.time()
        report = await self._run_pipeline(**options)
        self._log_summary(report, time.time() - start)
        return report

    @abstractmethod
    async def _run_pipeline(self, **options: Any) -> Any:
        """Execute the pipeline logic and return its report."""
        ...

    @abstractmethod
    def _log_summary(self, report: Any, elapsed: float) -> None:
        """Log the final summary statistics.

        Args:
            report: Whatever _run_pipeline returned.
            elapsed: Total time elapsed in seconds.
        """
        ...
