"""Primary result plus best-effort secondary steps.

Some operations have one critical effect (the invitation row, the new user)
followed by secondary effects (an email, syncing the user's organization
list). Secondary failures are logged and collected as warnings instead of
failing the request.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from taskshift.core.logging import get_logger

logger = get_logger("core.outcome")

T = TypeVar("T")


@dataclass
class Outcome(Generic[T]):
    """Result of an operation whose secondary steps may have failed."""

    value: T
    warnings: list[str] = field(default_factory=list)

    @property
    def partial_failure(self) -> bool:
        return bool(self.warnings)

    async def attempt(
        self,
        step: str,
        action: Callable[[], Awaitable[Any]],
        *,
        session: AsyncSession | None = None,
    ) -> Any | None:
        """Run a secondary step, recording a warning instead of raising.

        When ``session`` is given the step runs inside a SAVEPOINT so a failed
        write is rolled back without discarding the primary changes.

        Returns the step's result, or None when it failed.
        """
        try:
            if session is None:
                return await action()
            async with session.begin_nested():
                return await action()
        except Exception as exc:
            logger.warning("secondary_step_failed", step=step, error=str(exc), exc_info=True)
            self.warnings.append(f"{step} failed: {exc}")
            return None
