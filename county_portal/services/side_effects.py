"""
Best-effort side effects attached to a primary operation.

Emails, notifications and stale-object cleanup never fail the request that
triggered them. Each attempt is recorded as a SideEffectOutcome next to the
primary value so callers and tests can see what happened.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class SideEffectOutcome:
    name: str
    ok: bool
    error: Optional[str] = None


@dataclass
class OperationResult(Generic[T]):
    value: T
    side_effects: List[SideEffectOutcome] = field(default_factory=list)

    @property
    def failed(self) -> List[SideEffectOutcome]:
        return [outcome for outcome in self.side_effects if not outcome.ok]


async def run_side_effect(
    outcomes: List[SideEffectOutcome],
    name: str,
    action: Callable[[], Awaitable[Any]],
) -> bool:
    """Await action, log any failure, and append the outcome. Returns success."""
    try:
        await action()
    except Exception as exc:
        logger.exception("Side effect %s failed", name)
        outcomes.append(SideEffectOutcome(name=name, ok=False, error=str(exc) or type(exc).__name__))
        return False
    outcomes.append(SideEffectOutcome(name=name, ok=True))
    return True
