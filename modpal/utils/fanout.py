"""
Concurrent fan-out over independent sources.

Runs one coroutine per source, collects ``(id, result)`` pairs and splits
them into successes and failures. A failing source never cancels its peers.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Generic, Mapping, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class FanOutResult(Generic[T]):
    successes: Dict[str, T] = field(default_factory=dict)
    failures: Dict[str, BaseException] = field(default_factory=dict)

    def report(self, reporter: Callable[[str], Any], label: str) -> None:
        """Send every failure to the reporter, one message per source."""
        for source_id, error in self.failures.items():
            message = f"{label} ({source_id}): {error}"
            logger.error(message)
            reporter(message)


async def gather_results(tasks: Mapping[str, Callable[[], Awaitable[T]]]) -> FanOutResult[T]:
    """Run every task concurrently and partition the results.

    Args:
        tasks: source id -> zero-argument coroutine function.
    """
    ids = list(tasks.keys())
    results = await asyncio.gather(*(tasks[i]() for i in ids), return_exceptions=True)

    outcome: FanOutResult[T] = FanOutResult()
    for source_id, result in zip(ids, results):
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, Exception):
            outcome.failures[source_id] = result
        else:
            outcome.successes[source_id] = result
    return outcome


async def in_thread(func: Callable[..., T], *args) -> T:
    """Run a blocking filesystem scan in a worker thread."""
    return await asyncio.to_thread(func, *args)
