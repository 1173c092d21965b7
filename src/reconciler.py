"""
Read Reconciler - Retry reads until a just-written resource is visible.

The LiteLLM proxy does not guarantee read-after-write consistency, so a read
issued right after a create or update can report the resource as missing.
The reconciler retries such reads with capped exponential backoff and keeps
the resource identifier intact across transient absences.

Two absence conventions are supported for read functions:

- clear the identifier on the field set and return normally
  (credentials), or
- raise a not-found error and leave the identifier alone (models).

Both are checked after every attempt.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, Optional, Union

from backoff_policy import BackoffPolicy
from errors import ErrorKind, NotFoundError, classify
from state import ResourceData

logger = logging.getLogger(__name__)

ReadFn = Callable[[ResourceData], Awaitable[None]]
SleepFn = Callable[[float], Awaitable[None]]
LoggerLike = Union[logging.Logger, logging.LoggerAdapter]


class ReadReconciler:
    """
    Drives attempt/evaluate/sleep cycles around a resource read.

    One reconciler is configured per resource kind. Backoff state lives only
    for the duration of a single reconcile() call.
    """

    def __init__(
        self,
        kind_name: str,
        policy: BackoffPolicy,
        not_found_message: str,
        patterns: Iterable[str] = (),
        sleep: Optional[SleepFn] = None,
        log: Optional[LoggerLike] = None,
    ):
        self.kind_name = kind_name
        self.policy = policy
        self.not_found_message = not_found_message
        self.patterns = tuple(patterns)
        self._sleep = sleep or asyncio.sleep
        self.logger = log or logger

    def _extra(self, resource_id: str, attempt: int, max_attempts: int) -> dict:
        return {
            "resource_kind": self.kind_name,
            "resource_id": resource_id,
            "attempt": attempt,
            "max_attempts": max_attempts,
        }

    async def reconcile(
        self, data: ResourceData, read_fn: ReadFn, max_attempts: int
    ) -> None:
        """
        Read the resource until it is visible, a fatal error occurs, or the
        attempt budget is spent.

        Args:
            data: Field set holding the identifier to read. Successful reads
                update it in place.
            read_fn: Coroutine function performing a single read.
            max_attempts: Maximum number of reads, at least 1.

        Raises:
            NotFoundError: The resource never became visible.
            ResourceError: A fatal error from the read, raised unchanged.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        orig_id = data.id
        delay = self.policy.initial()
        err: Optional[BaseException] = None

        if self.policy.settle_delay > 0:
            await self._sleep(self.policy.settle_delay)

        for attempt in range(1, max_attempts + 1):
            extra = self._extra(orig_id, attempt, max_attempts)
            self.logger.info(
                f"Attempting to read {self.kind_name} {orig_id} "
                f"(attempt {attempt}/{max_attempts})",
                extra=extra,
            )

            err = None
            try:
                await read_fn(data)
            except Exception as e:
                err = e

            # A read that cleared the identifier saw a transient absence.
            if not data.id:
                data.set_id(orig_id)
                if err is None:
                    self.logger.debug(
                        f"Read cleared the {self.kind_name} identifier, "
                        f"treating as eventual consistency",
                        extra=extra,
                    )
                    err = NotFoundError(self.not_found_message)

            if err is None:
                self.logger.info(
                    f"Successfully read {self.kind_name} after {attempt} attempts",
                    extra=extra,
                )
                return

            if classify(err, self.patterns) is ErrorKind.FATAL:
                self.logger.error(
                    f"Non-retryable error reading {self.kind_name}: {err}",
                    extra=extra,
                )
                raise err

            if attempt < max_attempts:
                self.logger.info(
                    f"{self.kind_name.capitalize()} not found yet, "
                    f"retrying in {delay:g}s...",
                    extra=extra,
                )
                await self._sleep(delay)
                delay = self.policy.next_delay(delay)

        self.logger.warning(
            f"Failed to read {self.kind_name} after {max_attempts} attempts: {err}",
            extra=self._extra(orig_id, max_attempts, max_attempts),
        )
        raise err
