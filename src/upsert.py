"""
Upsert Orchestrator - Create, update and delete with read-back.

A write is only considered done once the resource can be read back. After a
successful write the identifier is assigned and the kind's ReadReconciler
retries the read until the proxy has caught up.

Update flow:

    write(update) -> not found -> write(create) -> reconcile

The create fallback is taken at most once per call.
"""

import logging
from typing import Optional, Union

from config import RetryConfig, get_config
from errors import NotFoundError, ResourceError, UpsertError
from reconciler import ReadReconciler, SleepFn
from resources.base import ResourceHandler
from state import ResourceData

logger = logging.getLogger(__name__)

LoggerLike = Union[logging.Logger, logging.LoggerAdapter]

MAX_CREATE_FALLBACKS = 1


class UpsertOrchestrator:
    """
    Drives writes for one resource kind and reconciles the result.
    """

    def __init__(
        self,
        handler: ResourceHandler,
        retry: Optional[RetryConfig] = None,
        sleep: Optional[SleepFn] = None,
        log: Optional[LoggerLike] = None,
    ):
        self.handler = handler
        self.kind = handler.kind
        self.retry = retry or get_config().retry_for(self.kind.name)
        self.logger = log or logger
        self.reconciler = ReadReconciler(
            kind_name=self.kind.name,
            policy=self.retry.backoff_policy(),
            not_found_message=self.kind.not_found_sentinel,
            patterns=self.kind.patterns,
            sleep=sleep,
            log=self.logger,
        )

    async def create(self, data: ResourceData) -> str:
        """Create the resource. Returns the assigned identifier."""
        return await self.upsert(data, is_update=False)

    async def update(self, data: ResourceData) -> str:
        """Update the resource named by data.id. Returns its identifier."""
        return await self.upsert(data, is_update=True)

    async def upsert(self, data: ResourceData, is_update: bool) -> str:
        """
        Write the declared fields and wait until they can be read back.

        Args:
            data: Declared fields. The identifier is assigned on success.
            is_update: Update the existing resource instead of creating one.

        Returns:
            The resource identifier.

        Raises:
            UpsertError: The write failed.
            ResourceError: The read-back failed; raised as the reconciler
                reported it.
        """
        fallbacks = 0

        while True:
            action = "update" if is_update else "create"
            try:
                resource_id = (
                    data.id if is_update else self.handler.new_identifier(data)
                )
                request = self.handler.build_request(data, resource_id, is_update)
                await self.handler.write(request, resource_id, is_update)
            except NotFoundError as e:
                if (
                    is_update
                    and self.kind.create_on_missing_update
                    and fallbacks < MAX_CREATE_FALLBACKS
                ):
                    self.logger.warning(
                        f"{self.kind.name.capitalize()} {resource_id} not found "
                        f"on update, creating it instead"
                    )
                    fallbacks += 1
                    is_update = False
                    continue
                raise UpsertError(f"failed to {action} {self.kind.name}: {e}") from e
            except ResourceError as e:
                raise UpsertError(f"failed to {action} {self.kind.name}: {e}") from e

            data.set_id(resource_id)
            self.logger.info(
                f"{self.kind.name.capitalize()} {action}d with ID {resource_id}. "
                f"Starting retry mechanism to read the {self.kind.name}..."
            )
            await self.reconciler.reconcile(
                data, self.handler.read, self.retry.max_attempts
            )
            return data.id

    async def delete(self, data: ResourceData) -> None:
        """
        Delete the resource and clear its identifier.

        A resource that is already gone counts as deleted.

        Raises:
            UpsertError: The delete failed.
        """
        try:
            await self.handler.delete(data)
        except NotFoundError:
            self.logger.info(
                f"{self.kind.name.capitalize()} {data.id} already deleted"
            )
        except ResourceError as e:
            raise UpsertError(f"failed to delete {self.kind.name}: {e}") from e

        data.set_id("")
