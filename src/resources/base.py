"""
Resource Handler Base - Abstract interface for LiteLLM resource kinds.

A handler knows how to map a declared field set onto one kind of proxy
resource: how to build its write request, send it, read it back and
delete it. Retry policy and orchestration live outside the handler.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from client import LiteLLMClient
from errors import ResourceError
from state import ResourceData


@dataclass(frozen=True)
class ResourceKind:
    """Static description of a resource kind."""

    name: str
    not_found_sentinel: str
    patterns: Tuple[str, ...] = ()
    # Retry a failed update as a create when the target is gone
    create_on_missing_update: bool = False
    # True: read clears the identifier on absence and returns normally.
    # False: read raises NotFoundError and leaves the identifier alone.
    read_clears_id: bool = False


def wrap_error(err: ResourceError, action: str, kind: ResourceKind) -> ResourceError:
    """Prefix an error with the failed operation, keeping its kind."""
    return ResourceError(f"failed to {action} {kind.name}: {err.message}", kind=err.kind)


class ResourceHandler(ABC):
    """
    Abstract base class for resource handlers.

    Handlers are stateless apart from the client they send requests with.
    """

    def __init__(self, client: Optional[LiteLLMClient] = None):
        self.client = client or LiteLLMClient()

    @property
    @abstractmethod
    def kind(self) -> ResourceKind:
        """The kind of resource this handler manages."""
        pass

    @property
    @abstractmethod
    def schema(self) -> Dict[str, Any]:
        """Declarable fields and their default values."""
        pass

    def new_data(
        self, values: Optional[Dict[str, Any]] = None, resource_id: str = ""
    ) -> ResourceData:
        """Create a field set for this kind."""
        return ResourceData(self.schema, values, resource_id=resource_id)

    @abstractmethod
    def new_identifier(self, data: ResourceData) -> str:
        """Identifier to assign when creating the resource."""
        pass

    @abstractmethod
    def build_request(
        self, data: ResourceData, resource_id: str, is_update: bool
    ) -> Any:
        """
        Build the write request for the declared fields.

        Args:
            data: Declared fields.
            resource_id: Identifier the resource will have after the write.
            is_update: Whether this is an update rather than a create.

        Returns:
            A request model accepted by write().
        """
        pass

    @abstractmethod
    async def write(self, request: Any, resource_id: str, is_update: bool) -> Any:
        """
        Send a create or update.

        Returns:
            The decoded response body.

        Raises:
            NotFoundError: An update targeted a resource that does not exist.
            ResourceError: Any other failure.
        """
        pass

    @abstractmethod
    async def read(self, data: ResourceData) -> None:
        """
        Read the resource named by data.id and update data in place.

        How absence is reported depends on kind.read_clears_id.
        """
        pass

    @abstractmethod
    async def delete(self, data: ResourceData) -> None:
        """
        Delete the resource named by data.id.

        Raises:
            NotFoundError: The resource does not exist.
            ResourceError: Any other failure.
        """
        pass
