"""
Resource handlers package.

Each handler maps one LiteLLM proxy resource kind onto the generic
upsert/read/delete flow.
"""

from typing import Dict, Optional, Type

from client import LiteLLMClient
from resources.base import ResourceHandler, ResourceKind
from resources.credential import CREDENTIAL_KIND, CredentialHandler
from resources.model import MODEL_KIND, ModelHandler

HANDLERS: Dict[str, Type[ResourceHandler]] = {
    MODEL_KIND.name: ModelHandler,
    CREDENTIAL_KIND.name: CredentialHandler,
}


def get_handler(kind_name: str, client: Optional[LiteLLMClient] = None) -> ResourceHandler:
    """
    Get a handler for a resource kind.

    Raises:
        ValueError: If the kind is not known.
    """
    handler_class = HANDLERS.get(kind_name)
    if handler_class is None:
        raise ValueError(
            f"Unknown resource kind '{kind_name}'. "
            f"Available: {', '.join(sorted(HANDLERS))}"
        )
    return handler_class(client)


__all__ = [
    "HANDLERS",
    "ResourceHandler",
    "ResourceKind",
    "ModelHandler",
    "CredentialHandler",
    "get_handler",
]
