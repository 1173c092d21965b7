"""
Credential Handler - LiteLLM proxy stored credentials.

Credentials are addressed by name. Reading a credential that does not exist
clears the identifier instead of raising.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from client import decode_response
from errors import NotFoundError, ResourceError
from resources.base import ResourceHandler, ResourceKind, wrap_error
from state import ResourceData

logger = logging.getLogger(__name__)

ENDPOINT_CREDENTIALS = "/credentials"

CREDENTIAL_KIND = ResourceKind(
    name="credential",
    not_found_sentinel="credential_not_found",
    patterns=("credential_not_found",),
    create_on_missing_update=False,
    read_clears_id=True,
)

CREDENTIAL_SCHEMA: Dict[str, Any] = {
    "credential_name": "",
    "model_id": "",
    "credential_info": {},
    "credential_values": {},
}


class CredentialRequest(BaseModel):
    """Body of credential create and update calls."""

    credential_name: str
    model_id: Optional[str] = None
    credential_info: Dict[str, Any] = Field(default_factory=dict)
    credential_values: Dict[str, Any] = Field(default_factory=dict)


class CredentialResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    credential_name: str
    credential_info: Optional[Dict[str, Any]] = None


def _credential_path(name: str) -> str:
    return f"{ENDPOINT_CREDENTIALS}/{quote(name, safe='')}"


class CredentialHandler(ResourceHandler):
    """Handler for /credentials resources."""

    @property
    def kind(self) -> ResourceKind:
        return CREDENTIAL_KIND

    @property
    def schema(self) -> Dict[str, Any]:
        return CREDENTIAL_SCHEMA

    def new_identifier(self, data: ResourceData) -> str:
        name = data.get("credential_name")
        if not name:
            raise ResourceError("credential_name must be set")
        return name

    def build_request(
        self, data: ResourceData, resource_id: str, is_update: bool
    ) -> CredentialRequest:
        return CredentialRequest(
            credential_name=resource_id,
            # The model binding is fixed at creation
            model_id=None if is_update else (data.get("model_id") or None),
            credential_info=dict(data.get("credential_info")),
            credential_values=dict(data.get("credential_values")),
        )

    async def write(
        self, request: CredentialRequest, resource_id: str, is_update: bool
    ) -> Any:
        if is_update:
            method, path = "PATCH", _credential_path(resource_id)
        else:
            method, path = "POST", ENDPOINT_CREDENTIALS

        response = await self.client.request(
            method, path, body=request.model_dump(exclude_none=True)
        )
        return decode_response(response, CREDENTIAL_KIND.not_found_sentinel)

    async def read(self, data: ResourceData) -> None:
        path = f"{ENDPOINT_CREDENTIALS}/by_name/{quote(data.id, safe='')}"
        model_id = data.get("model_id")
        params = {"model_id": model_id} if model_id else None

        try:
            response = await self.client.request("GET", path, params=params)
            body = decode_response(
                response, CREDENTIAL_KIND.not_found_sentinel, CREDENTIAL_KIND.patterns
            )
        except NotFoundError:
            logger.debug(f"Credential {data.id} not found, clearing identifier")
            data.set_id("")
            return
        except ResourceError as e:
            raise wrap_error(e, "read", CREDENTIAL_KIND) from e

        try:
            credential = CredentialResponse.model_validate(body)
        except ValidationError as e:
            raise ResourceError(
                f"failed to read credential: malformed response: {e}"
            ) from e

        data.set("credential_name", credential.credential_name)
        data.set("credential_info", credential.credential_info or {})
        # credential_values are write-only on the proxy

    async def delete(self, data: ResourceData) -> None:
        response = await self.client.request("DELETE", _credential_path(data.id))
        decode_response(response, CREDENTIAL_KIND.not_found_sentinel)
