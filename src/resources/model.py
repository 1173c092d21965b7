"""
Model Handler - LiteLLM proxy model deployments.

Models are addressed by a generated UUID. A model that has just been
created can take several seconds to appear on /model/info, and a missing
model is reported as an error rather than an empty answer.
"""

import logging
import uuid
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from client import decode_response
from errors import NotFoundError, ResourceError
from params import merge_additional_params
from resources.base import ResourceHandler, ResourceKind, wrap_error
from state import ResourceData

logger = logging.getLogger(__name__)

ENDPOINT_MODEL_NEW = "/model/new"
ENDPOINT_MODEL_UPDATE = "/model/update"
ENDPOINT_MODEL_INFO = "/model/info"
ENDPOINT_MODEL_DELETE = "/model/delete"

TOKENS_PER_MILLION = 1_000_000.0

MODEL_KIND = ResourceKind(
    name="model",
    not_found_sentinel="model_not_found",
    patterns=("not found", "Model id =", "model_not_found"),
    create_on_missing_update=True,
    read_clears_id=False,
)

MODEL_SCHEMA: Dict[str, Any] = {
    "model_name": "",
    "custom_llm_provider": "",
    "base_model": "",
    "tier": "",
    "mode": "",
    "team_id": "",
    "tpm": 0,
    "rpm": 0,
    "model_api_key": "",
    "model_api_base": "",
    "api_version": "",
    "input_cost_per_million_tokens": 0.0,
    "output_cost_per_million_tokens": 0.0,
    "input_cost_per_pixel": 0.0,
    "output_cost_per_pixel": 0.0,
    "input_cost_per_second": 0.0,
    "output_cost_per_second": 0.0,
    "aws_access_key_id": "",
    "aws_secret_access_key": "",
    "aws_region_name": "",
    "aws_session_name": "",
    "aws_role_name": "",
    "vertex_project": "",
    "vertex_location": "",
    "vertex_credentials": "",
    "reasoning_effort": "",
    "thinking_enabled": False,
    "thinking_budget_tokens": 1024,
    "merge_reasoning_content_in_choices": False,
    "additional_litellm_params": {},
}

# Declared field -> litellm_params key, included only when non-empty
_OPTIONAL_PARAMS = {
    "tpm": "tpm",
    "rpm": "rpm",
    "model_api_key": "api_key",
    "model_api_base": "api_base",
    "api_version": "api_version",
    "input_cost_per_pixel": "input_cost_per_pixel",
    "output_cost_per_pixel": "output_cost_per_pixel",
    "input_cost_per_second": "input_cost_per_second",
    "output_cost_per_second": "output_cost_per_second",
    "aws_access_key_id": "aws_access_key_id",
    "aws_secret_access_key": "aws_secret_access_key",
    "aws_region_name": "aws_region_name",
    "aws_session_name": "aws_session_name",
    "aws_role_name": "aws_role_name",
    "vertex_project": "vertex_project",
    "vertex_location": "vertex_location",
    "vertex_credentials": "vertex_credentials",
    "reasoning_effort": "reasoning_effort",
}


class ModelInfo(BaseModel):
    """model_info block of a model write request."""

    id: str
    db_model: bool = True
    base_model: str = ""
    tier: Optional[str] = None
    mode: Optional[str] = None
    team_id: Optional[str] = None


class ModelRequest(BaseModel):
    """Body of /model/new and /model/update."""

    model_config = ConfigDict(protected_namespaces=())

    model_name: str
    litellm_params: Dict[str, Any] = Field(default_factory=dict)
    model_info: ModelInfo


class ModelResponseParams(BaseModel):
    model_config = ConfigDict(extra="ignore")

    custom_llm_provider: Optional[str] = None
    tpm: Optional[int] = None
    rpm: Optional[int] = None
    api_base: Optional[str] = None
    api_version: Optional[str] = None
    aws_region_name: Optional[str] = None
    thinking: Optional[Dict[str, Any]] = None
    merge_reasoning_content_in_choices: Optional[bool] = None


class ModelResponseInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    base_model: Optional[str] = None
    tier: Optional[str] = None
    mode: Optional[str] = None
    team_id: Optional[str] = None


class ModelResponse(BaseModel):
    """One entry of the /model/info answer."""

    model_config = ConfigDict(extra="ignore", protected_namespaces=())

    model_name: Optional[str] = None
    litellm_params: ModelResponseParams = Field(default_factory=ModelResponseParams)
    model_info: ModelResponseInfo = Field(default_factory=ModelResponseInfo)


def build_litellm_params(data: ResourceData) -> Dict[str, Any]:
    """Map declared model fields onto the proxy's litellm_params."""
    provider = data.get("custom_llm_provider")
    base_model = data.get("base_model")

    params: Dict[str, Any] = {
        "custom_llm_provider": provider,
        "model": f"{provider}/{base_model}",
        "input_cost_per_token": data.get("input_cost_per_million_tokens")
        / TOKENS_PER_MILLION,
        "output_cost_per_token": data.get("output_cost_per_million_tokens")
        / TOKENS_PER_MILLION,
        "merge_reasoning_content_in_choices": data.get(
            "merge_reasoning_content_in_choices"
        ),
    }

    for field_name, param_name in _OPTIONAL_PARAMS.items():
        value = data.get(field_name)
        if value:
            params[param_name] = value

    if data.get("thinking_enabled"):
        params["thinking"] = {
            "type": "enabled",
            "budget_tokens": data.get("thinking_budget_tokens"),
        }

    additional, ok = data.get_ok("additional_litellm_params")
    if ok:
        merge_additional_params(params, additional)

    return params


def _pick(value: Any, fallback: Any) -> Any:
    """Prefer a non-empty value returned by the API over the state value."""
    return value if value else fallback


class ModelHandler(ResourceHandler):
    """Handler for /model/* resources."""

    @property
    def kind(self) -> ResourceKind:
        return MODEL_KIND

    @property
    def schema(self) -> Dict[str, Any]:
        return MODEL_SCHEMA

    def new_identifier(self, data: ResourceData) -> str:
        return str(uuid.uuid4())

    def build_request(
        self, data: ResourceData, resource_id: str, is_update: bool
    ) -> ModelRequest:
        return ModelRequest(
            model_name=data.get("model_name"),
            litellm_params=build_litellm_params(data),
            model_info=ModelInfo(
                id=resource_id,
                db_model=True,
                base_model=data.get("base_model"),
                tier=data.get("tier") or None,
                mode=data.get("mode") or None,
                team_id=data.get("team_id") or None,
            ),
        )

    async def write(
        self, request: ModelRequest, resource_id: str, is_update: bool
    ) -> Any:
        endpoint = ENDPOINT_MODEL_UPDATE if is_update else ENDPOINT_MODEL_NEW
        logger.debug(f"Writing model {resource_id} to {endpoint}")
        response = await self.client.request(
            "POST", endpoint, body=request.model_dump(exclude_none=True)
        )
        return decode_response(response, MODEL_KIND.not_found_sentinel)

    async def read(self, data: ResourceData) -> None:
        try:
            response = await self.client.request(
                "GET", ENDPOINT_MODEL_INFO, params={"litellm_model_id": data.id}
            )
            body = decode_response(
                response, MODEL_KIND.not_found_sentinel, MODEL_KIND.patterns
            )
        except NotFoundError:
            raise
        except ResourceError as e:
            raise wrap_error(e, "read", MODEL_KIND) from e

        model = self._parse_model(body)
        self._apply_response(data, model)

    def _parse_model(self, body: Any) -> ModelResponse:
        entry = body
        if isinstance(body, dict) and "data" in body:
            entries = body["data"] or []
            if not isinstance(entries, list):
                raise ResourceError(
                    "failed to read model: malformed response: "
                    f"expected a list under 'data', got {type(entries).__name__}"
                )
            if not entries:
                raise NotFoundError(MODEL_KIND.not_found_sentinel)
            entry = entries[0]

        try:
            return ModelResponse.model_validate(entry)
        except ValidationError as e:
            raise ResourceError(f"failed to read model: malformed response: {e}") from e

    def _apply_response(self, data: ResourceData, model: ModelResponse) -> None:
        params = model.litellm_params
        info = model.model_info

        data.set("model_name", _pick(model.model_name, data.get("model_name")))
        data.set(
            "custom_llm_provider",
            _pick(params.custom_llm_provider, data.get("custom_llm_provider")),
        )
        data.set("tpm", _pick(params.tpm, data.get("tpm")))
        data.set("rpm", _pick(params.rpm, data.get("rpm")))
        data.set("model_api_base", _pick(params.api_base, data.get("model_api_base")))
        data.set("api_version", _pick(params.api_version, data.get("api_version")))
        data.set("base_model", _pick(info.base_model, data.get("base_model")))
        data.set("tier", _pick(info.tier, data.get("tier")))
        data.set("mode", _pick(info.mode, data.get("mode")))
        data.set("team_id", _pick(info.team_id, data.get("team_id")))
        data.set(
            "aws_region_name",
            _pick(params.aws_region_name, data.get("aws_region_name")),
        )

        # Secrets, costs and additional params are never echoed back in
        # full, so the declared values stay as they are.

        if not data.get_ok("thinking_enabled")[1]:
            thinking = params.thinking or {}
            if thinking.get("type") == "enabled":
                data.set("thinking_enabled", True)
                budget = thinking.get("budget_tokens")
                if isinstance(budget, (int, float)):
                    data.set("thinking_budget_tokens", int(budget))
            else:
                data.set("thinking_enabled", False)

        if not data.get_ok("merge_reasoning_content_in_choices")[1]:
            data.set(
                "merge_reasoning_content_in_choices",
                bool(params.merge_reasoning_content_in_choices),
            )

    async def delete(self, data: ResourceData) -> None:
        response = await self.client.request(
            "POST", ENDPOINT_MODEL_DELETE, body={"id": data.id}
        )
        decode_response(response, MODEL_KIND.not_found_sentinel)
