from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

logger = logging.getLogger(__name__)

DEFAULTED_FIELDS = ("model", "stream", "temperature", "max_tokens")


class Message(BaseModel):
    model_config = ConfigDict(extra="allow")

    role: str
    content: str | list[Any] | None = None


class ChatCompletionRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    model: str | None = None
    messages: list[Message] | None = None
    stream: bool = True
    temperature: float = 0.7
    max_tokens: int = 2048

    @model_validator(mode="before")
    @classmethod
    def _drop_null_defaults(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return _without_null_defaults(data)
        return data

    @classmethod
    def from_body(cls, body: Any) -> "ChatCompletionRequest":
        """Build a request from a decoded JSON body without rejecting it.

        Bodies the model cannot validate are kept as sent (defaults filled in)
        so the upstream provider decides whether they are acceptable.
        """
        if not isinstance(body, dict):
            logger.warning("request body is not a JSON object; forwarding defaults")
            body = {}
        try:
            return cls.model_validate(body)
        except ValidationError as exc:
            logger.warning(
                "forwarding unvalidated request body: %s", exc.errors()[0]["msg"]
            )
            return cls.model_construct(**_without_null_defaults(body))

    @property
    def streaming(self) -> bool:
        return self.stream is not False

    def to_payload(self, model: str, extra: dict[str, Any] | None = None) -> dict[str, Any]:
        """Passthrough body with the routed provider model substituted."""
        payload = self.model_dump(exclude_none=True, warnings=False)
        payload["model"] = model
        if extra:
            payload.update(extra)
        return payload


def _without_null_defaults(data: dict[str, Any]) -> dict[str, Any]:
    return {
        key: value
        for key, value in data.items()
        if not (key in DEFAULTED_FIELDS and value is None)
    }
