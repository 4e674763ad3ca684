from __future__ import annotations

from typing import Any, Dict, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .settings import BridgeSettings


class _Inbound(BaseModel):
    """Common shape of an inbound message body."""

    model_config = ConfigDict(extra="allow")

    observer: Optional[str] = Field(default=None, description="URL of the sender, used as reply target")
    args: Any = Field(default=None, description="String, list or mapping of call arguments")
    body: Dict[str, Any] = Field(default_factory=dict, exclude=True, description="The raw body as received")


class AuthorizationResponse(_Inbound):
    """An authorization callback (e.g. from an OAuth popup)."""

    kind: Literal["authorization"] = "authorization"
    type: str
    response: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("response", mode="before")
    @classmethod
    def empty_response(cls, v: Any) -> Any:
        return v or {}


class _PathCall(_Inbound):
    path: str = Field(..., min_length=1)


class MethodCall(_PathCall):
    """A ``method`` request: a control call or an invocation expecting a reply."""

    kind: Literal["method"] = "method"

    @property
    def verb(self) -> str:
        return self.path.split(".")[-1]


class GetterCall(_PathCall):
    """A ``getter`` request: read a value and reply with it."""

    kind: Literal["getter"] = "getter"


class RestCall(_PathCall):
    """A ``rest`` request: invoke and let the target handle its own reply."""

    kind: Literal["rest"] = "rest"


class NotUnderstood(BaseModel):
    kind: Literal["not_understood"] = "not_understood"
    body: Any = None
    reason: str = ""


InboundMessage = Union[AuthorizationResponse, MethodCall, GetterCall, RestCall, NotUnderstood]


class ReplyEnvelope(BaseModel):
    """Reply sent back to the originating observer."""

    response: Any = None
    observer: Optional[str] = None
    info: Dict[str, Any] = Field(default_factory=dict)

    def to_message(self) -> Dict[str, Any]:
        return self.model_dump()


_PATH_KINDS = (("method", MethodCall), ("getter", GetterCall), ("rest", RestCall))


def decode_message(body: Any, settings: BridgeSettings) -> InboundMessage:
    """Decode a raw message body into exactly one message kind.

    Priority: authorization responses, then ``method``, ``getter`` and ``rest``.
    Anything else, including non-mapping bodies, is ``NotUnderstood``.
    """
    if isinstance(body, dict) and settings.is_authorization_type(body.get("type")):
        try:
            data = {k: v for k, v in body.items() if k not in ("kind", "body")}
            return AuthorizationResponse.model_validate({**data, "body": body})
        except ValidationError as exc:
            return NotUnderstood(body=body, reason=str(exc))
    # Only plain mappings are structured calls; subclasses are differently-tagged objects.
    if type(body) is not dict:
        return NotUnderstood(body=body, reason="body is not a plain object")
    for key, model in _PATH_KINDS:
        if key in body:
            data = {k: v for k, v in body.items() if k not in ("method", "getter", "rest", "path", "kind", "body")}
            try:
                return model.model_validate({**data, "path": body[key], "body": body})
            except ValidationError as exc:
                return NotUnderstood(body=body, reason=str(exc))
    return NotUnderstood(body=body, reason="no method, getter or rest field")


def normalize_args(args: Any) -> Tuple[Any, ...]:
    """Turn the ``args`` field into positional arguments.

    Missing args give no arguments, a list is spread, anything else (a string
    or a mapping) is passed as a single argument.
    """
    if args is None:
        return ()
    if isinstance(args, (list, tuple)):
        return tuple(args)
    return (args,)
