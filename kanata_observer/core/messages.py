"""Kanata TCP notification protocol messages.

Server messages are externally tagged JSON objects, one per line::

    {"LayerChange":{"new":"nav"}}

The object holds exactly one key, the variant name, mapped to the variant's
fields. Responses to client requests are internally tagged by a "status" field
instead. Kanata emits more message kinds than this client reacts to and may
grow new ones, so decoding a server message never raises: anything that isn't
a known variant comes back as Unrecognized.
"""

import json
from dataclasses import dataclass, fields
from typing import Any, Callable, ClassVar, Dict, List, Tuple, Type, Union


class ProtocolError(ValueError):
    """Raised when a server response line is malformed."""


@dataclass(frozen=True)
class LayerChange:
    TAG: ClassVar[str] = "LayerChange"
    new: str


@dataclass(frozen=True)
class LayerNames:
    TAG: ClassVar[str] = "LayerNames"
    names: List[str]


@dataclass(frozen=True)
class CurrentLayerInfo:
    TAG: ClassVar[str] = "CurrentLayerInfo"
    name: str
    cfg_text: str


@dataclass(frozen=True)
class ConfigFileReload:
    TAG: ClassVar[str] = "ConfigFileReload"
    new: str


@dataclass(frozen=True)
class CurrentLayerName:
    TAG: ClassVar[str] = "CurrentLayerName"
    name: str


@dataclass(frozen=True)
class MessagePush:
    TAG: ClassVar[str] = "MessagePush"
    message: Any


@dataclass(frozen=True)
class ErrorMessage:
    TAG: ClassVar[str] = "Error"
    msg: str


ServerMessage = Union[
    LayerChange,
    LayerNames,
    CurrentLayerInfo,
    ConfigFileReload,
    CurrentLayerName,
    MessagePush,
    ErrorMessage,
]


@dataclass(frozen=True)
class Unrecognized:
    """A frame that doesn't decode as any known server message."""
    raw: str
    reason: str


def _is_text(value: Any) -> bool:
    return isinstance(value, str)


def _is_text_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def _is_any(value: Any) -> bool:
    return True


# tag -> (variant class, ((field, validator), ...))
_VARIANTS: Dict[str, Tuple[Type, Tuple[Tuple[str, Callable[[Any], bool]], ...]]] = {
    LayerChange.TAG: (LayerChange, (("new", _is_text),)),
    LayerNames.TAG: (LayerNames, (("names", _is_text_list),)),
    CurrentLayerInfo.TAG: (CurrentLayerInfo, (("name", _is_text), ("cfg_text", _is_text))),
    ConfigFileReload.TAG: (ConfigFileReload, (("new", _is_text),)),
    CurrentLayerName.TAG: (CurrentLayerName, (("name", _is_text),)),
    MessagePush.TAG: (MessagePush, (("message", _is_any),)),
    ErrorMessage.TAG: (ErrorMessage, (("msg", _is_text),)),
}


def decode_message(line: Union[bytes, str]) -> Union[ServerMessage, Unrecognized]:
    """Decode one protocol line into a server message.

    Args:
        line: Raw line, with or without its trailing newline

    Returns:
        The decoded variant, or Unrecognized describing why it didn't decode
    """
    if isinstance(line, bytes):
        try:
            text = line.decode('utf-8')
        except UnicodeDecodeError as e:
            return Unrecognized(line.decode('utf-8', errors='replace'), f"invalid utf-8: {e}")
    else:
        text = line

    try:
        data = json.loads(text)
    except (ValueError, RecursionError) as e:
        return Unrecognized(text, f"invalid json: {e}")

    if not isinstance(data, dict):
        return Unrecognized(text, "message must be a JSON object")
    if len(data) != 1:
        return Unrecognized(text, f"expected exactly one tag, got {len(data)}")

    tag, body = next(iter(data.items()))
    variant = _VARIANTS.get(tag)
    if variant is None:
        return Unrecognized(text, f"unknown tag {tag!r}")

    cls, spec = variant
    if not isinstance(body, dict):
        return Unrecognized(text, f"{tag} body must be a JSON object")

    values = {}
    for name, is_valid in spec:
        if name not in body:
            return Unrecognized(text, f"{tag} missing field {name!r}")
        if not is_valid(body[name]):
            return Unrecognized(text, f"{tag} field {name!r} has the wrong type")
        values[name] = body[name]

    return cls(**values)


def encode_message(message: ServerMessage) -> bytes:
    """Encode a server message as one newline-terminated protocol line."""
    body = {field.name: getattr(message, field.name) for field in fields(message)}
    return (json.dumps({message.TAG: body}, separators=(",", ":")) + "\n").encode()


@dataclass(frozen=True)
class ResponseOk:
    pass


@dataclass(frozen=True)
class ResponseError:
    msg: str


ServerResponse = Union[ResponseOk, ResponseError]


def decode_response(line: Union[bytes, str]) -> ServerResponse:
    """Decode a server response line.

    Raises:
        ProtocolError: The line isn't a valid response
    """
    try:
        text = line.decode('utf-8') if isinstance(line, bytes) else line
        data = json.loads(text)
    except (ValueError, RecursionError) as e:
        raise ProtocolError(f"Invalid server JSON: {e}") from e

    if not isinstance(data, dict):
        raise ProtocolError("Server response must be a JSON object")

    status = data.get("status")
    if status == "Ok":
        return ResponseOk()
    if status == "Error":
        msg = data.get("msg")
        if not isinstance(msg, str):
            raise ProtocolError("Error response missing 'msg'")
        return ResponseError(msg)
    raise ProtocolError(f"Unknown response status: {status!r}")


def encode_response(response: ServerResponse) -> bytes:
    if isinstance(response, ResponseError):
        packet = {"status": "Error", "msg": response.msg}
    else:
        packet = {"status": "Ok"}
    return (json.dumps(packet, separators=(",", ":")) + "\n").encode()
