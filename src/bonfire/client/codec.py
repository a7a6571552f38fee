"""Wire codec for the Root and Melior protocols.

Root requests are framed as a 4-byte big-endian length, the JSON object and
then the raw attachments in ``dataOutput`` order. Melior requests are plain
GraphQL JSON bodies. Both protocols answer with JSON envelopes that decode to
either :class:`EnvelopeOk` or :class:`EnvelopeError`.
"""

from __future__ import annotations

import json
import struct
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from bonfire.core import (
    AttachmentTooLargeError,
    CodecError,
    InvalidMeliorResponseError,
    RequestTooLargeError,
)


# The maximum allowed size for any attachment (6 MiB)
ATTACHMENT_MAX_SIZE = 6 * 1024 * 1024

# The maximum allowed size for a framed Root request (10 MiB)
PAYLOAD_MAX_SIZE = 10 * 1024 * 1024

LENGTH_PREFIX = struct.Struct(">I")

# dataOutput marker for a position without an attachment
NO_ATTACHMENT = -1

# Root protocol field names
REQUEST_NAME_FIELD = "J_REQUEST_NAME"
DATA_OUTPUT_FIELD = "dataOutput"
ACCESS_TOKEN_FIELD = "J_API_ACCESS_TOKEN"
BOT_TOKEN_FIELD = "J_API_BOT_TOKEN"
API_VERSION_FIELD = "requestApiVersion"
STATUS_FIELD = "J_STATUS"
RESPONSE_FIELD = "J_RESPONSE"
STATUS_OK = "J_STATUS_OK"
STATUS_ERROR = "J_STATUS_ERROR"


E = TypeVar("E")


@dataclass(frozen=True)
class EnvelopeOk:
    """A successful response carrying the undecoded payload."""

    payload: Any


@dataclass(frozen=True)
class EnvelopeError(Generic[E]):
    """An application-level error response carrying the raw error."""

    error: E


Envelope = EnvelopeOk | EnvelopeError[Any]


class QueryLocation(BaseModel):
    """A line and column within a GraphQL query."""

    line: int
    column: int


class RawMeliorError(BaseModel):
    """A single entry of a GraphQL ``errors`` list."""

    message: str
    locations: list[QueryLocation] | None = None
    path: list[str | int] | None = None


_melior_errors_adapter = TypeAdapter(list[RawMeliorError])


def _dumps(document: Mapping[str, Any]) -> bytes:
    try:
        return json.dumps(document, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise CodecError(f"Failed to serialize request: {e}") from e


def _loads(body: bytes) -> Any:
    try:
        return json.loads(body)
    except (UnicodeDecodeError, ValueError) as e:
        raise CodecError(f"Failed to parse response JSON: {e}") from e


# Root


def build_data_output(attachments: Sequence[bytes | None]) -> list[int]:
    """Compute the ``dataOutput`` markers for a list of attachments.

    Raises:
        AttachmentTooLargeError: If any attachment exceeds ``ATTACHMENT_MAX_SIZE``.
    """
    markers = []
    for attachment in attachments:
        if attachment is None:
            markers.append(NO_ATTACHMENT)
            continue
        if len(attachment) > ATTACHMENT_MAX_SIZE:
            raise AttachmentTooLargeError(len(attachment), ATTACHMENT_MAX_SIZE)
        markers.append(len(attachment))
    return markers


def encode_root_request(
    request_name: str,
    content: Mapping[str, Any],
    attachments: Sequence[bytes | None] = (),
    *,
    access_token: str | None = None,
    bot_token: str | None = None,
    api_version: str,
) -> bytes:
    """Frame a Root request.

    The request's own fields are flattened into the JSON object next to the
    protocol fields. Token fields are omitted when absent, as is
    ``dataOutput`` when there are no attachments.

    Raises:
        AttachmentTooLargeError: If an attachment is too large.
        RequestTooLargeError: If the framed request exceeds ``PAYLOAD_MAX_SIZE``.
        CodecError: If ``content`` is not JSON-serializable.
    """
    document: dict[str, Any] = dict(content)
    document[REQUEST_NAME_FIELD] = request_name
    if attachments:
        document[DATA_OUTPUT_FIELD] = build_data_output(attachments)
    if access_token is not None:
        document[ACCESS_TOKEN_FIELD] = access_token
    if bot_token is not None:
        document[BOT_TOKEN_FIELD] = bot_token
    document[API_VERSION_FIELD] = api_version

    json_body = _dumps(document)
    attachments_length = sum(len(a) for a in attachments if a is not None)
    payload_length = LENGTH_PREFIX.size + len(json_body) + attachments_length
    if payload_length > PAYLOAD_MAX_SIZE:
        raise RequestTooLargeError(payload_length, PAYLOAD_MAX_SIZE)

    parts = [LENGTH_PREFIX.pack(len(json_body)), json_body]
    parts.extend(a for a in attachments if a)
    return b"".join(parts)


def split_root_payload(body: bytes) -> tuple[dict[str, Any], list[bytes | None]]:
    """Decode a framed Root request into its JSON object and attachments.

    This is the server side of :func:`encode_root_request`, used by fake
    servers.

    Raises:
        CodecError: If the frame is truncated or inconsistent.
    """
    if len(body) < LENGTH_PREFIX.size:
        raise CodecError("Request is shorter than its length prefix")
    (json_length,) = LENGTH_PREFIX.unpack_from(body)
    json_end = LENGTH_PREFIX.size + json_length
    if len(body) < json_end:
        raise CodecError("Request JSON segment is truncated")

    document = _loads(body[LENGTH_PREFIX.size:json_end])
    if not isinstance(document, dict):
        raise CodecError("Request JSON root must be an object")

    attachments: list[bytes | None] = []
    offset = json_end
    for marker in document.get(DATA_OUTPUT_FIELD, []):
        if not isinstance(marker, int) or marker < NO_ATTACHMENT:
            raise CodecError(f"Invalid dataOutput marker: {marker!r}")
        if marker == NO_ATTACHMENT:
            attachments.append(None)
            continue
        if offset + marker > len(body):
            raise CodecError("Attachment data is truncated")
        attachments.append(body[offset:offset + marker])
        offset += marker
    if offset != len(body):
        raise CodecError("Request has trailing bytes after its attachments")
    return document, attachments


async def read_exact_body(response: httpx.Response) -> bytes:
    """Read exactly ``Content-Length`` bytes from a streamed response.

    The count is taken over the raw body as sent on the wire. Root requests
    ask for ``identity`` encoding, so the raw body is the JSON itself.

    Raises:
        CodecError: If the header is absent or unparseable, or the body is
            shorter or longer than announced.
    """
    raw_length = response.headers.get("Content-Length")
    if raw_length is None:
        raise CodecError("Response is missing the Content-Length header")
    try:
        length = int(raw_length)
        if length < 0:
            raise ValueError(raw_length)
    except ValueError as e:
        raise CodecError(f"Invalid Content-Length header: {raw_length!r}") from e

    body = bytearray()
    async for chunk in response.aiter_raw():
        body.extend(chunk)
        if len(body) > length:
            raise CodecError("Response body is longer than its Content-Length")
    if len(body) < length:
        raise CodecError(
            f"Response body ended early: got {len(body)} of {length} bytes"
        )
    return bytes(body)


def decode_root_response(body: bytes) -> Envelope:
    """Decode a Root response envelope.

    Raises:
        CodecError: If the envelope is malformed or its status is unknown.
    """
    document = _loads(body)
    if not isinstance(document, dict):
        raise CodecError("Response JSON root must be an object")

    status = document.get(STATUS_FIELD)
    if RESPONSE_FIELD not in document:
        raise CodecError(f"Response is missing {RESPONSE_FIELD}")
    content = document[RESPONSE_FIELD]

    if status == STATUS_OK:
        return EnvelopeOk(content)
    if status == STATUS_ERROR:
        if not isinstance(content, dict) or not isinstance(content.get("code"), str):
            raise CodecError("Root error is missing its code")
        return EnvelopeError(content)
    raise CodecError(f"Unknown response status: {status!r}")


# Melior


def encode_melior_query(query: str, variables: Mapping[str, Any]) -> bytes:
    """Serialize a GraphQL request body."""
    return _dumps({"query": query, "variables": dict(variables)})


def decode_melior_response(body: bytes) -> Envelope:
    """Decode a GraphQL response.

    A non-empty ``errors`` list wins over ``data``, even when both are present.

    Raises:
        CodecError: If the response is malformed.
        InvalidMeliorResponseError: If it has neither data nor errors.
    """
    document = _loads(body)
    if not isinstance(document, dict):
        raise CodecError("Response JSON root must be an object")

    errors = document.get("errors")
    if errors:
        try:
            parsed = _melior_errors_adapter.validate_python(errors)
        except ValidationError as e:
            raise CodecError(f"Malformed GraphQL errors: {e}") from e
        return EnvelopeError(parsed)

    data = document.get("data")
    if data is None:
        raise InvalidMeliorResponseError()
    return EnvelopeOk(data)
