"""XML request rendering and response parsing for multipart transactions."""

from __future__ import annotations

import email.utils
import xml.etree.ElementTree as ET
from collections.abc import Iterable, Mapping
from datetime import datetime
from xml.sax.saxutils import escape as _sax_escape

from ossmultipart.errors import ProtocolDecodeError, ServiceError, service_error
from ossmultipart.keys import KeyEncoding, decode_key, encode_key, parse_encoding
from ossmultipart.models import Part, PartsCursor, Transaction, TransactionsCursor

_XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'


def _escape_xml(value: str) -> str:
    """Escape special XML characters in a string value.

    Args:
        value: The raw string to escape.

    Returns:
        The XML-safe escaped string.
    """
    return _sax_escape(str(value))


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


def build_commit_body(parts: Iterable[Part]) -> bytes:
    """Render a CompleteMultipartUpload request body.

    Parts are emitted in the order given; only the number and ETag of each
    part are sent.

    Args:
        parts: The parts to commit, in ascending part-number order.

    Returns:
        The UTF-8 encoded XML body.
    """
    lines = [_XML_DECLARATION, "<CompleteMultipartUpload>"]
    for part in parts:
        lines.append("<Part>")
        lines.append(f"<PartNumber>{int(part.number)}</PartNumber>")
        lines.append(f"<ETag>{_escape_xml(part.etag)}</ETag>")
        lines.append("</Part>")
    lines.append("</CompleteMultipartUpload>")
    return "\n".join(lines).encode("utf-8")


def build_delete_body(
    keys: Iterable[str],
    quiet: bool = False,
    encoding: KeyEncoding = KeyEncoding.NONE,
) -> bytes:
    """Render a batch Delete request body.

    Args:
        keys: Object keys to delete.
        quiet: Whether the service should only report failures.
        encoding: Encoding applied to each key in the body.

    Returns:
        The UTF-8 encoded XML body.
    """
    lines = [_XML_DECLARATION, "<Delete>", f"<Quiet>{str(bool(quiet)).lower()}</Quiet>"]
    for key in keys:
        lines.append("<Object>")
        lines.append(f"<Key>{_escape_xml(encode_key(key, encoding))}</Key>")
        lines.append("</Object>")
    lines.append("</Delete>")
    return "\n".join(lines).encode("utf-8")


# ---------------------------------------------------------------------------
# Response parsing helpers
# ---------------------------------------------------------------------------


def _local_name(tag: str) -> str:
    """Strip a ``{namespace}`` prefix from an element tag."""
    if tag.startswith("{"):
        return tag.rsplit("}", 1)[1]
    return tag


def _parse_root(body: bytes, expected: str | None = None) -> ET.Element:
    """Parse ``body`` and drop namespaces from every element tag.

    Raises:
        ProtocolDecodeError: If the body is empty, is not well-formed XML,
            or its root element is not ``expected``.
    """
    if not body or not body.strip():
        raise ProtocolDecodeError("Empty response body", body)
    try:
        root = ET.fromstring(body)
    except ET.ParseError as e:
        raise ProtocolDecodeError(f"Malformed XML response: {e}", body) from e

    for elem in root.iter():
        elem.tag = _local_name(elem.tag)

    if expected is not None and root.tag != expected:
        raise ProtocolDecodeError(f"Expected <{expected}> but got <{root.tag}>", body)
    return root


def _text(elem: ET.Element, name: str) -> str | None:
    """Return the text of child ``name``, "" for an empty element, None if absent."""
    child = elem.find(name)
    if child is None:
        return None
    return child.text or ""


def _required_text(elem: ET.Element, name: str, body: bytes) -> str:
    value = _text(elem, name)
    if value is None:
        raise ProtocolDecodeError(f"Missing <{name}> in <{elem.tag}>", body)
    return value


def _int(elem: ET.Element, name: str, body: bytes) -> int | None:
    value = _text(elem, name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError as e:
        raise ProtocolDecodeError(f"<{name}> is not an integer: {value!r}", body) from e


def _bool(elem: ET.Element, name: str, body: bytes) -> bool | None:
    value = _text(elem, name)
    if value is None:
        return None
    lowered = value.strip().lower()
    if lowered not in ("true", "false"):
        raise ProtocolDecodeError(f"<{name}> is not a boolean: {value!r}", body)
    return lowered == "true"


def _timestamp(elem: ET.Element, name: str, body: bytes) -> datetime | None:
    """Parse an RFC 822 or ISO 8601 timestamp child element."""
    value = _text(elem, name)
    if value is None:
        return None
    value = value.strip()
    try:
        return email.utils.parsedate_to_datetime(value)
    except (TypeError, ValueError):
        pass
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise ProtocolDecodeError(f"<{name}> is not a timestamp: {value!r}", body) from e


def _encoding(elem: ET.Element, body: bytes) -> KeyEncoding | None:
    value = _text(elem, "EncodingType")
    if value is None:
        return None
    try:
        return parse_encoding(value)
    except ValueError as e:
        raise ProtocolDecodeError(f"Unknown <EncodingType>: {value!r}", body) from e


def _decoded(value: str | None, mode: KeyEncoding, body: bytes) -> str | None:
    if value is None:
        return None
    try:
        return decode_key(value, mode)
    except ValueError as e:
        raise ProtocolDecodeError(f"Cannot decode key {value!r}: {e}", body) from e


# ---------------------------------------------------------------------------
# Response bodies
# ---------------------------------------------------------------------------


def parse_begin_result(body: bytes) -> str:
    """Extract the transaction id from an InitiateMultipartUploadResult.

    Raises:
        ProtocolDecodeError: If the body is not a result with an UploadId.
    """
    root = _parse_root(body, "InitiateMultipartUploadResult")
    upload_id = _required_text(root, "UploadId", body)
    if not upload_id:
        raise ProtocolDecodeError("Empty <UploadId> in begin result", body)
    return upload_id


def parse_list_transactions_result(
    body: bytes, bucket: str
) -> tuple[list[Transaction], TransactionsCursor]:
    """Parse a ListMultipartUploadsResult.

    Object keys, prefix, delimiter and key markers are decoded with the
    ``EncodingType`` the service echoes back; without one they are returned
    as-is.

    Args:
        body: The raw response body.
        bucket: The bucket the listing was issued against.

    Returns:
        The transactions on this page and the pagination cursor.

    Raises:
        ProtocolDecodeError: If the body does not match the schema.
    """
    root = _parse_root(body, "ListMultipartUploadsResult")
    encoding = _encoding(root, body)
    mode = encoding or KeyEncoding.NONE

    transactions = []
    for upload in root.findall("Upload"):
        transactions.append(
            Transaction(
                id=_required_text(upload, "UploadId", body),
                bucket=bucket,
                object=_decoded(_required_text(upload, "Key", body), mode, body),
                creation_time=_timestamp(upload, "Initiated", body),
            )
        )

    truncated = bool(_bool(root, "IsTruncated", body))
    next_key_marker = _decoded(_text(root, "NextKeyMarker"), mode, body)
    next_id_marker = _text(root, "NextUploadIdMarker")
    if truncated and not (next_key_marker or next_id_marker):
        raise ProtocolDecodeError("Truncated listing without a next marker", body)
    if not truncated:
        next_key_marker = next_id_marker = None

    cursor = TransactionsCursor(
        limit=_int(root, "MaxUploads", body),
        truncated=truncated,
        encoding=encoding,
        prefix=_decoded(_text(root, "Prefix"), mode, body),
        delimiter=_decoded(_text(root, "Delimiter"), mode, body),
        key_marker=_decoded(_text(root, "KeyMarker"), mode, body),
        id_marker=_text(root, "UploadIdMarker"),
        next_key_marker=next_key_marker,
        next_id_marker=next_id_marker,
    )
    return transactions, cursor


def parse_list_parts_result(body: bytes) -> tuple[list[Part], PartsCursor]:
    """Parse a ListPartsResult.

    Returns:
        The parts on this page and the pagination cursor.

    Raises:
        ProtocolDecodeError: If the body does not match the schema.
    """
    root = _parse_root(body, "ListPartsResult")

    parts = []
    for elem in root.findall("Part"):
        number = _int(elem, "PartNumber", body)
        if number is None:
            raise ProtocolDecodeError("Missing <PartNumber> in <Part>", body)
        parts.append(
            Part(
                number=number,
                etag=_required_text(elem, "ETag", body),
                size=_int(elem, "Size", body),
                last_modified=_timestamp(elem, "LastModified", body),
            )
        )

    truncated = bool(_bool(root, "IsTruncated", body))
    next_marker = _text(root, "NextPartNumberMarker")
    if truncated and not next_marker:
        raise ProtocolDecodeError("Truncated listing without <NextPartNumberMarker>", body)
    if not truncated:
        next_marker = None

    cursor = PartsCursor(
        limit=_int(root, "MaxParts", body),
        truncated=truncated,
        encoding=_encoding(root, body),
        marker=_text(root, "PartNumberMarker"),
        next_marker=next_marker,
    )
    return parts, cursor


def _etag_header(headers: Mapping[str, str]) -> str | None:
    for name, value in headers.items():
        if name.lower() == "etag":
            return value
    return None


def parse_upload_part_result(headers: Mapping[str, str], number: int) -> Part:
    """Build the ``Part`` for an UploadPart response.

    The service does not echo the part number, so the caller supplies it.

    Raises:
        ProtocolDecodeError: If the response has no ETag header.
    """
    etag = _etag_header(headers)
    if not etag:
        raise ProtocolDecodeError("UploadPart response has no ETag header")
    return Part(number=number, etag=etag)


def parse_copy_part_result(
    body: bytes,
    headers: Mapping[str, str],
    number: int,
    status: int = 200,
) -> Part:
    """Build the ``Part`` for an UploadPartCopy response.

    A copy can fail after the service has already sent a 200 status, in
    which case the body holds an ``Error`` envelope. That envelope is raised
    as a ``ServiceError``. Otherwise the ETag of ``CopyPartResult`` is used,
    falling back to the ``ETag`` header.

    Raises:
        ServiceError: If the body is an ``Error`` envelope.
        ProtocolDecodeError: If no ETag can be found or the body is malformed.
    """
    last_modified = None
    etag = None
    if body and body.strip():
        root = _parse_root(body)
        if root.tag == "Error":
            raise _error_from_root(root, status, headers)
        if root.tag not in ("CopyPartResult", "CopyObjectResult"):
            raise ProtocolDecodeError(f"Unexpected <{root.tag}> in copy response", body)
        etag = _text(root, "ETag")
        last_modified = _timestamp(root, "LastModified", body)

    etag = etag or _etag_header(headers)
    if not etag:
        raise ProtocolDecodeError("UploadPartCopy response has no ETag", body)
    return Part(number=number, etag=etag, last_modified=last_modified)


# ---------------------------------------------------------------------------
# Error envelopes
# ---------------------------------------------------------------------------


def _request_id_header(headers: Mapping[str, str]) -> str:
    for name, value in headers.items():
        if name.lower() == "x-oss-request-id":
            return value
    return ""


def _error_from_root(
    root: ET.Element, status: int, headers: Mapping[str, str]
) -> ServiceError:
    fields = {child.tag: child.text or "" for child in root}
    code = fields.pop("Code", "")
    message = fields.pop("Message", "")
    request_id = fields.pop("RequestId", "") or _request_id_header(headers)
    return service_error(
        code=code,
        message=message,
        request_id=request_id,
        http_status=status,
        extra_fields=fields,
    )


def parse_error(
    body: bytes, status: int, headers: Mapping[str, str] | None = None
) -> ServiceError | None:
    """Decode an ``Error`` envelope into a typed ``ServiceError``.

    Args:
        body: The raw response body.
        status: The HTTP status of the response.
        headers: Response headers, consulted for the request id.

    Returns:
        The error, or None when the body is not an ``Error`` envelope.

    Raises:
        ProtocolDecodeError: If the body is not well-formed XML.
    """
    root = _parse_root(body)
    if root.tag != "Error":
        return None
    return _error_from_root(root, status, headers or {})
