"""Multipart upload transaction client.

Implements the transaction operations:
    - begin_multipart (POST /{bucket}/{object}?uploads)
    - upload_part (PUT /{bucket}/{object}?partNumber&uploadId)
    - upload_part_from_object (PUT ... with x-oss-copy-source)
    - commit_multipart (POST /{bucket}/{object}?uploadId)
    - abort_multipart (DELETE /{bucket}/{object}?uploadId)
    - list_multipart_transactions (GET /{bucket}?uploads)
    - list_parts (GET /{bucket}/{object}?uploadId)

The client keeps no state between calls and never retries. Transaction
state lives on the server: a call against a committed, aborted or expired
transaction surfaces as a ``ServiceError`` (usually ``NoSuchUpload``).
"""

from __future__ import annotations

import email.utils
import logging
import time
from collections.abc import AsyncIterable, AsyncIterator, Callable, Mapping, Sequence
from datetime import datetime, timezone
from typing import TypeVar

from ossmultipart import metrics
from ossmultipart.config import ClientConfig
from ossmultipart.errors import OSSClientError, ProtocolDecodeError, ServiceError, service_error
from ossmultipart.keys import quote_path, resource_path
from ossmultipart.models import (
    CopyConditions,
    ListPartsOptions,
    ListTransactionsOptions,
    Part,
    PartsCursor,
    Transaction,
    TransactionsCursor,
)
from ossmultipart.transport import Body, Transport, TransportResponse
from ossmultipart.validation import (
    format_range,
    validate_bucket_name,
    validate_object_key,
    validate_part_number,
    validate_transaction_id,
)
from ossmultipart.xml_utils import (
    build_commit_body,
    parse_begin_result,
    parse_copy_part_result,
    parse_error,
    parse_list_parts_result,
    parse_list_transactions_result,
    parse_upload_part_result,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

META_HEADER_PREFIX = "x-oss-meta-"
COPY_SOURCE_HEADER = "x-oss-copy-source"

_CONDITION_HEADERS = (
    ("if_modified_since", "x-oss-copy-source-if-modified-since"),
    ("if_unmodified_since", "x-oss-copy-source-if-unmodified-since"),
    ("if_match_etag", "x-oss-copy-source-if-match"),
    ("if_unmatch_etag", "x-oss-copy-source-if-none-match"),
)


def _http_date(value: datetime | str) -> str:
    """Render a condition value; naive datetimes are taken as UTC."""
    if isinstance(value, str):
        return value
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return email.utils.format_datetime(value.astimezone(timezone.utc), usegmt=True)


def _raise_for_response(response: TransportResponse) -> None:
    """Raise the failure carried by ``response``, if any.

    An ``Error`` envelope is a failure whatever the status. A non-2xx
    response with an empty body becomes a ``ServiceError`` with code
    "Unknown"; any other non-2xx body is a ``ProtocolDecodeError``.
    """
    body = response.body or b""
    if 200 <= response.status < 300:
        if not body.strip():
            return
        try:
            error = parse_error(body, response.status, response.headers)
        except ProtocolDecodeError:
            # Not XML; the operation's own parser decides whether that is valid.
            return
        if error is not None:
            raise error
        return

    if not body.strip():
        request_id = ""
        for name, value in response.headers.items():
            if name.lower() == "x-oss-request-id":
                request_id = value
        raise service_error(
            code="Unknown",
            message=f"HTTP {response.status}",
            request_id=request_id,
            http_status=response.status,
        )

    error = parse_error(body, response.status, response.headers)
    if error is None:
        raise ProtocolDecodeError(
            f"Unexpected error response body (HTTP {response.status})", body
        )
    raise error


class MultipartClient:
    """Issues multipart transaction requests through a ``Transport``.

    Attributes:
        transport: The collaborator performing HTTP exchanges.
        config: Client configuration.
    """

    def __init__(self, transport: Transport, config: ClientConfig | None = None) -> None:
        """Initialize the client.

        Args:
            transport: The transport used for every request.
            config: Client configuration; metrics are registered when
                ``config.metrics.enabled`` is set.
        """
        self.transport = transport
        self.config = config or ClientConfig()
        if self.config.metrics.enabled:
            metrics.init_metrics()

    async def _call(
        self,
        operation: str,
        method: str,
        path: str,
        query: Mapping[str, str],
        parse: Callable[[TransportResponse], T],
        headers: Mapping[str, str] | None = None,
        body: Body = None,
        *,
        bucket: str,
        object: str | None = None,
        upload_id: str | None = None,
    ) -> T:
        """Send one request, map failures, and parse the success response."""
        extra = {
            "operation": operation,
            "bucket": bucket,
            "object": object,
            "upload_id": upload_id,
        }
        logger.debug("%s %s", method, path, extra=extra)
        start = time.monotonic()
        try:
            response = await self.transport.send(method, path, query, headers or {}, body)
            _raise_for_response(response)
            result = parse(response)
        except ServiceError as e:
            metrics.record_operation(operation, e.code or "Unknown")
            logger.warning(
                "%s failed: %s (%s)",
                operation,
                e.message,
                e.code,
                extra={**extra, "status": e.http_status, "request_id": e.request_id},
            )
            raise
        except OSSClientError as e:
            metrics.record_operation(operation, type(e).__name__)
            logger.warning("%s failed: %s", operation, e, extra=extra)
            raise

        metrics.record_operation(operation, "ok")
        logger.debug(
            "%s completed",
            operation,
            extra={
                **extra,
                "status": response.status,
                "duration_ms": round((time.monotonic() - start) * 1000, 2),
            },
        )
        return result

    # -- Transaction lifecycle ------------------------------------------------

    async def begin_multipart(
        self,
        bucket: str,
        object: str,
        metas: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> str:
        """Begin a multipart transaction.

        Args:
            bucket: The target bucket.
            object: The target object key.
            metas: User metadata, sent as ``x-oss-meta-<key>`` headers.
            headers: Additional request headers (e.g. Content-Type).

        Returns:
            The server-issued transaction id.
        """
        validate_bucket_name(bucket)
        validate_object_key(object)

        request_headers = dict(headers or {})
        for key, value in (metas or {}).items():
            request_headers[f"{META_HEADER_PREFIX}{key}"] = str(value)

        txn_id = await self._call(
            "begin",
            "POST",
            resource_path(bucket, object),
            {"uploads": ""},
            lambda response: parse_begin_result(response.body),
            request_headers,
            bucket=bucket,
            object=object,
        )
        logger.info(
            "Began multipart transaction %s for %s/%s",
            txn_id,
            bucket,
            object,
            extra={"operation": "begin", "bucket": bucket, "object": object, "upload_id": txn_id},
        )
        return txn_id

    async def upload_part(
        self,
        bucket: str,
        object: str,
        txn_id: str,
        number: int,
        content: bytes | AsyncIterable[bytes],
        content_length: int | None = None,
    ) -> Part:
        """Upload one part of a transaction.

        ``content`` may be an async iterable, in which case the transport
        pulls chunks from it as it writes the request body and the part is
        never held in memory as a whole.

        Args:
            bucket: The target bucket.
            object: The target object key.
            txn_id: The transaction id returned by ``begin_multipart``.
            number: The part number, 1-based.
            content: The part data.
            content_length: Size of a streamed body, sent as Content-Length.

        Returns:
            The uploaded part with its ETag.
        """
        validate_bucket_name(bucket)
        validate_object_key(object)
        validate_transaction_id(txn_id)
        validate_part_number(number)

        headers: dict[str, str] = {}
        if isinstance(content, (bytes, bytearray, memoryview)):
            body: Body = bytes(content)
            metrics.record_bytes_sent(len(body))
        else:
            body = _counting(content)
            if content_length is not None:
                headers["Content-Length"] = str(content_length)

        return await self._call(
            "upload_part",
            "PUT",
            resource_path(bucket, object),
            {"partNumber": str(number), "uploadId": txn_id},
            lambda response: parse_upload_part_result(response.headers, number),
            headers,
            body,
            bucket=bucket,
            object=object,
            upload_id=txn_id,
        )

    async def upload_part_from_object(
        self,
        bucket: str,
        object: str,
        txn_id: str,
        number: int,
        source_object: str,
        source_bucket: str | None = None,
        range: tuple[int, int] | None = None,
        conditions: CopyConditions | None = None,
    ) -> Part:
        """Upload a part by copying (a range of) an existing object.

        Args:
            bucket: The target bucket.
            object: The target object key.
            txn_id: The transaction id.
            number: The part number, 1-based.
            source_object: Key of the object to copy from.
            source_bucket: Bucket of the source object; defaults to ``bucket``.
            range: Half-open ``(start, end)`` byte range of the source.
            conditions: Preconditions evaluated against the source object.

        Returns:
            The uploaded part with its ETag.
        """
        source_bucket = source_bucket or bucket
        validate_bucket_name(bucket)
        validate_bucket_name(source_bucket)
        validate_object_key(object)
        validate_object_key(source_object)
        validate_transaction_id(txn_id)
        validate_part_number(number)

        headers = {COPY_SOURCE_HEADER: f"/{source_bucket}/{quote_path(source_object)}"}
        if range is not None:
            headers["Range"] = format_range(range)
        if conditions is not None:
            for attr, header in _CONDITION_HEADERS:
                value = getattr(conditions, attr)
                if value is not None:
                    headers[header] = _http_date(value)

        return await self._call(
            "upload_part_copy",
            "PUT",
            resource_path(bucket, object),
            {"partNumber": str(number), "uploadId": txn_id},
            lambda response: parse_copy_part_result(
                response.body, response.headers, number, response.status
            ),
            headers,
            bucket=bucket,
            object=object,
            upload_id=txn_id,
        )

    async def commit_multipart(
        self,
        bucket: str,
        object: str,
        txn_id: str,
        parts: Sequence[Part],
    ) -> None:
        """Commit a transaction, assembling the object from ``parts``.

        Parts are sent in the given order and are not re-sorted; the service
        rejects out-of-order or duplicate numbers.
        """
        validate_bucket_name(bucket)
        validate_object_key(object)
        validate_transaction_id(txn_id)

        await self._call(
            "commit",
            "POST",
            resource_path(bucket, object),
            {"uploadId": txn_id},
            lambda response: None,
            {"Content-Type": "application/xml"},
            build_commit_body(parts),
            bucket=bucket,
            object=object,
            upload_id=txn_id,
        )
        logger.info(
            "Committed multipart transaction %s with %d parts",
            txn_id,
            len(parts),
            extra={"operation": "commit", "bucket": bucket, "object": object, "upload_id": txn_id},
        )

    async def abort_multipart(self, bucket: str, object: str, txn_id: str) -> None:
        """Abort a transaction, discarding every uploaded part."""
        validate_bucket_name(bucket)
        validate_object_key(object)
        validate_transaction_id(txn_id)

        await self._call(
            "abort",
            "DELETE",
            resource_path(bucket, object),
            {"uploadId": txn_id},
            lambda response: None,
            bucket=bucket,
            object=object,
            upload_id=txn_id,
        )
        logger.info(
            "Aborted multipart transaction %s",
            txn_id,
            extra={"operation": "abort", "bucket": bucket, "object": object, "upload_id": txn_id},
        )

    # -- Listing --------------------------------------------------------------

    async def list_multipart_transactions(
        self,
        bucket: str,
        options: ListTransactionsOptions | None = None,
    ) -> tuple[list[Transaction], TransactionsCursor]:
        """List open transactions in a bucket.

        Returns:
            The transactions of one page and the cursor for the next.
        """
        validate_bucket_name(bucket)
        options = options or ListTransactionsOptions()

        return await self._call(
            "list_transactions",
            "GET",
            resource_path(bucket),
            options.to_query(),
            lambda response: parse_list_transactions_result(response.body, bucket),
            bucket=bucket,
        )

    async def list_parts(
        self,
        bucket: str,
        object: str,
        txn_id: str,
        options: ListPartsOptions | None = None,
    ) -> tuple[list[Part], PartsCursor]:
        """List the parts uploaded so far to a transaction.

        Returns:
            The parts of one page and the cursor for the next.
        """
        validate_bucket_name(bucket)
        validate_object_key(object)
        validate_transaction_id(txn_id)
        options = options or ListPartsOptions()

        return await self._call(
            "list_parts",
            "GET",
            resource_path(bucket, object),
            {"uploadId": txn_id, **options.to_query()},
            lambda response: parse_list_parts_result(response.body),
            bucket=bucket,
            object=object,
            upload_id=txn_id,
        )

    async def iter_multipart_transactions(
        self,
        bucket: str,
        options: ListTransactionsOptions | None = None,
    ) -> AsyncIterator[Transaction]:
        """Yield every open transaction, following cursors page by page."""
        next_options: ListTransactionsOptions | None = options or ListTransactionsOptions()
        while next_options is not None:
            transactions, cursor = await self.list_multipart_transactions(bucket, next_options)
            for txn in transactions:
                yield txn
            next_options = cursor.next_options(next_options)

    async def iter_parts(
        self,
        bucket: str,
        object: str,
        txn_id: str,
        options: ListPartsOptions | None = None,
    ) -> AsyncIterator[Part]:
        """Yield every uploaded part of a transaction, page by page."""
        next_options: ListPartsOptions | None = options or ListPartsOptions()
        while next_options is not None:
            parts, cursor = await self.list_parts(bucket, object, txn_id, next_options)
            for part in parts:
                yield part
            next_options = cursor.next_options(next_options)


async def _counting(content: AsyncIterable[bytes]) -> AsyncIterator[bytes]:
    """Pass chunks through while counting them towards bytes sent."""
    async for chunk in content:
        metrics.record_bytes_sent(len(chunk))
        yield chunk
