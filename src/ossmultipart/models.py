"""Data model types for multipart transactions.

These dataclasses are value objects: transactions and parts returned by the
service, the option objects accepted by the listing and copy operations, and
the pagination cursors returned alongside list results.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from ossmultipart.keys import KeyEncoding


@dataclass(frozen=True)
class Transaction:
    """An in-progress multipart upload.

    Attributes:
        id: The opaque, server-issued transaction (upload) id.
        bucket: The target bucket.
        object: The target object key.
        creation_time: When the server created the transaction, if reported.
    """

    id: str
    bucket: str
    object: str
    creation_time: datetime | None = None


@dataclass(frozen=True)
class Part:
    """One uploaded chunk of a transaction.

    ``size`` is only known for parts returned by ``list_parts``.
    ``last_modified`` is set by ``list_parts`` and, when the copy result
    reports it, by ``upload_part_from_object``. Parts built for
    ``commit_multipart`` leave both unset.

    Attributes:
        number: 1-based part number, assigned by the caller.
        etag: The fingerprint returned by the service for the part.
        size: Size in bytes.
        last_modified: Upload time of the part.
    """

    number: int
    etag: str
    size: int | None = None
    last_modified: datetime | None = None


@dataclass(frozen=True)
class CopyConditions:
    """Preconditions for ``upload_part_from_object``.

    Each value is either a preformatted header string or, for the date
    conditions, a ``datetime`` that is rendered as an HTTP date.
    """

    if_modified_since: datetime | str | None = None
    if_unmodified_since: datetime | str | None = None
    if_match_etag: str | None = None
    if_unmatch_etag: str | None = None


@dataclass(frozen=True)
class ListTransactionsOptions:
    """Filters and paging for ``list_multipart_transactions``.

    Unset fields are omitted from the request.
    """

    prefix: str | None = None
    delimiter: str | None = None
    key_marker: str | None = None
    id_marker: str | None = None
    limit: int | None = None
    encoding: KeyEncoding | None = None

    def to_query(self) -> dict[str, str]:
        """Build the query parameters for a ListMultipartUploads request."""
        query: dict[str, str] = {"uploads": ""}
        if self.prefix is not None:
            query["prefix"] = self.prefix
        if self.delimiter is not None:
            query["delimiter"] = self.delimiter
        if self.key_marker is not None:
            query["key-marker"] = self.key_marker
        if self.id_marker is not None:
            query["upload-id-marker"] = self.id_marker
        if self.limit is not None:
            query["max-uploads"] = str(self.limit)
        if self.encoding is not None:
            query["encoding-type"] = KeyEncoding(self.encoding).value
        return query


@dataclass(frozen=True)
class ListPartsOptions:
    """Paging for ``list_parts``.

    Unset fields are omitted from the request.
    """

    marker: str | None = None
    limit: int | None = None
    encoding: KeyEncoding | None = None

    def to_query(self) -> dict[str, str]:
        """Build the paging query parameters for a ListParts request."""
        query: dict[str, str] = {}
        if self.marker is not None:
            query["part-number-marker"] = str(self.marker)
        if self.limit is not None:
            query["max-parts"] = str(self.limit)
        if self.encoding is not None:
            query["encoding-type"] = KeyEncoding(self.encoding).value
        return query


@dataclass(frozen=True)
class Cursor:
    """Pagination state common to every listing result.

    Attributes:
        limit: The page size echoed by the service.
        truncated: Whether more results are available.
        encoding: The encoding mode echoed by the service, if any.
    """

    limit: int | None = None
    truncated: bool = False
    encoding: KeyEncoding | None = None

    def is_exhausted(self) -> bool:
        """Return True when there are no further pages."""
        return not self.truncated


@dataclass(frozen=True)
class TransactionsCursor(Cursor):
    """Pagination state of a ``list_multipart_transactions`` result.

    Key-bearing fields are already decoded according to ``encoding``.
    """

    prefix: str | None = None
    delimiter: str | None = None
    key_marker: str | None = None
    id_marker: str | None = None
    next_key_marker: str | None = None
    next_id_marker: str | None = None

    def next_options(
        self, options: ListTransactionsOptions | None = None
    ) -> ListTransactionsOptions | None:
        """Return the options requesting the page after this one.

        Args:
            options: The options of the request that produced this cursor.

        Returns:
            The next page's options, or None when the listing is exhausted.
        """
        if self.is_exhausted():
            return None
        return replace(
            options or ListTransactionsOptions(),
            key_marker=self.next_key_marker,
            id_marker=self.next_id_marker,
        )


@dataclass(frozen=True)
class PartsCursor(Cursor):
    """Pagination state of a ``list_parts`` result."""

    marker: str | None = None
    next_marker: str | None = None

    def next_options(self, options: ListPartsOptions | None = None) -> ListPartsOptions | None:
        """Return the options requesting the page after this one, or None."""
        if self.is_exhausted():
            return None
        return replace(options or ListPartsOptions(), marker=self.next_marker)
