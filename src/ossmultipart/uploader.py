"""High-level file upload on top of ``MultipartClient``.

Splits a local file into parts, uploads them concurrently and commits the
transaction. A failed upload is never aborted automatically: the transaction
id is logged and the original error re-raised, and the same transaction can
be resumed by passing its id back to ``upload_file``.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from ossmultipart.client import MultipartClient
from ossmultipart.config import UploadConfig
from ossmultipart.models import Part
from ossmultipart.streams import PartRange, iter_file_range, split_parts

logger = logging.getLogger(__name__)


@dataclass
class UploadResult:
    """Outcome of a committed file upload.

    Attributes:
        txn_id: The committed transaction id.
        parts: The committed parts in part-number order.
        reused: Part numbers found already uploaded and not sent again.
    """

    txn_id: str
    parts: list[Part] = field(default_factory=list)
    reused: list[int] = field(default_factory=list)


class MultipartUploader:
    """Uploads files as multipart transactions.

    Attributes:
        client: The protocol client.
        config: Part size, concurrency and read chunk size.
    """

    def __init__(self, client: MultipartClient, config: UploadConfig | None = None) -> None:
        self.client = client
        self.config = config or client.config.upload

    async def _existing_parts(
        self, bucket: str, object: str, txn_id: str
    ) -> dict[int, Part]:
        existing: dict[int, Part] = {}
        async for part in self.client.iter_parts(bucket, object, txn_id):
            existing[part.number] = part
        return existing

    async def _upload_one(
        self,
        semaphore: asyncio.Semaphore,
        bucket: str,
        object: str,
        txn_id: str,
        path: str | os.PathLike,
        part_range: PartRange,
    ) -> Part:
        async with semaphore:
            return await self.client.upload_part(
                bucket,
                object,
                txn_id,
                part_range.number,
                iter_file_range(
                    path,
                    part_range.offset,
                    part_range.length,
                    chunk_size=self.config.chunk_size,
                ),
                content_length=part_range.length,
            )

    async def upload_file(
        self,
        bucket: str,
        object: str,
        path: str | os.PathLike,
        txn_id: str | None = None,
        metas: Mapping[str, str] | None = None,
    ) -> UploadResult:
        """Upload ``path`` to ``bucket/object``.

        Args:
            bucket: The target bucket.
            object: The target object key.
            path: The local file to upload.
            txn_id: An open transaction to resume. Parts already listed with
                the expected size are not uploaded again.
            metas: User metadata for a newly begun transaction.

        Returns:
            The committed transaction and its parts.
        """
        size = os.path.getsize(path)
        ranges = split_parts(size, self.config.part_size)

        existing: dict[int, Part] = {}
        if txn_id is None:
            txn_id = await self.client.begin_multipart(bucket, object, metas=metas)
        else:
            existing = await self._existing_parts(bucket, object, txn_id)

        reused = {
            r.number: existing[r.number]
            for r in ranges
            if r.number in existing and existing[r.number].size == r.length
        }
        todo = [r for r in ranges if r.number not in reused]
        logger.info(
            "Uploading %s as %d parts (%d reused) in transaction %s",
            path,
            len(ranges),
            len(reused),
            txn_id,
            extra={"bucket": bucket, "object": object, "upload_id": txn_id},
        )

        semaphore = asyncio.Semaphore(self.config.concurrency)
        tasks = [
            asyncio.ensure_future(
                self._upload_one(semaphore, bucket, object, txn_id, path, r)
            )
            for r in todo
        ]
        try:
            uploaded = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.error(
                "Upload of %s failed; transaction %s left open",
                path,
                txn_id,
                extra={"bucket": bucket, "object": object, "upload_id": txn_id},
            )
            raise

        parts = sorted(
            [Part(number=p.number, etag=p.etag) for p in reused.values()] + list(uploaded),
            key=lambda p: p.number,
        )
        await self.client.commit_multipart(bucket, object, txn_id, parts)
        return UploadResult(txn_id=txn_id, parts=parts, reused=sorted(reused))
