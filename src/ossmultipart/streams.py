"""Part planning and streaming body producers."""

from __future__ import annotations

import os
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path

from ossmultipart.errors import ClientValidationError
from ossmultipart.validation import MAX_PART_NUMBER

# Streaming chunk size: 64 KB
_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class PartRange:
    """The byte range of a source that becomes one part.

    Attributes:
        number: The 1-based part number.
        offset: Byte offset of the first byte.
        length: Number of bytes.
    """

    number: int
    offset: int
    length: int

    @property
    def end(self) -> int:
        """Exclusive end offset."""
        return self.offset + self.length


def split_parts(total_size: int, part_size: int) -> list[PartRange]:
    """Split ``total_size`` bytes into consecutive parts of ``part_size``.

    The last part holds the remainder. An empty source yields a single empty
    part so that it can still be committed.

    Raises:
        ClientValidationError: If ``part_size`` is not positive or the split
            would need more parts than the service allows.
    """
    if part_size <= 0:
        raise ClientValidationError(f"Part size must be positive, got {part_size}")
    if total_size < 0:
        raise ClientValidationError(f"Size must not be negative, got {total_size}")
    if total_size == 0:
        return [PartRange(number=1, offset=0, length=0)]

    count = -(-total_size // part_size)
    if count > MAX_PART_NUMBER:
        raise ClientValidationError(
            f"{total_size} bytes in parts of {part_size} needs {count} parts, "
            f"more than the maximum of {MAX_PART_NUMBER}"
        )
    return [
        PartRange(
            number=i + 1,
            offset=i * part_size,
            length=min(part_size, total_size - i * part_size),
        )
        for i in range(count)
    ]


async def iter_file_range(
    path: str | os.PathLike,
    offset: int = 0,
    length: int | None = None,
    chunk_size: int = _CHUNK_SIZE,
) -> AsyncIterator[bytes]:
    """Yield a byte range of a file in chunks.

    Args:
        path: The file to read.
        offset: Byte offset to start reading from.
        length: Number of bytes to read, or None for all remaining.
        chunk_size: Maximum size of each yielded chunk.

    Yields:
        Chunks of bytes from the file.
    """
    remaining = length

    with open(Path(path), "rb") as f:
        if offset > 0:
            f.seek(offset)

        while True:
            if remaining is not None:
                to_read = min(chunk_size, remaining)
                if to_read <= 0:
                    break
            else:
                to_read = chunk_size

            chunk = f.read(to_read)
            if not chunk:
                break

            yield chunk

            if remaining is not None:
                remaining -= len(chunk)
