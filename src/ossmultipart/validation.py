"""Client-side argument validation for ossmultipart.

These checks run before any request is sent, so obviously invalid calls fail
fast without a round trip. Each function raises ``ClientValidationError``.
The service remains authoritative for everything not checked here.
"""

import re

from ossmultipart.errors import ClientValidationError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Bucket naming rules:
#   - 3-63 characters
#   - lowercase letters, digits and hyphens
#   - must start and end with a letter or digit
_BUCKET_RE = re.compile(r"^[a-z0-9][a-z0-9\-]{1,61}[a-z0-9]$")

_MAX_KEY_BYTES = 1024
MIN_PART_NUMBER = 1
MAX_PART_NUMBER = 10000


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_bucket_name(name: str) -> None:
    """Validate a bucket name.

    Raises:
        ClientValidationError: If the name violates the naming rules.
    """
    if not _BUCKET_RE.match(name or ""):
        raise ClientValidationError(f"Invalid bucket name: {name!r}")


def validate_object_key(key: str) -> None:
    """Validate an object key.

    Raises:
        ClientValidationError: If the key is empty or longer than 1024 bytes
            when UTF-8 encoded.
    """
    if not key:
        raise ClientValidationError("Object key must not be empty")
    if len(key.encode("utf-8")) > _MAX_KEY_BYTES:
        raise ClientValidationError("Object key is longer than 1024 bytes")


def validate_transaction_id(txn_id: str) -> None:
    if not txn_id:
        raise ClientValidationError("Transaction id must not be empty")


def validate_part_number(number: int) -> None:
    """Validate a part number.

    Raises:
        ClientValidationError: If the number is not an integer in [1, 10000].
    """
    if isinstance(number, bool) or not isinstance(number, int):
        raise ClientValidationError(f"Part number must be an integer, got {number!r}")
    if number < MIN_PART_NUMBER or number > MAX_PART_NUMBER:
        raise ClientValidationError(
            f"Part number must be between {MIN_PART_NUMBER} and {MAX_PART_NUMBER}, got {number}"
        )


def format_range(byte_range: tuple[int, int]) -> str:
    """Render a half-open ``(start, end)`` pair as a ``Range`` header value.

    The header uses an inclusive end, so ``(1, 5)`` becomes ``bytes=1-4``.

    Raises:
        ClientValidationError: If the range is negative or empty.
    """
    try:
        start, end = byte_range
    except (TypeError, ValueError):
        raise ClientValidationError(f"Range must be a (start, end) pair, got {byte_range!r}")
    if start < 0 or end <= start:
        raise ClientValidationError(f"Invalid byte range [{start}, {end})")
    return f"bytes={start}-{end - 1}"
