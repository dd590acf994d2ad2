"""Object key encoding for transport and for listing responses.

Two distinct encodings are in play:

* ``quote_path`` is always applied to keys placed in request paths and in the
  ``x-oss-copy-source`` header.
* ``encode_key``/``decode_key`` implement the ``encoding-type`` directive,
  which only governs how keys inside listing response bodies are returned.
"""

import urllib.parse
from enum import Enum


class KeyEncoding(str, Enum):
    """Encoding mode for key-bearing fields in listing responses."""

    NONE = "none"
    URL = "url"


def encode_key(key: str, mode: KeyEncoding = KeyEncoding.NONE) -> str:
    """Encode a key according to ``mode``.

    URL mode uses form-component escaping: space becomes ``+`` and every
    non-ASCII byte of the UTF-8 encoding is percent-escaped.

    Args:
        key: The raw key.
        mode: The encoding mode.

    Returns:
        The encoded key; unchanged for ``KeyEncoding.NONE``.
    """
    if KeyEncoding(mode) is KeyEncoding.URL:
        return urllib.parse.quote_plus(key, safe="")
    return key


def decode_key(key: str, mode: KeyEncoding = KeyEncoding.NONE) -> str:
    """Decode a key previously encoded with ``encode_key``.

    Args:
        key: The encoded key.
        mode: The encoding mode the key was encoded with.

    Returns:
        The decoded key; unchanged for ``KeyEncoding.NONE``.

    Raises:
        ValueError: If URL-mode escapes do not form valid UTF-8.
    """
    if KeyEncoding(mode) is KeyEncoding.URL:
        return urllib.parse.unquote_plus(key, encoding="utf-8", errors="strict")
    return key


def parse_encoding(value: str | None) -> KeyEncoding:
    """Map an echoed ``EncodingType`` value to a ``KeyEncoding``.

    A missing or empty value means ``KeyEncoding.NONE``.

    Raises:
        ValueError: If the value names an unknown encoding.
    """
    if not value:
        return KeyEncoding.NONE
    return KeyEncoding(value.strip().lower())


def quote_path(key: str) -> str:
    """Percent-encode a key for use in a request path.

    ``/`` is kept so that nested keys map to nested paths.
    """
    return urllib.parse.quote(key, safe="/")


def resource_path(bucket: str, key: str | None = None) -> str:
    """Build the transport path for a bucket or an object within it."""
    if key is None:
        return f"/{bucket}/"
    return f"/{bucket}/{quote_path(key)}"
