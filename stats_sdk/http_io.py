"""
Bounded reading of HTTP response bodies.
"""
from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class LimitedText:
    text: Optional[str]
    truncated: bool


def read_utf8_limited(chunks: Optional[Iterable[bytes]], max_bytes: int) -> LimitedText:
    """
    Read a UTF-8 byte stream up to max_bytes bytes.

    The limit is enforced on raw bytes, not decoded characters, so memory use
    stays bounded whatever the server sends. A multi-byte sequence cut at the
    limit is replaced rather than raising.

    Args:
        chunks (iterable of bytes): The body, e.g. ``response.iter_content(1024)``
        max_bytes (int): Maximum number of bytes to keep

    Returns:
        LimitedText: Decoded text and whether bytes were left unread
    """
    if chunks is None:
        return LimitedText(None, False)
    if max_bytes <= 0:
        return LimitedText('', False)

    buffer = bytearray()
    truncated = False

    for chunk in chunks:
        if not chunk:
            continue
        remaining = max_bytes - len(buffer)
        if remaining <= 0:
            truncated = True
            break
        buffer.extend(chunk[:remaining])
        if len(chunk) > remaining:
            truncated = True
            break

    return LimitedText(buffer.decode('utf-8', errors='replace'), truncated)
