#!/usr/bin/env python3
"""
Whitespace tokenizer for corpus text.

A token is a maximal run of non-whitespace bytes. Punctuation is kept
inside tokens; a token containing '.' marks the end of a sentence.
"""

from typing import BinaryIO, Iterator

# Bytes treated as token separators
WHITESPACE = b" \t\n\r\x0b\x0c"

# Marks a sentence-ending token
TERMINATOR = "."

DEFAULT_CHUNK_SIZE = 64 * 1024


def _decode(token: bytes, encoding: str) -> str:
    return token.decode(encoding, errors='replace')


def iter_tokens(
    stream: BinaryIO,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    encoding: str = 'utf-8'
) -> Iterator[str]:
    """
    Lazily yield tokens from a binary stream.

    The stream is read in chunks; a token that straddles a chunk boundary
    is carried over and completed by the next chunk. Single pass only.

    Args:
        stream: Binary file-like object
        chunk_size: Bytes to read at a time
        encoding: Encoding used to decode each token (invalid bytes are replaced)

    Yields:
        Tokens in corpus order

    Example:
        >>> import io
        >>> list(iter_tokens(io.BytesIO(b"My  many\\tdogs.\\n")))
        ['My', 'many', 'dogs.']
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    pending = b""
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break

        data = pending + chunk
        parts = data.split()

        # Last part may continue into the next chunk
        if parts and data[-1] not in WHITESPACE:
            pending = parts.pop()
        else:
            pending = b""

        for part in parts:
            yield _decode(part, encoding)

    if pending:
        yield _decode(pending, encoding)


def tokenize(text: str) -> Iterator[str]:
    """
    Yield tokens from an in-memory string.

    Splits on the same ASCII whitespace as iter_tokens.
    """
    for part in text.encode('utf-8', errors='replace').split():
        yield part.decode('utf-8', errors='replace')


def is_terminal(token: str) -> bool:
    """Return True if the token ends a sentence (contains '.')."""
    return TERMINATOR in token
