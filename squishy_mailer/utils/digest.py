"""Content fingerprints for template bodies."""
from __future__ import annotations

from typing import Union

from cryptography.hazmat.primitives import hashes

DIGEST_BYTES = 16


def content_digest(body: Union[str, bytes]) -> str:
    """Return the hex of the first 16 bytes of SHA-512/224 over ``body``.

    The truncation keeps stored digests at 32 hex characters; existing rows
    were written with it, so it must not change.
    """
    if isinstance(body, str):
        body = body.encode("utf-8")
    h = hashes.Hash(hashes.SHA512_224())
    h.update(body)
    return h.finalize()[:DIGEST_BYTES].hex()
