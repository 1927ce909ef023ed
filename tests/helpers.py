"""Test helpers."""

import base64


def b64(path: str) -> str:
    """Encode a path the way the browser client does."""
    return base64.b64encode(path.encode("utf-8")).decode("ascii")
