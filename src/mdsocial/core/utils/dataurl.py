"""Encode local files as data: URIs for embedding in generated SVG"""

import base64
import mimetypes
from pathlib import Path


def file_to_data_url(path: Path) -> str:
    """Return `data:<mime>;base64,<payload>`; unknown types fall back to octet-stream."""
    mime, _ = mimetypes.guess_type(str(path))
    payload = base64.b64encode(Path(path).read_bytes()).decode("ascii")
    return f"data:{mime or 'application/octet-stream'};base64,{payload}"
