"""Function bundle loading: raw bytes, a prebuilt .zip, or a directory."""

from __future__ import annotations

import io
import os
import zipfile
from pathlib import Path

# Fixed timestamp so the same sources always produce the same archive bytes.
_EPOCH = (1980, 1, 1, 0, 0, 0)


def load_code(code: bytes | str | Path) -> bytes:
    if isinstance(code, (bytes, bytearray)):
        return bytes(code)
    path = Path(code)
    if path.is_dir():
        return zip_directory(path)
    if path.is_file():
        return path.read_bytes()
    raise FileNotFoundError(f"Function code not found at {path}")


def zip_directory(root: Path) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames.sort()
            for filename in sorted(filenames):
                full = Path(dirpath) / filename
                info = zipfile.ZipInfo(full.relative_to(root).as_posix(), date_time=_EPOCH)
                info.external_attr = 0o644 << 16
                info.compress_type = zipfile.ZIP_DEFLATED
                zf.writestr(info, full.read_bytes())
    return buf.getvalue()
