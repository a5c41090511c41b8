import os
import shutil
import time
from pathlib import Path
from typing import BinaryIO, Optional, Union

from docchat.core.errors import UnsafeFilename
from docchat.services.parser.main_parser import SUPPORTED_EXTENSIONS


def save_upload(upload_dir: Union[str, Path], original_name: Optional[str], stream: BinaryIO) -> str:
    """Copies an uploaded file into the upload dir and returns its filename token."""
    safe_name = os.path.basename(original_name or "")
    if not safe_name:
        raise ValueError("Uploaded file has no name")
    if os.path.splitext(safe_name)[1].lower() not in SUPPORTED_EXTENSIONS:
        raise ValueError(f"Unsupported file type: {safe_name}. Supported: {', '.join(SUPPORTED_EXTENSIONS)}")

    upload_dir = Path(upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    filename = f"{time.time_ns() // 1_000_000}-{safe_name}"
    with open(upload_dir / filename, "wb") as buffer:
        shutil.copyfileobj(stream, buffer)
    return filename


def resolve_upload(upload_dir: Union[str, Path], filename: str) -> Optional[Path]:
    """Maps a filename token back to its path inside the upload dir; None if no such file."""
    if (not filename or filename in (".", "..") or "\x00" in filename
            or "/" in filename or "\\" in filename or os.path.isabs(filename)):
        raise UnsafeFilename(filename)
    root = Path(upload_dir).resolve()
    path = (root / filename).resolve()
    if path.parent != root:
        raise UnsafeFilename(filename)
    if not path.is_file():
        return None
    return path
