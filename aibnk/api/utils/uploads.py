"""Local file storage for onboarding documents and expense receipts."""
from __future__ import annotations

import os
import time
from pathlib import Path

from fastapi import UploadFile


UPLOAD_DIR = Path(os.getenv("AIBNK_UPLOAD_DIR", str(Path(__file__).resolve().parents[1] / "uploads")))


def _extension(filename: str | None) -> str:
    if not filename or "." not in filename:
        return "bin"
    return filename.rsplit(".", 1)[-1].lower() or "bin"


def save_upload(file: UploadFile, *parts: str, stem: str) -> tuple[Path, int]:
    """Write the upload to UPLOAD_DIR/<parts...>/<stem>_<millis>.<ext>; returns path and size."""
    folder = UPLOAD_DIR.joinpath(*parts)
    folder.mkdir(parents=True, exist_ok=True)
    destination = folder / f"{stem}_{int(time.time() * 1000)}.{_extension(file.filename)}"
    payload = file.file.read()
    with destination.open("wb") as buffer:
        buffer.write(payload)
    return destination, len(payload)


def public_url(path: Path) -> str:
    try:
        relative = path.relative_to(UPLOAD_DIR)
    except ValueError:
        return str(path)
    return f"/uploads/{relative.as_posix()}"
