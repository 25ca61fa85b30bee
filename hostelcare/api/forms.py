from __future__ import annotations

from typing import Sequence

from fastapi import Request, UploadFile

from hostelcare.uploads import IncomingFile


def incoming_files(uploads: Sequence[UploadFile] | None) -> list[IncomingFile]:
    """Wrap multipart uploads for the upload store, skipping empty file inputs."""

    files: list[IncomingFile] = []
    for upload in uploads or ():
        if not upload.filename:
            continue
        files.append(IncomingFile(filename=upload.filename, stream=upload.file, content_type=upload.content_type))
    return files


async def submitted_text(request: Request, name: str, parsed: str | None) -> str | None:
    """Return a text form field, telling an empty value apart from an omitted one.

    FastAPI hands empty form values to the handler as ``None``.
    """

    if parsed is not None:
        return parsed
    form = await request.form()
    return "" if isinstance(form.get(name), str) else None
