"""Upload boundary exposed to the editing surface.

Thin functions mirroring the editor's upload endpoint: a POST that uploads
(and optionally replaces) a file and a DELETE that removes one by name.
"""

from typing import Optional

from .models import DeleteResult, UploadResult
from .replacement import MediaReplacer


def upload_media(
    replacer: MediaReplacer,
    filename: str,
    content: bytes,
    folder: Optional[str] = None,
    old_reference: Optional[str] = None,
) -> UploadResult:
    """Upload a file, replacing old_reference when given.

    Returns:
        UploadResult whose path is the new relative path
    """
    return replacer.replace_media(folder, filename, content, old_reference)


def delete_media(replacer: MediaReplacer, file_name: str, folder: Optional[str] = None) -> DeleteResult:
    """Delete a media file by name.

    Returns:
        DeleteResult with ok=True on success, or the error otherwise
    """
    return replacer.delete_media(file_name, folder)
