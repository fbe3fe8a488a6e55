"""Media uploads for repository-hosted pages.

Images and PDFs are committed as repository files under images/ and pdfs/.
Replacing an asset uploads the new file under a unique name first and only
then deletes the old one, best effort.
"""

from .errors import MediaError, InvalidMediaNameError, UnknownMediaFolderError
from .models import MediaAssetReference, UploadResult, DeleteResult
from .naming import MediaNamer, MonotonicMillis, sanitize_filename
from .references import extract_media_filename, replace_reference_in_content
from .replacement import MediaReplacer
from .service import upload_media, delete_media

__all__ = [
    "MediaReplacer",
    "MediaNamer",
    "MonotonicMillis",
    "sanitize_filename",
    "extract_media_filename",
    "replace_reference_in_content",
    "upload_media",
    "delete_media",
    "MediaAssetReference",
    "UploadResult",
    "DeleteResult",
    "MediaError",
    "InvalidMediaNameError",
    "UnknownMediaFolderError",
]
