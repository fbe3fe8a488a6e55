"""Media replacement protocol.

Replacing an image or PDF is upload-then-delete:

1. The new file is committed under a fresh unique name, without a revision
   token, so it can never overwrite an existing asset.
2. Only after that commit succeeds, the old reference is parsed and the old
   file is deleted on a best-effort basis. A failed delete leaves an orphan
   file behind, which is tolerable cleanup debt; the new asset is already
   stored, so the replacement as a whole still succeeds.

The protocol never edits page content. Callers splice the returned path
into the page themselves.
"""

import logging
from typing import Iterable, Optional

from src.github_client.errors import RepositoryError
from .errors import UnknownMediaFolderError
from .models import DeleteResult, MediaAssetReference, UploadResult
from .naming import MediaNamer
from .references import extract_media_filename

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_FOLDER = "images"
DEFAULT_MEDIA_FOLDERS = ("images", "pdfs")
COMMIT_LABELS = {"images": "image", "pdfs": "document"}


class MediaReplacer:
    """Uploads, replaces and deletes media assets in the repository.

    Example:
        >>> replacer = MediaReplacer(client)
        >>> result = replacer.replace_media("images", "photo.png", data, "/images/old_123.png")
        >>> result.path
        'images/1718000000000-photo.png'
    """

    def __init__(
        self,
        client,
        namer: Optional[MediaNamer] = None,
        default_folder: str = DEFAULT_MEDIA_FOLDER,
        allowed_folders: Iterable[str] = DEFAULT_MEDIA_FOLDERS,
    ):
        """Initialize the replacer.

        Args:
            client: Repository client (read_content / write_content / delete_content)
            namer: Name generator (defaults to timestamp-prefixed names)
            default_folder: Folder used when none is given
            allowed_folders: Folders uploads may target
        """
        self.client = client
        self.namer = namer or MediaNamer()
        self.default_folder = default_folder
        self.allowed_folders = frozenset(allowed_folders) | {default_folder}

    def resolve_folder(self, folder: Optional[str]) -> str:
        """Normalise a folder name, falling back to the default folder.

        Raises:
            UnknownMediaFolderError: If the folder is not allowed
        """
        folder = (folder or '').strip().strip('/')
        if not folder:
            return self.default_folder
        if folder not in self.allowed_folders:
            raise UnknownMediaFolderError(folder, self.allowed_folders)
        return folder

    def upload(self, folder: Optional[str], filename: str, content: bytes) -> MediaAssetReference:
        """Commit a new asset under a generated unique name.

        Raises:
            InvalidMediaNameError: If the filename is unusable
            UnknownMediaFolderError: If the folder is not allowed
            AlreadyExistsError: If the generated path is somehow taken
            RepositoryError: Any other store failure
        """
        asset = MediaAssetReference(
            name=self.namer.generate(filename),
            folder=self.resolve_folder(folder),
            content=content,
        )
        label = COMMIT_LABELS.get(asset.folder, "file")
        self.client.write_content(asset.path, content, f"Add {label}: {asset.name}")
        logger.info(f"Uploaded {asset.path} ({len(content)} bytes)")
        return asset

    def delete_media(self, file_name: str, folder: Optional[str] = None) -> DeleteResult:
        """Delete an asset, reporting failure in the result instead of raising.

        The current revision token is read first, since callers only know
        the asset by name.

        Args:
            file_name: Name of the file inside folder
            folder: Media folder (defaults to the default folder)

        Returns:
            DeleteResult; ok=False carries the error
        """
        path = f"{self.resolve_folder(folder)}/{file_name}"
        try:
            revisioned = self.client.read_content(path)
            self.client.delete_content(path, revisioned.revision_token, f"Delete file: {file_name}")
        except (RepositoryError, ValueError) as e:
            return DeleteResult(ok=False, path=path, error=e)
        return DeleteResult(ok=True, path=path)

    def replace_media(
        self,
        folder: Optional[str],
        filename: str,
        content: bytes,
        old_reference: Optional[str] = None,
    ) -> UploadResult:
        """Upload a new asset and then remove the one it replaces.

        Args:
            folder: Media folder ("images", "pdfs"); blank means default
            filename: Client-side filename of the new asset
            content: New file bytes
            old_reference: How the page currently references the old asset
                           (URL, relative path or bare filename), if any

        Returns:
            UploadResult with the new relative path

        Raises:
            InvalidMediaNameError, UnknownMediaFolderError, RepositoryError:
                Only for the upload step; the delete step never raises
        """
        asset = self.upload(folder, filename, content)
        result = UploadResult(path=asset.path, filename=asset.name)

        old_name = extract_media_filename(old_reference, asset.folder)
        if old_name is None:
            if old_reference:
                logger.debug(f"No deletable asset in reference '{old_reference}'")
            return result

        result.replaced_path = f"{asset.folder}/{old_name}"
        if result.replaced_path == asset.path:
            return result

        deletion = self.delete_media(old_name, asset.folder)
        # Delete failures are reported in the result, never raised
        if not deletion.ok:
            logger.warning(f"Could not delete replaced asset {deletion.path}: {deletion.error}")
        result.deleted_old = deletion.ok
        result.delete_error = deletion.error
        return result
