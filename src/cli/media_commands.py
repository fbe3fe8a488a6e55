"""Media commands: upload (optionally replacing an old asset) and delete."""

import logging
import os
from typing import Optional

from src.github_client.errors import AuthFailureError, InvalidContentError
from src.media.references import replace_reference_in_content
from src.media.replacement import MediaReplacer
from src.media.service import delete_media, upload_media
from src.page_sync.synchronizer import ContentSynchronizer, SaveRegistry
from .base_command import BaseCommand, read_local_file
from .errors import CLIError
from .models import ExitCode

logger = logging.getLogger(__name__)


def new_reference(old_reference: str, replaced_path: Optional[str], new_path: str) -> str:
    """Build the reference to splice in, keeping the old reference's form.

    Examples:
        >>> new_reference("/images/old.png", "images/old.png", "images/1-new.png")
        '/images/1-new.png'
        >>> new_reference("old.png", "images/old.png", "images/1-new.png")
        'images/1-new.png'
    """
    if replaced_path and replaced_path in old_reference:
        return old_reference.replace(replaced_path, new_path)
    return new_path


class MediaCommand(BaseCommand):
    """Base for commands that manage media files."""

    def __init__(self, *args, replacer: Optional[MediaReplacer] = None,
                 save_registry: Optional[SaveRegistry] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.replacer = replacer
        self.save_registry = save_registry or SaveRegistry()

    def _get_replacer(self) -> MediaReplacer:
        if self.replacer is None:
            config = self.config
            self.replacer = MediaReplacer(
                self._get_client(),
                default_folder=config.default_media_folder,
                allowed_folders=config.media_folders,
            )
        return self.replacer


class UploadCommand(MediaCommand):
    """Uploads a local file under a unique name.

    With old_reference, the asset it points at is deleted after the upload
    succeeds. A failed delete is reported as a warning and the command
    still succeeds.

    With page as well, every occurrence of old_reference in that page is
    replaced by the new reference and the page is saved. The page is read
    before the upload, so a page that does not mention old_reference fails
    the command before anything is uploaded.

    Example:
        >>> UploadCommand(output_handler=output).run(
        ...     "./logo.png", folder="images", old_reference="/images/old_123.png",
        ...     page="about.json")
    """

    def run(
        self,
        local_file: str,
        folder: Optional[str] = None,
        old_reference: Optional[str] = None,
        page: Optional[str] = None,
    ) -> ExitCode:
        def action() -> None:
            if page and not old_reference:
                raise CLIError("A page can only be updated together with the reference it replaces")

            content = read_local_file(local_file)
            filename = os.path.basename(local_file)

            sync = None
            if page:
                sync = ContentSynchronizer(
                    self._get_client(),
                    save_registry=self.save_registry,
                    commit_message=self.config.commit_message,
                )
                with self.output_handler.spinner(f"Reading {page}..."):
                    opened = sync.open(page)
                if old_reference not in opened.content:
                    raise InvalidContentError(page, f"does not reference '{old_reference}'")

            replacer = self._get_replacer()
            with self.output_handler.spinner(f"Uploading {filename}..."):
                result = upload_media(replacer, filename, content, folder, old_reference)
            self.output_handler.print_upload_result(result)

            if sync is not None:
                reference = new_reference(old_reference, result.replaced_path, result.path)
                sync.edit(replace_reference_in_content(sync.current.content, old_reference, reference))
                logger.info(f"Replaced '{old_reference}' with '{reference}' in {page}")
                with self.output_handler.spinner(f"Saving {page}..."):
                    saved = sync.save()
                self.output_handler.print_save_result(saved)

        return self.execute(action)


class DeleteMediaCommand(MediaCommand):
    """Deletes a media file by name."""

    def run(self, file_name: str, folder: Optional[str] = None) -> ExitCode:
        def action() -> ExitCode:
            with self.output_handler.spinner(f"Deleting {file_name}..."):
                result = delete_media(self._get_replacer(), file_name, folder)
            self.output_handler.print_delete_result(result)
            if result.ok:
                return ExitCode.SUCCESS
            if isinstance(result.error, AuthFailureError):
                return ExitCode.AUTH_ERROR
            return ExitCode.GENERAL_ERROR

        return self.execute(action)
