"""Parsing media references stored in page content.

Pages reference media in several forms depending on when and how they were
edited: a site URL ("https://example.org/images/123-a.png"), a relative
path ("images/123-a.png" or "/images/123-a.png") or a bare filename.
"""

import re
from typing import Optional

_ABSOLUTE_URL = re.compile(r'^[a-zA-Z][a-zA-Z0-9+.-]*://')


def extract_media_filename(reference: Optional[str], folder: str) -> Optional[str]:
    """Extract the filename a reference points to inside folder.

    Args:
        reference: Reference string from page content (may be empty)
        folder: Media folder the reference is expected to live in

    Returns:
        The filename relative to folder, or None when the reference is
        empty, points outside folder from an absolute URL, or would
        escape the folder

    Examples:
        >>> extract_media_filename("/images/old_123.png", "images")
        'old_123.png'
        >>> extract_media_filename("https://site.org/images/a.png?v=2", "images")
        'a.png'
        >>> extract_media_filename("a.png", "images")
        'a.png'
        >>> extract_media_filename("https://cdn.example.com/a.png", "images")
    """
    if not reference or not reference.strip():
        return None

    reference = reference.strip()
    folder = folder.strip('/')

    match = re.search(rf'(?:^|/){re.escape(folder)}/([^?#]*)', reference)
    if match:
        filename = match.group(1)
    elif _ABSOLUTE_URL.match(reference):
        return None
    else:
        filename = re.split(r'[?#]', reference, maxsplit=1)[0].lstrip('/')

    filename = filename.strip('/')
    if not filename or any(part in ('', '.', '..') for part in filename.split('/')):
        return None
    return filename


def replace_reference_in_content(content: str, old_reference: str, new_reference: str) -> str:
    """Replace every literal occurrence of old_reference in page content.

    Works for both JSON and HTML pages since it does not parse either.
    """
    if not old_reference:
        return content
    return content.replace(old_reference, new_reference)
