"""Unique, filesafe names for uploaded media.

Uploaded files are stored as "<millisecond timestamp>-<sanitized name>" so
that a replacement never overwrites the asset it replaces.

Conversion rules:
- Any directory part of the original name is dropped
- Characters outside [A-Za-z0-9.-] become underscores
- Case and extension are preserved

Examples:
    - "Officer Photo (1).JPG" -> "1718000000000-Officer_Photo__1_.JPG"
    - "C:\\Users\\me\\logo.png" -> "1718000000000-logo.png"
"""

import re
import threading
import time
from typing import Callable, Optional

from .errors import InvalidMediaNameError

_UNSAFE_CHARS = re.compile(r'[^a-zA-Z0-9.-]')


class MonotonicMillis:
    """Millisecond wall-clock timestamps that never repeat in this process.

    Two uploads within the same millisecond get consecutive values, so
    generated names stay unique even for scripted bursts. Uniqueness across
    processes relies on human-paced uploads; it is not guaranteed.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.time
        self._lock = threading.Lock()
        self._last = 0

    def __call__(self) -> int:
        with self._lock:
            now = int(self._clock() * 1000)
            self._last = max(now, self._last + 1)
            return self._last


def sanitize_filename(filename: str) -> str:
    """Reduce a client-supplied filename to the safe character set.

    Args:
        filename: Original filename, possibly with a client-side directory

    Returns:
        The sanitized base name

    Raises:
        InvalidMediaNameError: If nothing usable remains

    Examples:
        >>> sanitize_filename("my photo.png")
        'my_photo.png'
        >>> sanitize_filename("../../etc/passwd")
        'passwd'
    """
    base = re.split(r'[\\/]', (filename or '').strip())[-1]
    sanitized = _UNSAFE_CHARS.sub('_', base)

    if not sanitized or set(sanitized) <= {'.'}:
        raise InvalidMediaNameError(filename)
    return sanitized


class MediaNamer:
    """Generates unique storage names for uploads."""

    def __init__(self, clock: Optional[Callable[[], int]] = None):
        """Initialize the namer.

        Args:
            clock: Callable returning integer milliseconds; defaults to a
                   process-wide-unique MonotonicMillis
        """
        self.clock = clock or MonotonicMillis()

    def generate(self, filename: str) -> str:
        """Return "<timestamp>-<sanitized filename>"."""
        return f"{self.clock()}-{sanitize_filename(filename)}"
