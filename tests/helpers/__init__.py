"""Test helper modules.

- fake_store: In-memory repository store with real revision-token semantics
- recording_output: OutputHandler that captures terminal output
"""

from .fake_store import InMemoryRepositoryStore
from .recording_output import RecordingOutput

__all__ = [
    'InMemoryRepositoryStore',
    'RecordingOutput',
]
