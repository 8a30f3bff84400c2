"""
Duet - Media Search

Interface to the external search proxy that turns a text query into
playable track descriptors.
"""

from typing import Protocol

from src.session.models import Track

MAX_RESULTS = 5


class MediaSearch(Protocol):
    """Resolves a free-text query into a ranked list of tracks."""

    def search(self, query: str) -> list[Track]: ...
