"""Capture of the single usage summary of a stream."""

from __future__ import annotations

import logging

from chunkwise.chunk import Usage
from chunkwise.errors import DuplicateUsage

logger = logging.getLogger(__name__)


class UsageMerger:
    """Holds the first usage seen; a second one is a protocol violation.

    Usage is never summed or overwritten: a stream reports it once,
    usually on its last chunk.
    """

    def __init__(self) -> None:
        self._usage: Usage | None = None

    def record(self, usage: Usage) -> None:
        if self._usage is not None:
            logger.warning("Stream carried usage more than once")
            raise DuplicateUsage("usage", self._usage, usage)
        self._usage = usage

    def current(self) -> Usage | None:
        return self._usage
