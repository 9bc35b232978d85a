from __future__ import annotations

from enum import Enum


class WireFormat(str, Enum):
    LEGACY = "legacy"
    TAGGED = "tagged"


TAGGED_FORMAT_VERSION = 2
