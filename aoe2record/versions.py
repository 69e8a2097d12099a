"""Save-version dependent regions of the header.

Every layout difference between save versions lives in GATES, keyed by the
point in the decode sequence where it applies. Thresholds are compared as
32-bit floats, which is how the save version is stored."""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from enum import Enum
from typing import List

from .reader import RecordReader

logger = logging.getLogger(__name__)


def as_float32(value: float) -> float:
    """Round a python float to the nearest 32-bit float."""
    (x,) = struct.unpack("<f", struct.pack("<f", value))
    return x


class GatePoint(Enum):
    AFTER_TOGGLES = "after game toggles"
    BEFORE_STRINGS = "before string slots"
    AFTER_LOBBY = "after lobby block"
    AFTER_MISC_STRING = "after misc string"


@dataclass(frozen=True)
class VersionGate:
    name: str
    point: GatePoint
    threshold: float
    skip: int = 0
    below: bool = False
    """Applies to saves older than the threshold instead of newer ones"""
    legacy_fields: bool = False
    """Reads the tagged string + u32 that were dropped in 13.17"""

    def applies(self, save_version: float) -> bool:
        threshold = as_float32(self.threshold)
        if self.below:
            return save_version < threshold
        return save_version >= threshold

    def apply(self, reader: RecordReader) -> None:
        if self.legacy_fields:
            reader.read_tagged_string()
            reader.read_uint32()
        reader.skip(self.skip)


GATES: List[VersionGate] = [
    VersionGate("A", GatePoint.AFTER_TOGGLES, 13.34, skip=8),
    VersionGate("B", GatePoint.BEFORE_STRINGS, 13.13, skip=5),
    VersionGate("C", GatePoint.AFTER_LOBBY, 13.13, skip=5),
    VersionGate("D", GatePoint.AFTER_LOBBY, 13.17, skip=9),
    VersionGate("E", GatePoint.AFTER_MISC_STRING, 13.13, skip=1),
    VersionGate("F", GatePoint.AFTER_MISC_STRING, 13.17, skip=4, below=True, legacy_fields=True),
    VersionGate("G", GatePoint.AFTER_MISC_STRING, 13.17, skip=2),
]
"""Ordered: gates sharing a point are applied in list order."""


def gates_for(point: GatePoint, save_version: float) -> List[VersionGate]:
    return [g for g in GATES if g.point is point and g.applies(save_version)]


def apply_gates(point: GatePoint, reader: RecordReader, save_version: float) -> None:
    for gate in gates_for(point, save_version):
        logger.debug(
            f"Gate {gate.name} ({point.value}) applies at save version {save_version:.2f}"
        )
        gate.apply(reader)
