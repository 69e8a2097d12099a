"""Synthetic recorded games, written field by field in header order."""

import struct
import zlib
from dataclasses import dataclass, field
from typing import List, Optional

import pytest

SEPARATOR = b"\xa3\x5f\x02\x00"
MAGIC = b"\x60\x0a"
PAD = b"\xee"
"""Filler for skipped regions; never a valid separator or flag"""


def f32(x: float) -> float:
    (y,) = struct.unpack("<f", struct.pack("<f", x))
    return y


def tagged(value: bytes, magic: bytes = MAGIC) -> bytes:
    return magic + struct.pack("<H", len(value)) + value


def deflate(payload: bytes) -> bytes:
    c = zlib.compressobj(wbits=-15)
    return c.compress(payload) + c.flush()


@dataclass
class RecordBuilder:
    version: str = "VER 9.4"
    save_version: float = 13.34
    dlc_ids: List[int] = field(default_factory=list)
    difficulty: int = 3
    victory_type: int = 0
    starting_resources: int = 0
    starting_age: int = 0
    ending_age: int = 0
    num_players: int = 2
    player_names: List[bytes] = field(default_factory=lambda: [b""] * 8)
    player_type: int = 2
    slot_codes: List[List[int]] = field(default_factory=lambda: [[0]] * 23)
    strategic_numbers: List[int] = field(default_factory=lambda: [0] * 59)
    ai_files: List[bytes] = field(default_factory=list)
    lobby_name: bytes = b""
    legacy_string: bytes = b"legacy"
    has_ai: bool = False
    ai_flag: Optional[int] = None
    """Raw has-AI word; defaults to int(has_ai)"""
    random_seed: int = 0
    separator: bytes = SEPARATOR
    trailer: bytes = b"\x00" * 16
    """Rest of the real header (map, scenario...), not decoded here"""

    def gate(self, threshold: float) -> bool:
        return f32(self.save_version) >= f32(threshold)

    def player(self, i: int) -> bytes:
        return b"".join(
            [
                struct.pack("<IIBBB", 0, i, i, 1, 1),
                b"\x00" * 8,  # dat crc
                struct.pack("<BB", 0, 0),
                b"\x00" * 3,
                tagged(b""),
                struct.pack("<B", 0),
                tagged(b""),
                tagged(self.player_names[i]),
                struct.pack("<II", self.player_type if self.player_names[i] else 1, 0),
                b"\x00" * 4,
                struct.pack("<iII", i if self.player_names[i] else -1, 0, 0),
                b"\x00\x00",
            ]
        )

    def payload(self) -> bytes:
        out = [self.version.encode("latin-1") + b"\x00", struct.pack("<f", self.save_version)]
        out.append(struct.pack("<fII", 0.0, 0, 0))
        out.append(struct.pack(f"<I{len(self.dlc_ids)}I", len(self.dlc_ids), *self.dlc_ids))
        out.append(
            struct.pack(
                "<IIIIIIiiiI",
                0,
                self.difficulty,
                0,
                0,
                0,
                self.victory_type,
                self.starting_resources,
                self.starting_age,
                self.ending_age,
                0,
            )
        )
        out += [self.separator, self.separator]
        out.append(struct.pack("<fIIIII", 1.7, 0, 200, self.num_players, 0, 0))
        out.append(self.separator)
        out.append(b"\x00" * 15)
        if self.gate(13.34):
            out.append(PAD * 8)
        out.append(self.separator)
        out += [self.player(i) for i in range(8)]
        out.append(b"\x00" * 3)
        out += [PAD * 9, self.separator, PAD * 12]
        if self.gate(13.13):
            out.append(PAD * 5)
        for codes in self.slot_codes:
            out.append(tagged(b""))
            out.append(struct.pack(f"<{len(codes)}I", *codes))
        out.append(struct.pack("<59i", *self.strategic_numbers))
        out.append(struct.pack("<Q", len(self.ai_files)))
        for name in self.ai_files:
            out += [b"\x00" * 4, tagged(name), b"\x00" * 4]
        out.append(struct.pack("<IHH", 0x01020304, 0x0506, 0x0708) + bytes(range(8)))
        out += [tagged(self.lobby_name), tagged(b"")]
        out.append(PAD * 19)
        if self.gate(13.13):
            out.append(PAD * 5)
        if self.gate(13.17):
            out.append(PAD * 9)
        out.append(tagged(b""))
        out.append(PAD * 5)
        if self.gate(13.13):
            out.append(PAD)
        if not self.gate(13.17):
            out += [tagged(self.legacy_string), struct.pack("<I", 0), PAD * 4]
        if self.gate(13.17):
            out.append(PAD * 2)
        ai_flag = int(self.has_ai) if self.ai_flag is None else self.ai_flag
        out.append(struct.pack("<I", ai_flag))
        if ai_flag:
            out.append(PAD * 4096)
        out.append(
            struct.pack("<IIIIIffBIiIHB", 0, 0, 0, 0, 0, 0.0, 1.7, 0, 0, -1, self.random_seed, 1, 3)
        )
        out.append(self.trailer)
        return b"".join(out)

    def record(self, body: bytes = b"") -> bytes:
        compressed = deflate(self.payload())
        return struct.pack("<II", 8 + len(compressed), 0) + compressed + body


@pytest.fixture
def builder():
    return RecordBuilder(player_names=[b"", b"Alice", b"Bob", b"", b"", b"", b"", b""])
