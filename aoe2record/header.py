"""Decoder for the compressed header block of an aoe2record file.

The header has no self-describing schema: every field is read in a fixed
order, and anything read with the wrong width shifts every field after it.
Separator checkpoints are validated wherever the format has them so that
such drift fails loudly instead of producing garbage."""

from __future__ import annotations

import logging
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Union

from .inflate import DeflateStream, read_header_block
from .model import (
    PLAYER_SLOTS,
    STRATEGIC_NUMBERS,
    STRING_SLOTS,
    Age,
    AiFile,
    AiInfo,
    GameSettings,
    Guid,
    Header,
    Player,
    PlayerType,
    RecordedGame,
    ReplayTiming,
    ResourceLevel,
    TaggedString,
    VictoryType,
)
from .reader import SEPARATOR, RecordReader
from .versions import GatePoint, apply_gates

logger = logging.getLogger(__name__)

IGNORED_LIST_CODES = frozenset({3, 21, 23, 42, 44, 45})
"""List codes after a string slot that are followed by another code"""

AI_DATA_LENGTH = 4096


def read_tagged(reader: RecordReader) -> TaggedString:
    length, value = reader.read_tagged_string()
    return TaggedString(length=length, value=value)


def read_string_slot(reader: RecordReader) -> TaggedString:
    """Read one string slot: a tagged string, then list codes up to the first non-ignorable one."""
    string = read_tagged(reader)
    code = reader.read_uint32()
    while code in IGNORED_LIST_CODES:
        code = reader.read_uint32()
    return string


def read_player(reader: RecordReader, strict: bool = False) -> Player:
    return Player(
        dlc_id=reader.read_uint32(),
        color_id=reader.read_uint32(),
        selected_color=reader.read_uint8(),
        selected_team_id=reader.read_uint8(),
        resolved_team_id=reader.read_uint8(),
        dat_crc=reader.read_fixed(8),
        mp_game_version=reader.read_uint8(),
        civ_id=reader.read_uint8(),
        reserved=reader.read_fixed(3),
        ai_type=read_tagged(reader),
        ai_civ_name_index=reader.read_uint8(),
        ai_name=read_tagged(reader),
        name=read_tagged(reader),
        type=PlayerType.checked(reader.read_uint32(), strict),
        profile_id=reader.read_uint32(),
        reserved2=reader.read_fixed(4),
        player_number=reader.read_int32(),
        hd_rm_elo=reader.read_uint32(),
        hd_dm_elo=reader.read_uint32(),
        animated_destruction_enabled=reader.read_bool(),
        custom_ai=reader.read_bool(),
    )


def read_ai_file(reader: RecordReader) -> AiFile:
    return AiFile(
        unknown=reader.read_fixed(4),
        name=read_tagged(reader),
        unknown2=reader.read_fixed(4),
    )


def read_guid(reader: RecordReader) -> Guid:
    return Guid(
        data1=reader.read_uint32(),
        data2=reader.read_uint16(),
        data3=reader.read_uint16(),
        data4=reader.read_fixed(8),
    )


def read_game_settings(
    reader: RecordReader, save_version: float, strict: bool = False
) -> GameSettings:
    """Read the DE settings block, which starts right after the save version."""
    f = {}
    f["version"] = reader.read_float32()
    f["interval_version"] = reader.read_uint32()
    f["game_options_version"] = reader.read_uint32()
    dlc_count = reader.read_uint32()
    f["dlc_ids"] = tuple(reader.read_uint32() for _ in range(dlc_count))
    f["dataset_ref"] = reader.read_uint32()
    # Difficulty always falls back to its Unknown label, even in strict mode.
    f["difficulty"] = reader.read_uint32()
    f["selected_map_id"] = reader.read_uint32()
    f["resolved_map_id"] = reader.read_uint32()
    f["reveal_map"] = reader.read_uint32()
    f["victory_type"] = VictoryType.checked(reader.read_uint32(), strict)
    # Stored as u32 but holds -1 for "no resources".
    f["starting_resources"] = ResourceLevel.checked(reader.read_int32(), strict)
    f["starting_age"] = Age.checked(reader.read_int32(), strict)
    f["ending_age"] = Age.checked(reader.read_int32(), strict)
    f["game_type"] = reader.read_uint32()
    logger.debug(
        f"DLCs {f['dlc_ids']}, difficulty {f['difficulty']}, "
        f"victory {f['victory_type']}, map {f['resolved_map_id']}"
    )

    reader.expect_separator()
    reader.expect_separator()

    f["speed"] = reader.read_float32()
    f["treaty_length"] = reader.read_uint32()
    f["population_limit"] = reader.read_uint32()
    f["num_players"] = reader.read_uint32()
    f["unused_player_color"] = reader.read_uint32()
    f["victory_amount"] = reader.read_uint32()

    reader.expect_separator()

    f["trade_enabled"] = reader.read_bool()
    f["team_bonus_disabled"] = reader.read_bool()
    f["random_positions"] = reader.read_bool()
    f["all_techs"] = reader.read_bool()
    f["num_starting_units"] = reader.read_uint8()
    f["lock_teams"] = reader.read_bool()
    f["lock_speed"] = reader.read_bool()
    f["multiplayer"] = reader.read_bool()
    f["cheats"] = reader.read_bool()
    f["record_game"] = reader.read_bool()
    f["animals_enabled"] = reader.read_bool()
    f["predators_enabled"] = reader.read_bool()
    f["turbo_enabled"] = reader.read_bool()
    f["shared_exploration"] = reader.read_bool()
    f["team_positions"] = reader.read_bool()

    apply_gates(GatePoint.AFTER_TOGGLES, reader, save_version)
    reader.expect_separator()

    logger.debug(f"Reading {PLAYER_SLOTS} player slots at offset {reader.position}")
    f["players"] = tuple(read_player(reader, strict) for _ in range(PLAYER_SLOTS))

    f["fog_of_war"] = reader.read_bool()
    f["cheat_notifications"] = reader.read_bool()
    f["colored_chat"] = reader.read_bool()

    reader.skip(9)
    reader.expect_separator()
    reader.skip(12)
    apply_gates(GatePoint.BEFORE_STRINGS, reader, save_version)

    logger.debug(f"Reading {STRING_SLOTS} string slots at offset {reader.position}")
    f["strings"] = tuple(read_string_slot(reader) for _ in range(STRING_SLOTS))
    f["strategic_numbers"] = tuple(
        reader.read_int32() for _ in range(STRATEGIC_NUMBERS)
    )

    num_ai_files = reader.read_uint64()
    logger.debug(f"Reading {num_ai_files} AI files at offset {reader.position}")
    f["ai_files"] = tuple(read_ai_file(reader) for _ in range(num_ai_files))

    f["guid"] = read_guid(reader)
    f["lobby_name"] = read_tagged(reader)
    f["modded_dataset"] = read_tagged(reader)

    reader.skip(19)
    apply_gates(GatePoint.AFTER_LOBBY, reader, save_version)
    f["misc_string"] = read_tagged(reader)
    reader.skip(5)
    apply_gates(GatePoint.AFTER_MISC_STRING, reader, save_version)

    return GameSettings(**f)


def read_ai_info(reader: RecordReader) -> AiInfo:
    has_ai = reader.read_uint32() != 0
    if has_ai:
        # The AI structure itself is not decoded.
        reader.skip(AI_DATA_LENGTH)
    return AiInfo(has_ai=has_ai)


def read_replay_timing(reader: RecordReader) -> ReplayTiming:
    return ReplayTiming(
        old_time=reader.read_uint32(),
        world_time=reader.read_uint32(),
        old_world_time=reader.read_uint32(),
        game_speed_id=reader.read_uint32(),
        world_time_delta_seconds=reader.read_uint32(),
        timer=reader.read_float32(),
        game_speed=reader.read_float32(),
        temp_pause=reader.read_uint8(),
        next_object_id=reader.read_uint32(),
        next_reusable_object_id=reader.read_int32(),
        random_seed=reader.read_uint32(),
        rec_player=reader.read_uint16(),
        num_players=reader.read_uint8(),
    )


def check_alignment(reader: RecordReader) -> bool:
    """Look for signs that the replay timing block was read at the wrong offset.

    The layout of the fields right before the timing block is not fully
    understood for every save version. A separator immediately after it
    means we stopped short of a section boundary."""
    upcoming = reader.peek(len(SEPARATOR))
    if upcoming == SEPARATOR:
        logger.warning(
            f"Found a separator right after the replay timing block (offset {reader.position}); "
            "timing fields are probably misaligned"
        )
        return False
    return True


def read_header(f: BinaryIO, strict: bool = False, check: bool = True) -> Header:
    length, compressed = read_header_block(f)
    with DeflateStream(compressed) as stream:
        reader = RecordReader(stream)
        version = reader.read_cstring()
        save_version = reader.read_float32()
        logger.debug(f"Version {version!r}, save version {save_version:.2f}")
        settings = read_game_settings(reader, save_version, strict)
        ai = read_ai_info(reader)
        logger.debug(f"Reading replay timing at offset {reader.position}")
        replay = read_replay_timing(reader)
        alignment_ok = check_alignment(reader) if check else None
        trailing = stream.unused_data
        if trailing:
            logger.debug(
                f"{len(trailing)} bytes of the header block follow the deflate stream"
            )
        header = Header(
            version=version,
            save_version=save_version,
            de=settings,
            ai=ai,
            replay=replay,
        )
        header._length = length
        header._payload_consumed = reader.position
        header._alignment_ok = alignment_ok
    return header


def decode(
    source: Union[Path, BinaryIO, bytes], *, strict: bool = False, check: bool = True
) -> RecordedGame:
    """Decode the header of a recorded game.

    Raises a RecordParsingError subclass on any failure; nothing partially
    decoded is ever returned."""
    if isinstance(source, (bytes, bytearray)):
        source = BytesIO(source)
    if isinstance(source, Path):
        with source.open("rb") as f:
            return RecordedGame(header=read_header(f, strict, check))
    return RecordedGame(header=read_header(source, strict, check))
