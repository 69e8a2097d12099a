"""Typed representation of a decoded recorded game header."""

from __future__ import annotations

import struct
from enum import IntEnum
from typing import Optional, Tuple
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, PlainSerializer, PrivateAttr, computed_field
from typing_extensions import Annotated

from .errors import UnmappedCode

PLAYER_SLOTS = 8
"""Maximum players including Gaia"""
STRING_SLOTS = 23
STRATEGIC_NUMBERS = 59
UNKNOWN_LABEL = "Unknown"


def _exactly(n: int):
    def check(value):
        if len(value) != n:
            raise ValueError(f"expected exactly {n} entries, got {len(value)}")
        return value

    return AfterValidator(check)


RawBytes = Annotated[bytes, PlainSerializer(lambda b: b.hex(), when_used="json")]
"""Opaque region kept verbatim; rendered as hex in JSON."""


class CodedEnum(IntEnum):
    """Small integer code with a human-readable label."""

    @property
    def label(self) -> str:
        return self.name

    @classmethod
    def known(cls, code: int) -> bool:
        try:
            cls(code)
        except ValueError:
            return False
        return True

    @classmethod
    def label_for(cls, code: int) -> str:
        if not cls.known(code):
            return UNKNOWN_LABEL
        return cls(code).label

    @classmethod
    def checked(cls, code: int, strict: bool = False) -> int:
        """Return code unchanged, raising UnmappedCode if strict and it has no label."""
        if strict and not cls.known(code):
            raise UnmappedCode(cls.__name__, code)
        return code


class Difficulty(CodedEnum):
    Hardest = 0
    Hard = 1
    Moderate = 2
    Standard = 3
    Easiest = 4
    Extreme = 5
    Unknown = 6


class VictoryType(CodedEnum):
    Standard = 0
    Conquest = 1
    Exploration = 2
    Ruins = 3
    Artifacts = 4
    Discoveries = 5
    Gold = 6
    TimeLimit = 7
    Score = 8
    Standard2 = 9
    Regicide = 10
    LastMan = 11


class ResourceLevel(CodedEnum):
    NoResources = -1
    Standard = 0
    Low = 1
    Medium = 2
    High = 3
    Unknown1 = 4
    Unknown2 = 5

    @property
    def label(self) -> str:
        if self is ResourceLevel.NoResources:
            return "None"
        return self.name


class Age(CodedEnum):
    Unknown = -2
    Unset = -1
    Standard = 0
    Feudal = 1
    Castle = 2
    Imperial = 3
    PostImperial = 4
    DMPostImperial = 6


class PlayerType(CodedEnum):
    Absent = 0
    Closed = 1
    Human = 2
    Eliminated = 3
    Computer = 4
    Cyborg = 5
    Spectator = 6


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class TaggedString(_Frozen):
    length: int
    value: RawBytes

    @computed_field
    @property
    def text(self) -> str:
        return self.value.decode("utf-8", errors="replace")

    def __str__(self) -> str:
        return self.text


class Player(_Frozen):
    dlc_id: int
    color_id: int
    selected_color: int
    selected_team_id: int
    resolved_team_id: int
    dat_crc: RawBytes
    mp_game_version: int
    civ_id: int
    reserved: RawBytes
    ai_type: TaggedString
    ai_civ_name_index: int
    ai_name: TaggedString
    name: TaggedString
    type: int
    profile_id: int
    reserved2: RawBytes
    player_number: int
    hd_rm_elo: int
    hd_dm_elo: int
    animated_destruction_enabled: bool
    custom_ai: bool

    @computed_field
    @property
    def type_label(self) -> str:
        return PlayerType.label_for(self.type)


class AiFile(_Frozen):
    unknown: RawBytes
    name: TaggedString
    unknown2: RawBytes


class Guid(_Frozen):
    """16-byte identifier in the Windows GUID field layout."""

    data1: int
    data2: int
    data3: int
    data4: RawBytes

    def as_uuid(self) -> UUID:
        return UUID(bytes_le=struct.pack("<IHH", self.data1, self.data2, self.data3) + self.data4)

    def __str__(self) -> str:
        return str(self.as_uuid())


class GameSettings(_Frozen):
    """The DE-specific game settings block."""

    version: float
    interval_version: int
    game_options_version: int
    dlc_ids: Tuple[int, ...]
    dataset_ref: int
    difficulty: int
    selected_map_id: int
    resolved_map_id: int
    reveal_map: int
    victory_type: int
    starting_resources: int
    starting_age: int
    ending_age: int
    game_type: int
    speed: float
    treaty_length: int
    population_limit: int
    num_players: int
    unused_player_color: int
    victory_amount: int
    trade_enabled: bool
    team_bonus_disabled: bool
    random_positions: bool
    all_techs: bool
    num_starting_units: int
    lock_teams: bool
    lock_speed: bool
    multiplayer: bool
    cheats: bool
    record_game: bool
    animals_enabled: bool
    predators_enabled: bool
    turbo_enabled: bool
    shared_exploration: bool
    team_positions: bool
    players: Annotated[Tuple[Player, ...], _exactly(PLAYER_SLOTS)]
    fog_of_war: bool
    cheat_notifications: bool
    colored_chat: bool
    strings: Annotated[Tuple[TaggedString, ...], _exactly(STRING_SLOTS)]
    strategic_numbers: Annotated[Tuple[int, ...], _exactly(STRATEGIC_NUMBERS)]
    ai_files: Tuple[AiFile, ...]
    guid: Guid
    lobby_name: TaggedString
    modded_dataset: TaggedString
    misc_string: TaggedString

    @property
    def dlc_count(self) -> int:
        return len(self.dlc_ids)

    @computed_field
    @property
    def difficulty_label(self) -> str:
        return Difficulty.label_for(self.difficulty)

    @computed_field
    @property
    def victory_type_label(self) -> str:
        return VictoryType.label_for(self.victory_type)

    @computed_field
    @property
    def starting_resources_label(self) -> str:
        return ResourceLevel.label_for(self.starting_resources)

    @computed_field
    @property
    def starting_age_label(self) -> str:
        return Age.label_for(self.starting_age)

    @computed_field
    @property
    def ending_age_label(self) -> str:
        return Age.label_for(self.ending_age)


class AiInfo(_Frozen):
    has_ai: bool


class ReplayTiming(_Frozen):
    old_time: int
    world_time: int
    old_world_time: int
    game_speed_id: int
    world_time_delta_seconds: int
    timer: float
    game_speed: float
    temp_pause: int
    next_object_id: int
    next_reusable_object_id: int
    random_seed: int
    rec_player: int
    num_players: int
    """Includes Gaia"""


class Header(_Frozen):
    version: str
    save_version: float
    de: GameSettings
    ai: AiInfo
    replay: ReplayTiming

    _length: int = PrivateAttr(default=0)
    _payload_consumed: int = PrivateAttr(default=0)
    _alignment_ok: Optional[bool] = PrivateAttr(default=None)

    @property
    def block_length(self) -> int:
        """Outer block length: 8 + the size of the compressed sub-block."""
        return self._length

    @property
    def payload_consumed(self) -> int:
        """Number of decompressed bytes read to produce this header."""
        return self._payload_consumed

    @computed_field
    @property
    def alignment_ok(self) -> Optional[bool]:
        """Whether the replay timing block ended on a plausible boundary; None if not checked."""
        return self._alignment_ok


class RecordedGame(_Frozen):
    header: Header

