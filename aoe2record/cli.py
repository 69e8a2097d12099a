"""aoe2record reads the header of Age of Empires II DE recorded games.

Use [b]get-header-info[/b] for the full decoded header as JSON, or
[b]summarize[/b] for a quick look at the match settings and roster."""

import logging
import sys
from pathlib import Path
from typing import Optional
from typing_extensions import Annotated

import typer

from aoe2record import __version__
from aoe2record import config
from aoe2record.config import Config
from aoe2record.errors import RecordParsingError
from aoe2record.logging import configure_logging

app = typer.Typer(rich_markup_mode="rich", help=sys.modules[__name__].__doc__)

logger = logging.getLogger(__name__)

DEFAULT_DUMP_LENGTH = 256


def version(value: bool):
    if value:
        typer.echo(f"aoe2record v{__version__}")
        raise typer.Exit()


def auto_int(x) -> int:
    """Accept decimal or hex (0x...) integers."""
    if isinstance(x, int):
        return x
    return int(x, 0)


@app.callback()
def callback(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show version information for your aoe2record installation",
            callback=version,
        ),
    ] = False,
    debug: Annotated[
        bool, typer.Option(help="Log every section offset while decoding")
    ] = False,
    quiet: Annotated[
        bool, typer.Option(help="Only log warnings and errors")
    ] = False,
):
    configure_logging(debug=debug, quiet=quiet)


def _decode(replay_file, strict: bool, check: bool):
    from aoe2record.header import decode

    try:
        return decode(replay_file, strict=strict, check=check)
    except RecordParsingError as e:
        logger.error(f"Could not decode {replay_file.name}: {e}")
        raise typer.Exit(1)


@app.command(rich_help_panel="Decoding")
def get_header_info(
    replay_file: typer.FileBinaryRead,
    strict: Annotated[
        Optional[bool],
        typer.Option(
            help="Fail on enumeration codes with no known label (default from config)"
        ),
    ] = None,
    indent: Annotated[
        Optional[int], typer.Option(help="JSON indentation (default from config)")
    ] = None,
):
    """Decode a recorded game header, outputting it in JSON format."""
    cfg = Config.load()
    if strict is None:
        strict = cfg.strict_codes
    if indent is None:
        indent = cfg.json_indent
    game = _decode(replay_file, strict, cfg.check_trailing_alignment)
    typer.echo(game.model_dump_json(indent=indent if indent > 0 else None))


@app.command(rich_help_panel="Decoding")
def summarize(replay_file: typer.FileBinaryRead):
    """Print the match settings, occupied player slots and replay timing."""
    cfg = Config.load()
    header = _decode(replay_file, cfg.strict_codes, cfg.check_trailing_alignment).header
    de = header.de
    typer.echo(f"Version: {header.version} (save {header.save_version:.2f})")
    typer.echo(f"Difficulty: {de.difficulty_label}")
    typer.echo(f"Victory Type: {de.victory_type_label}")
    typer.echo(f"Starting Resources: {de.starting_resources_label}")
    typer.echo(
        f"Starting Age: {de.starting_age_label} - Ending Age: {de.ending_age_label}"
    )
    typer.echo(f"Lobby: {de.lobby_name} ({de.num_players} players)")
    for i, player in enumerate(de.players):
        if player.name.length == 0:
            continue
        typer.echo(
            f"Player {i}: {player.name} civ={player.civ_id} color={player.color_id} "
            f"team={player.resolved_team_id} type={player.type_label}"
        )
    typer.echo(f"Replay: {header.replay.model_dump()}")


@app.command(rich_help_panel="Tools for nerds")
def extract_header(replay_file: typer.FileBinaryRead, output: Path):
    """Write the decompressed header payload to a file for offline inspection."""
    from aoe2record.inflate import inflate_header

    try:
        payload = inflate_header(replay_file)
    except RecordParsingError as e:
        logger.error(f"Could not extract header from {replay_file.name}: {e}")
        raise typer.Exit(1)
    output.write_bytes(payload)
    typer.echo(f"Header ({len(payload)} bytes) -> {output}")


def hexdump(data: bytes, base_offset: int = 0):
    for i in range(0, len(data), 16):
        chunk = data[i : i + 16]
        hex_part = " ".join(f"{b:02x}" for b in chunk)
        asc_part = "".join(chr(b) if 32 <= b < 127 else "." for b in chunk)
        yield f"{base_offset + i:08x}  {hex_part:<47}  {asc_part}"


@app.command(rich_help_panel="Tools for nerds")
def dump_header(
    replay_file: typer.FileBinaryRead,
    offset: Annotated[
        int, typer.Option("--offset", "-s", parser=auto_int, help="Start offset (decimal or 0x hex)")
    ] = 0,
    length: Annotated[
        int, typer.Option("--length", "-n", parser=auto_int, help="Number of bytes to dump")
    ] = DEFAULT_DUMP_LENGTH,
):
    """Hex-dump a byte range of the decompressed header payload."""
    from aoe2record.inflate import inflate_header

    try:
        payload = inflate_header(replay_file)
    except RecordParsingError as e:
        logger.error(f"Could not extract header from {replay_file.name}: {e}")
        raise typer.Exit(1)
    if offset < 0 or length <= 0:
        logger.error(f"Offset must be non-negative and length positive (got {offset}, {length})")
        raise typer.Exit(1)
    if offset >= len(payload):
        logger.error(f"Offset {offset:#x} is past the end of the header ({len(payload):#x})")
        raise typer.Exit(1)
    for line in hexdump(payload[offset : offset + length], base_offset=offset):
        typer.echo(line)


@app.command(rich_help_panel="Tools for nerds")
def config_path():
    """Print the real path to the aoe2record configuration file."""
    if not config.config_file.exists():
        Config().save()
    typer.echo(config.config_file.resolve())
