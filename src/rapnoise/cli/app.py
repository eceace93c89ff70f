from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
import typer

from rapnoise.core import constants
from rapnoise.core.bits.base import list_bit_sources
from rapnoise.core.blend.base import list_blends
from rapnoise.core.errors import NoiseError
from rapnoise.io.config import ConfigError, parse_config, write_config
from rapnoise.io.formats import field_fingerprint, save_field
from rapnoise.orchestrator.generator import NoiseConfig, NoiseGenerator
from rapnoise.render.image import render_tiles, save_png
from rapnoise.utils.logging import resolve_log_level, set_command_context, setup_logging
from rapnoise.cli import ui

app = typer.Typer(help="Random-access Perlin-style noise CLI")

_DEFAULT_SIZE_TEXT = ",".join(str(s) for s in constants.DEFAULT_SIZE)


def parse_ints(text: str, what: str) -> Tuple[int, ...]:
    try:
        parts = text.replace(",", " ").split()
        if not parts:
            raise ValueError
        return tuple(int(p) for p in parts)
    except ValueError as exc:
        raise typer.BadParameter(f"{what} must be integers as 'a,b,...' or 'a b ...'") from exc


def parse_floats(text: str, what: str) -> Tuple[float, ...]:
    try:
        parts = text.replace(",", " ").split()
        if not parts:
            raise ValueError
        return tuple(float(p) for p in parts)
    except ValueError as exc:
        raise typer.BadParameter(f"{what} must be numbers as 'a,b,...' or 'a b ...'") from exc


def _fail(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED)
    raise typer.Exit(code=1)


def build_generator(
    config: Optional[Path],
    seed: int,
    persistence: float,
    octaves: int,
    size: str,
    smooth: bool,
    blend: str,
    bit_source: str,
) -> NoiseGenerator:
    """A YAML profile wins over individual flags when both are given."""
    try:
        if config is not None:
            noise_config = parse_config(config)
        else:
            noise_config = NoiseConfig(
                seed=seed,
                persistence=persistence,
                octaves=octaves,
                size=parse_ints(size, "size"),
                smooth=smooth,
                blend=blend,
                bit_source=bit_source,
            )
        return NoiseGenerator.from_config(noise_config)
    except ConfigError as exc:
        _fail(f"Config error: {exc}")
    except NoiseError as exc:
        _fail(f"Invalid generator settings: {exc}")


ConfigOpt = typer.Option(None, "--config", "-c", exists=True, readable=True, help="YAML generator profile")
SeedOpt = typer.Option(constants.DEFAULT_SEED, "--seed", "-s", help="Global seed")
PersistenceOpt = typer.Option(constants.DEFAULT_PERSISTENCE, help="Per-octave weight decay in [0, 1]")
OctavesOpt = typer.Option(constants.DEFAULT_OCTAVES, help="Number of octaves")
SizeOpt = typer.Option(_DEFAULT_SIZE_TEXT, help="Base grid size per dimension, e.g. '4,4'")
SmoothOpt = typer.Option(constants.DEFAULT_SMOOTH, "--smooth", help="Record the smoothing flag")
BlendOpt = typer.Option(constants.DEFAULT_BLEND, help="Blend function name")
BitSourceOpt = typer.Option(constants.DEFAULT_BIT_SOURCE, "--bit-source", help="Bit source name")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress"),
    debug: bool = typer.Option(False, "--debug", help="Log cache and build details"),
):
    setup_logging(resolve_log_level(verbose, debug))


@app.command("config")
def write_profile(
    out: Path = typer.Option(..., "--out", "-o", help="YAML profile output path"),
    seed: int = SeedOpt,
    persistence: float = PersistenceOpt,
    octaves: int = OctavesOpt,
    size: str = SizeOpt,
    smooth: bool = SmoothOpt,
    blend: str = BlendOpt,
    bit_source: str = BitSourceOpt,
):
    """Validate generator settings and save them as a YAML profile."""
    set_command_context("config")
    generator = build_generator(None, seed, persistence, octaves, size, smooth, blend, bit_source)
    write_config(out, generator.config)
    typer.secho(f"Profile written → {out}", fg=typer.colors.GREEN)


@app.command()
def sample(
    coord: Optional[str] = typer.Option(None, "--coord", help="Continuous coordinate, e.g. '0.25,1.5'"),
    location: Optional[str] = typer.Option(None, "--location", "-l", help="Integer location, e.g. '0,0'"),
    offset: Optional[str] = typer.Option(None, "--offset", help="Offset from --location, e.g. '0.25,0.5'"),
    config: Optional[Path] = ConfigOpt,
    seed: int = SeedOpt,
    persistence: float = PersistenceOpt,
    octaves: int = OctavesOpt,
    size: str = SizeOpt,
    smooth: bool = SmoothOpt,
    blend: str = BlendOpt,
    bit_source: str = BitSourceOpt,
):
    """Evaluate the noise at a single point and print the value."""
    set_command_context("sample")
    if (coord is None) == (location is None):
        _fail("Provide exactly one of --coord or --location.")
    if location is not None and offset is None:
        _fail("--location requires --offset.")

    generator = build_generator(config, seed, persistence, octaves, size, smooth, blend, bit_source)
    try:
        if coord is not None:
            value = generator.evaluate(parse_floats(coord, "coord"))
        else:
            value = generator.evaluate(parse_ints(location, "location"), parse_floats(offset, "offset"))
    except NoiseError as exc:
        _fail(str(exc))
    typer.echo(repr(value))


@app.command()
def fill(
    location: str = typer.Option(..., "--location", "-l", help="Integer location of the tile, e.g. '0,0'"),
    shape: str = typer.Option(..., "--shape", help="Buffer shape, e.g. '64,64'"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Write the buffer as .npy"),
    json_out: bool = typer.Option(False, "--json", help="Print a JSON summary to stdout"),
    hash_out: bool = typer.Option(False, "--hash", help="Print the SHA-256 fingerprint (default)"),
    preview: bool = typer.Option(False, "--preview", help="Print a header and a corner of the buffer"),
    config: Optional[Path] = ConfigOpt,
    seed: int = SeedOpt,
    persistence: float = PersistenceOpt,
    octaves: int = OctavesOpt,
    size: str = SizeOpt,
    smooth: bool = SmoothOpt,
    blend: str = BlendOpt,
    bit_source: str = BitSourceOpt,
):
    """Fill one unit cell of the lattice into a buffer."""
    set_command_context("fill")
    selected = sum(1 for flag in (out is not None, json_out, hash_out) if flag)
    if selected > 1:
        _fail("Choose exactly one output option.")

    generator = build_generator(config, seed, persistence, octaves, size, smooth, blend, bit_source)
    location_tuple = parse_ints(location, "location")
    shape_tuple = parse_ints(shape, "shape")
    if any(s <= 0 for s in shape_tuple):
        _fail("shape entries must be > 0")

    try:
        field = generator.fill(np.empty(shape_tuple, dtype=np.float64), location_tuple)
    except NoiseError as exc:
        _fail(str(exc))

    if preview:
        ui.print_run_header("fill", generator, location_tuple)
        ui.print_field_excerpt(field)

    if out is not None:
        ui.print_io_write(out)
        save_field(out, field)
        typer.secho(f"Wrote buffer → {out}", fg=typer.colors.GREEN)
        return

    fingerprint = field_fingerprint(field)
    if json_out:
        summary = {
            "location": list(location_tuple),
            "shape": list(shape_tuple),
            "min": float(field.min()),
            "max": float(field.max()),
            "mean": float(field.mean()),
            "sha256": fingerprint,
        }
        typer.echo(json.dumps(summary))
        return

    typer.echo(fingerprint)


@app.command()
def render(
    out: Path = typer.Option(..., "--out", "-o", help="PNG output path"),
    tiles: str = typer.Option("2,2", help="Tiles across and down, e.g. '2,2'"),
    tile_size: str = typer.Option("256,256", "--tile-size", help="Pixels per tile, e.g. '256,256'"),
    origin: str = typer.Option("0,0", help="Location of the top-left tile"),
    gray: bool = typer.Option(False, "--gray", help="Grayscale instead of terrain colours"),
    config: Optional[Path] = ConfigOpt,
    seed: int = SeedOpt,
    persistence: float = PersistenceOpt,
    octaves: int = OctavesOpt,
    size: str = SizeOpt,
    smooth: bool = SmoothOpt,
    blend: str = BlendOpt,
    bit_source: str = BitSourceOpt,
):
    """Render adjacent 2-D tiles into one PNG mosaic."""
    set_command_context("render")
    generator = build_generator(config, seed, persistence, octaves, size, smooth, blend, bit_source)
    tiles_tuple = parse_ints(tiles, "tiles")
    tile_tuple = parse_ints(tile_size, "tile-size")
    origin_tuple = parse_ints(origin, "origin")
    if len(tiles_tuple) != 2 or len(tile_tuple) != 2 or len(origin_tuple) != 2:
        _fail("tiles, tile-size and origin must each have two entries")
    if any(v <= 0 for v in tiles_tuple + tile_tuple):
        _fail("tiles and tile-size entries must be > 0")

    try:
        mosaic = render_tiles(generator, tiles_tuple, tile_tuple, origin_tuple)
    except NoiseError as exc:
        _fail(str(exc))

    ui.print_io_write(out)
    save_png(out, mosaic, terrain=not gray)
    ui.print_done(f"{tiles_tuple[0]}x{tiles_tuple[1]} tiles → {out}")


@app.command()
def algorithms():
    """List the registered blend functions and bit sources."""
    typer.echo("blends: " + ", ".join(list_blends()))
    typer.echo("bit_sources: " + ", ".join(list_bit_sources()))


@app.command()
def selftest():
    """
    Check fill/evaluate equivalence on the reference configuration (no filesystem writes).
    """
    set_command_context("selftest")
    generator = NoiseGenerator(0, 0.5, 3, (4, 4), False, "linear")
    expected = generator.fill(np.empty((4, 4), dtype=np.float64), (0, 0))
    actual = np.empty_like(expected)
    for x in range(4):
        for y in range(4):
            actual[x, y] = generator.evaluate((0, 0), (x / 4, y / 4))

    if np.allclose(expected, actual, rtol=0.0, atol=1e-12):
        typer.secho("Selftest passed (fill/evaluate equivalence).", fg=typer.colors.GREEN)
    else:
        typer.secho("Selftest FAILED.", fg=typer.colors.RED)
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
