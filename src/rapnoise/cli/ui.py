from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

import numpy as np
import typer

from rapnoise.orchestrator.generator import NoiseGenerator


def _timestamp_utc() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _abs_path(path: Path | None) -> str:
    if path is None:
        return "n/a"
    try:
        return str(path.resolve())
    except OSError:
        return str(path)


def _fmt_tuple(values: Sequence) -> str:
    return "(" + ",".join(str(v) for v in values) + ")"


def print_run_header(command: str, generator: NoiseGenerator, location: Sequence[int] | None = None) -> None:
    typer.echo(f"[run] command={command} ts_utc={_timestamp_utc()}")
    seed = generator.seed.hex() if isinstance(generator.seed, (bytes, bytearray)) else generator.seed
    typer.echo(
        f"[generator] seed={seed} octaves={generator.octaves} persistence={generator.persistence} "
        f"size={_fmt_tuple(generator.size)} blend={generator.blend.name} bit_source={generator.bit_source_name}"
    )
    if location is not None:
        typer.echo(f"[location] {_fmt_tuple(location)}")


def print_field_excerpt(field: np.ndarray, window: int = 2) -> None:
    """Print the top-left corner of a 2-D field, one line per x."""
    if field.ndim != 2:
        typer.echo(f"[preview] field shape={field.shape} (preview needs 2-D)")
        return
    xs = min(field.shape[0], window * 2 + 1)
    ys = min(field.shape[1], window * 2 + 1)
    typer.echo(f"[preview] x=0..{xs - 1} y=0..{ys - 1}")
    for x in range(xs):
        cells = [f"({x},{y})={float(field[x, y]):.3f}" for y in range(ys)]
        typer.echo(f"[preview] x={x}: " + " ".join(cells))


def print_io_write(path: Path) -> None:
    typer.echo(f"[io] Writing output: {_abs_path(path)}")


def print_done(summary: str) -> None:
    typer.echo(f"[done] {summary}")
