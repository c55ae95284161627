"""Residue and diffusion kernels for the pollution field.

Operates directly on the grid layers behind a ``PollutionField``.
Separated from ``field.py`` so that sweep strategies can be swapped or
optimised independently.

Two strategies are provided:

- ``sweep_in_place`` visits water tiles row by row, top to bottom and
  left to right, and applies every transfer immediately.  A tile visited
  later in the sweep sees pollution it received earlier in the same tick,
  which makes the result order-dependent.  This is the reference
  behaviour.
- ``sweep_buffered`` computes every transfer from the state at the start
  of the tick using shifted NumPy slices, so the result is independent of
  visiting order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from riverwatch.grid.cell import clamp_unit
from riverwatch.grid.spatial_grid import CARDINAL_OFFSETS

if TYPE_CHECKING:
    from riverwatch.pollution.field import PollutionField


def update_residue(
    pollution: float,
    residue: float,
    *,
    high_threshold: float,
    low_threshold: float,
    accrual_rate: float,
    recovery_rate: float,
) -> float:
    """Return a tile's residue after one tick.

    Heavy pollution leaves residue in proportion to its concentration;
    clean water recovers at a fixed rate; anything in between holds.

    Args:
        pollution: Current active pollution of the tile.
        residue: Current residue of the tile.
        high_threshold: Pollution above which residue accrues.
        low_threshold: Pollution below which residue recovers.
        accrual_rate: Residue gained per unit pollution.
        recovery_rate: Residue lost per tick when clean.

    Returns:
        The new residue, clamped to ``[0, 1]``.
    """
    if pollution > high_threshold:
        residue += pollution * accrual_rate
    elif pollution < low_threshold:
        residue -= recovery_rate
    return clamp_unit(residue)


def sweep_in_place(field: PollutionField) -> None:
    """Run one single-pass, order-dependent tick over the field.

    The layers are copied to nested lists for the sweep and written back
    once at the end; nothing else touches them in between.

    Args:
        field: The pollution field to advance.
    """
    grid = field.grid
    width, height = grid.width, grid.height
    water = grid.water.tolist()
    pollution = grid.pollution.tolist()
    residue = grid.residue.tolist()
    rate = field.diffusion_rate

    for row in range(height):
        for col in range(width):
            if not water[row][col]:
                continue
            p = pollution[row][col]
            residue[row][col] = update_residue(
                p,
                residue[row][col],
                high_threshold=field.high_threshold,
                low_threshold=field.low_threshold,
                accrual_rate=field.residue_accrual_rate,
                recovery_rate=field.residue_recovery_rate,
            )
            if p <= field.diffusion_floor:
                continue

            spread = 0.0
            for dx, dy in CARDINAL_OFFSETS:
                nc, nr = col + dx, row + dy
                if not (0 <= nc < width and 0 <= nr < height) or not water[nr][nc]:
                    continue
                q = pollution[nr][nc]
                if q < p:
                    transfer = (p - q) * rate
                    pollution[nr][nc] = clamp_unit(q + transfer)
                    spread += transfer
            pollution[row][col] = clamp_unit(p - spread)

    grid.pollution[:, :] = pollution
    grid.residue[:, :] = residue


def _pair_slices(
    dx: int,
    dy: int,
    width: int,
    height: int,
) -> tuple[tuple[slice, slice], tuple[slice, slice]]:
    """Return (source, neighbour) slices pairing each tile with its offset.

    The source slice covers every tile whose ``(dx, dy)`` neighbour is in
    bounds; the neighbour slice covers those neighbours in the same order.
    """
    src = (
        slice(max(0, -dy), height - max(0, dy)),
        slice(max(0, -dx), width - max(0, dx)),
    )
    dst = (
        slice(max(0, dy), height - max(0, -dy)),
        slice(max(0, dx), width - max(0, -dx)),
    )
    return src, dst


def sweep_buffered(field: PollutionField) -> None:
    """Run one order-independent tick over the field.

    Residue and every transfer are computed from the pollution at the
    start of the tick, then applied together.

    Args:
        field: The pollution field to advance.
    """
    grid = field.grid
    water = grid.water
    before = grid.pollution.copy()

    accrue = water & (before > field.high_threshold)
    recover = water & ~accrue & (before < field.low_threshold)
    residue = grid.residue + np.where(accrue, before * field.residue_accrual_rate, 0.0)
    residue -= np.where(recover, field.residue_recovery_rate, 0.0)
    np.clip(residue, 0.0, 1.0, out=residue)

    active = water & (before > field.diffusion_floor)
    outflow = np.zeros_like(before)
    inflow = np.zeros_like(before)
    for dx, dy in CARDINAL_OFFSETS:
        src, dst = _pair_slices(dx, dy, grid.width, grid.height)
        p, q = before[src], before[dst]
        moves = active[src] & water[dst] & (q < p)
        transfer = np.where(moves, (p - q) * field.diffusion_rate, 0.0)
        outflow[src] += transfer
        inflow[dst] += transfer

    grid.pollution[:, :] = np.clip(before - outflow + inflow, 0.0, 1.0)
    grid.residue[:, :] = residue


def step_field(field: PollutionField) -> None:
    """Advance ``field`` by one tick using its configured diffusion mode.

    Args:
        field: The pollution field to advance.
    """
    from riverwatch.pollution.field import DiffusionMode

    if field.diffusion_mode is DiffusionMode.BUFFERED:
        sweep_buffered(field)
    else:
        sweep_in_place(field)
