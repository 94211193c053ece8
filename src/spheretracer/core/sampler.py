"""Per-pixel random number streams for Monte Carlo sampling.

Every consumer of entropy (sub-pixel jitter, thin-lens sampling, material
scattering) draws from an explicit stream index instead of a process-wide
generator. Each pixel owns one stream, so pixels rendered in parallel never
share mutable generator state, and a fixed seed reproduces a render exactly.

Within one pixel sample the draws happen in a fixed order:

    1. sub-pixel jitter u, then jitter v
    2. thin-lens disk sample (two draws per rejection attempt)
    3. material scattering draws, in the order surfaces are hit

The generator is a 32-bit linear congruential state update followed by the
PCG RXS-M-XS output permutation. Uniform floats use the top 24 bits of the
permuted word, so values lie in [0, 1).

A constant-value override is available for debugging and tests; while it is
active every stream returns the same value and no state advances.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretracer.core.sampler import seed_streams, draw_uniform
    >>> seed_streams(1234)
    >>> values = draw_uniform(stream=0, count=4)
"""

import logging

import numpy as np
import taichi as ti

logger = logging.getLogger(__name__)

# Streams 0 .. PIXEL_STREAMS - 1 form a 2048 x 2048 grid, one per pixel.
STREAM_ROW_LENGTH = 2048
PIXEL_STREAMS = STREAM_ROW_LENGTH * 2048

# Stream owned by single rays traced from Python, outside the pixel grid
RAY_STREAM = PIXEL_STREAMS

MAX_STREAMS = PIXEL_STREAMS + 1

DEFAULT_SEED = 42

# LCG constants (multiplier = 1 mod 4, odd increment: full 2^32 period)
_LCG_MULTIPLIER = 747796405
_LCG_INCREMENT = 1013904223

# PCG RXS-M-XS output multiplier
_PERMUTE_MULTIPLIER = 277803737

_INV_2_POW_24 = 1.0 / 16777216.0

_rng_state = ti.field(dtype=ti.u32, shape=MAX_STREAMS)

# Constant-value override
_fixed_enabled = ti.field(dtype=ti.i32, shape=())
_fixed_value = ti.field(dtype=ti.f32, shape=())

_current_seed = DEFAULT_SEED


@ti.func
def _permute(state: ti.u32) -> ti.u32:
    """PCG RXS-M-XS permutation of a 32-bit state (a bijection)."""
    word = ((state >> ((state >> ti.u32(28)) + ti.u32(4))) ^ state) * ti.u32(_PERMUTE_MULTIPLIER)
    return (word >> ti.u32(22)) ^ word


@ti.func
def uniform(stream: ti.i32) -> ti.f32:
    """Draw the next uniform value in [0, 1) from a stream.

    Args:
        stream: Stream index in [0, MAX_STREAMS).

    Returns:
        A float in [0, 1). Advances the stream state unless the constant
        override is active.
    """
    result = 0.0
    if _fixed_enabled[None] == 1:
        result = _fixed_value[None]
    else:
        state = _rng_state[stream] * ti.u32(_LCG_MULTIPLIER) + ti.u32(_LCG_INCREMENT)
        _rng_state[stream] = state
        result = ti.cast(_permute(state) >> ti.u32(8), ti.f32) * _INV_2_POW_24
    return result


@ti.func
def pixel_stream(pixel_i: ti.i32, pixel_j: ti.i32) -> ti.i32:
    """Stream index owned by pixel (i, j)."""
    return pixel_j * STREAM_ROW_LENGTH + pixel_i


@ti.kernel
def _seed_kernel(seed: ti.u32):
    seed_word = _permute(seed)
    for i in range(MAX_STREAMS):
        _rng_state[i] = _permute(ti.cast(i, ti.u32) + seed_word)


def seed_streams(seed: int = DEFAULT_SEED) -> None:
    """Deterministically seed every stream.

    Stream ``i`` starts from a state derived from the seed and ``i``, so the
    same seed always reproduces the same sequence for every pixel.

    Args:
        seed: Any integer; only the low 32 bits are used.
    """
    global _current_seed
    _current_seed = seed
    _seed_kernel(seed & 0xFFFFFFFF)
    logger.debug("Seeded %d random streams with seed %d", MAX_STREAMS, seed)


def get_seed() -> int:
    """Return the seed last passed to seed_streams()."""
    return _current_seed


def set_fixed_random(value: float) -> None:
    """Make every stream return a constant value.

    Args:
        value: The value every draw returns. Must lie in [0, 1).

    Raises:
        ValueError: If value is outside [0, 1).
    """
    if value < 0.0 or value >= 1.0:
        raise ValueError(f"Fixed random value {value} is outside [0, 1).")
    _fixed_value[None] = value
    _fixed_enabled[None] = 1


def clear_fixed_random() -> None:
    """Return all streams to their seeded generator sequences."""
    _fixed_enabled[None] = 0


def is_fixed_random() -> bool:
    """Check whether the constant-value override is active."""
    return bool(_fixed_enabled[None])


_draw_buffer = ti.field(dtype=ti.f32, shape=4096)


@ti.kernel
def _draw_kernel(stream: ti.i32, count: ti.i32):
    ti.loop_config(serialize=True)
    for k in range(count):
        _draw_buffer[k] = uniform(stream)


def draw_uniform(stream: int = 0, count: int = 1) -> np.ndarray:
    """Draw values from a stream on the Python side.

    Args:
        stream: Stream index in [0, MAX_STREAMS).
        count: Number of consecutive draws, at most 4096.

    Returns:
        A float32 NumPy array of the drawn values, in draw order.

    Raises:
        ValueError: If stream or count is out of range.
    """
    if stream < 0 or stream >= MAX_STREAMS:
        raise ValueError(f"Stream index {stream} is outside [0, {MAX_STREAMS}).")
    if count < 0 or count > _draw_buffer.shape[0]:
        raise ValueError(f"Draw count {count} is outside [0, {_draw_buffer.shape[0]}].")
    _draw_kernel(stream, count)
    return _draw_buffer.to_numpy()[:count].copy()
