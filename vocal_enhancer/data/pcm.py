"""
vocal_enhancer.data.pcm
~~~~~~~~~~~~~~~~~~~~~~~

Raw PCM ↔ normalised float conversion.

The engine only ever sees a mono ``float64`` buffer in ``[-1, 1]``.  This
module turns headerless little-endian integer PCM into that buffer and
back, down-mixing interleaved channels on the way in and replicating the
mono result on the way out.
"""

from __future__ import annotations

import numpy as np

from vocal_enhancer.config import (
    INT16_DECODE_SCALE,
    INT16_ENCODE_SCALE,
    SAMPLE_WIDTH,
    SUPPORTED_SAMPLE_WIDTHS,
)


def _check_format(sample_width: int, channels: int, is_float: bool = False) -> None:
    if sample_width not in SUPPORTED_SAMPLE_WIDTHS:
        raise ValueError(
            f"sample_width must be one of {SUPPORTED_SAMPLE_WIDTHS}, got {sample_width}"
        )
    if channels < 1:
        raise ValueError(f"channels must be >= 1, got {channels}")
    if is_float and sample_width != 4:
        raise ValueError(f"float PCM must be 4 bytes wide, got {sample_width}")


def _int24_to_int32(raw: np.ndarray) -> np.ndarray:
    """Sign-extend packed 24-bit little-endian triplets to ``int32``."""
    triplets = raw.reshape(-1, 3).astype(np.int32)
    values = triplets[:, 0] | (triplets[:, 1] << 8) | (triplets[:, 2] << 16)
    return (values << 8) >> 8


def decode(
    data: bytes,
    sample_width: int = SAMPLE_WIDTH,
    channels: int = 1,
    is_float: bool = False,
) -> np.ndarray:
    """Convert raw PCM bytes into a normalised mono sample buffer.

    Parameters
    ----------
    data : bytes
        Headerless little-endian PCM.  Trailing bytes that do not form a
        complete frame are dropped (a 2001-byte 16-bit mono buffer yields
        1000 samples).
    sample_width : int
        Bytes per sample: 1 (unsigned), 2, 3 or 4 (signed).
    channels : int
        Number of interleaved channels; frames are averaged to mono.
    is_float : bool
        Samples are IEEE-754 ``float32`` (``sample_width`` must be 4) and are
        taken as-is.

    Returns
    -------
    np.ndarray
        ``float64`` samples in ``[-1, 1]``.  Empty for empty input.
    """
    _check_format(sample_width, channels, is_float)
    frame_bytes = sample_width * channels
    usable = len(data) - len(data) % frame_bytes
    if usable == 0:
        return np.zeros(0, dtype=np.float64)

    raw = np.frombuffer(data, dtype=np.uint8, count=usable)

    if is_float:
        x = raw.view("<f4").astype(np.float64)
    elif sample_width == 1:
        x = raw.astype(np.float64) / 255.0 * 2.0 - 1.0
    elif sample_width == 2:
        x = raw.view("<i2").astype(np.float64) / INT16_DECODE_SCALE
    elif sample_width == 3:
        x = _int24_to_int32(raw).astype(np.float64) / float(1 << 23)
    else:
        x = raw.view("<i4").astype(np.float64) / 2147483648.0

    if channels > 1:
        x = x.reshape(-1, channels).mean(axis=1)
    return x


def encode(
    samples: np.ndarray,
    sample_width: int = SAMPLE_WIDTH,
    channels: int = 1,
    is_float: bool = False,
) -> bytes:
    """Convert a normalised mono buffer back into raw PCM bytes.

    For 16-bit output each sample is multiplied by 32767, clamped to
    ``[-32768, 32767]`` and truncated toward zero.  NaN is written as
    silence and infinities as full scale, so the output can never overflow.

    Parameters
    ----------
    samples : np.ndarray
        Mono float samples.
    sample_width : int
        Bytes per output sample.
    channels : int
        The mono signal is replicated to this many interleaved channels.
    is_float : bool
        Write clamped ``float32`` samples instead of integers.

    Returns
    -------
    bytes
    """
    _check_format(sample_width, channels, is_float)
    x = np.nan_to_num(np.asarray(samples, dtype=np.float64), nan=0.0, posinf=1.0, neginf=-1.0)
    if x.size == 0:
        return b""

    if is_float:
        out = np.clip(x, -1.0, 1.0).astype("<f4")
    elif sample_width == 1:
        clipped = np.clip(x, -1.0, 1.0)
        out = ((clipped * 0.5 + 0.5) * 255.0).astype(np.uint8)
    elif sample_width == 2:
        out = np.clip(x * INT16_ENCODE_SCALE, -32768.0, 32767.0).astype("<i2")
    elif sample_width == 3:
        scaled = np.clip(x * float(1 << 23), -8388608.0, 8388607.0).astype(np.int32)
        # keep the three low bytes of each little-endian int32
        out = scaled.astype("<i4").view(np.uint8).reshape(-1, 4)[:, :3]
    else:
        out = np.clip(x * 2147483647.0, -2147483648.0, 2147483647.0).astype("<i4")

    if channels > 1:
        out = np.repeat(out.reshape(x.size, -1), channels, axis=0)
    return np.ascontiguousarray(out).tobytes()


def apply_volume(data: bytes, factor: float, sample_width: int = SAMPLE_WIDTH) -> bytes:
    """Scale 16-bit PCM by a linear volume factor, clipping to int16.

    Used by playback collaborators to preview a rendered take at a given
    volume without round-tripping through floats.
    """
    if sample_width != 2:
        raise ValueError(f"apply_volume supports 16-bit PCM only, got width {sample_width}")
    if factor < 0:
        raise ValueError(f"factor must be non-negative, got {factor}")
    usable = len(data) - len(data) % 2
    samples = np.frombuffer(data, dtype="<i2", count=usable // 2).astype(np.float64)
    amplified = np.clip(np.trunc(samples * factor), -32768, 32767)
    return amplified.astype("<i2").tobytes()
