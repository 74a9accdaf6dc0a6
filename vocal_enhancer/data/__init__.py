"""vocal_enhancer.data — Raw PCM decoding and encoding."""

from vocal_enhancer.data.pcm import apply_volume, decode, encode

__all__: list[str] = [
    "decode",
    "encode",
    "apply_volume",
]
