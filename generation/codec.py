"""
Binary payload codec.

The speech model returns raw little-endian linear PCM (base64 on the wire).
Browsers and strict parsers need a RIFF/WAVE container around it, so the
header is synthesized here from the actual payload length.
"""

import base64
import io
import logging
import struct
from typing import NamedTuple, Optional, Union

from pydub import AudioSegment as PydubAudioSegment

from .models import AssetKind, MediaAsset

logger = logging.getLogger(__name__)

WAV_HEADER_SIZE = 44
WAV_MIME_TYPE = "audio/wav"
PCM_FORMAT_TAG = 1

# RIFF header, fmt chunk and data chunk header of a canonical 44-byte WAV
_HEADER_STRUCT = struct.Struct("<4sI4s4sIHHIIHH4sI")


class WavHeader(NamedTuple):
    riff_chunk_size: int
    format_tag: int
    channels: int
    sample_rate: int
    byte_rate: int
    block_align: int
    bits_per_sample: int
    data_size: int

    @property
    def declared_total_size(self) -> int:
        # RIFF chunk size excludes the 8-byte "RIFF" + size preamble
        return self.riff_chunk_size + 8


def decode(data: Union[str, bytes]) -> bytes:
    """Standard base64 decoding of an inline payload"""
    return base64.b64decode(data)


def pcm_to_wav(pcm: bytes, sample_rate: int = 24000, channels: int = 1, bit_depth: int = 16) -> bytes:
    """Wrap raw PCM samples in a WAV container whose sizes match len(pcm)"""

    if channels <= 0 or sample_rate <= 0 or bit_depth <= 0 or bit_depth % 8:
        raise ValueError(
            f"Invalid PCM layout: {channels} channel(s), {sample_rate} Hz, {bit_depth} bit"
        )

    block_align = channels * bit_depth // 8
    byte_rate = sample_rate * block_align
    data_size = len(pcm)

    header = _HEADER_STRUCT.pack(
        b"RIFF",
        WAV_HEADER_SIZE - 8 + data_size,
        b"WAVE",
        b"fmt ",
        16,  # fmt chunk size for PCM
        PCM_FORMAT_TAG,
        channels,
        sample_rate,
        byte_rate,
        block_align,
        bit_depth,
        b"data",
        data_size,
    )
    return header + bytes(pcm)


def read_wav_header(wav: bytes) -> WavHeader:
    """Parse the canonical 44-byte header produced by pcm_to_wav"""

    if len(wav) < WAV_HEADER_SIZE:
        raise ValueError(f"WAV data too short for a header: {len(wav)} bytes")

    (riff, riff_size, wave, fmt, fmt_size, format_tag, channels, sample_rate,
     byte_rate, block_align, bits, data_id, data_size) = _HEADER_STRUCT.unpack_from(wav)

    if riff != b"RIFF" or wave != b"WAVE" or fmt != b"fmt " or data_id != b"data" or fmt_size != 16:
        raise ValueError("Not a canonical PCM WAV header")

    return WavHeader(
        riff_chunk_size=riff_size,
        format_tag=format_tag,
        channels=channels,
        sample_rate=sample_rate,
        byte_rate=byte_rate,
        block_align=block_align,
        bits_per_sample=bits,
        data_size=data_size,
    )


def wav_payload(wav: bytes) -> bytes:
    """Return the sample bytes of a canonical WAV container"""
    header = read_wav_header(wav)
    return wav[WAV_HEADER_SIZE:WAV_HEADER_SIZE + header.data_size]


def audio_duration(wav: bytes) -> Optional[float]:
    """Get audio duration using pydub"""

    try:
        audio = PydubAudioSegment.from_wav(io.BytesIO(wav))
        return len(audio) / 1000.0
    except Exception as e:
        logger.warning(f"Could not get audio duration: {e}")
        return None


def to_playable_container(
    pcm: bytes,
    sample_rate: int = 24000,
    channels: int = 1,
    bit_depth: int = 16,
) -> MediaAsset:
    """Build a playable audio asset (WAV bytes plus data URL) from raw PCM"""

    wav = pcm_to_wav(pcm, sample_rate=sample_rate, channels=channels, bit_depth=bit_depth)
    duration = audio_duration(wav) if pcm else 0.0
    return MediaAsset.from_bytes(AssetKind.AUDIO, wav, WAV_MIME_TYPE, duration_seconds=duration)
