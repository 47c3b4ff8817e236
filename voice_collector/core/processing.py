"""Audio helpers for the microphone capture device.

Level metering, input gain, WAV encoding of raw PyAudio frames and a small
heuristic that classifies an input device by its driver.
"""

import io
from typing import Iterable

import numpy as np
import soundfile as sf
from loguru import logger

INT16_FULL_SCALE = 32768
DB_FLOOR = 120


def calculate_db_level(audio_data: bytes) -> float:
    """Return the level of an int16 buffer on a 0-120 scale (120 = full scale)."""
    try:
        samples = np.frombuffer(audio_data, dtype=np.int16)
        if samples.size == 0:
            return 0.0
        rms = np.sqrt(np.mean(samples.astype(np.float64) ** 2))
        if rms <= 0:
            return 0.0
        db = 20 * np.log10(rms / INT16_FULL_SCALE) + DB_FLOOR
        return float(max(0.0, min(float(DB_FLOOR), db)))
    except ValueError as e:
        logger.debug(f"Cannot measure level of {len(audio_data)} byte buffer: {e}")
        return 0.0


def apply_gain(audio_data: bytes, gain_factor: float = 1.0) -> bytes:
    """Scale an int16 buffer by *gain_factor*, clipping instead of wrapping.

    Args:
        audio_data: Raw int16 samples
        gain_factor: 1.0 leaves the buffer untouched, 2.0 is roughly +6 dB

    Returns:
        The amplified buffer, or the input when it cannot be decoded
    """
    if gain_factor == 1.0:
        return audio_data

    try:
        samples = np.frombuffer(audio_data, dtype=np.int16).astype(np.float32)
    except ValueError as e:
        logger.debug(f"Skipping gain on undecodable buffer: {e}")
        return audio_data

    scaled = np.clip(samples * gain_factor, -(INT16_FULL_SCALE - 1), INT16_FULL_SCALE - 1)
    return scaled.astype(np.int16).tobytes()


def frames_to_wav(frames: Iterable[bytes], rate: int, channels: int = 1) -> bytes:
    """Encode captured int16 frames as an in-memory 16-bit PCM WAV file."""
    samples = np.frombuffer(b''.join(frames), dtype=np.int16)
    if channels > 1:
        samples = samples.reshape(-1, channels)
    buffer = io.BytesIO()
    sf.write(buffer, samples, rate, format='WAV', subtype='PCM_16')
    return buffer.getvalue()


def detect_driver_type(device_name: str) -> str:
    """Guess the audio driver ('pulse', 'alsa', 'jack', 'usb' or 'default') from a device name."""
    name = device_name.lower()
    markers = (
        ('pulse', ('pulse', 'pipewire')),
        ('alsa', ('alsa', 'hw:', 'plughw')),
        ('jack', ('jack',)),
        ('usb', ('usb',)),
    )
    for driver, needles in markers:
        if any(needle in name for needle in needles):
            return driver
    return 'default'
