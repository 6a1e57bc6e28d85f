"""Dashboard notification tone."""
import io
import wave
from functools import lru_cache

import numpy as np

SAMPLE_RATE = 22050
TONE_FREQUENCY = 800.0
TONE_DURATION = 0.5
TONE_VOLUME = 0.3
TONE_FLOOR = 0.01


@lru_cache(maxsize=8)
def notification_tone_wav(
    frequency: float = TONE_FREQUENCY,
    duration: float = TONE_DURATION,
    volume: float = TONE_VOLUME,
    sample_rate: int = SAMPLE_RATE,
) -> bytes:
    """Sine tone with an exponential decay from ``volume`` to 0.01, as 16-bit mono WAV."""
    t = np.arange(int(sample_rate * duration)) / sample_rate
    envelope = volume * (TONE_FLOOR / volume) ** (t / duration)
    samples = np.sin(2 * np.pi * frequency * t) * envelope
    pcm = np.clip(samples * 32767, -32768, 32767).astype("<i2")

    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(pcm.tobytes())
    return buffer.getvalue()
