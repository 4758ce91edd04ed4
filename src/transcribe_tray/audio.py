from __future__ import annotations

import io
import logging
import threading
from dataclasses import dataclass

import numpy as np
import sounddevice as sd
import soundfile as sf

from transcribe_tray.errors import RecordingError

LOGGER = logging.getLogger(__name__)


@dataclass
class AudioConfig:
    channels: int = 1
    dtype: str = "int16"


def encode_wav(samples: np.ndarray, sample_rate: int) -> bytes:
    """Frame 16-bit samples as a WAV file without resampling."""
    buffer = io.BytesIO()
    sf.write(buffer, samples, sample_rate, format="WAV", subtype="PCM_16")
    return buffer.getvalue()


class AudioRecorder:
    """Microphone capture owned by the local task handler thread.

    The sample buffer is the only state shared with the PortAudio callback
    thread, so it is the only state guarded by ``_lock``.
    """

    def __init__(self, config: AudioConfig | None = None) -> None:
        self.config = config or AudioConfig()
        self._frames: list[np.ndarray] = []
        self._lock = threading.Lock()
        self._stream: sd.InputStream | None = None
        self.sample_rate: int | None = None
        self.channels: int | None = None
        self._device = self._query_input_device()

    @property
    def is_recording(self) -> bool:
        return self._stream is not None

    @staticmethod
    def _query_input_device() -> dict:
        try:
            device = sd.query_devices(kind="input")
        except (sd.PortAudioError, ValueError) as exc:
            raise RecordingError(f"No audio input device available: {exc}") from exc
        if not device or int(device.get("max_input_channels", 0)) < 1:
            raise RecordingError("Default audio device has no input channels")
        LOGGER.info("Using input device: %s", device.get("name", "unknown"))
        return device

    def _on_audio(self, indata: np.ndarray, frames: int, time, status) -> None:  # type: ignore[no-untyped-def]
        if status:
            LOGGER.warning("Audio stream status: %s", status)
        chunk = indata.copy()
        with self._lock:
            self._frames.append(chunk)

    def start_recording(self) -> None:
        if self._stream is not None:
            return

        sample_rate = int(self._device["default_samplerate"])
        channels = max(1, min(self.config.channels, int(self._device["max_input_channels"])))

        with self._lock:
            self._frames = []

        stream = sd.InputStream(
            samplerate=sample_rate,
            channels=channels,
            dtype=self.config.dtype,
            callback=self._on_audio,
            blocksize=0,
        )
        try:
            stream.start()
        except Exception:
            stream.close()
            raise
        self._stream = stream
        self.sample_rate = sample_rate
        self.channels = channels
        LOGGER.info("Recording started (rate=%d, channels=%d)", sample_rate, channels)

    def stop_recording_and_get_bytes(self) -> bytes | None:
        stream = self._stream
        if stream is None:
            return None
        self._stream = None

        try:
            stream.stop()
        finally:
            stream.close()

        with self._lock:
            frames = self._frames
            self._frames = []

        if not frames or self.sample_rate is None or self.channels is None:
            LOGGER.warning("Recording stopped without captured audio")
            return None

        samples = np.concatenate(frames, axis=0)
        if samples.size == 0:
            LOGGER.warning("Recording stopped without captured audio")
            return None

        LOGGER.info("Recording stopped (%d frames)", samples.shape[0])
        return encode_wav(samples, self.sample_rate)
