"""Push-to-talk microphone capture backed by sounddevice."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional, Union

from ..exceptions import DeviceUnavailable, PermissionDenied, VoiceTranslatorError
from ..interfaces import AudioCapture
from ..models import CapturedAudio

logger = logging.getLogger(__name__)

_PERMISSION_MARKERS = ("permission", "denied", "not permitted", "not authorized", "unauthorized")


class SoundDeviceCapture(AudioCapture):
    """
    Records from the default microphone between ``start()`` and ``stop()``.

    Args:
        sample_rate: Target sample rate (Hz).
        channels: Number of channels to record.
        device: Optional sounddevice input device index or name.

    Usage:
        capture = SoundDeviceCapture(sample_rate=16000)
        await capture.start()
        ...
        audio = await capture.stop()
    """

    def __init__(
        self,
        *,
        sample_rate: int = 16000,
        channels: int = 1,
        device: Optional[Union[int, str]] = None,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.device = device
        self._stream: Any = None
        self._chunks: List[Any] = []
        self._acquired = False

    @property
    def is_recording(self) -> bool:
        return self._stream is not None

    async def start(self) -> None:
        sd = _lazy_import_sounddevice()

        if self._stream is not None:
            logger.warning("Recording already in progress; discarding the previous session")
            self._close_stream()

        if not self._acquired:
            self._acquire()

        self._chunks = []
        try:
            stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="float32",
                device=self.device,
                callback=self._callback,
            )
            stream.start()
        except sd.PortAudioError as exc:
            raise _classify_portaudio_error(exc) from exc

        self._stream = stream
        logger.info("Recording started (%d Hz, %d channel(s))", self.sample_rate, self.channels)
        await asyncio.sleep(0)

    async def stop(self) -> Optional[CapturedAudio]:
        if self._stream is None:
            logger.debug("stop() called without an active recording")
            return None

        self._close_stream()
        await asyncio.sleep(0)
        audio = self._drain()
        logger.info("Recording stopped: %.2fs of audio", audio.duration)
        return audio

    def release(self) -> None:
        if self._stream is not None:
            logger.info("Focus lost; discarding the active recording")
            self._close_stream()
            self._chunks = []
        self._acquired = False

    def reacquire(self) -> None:
        if self._acquired:
            return
        try:
            self._acquire()
        except VoiceTranslatorError as exc:
            logger.warning("Microphone not available after focus change: %s", exc)

    def _acquire(self) -> None:
        sd = _lazy_import_sounddevice()
        try:
            info = sd.query_devices(self.device, kind="input")
        except (sd.PortAudioError, ValueError) as exc:
            raise DeviceUnavailable(f"No audio input device available: {exc}") from exc

        max_channels = info.get("max_input_channels", 0) if isinstance(info, dict) else 0
        if max_channels < self.channels:
            raise DeviceUnavailable(
                f"Input device {info.get('name', self.device)!r} has {max_channels} input channel(s)"
            )

        self._acquired = True
        logger.debug("Using input device %r", info.get("name"))

    def _callback(self, indata, frames, time_info, status) -> None:
        if status:
            logger.debug("Input stream status: %s", status)
        self._chunks.append(indata.copy())

    def _close_stream(self) -> None:
        stream, self._stream = self._stream, None
        try:
            stream.stop()
        finally:
            stream.close()

    def _drain(self) -> CapturedAudio:
        import numpy as np

        chunks, self._chunks = self._chunks, []
        if not chunks:
            return CapturedAudio(data=b"", sample_rate=self.sample_rate, channels=self.channels)

        recording = np.concatenate(chunks, axis=0)
        # float32 [-1.0, 1.0] to 16-bit PCM
        pcm = np.clip(recording, -1.0, 1.0)
        data = (pcm * 32767).astype("<i2").tobytes()
        return CapturedAudio(data=data, sample_rate=self.sample_rate, channels=self.channels)


def _classify_portaudio_error(exc: Exception) -> VoiceTranslatorError:
    message = str(exc)
    if any(marker in message.lower() for marker in _PERMISSION_MARKERS):
        return PermissionDenied(f"Microphone access was refused: {message}")
    return DeviceUnavailable(f"Could not open the microphone: {message}")


def _lazy_import_sounddevice():
    try:
        import sounddevice as sd  # type: ignore
    except ImportError as exc:  # pragma: no cover - runtime dependency
        raise RuntimeError("sounddevice is required for microphone recording. Install via pip.") from exc
    except OSError as exc:  # pragma: no cover - PortAudio library missing
        raise DeviceUnavailable(f"PortAudio is not available: {exc}") from exc
    return sd
