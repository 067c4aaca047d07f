"""Microphone capture lifecycle: open, append chunks, finalize to one artifact, close."""

from __future__ import annotations

import asyncio
import io
from typing import Callable, List, Optional

import numpy as np
import soundfile as sf

from practice_coach.errors import DeviceUnavailable, InvalidTransition
from practice_coach.logging import get_logger
from practice_coach.models import AudioArtifact, RecordingState

logger = get_logger("capture")

DEFAULT_SAMPLE_RATE = 16000
DEFAULT_BLOCKSIZE = 1600  # 100ms @ 16k


def _to_mono_int16(indata: np.ndarray) -> bytes:
    """
    Convert sounddevice callback 'indata' into mono PCM16 little-endian bytes.
    Uses the first channel only.
    """
    x = np.asarray(indata)

    if x.ndim == 2 and x.shape[1] >= 1:
        mono = x[:, 0]
    else:
        mono = x.reshape(-1)

    if mono.dtype == np.int16:
        return mono.astype("<i2").tobytes(order="C")

    f = np.clip(mono.astype(np.float32), -1.0, 1.0)
    return (f * 32767.0).astype("<i2").tobytes(order="C")


class SoundDeviceInput:
    """Default input device: a sounddevice InputStream feeding PCM16 chunks to a callback.

    The callback runs on the PortAudio thread.
    """

    def __init__(
        self,
        on_chunk: Callable[[bytes], None],
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        device: Optional[int] = None,
        blocksize: int = DEFAULT_BLOCKSIZE,
    ):
        self.on_chunk = on_chunk
        self.sample_rate = sample_rate
        self.device = device
        self.blocksize = blocksize
        self._stream = None

    def start(self) -> None:
        try:
            import sounddevice as sd
        except OSError as e:
            # PortAudio library missing
            raise DeviceUnavailable(f"Audio input is not available: {e}") from e

        def audio_cb(indata, frames, time_info, status):
            if status:
                logger.debug("[Recording] sd_status: %s", status)
            self.on_chunk(_to_mono_int16(indata))

        try:
            stream = sd.InputStream(
                device=self.device,
                samplerate=int(self.sample_rate),
                channels=1,
                dtype="float32",
                blocksize=int(self.blocksize),
                callback=audio_cb,
            )
            stream.start()
        except (sd.PortAudioError, ValueError) as e:
            raise DeviceUnavailable(f"Microphone access required for voice practice: {e}") from e
        self._stream = stream

    def close(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
        finally:
            stream.close()


DeviceFactory = Callable[[Callable[[bytes], None]], SoundDeviceInput]


def encode_wav(chunks: List[bytes], sample_rate: int) -> bytes:
    raw = b"".join(chunks)
    raw = raw[: len(raw) - len(raw) % 2]
    samples = np.frombuffer(raw, dtype="<i2")
    buf = io.BytesIO()
    sf.write(buf, samples, sample_rate, format="WAV", subtype="PCM_16")
    return buf.getvalue()


class CaptureController:
    """Owns the microphone for at most one recording at a time.

    Idle -> start() -> Recording -> stop() -> Transcribing -> finish() -> Idle.
    close() releases the device and returns to Idle from any state.
    """

    def __init__(self, device_factory: Optional[DeviceFactory] = None, sample_rate: int = DEFAULT_SAMPLE_RATE):
        self.sample_rate = sample_rate
        self._device_factory = device_factory or (lambda on_chunk: SoundDeviceInput(on_chunk, sample_rate=sample_rate))
        self._device = None
        self._chunks: List[bytes] = []
        self._busy = False
        self.state = RecordingState.IDLE

    @property
    def buffered_bytes(self) -> int:
        return sum(len(c) for c in self._chunks)

    async def start(self) -> None:
        if self.state != RecordingState.IDLE or self._busy:
            raise InvalidTransition(f"Cannot start capture while {self.state.value}")

        loop = asyncio.get_running_loop()

        def deliver(chunk: bytes) -> None:
            loop.call_soon_threadsafe(self.append, chunk)

        device = self._device_factory(deliver)
        self._busy = True
        try:
            # opening the device may block on the permission prompt
            await asyncio.to_thread(device.start)
        except BaseException:
            device.close()
            raise
        finally:
            self._busy = False

        self._device = device
        self._chunks = []
        self.state = RecordingState.RECORDING
        logger.info("[Recording] Started (sample_rate=%d)", self.sample_rate)

    def append(self, chunk: bytes) -> None:
        if self.state != RecordingState.RECORDING or not chunk:
            return
        self._chunks.append(bytes(chunk))

    async def stop(self) -> AudioArtifact:
        if self.state != RecordingState.RECORDING or self._busy:
            raise InvalidTransition(f"Cannot stop capture while {self.state.value}")

        self._busy = True
        try:
            self._release()
            # let chunks already queued from the audio thread land
            await asyncio.sleep(0)
            artifact = AudioArtifact(
                data=encode_wav(self._chunks, self.sample_rate),
                container="wav",
                sample_rate=self.sample_rate,
            )
        except BaseException:
            self.state = RecordingState.IDLE
            raise
        finally:
            self._busy = False
            self._chunks = []

        self.state = RecordingState.TRANSCRIBING
        logger.info("[Recording] Stopped. Artifact size: %d bytes", len(artifact.data))
        return artifact

    def finish(self) -> None:
        """Transcription resolved (success or failure); ready for another recording."""
        if self.state == RecordingState.TRANSCRIBING:
            self.state = RecordingState.IDLE

    def close(self) -> None:
        self._release()
        self._chunks = []
        self.state = RecordingState.IDLE

    def _release(self) -> None:
        device, self._device = self._device, None
        if device is not None:
            device.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
