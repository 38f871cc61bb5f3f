"""
Plays a list of synthesized chunks, strictly in order, on one audio output.

The player is a small state machine:

    IDLE -> PLAYING_CHUNK(i) -> AWAITING_NEXT -> PLAYING_CHUNK(i+1) ... -> COMPLETE

Completion is a one-shot asyncio future owned by the player, so whoever started playback
just awaits `wait()`. The output's "finished" callback comes from pycord's audio thread,
so it's bounced back onto the event loop before touching any state.
"""

# built-in
import asyncio
from enum import Enum
from typing import Optional

# my modules
from ..utils.logging_utils import timestamp_print as tsprint
from .models import AudioChunk

class PlayerState(Enum):
    IDLE = 0
    PLAYING_CHUNK = 1
    AWAITING_NEXT = 2
    COMPLETE = 3

class ChunkPlayer():
    """
    Plays AudioChunks in order on an AudioOutput. Instantiate, call `start`, then await `wait`.
    """

    def __init__(self, chunks: list[Optional[AudioChunk]], output, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.chunks = list(chunks)
        self.output = output
        self.loop = loop or asyncio.get_running_loop()

        self.state = PlayerState.IDLE
        self.index: Optional[int] = None # chunk currently playing
        self.played: list[int] = [] # indices handed to the output, for diagnostics
        self._done = self.loop.create_future()

    def start(self):
        """
        Attaches to the output and starts the first chunk
        """
        if self.state is not PlayerState.IDLE:
            raise RuntimeError(f"Player already started (state {self.state.name})")

        self.output.attach(self)
        self._advance(0)

    async def wait(self):
        """
        Waits until every chunk finished playing (or the player was abandoned)
        """
        await asyncio.shield(self._done)

    def abandon(self):
        """
        Stops advancing and completes right away. Safe to call any number of times.
        """
        if self.state is PlayerState.COMPLETE:
            return

        tsprint(f"Abandoning playback at chunk {self.index} of {len(self.chunks)}")
        self._complete()

    def _advance(self, index: int):
        # plays the first playable chunk at or after index, completes if there is none
        while index < len(self.chunks):
            if not self.output.is_connected():
                tsprint("Output disconnected, stopping playback")
                break

            chunk = self.chunks[index]
            if chunk is None or not chunk.playable:
                tsprint(f"Missing audio chunk at index {index}, skipping")
                index += 1
                continue

            self.index = index
            self.state = PlayerState.PLAYING_CHUNK

            try:
                self.output.play(chunk.audio_buffer, after=self._make_after_callback(index))
            except Exception as e:
                tsprint(f"Could not play audio chunk {index}: {e}")
                self._release(index)
                index += 1
                continue

            self.played.append(index)
            return

        self._complete()

    def _make_after_callback(self, index: int):
        def after_play(error):  # called by pycord from its audio thread
            if not self.loop.is_closed():
                self.loop.call_soon_threadsafe(self._on_chunk_finished, index, error)
        return after_play

    def _on_chunk_finished(self, index: int, error: Optional[Exception]):
        # ignore signals from chunks that aren't the one playing (late or duplicate callbacks)
        if self.state is not PlayerState.PLAYING_CHUNK or index != self.index:
            return

        if error:
            tsprint(f"Error while playing audio chunk {index}: {error}")

        self._release(index)
        self.state = PlayerState.AWAITING_NEXT
        self._advance(index + 1)

    def _release(self, index: int):
        chunk = self.chunks[index]
        if chunk is not None:
            chunk.release()
        self.chunks[index] = None

    def _complete(self):
        self.state = PlayerState.COMPLETE
        self.output.detach(self)
        tsprint(f"Playback finished, played chunk(s) {self.played} of {len(self.chunks)}")

        for i in range(len(self.chunks)):
            self._release(i)

        if not self._done.done():
            self._done.set_result(None)
