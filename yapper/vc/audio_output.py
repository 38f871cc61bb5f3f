"""
Wraps a guild's discord.VoiceClient as the single audio output that chunk players play through.
Only one listener (chunk player) may be attached to an output at a time.
"""

# built-in
import io
from typing import Callable, Optional

# pycord
import discord

# my modules
from ..errors import FFmpegNotFoundError
from ..utils.logging_utils import timestamp_print as tsprint

class AudioOutput():
    "A guild's voice connection, seen as something that plays byte buffers"

    def __init__(self, guild_id: int, vc: discord.VoiceClient, ffmpeg_path: str = "ffmpeg"):
        self.guild_id = guild_id
        self.vc = vc
        self.ffmpeg_path = ffmpeg_path
        self.listener = None
        self.closed = False

    def is_connected(self) -> bool:
        return not self.closed and self.vc is not None and self.vc.is_connected()

    def attach(self, listener):
        """
        Makes the listener the only one receiving "chunk finished" signals, abandoning the previous one

        :param listener: the chunk player taking over this output
        """
        previous = self.listener
        self.listener = listener

        if previous is not None and previous is not listener:
            tsprint(f"Detaching stale player from output in guild {self.guild_id}")
            previous.abandon()

    def detach(self, listener):
        if self.listener is listener:
            self.listener = None

    def play(self, audio_buffer: bytes, after: Callable[[Optional[Exception]], None]):
        """
        Starts playing an encoded audio buffer. `after` is called from the audio thread when it ends.

        :param audio_buffer: encoded audio (mp3 from the provider)
        :type audio_buffer: bytes
        :param after: called with the playback error (or None) once done
        """
        try:
            source = discord.FFmpegOpusAudio(
                io.BytesIO(audio_buffer),
                executable=self.ffmpeg_path,
                pipe=True
            )
        except discord.ClientException as e:
            raise FFmpegNotFoundError(self.ffmpeg_path) from e

        self.vc.play(source, after=after)

    def close(self):
        """
        Marks the output dead (voice connection ended) and abandons whatever is playing on it
        """
        self.closed = True
        listener = self.listener
        self.listener = None

        if listener is not None:
            listener.abandon()
