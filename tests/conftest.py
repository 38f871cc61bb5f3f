"""
Shared fakes: a voice client that never touches Discord, an audio output that "plays" instantly,
a synthesizer that returns dummy audio, and in-memory settings.
"""

import asyncio

import pytest

from yapper.db.driver import ServerSettings
from yapper.tts.models import AudioChunk, SynthesisFailure
from yapper.tts.returncodes import SynthesisReturnCode as SRC
from yapper.vc.audio_output import AudioOutput


class FakeVoiceClient:
    def __init__(self, channel=None):
        self.channel = channel
        self.connected = True
        self.disconnect_calls = 0

    def is_connected(self):
        return self.connected

    def is_playing(self):
        return False

    def stop(self):
        pass

    async def disconnect(self, force=False):
        self.disconnect_calls += 1
        self.connected = False


class FakeOutput(AudioOutput):
    """
    AudioOutput whose play() records the buffer instead of spawning ffmpeg.
    With auto_finish the "finished" callback fires on the next loop iteration,
    otherwise callbacks pile up in `pending` for the test to fire.
    """

    def __init__(self, guild_id=1, auto_finish=True, fail_on=()):
        super().__init__(guild_id, FakeVoiceClient())
        self.auto_finish = auto_finish
        self.fail_on = set(fail_on)
        self.played = []
        self.pending = []

    def play(self, audio_buffer, after):
        if audio_buffer in self.fail_on:
            raise RuntimeError("ffmpeg exploded")

        self.played.append(audio_buffer)
        if self.auto_finish:
            asyncio.get_running_loop().call_soon(after, None)
        else:
            self.pending.append(after)


class FakeSynthesizer:
    """
    Returns the chunk text encoded as the "audio". Chunks listed in `fail` come back as
    SynthesisFailure, chunks listed in `explode` raise.
    """

    def __init__(self, fail=(), explode=()):
        self.fail = set(fail)
        self.explode = set(explode)
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def synthesize(self, chunk_text, language_code):
        self.calls.append((chunk_text, language_code))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if chunk_text in self.explode:
                raise RuntimeError("synthesizer blew up")
            if chunk_text in self.fail:
                return SynthesisFailure(chunk_text, SRC.NETWORK_ERROR, "nope")
            return AudioChunk(chunk_text, chunk_text.encode())
        finally:
            self.in_flight -= 1

    async def close(self):
        pass


class FakeSettings:
    def __init__(self, language="en", disable_usernames=False, user_languages=None):
        self.server = ServerSettings(language, disable_usernames, False)
        self.user_languages = user_languages or {}

    def get_server_settings(self, guild_id):
        return self.server

    def get_effective_language(self, user_id, guild_id):
        return self.user_languages.get(user_id, self.server.language)


async def run_until(condition, attempts=200):
    """
    Spins the event loop until condition() is true
    """
    for _ in range(attempts):
        if condition():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


@pytest.fixture
def output():
    return FakeOutput()


@pytest.fixture
def synthesizer():
    return FakeSynthesizer()


@pytest.fixture
def settings():
    return FakeSettings()
