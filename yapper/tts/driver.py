"""
the module that handles tts interactions (right now just Google Translate TTS)
"""

# built-in modules
import asyncio
from typing import Optional

# PyPI modules
import aiohttp

# my modules
from ..errors import SynthesisError
from ..utils.logging_utils import timestamp_print as tsprint
from .models import AudioChunk, SynthesisFailure
from .returncodes import SynthesisReturnCode as SRC

DEFAULT_HOST = "https://translate.google.com"
DEFAULT_TIMEOUT = 10.0

# Google rejects anything longer than this in one request
GOOGLE_MAX_LEN = 200

def build_google_tts_params(text: str, language_code: str, slow: bool = False) -> dict:
    """
    Builds the query string for a Google Translate TTS request

    :param text: the text to speak (max 200 chars)
    :type text: str
    :param language_code: the language to speak it in, e.g. "en"
    :type language_code: str
    :param slow: whether to use the slow speaking speed
    :type slow: bool
    :return: the query parameters
    :rtype: dict
    """
    return {
        "ie": "UTF-8",
        "q": text,
        "tl": language_code,
        "total": 1,
        "idx": 0,
        "textlen": len(text),
        "client": "tw-ob",
        "prev": "input",
        "ttsspeed": 0.24 if slow else 1,
    }

class TTSProvider():
    """
    Anything that can turn (text, language) into encoded audio bytes.
    Subclasses raise SynthesisError (or let aiohttp/asyncio errors through) on failure.
    """

    async def fetch_audio(self, text: str, language_code: str) -> bytes:
        raise NotImplementedError

    async def close(self):
        pass

class GoogleTranslateProvider(TTSProvider):
    """
    Fetches MP3 audio from the Google Translate TTS endpoint
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        slow: bool = False,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None
    ):
        self.url = f"{host.rstrip('/')}/translate_tts"
        self.slow = slow
        self.timeout = timeout
        self._session = session

    def _get_session(self) -> aiohttp.ClientSession:
        # created lazily so it binds to the running event loop
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"user-agent": "Mozilla/5.0"}
            )
        return self._session

    async def fetch_audio(self, text: str, language_code: str) -> bytes:
        if len(text) > GOOGLE_MAX_LEN:
            raise SynthesisError(f"Text is {len(text)} chars, max is {GOOGLE_MAX_LEN}.")

        session = self._get_session()
        params = build_google_tts_params(text, language_code, self.slow)

        async with session.get(self.url, params=params) as response:
            if response.status == 404:
                # Google answers unknown language codes with a 404
                raise SynthesisError(
                    f"Language \"{language_code}\" is not supported.",
                    SRC.LANGUAGE_UNSUPPORTED
                )
            if response.status != 200:
                raise SynthesisError(f"Google TTS answered with HTTP {response.status}.")

            audio = await response.read()

        if not audio:
            raise SynthesisError("Google TTS returned no audio.", SRC.EMPTY_AUDIO)

        return audio

    async def close(self):
        if self._session is not None and not self._session.closed:
            await self._session.close()

class SpeechSynthesizer():
    """
    Turns one text chunk into an in-memory AudioChunk. Never raises on provider trouble,
    it hands back a SynthesisFailure instead so the caller can skip the chunk.
    """

    def __init__(self, provider: TTSProvider, timeout: float = DEFAULT_TIMEOUT):
        self.provider = provider
        self.timeout = timeout

    async def synthesize(self, chunk_text: str, language_code: str) -> AudioChunk | SynthesisFailure:
        """
        Fetches audio for a chunk of text

        :param chunk_text: the text to speak
        :type chunk_text: str
        :param language_code: the language to speak it in
        :type language_code: str
        :return: the audio, or why there isn't any
        :rtype: AudioChunk | SynthesisFailure
        """
        try:
            audio = await asyncio.wait_for(
                self.provider.fetch_audio(chunk_text, language_code),
                timeout=self.timeout
            )
        except asyncio.TimeoutError:
            failure = SynthesisFailure(chunk_text, SRC.TIMEOUT, f"timed out after {self.timeout}s")
        except aiohttp.ClientError as e:
            failure = SynthesisFailure(chunk_text, SRC.NETWORK_ERROR, str(e))
        except SynthesisError as e:
            failure = SynthesisFailure(chunk_text, e.code, str(e))
        except Exception as e:
            failure = SynthesisFailure(chunk_text, SRC.PROVIDER_ERROR, repr(e))
        else:
            if audio:
                return AudioChunk(chunk_text, audio)
            failure = SynthesisFailure(chunk_text, SRC.EMPTY_AUDIO, "provider returned no audio")

        tsprint(f"Could not synthesize \"{chunk_text[:40]}\" ({language_code}): {failure.code.name} {failure.message}")
        return failure

    async def close(self):
        await self.provider.close()
