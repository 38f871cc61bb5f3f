"""
Manages the per-guild TTS queues and the drain loop that speaks them.
Avoids slash-commands, focuses on audio.
"""

# built-in
from collections import deque
from typing import Callable, Deque, Dict, Optional
import asyncio

# my modules
from ..utils.logging_utils import timestamp_print as tsprint
from .driver import SpeechSynthesizer
from .models import AudioChunk, NameFormat, SYSTEM_SPEAKER, Utterance
from .player import ChunkPlayer
from .segmenter import DEFAULT_MAX_LENGTH, segment

INTER_MESSAGE_DELAY = 0.3
RETRY_DELAY = 1.0

class GuildQueue():
    """
    Pending utterances for one guild plus the flag saying a drain cycle owns its output
    """

    def __init__(self, guild_id: int):
        self.guild_id = guild_id
        self.queue: Deque[Utterance] = deque()
        self.draining = False
        self.task: Optional[asyncio.Task] = None

    def push(self, utterance: Utterance, priority: bool = False):
        if priority:
            self.queue.appendleft(utterance)
        else:
            self.queue.append(utterance)

    def pop(self) -> Utterance:
        return self.queue.popleft()

    def __len__(self):
        return len(self.queue)

class TTSManager():
    """
    Holds every guild's TTS queue, allows you to queue into it
    """

    def __init__(self):
        # maps guild_id -> that guild's queue state
        self.tts_queue_dict: Dict[int, GuildQueue] = dict()

    def init_guild(self, guild_id: int) -> GuildQueue:
        """
        Verifies/initializes guild in the "tts queue" dict

        :param guild_id: the guild ID to verify/initialize
        :type guild_id: int
        :return: the guild's queue state
        :rtype: GuildQueue
        """
        if guild_id not in self.tts_queue_dict:
            self.tts_queue_dict[guild_id] = GuildQueue(guild_id)
        return self.tts_queue_dict[guild_id]

    def get(self, guild_id: int) -> Optional[GuildQueue]:
        return self.tts_queue_dict.get(guild_id)

    def enqueue(self, utterance: Utterance, priority: bool = False) -> GuildQueue:
        guild_queue = self.init_guild(utterance.guild_id)
        guild_queue.push(utterance, priority)
        return guild_queue

    def is_draining(self, guild_id: int) -> bool:
        guild_queue = self.get(guild_id)
        return guild_queue is not None and guild_queue.draining

    def teardown_guild(self, guild_id: int) -> Optional[GuildQueue]:
        """
        Drops a guild's queue state: clears pending utterances and cancels its drain task

        :param guild_id: the guild to tear down
        :type guild_id: int
        :return: the removed state, None if there wasn't any
        :rtype: Optional[GuildQueue]
        """
        guild_queue = self.tts_queue_dict.pop(guild_id, None)
        if guild_queue is None:
            return None

        dropped = len(guild_queue)
        guild_queue.queue.clear()

        if guild_queue.task is not None and not guild_queue.task.done():
            guild_queue.task.cancel()
        guild_queue.draining = False

        tsprint(f"Tore down TTS queue in guild {guild_id} ({dropped} utterance(s) dropped)")
        return guild_queue

class TTSScheduler():
    """
    Drains guild queues one utterance at a time: resolve language and text, segment, synthesize,
    play, wait, repeat. Each guild gets its own drain task while it has anything queued.
    """

    def __init__(
        self,
        tts_manager: TTSManager,
        synthesizer: SpeechSynthesizer,
        get_output: Callable,
        settings,
        max_chunk_length: int = DEFAULT_MAX_LENGTH,
        inter_message_delay: float = INTER_MESSAGE_DELAY,
        retry_delay: float = RETRY_DELAY,
        on_complete: Optional[Callable[[int, Utterance], None]] = None
    ):
        """
        :param tts_manager: the queue registry
        :param synthesizer: turns chunks into audio
        :param get_output: guild_id -> AudioOutput | None
        :param settings: anything with get_server_settings(guild_id) and
            get_effective_language(user_id, guild_id), normally the db driver module
        :param on_complete: called once after every drain cycle, however it ended
        """
        self.tts_manager = tts_manager
        self.synthesizer = synthesizer
        self.get_output = get_output
        self.settings = settings
        self.max_chunk_length = max_chunk_length
        self.inter_message_delay = inter_message_delay
        self.retry_delay = retry_delay
        self.on_complete = on_complete

    def enqueue_utterance(
        self,
        guild_id: int,
        text: str,
        speaker_name: Optional[str] = None,
        speaker_id: Optional[int | str] = None,
        announce_speaker: bool = False,
        priority: bool = False,
        name_format: NameFormat = NameFormat.SAID
    ) -> Utterance:
        """
        Queues something to say in a guild and makes sure the guild's queue is draining.
        Priority utterances (join/leave announcements) go to the front of the queue.

        :return: the queued utterance
        :rtype: Utterance
        """
        utterance = Utterance(
            guild_id=guild_id,
            text=text,
            speaker_name=speaker_name,
            speaker_id=speaker_id,
            announce_speaker=announce_speaker,
            name_format=name_format
        )
        guild_queue = self.tts_manager.enqueue(utterance, priority)
        tsprint(f"Queued {'priority ' if priority else ''}TTS in guild {guild_id} ({len(guild_queue)} pending)")

        self.try_drain(guild_id)
        return utterance

    def try_drain(self, guild_id: int) -> bool:
        """
        Starts draining the guild's queue unless it's empty or already draining

        :return: whether a new drain task was started
        :rtype: bool
        """
        guild_queue = self.tts_manager.get(guild_id)
        if guild_queue is None or guild_queue.draining or not guild_queue.queue:
            return False

        # test-and-set with no await in between, the event loop can't interleave here
        guild_queue.draining = True
        guild_queue.task = asyncio.get_running_loop().create_task(self._drain(guild_queue))
        return True

    async def wait_idle(self, guild_id: int):
        """
        Waits for the guild's current drain task (if any) to finish
        """
        guild_queue = self.tts_manager.get(guild_id)
        if guild_queue is None or guild_queue.task is None:
            return

        try:
            await asyncio.shield(guild_queue.task)
        except asyncio.CancelledError:
            if not guild_queue.task.cancelled():
                raise

    def teardown_guild(self, guild_id: int):
        self.tts_manager.teardown_guild(guild_id)

    async def _drain(self, guild_queue: GuildQueue):
        guild_id = guild_queue.guild_id

        try:
            while guild_queue.queue:
                utterance = guild_queue.pop()
                delay = self.inter_message_delay

                try:
                    await self.run_cycle(utterance)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    tsprint(f"Error processing TTS queue in guild {guild_id}: {e!r}")
                    delay = self.retry_delay
                finally:
                    self._signal_complete(utterance)

                await asyncio.sleep(delay)
        except asyncio.CancelledError:
            tsprint(f"TTS drain cancelled in guild {guild_id}")
        finally:
            guild_queue.draining = False

    def _signal_complete(self, utterance: Utterance):
        if self.on_complete is None:
            return

        try:
            self.on_complete(utterance.guild_id, utterance)
        except Exception as e:
            tsprint(f"Completion hook failed in guild {utterance.guild_id}: {e!r}")

    async def run_cycle(self, utterance: Utterance):
        """
        Speaks one utterance start to finish: language, text, synthesis, playback
        """
        guild_id = utterance.guild_id

        if self.get_output(guild_id) is None:
            tsprint(f"Not connected in guild {guild_id}, dropping utterance")
            return

        server_settings = self.settings.get_server_settings(guild_id)
        language = self.resolve_language(utterance, server_settings)
        text = self.resolve_text(utterance, server_settings)

        chunks = await self.synthesize_all(text, language)
        if not chunks:
            tsprint(f"No audio produced for utterance in guild {guild_id}, skipping playback")
            return

        # the connection can go away while we were synthesizing
        output = self.get_output(guild_id)
        if output is None:
            tsprint(f"Connection lost in guild {guild_id} before playback, dropping utterance")
            return

        player = ChunkPlayer(chunks, output)
        try:
            tsprint(f"Playing {len(chunks)} chunk(s) in guild {guild_id}")
            player.start()
            await player.wait()
        finally:
            player.abandon()

    def resolve_language(self, utterance: Utterance, server_settings) -> str:
        if not utterance.is_system:
            return self.settings.get_effective_language(utterance.speaker_id, utterance.guild_id)
        return server_settings.language

    def resolve_text(self, utterance: Utterance, server_settings) -> str:
        name = utterance.speaker_name
        if (
            not utterance.announce_speaker
            or server_settings.disable_usernames
            or not name
            or name == SYSTEM_SPEAKER
        ):
            return utterance.text

        match utterance.name_format:
            case NameFormat.PLAIN:
                return f"{name}, {utterance.text}"
            case _:
                return f"{name} said, {utterance.text}"

    async def synthesize_all(self, text: str, language: str) -> list[AudioChunk]:
        """
        Segments the text and synthesizes every chunk in order, skipping the ones that fail.
        Blank text produces no chunks at all.
        """
        if not text or not text.strip():
            return []

        chunks = []
        for chunk_text in segment(text, self.max_chunk_length):
            result = await self.synthesizer.synthesize(chunk_text, language)
            if isinstance(result, AudioChunk):
                chunks.append(result)

        return chunks
