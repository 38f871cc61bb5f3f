"""
Plain data carried through the TTS pipeline: utterances in, audio chunks out
"""

# built-in
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

# my modules
from .returncodes import SynthesisReturnCode as SRC

# speaker id/name used for bot-generated announcements
SYSTEM_SPEAKER = "System"

class NameFormat(Enum):
    PLAIN = "plain" # "<name>, <text>"
    SAID = "said" # "<name> said, <text>"

@dataclass
class Utterance():
    """
    One request to speak something in a guild
    """
    guild_id: int
    text: str
    speaker_name: Optional[str] = None
    speaker_id: Optional[int | str] = None
    announce_speaker: bool = False
    name_format: NameFormat = NameFormat.SAID
    enqueued_at: datetime = field(default_factory=datetime.now)

    @property
    def is_system(self) -> bool:
        return self.speaker_id is None or self.speaker_id == SYSTEM_SPEAKER

@dataclass
class AudioChunk():
    """
    One synthesized, playable piece of an utterance, held in memory only
    """
    source_text: str
    audio_buffer: Optional[bytes]

    @property
    def playable(self) -> bool:
        return bool(self.audio_buffer)

    def release(self):
        self.audio_buffer = None

@dataclass
class SynthesisFailure():
    """
    Returned instead of an AudioChunk when a chunk couldn't be synthesized
    """
    source_text: str
    code: SRC
    message: str = ""
