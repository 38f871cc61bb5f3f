"""
Lightweight voice-state manager to keep track of guild VC's, their audio outputs,
and the last text channel the bot was used from.
No major Discord API calls.
"""

# built-in
from typing import Dict, Optional

# pycord
import discord

# my modules
from ..utils.logging_utils import timestamp_print as tsprint
from .audio_output import AudioOutput

class VCState():
    "Manages the bot's voice channel state"

    def __init__(self, ffmpeg_path: str = "ffmpeg"):
        self.ffmpeg_path = ffmpeg_path

        # maps guild_id -> VoiceClient | None
        self.vc_dict: Dict[int, Optional[discord.VoiceClient]] = dict()

        # maps guild_id -> AudioOutput wrapping that guild's VoiceClient
        self.output_dict: Dict[int, AudioOutput] = dict()

        # maps guild_id -> last channel id that triggered the bot
        self.last_triggered_channel_dict: Dict[int, Optional[int]] = dict()

        # guilds where the bot is leaving on purpose (so it doesn't try to reconnect)
        self.leaving: set[int] = set()

    def init_guild(self, guild_id: int):
        """
        Verifies/initializes guild in vc dict and "last triggered channel" dict

        ## Args:
        - `guild_id` (int): the guild ID to verify/initialize
        """
        if guild_id not in self.vc_dict:
            tsprint(f"Initializing guild {guild_id} in VC dict...")
            self.vc_dict[guild_id] = None

        if guild_id not in self.last_triggered_channel_dict:
            self.last_triggered_channel_dict[guild_id] = None

    def set_vc_state(self, guild_id: int, vc: Optional[discord.VoiceClient]):
        """
        Sets the voice channel state in the specified guild, replacing (and closing) its old output

        ## Args:
        - `guild_id` (int): the guild ID to set the voice channel state in
        - `vc` (Optional[discord.VoiceClient]): the voice channel to set to
        """
        old_output = self.output_dict.pop(guild_id, None)
        if old_output is not None:
            old_output.close()

        self.vc_dict[guild_id] = vc
        if vc is not None:
            self.output_dict[guild_id] = AudioOutput(guild_id, vc, self.ffmpeg_path)

    def get_vc_state(self, guild_id: int) -> Optional[discord.VoiceClient]:
        """
        Gets the voice channel state in the specified guild

        ## Args:
        - `guild_id` (int): the guild ID to get the voice channel state from

        ## Returns:
        - `vc` (Optional[discord.VoiceClient]): the voice channel obtained
        """
        return self.vc_dict.get(guild_id)

    def get_output(self, guild_id: int) -> Optional[AudioOutput]:
        """
        Gets a playable audio output for the guild, None if the bot isn't connected there
        """
        output = self.output_dict.get(guild_id)
        if output is None or not output.is_connected():
            return None
        return output

    def set_last_triggered(self, guild_id: int, text_channel_id: Optional[int]):
        self.last_triggered_channel_dict[guild_id] = text_channel_id

    def get_last_triggered(self, guild_id: int) -> Optional[int]:
        return self.last_triggered_channel_dict.get(guild_id)

    def is_connected(self, guild_id: int) -> bool:
        """
        Checks whether the bot is connected in a specific guild

        ## Args:
        - `guild_id` (int): the guild ID to check voice state in

        ## Returns:
        - True if in a voice channel, False otherwise
        """
        vc = self.get_vc_state(guild_id)
        return bool(vc and vc.is_connected())

    def is_connected_in_channel(self, guild_id: int, channel: discord.VoiceChannel) -> bool:
        """
        Checks whether the bot is in a specific voice channel

        ## Args:
        - `guild_id` (int): the guild ID to check voice state in
        - `channel` (discord.VoiceChannel): the voice channel to check connection status to

        ## Returns:
        - True if in the specified voice channel, False otherwise
        """
        vc = self.get_vc_state(guild_id)
        return bool(vc and vc.is_connected() and vc.channel == channel)
