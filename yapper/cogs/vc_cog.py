"""
Handles Discord VC behavior, including joining and leaving VC, reading messages and join/leave
announcements into the TTS queue (through TTSScheduler), and reconnecting when the bot gets dropped.
This is the glue that holds together all the components of text-to-speech and voice chat.
"""

# built-in
from typing import Dict, Optional
import asyncio

# Pycord
import discord
from discord.ext import commands

# my modules
from ..config import BotConfig
from ..db import driver as dbd
from ..lang.strings import get_text
from ..tts.driver import GoogleTranslateProvider, SpeechSynthesizer
from ..tts.models import NameFormat, SYSTEM_SPEAKER
from ..tts.tts_core import TTSManager, TTSScheduler
from ..utils.logging_utils import timestamp_print as tsprint
from ..utils.text_utils import clean_text, process_message_text
from ..vc.vc_state import VCState

# required for cogs API
def setup(bot: discord.Bot):
    bot.add_cog(VCCog(bot))

def has_humans(channel: Optional[discord.VoiceChannel]) -> bool:
    return channel is not None and any(not m.bot for m in channel.members)

class VCCog(commands.Cog):
    """
    Manages all voice-related commands and the TTS drain loop
    """

    def __init__(self, bot: discord.Bot, config: Optional[BotConfig] = None):
        self.bot = bot
        self.config = config or bot.config

        self.vc_state = VCState(self.config.ffmpeg_path)
        self.tts_manager = TTSManager()
        self.synthesizer = SpeechSynthesizer(
            GoogleTranslateProvider(self.config.tts_host, self.config.tts_slow, self.config.tts_timeout),
            self.config.tts_timeout
        )
        self.scheduler = TTSScheduler(
            self.tts_manager,
            self.synthesizer,
            self.vc_state.get_output,
            dbd,
            max_chunk_length=self.config.max_chunk_length,
            inter_message_delay=self.config.inter_message_delay,
            retry_delay=self.config.retry_delay
        )

        # maps guild_id -> running reconnect task
        self.reconnect_tasks: Dict[int, asyncio.Task] = dict()

    def cog_unload(self):
        for guild_id in list(self.reconnect_tasks):
            self.cancel_reconnect(guild_id)
        for guild_id in list(self.tts_manager.tts_queue_dict):
            self.scheduler.teardown_guild(guild_id)
        self.bot.loop.create_task(self.synthesizer.close())

    # HELPERS
    async def connect_to(self, channel: discord.VoiceChannel) -> discord.VoiceClient:
        """
        Connects to a voice channel and registers the connection
        """
        guild_id = channel.guild.id
        self.vc_state.init_guild(guild_id)

        vc = await channel.connect(reconnect=False)
        self.vc_state.set_vc_state(guild_id, vc)
        tsprint(f"Joined VC {channel.name} in {guild_id}")
        return vc

    def start_reconnect(self, guild: discord.Guild, channel_id: int):
        """
        Starts the reconnect loop for a guild, replacing any that is already running
        """
        guild_id = guild.id
        self.cancel_reconnect(guild_id)

        task = self.bot.loop.create_task(self.reconnect(guild, channel_id))
        self.reconnect_tasks[guild_id] = task

        def forget(finished: asyncio.Task):
            if self.reconnect_tasks.get(guild_id) is finished:
                del self.reconnect_tasks[guild_id]
        task.add_done_callback(forget)

    def cancel_reconnect(self, guild_id: int) -> bool:
        """
        Stops a pending reconnect loop in a guild.
        Returns True if one was still running.
        """
        task = self.reconnect_tasks.pop(guild_id, None)
        if task is None or task.done():
            return False

        task.cancel()
        tsprint(f"Cancelled reconnect in {guild_id}")
        return True

    async def try_leave_vc(self, guild_id: int, ctx: Optional[discord.ApplicationContext] = None):
        """
        Attempts to leave a VC in a guild, optionally sending a message if ctx is given.
        Also stops any reconnect that is waiting to happen.
        """
        tsprint("Bot attempting to leave VC...")
        lang = dbd.get_server_settings(guild_id).language
        stopped_reconnect = self.cancel_reconnect(guild_id)

        vc = self.vc_state.get_vc_state(guild_id)
        if not vc or not vc.is_connected():
            tsprint("Bot was not in a VC")
            if ctx:
                key = "leave.success" if stopped_reconnect else "leave.not_connected"
                await ctx.respond(get_text(key, lang), ephemeral=not stopped_reconnect)
            return

        if ctx:
            await ctx.respond(get_text("leave.success", lang))

        # don't treat our own leave as a disconnect
        self.vc_state.leaving.add(guild_id)

        # reset triggered channel and drop anything still queued
        self.vc_state.set_last_triggered(guild_id, None)
        self.scheduler.teardown_guild(guild_id)
        self.vc_state.set_vc_state(guild_id, None)

        try:
            await vc.disconnect()
        except (discord.DiscordException, asyncio.TimeoutError) as e:
            # no voice state event will clear it
            self.vc_state.leaving.discard(guild_id)
            tsprint(f"Could not disconnect cleanly in {guild_id}: {e!r}")
            return

        tsprint("Bot left VC successfully")

    async def notify(self, guild: discord.Guild, key: str, *params):
        """
        Sends a localized notice to the last text channel the bot was used from (or the system channel)
        """
        lang = dbd.get_server_settings(guild.id).language

        channel_id = self.vc_state.get_last_triggered(guild.id)
        channel = guild.get_channel(channel_id) if channel_id else None
        channel = channel or guild.system_channel
        if channel is None:
            return

        try:
            await channel.send(get_text(key, lang, *params))
        except discord.HTTPException as e:
            tsprint(f"Could not send notice to channel {channel.id} in {guild.id}: {e}")

    async def reconnect(self, guild: discord.Guild, channel_id: int):
        """
        Tries to get back into a voice channel after being dropped, backing off between attempts
        """
        delay = self.config.reconnect_delay

        channel = guild.get_channel(channel_id)
        if channel is not None and self.config.reconnect_attempts > 0:
            await self.notify(guild, "voice_events.reconnecting", channel.name)

        for attempt in range(1, self.config.reconnect_attempts + 1):
            await asyncio.sleep(delay)
            delay *= 2

            if self.vc_state.is_connected(guild.id):
                return # someone used /join in the meantime

            channel = guild.get_channel(channel_id)
            if channel is None:
                tsprint(f"Channel {channel_id} is gone, not reconnecting in {guild.id}")
                return

            if self.config.auto_leave_on_empty and not has_humans(channel):
                tsprint(f"Nobody left in {channel.name}, not reconnecting in {guild.id}")
                return

            tsprint(f"Reconnecting to {channel.name} in {guild.id} (attempt {attempt})...")
            try:
                await self.connect_to(channel)
                return
            except (discord.DiscordException, asyncio.TimeoutError) as e:
                tsprint(f"Reconnect attempt {attempt} failed in {guild.id}: {e!r}")

        tsprint(f"Giving up on reconnecting in {guild.id}")

    async def handle_bot_disconnect(self, guild: discord.Guild, channel: discord.VoiceChannel):
        """
        The bot left a VC without us asking it to: drop its queue and maybe reconnect
        """
        guild_id = guild.id

        if guild_id in self.vc_state.leaving:
            self.vc_state.leaving.discard(guild_id)
            return

        tsprint(f"Bot was removed from VC {channel.name} in {guild_id}.")

        old_vc = self.vc_state.get_vc_state(guild_id)
        self.scheduler.teardown_guild(guild_id)
        self.vc_state.set_vc_state(guild_id, None)

        if old_vc is not None:
            try:
                await old_vc.disconnect(force=True)
            except discord.DiscordException as e:
                tsprint(f"Could not clean up old voice client in {guild_id}: {e!r}")

        await self.notify(guild, "voice_events.kicked")

        if self.config.reconnect_on_disconnect:
            self.start_reconnect(guild, channel.id)

    # COMMANDS
    @discord.slash_command(name="join", description="Joins the voice chat you're currently in.", dm_permission=False)
    @discord.option(
        "vc",
        description="[Optional] The VC (#channel-name) to join",
        channel_types=[discord.ChannelType.voice],
        default=None
    )
    async def cmd_join(self, ctx: discord.ApplicationContext, vc: discord.VoiceChannel = None):
        """
        Forces the bot to join VC.
        """
        self.vc_state.init_guild(ctx.guild_id)
        self.vc_state.set_last_triggered(ctx.guild_id, ctx.channel_id)
        lang = dbd.get_server_settings(ctx.guild_id).language

        author_vc = ctx.author.voice
        voice_channel = vc or (author_vc.channel if author_vc else None) # shorthand for separate ifs

        # not in a vc
        if voice_channel is None:
            await ctx.respond(get_text("join.user_not_in_vc", lang), ephemeral=True)
            return

        current_vc = self.vc_state.get_vc_state(ctx.guild_id)
        if current_vc and current_vc.is_connected():
            if self.vc_state.is_connected_in_channel(ctx.guild_id, voice_channel):
                await ctx.respond(get_text("join.already_connected", lang, voice_channel.name), ephemeral=True)
                return

            # don't get stolen away from people who are still listening
            if has_humans(current_vc.channel):
                await ctx.respond(get_text("join.in_use_elsewhere", lang, current_vc.channel.id), ephemeral=True)
                return

            await self.try_leave_vc(ctx.guild_id)

        self.cancel_reconnect(ctx.guild_id)

        # respond right away, then edit that same message once connected
        await ctx.respond(content=get_text("join.connecting", lang, voice_channel.name))

        try:
            await self.connect_to(voice_channel)
        except (discord.DiscordException, asyncio.TimeoutError) as e:
            tsprint(f"Could not join VC {voice_channel.name} in {ctx.guild_id}: {e!r}")
            await ctx.edit(content=get_text("join.failed", lang))
            return

        await ctx.edit(content=get_text("join.success", lang, voice_channel.name))

    @discord.slash_command(name="leave", description="Leaves whatever voice chat it's currently in.", dm_permission=False)
    async def cmd_leave(self, ctx: discord.ApplicationContext):
        """
        Command wrapper to leave VC from current guild.
        """
        await self.try_leave_vc(ctx.guild_id, ctx)

    @discord.slash_command(name="say", description="Makes the bot say something in the voice chat.", dm_permission=False)
    @discord.option("message", type=str, description="The message to speak")
    async def cmd_say(self, ctx: discord.ApplicationContext, message: str):
        """
        Queues a message to be read, joining the author's VC first if needed
        """
        self.vc_state.init_guild(ctx.guild_id)
        self.vc_state.set_last_triggered(ctx.guild_id, ctx.channel_id)
        settings = dbd.get_server_settings(ctx.guild_id)

        text = clean_text(message or "", settings.language)
        if not text:
            await ctx.respond(get_text("say.empty_message", settings.language), ephemeral=True)
            return

        # silently acknowledge the command
        await ctx.defer(ephemeral=True)

        if not self.vc_state.is_connected(ctx.guild_id):
            author_vc = ctx.author.voice
            if author_vc is None:
                await ctx.respond(get_text("join.user_not_in_vc", settings.language), ephemeral=True)
                return

            try:
                await self.connect_to(author_vc.channel)
            except (discord.DiscordException, asyncio.TimeoutError) as e:
                tsprint(f"Could not join VC for /say in {ctx.guild_id}: {e!r}")
                await ctx.respond(get_text("join.failed", settings.language), ephemeral=True)
                return

        # manual /say is anonymous
        self.scheduler.enqueue_utterance(ctx.guild_id, text)
        await ctx.respond(get_text("say.success", settings.language), ephemeral=True)

    # EVENTS
    @discord.Cog.listener()
    async def on_message(self, message: discord.Message):
        """
        Reads messages from people sitting in the same VC as the bot
        """
        if message.author.bot or message.guild is None:
            return
        if not message.content or message.content.startswith("/"):
            return

        guild_id = message.guild.id
        vc = self.vc_state.get_vc_state(guild_id)
        if vc is None or not vc.is_connected():
            return # only read messages if already connected

        # only read people who are listening in the bot's channel
        author_voice = getattr(message.author, "voice", None)
        if author_voice is None or author_voice.channel != vc.channel:
            return

        language = dbd.get_effective_language(message.author.id, guild_id)
        text, expression = process_message_text(message, language)
        if not text:
            return

        self.vc_state.set_last_triggered(guild_id, message.channel.id)
        self.scheduler.enqueue_utterance(
            guild_id,
            text,
            speaker_name=message.author.display_name,
            speaker_id=message.author.id,
            announce_speaker=True,
            name_format=NameFormat.PLAIN if expression else NameFormat.SAID
        )

    @discord.Cog.listener()
    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState
    ):
        """
        When someone's voice state updates:
            - if the bot got dropped from its VC, tear down its queue and maybe reconnect.
            - if someone joins/leaves the bot's VC, announce it ahead of queued messages.
            - if the VC is empty except for bots and auto-leave is on, leave.

        ## Args:
        - `member` (discord.Member): the member whose voice state updates
        - `before` (discord.member.VoiceState): the VoiceState before the update
        - `after` (discord.member.VoiceState): the VoiceState after the update
        """
        guild = member.guild

        # check if the bot left the VC
        if member.id == self.bot.user.id:
            if before.channel is not None and after.channel is None:
                await self.handle_bot_disconnect(guild, before.channel)
            return

        if member.bot:
            return

        # check if the bot is in a VC in this guild, just to make sure
        vc = self.vc_state.get_vc_state(guild.id)
        if vc is None or not vc.is_connected():
            return

        bot_channel = vc.channel
        joined = after.channel == bot_channel and before.channel != bot_channel
        left = before.channel == bot_channel and after.channel != bot_channel
        if not joined and not left:
            return

        settings = dbd.get_server_settings(guild.id)
        if self.config.announce_join_leave and not settings.disable_join_leave:
            key = "voice_events.user_joined" if joined else "voice_events.user_left"
            self.scheduler.enqueue_utterance(
                guild.id,
                get_text(key, settings.language, member.display_name),
                speaker_name=SYSTEM_SPEAKER,
                speaker_id=SYSTEM_SPEAKER,
                priority=True
            )

        # if VC empty except for bots, leave
        if left and self.config.auto_leave_on_empty and not has_humans(bot_channel):
            tsprint(f"Nobody in VC {bot_channel.name} except bots. Leaving.")
            await self.try_leave_vc(guild.id)

    @discord.Cog.listener()
    async def on_ready(self):
        tsprint("Initializing guild VC list...")

        for guild in self.bot.guilds:
            self.vc_state.init_guild(guild.id)

        tsprint("VC Cog is now ready!")
