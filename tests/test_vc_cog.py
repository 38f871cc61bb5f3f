import asyncio
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from conftest import FakeVoiceClient, run_until
from yapper.cogs import vc_cog
from yapper.config import BotConfig
from yapper.db.driver import ServerSettings
from yapper.tts.models import NameFormat, SYSTEM_SPEAKER

GUILD = 1
BOT_ID = 999


def member(member_id, name="Nikki", bot=False, channel=None):
    m = MagicMock(id=member_id, display_name=name, bot=bot)
    m.guild.id = GUILD
    m.voice = MagicMock(channel=channel) if channel is not None else None
    return m


def voice_channel(*members):
    return MagicMock(members=list(members))


@pytest.fixture
def server_settings(monkeypatch):
    settings = {"value": ServerSettings()}
    monkeypatch.setattr(vc_cog.dbd, "get_server_settings", lambda guild_id: settings["value"])
    monkeypatch.setattr(vc_cog.dbd, "get_effective_language", lambda user_id, guild_id: "en")
    return settings


@pytest.fixture
def make_cog(server_settings):
    def make(**options):
        bot = MagicMock()
        bot.user.id = BOT_ID
        config = BotConfig("token", ffmpeg_path="ffmpeg", **options)

        cog = vc_cog.VCCog(bot, config)
        cog.scheduler = MagicMock()
        return cog
    return make


def connect(cog, channel):
    vc = FakeVoiceClient(channel)
    cog.vc_state.init_guild(GUILD)
    cog.vc_state.set_vc_state(GUILD, vc)
    return vc


def message_from(author, content="hello there"):
    message = MagicMock(content=content, author=author)
    message.guild.id = GUILD
    message.channel.id = 55
    message.mentions = []
    message.guild.get_member.return_value = None
    return message


class TestOnMessage:
    @pytest.mark.asyncio
    async def test_reads_messages_from_the_bots_channel(self, make_cog):
        cog = make_cog()
        channel = voice_channel()
        connect(cog, channel)
        author = member(42, channel=channel)

        await cog.on_message(message_from(author))

        cog.scheduler.enqueue_utterance.assert_called_once_with(
            GUILD,
            "hello there",
            speaker_name="Nikki",
            speaker_id=42,
            announce_speaker=True,
            name_format=NameFormat.SAID,
        )
        assert cog.vc_state.get_last_triggered(GUILD) == 55

    @pytest.mark.asyncio
    async def test_expressions_skip_said(self, make_cog):
        cog = make_cog()
        channel = voice_channel()
        connect(cog, channel)

        await cog.on_message(message_from(member(42, channel=channel), "lol"))

        assert cog.scheduler.enqueue_utterance.call_args.kwargs["name_format"] is NameFormat.PLAIN

    @pytest.mark.parametrize(
        "author_kwargs, content",
        [
            ({"bot": True}, "beep"),
            ({}, "/say hi"),
            ({"channel": "elsewhere"}, "hello"),
            ({"channel": None}, "hello"),
        ],
    )
    @pytest.mark.asyncio
    async def test_ignored_messages(self, make_cog, author_kwargs, content):
        cog = make_cog()
        channel = voice_channel()
        connect(cog, channel)
        author_kwargs = {"channel": channel, **author_kwargs}
        if author_kwargs["channel"] == "elsewhere":
            author_kwargs["channel"] = voice_channel()

        await cog.on_message(message_from(member(42, **author_kwargs), content))

        cog.scheduler.enqueue_utterance.assert_not_called()

    @pytest.mark.asyncio
    async def test_ignored_when_not_connected(self, make_cog):
        cog = make_cog()

        await cog.on_message(message_from(member(42, channel=voice_channel())))

        cog.scheduler.enqueue_utterance.assert_not_called()


class TestVoiceStateUpdate:
    @pytest.mark.asyncio
    async def test_join_is_announced_first(self, make_cog):
        cog = make_cog()
        channel = voice_channel()
        connect(cog, channel)

        await cog.on_voice_state_update(member(42), MagicMock(channel=None), MagicMock(channel=channel))

        cog.scheduler.enqueue_utterance.assert_called_once_with(
            GUILD,
            "Nikki joined the channel",
            speaker_name=SYSTEM_SPEAKER,
            speaker_id=SYSTEM_SPEAKER,
            priority=True,
        )

    @pytest.mark.asyncio
    async def test_leave_is_announced(self, make_cog):
        cog = make_cog()
        channel = voice_channel()
        connect(cog, channel)

        await cog.on_voice_state_update(member(42), MagicMock(channel=channel), MagicMock(channel=None))

        assert cog.scheduler.enqueue_utterance.call_args.args[1] == "Nikki left the channel"

    @pytest.mark.asyncio
    async def test_announcements_can_be_turned_off(self, make_cog, server_settings):
        server_settings["value"] = ServerSettings("en", False, True)
        cog = make_cog()
        channel = voice_channel()
        connect(cog, channel)

        await cog.on_voice_state_update(member(42), MagicMock(channel=None), MagicMock(channel=channel))

        cog.scheduler.enqueue_utterance.assert_not_called()

    @pytest.mark.asyncio
    async def test_other_channels_are_ignored(self, make_cog):
        cog = make_cog()
        connect(cog, voice_channel())

        await cog.on_voice_state_update(member(42), MagicMock(channel=None), MagicMock(channel=voice_channel()))

        cog.scheduler.enqueue_utterance.assert_not_called()

    @pytest.mark.asyncio
    async def test_auto_leave_when_empty(self, make_cog):
        cog = make_cog(auto_leave_on_empty=True, announce_join_leave=False)
        channel = voice_channel(member(BOT_ID, bot=True))
        vc = connect(cog, channel)

        await cog.on_voice_state_update(member(42), MagicMock(channel=channel), MagicMock(channel=None))

        assert vc.disconnect_calls == 1
        cog.scheduler.teardown_guild.assert_called_once_with(GUILD)
        assert not cog.vc_state.is_connected(GUILD)

    @pytest.mark.asyncio
    async def test_bot_removed_tears_down_and_reconnects(self, make_cog):
        cog = make_cog()
        channel = voice_channel()
        vc = connect(cog, channel)
        bot_member = member(BOT_ID, bot=True)
        bot_member.guild.system_channel.send = AsyncMock()

        await cog.on_voice_state_update(bot_member, MagicMock(channel=channel), MagicMock(channel=None))

        cog.scheduler.teardown_guild.assert_called_once_with(GUILD)
        assert cog.vc_state.get_output(GUILD) is None
        assert vc.disconnect_calls == 1
        bot_member.guild.system_channel.send.assert_awaited_once_with("👢 I was removed from the voice channel.")

        cog.bot.loop.create_task.assert_called_once()
        cog.bot.loop.create_task.call_args.args[0].close()

    @pytest.mark.asyncio
    async def test_bot_removed_without_reconnect(self, make_cog):
        cog = make_cog(reconnect_on_disconnect=False)
        channel = voice_channel()
        connect(cog, channel)
        bot_member = member(BOT_ID, bot=True)
        bot_member.guild.system_channel.send = AsyncMock()

        await cog.on_voice_state_update(bot_member, MagicMock(channel=channel), MagicMock(channel=None))

        cog.bot.loop.create_task.assert_not_called()

    @pytest.mark.asyncio
    async def test_intentional_leave_is_not_a_disconnect(self, make_cog):
        cog = make_cog()
        channel = voice_channel()
        connect(cog, channel)

        await cog.try_leave_vc(GUILD)
        cog.scheduler.teardown_guild.reset_mock()

        bot_member = member(BOT_ID, bot=True)
        await cog.on_voice_state_update(bot_member, MagicMock(channel=channel), MagicMock(channel=None))

        cog.scheduler.teardown_guild.assert_not_called()
        cog.bot.loop.create_task.assert_not_called()
        assert GUILD not in cog.vc_state.leaving

    @pytest.mark.asyncio
    async def test_failed_leave_does_not_hide_the_next_removal(self, make_cog):
        cog = make_cog()
        channel = voice_channel()
        vc = connect(cog, channel)
        vc.disconnect = AsyncMock(side_effect=discord.ClientException("Not connected to voice."))

        await cog.try_leave_vc(GUILD)

        assert GUILD not in cog.vc_state.leaving
        assert not cog.vc_state.is_connected(GUILD)

        bot_member = member(BOT_ID, bot=True)
        bot_member.guild.system_channel.send = AsyncMock()
        await cog.on_voice_state_update(bot_member, MagicMock(channel=channel), MagicMock(channel=None))

        bot_member.guild.system_channel.send.assert_awaited_once()
        cog.bot.loop.create_task.assert_called_once()
        cog.bot.loop.create_task.call_args.args[0].close()


class TestReconnect:
    def guild_with(self, channel):
        guild = MagicMock(id=GUILD)
        guild.get_channel.return_value = channel
        guild.system_channel.send = AsyncMock()
        return guild

    @pytest.mark.asyncio
    async def test_reconnects_to_the_same_channel(self, make_cog):
        cog = make_cog(reconnect_delay=0)
        channel = voice_channel(member(42))
        channel.guild.id = GUILD
        channel.connect = AsyncMock(side_effect=lambda **kwargs: FakeVoiceClient(channel))
        guild = self.guild_with(channel)

        await cog.reconnect(guild, 5)

        channel.connect.assert_awaited_once_with(reconnect=False)
        assert cog.vc_state.is_connected(GUILD)
        assert cog.vc_state.get_output(GUILD) is not None
        guild.system_channel.send.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_gives_up_after_the_configured_attempts(self, make_cog):
        cog = make_cog(reconnect_delay=0, reconnect_attempts=2)
        channel = voice_channel(member(42))
        channel.guild.id = GUILD
        channel.connect = AsyncMock(side_effect=asyncio.TimeoutError())

        await cog.reconnect(self.guild_with(channel), 5)

        assert channel.connect.await_count == 2
        assert not cog.vc_state.is_connected(GUILD)

    @pytest.mark.asyncio
    async def test_skips_empty_channels_when_auto_leaving(self, make_cog):
        cog = make_cog(reconnect_delay=0, auto_leave_on_empty=True)
        channel = voice_channel()
        channel.connect = AsyncMock()

        await cog.reconnect(self.guild_with(channel), 5)

        channel.connect.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_finished_reconnect_is_forgotten(self, make_cog):
        cog = make_cog(reconnect_delay=0)
        cog.bot.loop = asyncio.get_running_loop()
        channel = voice_channel(member(42))
        channel.guild.id = GUILD
        channel.connect = AsyncMock(side_effect=lambda **kwargs: FakeVoiceClient(channel))

        cog.start_reconnect(self.guild_with(channel), 5)
        assert GUILD in cog.reconnect_tasks

        await run_until(lambda: GUILD not in cog.reconnect_tasks)
        channel.connect.assert_awaited_once_with(reconnect=False)

    @pytest.mark.asyncio
    async def test_new_reconnect_replaces_the_pending_one(self, make_cog):
        cog = make_cog(reconnect_delay=60)
        cog.bot.loop = asyncio.get_running_loop()
        channel = voice_channel(member(42))
        channel.connect = AsyncMock()
        guild = self.guild_with(channel)

        cog.start_reconnect(guild, 5)
        first = cog.reconnect_tasks[GUILD]
        cog.start_reconnect(guild, 5)
        second = cog.reconnect_tasks[GUILD]

        await run_until(first.done)
        assert first.cancelled()
        assert not second.done()

        cog.cog_unload()
        await run_until(second.done)

        assert second.cancelled()
        assert cog.reconnect_tasks == {}
        channel.connect.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_leave_while_waiting_to_reconnect_stops_it(self, make_cog):
        cog = make_cog(reconnect_delay=60)
        cog.bot.loop = asyncio.get_running_loop()
        channel = voice_channel(member(42))
        channel.connect = AsyncMock()
        connect(cog, channel)

        bot_member = member(BOT_ID, bot=True)
        guild = bot_member.guild
        guild.get_channel.return_value = channel
        guild.system_channel.send = AsyncMock()

        await cog.on_voice_state_update(bot_member, MagicMock(channel=channel), MagicMock(channel=None))
        task = cog.reconnect_tasks[GUILD]
        # kicked notice, then the reconnecting notice right before the first wait
        await run_until(lambda: guild.system_channel.send.await_count == 2)

        ctx = MagicMock()
        ctx.respond = AsyncMock()
        await cog.try_leave_vc(GUILD, ctx)
        await run_until(task.done)

        assert task.cancelled()
        assert cog.reconnect_tasks == {}
        channel.connect.assert_not_awaited()
        ctx.respond.assert_awaited_once_with("👋🏻 Left voice!", ephemeral=False)


class TestJoin:
    def join_ctx(self, channel):
        ctx = MagicMock(guild_id=GUILD, channel_id=55)
        ctx.author.voice.channel = channel
        ctx.defer = AsyncMock()
        ctx.respond = AsyncMock()
        ctx.edit = AsyncMock()
        return ctx

    def target(self, connect_error=None):
        channel = voice_channel(member(42))
        channel.name = "General"
        channel.guild.id = GUILD
        if connect_error is not None:
            channel.connect = AsyncMock(side_effect=connect_error)
        else:
            channel.connect = AsyncMock(side_effect=lambda **kwargs: FakeVoiceClient(channel))
        return channel

    @pytest.mark.asyncio
    async def test_one_message_is_sent_then_edited(self, make_cog):
        cog = make_cog()
        channel = self.target()
        ctx = self.join_ctx(channel)

        await cog.cmd_join.callback(cog, ctx, None)

        ctx.defer.assert_not_awaited()
        ctx.respond.assert_awaited_once_with(content="🛜 Connecting to **General**...")
        ctx.edit.assert_awaited_once_with(
            content="✅ Successfully joined **General**! I'll read messages sent by people in the channel."
        )
        assert cog.vc_state.is_connected(GUILD)

    @pytest.mark.asyncio
    async def test_failed_connect_edits_the_same_message(self, make_cog):
        cog = make_cog()
        channel = self.target(connect_error=asyncio.TimeoutError())
        ctx = self.join_ctx(channel)

        await cog.cmd_join.callback(cog, ctx, None)

        ctx.respond.assert_awaited_once()
        ctx.edit.assert_awaited_once_with(content="❌ Failed to connect to the voice channel. Please try again.")
        assert not cog.vc_state.is_connected(GUILD)
