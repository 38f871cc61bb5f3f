"""
Handles all the per-user and per-guild settings bot functionality.
This currently includes the settings command group and the mylanguage command.
"""

# PyPI
import discord
from discord.ext import commands

# my modules
from ..db import driver as dbd # NOT DEAD BY DAYLIGHT
from ..lang.strings import get_text
from ..tts.languages import TTSLanguage, LANGUAGE_CODES, language_name, normalize_code
from ..utils.logging_utils import timestamp_print as tsprint

LANGUAGE_CHOICES = [discord.OptionChoice(language.name, language.value) for language in TTSLanguage]

# required for cogs API
def setup(bot: discord.Bot):
    bot.add_cog(SettingsCog(bot))

def can_manage(ctx: discord.ApplicationContext) -> bool:
    permissions = getattr(ctx.author, "guild_permissions", None)
    return bool(permissions and permissions.manage_guild)

def on_off(enabled: bool) -> str:
    return "✅" if enabled else "❌"

class SettingsCog(commands.Cog):
    settings = discord.SlashCommandGroup(
        "settings",
        "Modify this server's TTS settings",
        default_member_permissions=discord.Permissions(manage_guild=True),
        guild_only=True
    )

    def __init__(self, bot: discord.Bot):
        self.bot = bot

    async def deny_if_not_manager(self, ctx: discord.ApplicationContext, lang: str) -> bool:
        """
        Responds with a permission error if the author can't manage the server.
        Returns True if the command should stop.
        """
        if can_manage(ctx):
            return False

        await ctx.respond(get_text("no_permission", lang), ephemeral=True)
        return True

    @settings.command(name="show", description="Show this server's settings")
    async def settings_show(self, ctx: discord.ApplicationContext):
        current = dbd.get_server_settings(ctx.guild_id)
        await ctx.respond(get_text(
            "settings.current",
            current.language,
            language_name(current.language),
            on_off(not current.disable_usernames),
            on_off(not current.disable_join_leave)
        ))

    @settings.command(name="usernames", description="Choose whether usernames are read before messages")
    @discord.option("enabled", type=bool, description="Read usernames before messages")
    async def settings_usernames(self, ctx: discord.ApplicationContext, enabled: bool):
        lang = dbd.get_server_settings(ctx.guild_id).language
        if await self.deny_if_not_manager(ctx, lang):
            return

        dbd.set_disable_usernames(ctx.guild_id, not enabled)
        tsprint(f"Usernames {'enabled' if enabled else 'disabled'} in guild {ctx.guild_id}")

        key = "settings.usernames.enabled" if enabled else "settings.usernames.disabled"
        await ctx.respond(get_text(key, lang))

    @settings.command(name="joinleave", description="Choose whether people joining/leaving VC are announced")
    @discord.option("enabled", type=bool, description="Announce people joining and leaving")
    async def settings_join_leave(self, ctx: discord.ApplicationContext, enabled: bool):
        lang = dbd.get_server_settings(ctx.guild_id).language
        if await self.deny_if_not_manager(ctx, lang):
            return

        dbd.set_disable_join_leave(ctx.guild_id, not enabled)
        tsprint(f"Join/leave announcements {'enabled' if enabled else 'disabled'} in guild {ctx.guild_id}")

        key = "settings.join_leave.enabled" if enabled else "settings.join_leave.disabled"
        await ctx.respond(get_text(key, lang))

    @settings.command(name="language", description="Set the default TTS language for this server")
    @discord.option("language", type=str, description="The language to read messages in", choices=LANGUAGE_CHOICES)
    async def settings_language(self, ctx: discord.ApplicationContext, language: str):
        lang = dbd.get_server_settings(ctx.guild_id).language
        if await self.deny_if_not_manager(ctx, lang):
            return

        code = normalize_code(language)
        if code is None:
            await ctx.respond(get_text("settings.language.invalid", lang, ", ".join(LANGUAGE_CODES)), ephemeral=True)
            return

        dbd.set_server_language(ctx.guild_id, code)
        tsprint(f"Language set to {code} in guild {ctx.guild_id}")

        # reply in the new language
        await ctx.respond(get_text("settings.language.changed", code, language_name(code)))

    @discord.slash_command(name="mylanguage", description="Get or set your personal TTS language", dm_permission=False)
    @discord.option(
        "language",
        type=str,
        description="Your language, or \"default\" to follow the server",
        choices=[discord.OptionChoice("Server default", "default")] + LANGUAGE_CHOICES,
        default=None
    )
    async def cmd_my_language(self, ctx: discord.ApplicationContext, language: str | None = None):
        author_id = ctx.author.id
        server_language = dbd.get_server_settings(ctx.guild_id).language

        # no language specified = get settings value
        if not language:
            current = dbd.get_effective_language(author_id, ctx.guild_id)
            await ctx.respond(get_text("my_language.current", current, language_name(current)), ephemeral=True)
            return

        if language.lower() == "default":
            dbd.set_user_language(author_id, None)
            await ctx.respond(get_text("my_language.reset", server_language, language_name(server_language)), ephemeral=True)
            return

        code = normalize_code(language)
        if code is None:
            await ctx.respond(get_text("my_language.invalid", server_language, ", ".join(LANGUAGE_CODES)), ephemeral=True)
            return

        dbd.set_user_language(author_id, code)
        await ctx.respond(get_text("my_language.updated", code, language_name(code)), ephemeral=True)

    @discord.Cog.listener()
    async def on_ready(self):
        tsprint("Settings Cog is now ready!")
