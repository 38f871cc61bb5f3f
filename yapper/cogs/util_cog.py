"""
Handles all utility functionality for the bot.
Currently this is just the help command.
"""

# PyPi
import discord

# my modules
from ..db import driver as dbd
from ..lang.strings import get_text
from ..tts.languages import language_name
from ..utils.logging_utils import timestamp_print as tsprint

# required for cogs API
def setup(bot: discord.Bot):
    bot.add_cog(UtilCog())

def build_help_embed(lang: str) -> discord.Embed:
    """
    Builds the help embed in the given language
    """
    embed = discord.Embed(
        title=get_text("help.title", lang),
        description=get_text("help.description", lang),
        color=0xED99A0  # cute pink color
    )

    commands_text = "\n".join(
        f"`/{name}` - {get_text(f'help.{key}', lang)}"
        for name, key in [
            ("join", "join"),
            ("leave", "leave"),
            ("say", "say"),
            ("mylanguage", "my_language"),
            ("settings", "settings"),
            ("help", "help"),
        ]
    )
    embed.add_field(name="Commands", value=commands_text, inline=False)
    embed.add_field(name=get_text("help.listening", lang), value=get_text("help.listening_value", lang), inline=False)
    embed.add_field(name=get_text("help.language", lang), value=f"{language_name(lang)} (`{lang}`)", inline=False)
    embed.set_footer(text=get_text("help.footer", lang))

    return embed

class UtilCog(discord.Cog):
    @discord.command(name="help", description="Shows what I can do", dm_permission=True)
    async def cmd_help(self, ctx: discord.ApplicationContext):
        """
        Sends the help embed in the server's language
        """
        lang = dbd.get_server_settings(ctx.guild_id).language if ctx.guild else dbd.DEFAULT_LANGUAGE
        await ctx.respond(embed=build_help_embed(lang), ephemeral=True)

    @discord.Cog.listener()
    async def on_ready(self):
        tsprint("Util Cog is now ready!")
