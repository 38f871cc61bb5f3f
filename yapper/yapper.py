"""
the main module for yapper, run with `python -m yapper.yapper`
"""

# built-in modules
import ctypes.util
import os
import platform

# PyPI
import aiohttp
import discord # pycord

# my modules
from .utils.logging_utils import timestamp_print as tsprint
from .config import BotConfig, load_config
from .errors import OpusNotFoundError, OSNotSupportedError
from .db import driver as dbd # NOT DEAD BY DAYLIGHT
from .lang.strings import get_text

def find_opus() -> str:
    """
    Picks where libopus lives on this OS
    """
    match platform.system():
        case "Windows":
            return os.path.join("depend", "libopus.dll")
        case "Darwin":
            return "/opt/homebrew/opt/opus/lib/libopus.dylib"
        case "Linux":
            return ctypes.util.find_library("opus") or "libopus.so.0"
        case _:
            raise OSNotSupportedError()

def load_opus():
    if discord.opus.is_loaded():
        return

    tsprint("Opus not loaded, searching on the system...")
    try:
        discord.opus.load_opus(find_opus())
    except OSError:
        tsprint("Opus not found.")
        match platform.system():
            case "Windows":
                tsprint("Please install Opus to /depend/libopus.dll")
            case "Darwin":
                tsprint("Please install Opus using \"brew install opus\"")
            case "Linux":
                tsprint("Please install Opus using your package manager (e.g. libopus0)")

        raise OpusNotFoundError()

def create_bot(config: BotConfig) -> discord.Bot:
    """
    Builds the bot and loads every cog in yapper/cogs
    """
    # get intents
    intents = discord.Intents.default()
    intents.voice_states = True
    intents.members = True
    intents.guilds = True
    intents.message_content = True

    bot = discord.Bot(intents=intents)
    bot.config = config

    tsprint("Loading cogs...")
    for filename in sorted(os.listdir(os.path.join(os.path.dirname(__file__), "cogs"))):
        if filename.endswith(".py") and filename != "__init__.py":
            bot.load_extension(f".cogs.{filename[:-3]}", package="yapper")

    # BOT EVENTS
    @bot.event
    async def on_ready():
        tsprint("Initializing database...")
        dbd.init_db(config.database_path, config.default_language)

        load_opus()
        tsprint("Loaded Opus successfully.")
        tsprint(f"Logged in as {bot.user}")

    @bot.event
    async def on_application_command_error(ctx: discord.ApplicationContext, error: discord.DiscordException):
        """
        Handle uncaught exceptions in commands
        """
        lang = dbd.get_server_settings(ctx.guild_id).language if ctx.guild_id else dbd.DEFAULT_LANGUAGE

        if isinstance(error, discord.ApplicationCommandInvokeError) and isinstance(error.original, aiohttp.ClientConnectorError):
            message = "⚠️ Network error: unable to reach Discord. Try again later."
        elif isinstance(error, discord.CheckFailure):
            message = get_text("no_permission", lang)
        else:
            # fallback logging
            tsprint(f"⚠️ Something went wrong in /{ctx.command.qualified_name if ctx.command else '?'}!\n{error!r}")
            message = get_text("error", lang)

        try:
            await ctx.respond(message, ephemeral=True)
        except discord.HTTPException as e:
            tsprint(f"Could not report error to user: {e}")

    return bot

def main():
    tsprint("Starting Yapper...")

    # load in our token and settings
    config = load_config()

    bot = create_bot(config)
    bot.run(config.token)

if __name__ == "__main__":
    main()
