"""
Loads the bot config (token and tunables) from config/discord.json
"""

# built-in
import json
import os
import platform
import shutil
from typing import Optional

# my modules
from .errors import ConfigError, OSNotSupportedError
from .utils.logging_utils import timestamp_print as tsprint

CONFIG_PATH = os.path.join("config", "discord.json")

DEFAULTS = {
    "default_language": "en",
    "tts_host": "https://translate.google.com",
    "tts_timeout": 10.0,
    "tts_slow": False,
    "max_chunk_length": 200,
    "inter_message_delay": 0.3,
    "retry_delay": 1.0,
    "reconnect_on_disconnect": True,
    "reconnect_delay": 5.0,
    "reconnect_attempts": 3,
    "auto_leave_on_empty": False,
    "announce_join_leave": True,
    "ffmpeg_path": None,
    "database_path": os.path.join("database", "yapper.db"),
}

def default_ffmpeg_path() -> str:
    """
    Picks where ffmpeg lives on this OS

    :return: the ffmpeg executable path
    :rtype: str
    """
    match platform.system():
        case "Windows":
            return os.path.join("depend", "ffmpeg.exe")
        case "Darwin":
            return "/opt/homebrew/bin/ffmpeg"
        case "Linux":
            return shutil.which("ffmpeg") or "ffmpeg"
        case _:
            raise OSNotSupportedError()

class BotConfig():
    """
    Config values with defaults filled in. Every key of DEFAULTS becomes an attribute.
    """

    def __init__(self, token: str, **options):
        unknown = set(options) - set(DEFAULTS)
        if unknown:
            tsprint(f"Ignoring unknown config keys: {', '.join(sorted(unknown))}")

        self.token = token
        for key, default in DEFAULTS.items():
            setattr(self, key, options.get(key, default))

        if self.max_chunk_length < 1:
            raise ConfigError("max_chunk_length must be at least 1.")

        if not self.ffmpeg_path:
            self.ffmpeg_path = default_ffmpeg_path()

    @classmethod
    def from_dict(cls, data: dict) -> "BotConfig":
        data = dict(data)
        token = data.pop("token", None)
        if not token:
            raise ConfigError("No \"token\" found in the bot config.")

        return cls(token, **data)

def load_config(path: Optional[str] = None) -> BotConfig:
    """
    Reads the JSON config file and returns it with defaults applied

    :param path: where the config lives, defaults to config/discord.json
    :type path: Optional[str]
    :return: the loaded config
    :rtype: BotConfig
    """
    path = path or CONFIG_PATH

    try:
        with open(path, "r") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ConfigError(f"Config file \"{path}\" not found.")
    except json.JSONDecodeError as e:
        raise ConfigError(f"Config file \"{path}\" is not valid JSON: {e}")

    return BotConfig.from_dict(data)
