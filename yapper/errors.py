"""
Defines errors for this particular project
"""

# my modules
from .tts.returncodes import SynthesisReturnCode as SRC

class OSNotSupportedError(Exception):
    def __init__(self, message="Your OS is not currently supported."):
        super().__init__(message)

class OpusNotFoundError(Exception):
    def __init__(self, message="Opus not found."):
        super().__init__(message)

class FFmpegNotFoundError(Exception):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"FFmpeg not found at \"{path}\".")

class ConfigError(Exception):
    def __init__(self, message="The bot config is invalid."):
        super().__init__(message)

class SynthesisError(Exception):
    """
    Raised by a TTS provider when it can't produce audio for a chunk.

    :param message: what went wrong
    :param code: the SynthesisReturnCode describing the failure
    """

    def __init__(self, message: str, code: SRC = SRC.PROVIDER_ERROR):
        self.code = code
        super().__init__(message)
