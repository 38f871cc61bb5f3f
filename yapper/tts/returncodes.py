from enum import Enum

class SynthesisReturnCode(Enum):
    NONE = -1
    OKAY = 0
    TIMEOUT = 1
    NETWORK_ERROR = 2
    EMPTY_AUDIO = 3
    LANGUAGE_UNSUPPORTED = 4

    PROVIDER_ERROR = 99
