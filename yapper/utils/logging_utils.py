"""
Timestamped printing, used instead of bare print everywhere in the bot
"""

# built-in
from datetime import datetime

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

def timestamp_print(*args, **kwargs) -> None:
    """
    Prints the given arguments prefixed with the current local time

    :param args: anything print() accepts
    :param kwargs: forwarded to print(), flush defaults to True
    """
    kwargs.setdefault("flush", True)
    print(f"[{datetime.now().strftime(TIMESTAMP_FORMAT)}]", *args, **kwargs)
