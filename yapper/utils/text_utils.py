"""
Turns a raw Discord message into text that sounds right when read aloud
"""

# built-in
import re

# PyPI
import discord
import emoji

URL_PATTERN = re.compile(r"https?://\S+")
USER_MENTION_PATTERN = re.compile(r"<@!?(\d+)>")
ROLE_MENTION_PATTERN = re.compile(r"<@&(\d+)>")
CHANNEL_MENTION_PATTERN = re.compile(r"<#(\d+)>")
CUSTOM_EMOJI_PATTERN = re.compile(r"<a?:(\w+):\d+>")
EMOTE_PATTERN = re.compile(r"^[=:;]-?[()DPpOo\[\]\\/3]+$")

# standalone chat expressions that shouldn't get "<name> said"
COMMON_EXPRESSIONS = {"lmao", "lol", "rofl", "lul", "kek", "omg", "wtf", "brb", "afk", "smh"}

EMOTICONS = {
    "en": {
        ":(": "sad face",
        ":)": "smile",
        ":D": "big smile",
        ":v": "silly face",
        ":3": "cat face",
        ":'(": "crying face",
        "-_-": "annoyed face",
        "=))": "rolling laugh face",
        "T_T": "crying face",
        "@@": "dizzy face",
        ":|": "neutral face",
        ":P": "tongue out",
        "^_^": "happy face",
        "o_O": "surprised face",
        ":x": "kiss face",
        ">.<": "pain face",
        "><": "awkward face",
        "XD": "laughing face",
        "<3": "heart",
    },
    "vi": {
        ":(": "buồn",
        ":((": "buồn",
        ":(((": "buồn dài",
        "=(": "buồn",
        "=((": "buồn",
        "=(((": "buồn dài",
        ":)": "cười",
        ":))": "cười",
        ":)))": "cười to",
        "=)": "cười",
        "=))": "cười lăn",
        "=)))": "cười lăn dài",
        ":v": "cười đểu",
        ":3": "mặt mèo",
        ":'(": "khóc",
        ":'))": "vừa cười vừa khóc",
        "-_-": "chán",
        "T_T": "khóc hu hu",
        "@@": "hoả mắt",
        ":|": "đơ",
        ":P": "lè lưỡi",
        "^_^": "cười vui",
        "^^": "cười",
        "o_O": "ngạc nhiên",
        ":x": "hôn",
        ">.<": "đau",
        "><": "ngại",
        ":D": "haha",
        "XD": "cười xỉu",
        ":O": "ngạc nhiên",
        ":o": "ngạc nhiên",
        ";)": "nháy mắt",
        ";-)": "nháy mắt",
        ":*": "thơm",
        ":-))": "cười",
        ":-(": "buồn",
        ":-D": "cười lớn",
        "^-^": "cười dịu",
    },
}

def is_expression(text: str) -> bool:
    """
    Whether the whole message is a chat expression ("lol") or a lone emote (":D")
    """
    stripped = text.strip()
    return stripped.lower() in COMMON_EXPRESSIONS or bool(EMOTE_PATTERN.match(stripped))

def replace_emoticons(text: str, language: str = "en") -> str:
    """
    Replaces whitespace-separated emoticons (":)", "T_T", ...) with words in the given language

    :param text: the text to adjust
    :type text: str
    :param language: which emoticon table to use, unknown languages use English
    :type language: str
    :return: the adjusted text
    :rtype: str
    """
    table = EMOTICONS.get(language, EMOTICONS["en"])
    return " ".join(table.get(token, token) for token in text.split(" "))

def replace_unicode_emoji(text: str) -> str:
    """
    Replaces each emoji with its name, grouping repeats ("fire emojis")
    """
    # normalize variation selectors first
    text = re.sub(r"[\uFE0F\uFE0E]", "", text)

    # used to contain emoji names to replace
    # important for pluralization
    names = set()

    def replace_match(_: str, data: dict) -> str:
        name = data.get("en", "").strip(":").replace("_", " ")
        if not name.strip():
            return ""

        names.add(name)

        # whitespace to ensure we don't have stuff like "man emojiwoman emoji"
        return f" :{name}: "

    text = emoji.replace_emoji(text, replace=replace_match)

    for name in names:
        # sub with name + emojis if there's a plural group
        pattern = rf"(?:(?::{re.escape(name)}:)\s*){{2,}}"
        text = re.sub(pattern, f"{name} emojis ", text)

        # sub with name + emoji if singular
        text = text.replace(f":{name}:", f"{name} emoji ")

    return text

def replace_mentions(text: str, message: discord.Message) -> str:
    """
    Replaces user, role and channel mentions with names people would say
    """
    guild = message.guild

    def user_name(match: re.Match) -> str:
        user_id = int(match.group(1))
        member = guild.get_member(user_id) if guild else None
        if member:
            return f"@ {member.display_name}"

        for user in message.mentions:
            if user.id == user_id:
                return f"@ {getattr(user, 'display_name', user.name)}"
        return "@ someone"

    def role_name(match: re.Match) -> str:
        role = guild.get_role(int(match.group(1))) if guild else None
        return f"@{role.name}" if role else "@ a role"

    def channel_name(match: re.Match) -> str:
        channel = guild.get_channel(int(match.group(1))) if guild else None
        return f"#{channel.name}" if channel else "# a channel"

    text = USER_MENTION_PATTERN.sub(user_name, text)
    text = ROLE_MENTION_PATTERN.sub(role_name, text)
    text = CHANNEL_MENTION_PATTERN.sub(channel_name, text)
    return text

def clean_text(text: str, language: str = "en") -> str:
    """
    Everything that doesn't need the message object: links, custom emoji, emoticons, emoji

    :param text: the raw message content
    :type text: str
    :param language: the language the text will be read in
    :type language: str
    :return: the text to speak
    :rtype: str
    """
    text = URL_PATTERN.sub("a link", text)
    text = CUSTOM_EMOJI_PATTERN.sub(lambda match: f"emoji {match.group(1)}", text)
    text = replace_emoticons(text, language)
    text = replace_unicode_emoji(text)

    # max 1 space between words, and no whitespace on ends
    return re.sub(r"\s+", " ", text).strip()

def process_message_text(message: discord.Message, language: str = "en") -> tuple[str, bool]:
    """
    Processes a Discord message into speakable text

    :param message: the message to read
    :type message: discord.Message
    :param language: the language the text will be read in
    :type language: str
    :return: the text to speak and whether the message was just an expression
    :rtype: tuple[str, bool]
    """
    content = message.content or ""
    expression = is_expression(content)

    text = replace_mentions(content, message)
    return clean_text(text, language), expression
