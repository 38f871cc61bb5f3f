"""
Splits text into chunks the TTS provider will accept
"""

# built-in
import re

DEFAULT_MAX_LENGTH = 200

# whitespace right after sentence-ending punctuation
SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")

def _pack_words(sentence: str, max_length: int) -> list[str]:
    """
    Greedily packs the words of one sentence into chunks of at most max_length.
    Words longer than max_length are cut into max_length slices.
    """
    chunks = []
    current = ""

    for word in sentence.split():
        # a single word that can never fit gets sliced up
        while len(word) > max_length:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(word[:max_length])
            word = word[max_length:]

        if not word:
            continue

        if not current:
            current = word
        elif len(current) + 1 + len(word) <= max_length:
            current = f"{current} {word}"
        else:
            chunks.append(current)
            current = word

    if current:
        chunks.append(current)

    return chunks

def segment(text: str, max_length: int = DEFAULT_MAX_LENGTH) -> list[str]:
    """
    Splits text into ordered chunks no longer than max_length, packing whole sentences
    together where possible and falling back to words for long sentences

    :param text: the text to split
    :type text: str
    :param max_length: the longest chunk allowed
    :type max_length: int
    :return: the chunks, in text order
    :rtype: list[str]
    """
    if max_length < 1:
        raise ValueError("max_length must be at least 1")

    if len(text) <= max_length:
        return [text]

    chunks = []
    current = ""

    for sentence in SENTENCE_BOUNDARY.split(text):
        sentence = sentence.strip()
        if not sentence:
            continue

        if len(sentence) > max_length:
            # flush first so chunks stay in text order
            if current:
                chunks.append(current)
                current = ""
            chunks.extend(_pack_words(sentence, max_length))
        elif not current:
            current = sentence
        elif len(current) + 1 + len(sentence) <= max_length:
            current = f"{current} {sentence}"
        else:
            chunks.append(current)
            current = sentence

    if current:
        chunks.append(current)

    # whitespace-only input still yields one (empty) chunk
    return chunks or [""]
