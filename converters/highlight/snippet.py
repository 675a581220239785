import html
import re
import unicodedata

from elastics.webpages.constants import TRUNCATE_MIN_RATIO


def truncate_snippet(
    snippet: str, max_chars: int, min_ratio: float = TRUNCATE_MIN_RATIO
) -> str:
    """Truncate after `max_chars` characters, trying to keep full words.

    The text is re-cut at the last space before `max_chars` unless the cut
    already ends a word, no space exists, or the space lies before
    `min_ratio * max_chars`; then the hard cut is kept.

    Examples:
        - ("the quick brown fox", 9) -> "the quick"
        - ("thequickbrown", 9) -> "thequickb"
        - ("the quick brown fox", 12) -> "the quick"
    """
    if not snippet:
        return ""
    if len(snippet) > max_chars:
        is_word_ended = snippet[max_chars] == " "
        snippet = snippet[:max_chars]
        pos = snippet.rfind(" ")
        if not is_word_ended and pos != -1:
            if int(min_ratio * max_chars) <= pos:
                snippet = snippet[:pos]
    return snippet.strip()


def escape_html(text: str) -> str:
    if not text:
        return ""
    return html.escape(text, quote=True)


class TextCleanser:
    RE_WHITESPACES = re.compile(r"\s+")
    # zero-width and directional marks left over from page extraction
    INVISIBLE_CHARS = "\u200b\u200c\u200d\u200e\u200f\u2060\ufeff\u00ad"

    def remove_control_chars(self, text: str) -> str:
        chars = []
        for ch in text:
            if ch in self.INVISIBLE_CHARS:
                continue
            if unicodedata.category(ch) == "Cc" and not ch.isspace():
                continue
            chars.append(ch)
        return "".join(chars)

    def collapse_whitespaces(self, text: str) -> str:
        return self.RE_WHITESPACES.sub(" ", text)

    def cleanse_all(self, text: str, collapse_whitespaces: bool = True) -> str:
        """Examples:
        - " foo\\n\\n bar\\x00 " -> "foo bar"
        - "a\\u00a0\\u200bb" -> "a b"
        """
        if not text:
            return ""
        text = self.remove_control_chars(text)
        if collapse_whitespaces:
            text = self.collapse_whitespaces(text)
        return text.strip()


if __name__ == "__main__":
    from tclogger import logger

    text = "The quick brown fox jumps over the lazy dog"
    for max_chars in [9, 12, 20, 100]:
        logger.note(f"{max_chars}:", end=" ")
        logger.success(f"[{truncate_snippet(text, max_chars)}]")
    logger.mesg(TextCleanser().cleanse_all(" foo \n\n bar\x00\u200b "))

    # python -m converters.highlight.snippet
