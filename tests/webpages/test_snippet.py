"""
Tests for converters/highlight/snippet.py
"""

from tclogger import logger

from converters.highlight.snippet import truncate_snippet, escape_html, TextCleanser


def test_truncate_short_text_unchanged():
    logger.note("> Test: short text is only trimmed")
    assert truncate_snippet("  short text ", 100) == "short text"
    assert truncate_snippet("exactly9!", 9) == "exactly9!"
    assert truncate_snippet("", 10) == ""
    assert truncate_snippet(None, 10) == ""
    logger.success("  PASSED")


def test_truncate_at_word_end():
    logger.note("> Test: cut already ends a word")
    assert truncate_snippet("the quick brown fox", 9) == "the quick"
    logger.success("  PASSED")


def test_truncate_without_spaces():
    logger.note("> Test: hard cut without spaces")
    assert truncate_snippet("thequickbrown", 9) == "thequickb"
    logger.success("  PASSED")


def test_truncate_to_last_space():
    logger.note("> Test: re-cut at last space")
    # "the quick br" -> last space at 9 >= int(0.6 * 12)
    assert truncate_snippet("the quick brown fox", 12) == "the quick"
    logger.success("  PASSED")


def test_truncate_keeps_hard_cut_if_too_short():
    logger.note("> Test: keep hard cut when word cut is below 60%")
    # "a bcdefghij" -> last space at 1 < int(0.6 * 11)
    assert truncate_snippet("a bcdefghijklmnop", 11) == "a bcdefghij"
    # boundary: space exactly at int(0.6 * 10) = 6 is accepted
    assert truncate_snippet("abcdef ghijklmn", 10) == "abcdef"
    # one position below the boundary keeps the hard cut
    assert truncate_snippet("abcde fghijklmn", 10) == "abcde fghi"
    logger.success("  PASSED")


def test_escape_html():
    logger.note("> Test: escape_html")
    assert escape_html('<b>"A" & B</b>') == "&lt;b&gt;&quot;A&quot; &amp; B&lt;/b&gt;"
    assert escape_html("") == ""
    assert escape_html(None) == ""
    logger.success("  PASSED")


def test_cleanse_all():
    logger.note("> Test: TextCleanser.cleanse_all")
    cleanser = TextCleanser()
    assert cleanser.cleanse_all(" foo \n\n bar\x00 ") == "foo bar"
    assert cleanser.cleanse_all("a\u00a0\u200bb") == "a b"
    assert cleanser.cleanse_all("tab\tand\r\nnewline") == "tab and newline"
    assert cleanser.cleanse_all("<em>kept</em> tags") == "<em>kept</em> tags"
    assert cleanser.cleanse_all("") == ""
    assert cleanser.cleanse_all("x  y", collapse_whitespaces=False) == "x  y"
    logger.success("  PASSED")


if __name__ == "__main__":
    test_truncate_short_text_unchanged()
    test_truncate_at_word_end()
    test_truncate_without_spaces()
    test_truncate_to_last_space()
    test_truncate_keeps_hard_cut_if_too_short()
    test_escape_html()
    test_cleanse_all()
    logger.success("\n✓ All snippet tests passed")

    # python -m tests.webpages.test_snippet
