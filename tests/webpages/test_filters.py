"""
Tests for converters/query_filter_extractor.py and converters/query/field.py
"""

from tclogger import logger

from converters.query.field import localize_field, boost_field
from converters.query_filter_extractor import QueryFilterExtractor
from elastics.webpages.config import InlineFilterSpec

SITE_FILTER = InlineFilterSpec(keyword="site", field="target_site")
LANG_FILTER = InlineFilterSpec(keyword="lang", field="lang")
INDEX_FILTER = InlineFilterSpec(keyword="#index", field="#index")


def test_localize_field():
    logger.note("> Test: localize_field")
    assert localize_field("title_lang.%lang%", "en") == "title_lang.en"
    assert localize_field("body_lang.%lang%", "de") == "body_lang.de"
    assert localize_field("warc_target_hostname", "en") == "warc_target_hostname"
    assert localize_field("", "en") == ""
    assert boost_field("title_lang.en", 35) == "title_lang.en^35.0"
    assert boost_field("body_lang.en", 1.0) == "body_lang.en"
    logger.success("  PASSED")


def test_extract_site_filter():
    logger.note("> Test: extract site filter")
    extractor = QueryFilterExtractor()
    res = extractor.extract("site:example.com test query", [SITE_FILTER])
    assert res.text == "test query"
    assert res.filters == [("target_site", "example.com")]
    assert res.block_grouping is False
    assert res.language is None
    assert res.indices is None
    logger.success("  PASSED")


def test_extract_index_override():
    logger.note("> Test: extract index override")
    extractor = QueryFilterExtractor()
    res = extractor.extract("#index:idx1,idx2 news", [INDEX_FILTER])
    assert res.indices == ["idx1", "idx2"]
    assert res.text == "news"
    assert res.filters == []
    logger.success("  PASSED")


def test_extract_language_override():
    logger.note("> Test: extract language override")
    extractor = QueryFilterExtractor()
    res = extractor.extract("nachrichten lang:de heute", [LANG_FILTER])
    assert res.language == "de"
    assert res.text == "nachrichten  heute"
    assert res.filters == []
    logger.success("  PASSED")


def test_extract_no_match():
    logger.note("> Test: extract without matching keywords")
    extractor = QueryFilterExtractor()
    specs = [SITE_FILTER, LANG_FILTER, INDEX_FILTER]
    res = extractor.extract("  plain query text ", specs)
    assert res.text == "plain query text"
    assert res.filters == []
    assert res.language is None
    assert res.indices is None
    assert res.block_grouping is False
    logger.success("  PASSED")


def test_extract_skips_whitespace_after_colon():
    logger.note("> Test: whitespace after colon is skipped")
    extractor = QueryFilterExtractor()
    res = extractor.extract("hello site:   wikipedia.org   world", [SITE_FILTER])
    assert res.filters == [("target_site", "wikipedia.org")]
    assert res.text == "hello    world"
    logger.success("  PASSED")


def test_extract_first_occurrence_only():
    logger.note("> Test: only first occurrence is removed")
    extractor = QueryFilterExtractor()
    res = extractor.extract("site:a.org foo site:b.org", [SITE_FILTER])
    assert res.filters == [("target_site", "a.org")]
    assert res.text == "foo site:b.org"
    logger.success("  PASSED")


def test_extract_block_grouping():
    logger.note("> Test: block_grouping")
    extractor = QueryFilterExtractor()
    blocking_site = InlineFilterSpec(
        keyword="site", field="warc_target_hostname.raw", block_grouping=True
    )
    res = extractor.extract("test site:example.com", [blocking_site, LANG_FILTER])
    assert res.block_grouping is True
    assert res.text == "test"
    res = extractor.extract("test", [blocking_site])
    assert res.block_grouping is False
    logger.success("  PASSED")


def test_extract_multiple_specs_in_config_order():
    logger.note("> Test: multiple specs")
    extractor = QueryFilterExtractor()
    specs = [SITE_FILTER, LANG_FILTER, INDEX_FILTER]
    res = extractor.extract("lang:fr #index:cw12 recherche site:le.fr", specs)
    assert res.text == "recherche"
    assert res.filters == [("target_site", "le.fr")]
    assert res.language == "fr"
    assert res.indices == ["cw12"]
    logger.success("  PASSED")


def test_extract_filter_at_end_without_value():
    logger.note("> Test: keyword at the end without value")
    extractor = QueryFilterExtractor()
    res = extractor.extract("test site:", [SITE_FILTER])
    assert res.text == "test"
    assert res.filters == []
    logger.success("  PASSED")


def test_extract_unknown_meta_field():
    logger.note("> Test: unknown meta field is stripped without effect")
    extractor = QueryFilterExtractor()
    spec = InlineFilterSpec(keyword="debug", field="#debug")
    res = extractor.extract("debug:on test", [spec])
    assert res.text == "test"
    assert res.filters == []
    assert res.indices is None
    logger.success("  PASSED")


if __name__ == "__main__":
    test_localize_field()
    test_extract_site_filter()
    test_extract_index_override()
    test_extract_language_override()
    test_extract_no_match()
    test_extract_skips_whitespace_after_colon()
    test_extract_first_occurrence_only()
    test_extract_block_grouping()
    test_extract_multiple_specs_in_config_order()
    test_extract_filter_at_end_without_value()
    test_extract_unknown_meta_field()
    logger.success("\n✓ All filter tests passed")

    # python -m tests.webpages.test_filters
