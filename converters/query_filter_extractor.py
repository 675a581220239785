from dataclasses import dataclass, field
from tclogger import logger
from typing import Optional

from elastics.webpages.config import InlineFilterSpec
from elastics.webpages.constants import LANGUAGE_FIELD, INDEX_SELECTOR
from elastics.webpages.constants import META_FIELD_PREFIX


@dataclass
class ExtractedFilters:
    """Output of QueryFilterExtractor.extract().

    Attributes:
        text: Query text with matched `keyword:value` tokens removed.
        filters: Equality filters as (field, value) pairs, in config order.
        language: Language override, if a language filter matched.
        indices: Index override, if the index selector matched.
        block_grouping: Whether any matched filter blocks grouping.
    """

    text: str
    filters: list[tuple[str, str]] = field(default_factory=list)
    language: Optional[str] = None
    indices: Optional[list[str]] = None
    block_grouping: bool = False


class QueryFilterExtractor:
    def __init__(
        self,
        language_field: str = LANGUAGE_FIELD,
        index_selector: str = INDEX_SELECTOR,
    ):
        self.language_field = language_field
        self.index_selector = index_selector

    def find_filter_span(self, text: str, keyword: str) -> tuple[int, int, str]:
        """Locate the first `keyword:value` token.

        Whitespace right after the colon is skipped, then the value runs up to
        the next whitespace or the end of text.

        Examples:
            - ("site:example.com test", "site") -> (0, 16, "example.com")
            - ("test site: a.org b", "site") -> (5, 16, "a.org")
            - ("test", "site") -> (-1, -1, "")
        """
        start = text.find(f"{keyword}:")
        if start == -1:
            return -1, -1, ""
        pos = start + len(keyword) + 1
        value_start = pos
        while pos < len(text) and text[pos].isspace():
            pos += 1
        while pos < len(text) and not text[pos].isspace():
            pos += 1
        value = text[value_start:pos].strip()
        return start, pos, value

    def split_indices(self, value: str) -> list[str]:
        indices = []
        for index in value.split(","):
            index = index.strip()
            if index and index not in indices:
                indices.append(index)
        return indices

    def apply_filter(self, spec: InlineFilterSpec, value: str, res: ExtractedFilters):
        target = spec.field
        if not target or not value:
            return
        if target == self.language_field:
            res.language = value
        elif target == self.index_selector:
            res.indices = self.split_indices(value)
        elif target.startswith(META_FIELD_PREFIX):
            logger.warn(f"× Unknown meta filter: [{target}]")
        else:
            res.filters.append((target, value))

    def extract(
        self,
        query: str,
        filter_specs: list[InlineFilterSpec],
        verbose: bool = False,
    ) -> ExtractedFilters:
        """Only the first occurrence of each keyword is removed.

        Examples:
            - "site:example.com test query"
                -> text: "test query", filters: [("target_site", "example.com")]
            - "#index:idx1,idx2 news"
                -> text: "news", indices: ["idx1", "idx2"]
        """
        res = ExtractedFilters(text=(query or "").strip())
        for spec in filter_specs:
            if not spec.keyword:
                continue
            start, end, value = self.find_filter_span(res.text, spec.keyword)
            if start == -1:
                continue
            if spec.block_grouping:
                res.block_grouping = True
            res.text = (res.text[:start] + res.text[end:]).strip()
            self.apply_filter(spec, value, res)
            logger.mesg(
                f"  * [{spec.keyword}] -> [{spec.field}]: [{value}]", verbose=verbose
            )
        return res


if __name__ == "__main__":
    extractor = QueryFilterExtractor()
    filter_specs = [
        InlineFilterSpec(keyword="site", field="warc_target_hostname.raw"),
        InlineFilterSpec(keyword="lang", field="lang"),
        InlineFilterSpec(keyword="#index", field="#index"),
    ]
    queries = [
        "site:example.com test query",
        "#index:cw12,cc1511 news lang:de",
        "hello site:  wikipedia.org   world",
    ]
    for query in queries:
        logger.line(f"{query}")
        res = extractor.extract(query, filter_specs, verbose=True)
        logger.success(res)

    # python -m converters.query_filter_extractor
