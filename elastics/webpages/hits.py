"""
Webpage Hits Parsing

Turns raw Elasticsearch hits into presentation-ready SearchResults:
- snippet: single highlighted body fragment, else meta description,
  else the beginning of the body
- title: single highlighted title fragment, else the raw title
- grouping: consecutive hits of the same host are suggested for grouping,
  and the last hit of each group gets a "more from this host" marker

Grouping is computed in two sequential passes over the ordered hits, see
`suggest_grouping()` and `mark_more_suggested()`.
"""

from tclogger import logger, dict_to_str
from typing import Optional

from converters.query.field import localize_field
from converters.highlight.snippet import truncate_snippet, escape_html, TextCleanser
from elastics.structure import get_es_source_val
from elastics.webpages.config import SearchConfig
from elastics.webpages.constants import TITLE_FIELD_TEMPLATE, BODY_FIELD_TEMPLATE
from elastics.webpages.constants import META_DESC_FIELD_TEMPLATE
from elastics.webpages.constants import TREC_ID_FIELD, TARGET_URI_FIELD
from elastics.webpages.constants import PAGE_RANK_FIELD, SPAM_RANK_FIELD
from elastics.webpages.models import Query, SearchResult


def suggest_grouping(hosts: list[str], grouping_blocked: bool = False) -> list[bool]:
    """A hit is suggested for grouping if its host equals the previous hit's host.

    Example:
        - ["a", "a", "b", "b", "b", "c"] -> [F, T, F, T, T, F]
    """
    flags = []
    previous_host = None
    for host in hosts:
        flags.append(not grouping_blocked and host == previous_host)
        previous_host = host
    return flags


def mark_more_suggested(grouping_flags: list[bool]) -> list[bool]:
    """Mark the element before each end of a grouping run.

    The last element is marked iff it is itself inside a run.

    Example:
        - [F, T, F, T, T, F] -> [F, T, F, F, T, F]
        - [F, T, T] -> [F, F, T]
    """
    more_flags = [False] * len(grouping_flags)
    prev_in_group = False
    for i, in_group in enumerate(grouping_flags):
        if prev_in_group and not in_group:
            more_flags[max(0, i - 1)] = True
        prev_in_group = in_group
    if more_flags:
        more_flags[-1] = prev_in_group
    return more_flags


class WebpageHitsParser:
    def __init__(self, config: SearchConfig):
        self.config = config
        self.cleanser = TextCleanser()

    def get_source_str(self, source: dict, field: str) -> str:
        val = get_es_source_val(source, field)
        if val is None:
            return ""
        if isinstance(val, list):
            val = " ".join(str(v) for v in val if v is not None)
        return str(val)

    def get_source_num(self, source: dict, field: str, num_type: type = float):
        val = get_es_source_val(source, field)
        try:
            return num_type(val) if val is not None else None
        except (TypeError, ValueError):
            logger.warn(f"× Invalid number of `{field}`: {val!r}")
            return None

    def get_single_highlight(self, hit: dict, field: str) -> Optional[str]:
        fragments = (hit.get("highlight", None) or {}).get(field, None)
        if fragments and len(fragments) == 1:
            return fragments[0]
        return None

    def select_snippet(self, hit: dict, source: dict, language: str) -> str:
        body_field = localize_field(BODY_FIELD_TEMPLATE, language)
        snippet = self.get_single_highlight(hit, body_field) or ""
        if not snippet:
            meta_desc = self.get_source_str(
                source, localize_field(META_DESC_FIELD_TEMPLATE, language)
            )
            if meta_desc:
                text = meta_desc
            else:
                text = self.get_source_str(source, body_field)
            snippet = escape_html(truncate_snippet(text, self.config.snippet_length))
        return self.cleanser.cleanse_all(snippet, True)

    def select_title(self, hit: dict, source: dict, language: str) -> str:
        title_field = localize_field(TITLE_FIELD_TEMPLATE, language)
        title = self.get_single_highlight(hit, title_field)
        if title is None:
            raw_title = self.get_source_str(source, title_field)
            title = escape_html(truncate_snippet(raw_title, self.config.title_length))
        return self.cleanser.cleanse_all(title, True)

    def get_total_hits(self, res_dict: dict) -> int:
        total = (res_dict.get("hits", None) or {}).get("total", 0)
        if isinstance(total, dict):
            total = total.get("value", 0)
        return total or 0

    def parse_hit(self, hit: dict, language: str) -> dict:
        source = hit.get("_source", None) or {}
        return {
            "score": hit.get("_score", None),
            "document_id": hit.get("_id", "") or "",
            "index": hit.get("_index", "") or "",
            "trec_id": self.get_source_str(source, TREC_ID_FIELD),
            "title": self.select_title(hit, source, language),
            "target_hostname": self.get_source_str(source, self.config.hostname_field),
            "target_uri": self.get_source_str(source, TARGET_URI_FIELD),
            "snippet": self.select_snippet(hit, source, language),
            "page_rank": self.get_source_num(source, PAGE_RANK_FIELD, float),
            "spam_rank": self.get_source_num(source, SPAM_RANK_FIELD, int),
            "explanation": hit.get("_explanation", None),
        }

    def parse(
        self, res_dict: dict, query: Query, verbose: bool = False
    ) -> tuple[list[SearchResult], int]:
        """Returns (results in backend order, total hits)."""
        raw_hits = (res_dict.get("hits", None) or {}).get("hits", None) or []
        hit_infos = [self.parse_hit(hit, query.language) for hit in raw_hits]

        hosts = [hit_info["target_hostname"] for hit_info in hit_infos]
        grouping_flags = suggest_grouping(hosts, query.grouping_blocked)
        more_flags = mark_more_suggested(grouping_flags)

        results = [
            SearchResult(
                **hit_info,
                is_grouping_suggested=is_grouping_suggested,
                more_suggested=more_suggested,
            )
            for hit_info, is_grouping_suggested, more_suggested in zip(
                hit_infos, grouping_flags, more_flags
            )
        ]
        total_hits = self.get_total_hits(res_dict)
        if verbose:
            log_info = {
                "return_hits": len(results),
                "total_hits": total_hits,
                "took": res_dict.get("took", -1),
                "timed_out": res_dict.get("timed_out", False),
            }
            logger.okay(dict_to_str(log_info), indent=2)
        return results, total_hits
