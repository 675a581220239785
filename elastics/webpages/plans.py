"""
Query Plans for Webpage Search

A plan compiles one request into an Elasticsearch search body, in two stages:
- pre-query: cheap query run against the full index
- rescore query: expensive query run only on the top pre-query hits

Variants:
- SimpleSearchPlan: AND-ed full-text pre-query, rescored by field boosts,
  proximity phrases and host boosts.
- PhraseSearchPlan: exact (or sloppy) phrase pre-query, collapsed to one hit
  per host. Field collapsing and rescoring are incompatible, so phrase plans
  never rescore.
"""

from dataclasses import dataclass, field
from typing import Optional

from converters.query.field import localize_field, boost_field
from elastics.structure import get_highlight_settings
from elastics.structure import set_timeout, set_terminate_after, set_explain
from elastics.webpages.config import SearchConfig, FieldSpec
from elastics.webpages.constants import SOURCE_FIELD_TEMPLATES
from elastics.webpages.constants import TITLE_FIELD_TEMPLATE, BODY_FIELD_TEMPLATE
from elastics.webpages.constants import PRE_QUERY_WEIGHT, RESCORE_QUERY_WEIGHT
from elastics.webpages.constants import RESCORE_MODE, RESCORE_MINIMUM_SHOULD_MATCH
from elastics.webpages.constants import PRE_QUERY_FLAGS, RESCORE_QUERY_FLAGS
from elastics.webpages.constants import HOSTNAME_BOOST, WIKIPEDIA_HOST_SUFFIX
from elastics.webpages.models import Query


@dataclass
class CompiledPlan:
    """Search request compiled for one pipeline run, consumed once by the backend.

    Attributes:
        indices: Indices to search.
        pre_query: Query DSL dict of the cheap stage.
        rescore_query: Query DSL dict of the expensive stage, or None.
        collapse_field: Field to collapse hits on, or None.
        highlight_fields: Highlighted field -> fragment size.
        terminate_after: Max docs collected per shard.
    """

    indices: list[str]
    pre_query: dict
    terminate_after: int
    rescore_query: Optional[dict] = None
    collapse_field: Optional[str] = None
    highlight_fields: dict[str, int] = field(default_factory=dict)
    source_fields: list[str] = field(default_factory=list)
    rescore_window: int = 0
    from_: int = 1
    size: int = 10
    explain: bool = False
    timeout: Optional[str] = None

    def __post_init__(self):
        if self.rescore_query is not None and self.collapse_field is not None:
            raise ValueError("rescore_query and collapse_field are exclusive")

    def construct_rescore(self) -> dict:
        return {
            "window_size": self.rescore_window,
            "query": {
                "rescore_query": self.rescore_query,
                "query_weight": PRE_QUERY_WEIGHT,
                "rescore_query_weight": RESCORE_QUERY_WEIGHT,
                "score_mode": RESCORE_MODE,
            },
        }

    def to_search_body(self) -> dict:
        search_body = {
            "query": self.pre_query,
            "from": self.from_,
            "size": self.size,
            "track_total_hits": True,
        }
        if self.source_fields:
            search_body["_source"] = self.source_fields
        if self.highlight_fields:
            search_body["highlight"] = get_highlight_settings(self.highlight_fields)
        if self.rescore_query is not None:
            search_body["rescore"] = self.construct_rescore()
        if self.collapse_field is not None:
            search_body["collapse"] = {"field": self.collapse_field}
        search_body = set_terminate_after(search_body, self.terminate_after)
        search_body = set_timeout(search_body, timeout=self.timeout)
        search_body = set_explain(search_body, explain=self.explain)
        return search_body


class SearchPlan:
    """Steps shared by all plan variants.

    Variants override `build_pre_query`, `build_rescore_query`,
    `highlight_spec`, `node_limit` and `collapse_field`.
    """

    def __init__(self, config: SearchConfig):
        self.config = config

    def localize(self, template: str, query: Query) -> str:
        return localize_field(template, query.language)

    def construct_simple_query_string(
        self,
        query: Query,
        fields: list[FieldSpec],
        flags: list[str],
        use_boost: bool = False,
        minimum_should_match: str = None,
    ) -> dict:
        if use_boost:
            fields_strs = [
                boost_field(self.localize(spec.name, query), spec.boost)
                for spec in fields
            ]
        else:
            fields_strs = [self.localize(spec.name, query) for spec in fields]
        simple_query_string = {
            "query": query.text,
            "fields": fields_strs,
            "default_operator": "and",
            "flags": "|".join(flags),
        }
        if minimum_should_match:
            simple_query_string["minimum_should_match"] = minimum_should_match
        return {"simple_query_string": simple_query_string}

    def construct_term_filters(self, query: Query) -> list[dict]:
        """Inline equality filters, followed by the mandatory language filter."""
        term_filters = [{"term": {field: value}} for field, value in query.filters]
        term_filters.append({"term": {self.config.language_field: query.language}})
        return term_filters

    def construct_range_filters(self, query: Query) -> tuple[list[dict], list[dict]]:
        """Returns (filter clauses, must_not clauses)."""
        filter_clauses = []
        must_not_clauses = []
        for spec in self.config.range_filters:
            bounds = spec.bounds()
            if not spec.name or not bounds:
                continue
            range_clause = {"range": {self.localize(spec.name, query): bounds}}
            if spec.negate:
                must_not_clauses.append(range_clause)
            else:
                filter_clauses.append(range_clause)
        return filter_clauses, must_not_clauses

    def add_filters(self, bool_query: dict, query: Query) -> dict:
        range_filters, range_must_nots = self.construct_range_filters(query)
        filter_clauses = self.construct_term_filters(query) + range_filters
        bool_query.setdefault("filter", []).extend(filter_clauses)
        if range_must_nots:
            bool_query.setdefault("must_not", []).extend(range_must_nots)
        return bool_query

    def construct_host_boosts(self, query: Query) -> list[dict]:
        host_booster = {
            "match": {
                self.config.hostname_field: {
                    "query": query.text,
                    "boost": HOSTNAME_BOOST,
                }
            }
        }
        wiki_booster = {
            "term": {
                self.config.hostname_exact_field: f"{query.language}{WIKIPEDIA_HOST_SUFFIX}"
            }
        }
        return [host_booster, wiki_booster]

    def source_fields(self, query: Query) -> list[str]:
        return [self.localize(template, query) for template in SOURCE_FIELD_TEMPLATES]

    def build_pre_query(self, query: Query) -> dict:
        raise NotImplementedError

    def build_rescore_query(self, query: Query) -> Optional[dict]:
        return None

    def highlight_spec(self, query: Query) -> dict[str, int]:
        raise NotImplementedError

    def node_limit(self) -> int:
        raise NotImplementedError

    def collapse_field(self) -> Optional[str]:
        return None

    def compile(
        self, query: Query, from_: int = 1, size: int = None, explain: bool = False
    ) -> CompiledPlan:
        return CompiledPlan(
            indices=list(query.indices),
            pre_query=self.build_pre_query(query),
            rescore_query=self.build_rescore_query(query),
            collapse_field=self.collapse_field(),
            highlight_fields=self.highlight_spec(query),
            terminate_after=self.node_limit(),
            source_fields=self.source_fields(query),
            rescore_window=self.config.rescore_window,
            from_=from_,
            size=size or self.config.results_per_page,
            explain=explain,
            timeout=self.config.timeout,
        )


class SimpleSearchPlan(SearchPlan):
    def build_pre_query(self, query: Query) -> dict:
        """Example of output:
        ```json
        {
            "bool": {
                "filter": [
                    {"term": {"warc_target_hostname.raw": "example.com"}},
                    {"term": {"lang": "en"}},
                    {"range": {"body_length": {"gte": 600.0}}}
                ],
                "must": [
                    {
                        "simple_query_string": {
                            "query": "hello world",
                            "fields": ["title_lang.en", "body_lang.en"],
                            "default_operator": "and",
                            "flags": "AND|OR|NOT|PHRASE|WHITESPACE"
                        }
                    }
                ],
                "must_not": [{"range": {"spam_rank": {"lt": 70.0}}}]
            }
        }
        ```
        """
        bool_query = {}
        self.add_filters(bool_query, query)
        if not query.is_empty():
            search_query = self.construct_simple_query_string(
                query, self.config.main_fields, flags=PRE_QUERY_FLAGS
            )
        else:
            search_query = {"match_all": {}}
        bool_query["must"] = [search_query]
        return {"bool": bool_query}

    def construct_proximity_queries(self, query: Query) -> list[dict]:
        proximity_queries = []
        for spec in self.config.main_fields:
            if not spec.proximity_matching:
                continue
            proximity_query = {
                "match_phrase": {
                    self.localize(spec.name, query): {
                        "query": query.text,
                        "slop": spec.proximity_slop,
                        "boost": spec.proximity_boost / 2.0,
                    }
                }
            }
            proximity_queries.append(proximity_query)
        return proximity_queries

    def build_rescore_query(self, query: Query) -> dict:
        simple_query = self.construct_simple_query_string(
            query,
            self.config.main_fields,
            flags=RESCORE_QUERY_FLAGS,
            use_boost=True,
            minimum_should_match=RESCORE_MINIMUM_SHOULD_MATCH,
        )
        should_clauses = self.construct_proximity_queries(query)
        should_clauses.extend(self.construct_host_boosts(query))
        return {"bool": {"must": [simple_query], "should": should_clauses}}

    def highlight_spec(self, query: Query) -> dict[str, int]:
        return {
            self.localize(TITLE_FIELD_TEMPLATE, query): self.config.title_length,
            self.localize(BODY_FIELD_TEMPLATE, query): self.config.snippet_length,
        }

    def node_limit(self) -> int:
        return self.config.simple_node_limit


class PhraseSearchPlan(SearchPlan):
    def __init__(self, config: SearchConfig, slop: int = None):
        super().__init__(config)
        self.slop = config.resolve_slop(slop)

    def construct_phrase_queries(self, query: Query) -> tuple[list[dict], list[str]]:
        """Returns (match_phrase clauses, localized phrase field names)."""
        phrase_queries = []
        phrase_fields = []
        for spec in self.config.phrase_fields:
            field_name = self.localize(spec.name, query)
            phrase_query = {
                "match_phrase": {
                    field_name: {
                        "query": query.text,
                        "slop": self.slop,
                        "boost": spec.boost,
                    }
                }
            }
            phrase_queries.append(phrase_query)
            phrase_fields.append(field_name)
        return phrase_queries, phrase_fields

    def construct_recall_queries(
        self, query: Query, excluded_fields: list[str]
    ) -> list[dict]:
        """Plain matches on simple-search fields not already phrase-matched."""
        recall_queries = []
        for spec in self.config.main_fields:
            field_name = self.localize(spec.name, query)
            if field_name in excluded_fields:
                continue
            match_query = {
                "match": {field_name: {"query": query.text, "boost": spec.boost}}
            }
            recall_queries.append(match_query)
        return recall_queries

    def build_pre_query(self, query: Query) -> dict:
        bool_query = {}
        if query.is_empty():
            bool_query["must"] = [{"match_all": {}}]
        else:
            phrase_queries, phrase_fields = self.construct_phrase_queries(query)
            bool_query["must"] = phrase_queries or [{"match_all": {}}]
            should_clauses = self.construct_recall_queries(query, phrase_fields)
            should_clauses.extend(self.construct_host_boosts(query))
            bool_query["should"] = should_clauses
        self.add_filters(bool_query, query)
        return {"bool": bool_query}

    def highlight_spec(self, query: Query) -> dict[str, int]:
        return {self.localize(BODY_FIELD_TEMPLATE, query): self.config.snippet_length}

    def node_limit(self) -> int:
        return self.config.phrase_node_limit

    def collapse_field(self) -> str:
        return self.config.hostname_exact_field
