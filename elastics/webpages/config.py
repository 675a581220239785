"""
Search Configuration

Immutable configuration objects for webpage search, built once from the
`serp` and `search` sections of configs/envs.json and shared read-only by
all requests.

Missing or malformed optional values fall back to the defaults in
elastics/webpages/constants.py. Falling back is logged but never raised.
"""

from dataclasses import dataclass
from tclogger import logger
from typing import Optional, Union

from elastics.webpages.constants import DEFAULT_LANGUAGE, LANGUAGE_FIELD
from elastics.webpages.constants import HOSTNAME_FIELD, HOSTNAME_EXACT_FIELD
from elastics.webpages.constants import SNIPPET_LENGTH, TITLE_LENGTH
from elastics.webpages.constants import RESULTS_PER_PAGE
from elastics.webpages.constants import RESCORE_WINDOW, SIMPLE_NODE_LIMIT
from elastics.webpages.constants import FIELD_BOOST, PROXIMITY_SLOP, PROXIMITY_BOOST
from elastics.webpages.constants import PHRASE_SLOP, PHRASE_MAX_SLOP
from elastics.webpages.constants import PHRASE_NODE_LIMIT


def is_number(val) -> bool:
    return isinstance(val, (int, float)) and not isinstance(val, bool)


def get_number(
    envs: dict,
    key: str,
    default: Union[int, float, None],
    min_value: Union[int, float] = None,
    as_int: bool = False,
) -> Union[int, float, None]:
    val = envs.get(key, None)
    if val is None:
        return default
    if not is_number(val) or (min_value is not None and val < min_value):
        logger.warn(f"× Invalid config `{key}`: {val!r}, use default: {default}")
        return default
    return int(val) if as_int else float(val)


def get_int(envs: dict, key: str, default: int, min_value: int = 0) -> int:
    return get_number(envs, key, default, min_value=min_value, as_int=True)


def get_float(envs: dict, key: str, default: Optional[float]) -> Optional[float]:
    return get_number(envs, key, default)


def get_bool(envs: dict, key: str, default: bool = False) -> bool:
    val = envs.get(key, None)
    if val is None:
        return default
    if not isinstance(val, bool):
        logger.warn(f"× Invalid config `{key}`: {val!r}, use default: {default}")
        return default
    return val


def get_str(envs: dict, key: str, default: Optional[str]) -> Optional[str]:
    val = envs.get(key, None)
    if val is None:
        return default
    if not isinstance(val, str):
        logger.warn(f"× Invalid config `{key}`: {val!r}, use default: {default}")
        return default
    return val


def get_str_list(envs: dict, key: str) -> tuple[str, ...]:
    val = envs.get(key, None) or []
    if isinstance(val, str):
        val = [val]
    res = []
    for item in val:
        if isinstance(item, str) and item and item not in res:
            res.append(item)
    return tuple(res)


def get_dict_list(envs: dict, key: str) -> list[dict]:
    val = envs.get(key, None) or []
    if not isinstance(val, list):
        logger.warn(f"× Invalid config `{key}`: expect list, got {type(val)}")
        return []
    return [item for item in val if isinstance(item, dict)]


@dataclass(frozen=True)
class FieldSpec:
    """Scoring settings of one searchable field.

    Attributes:
        name: Field name template, may contain the `%lang%` placeholder.
        boost: Field boost in full-text matching.
        proximity_matching: Whether to add a sloppy phrase match on this field.
        proximity_slop: Slop of the proximity phrase match.
        proximity_boost: Boost of the proximity phrase match (halved when used).
    """

    name: str
    boost: float = FIELD_BOOST
    proximity_matching: bool = False
    proximity_slop: int = PROXIMITY_SLOP
    proximity_boost: float = PROXIMITY_BOOST

    @classmethod
    def from_dict(cls, d: dict) -> "FieldSpec":
        return cls(
            name=get_str(d, "name", "") or "",
            boost=get_float(d, "boost", FIELD_BOOST),
            proximity_matching=get_bool(d, "proximity_matching", False),
            proximity_slop=get_int(d, "proximity_slop", PROXIMITY_SLOP),
            proximity_boost=get_float(d, "proximity_boost", PROXIMITY_BOOST),
        )


@dataclass(frozen=True)
class InlineFilterSpec:
    """A `keyword:value` directive recognized inside the query text.

    Attributes:
        keyword: Keyword before the colon, e.g. "site".
        field: Target field of the equality filter. Values starting with "#"
            are meta directives (e.g. "#index"), and the language field
            overrides the search language.
        block_grouping: Whether a match disables same-host grouping.
    """

    keyword: str
    field: Optional[str] = None
    block_grouping: bool = False

    @classmethod
    def from_dict(cls, d: dict) -> "InlineFilterSpec":
        return cls(
            keyword=get_str(d, "keyword", "") or "",
            field=get_str(d, "field", None),
            block_grouping=get_bool(d, "block_grouping", False),
        )


@dataclass(frozen=True)
class RangeFilterSpec:
    name: str
    gt: Optional[float] = None
    gte: Optional[float] = None
    lt: Optional[float] = None
    lte: Optional[float] = None
    negate: bool = False

    @classmethod
    def from_dict(cls, d: dict) -> "RangeFilterSpec":
        return cls(
            name=get_str(d, "name", "") or "",
            gt=get_float(d, "gt", None),
            gte=get_float(d, "gte", None),
            lt=get_float(d, "lt", None),
            lte=get_float(d, "lte", None),
            negate=get_bool(d, "negate", False),
        )

    def bounds(self) -> dict[str, float]:
        bounds = {"gt": self.gt, "gte": self.gte, "lt": self.lt, "lte": self.lte}
        return {op: val for op, val in bounds.items() if val is not None}


@dataclass(frozen=True)
class SearchConfig:
    """Process-wide search settings, loaded once before serving."""

    default_language: str = DEFAULT_LANGUAGE
    language_field: str = LANGUAGE_FIELD
    hostname_field: str = HOSTNAME_FIELD
    hostname_exact_field: str = HOSTNAME_EXACT_FIELD
    indices: tuple[str, ...] = ()
    default_indices: tuple[str, ...] = ()
    timeout: Optional[str] = None
    # serp
    snippet_length: int = SNIPPET_LENGTH
    title_length: int = TITLE_LENGTH
    results_per_page: int = RESULTS_PER_PAGE
    # simple search
    rescore_window: int = RESCORE_WINDOW
    simple_node_limit: int = SIMPLE_NODE_LIMIT
    main_fields: tuple[FieldSpec, ...] = ()
    query_filters: tuple[InlineFilterSpec, ...] = ()
    range_filters: tuple[RangeFilterSpec, ...] = ()
    # phrase search
    phrase_slop: int = PHRASE_SLOP
    phrase_max_slop: int = PHRASE_MAX_SLOP
    phrase_node_limit: int = PHRASE_NODE_LIMIT
    phrase_fields: tuple[FieldSpec, ...] = ()

    @classmethod
    def from_envs(cls, search_envs: dict = None, serp_envs: dict = None):
        search_envs = search_envs or {}
        serp_envs = serp_envs or {}
        simple_envs = search_envs.get("default_simple", None) or {}
        phrase_envs = search_envs.get("phrase_search", None) or {}

        indices = get_str_list(search_envs, "indices")
        default_indices = get_str_list(search_envs, "default_indices")
        if not default_indices and indices:
            default_indices = indices[:1]

        return cls(
            default_language=get_str(search_envs, "default_language", DEFAULT_LANGUAGE),
            language_field=get_str(search_envs, "language_field", LANGUAGE_FIELD),
            hostname_field=get_str(search_envs, "hostname_field", HOSTNAME_FIELD),
            hostname_exact_field=get_str(
                search_envs, "hostname_exact_field", HOSTNAME_EXACT_FIELD
            ),
            indices=indices,
            default_indices=default_indices,
            timeout=get_str(search_envs, "timeout", None),
            snippet_length=get_int(serp_envs, "snippet_length", SNIPPET_LENGTH, 1),
            title_length=get_int(serp_envs, "title_length", TITLE_LENGTH, 1),
            results_per_page=get_int(
                serp_envs, "results_per_page", RESULTS_PER_PAGE, 1
            ),
            rescore_window=get_int(simple_envs, "rescore_window", RESCORE_WINDOW, 1),
            simple_node_limit=get_int(
                simple_envs, "node_limit", SIMPLE_NODE_LIMIT, 1
            ),
            main_fields=tuple(
                FieldSpec.from_dict(d) for d in get_dict_list(simple_envs, "main_fields")
            ),
            query_filters=tuple(
                InlineFilterSpec.from_dict(d)
                for d in get_dict_list(simple_envs, "query_filters")
            ),
            range_filters=tuple(
                RangeFilterSpec.from_dict(d)
                for d in get_dict_list(simple_envs, "range_filters")
            ),
            phrase_slop=get_int(phrase_envs, "slop", PHRASE_SLOP),
            phrase_max_slop=get_int(phrase_envs, "max_slop", PHRASE_MAX_SLOP),
            phrase_node_limit=get_int(phrase_envs, "node_limit", PHRASE_NODE_LIMIT, 1),
            phrase_fields=tuple(
                FieldSpec.from_dict(d) for d in get_dict_list(phrase_envs, "fields")
            ),
        )

    def resolve_indices(self, requested: list[str] = None) -> list[str]:
        """Ordered, de-duplicated active indices.

        Requested ids not in the allowed `indices` are dropped. When nothing
        remains, the configured default indices are used.
        """
        resolved = []
        for index in requested or []:
            if not isinstance(index, str):
                continue
            index = index.strip()
            if not index or index in resolved:
                continue
            if self.indices and index not in self.indices:
                logger.warn(f"× Unknown index: [{index}]")
                continue
            resolved.append(index)
        if not resolved:
            resolved = list(self.default_indices)
        return resolved

    def resolve_slop(self, slop: int = None) -> int:
        """Out-of-range slop falls back to the default slop, never to the bounds."""
        if not is_number(slop) or slop < 0 or slop > self.phrase_max_slop:
            slop = self.phrase_slop
        return min(max(0, int(slop)), self.phrase_max_slop)

    def resolve_from(self, from_: int = None) -> int:
        if not is_number(from_) or from_ < 1:
            return 1
        return int(from_)

    def resolve_size(self, size: int = None) -> int:
        if not is_number(size) or size < 1:
            return self.results_per_page
        return int(size)
