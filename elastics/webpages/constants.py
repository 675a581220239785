from typing import Literal

SEARCH_MODE = Literal["simple", "phrase"]

# languages and indices
DEFAULT_LANGUAGE = "en"
LANGUAGE_FIELD = "lang"
INDEX_SELECTOR = "#index"
META_FIELD_PREFIX = "#"

# source fields
HOSTNAME_FIELD = "warc_target_hostname"
HOSTNAME_EXACT_FIELD = "warc_target_hostname.raw"
TREC_ID_FIELD = "warc_trec_id"
TARGET_URI_FIELD = "warc_target_uri"
PAGE_RANK_FIELD = "page_rank"
SPAM_RANK_FIELD = "spam_rank"
TITLE_FIELD_TEMPLATE = "title_lang.%lang%"
BODY_FIELD_TEMPLATE = "body_lang.%lang%"
META_DESC_FIELD_TEMPLATE = "meta_desc_lang.%lang%"
SOURCE_FIELD_TEMPLATES = [
    *[TREC_ID_FIELD, HOSTNAME_FIELD, TARGET_URI_FIELD],
    *[PAGE_RANK_FIELD, SPAM_RANK_FIELD],
    *[TITLE_FIELD_TEMPLATE, BODY_FIELD_TEMPLATE, META_DESC_FIELD_TEMPLATE],
]

# serp
SNIPPET_LENGTH = 400
TITLE_LENGTH = 70
RESULTS_PER_PAGE = 10

# simple search
RESCORE_WINDOW = 400
SIMPLE_NODE_LIMIT = 200000
PRE_QUERY_WEIGHT = 0.1
RESCORE_QUERY_WEIGHT = 1.0
RESCORE_MODE = "total"
RESCORE_MINIMUM_SHOULD_MATCH = "30%"
HOSTNAME_BOOST = 20.0
WIKIPEDIA_HOST_SUFFIX = ".wikipedia.org"
PRE_QUERY_FLAGS = ["AND", "OR", "NOT", "PHRASE", "WHITESPACE"]
RESCORE_QUERY_FLAGS = ["AND", "OR", "NOT", "PHRASE", "PREFIX", "WHITESPACE"]

# field defaults
FIELD_BOOST = 1.0
PROXIMITY_SLOP = 1
PROXIMITY_BOOST = 1.0

# phrase search
PHRASE_SLOP = 0
PHRASE_MAX_SLOP = 2
PHRASE_NODE_LIMIT = 10000

# truncation
TRUNCATE_MIN_RATIO = 0.6

# highlight
HIGHLIGHT_ENCODER = "html"
HIGHLIGHT_FRAGMENTS = 1
