import time

from tclogger import logger, logstr, dict_to_str
from typing import Union

from converters.query_filter_extractor import QueryFilterExtractor
from elastics.webpages.config import SearchConfig
from elastics.webpages.constants import SEARCH_MODE
from elastics.webpages.errors import ValidationFailure
from elastics.webpages.hits import WebpageHitsParser
from elastics.webpages.models import Query
from elastics.webpages.plans import SearchPlan, SimpleSearchPlan, PhraseSearchPlan


class WebpageSearcher:
    def __init__(self, config: SearchConfig, backend):
        """
        - config:
            immutable search settings, see `SearchConfig.from_envs()`
        - backend:
            search backend handle with `execute(plan, context=...) -> dict`,
            e.g. `elastics.client.ElasticSearchClient`
        """
        self.config = config
        self.backend = backend
        self.filter_extractor = QueryFilterExtractor(
            language_field=config.language_field
        )
        self.hit_parser = WebpageHitsParser(config)

    def validate_query(self, query: str) -> str:
        if not isinstance(query, str) or not query.strip():
            raise ValidationFailure("Empty search query")
        return query.strip()

    def build_query(
        self, query: str, indices: list[str] = None, verbose: bool = False
    ) -> Query:
        """Extract inline filters first, as they may override language and indices."""
        extracted = self.filter_extractor.extract(
            query, self.config.query_filters, verbose=verbose
        )
        if extracted.indices is not None:
            requested_indices = extracted.indices
        else:
            requested_indices = indices
        return Query(
            text=extracted.text,
            language=extracted.language or self.config.default_language,
            indices=self.config.resolve_indices(requested_indices),
            filters=extracted.filters,
            grouping_blocked=extracted.block_grouping,
        )

    def run_plan(
        self,
        plan: SearchPlan,
        query: Query,
        from_: int = None,
        size: int = None,
        explain: bool = False,
        context: SEARCH_MODE = "simple",
        verbose: bool = False,
    ) -> dict:
        """Example of output:
        ```json
        {
            "meta": {
                "query_time": 42,
                "total_results": 1234,
                "indices": ["cw12"]
            },
            "results": [
                {
                    "score": 12.3,
                    "uuid": "0c8fd7f6-...",
                    "index": "cw12",
                    "trec_id": "clueweb12-0000tw-00-00000",
                    "target_hostname": "en.wikipedia.org",
                    "target_uri": "https://en.wikipedia.org/wiki/Search",
                    "page_rank": 1.2,
                    "spam_rank": 85,
                    "title": "<em>Search</em> - Wikipedia",
                    "snippet": "...",
                    "explanation": null
                },
                ...
            ]
        }
        ```
        """
        compiled_plan = plan.compile(
            query,
            from_=self.config.resolve_from(from_),
            size=self.config.resolve_size(size),
            explain=bool(explain),
        )
        logger.note(f"> [{context}] search:", end=" ", verbose=verbose)
        logger.mesg(
            f"[{logstr.file(query.text)}] ({query.language}) {query.indices}",
            verbose=verbose,
        )
        start_time = time.time()
        res_dict = self.backend.execute(compiled_plan, context=context)
        results, total_hits = self.hit_parser.parse(res_dict, query, verbose=verbose)
        query_time = round((time.time() - start_time) * 1000)
        return_res = {
            "meta": {
                "query_time": query_time,
                "total_results": total_hits,
                "indices": list(query.indices),
            },
            "results": [result.to_dict() for result in results],
        }
        logger.success(dict_to_str(return_res["meta"]), indent=2, verbose=verbose)
        return return_res

    def search(
        self,
        query: str,
        indices: list[str] = None,
        from_: int = None,
        size: int = None,
        explain: bool = False,
        verbose: bool = False,
    ) -> dict:
        query_text = self.validate_query(query)
        logger.enter_quiet(not verbose)
        try:
            search_query = self.build_query(query_text, indices, verbose=verbose)
            plan = SimpleSearchPlan(self.config)
            return_res = self.run_plan(
                plan,
                search_query,
                from_=from_,
                size=size,
                explain=explain,
                context="simple",
                verbose=verbose,
            )
        finally:
            logger.exit_quiet(not verbose)
        return return_res

    def phrase_search(
        self,
        query: str,
        indices: list[str] = None,
        from_: int = None,
        size: int = None,
        slop: Union[int, None] = None,
        explain: bool = False,
        verbose: bool = False,
    ) -> dict:
        query_text = self.validate_query(query)
        logger.enter_quiet(not verbose)
        try:
            search_query = self.build_query(query_text, indices, verbose=verbose)
            plan = PhraseSearchPlan(self.config, slop=slop)
            logger.mesg(f"  * slop: {plan.slop}", verbose=verbose)
            return_res = self.run_plan(
                plan,
                search_query,
                from_=from_,
                size=size,
                explain=explain,
                context="phrase",
                verbose=verbose,
            )
        finally:
            logger.exit_quiet(not verbose)
        return return_res


if __name__ == "__main__":
    from configs.envs import SEARCH_ENVS, SERP_ENVS, ELASTIC_ENVS
    from elastics.client import ElasticSearchClient

    config = SearchConfig.from_envs(SEARCH_ENVS, SERP_ENVS)
    backend = ElasticSearchClient(ELASTIC_ENVS).connect()
    searcher = WebpageSearcher(config, backend)
    res = searcher.search("site:en.wikipedia.org information retrieval", verbose=True)
    res = searcher.phrase_search("to be or not to be", slop=1, verbose=True)
    backend.close()

    # python -m elastics.webpages.searcher
