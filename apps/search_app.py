import argparse
import sys
import uvicorn

from contextlib import asynccontextmanager
from copy import deepcopy
from fastapi import FastAPI, Body, Query, HTTPException
from tclogger import TCLogger, dict_to_str
from typing import Optional, Union

from configs.envs import SEARCH_APP_ENVS, SEARCH_ENVS, SERP_ENVS, SECRETS
from configs.envs import ELASTIC_ENVS
from elastics.client import ElasticSearchClient
from elastics.webpages.config import SearchConfig
from elastics.webpages.constants import SEARCH_MODE
from elastics.webpages.errors import ValidationFailure, BackendFailure
from elastics.webpages.searcher import WebpageSearcher

logger = TCLogger()

FLAG_FALSE_VALUES = ["0", "false", "no", "off"]


def to_int(val: Union[int, str, None]) -> Optional[int]:
    """Lenient int parsing: malformed values become None, then the default."""
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, int):
        return val
    try:
        return int(str(val).strip())
    except ValueError:
        return None


def to_list(val: Union[list[str], str, None]) -> Optional[list[str]]:
    """Example: "cw12,cc1511" -> ["cw12", "cc1511"]"""
    if val is None:
        return None
    if isinstance(val, str):
        val = val.split(",")
    indices = []
    for item in val:
        indices.extend(str(item).split(","))
    return [index.strip() for index in indices if index.strip()] or None


def is_flag_set(val: Union[bool, str, None]) -> bool:
    """A flag is set by its presence, unless explicitly false."""
    if val is None:
        return False
    if isinstance(val, bool):
        return val
    return str(val).strip().lower() not in FLAG_FALSE_VALUES


class SearchApp:
    def __init__(self, app_envs: dict = {}, searcher: WebpageSearcher = None):
        self.title = app_envs.get("app_name")
        self.version = app_envs.get("version")
        self.app_envs = app_envs
        self.searcher = searcher or self.init_searcher()
        self.app = FastAPI(
            docs_url="/",
            title=self.title,
            version=self.version,
            swagger_ui_parameters={"defaultModelsExpandDepth": -1},
            lifespan=self.lifespan,
        )
        self.setup_routes()
        logger.success(f"> {self.title} - v{self.version}")

    def init_searcher(self) -> WebpageSearcher:
        elastic_env_name = self.app_envs.get("elastic_env_name", None)
        if elastic_env_name:
            elastic_envs = SECRETS[elastic_env_name]
        else:
            elastic_envs = ELASTIC_ENVS
        config = SearchConfig.from_envs(SEARCH_ENVS, SERP_ENVS)
        backend = ElasticSearchClient(elastic_envs)
        return WebpageSearcher(config, backend)

    @asynccontextmanager
    async def lifespan(self, app: FastAPI):
        yield
        close = getattr(self.searcher.backend, "close", None)
        if callable(close):
            close()

    def run_search(
        self,
        mode: SEARCH_MODE,
        query: Optional[str] = None,
        q: Optional[str] = None,
        index=None,
        from_=None,
        size=None,
        slop=None,
        explain=None,
    ) -> dict:
        if query is None:
            query = q
        search_params = {
            "query": query,
            "indices": to_list(index),
            "from_": to_int(from_),
            "size": to_int(size),
            "explain": is_flag_set(explain),
        }
        try:
            if mode == "phrase":
                return self.searcher.phrase_search(slop=to_int(slop), **search_params)
            else:
                return self.searcher.search(**search_params)
        except ValidationFailure as e:
            raise HTTPException(status_code=400, detail=str(e))
        except BackendFailure as e:
            raise HTTPException(status_code=503, detail=str(e))

    def get_handler(self, mode: SEARCH_MODE):
        def handler(
            query: Optional[str] = Query(None),
            q: Optional[str] = Query(None),
            index: Optional[list[str]] = Query(None),
            from_: Optional[str] = Query(None, alias="from"),
            size: Optional[str] = Query(None),
            slop: Optional[str] = Query(None),
            explain: Optional[str] = Query(None),
        ):
            return self.run_search(mode, query, q, index, from_, size, slop, explain)

        return handler

    def post_handler(self, mode: SEARCH_MODE):
        def handler(
            query: Optional[str] = Body(None),
            q: Optional[str] = Body(None),
            index: Union[list[str], str, None] = Body(None),
            from_: Union[int, str, None] = Body(None, alias="from"),
            size: Union[int, str, None] = Body(None),
            slop: Union[int, str, None] = Body(None),
            explain: Union[bool, str, None] = Body(None),
        ):
            return self.run_search(mode, query, q, index, from_, size, slop, explain)

        return handler

    def setup_routes(self):
        routes = [
            ("/api/v1/_search", "simple", "Simple full-text search"),
            ("/api/v1/_phrases", "phrase", "Phrase search"),
        ]
        for path, mode, summary in routes:
            self.app.get(path, summary=summary)(self.get_handler(mode))
            self.app.post(path, summary=summary)(self.post_handler(mode))


class SearchAppArgParser(argparse.ArgumentParser):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.add_arguments()

    def add_arguments(self):
        self.add_argument(
            "-s",
            "--host",
            type=str,
            help=f"Host of app",
        )
        self.add_argument(
            "-p",
            "--port",
            type=int,
            help=f"Port of app",
        )
        self.add_argument(
            "-m",
            "--mode",
            type=str,
            default="prod",
            help=f"Running mode of app",
        )
        self.add_argument(
            "-ev",
            "--elastic-env-name",
            type=str,
            help=f"Elastic env name in secrets.json",
        )

        self.args, self.unknown_args = self.parse_known_args(sys.argv[1:])

    def update_app_envs(self, app_envs: dict):
        new_app_envs = deepcopy(app_envs)
        mode = self.args.mode
        new_app_envs["mode"] = mode
        for key, val in app_envs.items():
            if isinstance(val, dict) and mode in val.keys():
                new_app_envs[key] = val[mode]

        if self.args.host:
            new_app_envs["host"] = self.args.host
        if self.args.port:
            new_app_envs["port"] = self.args.port
        if self.args.elastic_env_name:
            new_app_envs["elastic_env_name"] = self.args.elastic_env_name

        logger.note(f"App Envs:")
        logger.mesg(dict_to_str(new_app_envs))

        return new_app_envs


if __name__ == "__main__":
    app_envs = SEARCH_APP_ENVS
    arg_parser = SearchAppArgParser()
    new_app_envs = arg_parser.update_app_envs(app_envs)
    app = SearchApp(new_app_envs).app
    uvicorn.run(app, host=new_app_envs["host"], port=new_app_envs["port"])

    # Production mode by default:
    # python -m apps.search_app

    # Development mode:
    # python -m apps.search_app -m dev -ev elastic_dev -p 21011
