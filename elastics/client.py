from tclogger import logger
from elasticsearch import Elasticsearch

from elastics.es_logger import get_es_debug_logger
from elastics.webpages.errors import BackendFailure
from elastics.webpages.plans import CompiledPlan


class ElasticSearchClient:
    def __init__(self, elastic_envs: dict, verbose: bool = True):
        self.elastic_envs = elastic_envs
        self.verbose = verbose
        self.client = None

    def connect(self):
        """Connect to self-managed cluster with API Key authentication
        * https://www.elastic.co/guide/en/elasticsearch/client/python-api/current/connecting.html#auth-apikey

        Use the "encoded" value of the API Key for `api_key` in secrets.json.
        """
        if self.verbose:
            logger.note("> Connecting to Elasticsearch:", end=" ")
            logger.mesg(f"[{self.elastic_envs['host']}]")

        client_params = {"hosts": self.elastic_envs["host"]}
        if self.elastic_envs.get("ca_certs"):
            client_params["ca_certs"] = self.elastic_envs["ca_certs"]
        if self.elastic_envs.get("api_key"):
            client_params["api_key"] = self.elastic_envs["api_key"]
        if self.elastic_envs.get("request_timeout"):
            client_params["request_timeout"] = self.elastic_envs["request_timeout"]
        self.client = Elasticsearch(**client_params)

        if self.verbose:
            logger.success(f"+ Connected")
        return self

    def execute(self, plan: CompiledPlan, context: str = None) -> dict:
        """Submit compiled plan, and return raw response dict.

        Any error of the underlying client (including timeouts) is logged to
        logs/es.log, then raised as BackendFailure.
        """
        if self.client is None:
            self.connect()
        body = plan.to_search_body()
        index_name = ",".join(plan.indices)
        try:
            res = self.client.search(index=index_name, body=body)
            res_dict = res.body
        except Exception as e:
            logger.warn(f"× Error: {e}")
            es_logger = get_es_debug_logger()
            es_logger.log_error(
                request_body=body,
                error=e,
                index_name=index_name,
                context=context,
            )
            raise BackendFailure(f"Search backend failed: {type(e).__name__}") from e
        return res_dict

    def close(self):
        if self.client is not None:
            self.client.close()
            self.client = None
            if self.verbose:
                logger.note("> Elasticsearch client closed")


if __name__ == "__main__":
    from configs.envs import ELASTIC_ENVS

    es = ElasticSearchClient(ELASTIC_ENVS)
    es.connect()
    logger.mesg(es.client.info())
    es.close()

    # python -m elastics.client
