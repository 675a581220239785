"""
Elasticsearch debug logger for failed search requests.
Logs to logs/es.log under the project root.
"""

import json
import traceback

from datetime import datetime
from pathlib import Path
from tclogger import logger


class ESDebugLogger:
    """Append failed request bodies and error details to a log file."""

    def __init__(self, log_file: str = None):
        if log_file is None:
            project_root = Path(__file__).parent.parent
            log_file = project_root / "logs" / "es.log"
        self.log_file = Path(log_file)

    def _format_json(self, data: dict) -> str:
        try:
            return json.dumps(data, ensure_ascii=False, indent=2, default=str)
        except (TypeError, ValueError):
            return str(data)

    def get_es_error_info(self, error: Exception) -> dict:
        """Collect `info`, `status_code` and `meta` from elasticsearch errors."""
        es_error_info = {}
        for attr in ["info", "status_code", "error", "body"]:
            if hasattr(error, attr):
                es_error_info[attr] = getattr(error, attr)
        meta = getattr(error, "meta", None)
        if meta is not None:
            es_error_info["meta"] = {
                "status": getattr(meta, "status", None),
                "http_version": getattr(meta, "http_version", None),
            }
        return es_error_info

    def log_error(
        self,
        request_body: dict,
        error: Exception,
        index_name: str = None,
        context: str = None,
    ) -> None:
        """
        Args:
            request_body: The JSON body sent to Elasticsearch
            error: The exception that was raised
            index_name: Comma-joined names of the queried indices
            context: Search mode of the request, e.g. "simple" or "phrase"
        """
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")
        log_lines = [
            "=" * 80,
            f"[ES ERROR] {timestamp}",
            "=" * 80,
            f"Index: {index_name}",
            f"Context: {context}",
            f"Error Type: {type(error).__name__}",
            f"Error Message: {error}",
            "",
        ]
        es_error_info = self.get_es_error_info(error)
        if es_error_info:
            log_lines.extend(
                ["--- Elasticsearch Error Info ---", self._format_json(es_error_info)]
            )
        log_lines.extend(
            [
                "--- Request Body ---",
                self._format_json(request_body),
                "--- Traceback ---",
                traceback.format_exc(),
                "",
            ]
        )
        try:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write("\n".join(log_lines))
        except OSError as write_error:
            logger.warn(f"× Failed to write to {self.log_file}: {write_error}")


_es_debug_logger = None


def get_es_debug_logger() -> ESDebugLogger:
    global _es_debug_logger
    if _es_debug_logger is None:
        _es_debug_logger = ESDebugLogger()
    return _es_debug_logger
