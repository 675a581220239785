from tclogger import logger
from typing import Union

from elastics.webpages.constants import HIGHLIGHT_ENCODER, HIGHLIGHT_FRAGMENTS


def get_es_source_val(d: dict, key: str):
    """Get value of dotted `key` from nested or flat-keyed `_source`."""
    keys = key.split(".")
    dd = d
    for key in keys:
        if isinstance(dd, dict) and key in dd:
            dd = dd[key]
        else:
            joined_key = ".".join(keys)
            if isinstance(dd, dict) and joined_key in dd:
                return dd[joined_key]
            else:
                return None

    return dd


def get_highlight_settings(
    fragment_sizes: dict[str, int],
    number_of_fragments: int = HIGHLIGHT_FRAGMENTS,
    encoder: str = HIGHLIGHT_ENCODER,
) -> dict:
    """Example: {"title_lang.en": 70} ->
    ```json
    {
        "fields": {
            "title_lang.en": {"fragment_size": 70, "number_of_fragments": 1}
        },
        "encoder": "html"
    }
    ```
    """
    highlight_fields_dict = {
        field: {
            "fragment_size": fragment_size,
            "number_of_fragments": number_of_fragments,
        }
        for field, fragment_size in fragment_sizes.items()
    }
    highlight_settings = {
        "fields": highlight_fields_dict,
        "encoder": encoder,
    }
    return highlight_settings


def set_timeout(body: dict, timeout: Union[int, float, str] = None):
    if timeout is not None:
        if isinstance(timeout, str):
            body["timeout"] = timeout
        elif isinstance(timeout, (int, float)):
            timeout_str = round(timeout * 1000)
            body["timeout"] = f"{timeout_str}ms"
        else:
            logger.warn(f"× Invalid type of `timeout`: {type(timeout)}")
    return body


def set_terminate_after(body: dict, terminate_after: int = None):
    if terminate_after is not None:
        body["terminate_after"] = terminate_after
    return body


def set_explain(body: dict, explain: bool = False):
    if explain:
        body["explain"] = True
    return body


if __name__ == "__main__":
    d = {
        "title_lang": {"en": "value1"},
        "body_lang.en": "value2",
        "warc_target_hostname": "value3",
    }

    k1 = "title_lang.en"
    k2 = "body_lang.en"
    k3 = "warc_target_hostname"
    for k in [k1, k2, k3]:
        print(f"{k}: {get_es_source_val(d,k)}")

    # python -m elastics.structure
