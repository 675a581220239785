import re

from typing import Union

LANG_PLACEHOLDER = "%lang%"
RE_LANG_PLACEHOLDER = re.compile(re.escape(LANG_PLACEHOLDER))


def localize_field(template: str, language: str) -> str:
    """Replace the language placeholder of a field name template.

    Examples:
        - ("title_lang.%lang%", "en") -> "title_lang.en"
        - ("warc_target_hostname", "de") -> "warc_target_hostname"
    """
    if not template:
        return ""
    return RE_LANG_PLACEHOLDER.sub(language or "", template)


def deboost_field(field: str):
    return field.split("^", 1)[0]


def boost_field(field: str, boost: Union[int, float] = 1.0) -> str:
    """Example: ("title_lang.en", 35.0) -> "title_lang.en^35.0" """
    if boost is None or float(boost) == 1.0:
        return field
    return f"{deboost_field(field)}^{float(boost)}"


if __name__ == "__main__":
    from tclogger import logger

    templates = ["title_lang.%lang%", "body_lang.%lang%", "warc_target_path"]
    for template in templates:
        logger.note(f"{template}:", end=" ")
        logger.success(localize_field(template, "en"))
    logger.mesg(boost_field(localize_field(templates[0], "de"), 35))

    # python -m converters.query.field
