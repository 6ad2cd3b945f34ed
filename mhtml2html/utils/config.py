"""
Global configuration values for the MHTML converter.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ConverterConfig:
    DEFAULT_ENCODING: str = "utf-8"
    DOCTYPE: str = "<!DOCTYPE html>"   # tree serialization omits it
    HTML_PARSER: str = "lxml"          # BeautifulSoup tree builder
    LOG_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"


CONFIG = ConverterConfig()


@dataclass(frozen=True)
class ConvertOptions:
    """
    Per-call conversion options.

    html_only:       stop after the index document, skip resource collection
    convert_iframes: recursively inline nested frame documents
    enc:             charset used for quoted-printable payloads (utf-8, gbk, ...)
    """
    html_only: bool = False
    convert_iframes: bool = False
    enc: str = CONFIG.DEFAULT_ENCODING
