"""Page parsers for the hotwheels.fandom wiki."""

from parsers.detail_page import DetailPageParser
from parsers.index_table import IndexTableParser

__all__ = ["DetailPageParser", "IndexTableParser"]
