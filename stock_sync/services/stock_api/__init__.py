from .client import StockApiClient, PAGE_SIZE, MAX_OFFSET, RETROSPECTIVE_TIME
from .responses import StockPage, PageShape, decode_page

__all__ = [
    'StockApiClient',
    'StockPage',
    'PageShape',
    'decode_page',
    'PAGE_SIZE',
    'MAX_OFFSET',
    'RETROSPECTIVE_TIME',
]
