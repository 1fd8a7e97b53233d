"""
RFQ连接器包
报价方请求与报价规范化
"""

from .quote_requestor import QuoteRequestor
from .quote_normalizer import QuoteNormalizer, QuoteValidationError, SignedOrderPayload

__all__ = [
    'QuoteRequestor',
    'QuoteNormalizer',
    'QuoteValidationError',
    'SignedOrderPayload',
]
