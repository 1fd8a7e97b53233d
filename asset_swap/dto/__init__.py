"""
DTO包 - 编译与报价的数据契约
"""

from .core_dtos import (
    MarketOperation,
    VenueSource,
    SignedOrder,
    Fill,
    CollapsedFill,
    OrderDomain,
    SettlementOrder,
    BridgeCall,
    QuoteRequest,
    FirmQuote,
    QuoteOutcomeStatus,
    ProviderOutcome,
)

__all__ = [
    # 路径编译
    'MarketOperation',
    'VenueSource',
    'SignedOrder',
    'Fill',
    'CollapsedFill',
    'OrderDomain',
    'SettlementOrder',
    'BridgeCall',

    # 报价聚合
    'QuoteRequest',
    'FirmQuote',
    'QuoteOutcomeStatus',
    'ProviderOutcome',
]
