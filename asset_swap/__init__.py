"""
asset_swap - 订单编译与RFQ报价聚合
"""

from .dto import (
    MarketOperation,
    VenueSource,
    SignedOrder,
    Fill,
    CollapsedFill,
    OrderDomain,
    SettlementOrder,
    QuoteRequest,
    FirmQuote,
    ProviderOutcome,
    QuoteOutcomeStatus,
)
from .errors import (
    AggregationError,
    UnsupportedVenueError,
    MissingVenueAddressError,
    NotERC20AssetDataError,
    AssetDataError,
    QuoteRequestError,
)
from .exec import OrderCompiler, CompileOptions, VenueRegistry, ContractAddresses, collapse_path
from .connectors import QuoteRequestor
from .config_loader import SwapConfig, load_swap_config

__all__ = [
    # DTO
    'MarketOperation',
    'VenueSource',
    'SignedOrder',
    'Fill',
    'CollapsedFill',
    'OrderDomain',
    'SettlementOrder',
    'QuoteRequest',
    'FirmQuote',
    'ProviderOutcome',
    'QuoteOutcomeStatus',

    # Errors
    'AggregationError',
    'UnsupportedVenueError',
    'MissingVenueAddressError',
    'NotERC20AssetDataError',
    'AssetDataError',
    'QuoteRequestError',

    # Path compilation
    'OrderCompiler',
    'CompileOptions',
    'VenueRegistry',
    'ContractAddresses',
    'collapse_path',

    # Quote aggregation
    'QuoteRequestor',

    # Config
    'SwapConfig',
    'load_swap_config',
]
