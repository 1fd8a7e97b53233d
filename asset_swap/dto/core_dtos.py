"""
核心数据传输对象（DTOs）
路径编译与报价聚合之间的通信契约
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional, Tuple, Union

from ..constants import NULL_ADDRESS, NULL_BYTES, ZERO_AMOUNT, DEFAULT_CHAIN_ID
from ..errors import AssetDataError, QuoteRequestError
from ..utils.asset_data import decode_asset_data, is_hex_address


class MarketOperation(Enum):
    """交易方向"""
    SELL = "Sell"
    BUY = "Buy"


class VenueSource(Enum):
    """流动性来源（封闭集合）"""
    NATIVE = "Native"
    ETH2DAI = "Eth2Dai"
    KYBER = "Kyber"
    UNISWAP = "Uniswap"
    CURVE_USDC_DAI = "Curve_USDC_DAI"
    CURVE_USDC_DAI_USDT = "Curve_USDC_DAI_USDT"
    CURVE_USDC_DAI_USDT_TUSD = "Curve_USDC_DAI_USDT_TUSD"
    CURVE_USDC_DAI_USDT_BUSD = "Curve_USDC_DAI_USDT_BUSD"
    LIQUIDITY_PROVIDER = "LiquidityProvider"

    @property
    def is_bridge(self) -> bool:
        """可以参与批量合并的桥接来源"""
        return self not in (VenueSource.NATIVE, VenueSource.LIQUIDITY_PROVIDER)


@dataclass(frozen=True)
class SignedOrder:
    """链上挂单（原生订单）"""
    # 核心字段
    maker_address: str
    maker_asset_data: str
    taker_asset_data: str
    maker_asset_amount: int
    taker_asset_amount: int

    # 对手方占位
    taker_address: str = NULL_ADDRESS
    sender_address: str = NULL_ADDRESS
    fee_recipient_address: str = NULL_ADDRESS

    # 费用
    maker_fee_asset_data: str = NULL_BYTES
    taker_fee_asset_data: str = NULL_BYTES
    maker_fee: int = ZERO_AMOUNT
    taker_fee: int = ZERO_AMOUNT

    # 有效期/签名
    salt: int = ZERO_AMOUNT
    expiration_time_seconds: int = ZERO_AMOUNT
    signature: str = NULL_BYTES

    # 订单域
    chain_id: int = DEFAULT_CHAIN_ID
    exchange_address: str = NULL_ADDRESS


@dataclass(frozen=True)
class Fill:
    """一次流动性消耗"""
    source: VenueSource
    input: int
    output: int
    native_order: Optional[SignedOrder] = None

    def __post_init__(self):
        if self.input < 0 or self.output < 0:
            raise ValueError(f"Fill amounts must be non-negative: input={self.input}, output={self.output}")
        if self.source is VenueSource.NATIVE and self.native_order is None:
            raise ValueError("Native fill requires the originating order")
        if self.source is not VenueSource.NATIVE and self.native_order is not None:
            raise ValueError(f"{self.source.value} fill cannot carry a native order")


@dataclass(frozen=True)
class CollapsedFill(Fill):
    """同源相邻fill合并后的结果"""
    subfills: Tuple[Fill, ...] = ()


@dataclass(frozen=True)
class OrderDomain:
    """订单域"""
    chain_id: int = DEFAULT_CHAIN_ID
    exchange_address: str = NULL_ADDRESS


@dataclass(frozen=True)
class SettlementOrder(SignedOrder):
    """编译输出 - 可直接结算的订单"""
    fills: Tuple[CollapsedFill, ...] = ()
    fillable_maker_asset_amount: int = ZERO_AMOUNT
    fillable_taker_asset_amount: int = ZERO_AMOUNT
    fillable_taker_fee_amount: int = ZERO_AMOUNT

    # 原生订单为None
    routing_payload: Optional[str] = None

    @property
    def is_native(self) -> bool:
        return self.routing_payload is None


@dataclass(frozen=True)
class BridgeCall:
    """批量订单中的单个桥调用"""
    target: str
    input_token_amount: int
    output_token_amount: int
    bridge_data: str


@dataclass(frozen=True)
class QuoteRequest:
    """
    单轮RFQ报价请求

    通过 QuoteRequest.create 构造，非法输入直接抛出 QuoteRequestError
    """
    maker_asset_data: str
    taker_asset_data: str
    maker_token: str
    taker_token: str
    asset_fill_amount: int
    market_operation: MarketOperation
    taker_api_key: str
    taker_address: str
    max_response_time_ms: int

    @classmethod
    def create(cls,
               maker_asset_data: str,
               taker_asset_data: str,
               asset_fill_amount: Union[int, Decimal],
               market_operation: MarketOperation,
               taker_api_key: str,
               taker_address: str,
               max_response_time_ms: int) -> "QuoteRequest":
        """
        校验并构造请求

        Args:
            maker_asset_data: 买入资产数据
            taker_asset_data: 卖出资产数据
            asset_fill_amount: 成交数量（BUY为买入量，SELL为卖出量）
            market_operation: 交易方向
            taker_api_key: API密钥
            taker_address: taker地址
            max_response_time_ms: 单个报价方超时

        Returns:
            QuoteRequest
        """
        if not isinstance(market_operation, MarketOperation):
            raise QuoteRequestError(f"Unknown market operation: {market_operation!r}")

        if isinstance(asset_fill_amount, bool):
            raise QuoteRequestError(f"Invalid asset fill amount: {asset_fill_amount!r}")
        try:
            amount = Decimal(asset_fill_amount)
        except (InvalidOperation, TypeError, ValueError) as e:
            raise QuoteRequestError(f"Invalid asset fill amount: {asset_fill_amount!r}") from e
        if not amount.is_finite() or amount <= 0 or amount != amount.to_integral_value():
            raise QuoteRequestError(f"Asset fill amount must be a positive integer: {asset_fill_amount}")

        if not is_hex_address(taker_address):
            raise QuoteRequestError(f"Invalid taker address: {taker_address!r}")

        # 超时必须是正整数毫秒
        if (isinstance(max_response_time_ms, bool) or not isinstance(max_response_time_ms, int)
                or max_response_time_ms <= 0):
            raise QuoteRequestError(f"Response timeout must be a positive integer (ms): {max_response_time_ms!r}")

        maker_token = cls._token_address_or_raise(maker_asset_data)
        taker_token = cls._token_address_or_raise(taker_asset_data)

        return cls(
            maker_asset_data=maker_asset_data,
            taker_asset_data=taker_asset_data,
            maker_token=maker_token,
            taker_token=taker_token,
            asset_fill_amount=int(amount),
            market_operation=market_operation,
            taker_api_key=taker_api_key,
            taker_address=taker_address,
            max_response_time_ms=int(max_response_time_ms),
        )

    @staticmethod
    def _token_address_or_raise(asset_data: str) -> str:
        try:
            decoded = decode_asset_data(asset_data)
        except AssetDataError as e:
            raise QuoteRequestError(f"Asset data does not contain a token address: {asset_data}") from e
        return decoded.token_address


@dataclass(frozen=True)
class FirmQuote:
    """通过校验的确定报价，数值字段为Decimal"""
    maker_address: str
    taker_address: str
    sender_address: str
    fee_recipient_address: str
    maker_asset_data: str
    taker_asset_data: str
    maker_fee_asset_data: str
    taker_fee_asset_data: str
    maker_asset_amount: Decimal
    taker_asset_amount: Decimal
    maker_fee: Decimal
    taker_fee: Decimal
    expiration_time_seconds: Decimal
    salt: Decimal
    signature: str
    chain_id: int
    exchange_address: str


class QuoteOutcomeStatus(Enum):
    """单个报价方本轮结果"""
    ACCEPTED = "accepted"
    TIMEOUT = "timeout"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"
    SCHEMA_INVALID = "schema_invalid"
    TOKEN_MISMATCH = "token_mismatch"
    UNEXPECTED_ERROR = "unexpected_error"


@dataclass(frozen=True)
class ProviderOutcome:
    """报价方结果（成功或带类别的失败）"""
    endpoint: str
    status: QuoteOutcomeStatus
    quote: Optional[FirmQuote] = None
    detail: str = ""
    latency_ms: float = 0.0

    @property
    def accepted(self) -> bool:
        return self.status is QuoteOutcomeStatus.ACCEPTED and self.quote is not None
