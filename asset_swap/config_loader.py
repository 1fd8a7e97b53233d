"""
配置加载器 - 从环境文件加载编译与RFQ配置
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from .constants import (
    DEFAULT_BRIDGE_SLIPPAGE,
    DEFAULT_CHAIN_ID,
    DEFAULT_MAKER_RESPONSE_TIMEOUT_MS,
    NULL_ADDRESS,
)
from .connectors.quote_requestor import QuoteRequestor
from .dto.core_dtos import MarketOperation, OrderDomain
from .exec.order_compiler import CompileOptions
from .exec.venue_registry import ContractAddresses, VenueRegistry

logger = logging.getLogger(__name__)


@dataclass
class RfqtConfig:
    """RFQ-T报价方配置"""
    maker_endpoints: List[str] = field(default_factory=list)
    taker_api_key: str = ""
    maker_response_timeout_ms: int = DEFAULT_MAKER_RESPONSE_TIMEOUT_MS


@dataclass
class SwapConfig:
    """订单编译 + 报价聚合配置"""
    rfqt: RfqtConfig

    # 编译参数
    bridge_slippage: float = DEFAULT_BRIDGE_SLIPPAGE
    should_batch_bridge_orders: bool = True
    liquidity_provider_address: Optional[str] = None

    # 订单域
    chain_id: int = DEFAULT_CHAIN_ID
    exchange_address: str = NULL_ADDRESS

    # 场所地址
    contract_addresses: ContractAddresses = field(default_factory=ContractAddresses)


def _get_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    value = raw.strip().lower()
    if value in ('true', '1', 'yes'):
        return True
    if value in ('false', '0', 'no'):
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _get_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return cast(raw.strip())
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def _get_optional(name: str) -> Optional[str]:
    value = os.getenv(name, '').strip()
    return value or None


def load_swap_config(env_file: str = '.env') -> SwapConfig:
    """
    加载配置

    Args:
        env_file: 环境文件路径，不存在时只读取进程环境变量

    Returns:
        SwapConfig

    Raises:
        ValueError: 数值/布尔配置非法
    """
    if os.path.exists(env_file):
        load_dotenv(env_file, override=True)
    else:
        logger.warning("[Config] 配置文件不存在 %s，仅使用环境变量", env_file)

    endpoints = [e.strip().rstrip('/') for e in os.getenv('RFQT_MAKER_ENDPOINTS', '').split(',') if e.strip()]

    rfqt = RfqtConfig(
        maker_endpoints=endpoints,
        taker_api_key=os.getenv('RFQT_TAKER_API_KEY', ''),
        maker_response_timeout_ms=_get_number('RFQT_MAKER_RESPONSE_TIMEOUT_MS',
                                              DEFAULT_MAKER_RESPONSE_TIMEOUT_MS, int),
    )
    if rfqt.maker_response_timeout_ms <= 0:
        raise ValueError(f"RFQT_MAKER_RESPONSE_TIMEOUT_MS must be positive: {rfqt.maker_response_timeout_ms}")

    config = SwapConfig(
        rfqt=rfqt,

        # 编译参数
        bridge_slippage=_get_number('BRIDGE_SLIPPAGE', DEFAULT_BRIDGE_SLIPPAGE, float),
        should_batch_bridge_orders=_get_bool('SHOULD_BATCH_BRIDGE_ORDERS', True),
        liquidity_provider_address=_get_optional('LIQUIDITY_PROVIDER_ADDRESS'),

        # 订单域
        chain_id=_get_number('CHAIN_ID', DEFAULT_CHAIN_ID, int),
        exchange_address=os.getenv('EXCHANGE_ADDRESS', NULL_ADDRESS),

        # 场所地址
        contract_addresses=ContractAddresses(
            eth2dai_bridge=_get_optional('ETH2DAI_BRIDGE_ADDRESS'),
            kyber_bridge=_get_optional('KYBER_BRIDGE_ADDRESS'),
            uniswap_bridge=_get_optional('UNISWAP_BRIDGE_ADDRESS'),
            curve_bridge=_get_optional('CURVE_BRIDGE_ADDRESS'),
            dex_forwarder_bridge=_get_optional('DEX_FORWARDER_BRIDGE_ADDRESS'),
        ),
    )
    if not (0 <= config.bridge_slippage < 1):
        raise ValueError(f"BRIDGE_SLIPPAGE must be in [0, 1): {config.bridge_slippage}")

    logger.info("[Config] 配置加载成功 makers=%d slippage=%s batch=%s chain_id=%s",
                len(rfqt.maker_endpoints), config.bridge_slippage,
                config.should_batch_bridge_orders, config.chain_id)
    return config


def build_venue_registry(config: SwapConfig) -> VenueRegistry:
    return VenueRegistry(config.contract_addresses, liquidity_provider_address=config.liquidity_provider_address)


def build_order_domain(config: SwapConfig) -> OrderDomain:
    return OrderDomain(chain_id=config.chain_id, exchange_address=config.exchange_address)


def build_quote_requestor(config: SwapConfig, session=None) -> QuoteRequestor:
    return QuoteRequestor(
        config.rfqt.maker_endpoints,
        session=session,
        default_max_response_time_ms=config.rfqt.maker_response_timeout_ms,
    )


def build_compile_options(config: SwapConfig, side: MarketOperation,
                          input_token: str, output_token: str) -> CompileOptions:
    """按配置默认值构造编译参数"""
    return CompileOptions(
        side=side,
        input_token=input_token,
        output_token=output_token,
        bridge_slippage=config.bridge_slippage,
        should_batch_bridge_orders=config.should_batch_bridge_orders,
        liquidity_provider_address=config.liquidity_provider_address,
    )
