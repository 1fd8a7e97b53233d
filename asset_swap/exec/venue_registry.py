"""
Venue Registry - 场所地址注册表
场所 -> 桥合约地址 的显式映射，未知场所直接报错
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..dto.core_dtos import VenueSource
from ..errors import UnsupportedVenueError, MissingVenueAddressError

logger = logging.getLogger(__name__)

DAI = "0x6b175474e89094c44da98b954eedeac495271d0f"
USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
USDT = "0xdac17f958d2ee523a2206206994597c13d831ec7"
TUSD = "0x0000000000085d4780b73119b644ae5ecd22b376"
BUSD = "0x4fabb145d64652a948d72533023f6e7a623c7c53"


@dataclass(frozen=True)
class CurvePool:
    """Curve池参数"""
    curve_address: str
    tokens: Tuple[str, ...]
    version: int

    def token_index(self, token: str) -> Optional[int]:
        """代币在池中的下标（大小写不敏感）"""
        lowered = token.lower()
        for idx, pool_token in enumerate(self.tokens):
            if pool_token.lower() == lowered:
                return idx
        return None


DEFAULT_CURVE_POOLS: Dict[VenueSource, CurvePool] = {
    VenueSource.CURVE_USDC_DAI: CurvePool(
        curve_address="0xa2b47e3d5c44877cca798226b7b8118f9bfb7a56",
        tokens=(DAI, USDC),
        version=1,
    ),
    VenueSource.CURVE_USDC_DAI_USDT: CurvePool(
        curve_address="0x52ea46506b9cc5ef470c5bf89f17dc28bb35d85c",
        tokens=(DAI, USDC, USDT),
        version=1,
    ),
    VenueSource.CURVE_USDC_DAI_USDT_TUSD: CurvePool(
        curve_address="0x45f783cce6b7ff23b2ab2d70e416cdb7d6055f51",
        tokens=(DAI, USDC, USDT, TUSD),
        version=1,
    ),
    VenueSource.CURVE_USDC_DAI_USDT_BUSD: CurvePool(
        curve_address="0x79a8c46dea5ada233abaffd40f3a0a2b1e5a4f27",
        tokens=(DAI, USDC, USDT, BUSD),
        version=1,
    ),
}


@dataclass(frozen=True)
class ContractAddresses:
    """桥合约地址（未配置为None）"""
    eth2dai_bridge: Optional[str] = None
    kyber_bridge: Optional[str] = None
    uniswap_bridge: Optional[str] = None
    curve_bridge: Optional[str] = None
    dex_forwarder_bridge: Optional[str] = None


class VenueRegistry:
    """
    场所注册表 - 构造后不可变

    桥接场所 -> 桥合约地址；LiquidityProvider地址由调用方提供
    """

    def __init__(self,
                 contract_addresses: ContractAddresses,
                 liquidity_provider_address: Optional[str] = None,
                 curve_pools: Optional[Dict[VenueSource, CurvePool]] = None):
        self.contract_addresses = contract_addresses
        self.liquidity_provider_address = liquidity_provider_address
        self.curve_pools: Dict[VenueSource, CurvePool] = dict(
            DEFAULT_CURVE_POOLS if curve_pools is None else curve_pools
        )

        self._bridge_addresses: Dict[VenueSource, Optional[str]] = {
            VenueSource.ETH2DAI: contract_addresses.eth2dai_bridge,
            VenueSource.KYBER: contract_addresses.kyber_bridge,
            VenueSource.UNISWAP: contract_addresses.uniswap_bridge,
        }
        for source in self.curve_pools:
            self._bridge_addresses[source] = contract_addresses.curve_bridge

        configured = [s.value for s, addr in self._bridge_addresses.items() if addr]
        logger.info("[VenueRegistry] 初始化完成 venues=%s lp=%s",
                    configured, bool(liquidity_provider_address))

    def bridge_address_for(self, source: VenueSource,
                           liquidity_provider_address: Optional[str] = None) -> str:
        """
        获取场所的桥合约地址

        Args:
            source: 流动性来源
            liquidity_provider_address: 本次编译指定的LP地址（优先）

        Returns:
            桥合约地址

        Raises:
            MissingVenueAddressError: LiquidityProvider没有地址
            UnsupportedVenueError: 场所没有配置映射
        """
        if source is VenueSource.LIQUIDITY_PROVIDER:
            address = liquidity_provider_address or self.liquidity_provider_address
            if not address:
                raise MissingVenueAddressError(
                    "Cannot create a LiquidityProvider order without a LiquidityProvider pool address.",
                    source=source.value,
                )
            return address

        address = self._bridge_addresses.get(source)
        if not address:
            raise UnsupportedVenueError(f"No bridge configured for source {source.value}", source=source.value)
        return address

    def dex_forwarder_address(self) -> str:
        """批量桥（DexForwarder）地址"""
        address = self.contract_addresses.dex_forwarder_bridge
        if not address:
            raise UnsupportedVenueError("No DexForwarder bridge configured for batched orders",
                                        source="DexForwarder")
        return address

    def curve_pool_for(self, source: VenueSource) -> Optional[CurvePool]:
        return self.curve_pools.get(source)
