"""
Routing Payload Builder - 桥路由负载编码
场所 -> 负载类型 的封闭映射表，同输入同输出
"""

import logging
from enum import Enum
from typing import Dict, Optional, Sequence

from ..dto.core_dtos import BridgeCall, VenueSource
from ..errors import UnsupportedVenueError
from ..utils.asset_data import (
    WORD_SIZE,
    bytes_to_hex,
    encode_address_word,
    encode_dynamic_bytes,
    encode_int_word,
    encode_uint_word,
    hex_to_bytes,
)
from .venue_registry import CurvePool, DEFAULT_CURVE_POOLS

logger = logging.getLogger(__name__)


class PayloadKind(Enum):
    """负载编码方式"""
    TOKEN = "token"   # (address tokenAddress)
    CURVE = "curve"   # (address curve, int128 from, int128 to, int128 version)


PAYLOAD_KINDS: Dict[VenueSource, PayloadKind] = {
    VenueSource.ETH2DAI: PayloadKind.TOKEN,
    VenueSource.KYBER: PayloadKind.TOKEN,
    VenueSource.UNISWAP: PayloadKind.TOKEN,
    VenueSource.LIQUIDITY_PROVIDER: PayloadKind.TOKEN,
    VenueSource.CURVE_USDC_DAI: PayloadKind.CURVE,
    VenueSource.CURVE_USDC_DAI_USDT: PayloadKind.CURVE,
    VenueSource.CURVE_USDC_DAI_USDT_TUSD: PayloadKind.CURVE,
    VenueSource.CURVE_USDC_DAI_USDT_BUSD: PayloadKind.CURVE,
}


def encode_bridge_data(token_address: str) -> str:
    return bytes_to_hex(encode_address_word(token_address))


def encode_curve_bridge_data(curve_address: str, from_token_idx: int, to_token_idx: int, version: int) -> str:
    return bytes_to_hex(
        encode_address_word(curve_address)
        + encode_int_word(from_token_idx)
        + encode_int_word(to_token_idx)
        + encode_int_word(version)
    )


def encode_dex_forwarder_bridge_data(input_token: str, calls: Sequence[BridgeCall]) -> str:
    """
    批量桥负载: (address inputToken, (address,uint256,uint256,bytes)[] calls)
    """
    elements = []
    for call in calls:
        elements.append(
            encode_address_word(call.target)
            + encode_uint_word(call.input_token_amount)
            + encode_uint_word(call.output_token_amount)
            + encode_uint_word(4 * WORD_SIZE)
            + encode_dynamic_bytes(hex_to_bytes(call.bridge_data))
        )

    offsets = []
    cursor = len(elements) * WORD_SIZE
    for element in elements:
        offsets.append(encode_uint_word(cursor))
        cursor += len(element)

    calls_array = encode_uint_word(len(elements)) + b"".join(offsets) + b"".join(elements)
    return bytes_to_hex(encode_address_word(input_token) + encode_uint_word(2 * WORD_SIZE) + calls_array)


class RoutingPayloadBuilder:
    """路由负载构建器"""

    def __init__(self, curve_pools: Optional[Dict[VenueSource, CurvePool]] = None):
        self.curve_pools = dict(DEFAULT_CURVE_POOLS if curve_pools is None else curve_pools)

    def build_payload(self, source: VenueSource, from_token: str, to_token: str) -> str:
        """
        构建单场所路由负载

        Args:
            source: 流动性来源
            from_token: 卖出代币（taker代币）
            to_token: 买入代币（maker代币）

        Returns:
            0x十六进制负载

        Raises:
            UnsupportedVenueError: 场所不在映射表中，或Curve池不含该代币
        """
        kind = PAYLOAD_KINDS.get(source)
        if kind is None:
            raise UnsupportedVenueError(f"No routing payload encoder for source {source.value}",
                                        source=source.value)

        if kind is PayloadKind.TOKEN:
            return encode_bridge_data(from_token)

        pool = self.curve_pools.get(source)
        if pool is None:
            raise UnsupportedVenueError(f"No curve pool configured for source {source.value}",
                                        source=source.value)
        from_idx = pool.token_index(from_token)
        to_idx = pool.token_index(to_token)
        if from_idx is None or to_idx is None:
            raise UnsupportedVenueError(
                f"Curve pool {source.value} does not list {from_token} -> {to_token}",
                source=source.value,
            )
        return encode_curve_bridge_data(pool.curve_address, from_idx, to_idx, pool.version)

    def build_batched_payload(self, input_token: str, calls: Sequence[BridgeCall]) -> str:
        logger.debug("[RoutingPayload] 批量负载 calls=%d", len(calls))
        return encode_dex_forwarder_bridge_data(input_token, calls)
