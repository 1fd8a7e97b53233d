"""
原生订单工具
- 代币解析（非ERC20视为上游数据错误）
- 可成交数量补全与过滤
- 采样用占位订单
"""

import logging
from dataclasses import fields
from typing import List, Sequence, Tuple

from ..constants import DEFAULT_CHAIN_ID, ERC20_PROXY_ID, NULL_ADDRESS, NULL_BYTES, ZERO_AMOUNT
from ..dto.core_dtos import MarketOperation, SettlementOrder, SignedOrder
from ..errors import AssetDataError, NotERC20AssetDataError
from ..utils.asset_data import decode_asset_data
from ..utils.quantizer import get_maker_fill_amount, get_taker_fee_amount, get_taker_fill_amount

logger = logging.getLogger(__name__)


def _signed_order_values(order: SignedOrder) -> dict:
    return {f.name: getattr(order, f.name) for f in fields(SignedOrder)}


def get_native_order_tokens(order: SignedOrder) -> Tuple[str, str]:
    """
    解析原生订单的 (maker代币, taker代币)，小写

    Raises:
        NotERC20AssetDataError: 任一侧不是ERC20资产数据
    """
    tokens = []
    for asset_data in (order.maker_asset_data, order.taker_asset_data):
        try:
            decoded = decode_asset_data(asset_data)
        except AssetDataError as e:
            raise NotERC20AssetDataError(f"Native order asset data is not ERC20: {asset_data}") from e
        if decoded.asset_proxy_id != ERC20_PROXY_ID:
            raise NotERC20AssetDataError(f"Native order asset data is not ERC20: {asset_data}")
        tokens.append(decoded.token_address.lower())
    return tokens[0], tokens[1]


def convert_native_order_to_fully_fillable_order(order: SignedOrder) -> SettlementOrder:
    """原生订单 -> 全量可成交订单"""
    return SettlementOrder(
        fills=(),
        fillable_maker_asset_amount=order.maker_asset_amount,
        fillable_taker_asset_amount=order.taker_asset_amount,
        fillable_taker_fee_amount=order.taker_fee,
        **_signed_order_values(order),
    )


def create_signed_orders_with_fillable_amounts(side: MarketOperation,
                                               orders: Sequence[SignedOrder],
                                               fillable_amounts: Sequence[int]) -> List[SettlementOrder]:
    """
    为原生订单补全可成交数量并过滤不可成交订单

    Args:
        side: 交易方向（BUY时fillable_amounts为maker数量，SELL时为taker数量）
        orders: 原生订单
        fillable_amounts: 链上查询到的剩余可成交数量，与orders一一对应

    Returns:
        可成交订单列表
    """
    if len(orders) != len(fillable_amounts):
        raise ValueError(f"Got {len(fillable_amounts)} fillable amounts for {len(orders)} orders")

    result = []
    for order, fillable_amount in zip(orders, fillable_amounts):
        if side is MarketOperation.BUY:
            fillable_maker = fillable_amount
            fillable_taker = get_taker_fill_amount(order, fillable_amount)
        else:
            fillable_maker = get_maker_fill_amount(order, fillable_amount)
            fillable_taker = fillable_amount

        if fillable_maker == 0 or fillable_taker == 0:
            continue

        result.append(SettlementOrder(
            fills=(),
            fillable_maker_asset_amount=fillable_maker,
            fillable_taker_asset_amount=fillable_taker,
            fillable_taker_fee_amount=get_taker_fee_amount(order, fillable_taker),
            **_signed_order_values(order),
        ))

    dropped = len(orders) - len(result)
    if dropped:
        logger.debug("[NativeOrders] 过滤不可成交订单 %d/%d", dropped, len(orders))
    return result


def create_dummy_order_for_sampler(maker_asset_data: str, taker_asset_data: str, maker_address: str) -> SignedOrder:
    """链上采样用的占位订单"""
    return SignedOrder(
        maker_address=maker_address,
        maker_asset_data=maker_asset_data,
        taker_asset_data=taker_asset_data,
        maker_asset_amount=ZERO_AMOUNT,
        taker_asset_amount=ZERO_AMOUNT,
        taker_address=NULL_ADDRESS,
        sender_address=NULL_ADDRESS,
        fee_recipient_address=NULL_ADDRESS,
        maker_fee_asset_data=NULL_BYTES,
        taker_fee_asset_data=NULL_BYTES,
        signature=NULL_BYTES,
        chain_id=DEFAULT_CHAIN_ID,
        exchange_address=NULL_ADDRESS,
    )
