"""
数量量化器 - 滑点保护与成交数量换算
全部使用精确整数/Decimal运算，不经过浮点
"""
from decimal import Decimal, InvalidOperation, ROUND_FLOOR, ROUND_CEILING, localcontext
import logging
from typing import Tuple, Union

from ..constants import UINT256_DECIMAL_PRECISION
from ..dto.core_dtos import Fill, MarketOperation, SignedOrder

logger = logging.getLogger(__name__)


def _to_tolerance(tolerance: Union[float, Decimal, str]) -> Decimal:
    try:
        tol = Decimal(str(tolerance))
    except InvalidOperation as e:
        raise ValueError(f"Slippage tolerance must be a number: {tolerance!r}") from e
    if not tol.is_finite() or not (Decimal(0) <= tol < Decimal(1)):
        raise ValueError(f"Slippage tolerance must be in [0, 1): {tolerance}")
    return tol


def _ceil_div(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


def get_slipped_bridge_asset_amounts(fill: Fill, side: MarketOperation,
                                     tolerance: Union[float, Decimal, str]) -> Tuple[int, int]:
    """
    计算桥接fill的滑点保护数量

    SELL: maker = floor(output * (1 - tol)), taker = input
    BUY:  maker = input, taker = ceil(output * (1 + tol))

    Args:
        fill: 桥接fill
        side: 交易方向
        tolerance: 滑点容忍度 [0, 1)

    Returns:
        (maker_asset_amount, taker_asset_amount)
    """
    tol = _to_tolerance(tolerance)
    with localcontext() as ctx:
        ctx.prec = UINT256_DECIMAL_PRECISION
        output = Decimal(fill.output)
        if side is MarketOperation.SELL:
            maker_amount = int((output * (1 - tol)).to_integral_value(rounding=ROUND_FLOOR))
            taker_amount = fill.input
        else:
            maker_amount = fill.input
            taker_amount = int((output * (1 + tol)).to_integral_value(rounding=ROUND_CEILING))

    logger.debug(f"[Slippage] {fill.source.value} {side.value} tol={tol} | "
                 f"in={fill.input} out={fill.output} -> maker={maker_amount} taker={taker_amount}")
    return maker_amount, taker_amount


def get_maker_fill_amount(order: SignedOrder, taker_fill_amount: int) -> int:
    """taker成交量 -> maker成交量（向下取整）"""
    if order.taker_asset_amount == 0:
        return 0
    return taker_fill_amount * order.maker_asset_amount // order.taker_asset_amount


def get_taker_fill_amount(order: SignedOrder, maker_fill_amount: int) -> int:
    """maker成交量 -> taker成交量（向上取整）"""
    if order.maker_asset_amount == 0:
        return 0
    return _ceil_div(maker_fill_amount * order.taker_asset_amount, order.maker_asset_amount)


def get_taker_fee_amount(order: SignedOrder, taker_fill_amount: int) -> int:
    """按taker成交比例分摊taker手续费（向上取整）"""
    if order.taker_asset_amount == 0:
        return 0
    return _ceil_div(taker_fill_amount * order.taker_fee, order.taker_asset_amount)
