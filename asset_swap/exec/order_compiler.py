"""
Order Compiler - 路径 -> 结算订单
单次从左到右扫描：原生订单直通，LiquidityProvider单独下单，
相邻桥接fill可合并为一个DexForwarder批量订单
"""

import logging
import secrets
import time
from dataclasses import dataclass, fields
from functools import reduce
from typing import Callable, List, Optional, Sequence, Tuple

from ..constants import (
    NULL_ADDRESS,
    NULL_BYTES,
    ONE_HOUR_IN_SECONDS,
    WALLET_SIGNATURE,
    ZERO_AMOUNT,
    DEFAULT_BRIDGE_SLIPPAGE,
)
from ..dto.core_dtos import (
    BridgeCall,
    CollapsedFill,
    Fill,
    MarketOperation,
    OrderDomain,
    SettlementOrder,
    SignedOrder,
    VenueSource,
)
from ..errors import AggregationError
from ..utils.asset_data import encode_erc20_asset_data, encode_erc20_bridge_asset_data
from ..utils.quantizer import get_slipped_bridge_asset_amounts
from .fills import collapse_path
from .routing_payload import RoutingPayloadBuilder
from .venue_registry import VenueRegistry

logger = logging.getLogger(__name__)

# (total_maker, total_taker, calls)
BatchTotals = Tuple[int, int, Tuple[BridgeCall, ...]]


def generate_pseudo_random_salt() -> int:
    """256位随机salt"""
    return secrets.randbits(256)


@dataclass(frozen=True)
class CompileOptions:
    """单次编译参数"""
    side: MarketOperation
    input_token: str
    output_token: str
    bridge_slippage: float = DEFAULT_BRIDGE_SLIPPAGE
    should_batch_bridge_orders: bool = True
    liquidity_provider_address: Optional[str] = None

    @property
    def maker_taker_tokens(self) -> Tuple[str, str]:
        if self.side is MarketOperation.SELL:
            return self.output_token, self.input_token
        return self.input_token, self.output_token


class OrderCompiler:
    """
    订单编译器

    编译是全有或全无的：任一fill无法下单则整体抛错，
    不会返回部分订单列表（否则会少成交）
    """

    def __init__(self,
                 registry: VenueRegistry,
                 payload_builder: Optional[RoutingPayloadBuilder] = None,
                 order_domain: Optional[OrderDomain] = None,
                 salt_factory: Callable[[], int] = generate_pseudo_random_salt,
                 clock: Callable[[], float] = time.time):
        """
        Args:
            registry: 场所地址注册表
            payload_builder: 路由负载构建器，默认使用注册表中的Curve池
            order_domain: 订单域（chain_id / exchange地址）
            salt_factory: salt生成函数
            clock: 时间源（秒）
        """
        self.registry = registry
        self.payload_builder = payload_builder or RoutingPayloadBuilder(registry.curve_pools)
        self.order_domain = order_domain or OrderDomain()
        self.salt_factory = salt_factory
        self.clock = clock

        self.stats = {
            'compilations': 0,
            'failed_compilations': 0,
            'orders_emitted': 0,
            'native_orders': 0,
            'bridge_orders': 0,
            'batched_orders': 0,
        }

        logger.info("[OrderCompiler] 初始化完成 chain_id=%s", self.order_domain.chain_id)

    def compile(self, path: Sequence[Fill], opts: CompileOptions) -> List[SettlementOrder]:
        """
        将路径编译为结算订单

        Args:
            path: fill路径（会先经过collapse_path）
            opts: 编译参数

        Returns:
            结算订单列表，顺序与路径一致

        Raises:
            UnsupportedVenueError: 场所没有地址/负载映射
            MissingVenueAddressError: LiquidityProvider缺少地址
        """
        self.stats['compilations'] += 1
        try:
            orders = self._compile(collapse_path(path), opts)
        except AggregationError as e:
            self.stats['failed_compilations'] += 1
            logger.error("[OrderCompiler] 编译中止 source=%s: %s", e.source, e)
            raise

        self.stats['orders_emitted'] += len(orders)
        logger.info("[OrderCompiler] 编译完成 side=%s fills=%d orders=%d batch=%s",
                    opts.side.value, len(path), len(orders), opts.should_batch_bridge_orders)
        return orders

    def _compile(self, collapsed_path: List[CollapsedFill], opts: CompileOptions) -> List[SettlementOrder]:
        orders: List[SettlementOrder] = []
        i = 0
        while i < len(collapsed_path):
            fill = collapsed_path[i]

            if fill.source is VenueSource.NATIVE:
                orders.append(self.create_native_order(fill))
                i += 1
                continue

            # LiquidityProvider必须单独调用
            if fill.source is VenueSource.LIQUIDITY_PROVIDER:
                orders.append(self.create_bridge_order(fill, opts))
                i += 1
                continue

            run = self._contiguous_bridge_run(collapsed_path, i)
            if not opts.should_batch_bridge_orders:
                orders.append(self.create_bridge_order(run[0], opts))
                i += 1
            else:
                orders.append(self.create_batched_bridge_order(run, opts))
                i += len(run)

        return orders

    @staticmethod
    def _contiguous_bridge_run(collapsed_path: List[CollapsedFill], start: int) -> List[CollapsedFill]:
        run = [collapsed_path[start]]
        for fill in collapsed_path[start + 1:]:
            if not fill.source.is_bridge:
                break
            run.append(fill)
        return run

    # ==================== 订单构建 ====================

    def create_native_order(self, fill: CollapsedFill) -> SettlementOrder:
        """原生订单：原样复用挂单字段，不做滑点调整"""
        order = fill.native_order
        values = {f.name: getattr(order, f.name) for f in fields(SignedOrder)}
        self.stats['native_orders'] += 1
        return SettlementOrder(
            fills=(fill,),
            fillable_maker_asset_amount=getattr(order, 'fillable_maker_asset_amount', order.maker_asset_amount),
            fillable_taker_asset_amount=getattr(order, 'fillable_taker_asset_amount', order.taker_asset_amount),
            fillable_taker_fee_amount=getattr(order, 'fillable_taker_fee_amount', order.taker_fee),
            routing_payload=None,
            **values,
        )

    def create_bridge_order(self, fill: CollapsedFill, opts: CompileOptions) -> SettlementOrder:
        """单场所桥接订单"""
        maker_token, taker_token = opts.maker_taker_tokens
        bridge_address = self.registry.bridge_address_for(fill.source, opts.liquidity_provider_address)
        bridge_data = self.payload_builder.build_payload(fill.source, taker_token, maker_token)
        maker_amount, taker_amount = get_slipped_bridge_asset_amounts(fill, opts.side, opts.bridge_slippage)

        self.stats['bridge_orders'] += 1
        logger.debug("[OrderCompiler] 桥接订单 %s maker=%s taker=%s",
                     fill.source.value, maker_amount, taker_amount)

        return SettlementOrder(
            fills=(fill,),
            maker_address=bridge_address,
            maker_asset_data=encode_erc20_bridge_asset_data(maker_token, bridge_address, bridge_data),
            taker_asset_data=encode_erc20_asset_data(taker_token),
            maker_asset_amount=maker_amount,
            taker_asset_amount=taker_amount,
            fillable_maker_asset_amount=maker_amount,
            fillable_taker_asset_amount=taker_amount,
            routing_payload=bridge_data,
            **self._common_bridge_order_fields(),
        )

    def create_batched_bridge_order(self, fills: Sequence[CollapsedFill], opts: CompileOptions) -> SettlementOrder:
        """
        DexForwarder批量订单

        总量是各fill单独下单数量的精确求和，批量只改变结算负载
        """
        maker_token, taker_token = opts.maker_taker_tokens

        def fold(acc: BatchTotals, fill: CollapsedFill) -> BatchTotals:
            total_maker, total_taker, calls = acc
            order = self.create_bridge_order(fill, opts)
            call = BridgeCall(
                target=order.maker_address,
                input_token_amount=order.taker_asset_amount,
                output_token_amount=order.maker_asset_amount,
                bridge_data=order.routing_payload,
            )
            return total_maker + order.maker_asset_amount, total_taker + order.taker_asset_amount, calls + (call,)

        total_maker, total_taker, calls = reduce(fold, fills, (ZERO_AMOUNT, ZERO_AMOUNT, ()))

        batched_address = self.registry.dex_forwarder_address()
        batched_payload = self.payload_builder.build_batched_payload(taker_token, calls)

        self.stats['batched_orders'] += 1
        logger.debug("[OrderCompiler] 批量订单 calls=%d maker=%s taker=%s",
                     len(calls), total_maker, total_taker)

        return SettlementOrder(
            fills=tuple(fills),
            maker_address=batched_address,
            maker_asset_data=encode_erc20_bridge_asset_data(maker_token, batched_address, batched_payload),
            taker_asset_data=encode_erc20_asset_data(taker_token),
            maker_asset_amount=total_maker,
            taker_asset_amount=total_taker,
            fillable_maker_asset_amount=total_maker,
            fillable_taker_asset_amount=total_taker,
            routing_payload=batched_payload,
            **self._common_bridge_order_fields(),
        )

    def _common_bridge_order_fields(self) -> dict:
        return {
            'taker_address': NULL_ADDRESS,
            'sender_address': NULL_ADDRESS,
            'fee_recipient_address': NULL_ADDRESS,
            'salt': self.salt_factory(),
            'expiration_time_seconds': int(self.clock()) + ONE_HOUR_IN_SECONDS,
            'maker_fee_asset_data': NULL_BYTES,
            'taker_fee_asset_data': NULL_BYTES,
            'maker_fee': ZERO_AMOUNT,
            'taker_fee': ZERO_AMOUNT,
            'fillable_taker_fee_amount': ZERO_AMOUNT,
            'signature': WALLET_SIGNATURE,
            'chain_id': self.order_domain.chain_id,
            'exchange_address': self.order_domain.exchange_address,
        }

    def get_stats(self) -> dict:
        return dict(self.stats)


def create_orders_from_path(path: Sequence[Fill],
                            opts: CompileOptions,
                            registry: VenueRegistry,
                            order_domain: Optional[OrderDomain] = None) -> List[SettlementOrder]:
    """一次性编译（不保留编译器实例）"""
    return OrderCompiler(registry, order_domain=order_domain).compile(path, opts)
