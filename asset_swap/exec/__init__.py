"""
路径编译包
fill路径 -> 最少数量的结算订单
"""

from .fills import collapse_path
from .venue_registry import VenueRegistry, ContractAddresses, CurvePool, DEFAULT_CURVE_POOLS
from .routing_payload import RoutingPayloadBuilder, PayloadKind
from .order_compiler import OrderCompiler, CompileOptions, create_orders_from_path, generate_pseudo_random_salt
from .native_orders import (
    get_native_order_tokens,
    convert_native_order_to_fully_fillable_order,
    create_signed_orders_with_fillable_amounts,
    create_dummy_order_for_sampler,
)

__all__ = [
    # Fill合并
    'collapse_path',

    # 场所注册
    'VenueRegistry',
    'ContractAddresses',
    'CurvePool',
    'DEFAULT_CURVE_POOLS',

    # 路由负载
    'RoutingPayloadBuilder',
    'PayloadKind',

    # 编译器
    'OrderCompiler',
    'CompileOptions',
    'create_orders_from_path',
    'generate_pseudo_random_salt',

    # 原生订单
    'get_native_order_tokens',
    'convert_native_order_to_fully_fillable_order',
    'create_signed_orders_with_fillable_amounts',
    'create_dummy_order_for_sampler',
]
