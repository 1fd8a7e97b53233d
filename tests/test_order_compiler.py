import pytest

from asset_swap.constants import NULL_ADDRESS, WALLET_SIGNATURE, ONE_HOUR_IN_SECONDS
from asset_swap.dto.core_dtos import BridgeCall, Fill, MarketOperation, VenueSource
from asset_swap.errors import MissingVenueAddressError, UnsupportedVenueError
from asset_swap.exec.fills import collapse_path
from asset_swap.exec.native_orders import create_signed_orders_with_fillable_amounts
from asset_swap.exec.order_compiler import CompileOptions, OrderCompiler, create_orders_from_path
from asset_swap.exec.routing_payload import (
    encode_bridge_data,
    encode_curve_bridge_data,
    encode_dex_forwarder_bridge_data,
)
from asset_swap.exec.venue_registry import ContractAddresses, DEFAULT_CURVE_POOLS, VenueRegistry, DAI, USDC
from asset_swap.utils.asset_data import decode_asset_data
from tests.conftest import (
    DEX_FORWARDER_BRIDGE,
    ETH2DAI_BRIDGE,
    EXCHANGE,
    FIXED_NOW,
    FIXED_SALT,
    KYBER_BRIDGE,
    LIQUIDITY_PROVIDER,
    UNISWAP_BRIDGE,
)


def with_opts(opts, **changes):
    values = {
        'side': opts.side,
        'input_token': opts.input_token,
        'output_token': opts.output_token,
        'bridge_slippage': opts.bridge_slippage,
        'should_batch_bridge_orders': opts.should_batch_bridge_orders,
        'liquidity_provider_address': opts.liquidity_provider_address,
    }
    values.update(changes)
    return CompileOptions(**values)


@pytest.fixture
def mixed_path(make_native_order):
    return [
        Fill(VenueSource.UNISWAP, 100, 200),
        Fill(VenueSource.ETH2DAI, 50, 90),
        Fill(VenueSource.NATIVE, 1000, 500, native_order=make_native_order()),
        Fill(VenueSource.KYBER, 10, 20),
    ]


def test_batching_enabled_merges_contiguous_bridge_runs(compiler, sell_opts, mixed_path):
    orders = compiler.compile(mixed_path, sell_opts)

    assert len(orders) == 3
    batched, native, tail = orders
    assert [f.source for f in batched.fills] == [VenueSource.UNISWAP, VenueSource.ETH2DAI]
    assert batched.maker_address == DEX_FORWARDER_BRIDGE
    assert native.is_native
    assert native.fills[0].source is VenueSource.NATIVE
    assert [f.source for f in tail.fills] == [VenueSource.KYBER]
    assert tail.maker_address == DEX_FORWARDER_BRIDGE


def test_batching_disabled_emits_one_order_per_fill(compiler, sell_opts, mixed_path):
    orders = compiler.compile(mixed_path, with_opts(sell_opts, should_batch_bridge_orders=False))

    assert len(orders) == 4
    assert [o.fills[0].source for o in orders] == [f.source for f in mixed_path]
    assert [o.maker_address for o in orders[:2]] == [UNISWAP_BRIDGE, ETH2DAI_BRIDGE]
    assert orders[3].maker_address == KYBER_BRIDGE
    assert all(len(o.fills) == 1 for o in orders)


def test_same_source_neighbours_collapse_into_one_order(compiler, sell_opts):
    path = [Fill(VenueSource.UNISWAP, 100, 200), Fill(VenueSource.UNISWAP, 50, 100)]
    orders = compiler.compile(path, with_opts(sell_opts, should_batch_bridge_orders=False))

    assert len(orders) == 1
    assert orders[0].fills[0].input == 150
    assert orders[0].fills[0].output == 300
    assert len(orders[0].fills[0].subfills) == 2


def test_compiling_collapsed_path_is_idempotent(compiler, sell_opts, mixed_path):
    path = mixed_path + [Fill(VenueSource.KYBER, 5, 7)]
    assert compiler.compile(path, sell_opts) == compiler.compile(collapse_path(path), sell_opts)


def test_batched_amounts_equal_sum_of_individual_orders(compiler, sell_opts):
    run = collapse_path([
        Fill(VenueSource.UNISWAP, 333, 999),
        Fill(VenueSource.ETH2DAI, 101, 377),
        Fill(VenueSource.KYBER, 7, 13),
    ])
    individual = [compiler.create_bridge_order(f, sell_opts) for f in run]
    batched = compiler.create_batched_bridge_order(run, sell_opts)

    assert batched.maker_asset_amount == sum(o.maker_asset_amount for o in individual)
    assert batched.taker_asset_amount == sum(o.taker_asset_amount for o in individual)
    assert batched.fillable_maker_asset_amount == batched.maker_asset_amount
    assert batched.fillable_taker_asset_amount == batched.taker_asset_amount

    expected_calls = [
        BridgeCall(o.maker_address, o.taker_asset_amount, o.maker_asset_amount, o.routing_payload)
        for o in individual
    ]
    assert batched.routing_payload == encode_dex_forwarder_bridge_data(USDC, expected_calls)


def test_bridge_order_amounts_and_fields(compiler, sell_opts):
    fill = collapse_path([Fill(VenueSource.UNISWAP, 500, 1000)])[0]
    order = compiler.create_bridge_order(fill, sell_opts)

    assert order.maker_asset_amount == 990  # floor(1000 * 0.99)
    assert order.taker_asset_amount == 500
    assert order.fillable_maker_asset_amount == 990
    assert order.fillable_taker_asset_amount == 500
    assert order.maker_address == UNISWAP_BRIDGE

    maker_asset = decode_asset_data(order.maker_asset_data)
    assert maker_asset.token_address == DAI
    assert maker_asset.bridge_address == UNISWAP_BRIDGE
    assert maker_asset.bridge_data == order.routing_payload == encode_bridge_data(USDC)
    assert decode_asset_data(order.taker_asset_data).token_address == USDC

    assert order.taker_address == NULL_ADDRESS
    assert order.sender_address == NULL_ADDRESS
    assert order.fee_recipient_address == NULL_ADDRESS
    assert order.maker_fee == order.taker_fee == order.fillable_taker_fee_amount == 0
    assert order.maker_fee_asset_data == order.taker_fee_asset_data == "0x"
    assert order.signature == WALLET_SIGNATURE
    assert order.salt == FIXED_SALT
    assert order.expiration_time_seconds == int(FIXED_NOW) + ONE_HOUR_IN_SECONDS
    assert order.chain_id == 1337
    assert order.exchange_address == EXCHANGE


def test_buy_side_swaps_tokens_and_ceils_taker(compiler, buy_opts):
    fill = collapse_path([Fill(VenueSource.ETH2DAI, 1000, 501)])[0]
    order = compiler.create_bridge_order(fill, buy_opts)

    assert order.maker_asset_amount == 1000
    assert order.taker_asset_amount == 507  # ceil(501 * 1.01) = ceil(506.01)
    assert decode_asset_data(order.maker_asset_data).token_address == DAI
    assert decode_asset_data(order.taker_asset_data).token_address == USDC


def test_native_order_passthrough(compiler, sell_opts, make_native_order):
    resting = make_native_order(maker_amount=1234, taker_amount=567, taker_fee=3)
    orders = compiler.compile([Fill(VenueSource.NATIVE, 567, 1234, native_order=resting)], sell_opts)

    assert len(orders) == 1
    order = orders[0]
    assert order.maker_asset_amount == 1234
    assert order.taker_asset_amount == 567
    assert order.fillable_maker_asset_amount == 1234
    assert order.fillable_taker_asset_amount == 567
    assert order.fillable_taker_fee_amount == 3
    assert order.routing_payload is None
    assert order.salt == resting.salt
    assert order.signature == resting.signature
    assert order.maker_asset_data == resting.maker_asset_data


def test_native_order_keeps_known_fillable_amounts(compiler, sell_opts, make_native_order):
    resting = create_signed_orders_with_fillable_amounts(
        MarketOperation.SELL, [make_native_order(maker_amount=1000, taker_amount=500)], [200])[0]
    order = compiler.compile([Fill(VenueSource.NATIVE, 200, 400, native_order=resting)], sell_opts)[0]

    assert order.maker_asset_amount == 1000
    assert order.fillable_taker_asset_amount == 200
    assert order.fillable_maker_asset_amount == 400


def test_liquidity_provider_is_never_batched(compiler, sell_opts):
    path = [
        Fill(VenueSource.UNISWAP, 1, 2),
        Fill(VenueSource.LIQUIDITY_PROVIDER, 3, 4),
        Fill(VenueSource.ETH2DAI, 5, 6),
    ]
    orders = compiler.compile(path, with_opts(sell_opts, liquidity_provider_address=LIQUIDITY_PROVIDER))

    assert len(orders) == 3
    assert orders[1].maker_address == LIQUIDITY_PROVIDER
    assert orders[1].routing_payload == encode_bridge_data(USDC)
    assert orders[0].maker_address == orders[2].maker_address == DEX_FORWARDER_BRIDGE


def test_liquidity_provider_address_falls_back_to_registry(contract_addresses, sell_opts):
    compiler = OrderCompiler(VenueRegistry(contract_addresses, liquidity_provider_address=LIQUIDITY_PROVIDER))
    orders = compiler.compile([Fill(VenueSource.LIQUIDITY_PROVIDER, 3, 4)], sell_opts)
    assert orders[0].maker_address == LIQUIDITY_PROVIDER


def test_missing_liquidity_provider_address(compiler, sell_opts):
    path = [Fill(VenueSource.UNISWAP, 1, 2), Fill(VenueSource.LIQUIDITY_PROVIDER, 3, 4)]
    with pytest.raises(MissingVenueAddressError):
        compiler.compile(path, sell_opts)
    assert compiler.get_stats()['failed_compilations'] == 1


def test_unsupported_venue_aborts_whole_compilation(sell_opts):
    registry = VenueRegistry(ContractAddresses(uniswap_bridge=UNISWAP_BRIDGE,
                                               dex_forwarder_bridge=DEX_FORWARDER_BRIDGE))
    compiler = OrderCompiler(registry)
    path = [Fill(VenueSource.UNISWAP, 1, 2), Fill(VenueSource.KYBER, 3, 4)]

    with pytest.raises(UnsupportedVenueError) as exc_info:
        compiler.compile(path, with_opts(sell_opts, should_batch_bridge_orders=False))
    assert exc_info.value.source == VenueSource.KYBER.value


def test_batching_requires_dex_forwarder(sell_opts):
    registry = VenueRegistry(ContractAddresses(uniswap_bridge=UNISWAP_BRIDGE))
    compiler = OrderCompiler(registry)
    path = [Fill(VenueSource.UNISWAP, 1, 2)]

    with pytest.raises(UnsupportedVenueError):
        compiler.compile(path, sell_opts)
    assert len(compiler.compile(path, with_opts(sell_opts, should_batch_bridge_orders=False))) == 1


def test_curve_payload_uses_pool_indices(compiler, sell_opts):
    fill = collapse_path([Fill(VenueSource.CURVE_USDC_DAI_USDT, 100, 99)])[0]
    order = compiler.create_bridge_order(fill, sell_opts)
    pool = DEFAULT_CURVE_POOLS[VenueSource.CURVE_USDC_DAI_USDT]

    # USDC -> DAI
    assert order.routing_payload == encode_curve_bridge_data(pool.curve_address, 1, 0, pool.version)


def test_curve_pool_without_token_is_unsupported(compiler, sell_opts):
    weth = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
    fill = collapse_path([Fill(VenueSource.CURVE_USDC_DAI, 100, 99)])[0]
    with pytest.raises(UnsupportedVenueError):
        compiler.create_bridge_order(fill, with_opts(sell_opts, input_token=weth))


def test_empty_path_compiles_to_no_orders(compiler, sell_opts):
    assert compiler.compile([], sell_opts) == []


def test_create_orders_from_path_helper(registry, sell_opts, mixed_path):
    orders = create_orders_from_path(mixed_path, sell_opts, registry)
    assert len(orders) == 3


@pytest.mark.parametrize("slippage", [float("nan"), None, 1])
def test_invalid_slippage_raises_value_error(compiler, sell_opts, slippage):
    with pytest.raises(ValueError):
        compiler.compile([Fill(VenueSource.UNISWAP, 500, 1000)], with_opts(sell_opts, bridge_slippage=slippage))
