import pytest

from asset_swap.dto.core_dtos import MarketOperation, OrderDomain, SignedOrder
from asset_swap.exec.order_compiler import CompileOptions, OrderCompiler
from asset_swap.exec.venue_registry import ContractAddresses, VenueRegistry, DAI, USDC
from asset_swap.utils.asset_data import encode_erc20_asset_data

ETH2DAI_BRIDGE = "0x" + "e2" * 20
KYBER_BRIDGE = "0x" + "7b" * 20
UNISWAP_BRIDGE = "0x" + "a1" * 20
CURVE_BRIDGE = "0x" + "c0" * 20
DEX_FORWARDER_BRIDGE = "0x" + "df" * 20
LIQUIDITY_PROVIDER = "0x" + "1f" * 20
EXCHANGE = "0x" + "ee" * 20
MAKER = "0x" + "4d" * 20
TAKER = "0x" + "7a" * 20

FIXED_SALT = 42
FIXED_NOW = 1_600_000_000.7


@pytest.fixture
def contract_addresses():
    return ContractAddresses(
        eth2dai_bridge=ETH2DAI_BRIDGE,
        kyber_bridge=KYBER_BRIDGE,
        uniswap_bridge=UNISWAP_BRIDGE,
        curve_bridge=CURVE_BRIDGE,
        dex_forwarder_bridge=DEX_FORWARDER_BRIDGE,
    )


@pytest.fixture
def registry(contract_addresses):
    return VenueRegistry(contract_addresses)


@pytest.fixture
def compiler(registry):
    return OrderCompiler(
        registry,
        order_domain=OrderDomain(chain_id=1337, exchange_address=EXCHANGE),
        salt_factory=lambda: FIXED_SALT,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def sell_opts():
    # sell USDC for DAI
    return CompileOptions(
        side=MarketOperation.SELL,
        input_token=USDC,
        output_token=DAI,
        bridge_slippage=0.01,
        should_batch_bridge_orders=True,
    )


@pytest.fixture
def buy_opts():
    # buy DAI with USDC
    return CompileOptions(
        side=MarketOperation.BUY,
        input_token=DAI,
        output_token=USDC,
        bridge_slippage=0.01,
        should_batch_bridge_orders=True,
    )


@pytest.fixture
def make_native_order():
    def _make(maker_amount=1000, taker_amount=500, taker_fee=0, salt=7):
        return SignedOrder(
            maker_address=MAKER,
            maker_asset_data=encode_erc20_asset_data(DAI),
            taker_asset_data=encode_erc20_asset_data(USDC),
            maker_asset_amount=maker_amount,
            taker_asset_amount=taker_amount,
            taker_fee=taker_fee,
            salt=salt,
            expiration_time_seconds=1_700_000_000,
            signature="0x1b" + "ab" * 65,
            chain_id=1337,
            exchange_address=EXCHANGE,
        )
    return _make


@pytest.fixture
def quote_body():
    """报价方返回的签名订单JSON"""
    def _make(maker_asset_data=None, taker_asset_data=None, **overrides):
        body = {
            "makerAddress": MAKER,
            "takerAddress": TAKER,
            "senderAddress": "0x" + "00" * 20,
            "feeRecipientAddress": "0x" + "00" * 20,
            "exchangeAddress": EXCHANGE,
            "makerAssetData": maker_asset_data or encode_erc20_asset_data(DAI),
            "takerAssetData": taker_asset_data or encode_erc20_asset_data(USDC),
            "makerFeeAssetData": "0x",
            "takerFeeAssetData": "0x",
            "makerAssetAmount": "1000000000000000000000",
            "takerAssetAmount": "999000000",
            "makerFee": "0",
            "takerFee": "0",
            "expirationTimeSeconds": "1700000000",
            "salt": "115792089237316195423570985008687907853269984665640564039457584007913129639935",
            "signature": "0x1b" + "cd" * 65,
            "chainId": 1,
        }
        body.update(overrides)
        return body
    return _make
