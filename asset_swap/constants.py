"""
常量定义 - 订单编译与RFQ报价共用
"""

NULL_ADDRESS = "0x" + "0" * 40
NULL_BYTES = "0x"
ZERO_AMOUNT = 0

# 资产代理ID
ERC20_PROXY_ID = "0xf47261b0"
ERC20_BRIDGE_PROXY_ID = "0xdc1600f3"

# 钱包签名类型占位
WALLET_SIGNATURE = "0x04"

ONE_HOUR_IN_SECONDS = 60 * 60
ONE_SECOND_MS = 1000

# 默认参数
DEFAULT_BRIDGE_SLIPPAGE = 0.0005
DEFAULT_MAKER_RESPONSE_TIMEOUT_MS = 1000
DEFAULT_CHAIN_ID = 1

# Decimal运算精度（覆盖uint256）
UINT256_DECIMAL_PRECISION = 200
MAX_UINT256 = 2 ** 256 - 1
