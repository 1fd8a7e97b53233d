"""
错误类型 - 按类别区分，调用方可分别处理

配置类错误（路径编译中止）:
- UnsupportedVenueError
- MissingVenueAddressError

上游数据错误:
- NotERC20AssetDataError
- AssetDataError

请求输入错误:
- QuoteRequestError
"""

from typing import Optional


class AggregationError(Exception):
    """订单聚合错误基类"""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


class UnsupportedVenueError(AggregationError):
    """场所没有配置地址或负载编码方式"""


class MissingVenueAddressError(AggregationError):
    """直连场所（LiquidityProvider）缺少地址"""


class NotERC20AssetDataError(AggregationError):
    """原生订单资产不是ERC20"""


class AssetDataError(AggregationError):
    """无法解码的资产数据"""


class QuoteRequestError(ValueError):
    """报价请求参数非法"""
