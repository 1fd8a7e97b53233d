"""
资产数据编解码器
32字节字对齐（ABI）编码，负责ERC20 / ERC20Bridge资产数据
"""

import re
from dataclasses import dataclass
from typing import Optional

from ..constants import ERC20_PROXY_ID, ERC20_BRIDGE_PROXY_ID, MAX_UINT256
from ..errors import AssetDataError

WORD_SIZE = 32

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_HEX_BYTES_RE = re.compile(r"^0x([0-9a-fA-F]{2})*$")


@dataclass(frozen=True)
class DecodedAssetData:
    """解码后的资产数据"""
    asset_proxy_id: str
    token_address: str
    bridge_address: Optional[str] = None
    bridge_data: Optional[str] = None

    @property
    def is_bridge(self) -> bool:
        return self.asset_proxy_id == ERC20_BRIDGE_PROXY_ID


def is_hex_address(value) -> bool:
    """是否为0x开头的20字节地址"""
    return isinstance(value, str) and bool(_ADDRESS_RE.match(value))


def hex_to_bytes(value: str) -> bytes:
    """0x十六进制串 -> bytes"""
    if not isinstance(value, str) or not _HEX_BYTES_RE.match(value):
        raise AssetDataError(f"Invalid hex bytes: {value!r}")
    return bytes.fromhex(value[2:])


def bytes_to_hex(data: bytes) -> str:
    return "0x" + data.hex()


# ==================== 字编码 ====================

def encode_address_word(address: str) -> bytes:
    if not is_hex_address(address):
        raise AssetDataError(f"Invalid address: {address!r}")
    return bytes(12) + bytes.fromhex(address[2:])


def encode_uint_word(value: int) -> bytes:
    if value < 0 or value > MAX_UINT256:
        raise ValueError(f"uint256 out of range: {value}")
    return value.to_bytes(WORD_SIZE, "big")


def encode_int_word(value: int) -> bytes:
    """有符号整数（int128以内）补码编码"""
    return value.to_bytes(WORD_SIZE, "big", signed=True)


def encode_dynamic_bytes(data: bytes) -> bytes:
    """长度字 + 右补零到整字"""
    padded_len = -(-len(data) // WORD_SIZE) * WORD_SIZE
    return encode_uint_word(len(data)) + data + bytes(padded_len - len(data))


def _decode_address_word(word: bytes) -> str:
    if len(word) != WORD_SIZE or word[:12] != bytes(12):
        raise AssetDataError(f"Malformed address word: 0x{word.hex()}")
    return "0x" + word[12:].hex()


# ==================== 资产数据 ====================

def encode_erc20_asset_data(token_address: str) -> str:
    """ERC20资产数据: proxy_id + address"""
    return ERC20_PROXY_ID + encode_address_word(token_address).hex()


def encode_erc20_bridge_asset_data(token_address: str, bridge_address: str, bridge_data: str) -> str:
    """
    ERC20Bridge资产数据

    Args:
        token_address: maker代币
        bridge_address: 桥合约地址
        bridge_data: 桥路由负载（0x十六进制）

    Returns:
        0x十六进制资产数据
    """
    body = (
        encode_address_word(token_address)
        + encode_address_word(bridge_address)
        + encode_uint_word(3 * WORD_SIZE)
        + encode_dynamic_bytes(hex_to_bytes(bridge_data))
    )
    return ERC20_BRIDGE_PROXY_ID + body.hex()


def decode_asset_data(asset_data: str) -> DecodedAssetData:
    """
    解码ERC20 / ERC20Bridge资产数据，地址统一小写

    Raises:
        AssetDataError: 无法识别的代理ID或格式损坏
    """
    raw = hex_to_bytes(asset_data)
    if len(raw) < 4:
        raise AssetDataError(f"Asset data too short: {asset_data!r}")

    proxy_id = "0x" + raw[:4].hex()
    body = raw[4:]

    if proxy_id == ERC20_PROXY_ID:
        if len(body) != WORD_SIZE:
            raise AssetDataError(f"Malformed ERC20 asset data: {asset_data}")
        return DecodedAssetData(asset_proxy_id=proxy_id, token_address=_decode_address_word(body))

    if proxy_id == ERC20_BRIDGE_PROXY_ID:
        if len(body) < 4 * WORD_SIZE:
            raise AssetDataError(f"Malformed ERC20Bridge asset data: {asset_data}")
        token_address = _decode_address_word(body[0:WORD_SIZE])
        bridge_address = _decode_address_word(body[WORD_SIZE:2 * WORD_SIZE])
        offset = int.from_bytes(body[2 * WORD_SIZE:3 * WORD_SIZE], "big")
        if offset + WORD_SIZE > len(body):
            raise AssetDataError(f"Bridge data offset out of range: {offset}")
        length = int.from_bytes(body[offset:offset + WORD_SIZE], "big")
        data = body[offset + WORD_SIZE:offset + WORD_SIZE + length]
        if len(data) != length:
            raise AssetDataError(f"Bridge data truncated: expected {length} bytes, got {len(data)}")
        return DecodedAssetData(
            asset_proxy_id=proxy_id,
            token_address=token_address,
            bridge_address=bridge_address,
            bridge_data=bytes_to_hex(data),
        )

    raise AssetDataError(f"Unsupported asset proxy id {proxy_id}")
