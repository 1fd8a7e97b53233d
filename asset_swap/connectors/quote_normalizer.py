"""
Quote Normalizer - RFQ报价校验与规范化
结构校验 -> 资产交叉核对 -> 数值字段转Decimal
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..dto.core_dtos import FirmQuote, QuoteOutcomeStatus, QuoteRequest

logger = logging.getLogger(__name__)

ADDRESS_PATTERN = r"^0x[0-9a-fA-F]{40}$"
HEX_BYTES_PATTERN = r"^0x([0-9a-fA-F]{2})*$"
WHOLE_NUMBER_PATTERN = r"^\d+$"


class SignedOrderPayload(BaseModel):
    """报价方返回的签名订单（数值为字符串）"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    maker_address: str = Field(alias="makerAddress", pattern=ADDRESS_PATTERN)
    taker_address: str = Field(alias="takerAddress", pattern=ADDRESS_PATTERN)
    sender_address: str = Field(alias="senderAddress", pattern=ADDRESS_PATTERN)
    fee_recipient_address: str = Field(alias="feeRecipientAddress", pattern=ADDRESS_PATTERN)
    exchange_address: str = Field(alias="exchangeAddress", pattern=ADDRESS_PATTERN)

    maker_asset_data: str = Field(alias="makerAssetData", pattern=HEX_BYTES_PATTERN)
    taker_asset_data: str = Field(alias="takerAssetData", pattern=HEX_BYTES_PATTERN)
    maker_fee_asset_data: str = Field(alias="makerFeeAssetData", pattern=HEX_BYTES_PATTERN)
    taker_fee_asset_data: str = Field(alias="takerFeeAssetData", pattern=HEX_BYTES_PATTERN)
    signature: str = Field(pattern=HEX_BYTES_PATTERN)

    maker_asset_amount: str = Field(alias="makerAssetAmount", pattern=WHOLE_NUMBER_PATTERN)
    taker_asset_amount: str = Field(alias="takerAssetAmount", pattern=WHOLE_NUMBER_PATTERN)
    maker_fee: str = Field(alias="makerFee", pattern=WHOLE_NUMBER_PATTERN)
    taker_fee: str = Field(alias="takerFee", pattern=WHOLE_NUMBER_PATTERN)
    expiration_time_seconds: str = Field(alias="expirationTimeSeconds", pattern=WHOLE_NUMBER_PATTERN)
    salt: str = Field(pattern=WHOLE_NUMBER_PATTERN)

    chain_id: int = Field(alias="chainId", ge=1)


class QuoteValidationError(Exception):
    """报价被拒绝（非致命，仅用于标记类别）"""

    def __init__(self, status: QuoteOutcomeStatus, detail: str):
        super().__init__(detail)
        self.status = status
        self.detail = detail


class QuoteNormalizer:
    """报价规范化器"""

    NUMERIC_FIELDS = (
        'maker_asset_amount',
        'taker_asset_amount',
        'maker_fee',
        'taker_fee',
        'expiration_time_seconds',
        'salt',
    )

    @classmethod
    def normalize_firm_quote(cls, raw: Any, request: QuoteRequest) -> FirmQuote:
        """
        校验原始报价并转换为FirmQuote

        Args:
            raw: 报价方返回的JSON
            request: 本轮请求

        Returns:
            FirmQuote

        Raises:
            QuoteValidationError: SCHEMA_INVALID / TOKEN_MISMATCH
        """
        try:
            payload = SignedOrderPayload.model_validate(raw)
        except ValidationError as e:
            raise QuoteValidationError(
                QuoteOutcomeStatus.SCHEMA_INVALID,
                f"Invalid RFQ-T order ({e.error_count()} errors): {raw!r}",
            ) from e

        # 资产数据大小写不敏感比较
        has_expected_maker = payload.maker_asset_data.lower() == request.maker_asset_data.lower()
        has_expected_taker = payload.taker_asset_data.lower() == request.taker_asset_data.lower()
        if not has_expected_maker or not has_expected_taker:
            raise QuoteValidationError(
                QuoteOutcomeStatus.TOKEN_MISMATCH,
                f"Unexpected asset data in RFQ-T order: maker={payload.maker_asset_data} "
                f"taker={payload.taker_asset_data}",
            )

        try:
            numeric = {name: Decimal(getattr(payload, name)) for name in cls.NUMERIC_FIELDS}
        except InvalidOperation as e:
            raise QuoteValidationError(QuoteOutcomeStatus.SCHEMA_INVALID,
                                       f"Non-numeric amount in RFQ-T order: {raw!r}") from e

        return FirmQuote(
            maker_address=payload.maker_address,
            taker_address=payload.taker_address,
            sender_address=payload.sender_address,
            fee_recipient_address=payload.fee_recipient_address,
            maker_asset_data=payload.maker_asset_data,
            taker_asset_data=payload.taker_asset_data,
            maker_fee_asset_data=payload.maker_fee_asset_data,
            taker_fee_asset_data=payload.taker_fee_asset_data,
            signature=payload.signature,
            chain_id=payload.chain_id,
            exchange_address=payload.exchange_address,
            **numeric,
        )
