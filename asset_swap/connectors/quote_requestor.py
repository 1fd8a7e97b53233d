#!/usr/bin/env python3
"""
QuoteRequestor - RFQ-T确定报价聚合

职责：
✅ 向所有报价方并发请求确定报价（每个报价方一个请求）
✅ 每个请求独立超时
✅ 校验/规范化报价

不包含：
❌ 重试（失败的报价方本轮直接缺席）
❌ 报价选优（由上游路由决定）
"""

import asyncio
import logging
import time
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Union

import aiohttp

from ..constants import DEFAULT_MAKER_RESPONSE_TIMEOUT_MS, ONE_SECOND_MS
from ..dto.core_dtos import (
    FirmQuote,
    MarketOperation,
    ProviderOutcome,
    QuoteOutcomeStatus,
    QuoteRequest,
)
from .quote_normalizer import QuoteNormalizer, QuoteValidationError

logger = logging.getLogger(__name__)

API_KEY_HEADER = "0x-api-key"


def _mask(api_key: str) -> str:
    return f"{api_key[:4]}***" if api_key else "<none>"


class QuoteRequestor:
    """
    RFQ-T报价请求器

    报价方失败/超时/返回非法报价都不会抛出，只会从结果中缺席；
    aggregate 直接返回本轮结果；last_outcomes 只保留最后完成的一轮，供诊断使用
    """

    def __init__(self,
                 rfqt_maker_endpoints: Sequence[str],
                 session: Optional[aiohttp.ClientSession] = None,
                 default_max_response_time_ms: int = DEFAULT_MAKER_RESPONSE_TIMEOUT_MS):
        """
        Args:
            rfqt_maker_endpoints: 报价方地址列表（不可变配置）
            session: 外部HTTP会话，不传则自行创建并负责关闭
            default_max_response_time_ms: 默认单个报价方超时
        """
        self.rfqt_maker_endpoints = tuple(rfqt_maker_endpoints)
        self.default_max_response_time_ms = default_max_response_time_ms

        # HTTP会话
        self.session: Optional[aiohttp.ClientSession] = session
        self._owns_session = session is None

        self.last_outcomes: List[ProviderOutcome] = []

        self.stats = {
            'rounds': 0,
            'requests': 0,
            'accepted': 0,
            'timeouts': 0,
            'errors': 0,
            'rejected': 0,
        }

        logger.info("[QuoteRequestor] 初始化完成 makers=%d timeout=%sms",
                    len(self.rfqt_maker_endpoints), default_max_response_time_ms)

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def initialize(self):
        """初始化HTTP会话"""
        if not self.session:
            self.session = aiohttp.ClientSession()
            self._owns_session = True
            logger.info("[QuoteRequestor] HTTP会话已创建")

    async def close(self):
        """关闭自有HTTP会话"""
        if self.session and self._owns_session:
            await self.session.close()
            self.session = None
            logger.info("[QuoteRequestor] HTTP会话已关闭")

    # ==================== 报价聚合 ====================

    async def request_rfqt_firm_quotes(self,
                                       maker_asset_data: str,
                                       taker_asset_data: str,
                                       asset_fill_amount: Union[int, Decimal],
                                       market_operation: MarketOperation,
                                       taker_api_key: str,
                                       taker_address: str,
                                       max_response_time_ms: Optional[int] = None) -> List[FirmQuote]:
        """
        请求所有报价方的确定报价

        Args:
            maker_asset_data: 买入资产数据
            taker_asset_data: 卖出资产数据
            asset_fill_amount: 成交数量
            market_operation: 交易方向
            taker_api_key: API密钥
            taker_address: taker地址
            max_response_time_ms: 单个报价方超时，默认使用构造参数

        Returns:
            通过校验的报价（顺序不保证）

        Raises:
            QuoteRequestError: 请求参数非法
        """
        request = QuoteRequest.create(
            maker_asset_data=maker_asset_data,
            taker_asset_data=taker_asset_data,
            asset_fill_amount=asset_fill_amount,
            market_operation=market_operation,
            taker_api_key=taker_api_key,
            taker_address=taker_address,
            max_response_time_ms=(max_response_time_ms if max_response_time_ms is not None
                                  else self.default_max_response_time_ms),
        )
        outcomes = await self.aggregate(request)
        return [outcome.quote for outcome in outcomes if outcome.accepted]

    async def aggregate(self, request: QuoteRequest) -> List[ProviderOutcome]:
        """
        并发请求所有报价方并等待全部结束（成功/失败/超时）

        Returns:
            每个报价方一个结果
        """
        if not self.session:
            await self.initialize()

        outcomes = list(await asyncio.gather(
            *(self._request_from_maker(endpoint, request) for endpoint in self.rfqt_maker_endpoints)
        ))
        # 仅作诊断：并发轮次时为最后完成的一轮
        self.last_outcomes = outcomes
        self._update_stats(outcomes)

        accepted = sum(1 for o in outcomes if o.accepted)
        logger.info("[QuoteRequestor] 报价轮次完成 %s %s accepted=%d/%d",
                    request.market_operation.value, request.asset_fill_amount,
                    accepted, len(outcomes))
        return outcomes

    @staticmethod
    def _build_params(request: QuoteRequest) -> Dict[str, str]:
        params = {
            'sellToken': request.taker_token,
            'buyToken': request.maker_token,
            'takerAddress': request.taker_address,
        }
        if request.market_operation is MarketOperation.BUY:
            params['buyAmount'] = str(request.asset_fill_amount)
        else:
            params['sellAmount'] = str(request.asset_fill_amount)
        return params

    async def _fetch_quote(self, endpoint: str, request: QuoteRequest) -> Any:
        url = f"{endpoint}/quote"
        headers = {API_KEY_HEADER: request.taker_api_key}
        async with self.session.get(url, params=self._build_params(request), headers=headers) as resp:
            resp.raise_for_status()
            return await resp.json(content_type=None)

    async def _request_from_maker(self, endpoint: str, request: QuoteRequest) -> ProviderOutcome:
        """单个报价方请求，结果封装为ProviderOutcome，不抛出"""
        start = time.monotonic()
        timeout_s = request.max_response_time_ms / ONE_SECOND_MS

        try:
            raw = await asyncio.wait_for(self._fetch_quote(endpoint, request), timeout=timeout_s)
            quote = QuoteNormalizer.normalize_firm_quote(raw, request)
        except asyncio.TimeoutError:
            return self._failed(endpoint, request, start, QuoteOutcomeStatus.TIMEOUT,
                                f"no response within {request.max_response_time_ms}ms")
        except aiohttp.ClientResponseError as e:
            return self._failed(endpoint, request, start, QuoteOutcomeStatus.HTTP_ERROR,
                                f"HTTP {e.status}: {e.message}")
        except aiohttp.ClientError as e:
            return self._failed(endpoint, request, start, QuoteOutcomeStatus.NETWORK_ERROR, str(e))
        except ValueError as e:
            return self._failed(endpoint, request, start, QuoteOutcomeStatus.SCHEMA_INVALID,
                                f"malformed JSON body: {e}")
        except QuoteValidationError as e:
            return self._failed(endpoint, request, start, e.status, e.detail)
        except Exception as e:
            logger.exception("[QuoteRequestor] 报价方异常 %s", endpoint)
            return self._failed(endpoint, request, start, QuoteOutcomeStatus.UNEXPECTED_ERROR, repr(e))

        latency_ms = (time.monotonic() - start) * 1000
        logger.debug("[QuoteRequestor] 报价通过 %s latency=%.1fms", endpoint, latency_ms)
        return ProviderOutcome(
            endpoint=endpoint,
            status=QuoteOutcomeStatus.ACCEPTED,
            quote=quote,
            latency_ms=latency_ms,
        )

    @staticmethod
    def _failed(endpoint: str, request: QuoteRequest, start: float,
                status: QuoteOutcomeStatus, detail: str) -> ProviderOutcome:
        logger.warning(
            "[QuoteRequestor] 报价方 %s 无有效报价 (%s) api_key=%s taker=%s: %s",
            endpoint, status.value, _mask(request.taker_api_key), request.taker_address, detail,
        )
        return ProviderOutcome(
            endpoint=endpoint,
            status=status,
            detail=detail,
            latency_ms=(time.monotonic() - start) * 1000,
        )

    def _update_stats(self, outcomes: List[ProviderOutcome]) -> None:
        self.stats['rounds'] += 1
        self.stats['requests'] += len(outcomes)
        for outcome in outcomes:
            if outcome.accepted:
                self.stats['accepted'] += 1
            elif outcome.status is QuoteOutcomeStatus.TIMEOUT:
                self.stats['timeouts'] += 1
            elif outcome.status in (QuoteOutcomeStatus.SCHEMA_INVALID, QuoteOutcomeStatus.TOKEN_MISMATCH):
                self.stats['rejected'] += 1
            else:
                self.stats['errors'] += 1

    def get_stats(self) -> Dict[str, Any]:
        return {
            **self.stats,
            'accept_rate': self.stats['accepted'] / self.stats['requests'] if self.stats['requests'] > 0 else 0,
            'makers': list(self.rfqt_maker_endpoints),
        }
