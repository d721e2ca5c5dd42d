# kuflow_samples/services/currency.py
# 货币换算服务
#
# 功能说明：
# 1. 货币编码白名单校验（EUR / USD / GBP）
# 2. 调用公共汇率 API 获取汇率并换算金额
#
# 贷款 Workflow 的换算 Activity 和 Webhook 版本的贷款处理器共用此服务。
#
# 汇率 API 响应格式（以 usd 为基准）：
#   GET {CURRENCY_API_URL}/usd.json
#   {"date": "2024-03-06", "usd": {"eur": 0.92, "gbp": 0.78, ...}}

from decimal import Decimal, InvalidOperation
from typing import Optional

import httpx

from kuflow_samples.core.config import settings
from kuflow_samples.core.logging import get_logger

logger = get_logger(__name__)


# 支持的货币编码 → 汇率 API 使用的小写编码
SUPPORTED_CURRENCIES = {
    "EUR": "eur",
    "USD": "usd",
    "GBP": "gbp",
}


class CurrencyConversionError(Exception):
    """货币换算失败"""


class UnsupportedCurrencyError(CurrencyConversionError):
    """不支持的货币编码"""

    def __init__(self, currency: Optional[str]):
        self.currency = currency
        super().__init__(f"Unsupported currency {currency}")


def transform_currency_code(currency: Optional[str]) -> str:
    """
    把货币编码转换为汇率 API 使用的格式

    Raises:
        UnsupportedCurrencyError: 不在白名单内
    """
    try:
        return SUPPORTED_CURRENCIES[currency]
    except (KeyError, TypeError):
        raise UnsupportedCurrencyError(currency) from None


def parse_amount(amount_text: Optional[str]) -> Decimal:
    """
    解析金额文本，None 视为 "0"

    Raises:
        CurrencyConversionError: 不是合法的数字，或是 NaN / Infinity
    """
    try:
        amount = Decimal(amount_text if amount_text is not None else "0")
    except InvalidOperation:
        raise CurrencyConversionError(f"Invalid amount {amount_text!r}") from None
    if not amount.is_finite():
        raise CurrencyConversionError(f"Invalid amount {amount_text!r}")
    return amount


def format_amount(amount: Decimal) -> str:
    """Decimal 转为不带指数的纯文本"""
    return format(amount, "f")


class CurrencyConverter:
    """
    货币换算器

    使用方法：
        converter = CurrencyConverter()
        amount = await converter.convert("100", "USD", "EUR")  # "92.000"
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_url = (api_url or settings.CURRENCY_API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.CURRENCY_API_TIMEOUT

    async def get_rate(self, from_code: str, to_code: str) -> Decimal:
        """
        获取汇率

        Args:
            from_code: 小写源货币编码
            to_code: 小写目标货币编码

        Raises:
            CurrencyConversionError: 响应中没有对应汇率
            httpx.HTTPError: 网络错误或非 2xx 响应
        """
        url = f"{self.api_url}/{from_code}.json"
        logger.info(f"[Currency] GET {url}")

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(url)
            response.raise_for_status()
            data = response.json()

        table = data.get(from_code)
        if not isinstance(table, dict) or table.get(to_code) is None:
            raise CurrencyConversionError(f"No conversion rate from {from_code} to {to_code}")

        # 经 str 转换，避免 float 二进制误差带入 Decimal
        return Decimal(str(table[to_code]))

    async def convert(self, amount_text: Optional[str], from_currency: str, to_currency: str) -> str:
        """
        换算金额

        Args:
            amount_text: 金额文本
            from_currency: 源货币（EUR / USD / GBP）
            to_currency: 目标货币（EUR / USD / GBP）

        Returns:
            str: 换算后的金额文本

        Raises:
            UnsupportedCurrencyError: 货币不在白名单内
            CurrencyConversionError: 金额非法或汇率缺失
        """
        amount = parse_amount(amount_text)
        from_code = transform_currency_code(from_currency)
        to_code = transform_currency_code(to_currency)

        if from_code == to_code:
            return format_amount(amount)

        rate = await self.get_rate(from_code, to_code)
        converted = amount * rate
        logger.info(f"[Currency] {amount} {from_currency} -> {converted} {to_currency} (rate={rate})")
        return format_amount(converted)

    async def convert_to_euros(self, currency: Optional[str], amount_text: Optional[str]) -> Decimal:
        """
        把金额换算成欧元，EUR 直接返回

        Webhook 处理器使用；Workflow 中的同名逻辑通过 Activity 完成
        """
        amount = parse_amount(amount_text)
        if currency == "EUR":
            return amount
        return Decimal(await self.convert(format_amount(amount), currency, "EUR"))
