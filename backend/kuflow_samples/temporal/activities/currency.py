# kuflow_samples/temporal/activities/currency.py
# 货币换算 Activity
#
# 不支持的货币编码、非法金额属于业务错误，重试没有意义，
# 统一转换为不可重试的 ApplicationError；
# 网络错误等其他异常直接抛出，由 Workflow 中配置的重试策略处理。

from temporalio import activity
from temporalio.exceptions import ApplicationError

from kuflow_samples.services.currency import CurrencyConversionError, CurrencyConverter


class CurrencyConversionActivities:
    """货币换算 Activities"""

    def __init__(self, converter: CurrencyConverter = None):
        self.converter = converter or CurrencyConverter()

    def all(self) -> list:
        return [self.convert]

    @activity.defn(name="CurrencyConversion_convert")
    async def convert(self, amount_text: str, from_currency: str, to_currency: str) -> str:
        """
        换算金额

        Args:
            amount_text: 金额文本
            from_currency: 源货币
            to_currency: 目标货币

        Returns:
            str: 换算后的金额文本
        """
        activity.logger.info(f"货币换算: {amount_text} {from_currency} -> {to_currency}")
        try:
            return await self.converter.convert(amount_text, from_currency, to_currency)
        except CurrencyConversionError as e:
            raise ApplicationError(str(e), type="CurrencyConversion", non_retryable=True) from e
