"""
证书过期计算服务
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from cryptography import x509

from ..models import ProbeOutcome

TIME_FORMAT = '%Y-%m-%dT%H:%M:%SZ'
SECONDS_PER_DAY = 24 * 60 * 60


def format_timestamp(moment: datetime) -> str:
    """格式化为UTC时间字符串 YYYY-MM-DDTHH:MM:SSZ"""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime(TIME_FORMAT)


def format_duration(seconds: float) -> str:
    """
    格式化耗时，精确到毫秒

    Args:
        seconds: 耗时（秒）

    Returns:
        str: 例如 "0s"、"247ms"、"1.5s"、"1m2.003s"
    """
    millis = int(round(seconds * 1000))
    if millis <= 0:
        return "0s"
    if millis < 1000:
        return f"{millis}ms"

    minutes, millis = divmod(millis, 60 * 1000)
    secs, millis = divmod(millis, 1000)
    text = f"{secs}.{millis:03d}".rstrip('0').rstrip('.') + "s"
    if minutes:
        text = f"{minutes}m{text}"
    return text


def certificate_validity(cert: x509.Certificate):
    """读取证书有效期（UTC）"""
    return cert.not_valid_before_utc, cert.not_valid_after_utc


class ExpiryCalculator:
    """证书过期计算器"""

    def __init__(self, warn_at_days: int = 30):
        """
        初始化过期计算器

        Args:
            warn_at_days: 提前警告天数，默认30天
        """
        self.warn_at_days = warn_at_days

    def total_days(self, not_before: datetime, not_after: datetime) -> int:
        """证书有效期总天数"""
        return int((not_after - not_before).total_seconds() // SECONDS_PER_DAY)

    def days_to_expiry(self, not_after: datetime, now: Optional[datetime] = None) -> int:
        """
        计算距离过期的天数

        Args:
            not_after: 过期时间
            now: 当前时间，默认取系统UTC时间

        Returns:
            int: 剩余天数，已过期时为0（不会是负数）
        """
        now = now or datetime.now(timezone.utc)
        remaining = (not_after - now).total_seconds()
        if remaining <= 0:
            return 0
        return int(remaining // SECONDS_PER_DAY)

    def is_expiry_warning(self, not_after: datetime, now: Optional[datetime] = None) -> bool:
        """已过期或在警告期内过期"""
        now = now or datetime.now(timezone.utc)
        return now + timedelta(days=self.warn_at_days) >= not_after

    def apply(self, outcome: ProbeOutcome, cert: x509.Certificate,
              now: Optional[datetime] = None) -> ProbeOutcome:
        """
        将证书的颁发者、有效期和过期状态写入检查结果

        Args:
            outcome: 检查结果
            cert: 叶子证书
            now: 计算时间

        Returns:
            ProbeOutcome: 同一个结果对象
        """
        now = now or datetime.now(timezone.utc)
        not_before, not_after = certificate_validity(cert)

        outcome.issuer = cert.issuer.rfc4514_string()
        outcome.not_before = format_timestamp(not_before)
        outcome.not_after = format_timestamp(not_after)
        outcome.total_days = self.total_days(not_before, not_after)
        outcome.days_to_expiry = self.days_to_expiry(not_after, now)
        outcome.warn_at_days = self.warn_at_days
        outcome.expiry_warning = self.is_expiry_warning(not_after, now)
        outcome.check_time = format_timestamp(now)
        return outcome
