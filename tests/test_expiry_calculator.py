"""
过期计算器测试
"""
import pytest
from datetime import datetime, timezone, timedelta

from certcheck.models import ProbeOutcome
from certcheck.services.expiry_calculator import (
    ExpiryCalculator,
    format_duration,
    format_timestamp,
)


class TestExpiryCalculator:
    """过期计算器测试类"""

    def setup_method(self):
        """测试前准备"""
        self.calculator = ExpiryCalculator(warn_at_days=30)
        self.now = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)

    def test_days_to_expiry_future(self):
        """测试未来过期"""
        not_after = self.now + timedelta(days=51, hours=3)

        assert self.calculator.days_to_expiry(not_after, self.now) == 51

    def test_days_to_expiry_never_negative(self):
        """测试已过期时为0"""
        assert self.calculator.days_to_expiry(self.now - timedelta(days=10), self.now) == 0
        assert self.calculator.days_to_expiry(self.now, self.now) == 0

    def test_total_days(self):
        """测试有效期总天数"""
        not_before = self.now - timedelta(days=39)
        not_after = self.now + timedelta(days=51, hours=1)

        assert self.calculator.total_days(not_before, not_after) == 90

    def test_expiry_warning_threshold(self):
        """测试警告阈值（含边界）"""
        assert self.calculator.is_expiry_warning(self.now + timedelta(days=51), self.now) is False
        assert self.calculator.is_expiry_warning(self.now + timedelta(days=30), self.now) is True
        assert self.calculator.is_expiry_warning(self.now + timedelta(days=10), self.now) is True
        assert self.calculator.is_expiry_warning(self.now - timedelta(days=1), self.now) is True

    def test_expiry_warning_depends_on_threshold(self):
        """测试同一证书不同阈值"""
        not_after = self.now + timedelta(days=51)

        assert ExpiryCalculator(warn_at_days=60).is_expiry_warning(not_after, self.now) is True
        assert ExpiryCalculator(warn_at_days=30).is_expiry_warning(not_after, self.now) is False

    def test_apply(self, cert_factory):
        """测试将证书信息写入结果"""
        cert = cert_factory(days_valid=51, days_since_issue=39, issuer_cn='R3')
        outcome = ProbeOutcome(host="example.com", port="443")

        self.calculator.apply(outcome, cert)

        assert outcome.days_to_expiry == 51
        assert outcome.total_days == 90
        assert outcome.expiry_warning is False
        assert outcome.warn_at_days == 30
        assert outcome.issuer == "O=Test Org,CN=R3"
        assert outcome.not_after.endswith("Z")
        assert outcome.check_time.endswith("Z")


class TestFormatting:
    """格式化测试类"""

    def test_format_timestamp(self):
        """测试时间格式"""
        moment = datetime(2024, 12, 31, 23, 59, 59, tzinfo=timezone.utc)

        assert format_timestamp(moment) == "2024-12-31T23:59:59Z"

    def test_format_timestamp_converts_to_utc(self):
        """测试转换为UTC"""
        moment = datetime(2024, 1, 1, 8, 0, 0, tzinfo=timezone(timedelta(hours=8)))

        assert format_timestamp(moment) == "2024-01-01T00:00:00Z"

    @pytest.mark.parametrize("seconds,expected", [
        (0, "0s"),
        (0.0004, "0s"),
        (0.247, "247ms"),
        (0.2474, "247ms"),
        (1, "1s"),
        (1.5, "1.5s"),
        (12.034, "12.034s"),
        (62.003, "1m2.003s"),
        (120, "2m0s"),
    ])
    def test_format_duration(self, seconds, expected):
        """测试耗时格式"""
        assert format_duration(seconds) == expected
