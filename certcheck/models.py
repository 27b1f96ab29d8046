"""
数据模型定义
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple, Union

DEFAULT_PORT = "443"


@dataclass(frozen=True)
class Target:
    """待检查的目标（主机 + 端口）"""
    host: str
    port: str = DEFAULT_PORT

    @property
    def key(self) -> str:
        """去重键 host:port"""
        return f"{self.host}:{self.port}"


@dataclass
class ProbeOutcome:
    """单个目标的证书检查结果"""
    host: str
    port: str
    host_error: bool = False
    message: str = ""
    issuer: str = ""
    not_before: str = ""
    not_after: str = ""
    total_days: int = 0
    days_to_expiry: int = 0
    warn_at_days: int = 0
    expiry_warning: bool = False
    check_time: str = ""
    fetch_time: str = ""

    @classmethod
    def failure(cls, host: str, port: str, message: str, warn_at_days: int = 0,
                check_time: str = "", fetch_time: str = "0s") -> "ProbeOutcome":
        """构造主机错误结果，有效期字段保持为空"""
        return cls(
            host=host,
            port=port,
            host_error=True,
            message=message,
            warn_at_days=warn_at_days,
            check_time=check_time,
            fetch_time=fetch_time,
        )

    def to_dict(self) -> Dict[str, Any]:
        """按报告格式输出（字段名固定）"""
        return {
            'host': self.host,
            'port': self.port,
            'hosterror': self.host_error,
            'message': self.message,
            'issuer': self.issuer,
            'totaldays': self.total_days,
            'daystoexpiry': self.days_to_expiry,
            'warnatdays': self.warn_at_days,
            'checktime': self.check_time,
            'notbefore': self.not_before,
            'notafter': self.not_after,
            'expirywarning': self.expiry_warning,
            'fetchtime': self.fetch_time,
        }


@dataclass(frozen=True)
class ReportSet:
    """一次运行的汇总报告"""
    total: int
    host_errors: int
    expired_warnings: int
    outcomes: Tuple[ProbeOutcome, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': self.total,
            'hostErrors': self.host_errors,
            'expiredWarnings': self.expired_warnings,
            'certdata': [outcome.to_dict() for outcome in self.outcomes],
        }

    @property
    def warning_outcomes(self) -> List[ProbeOutcome]:
        return [outcome for outcome in self.outcomes if outcome.expiry_warning]

    @property
    def error_outcomes(self) -> List[ProbeOutcome]:
        return [outcome for outcome in self.outcomes if outcome.host_error]


# 调度器内部使用的结果变体

@dataclass(frozen=True)
class Success:
    """探测完成（包括证书层面的主机错误）"""
    outcome: ProbeOutcome


@dataclass(frozen=True)
class ParseFailure:
    """目标字符串无法解析，未进行网络连接"""
    raw: str
    host: str
    port: str
    reason: str
    check_time: str = ""
    fetch_time: str = "0s"


@dataclass(frozen=True)
class TransportFailure:
    """探测任务本身失败（取消、超时或未预期的异常）"""
    host: str
    port: str
    reason: str


@dataclass(frozen=True)
class Skipped:
    """重复目标，不产生任何结果"""
    key: str


ProbeVerdict = Union[Success, ParseFailure, TransportFailure, Skipped]
