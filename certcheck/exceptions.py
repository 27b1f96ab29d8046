"""
异常定义
"""
from typing import Optional


class CertCheckError(Exception):
    """证书检查基础异常"""


class TargetParseError(CertCheckError):
    """目标字符串解析失败"""

    def __init__(self, message: str, raw: str, host: Optional[str] = None, port: Optional[str] = None):
        super().__init__(message)
        self.raw = raw
        self.host = host
        self.port = port


class TargetFormatError(TargetParseError):
    """host:port 格式错误"""


class InvalidPortError(TargetParseError):
    """端口不是数字"""


class TransportError(CertCheckError):
    """TCP连接或TLS握手失败"""


class HostnameMismatchError(CertCheckError):
    """证书与主机名不匹配"""


class CertificateDecodeError(CertCheckError):
    """证书无法解析"""


class PemDecodeError(CertificateDecodeError):
    """PEM数据中没有可用的证书块"""


class ConfigurationError(CertCheckError):
    """配置错误，检查开始前即终止"""


class ProbeCancelledError(CertCheckError):
    """探测任务在完成前被取消（截止时间到达或显式取消）"""


class PromiseIncompleteError(CertCheckError):
    """Promise尚未完成"""


class PromiseAlreadyCompletedError(CertCheckError):
    """Promise只能完成一次"""
