"""
SSL证书检查服务
"""
import ipaddress
import socket
import ssl
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional, Union
import logging

from cryptography import x509

from ..exceptions import HostnameMismatchError, TransportError
from ..interfaces import SSLCertificateCheckerInterface
from ..models import ProbeOutcome, Target
from .error_handler import NetworkErrorHandler
from .expiry_calculator import ExpiryCalculator, format_duration, format_timestamp

OK_MESSAGE = "OK"


class SSLCertificateChecker(SSLCertificateCheckerInterface):
    """SSL证书检查器实现，每次检查只建立一个连接，不重试"""

    def __init__(self, timeout: float = 10, warn_at_days: int = 30,
                 connect: Callable[..., socket.socket] = socket.create_connection):
        """
        初始化SSL证书检查器

        Args:
            timeout: 连接和握手的总超时时间（秒）
            warn_at_days: 提前警告天数
            connect: 建立TCP连接的函数，签名同 socket.create_connection
        """
        self.timeout = timeout
        self.warn_at_days = warn_at_days
        self.connect = connect
        self.logger = logging.getLogger(__name__)
        self.error_handler = NetworkErrorHandler()
        self.expiry_calculator = ExpiryCalculator(warn_at_days)

    def check_certificate(self, target: Target) -> ProbeOutcome:
        """
        检查单个目标的SSL证书

        Args:
            target: 已解析的目标

        Returns:
            ProbeOutcome: 检查结果，失败时 host_error 为 True
        """
        started = time.monotonic()
        outcome = ProbeOutcome(host=target.host, port=target.port, warn_at_days=self.warn_at_days)

        try:
            cert_der = self._get_ssl_certificate(target.host, target.port)
        except (OSError, OverflowError, TransportError) as e:
            error_info = self.error_handler.handle_ssl_connection_error(target.host, target.port, e)
            return self._failed(outcome, error_info['message'], started)

        try:
            cert = x509.load_der_x509_certificate(cert_der)
        except ValueError as e:
            self.logger.error(f"{target.key} 证书解析失败: {e}")
            return self._failed(outcome, f"Unable to parse certificate: {e}", started)

        try:
            verify_hostname(cert, target.host)
        except HostnameMismatchError as e:
            self.logger.warning(f"{target.key} 主机名与证书不匹配: {e}")
            return self._failed(outcome, self.error_handler.hostname_message(e), started)

        self.expiry_calculator.apply(outcome, cert, datetime.now(timezone.utc))
        outcome.host_error = False
        outcome.message = OK_MESSAGE
        outcome.fetch_time = format_duration(time.monotonic() - started)

        self.logger.debug(
            f"{target.key} 证书检查完成，剩余 {outcome.days_to_expiry} 天，耗时 {outcome.fetch_time}"
        )
        return outcome

    def _failed(self, outcome: ProbeOutcome, message: str, started: float) -> ProbeOutcome:
        outcome.host_error = True
        outcome.message = message
        outcome.check_time = format_timestamp(datetime.now(timezone.utc))
        outcome.fetch_time = format_duration(time.monotonic() - started)
        return outcome

    def _create_context(self) -> ssl.SSLContext:
        """
        创建TLS客户端上下文

        不校验证书链，主机名由 verify_hostname 单独检查。
        """
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        return context

    def _get_ssl_certificate(self, host: str, port: str) -> bytes:
        """
        获取叶子证书（DER格式）

        Args:
            host: 主机
            port: 端口

        Returns:
            bytes: DER编码的证书

        Raises:
            OSError: 连接失败、超时或握手失败
            TransportError: 服务器没有提供证书
        """
        deadline = time.monotonic() + self.timeout
        context = self._create_context()

        with self.connect((host, int(port)), timeout=self.timeout) as sock:
            # 握手与连接共用同一个超时预算
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise socket.timeout("timed out")
            sock.settimeout(remaining)
            with context.wrap_socket(sock, server_hostname=host) as ssock:
                cert_der = ssock.getpeercert(binary_form=True)

        if not cert_der:
            raise TransportError(f"no certificate presented by {host}:{port}")

        return cert_der


def _parse_ip(host: str) -> Optional[Union[ipaddress.IPv4Address, ipaddress.IPv6Address]]:
    try:
        return ipaddress.ip_address(host.strip('[]'))
    except ValueError:
        return None


def _match_dns_name(pattern: str, host: str) -> bool:
    """
    匹配证书中的DNS名称

    通配符只允许出现在最左侧标签，且只匹配一个标签。
    """
    pattern = pattern.lower().rstrip('.')
    host = host.lower().rstrip('.')

    if pattern == host:
        return True
    if not pattern.startswith('*.'):
        return False

    pattern_labels = pattern.split('.')
    host_labels = host.split('.')
    if len(pattern_labels) != len(host_labels) or not host_labels[0]:
        return False
    return pattern_labels[1:] == host_labels[1:]


def verify_hostname(cert: x509.Certificate, host: str):
    """
    校验证书的 subjectAltName 是否覆盖主机名

    Args:
        cert: 叶子证书
        host: 主机名或IP地址

    Raises:
        HostnameMismatchError: 不匹配
    """
    try:
        san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
    except x509.ExtensionNotFound:
        san = None

    host_ip = _parse_ip(host)
    valid_for: List[str]

    if host_ip is not None:
        addresses = san.get_values_for_type(x509.IPAddress) if san is not None else []
        if host_ip in addresses:
            return
        valid_for = [str(address) for address in addresses]
    else:
        names = san.get_values_for_type(x509.DNSName) if san is not None else []
        if any(_match_dns_name(name, host) for name in names):
            return
        valid_for = list(names)

    if not valid_for:
        raise HostnameMismatchError(
            f"x509: certificate is not valid for any names, but wanted to match {host}"
        )
    raise HostnameMismatchError(f"x509: certificate is valid for {', '.join(valid_for)}, not {host}")
