"""
错误处理服务
"""
import socket
import ssl
from datetime import datetime, timezone
from typing import Any, Dict
import logging

TRANSPORT_MESSAGE = "Server doesn't support TLS certificate err: {}"
HOSTNAME_MESSAGE = "Hostname doesn't match with certificate: {}"


class NetworkErrorHandler:
    """网络错误处理器，将传输层异常转换为报告信息"""

    def __init__(self):
        """初始化网络错误处理器"""
        self.logger = logging.getLogger(__name__)

    def describe(self, error: BaseException) -> str:
        """异常的可读描述（类型 + 内容）"""
        text = str(error)
        if not text:
            return type(error).__name__
        return f"{type(error).__name__}: {text}"

    def transport_message(self, error: BaseException) -> str:
        """TCP/TLS失败时写入报告的消息"""
        return TRANSPORT_MESSAGE.format(self.describe(error))

    def hostname_message(self, error: BaseException) -> str:
        """主机名不匹配时写入报告的消息"""
        return HOSTNAME_MESSAGE.format(error)

    def classify(self, error: BaseException) -> str:
        """
        对传输错误分类

        Args:
            error: 异常对象

        Returns:
            str: timeout / dns / refused / reset / tls / other
        """
        if isinstance(error, (socket.timeout, TimeoutError)):
            return 'timeout'
        if isinstance(error, socket.gaierror):
            return 'dns'
        if isinstance(error, ConnectionRefusedError):
            return 'refused'
        if isinstance(error, ConnectionResetError):
            return 'reset'
        if isinstance(error, ssl.SSLError):
            return 'tls'

        error_message = str(error).lower()
        if 'timed out' in error_message or 'timeout' in error_message:
            return 'timeout'
        if 'name or service not known' in error_message or 'nodename nor servname' in error_message:
            return 'dns'
        return 'other'

    def handle_ssl_connection_error(self, host: str, port: str, error: BaseException) -> Dict[str, Any]:
        """
        处理SSL连接错误

        Args:
            host: 主机
            port: 端口
            error: 异常对象

        Returns:
            Dict[str, Any]: 错误处理结果
        """
        error_info = {
            'host': host,
            'port': port,
            'error_type': type(error).__name__,
            'error_message': str(error),
            'category': self.classify(error),
            'message': self.transport_message(error),
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'suggested_action': self._get_suggested_action(error)
        }

        self.logger.warning(
            f"{host}:{port} SSL连接错误（{error_info['category']}）: {error_info['error_message']}，"
            f"建议: {error_info['suggested_action']}"
        )

        return error_info

    def _get_suggested_action(self, error: BaseException) -> str:
        """
        获取错误的建议处理方案

        Args:
            error: 异常对象

        Returns:
            str: 建议的处理方案
        """
        category = self.classify(error)
        error_message = str(error).lower()

        if category == 'timeout':
            return "检查网络连接，考虑增加超时时间"
        elif category == 'dns':
            return "检查域名是否正确，DNS服务器是否可用"
        elif category == 'refused':
            return "检查目标服务器是否运行，端口是否正确"
        elif category == 'reset':
            return "连接被重置，检查服务器或中间设备的TLS配置"
        elif category == 'tls':
            if 'handshake failure' in error_message:
                return "SSL握手失败，检查SSL/TLS版本兼容性"
            elif 'wrong version number' in error_message:
                return "目标端口可能不是TLS服务"
            else:
                return "SSL连接问题，检查服务器SSL配置"
        elif 'network is unreachable' in error_message:
            return "网络不可达，检查网络连接和路由"
        elif 'no route to host' in error_message:
            return "无法路由到主机，检查防火墙和网络配置"
        else:
            return "检查网络连接和服务器状态"
