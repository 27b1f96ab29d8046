"""
配置验证服务
"""
import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional
import logging

from ..exceptions import ConfigurationError
from .dispatcher import DEFAULT_MAX_CONCURRENCY
from .domain_config import TargetListManager

DEFAULT_WARN_AT_DAYS = 30
DEFAULT_TIMEOUT = 10
OUTPUT_FORMATS = ('json', 'yaml')
LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
SNS_ARN_PATTERN = re.compile(r'^arn:aws:sns:[a-z0-9-]+:\d{12}:[a-zA-Z0-9_-]+$')


@dataclass
class MonitorConfig:
    """一次运行的配置"""
    targets: List[str] = field(default_factory=list)
    warn_at_days: int = DEFAULT_WARN_AT_DAYS
    timeout: float = DEFAULT_TIMEOUT
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    deadline: Optional[float] = None
    output_format: str = 'json'
    sns_topic_arn: Optional[str] = None
    log_level: str = 'INFO'

    def to_log_dict(self) -> Dict[str, Any]:
        return {
            'target_count': len(self.targets),
            'warn_at_days': self.warn_at_days,
            'timeout': self.timeout,
            'max_concurrency': self.max_concurrency,
            'deadline': self.deadline,
            'output_format': self.output_format,
            'sns_topic_arn': self.sns_topic_arn or '',
            'log_level': self.log_level,
        }


class ConfigValidator:
    """配置验证器"""

    def __init__(self):
        """初始化配置验证器"""
        self.logger = logging.getLogger(__name__)

    def load_from_env(self, environ: Optional[Mapping[str, str]] = None) -> MonitorConfig:
        """
        从环境变量读取配置

        Args:
            environ: 环境变量映射，默认 os.environ

        Returns:
            MonitorConfig: 已验证的配置

        Raises:
            ConfigurationError: 存在无效配置
        """
        environ = os.environ if environ is None else environ
        errors: List[str] = []

        targets = TargetListManager().from_text(environ.get('DOMAINS', ''))

        config = self.build(
            targets=targets,
            warn_at_days=self._parse_number(environ, 'WARN_AT_DAYS', int, errors),
            timeout=self._parse_number(environ, 'TIMEOUT', float, errors),
            max_concurrency=self._parse_number(environ, 'MAX_CONCURRENCY', int, errors),
            deadline=self._parse_number(environ, 'DEADLINE', float, errors),
            output_format=environ.get('OUTPUT_FORMAT') or 'json',
            sns_topic_arn=environ.get('SNS_TOPIC_ARN') or None,
            log_level=environ.get('LOG_LEVEL') or 'INFO',
            errors=errors,
        )
        return config

    def build(self, targets: Optional[List[str]] = None,
              warn_at_days: Optional[int] = None,
              timeout: Optional[float] = None,
              max_concurrency: Optional[int] = None,
              deadline: Optional[float] = None,
              output_format: str = 'json',
              sns_topic_arn: Optional[str] = None,
              log_level: str = 'INFO',
              errors: Optional[List[str]] = None) -> MonitorConfig:
        """
        组装并验证配置

        警告天数或超时小于1时回退到默认值；其余无效值会导致 ConfigurationError。

        Returns:
            MonitorConfig: 已验证的配置

        Raises:
            ConfigurationError: 存在无效配置
        """
        errors = [] if errors is None else errors

        if warn_at_days is None:
            warn_at_days = DEFAULT_WARN_AT_DAYS
        elif warn_at_days < 1:
            self.logger.warning(f"警告天数 {warn_at_days} 小于1，使用默认值 {DEFAULT_WARN_AT_DAYS}")
            warn_at_days = DEFAULT_WARN_AT_DAYS

        if timeout is None:
            timeout = DEFAULT_TIMEOUT
        elif timeout < 1:
            self.logger.warning(f"超时时间 {timeout} 小于1秒，使用默认值 {DEFAULT_TIMEOUT}")
            timeout = DEFAULT_TIMEOUT

        if max_concurrency is None:
            max_concurrency = DEFAULT_MAX_CONCURRENCY
        elif max_concurrency < 1:
            errors.append(f"并发上限必须大于0: {max_concurrency}")

        if deadline is not None:
            if deadline <= 0:
                errors.append(f"整体截止时间必须大于0: {deadline}")
            elif deadline < timeout:
                self.logger.warning(
                    f"整体截止时间 {deadline} 秒小于单个目标超时 {timeout} 秒，被取消的探测会在后台继续运行"
                )

        output_format = output_format.lower()
        if output_format not in OUTPUT_FORMATS:
            errors.append(f"报告格式无效: {output_format}（可选 {', '.join(OUTPUT_FORMATS)}）")

        if sns_topic_arn and not self.validate_sns_topic_arn(sns_topic_arn):
            errors.append(f"SNS主题ARN格式无效: {sns_topic_arn}")

        log_level = log_level.upper()
        if log_level not in LOG_LEVELS:
            errors.append(f"日志级别无效: {log_level}")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return MonitorConfig(
            targets=list(targets or []),
            warn_at_days=warn_at_days,
            timeout=timeout,
            max_concurrency=max_concurrency,
            deadline=deadline,
            output_format=output_format,
            sns_topic_arn=sns_topic_arn,
            log_level=log_level,
        )

    def _parse_number(self, environ: Mapping[str, str], name: str, kind, errors: List[str]):
        value = environ.get(name)
        if value is None or not value.strip():
            return None
        try:
            return kind(value.strip())
        except ValueError:
            errors.append(f"环境变量 {name} 不是有效的数字: {value}")
            return None

    def validate_sns_topic_arn(self, topic_arn: str) -> bool:
        """验证SNS主题ARN格式"""
        return bool(SNS_ARN_PATTERN.match(topic_arn))
