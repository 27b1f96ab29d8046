"""
AWS Lambda函数入口点
"""
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from .exceptions import ConfigurationError
from .interfaces import SSLCertificateCheckerInterface
from .models import ReportSet
from .services.aggregator import build_report
from .services.config_validator import ConfigValidator, MonitorConfig
from .services.dispatcher import ProbeScheduler
from .services.logger import LoggerService
from .services.sns_notification import SNSNotificationService
from .services.ssl_checker import SSLCertificateChecker

logger = logging.getLogger(__name__)


class CertificateMonitor:
    """证书检查主类，按配置运行一次检查并发送通知"""

    def __init__(self, config: MonitorConfig,
                 checker: Optional[SSLCertificateCheckerInterface] = None):
        """
        初始化监控器

        Args:
            config: 已验证的配置
            checker: 自定义检查器，默认按配置创建 SSLCertificateChecker
        """
        self.config = config
        self.logger_service = LoggerService(log_level=config.log_level)
        self.checker = checker or SSLCertificateChecker(
            timeout=config.timeout, warn_at_days=config.warn_at_days
        )
        self.notification_service = (
            SNSNotificationService(topic_arn=config.sns_topic_arn) if config.sns_topic_arn else None
        )

        self.logger_service.log_configuration_info(config.to_log_dict())

    def execute(self, targets: Optional[List[str]] = None) -> ReportSet:
        """
        执行证书检查

        Args:
            targets: 检查目标，默认使用配置中的目标

        Returns:
            ReportSet: 汇总报告
        """
        targets = self.config.targets if targets is None else targets

        if not targets:
            self.logger_service.logger.warning("没有找到要检查的目标")
            return build_report([])

        self.logger_service.log_check_start(len(targets))

        scheduler = ProbeScheduler(
            self.checker,
            max_concurrency=self.config.max_concurrency,
            deadline=self.config.deadline,
        )
        report = scheduler.run(targets)

        self.logger_service.log_check_end(report)
        self._send_notifications(report)

        return report

    def _send_notifications(self, report: ReportSet) -> bool:
        """
        发送通知（未配置SNS主题时跳过）

        Args:
            report: 汇总报告

        Returns:
            bool: 通知是否发送成功
        """
        if self.notification_service is None:
            self.logger_service.logger.debug("未配置SNS主题，跳过通知")
            return False

        return self.notification_service.send_report_notification(report)


def _environment_with_overrides(event: Dict[str, Any]) -> Dict[str, str]:
    """用事件中的 targets / warnAtDays 覆盖环境变量配置"""
    environ = dict(os.environ)

    targets = event.get('targets')
    if targets is not None:
        environ['DOMAINS'] = ','.join(targets) if isinstance(targets, list) else str(targets)

    warn_at_days = event.get('warnAtDays')
    if warn_at_days is not None:
        environ['WARN_AT_DAYS'] = str(warn_at_days)

    return environ


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda函数入口点

    Args:
        event: EventBridge触发事件，可选字段 targets、warnAtDays
        context: Lambda运行时上下文

    Returns:
        dict: 执行结果和报告
    """
    event = event or {}
    timestamp = datetime.now(timezone.utc).isoformat()

    try:
        config = ConfigValidator().load_from_env(_environment_with_overrides(event))
    except ConfigurationError as e:
        logger.error(f"配置错误，未执行检查: {e}")
        return {
            'statusCode': 500,
            'body': {
                'message': 'Certificate check configuration error',
                'error': str(e),
                'timestamp': timestamp
            }
        }

    try:
        report = CertificateMonitor(config).execute()
    except Exception as e:
        logger.exception("Lambda函数执行时发生严重错误")
        return {
            'statusCode': 500,
            'body': {
                'message': 'Certificate check encountered a critical error',
                'error': str(e),
                'timestamp': timestamp
            }
        }

    return {
        'statusCode': 200,
        'body': {
            'message': 'Certificate check executed successfully',
            'report': report.to_dict(),
            'timestamp': timestamp
        }
    }
