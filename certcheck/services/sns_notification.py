"""
SNS通知服务
"""
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..interfaces import NotificationServiceInterface
from ..models import ReportSet


class SNSNotificationService(NotificationServiceInterface):
    """SNS通知服务实现"""

    def __init__(self, topic_arn: Optional[str] = None, region_name: Optional[str] = None):
        """
        初始化SNS通知服务

        Args:
            topic_arn: SNS主题ARN，如果为None则从环境变量读取
            region_name: AWS区域名称，如果为None则自动检测
        """
        self.topic_arn = topic_arn or os.getenv('SNS_TOPIC_ARN')

        if region_name:
            self.region_name = region_name
        elif self.topic_arn and self.topic_arn.startswith('arn:aws:sns:'):
            # 从SNS ARN中提取区域
            self.region_name = self.topic_arn.split(':')[3]
        else:
            self.region_name = os.getenv('AWS_REGION', 'us-east-1')

        self.logger = logging.getLogger(__name__)

        self.sns_client = None
        try:
            self.sns_client = boto3.client('sns', region_name=self.region_name)
            self.logger.debug(f"SNS客户端初始化成功，区域: {self.region_name}")
        except (BotoCoreError, ClientError) as e:
            self.logger.error(f"初始化SNS客户端失败: {str(e)}")

    def send_report_notification(self, report: ReportSet) -> bool:
        """
        发送证书检查报告通知，只有存在过期警告或主机错误时才发送

        Args:
            report: 汇总报告

        Returns:
            bool: 发送是否成功（无需发送时也返回 True）
        """
        if not report.expired_warnings and not report.host_errors:
            self.logger.info("所有证书状态正常，跳过通知发送")
            return True

        if not self._validate_configuration():
            return False

        subject = self._format_subject(report)
        message = self.format_notification_content(report)

        try:
            response = self.sns_client.publish(
                TopicArn=self.topic_arn,
                Subject=subject,
                Message=message
            )
        except ClientError as e:
            error = e.response.get('Error', {})
            self.logger.error(f"SNS发送失败 - {error.get('Code')}: {error.get('Message')}")
            return False
        except BotoCoreError as e:
            self.logger.error(f"发送SNS通知时发生错误: {str(e)}")
            return False

        self.logger.info(f"SNS通知发送成功，MessageId: {response.get('MessageId')}")
        return True

    def format_notification_content(self, report: ReportSet) -> str:
        """
        格式化通知内容

        Args:
            report: 汇总报告

        Returns:
            str: 格式化的通知内容
        """
        warnings = [outcome for outcome in report.warning_outcomes if not outcome.host_error]
        errors = report.error_outcomes

        if not warnings and not errors:
            return "所有SSL证书状态正常。"

        lines = [
            "SSL证书检查报告",
            "=" * 30,
            f"检查时间: {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S')} UTC",
            f"检查目标: {report.total} 个, 过期警告: {report.expired_warnings} 个, 主机错误: {report.host_errors} 个",
            ""
        ]

        if warnings:
            lines.extend([
                "⚠️  已过期或即将过期的证书:",
                ""
            ])
            for outcome in warnings:
                lines.append(f"• {outcome.host}:{outcome.port}")
                lines.append(f"  过期时间: {outcome.not_after}")
                lines.append(f"  剩余天数: {outcome.days_to_expiry} 天 (警告阈值 {outcome.warn_at_days} 天)")
                lines.append(f"  颁发者: {outcome.issuer}")
                lines.append("")

        if errors:
            lines.extend([
                "🚨 检查失败的目标:",
                ""
            ])
            for outcome in errors:
                target = f"{outcome.host}:{outcome.port}" if outcome.port else outcome.host
                lines.append(f"• {target}")
                lines.append(f"  错误: {outcome.message}")
                lines.append("")

        lines.append("此消息由SSL证书检查系统自动发送。")

        return "\n".join(lines)

    def _format_subject(self, report: ReportSet) -> str:
        """
        格式化邮件主题

        Args:
            report: 汇总报告

        Returns:
            str: 邮件主题
        """
        if report.expired_warnings and report.host_errors:
            return f"🚨 SSL证书警报: {report.expired_warnings}个过期警告, {report.host_errors}个主机错误"
        elif report.expired_warnings:
            return f"⚠️ SSL证书提醒: {report.expired_warnings}个证书已过期或即将过期"
        elif report.host_errors:
            return f"🚨 SSL证书检查: {report.host_errors}个目标检查失败"
        else:
            return "SSL证书状态报告"

    def _validate_configuration(self) -> bool:
        """
        验证配置是否正确

        Returns:
            bool: 配置是否有效
        """
        if not self.sns_client:
            self.logger.error("SNS客户端未初始化")
            return False

        if not self.topic_arn:
            self.logger.error("SNS主题ARN未配置")
            return False

        return True

    def get_configuration_status(self) -> Dict[str, Any]:
        """
        获取配置状态

        Returns:
            Dict[str, Any]: 配置状态
        """
        return {
            'topic_arn_configured': bool(self.topic_arn),
            'client_initialized': self.sns_client is not None,
            'region_name': self.region_name,
            'configuration_valid': bool(self.topic_arn) and self.sns_client is not None,
        }
