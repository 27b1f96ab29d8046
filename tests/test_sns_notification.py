"""
SNS通知服务测试
"""
import os
from unittest.mock import patch, MagicMock

import boto3
from botocore.exceptions import ClientError
from moto import mock_aws

from certcheck.models import ProbeOutcome
from certcheck.services.aggregator import build_report
from certcheck.services.sns_notification import SNSNotificationService


def _warning_report():
    return build_report([
        ProbeOutcome(host="expiring.com", port="443", message="OK", issuer="CN=R3",
                     not_after="2024-06-20T00:00:00Z", days_to_expiry=15,
                     warn_at_days=30, expiry_warning=True),
        ProbeOutcome(host="healthy.com", port="443", message="OK", days_to_expiry=80),
    ])


def _error_report():
    return build_report([
        ProbeOutcome.failure(host="down.com", port="443",
                             message="Server doesn't support TLS certificate err: timed out"),
    ])


class TestSNSNotificationService:
    """SNS通知服务测试类"""

    def setup_method(self):
        """测试前准备"""
        self.topic_arn = "arn:aws:sns:us-east-1:123456789012:cert-alerts"

    @patch('certcheck.services.sns_notification.boto3')
    def test_init_with_topic_arn(self, mock_boto3):
        """测试使用指定topic_arn初始化"""
        mock_client = MagicMock()
        mock_boto3.client.return_value = mock_client

        service = SNSNotificationService(topic_arn=self.topic_arn)

        assert service.topic_arn == self.topic_arn
        assert service.sns_client == mock_client
        mock_boto3.client.assert_called_once_with('sns', region_name='us-east-1')

    @patch('certcheck.services.sns_notification.boto3')
    def test_region_from_arn(self, mock_boto3):
        """测试从ARN中提取区域"""
        service = SNSNotificationService(topic_arn="arn:aws:sns:eu-west-1:123456789012:alerts")

        assert service.region_name == 'eu-west-1'
        mock_boto3.client.assert_called_once_with('sns', region_name='eu-west-1')

    @patch.dict(os.environ, {'SNS_TOPIC_ARN': 'arn:aws:sns:us-east-1:123456789012:env-topic'})
    @patch('certcheck.services.sns_notification.boto3')
    def test_init_from_env(self, mock_boto3):
        """测试从环境变量初始化"""
        service = SNSNotificationService()

        assert service.topic_arn == 'arn:aws:sns:us-east-1:123456789012:env-topic'

    @patch('certcheck.services.sns_notification.boto3')
    def test_no_notification_when_healthy(self, mock_boto3):
        """测试全部正常时不发送"""
        service = SNSNotificationService(topic_arn=self.topic_arn)
        report = build_report([ProbeOutcome(host="ok.com", port="443", message="OK")])

        assert service.send_report_notification(report) is True
        mock_boto3.client.return_value.publish.assert_not_called()

    @patch('certcheck.services.sns_notification.boto3')
    def test_send_success(self, mock_boto3):
        """测试发送成功"""
        mock_client = MagicMock()
        mock_client.publish.return_value = {'MessageId': 'test-message-id'}
        mock_boto3.client.return_value = mock_client
        service = SNSNotificationService(topic_arn=self.topic_arn)

        result = service.send_report_notification(_warning_report())

        assert result is True
        mock_client.publish.assert_called_once()
        call_args = mock_client.publish.call_args[1]
        assert call_args['TopicArn'] == self.topic_arn
        assert "1个证书已过期或即将过期" in call_args['Subject']
        assert "expiring.com:443" in call_args['Message']
        assert "healthy.com" not in call_args['Message']

    @patch('certcheck.services.sns_notification.boto3')
    def test_send_client_error(self, mock_boto3):
        """测试发送失败"""
        mock_client = MagicMock()
        mock_client.publish.side_effect = ClientError(
            {'Error': {'Code': 'NotFound', 'Message': 'Topic does not exist'}},
            'Publish'
        )
        mock_boto3.client.return_value = mock_client
        service = SNSNotificationService(topic_arn=self.topic_arn)

        assert service.send_report_notification(_error_report()) is False
        mock_client.publish.assert_called_once()

    @patch.dict(os.environ, {}, clear=True)
    @patch('certcheck.services.sns_notification.boto3')
    def test_send_without_topic(self, mock_boto3):
        """测试未配置主题"""
        service = SNSNotificationService()

        assert service.send_report_notification(_error_report()) is False
        mock_boto3.client.return_value.publish.assert_not_called()

    @patch('certcheck.services.sns_notification.boto3')
    def test_format_notification_content(self, mock_boto3):
        """测试通知内容"""
        service = SNSNotificationService(topic_arn=self.topic_arn)

        content = service.format_notification_content(_error_report())

        assert "down.com:443" in content
        assert "timed out" in content
        assert service.format_notification_content(build_report([])) == "所有SSL证书状态正常。"

    @patch('certcheck.services.sns_notification.boto3')
    def test_format_subject_mixed(self, mock_boto3):
        """测试同时存在警告和错误时的主题"""
        service = SNSNotificationService(topic_arn=self.topic_arn)
        report = build_report(list(_warning_report().outcomes) + list(_error_report().outcomes))

        subject = service._format_subject(report)

        assert "1个过期警告" in subject
        assert "1个主机错误" in subject

    @patch('certcheck.services.sns_notification.boto3')
    def test_get_configuration_status(self, mock_boto3):
        """测试获取配置状态"""
        service = SNSNotificationService(topic_arn=self.topic_arn)

        status = service.get_configuration_status()

        assert status['topic_arn_configured'] is True
        assert status['client_initialized'] is True
        assert status['region_name'] == 'us-east-1'
        assert status['configuration_valid'] is True

    @patch.dict(os.environ, {
        'AWS_ACCESS_KEY_ID': 'testing',
        'AWS_SECRET_ACCESS_KEY': 'testing',
        'AWS_DEFAULT_REGION': 'us-east-1',
    })
    @mock_aws
    def test_publish_with_moto(self):
        """测试通过模拟的SNS发布"""
        sns = boto3.client('sns', region_name='us-east-1')
        topic_arn = sns.create_topic(Name='cert-alerts')['TopicArn']
        service = SNSNotificationService(topic_arn=topic_arn)

        assert service.send_report_notification(_warning_report()) is True
