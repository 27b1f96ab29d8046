"""
Lambda处理器测试
"""
import os
from unittest.mock import patch, MagicMock

from certcheck.lambda_handler import CertificateMonitor, _environment_with_overrides, lambda_handler
from certcheck.models import ProbeOutcome, Target
from certcheck.services.config_validator import MonitorConfig


class StubChecker:
    """返回固定结果的检查器"""

    warn_at_days = 30

    def __init__(self, expiring=()):
        self.expiring = set(expiring)

    def check_certificate(self, target: Target) -> ProbeOutcome:
        return ProbeOutcome(host=target.host, port=target.port, message="OK",
                            warn_at_days=self.warn_at_days,
                            days_to_expiry=10 if target.host in self.expiring else 80,
                            expiry_warning=target.host in self.expiring)


class TestCertificateMonitor:
    """证书检查主类测试类"""

    def test_execute_no_targets(self):
        """测试没有目标时返回空报告"""
        monitor = CertificateMonitor(MonitorConfig(), checker=StubChecker())

        report = monitor.execute()

        assert report.total == 0
        assert report.outcomes == ()

    def test_execute(self):
        """测试执行检查"""
        config = MonitorConfig(targets=["b.com", "a.com", "b.com:443"])
        monitor = CertificateMonitor(config, checker=StubChecker(expiring={"a.com"}))

        report = monitor.execute()

        assert report.total == 2
        assert report.expired_warnings == 1
        assert monitor.notification_service is None

    @patch('certcheck.lambda_handler.SNSNotificationService')
    def test_execute_sends_notification(self, mock_sns):
        """测试配置SNS主题时发送通知"""
        config = MonitorConfig(
            targets=["a.com"],
            sns_topic_arn="arn:aws:sns:us-east-1:123456789012:cert-alerts",
        )
        monitor = CertificateMonitor(config, checker=StubChecker(expiring={"a.com"}))

        report = monitor.execute()

        mock_sns.assert_called_once_with(topic_arn="arn:aws:sns:us-east-1:123456789012:cert-alerts")
        mock_sns.return_value.send_report_notification.assert_called_once_with(report)


class TestLambdaHandler:
    """Lambda入口测试类"""

    @patch.dict(os.environ, {'DOMAINS': 'badport.com:abc'}, clear=True)
    def test_lambda_handler_success(self):
        """测试成功执行（解析失败的目标不需要网络）"""
        result = lambda_handler({}, None)

        assert result['statusCode'] == 200
        body = result['body']
        assert body['message'] == 'Certificate check executed successfully'
        assert body['report']['total'] == 1
        assert body['report']['hostErrors'] == 1
        assert body['report']['certdata'][0]['message'] == "Port is not an integer abc"
        assert 'timestamp' in body

    @patch.dict(os.environ, {'DOMAINS': 'env.com'}, clear=True)
    def test_event_overrides(self):
        """测试事件覆盖目标和警告天数"""
        result = lambda_handler({'targets': ['bad:x', 'worse:y'], 'warnAtDays': 45}, None)

        report = result['body']['report']
        assert report['total'] == 2
        assert [entry['host'] for entry in report['certdata']] == ['bad', 'worse']
        assert all(entry['warnatdays'] == 45 for entry in report['certdata'])

    @patch.dict(os.environ, {'WARN_AT_DAYS': 'soon'}, clear=True)
    def test_lambda_handler_configuration_error(self):
        """测试配置错误"""
        result = lambda_handler({}, None)

        assert result['statusCode'] == 500
        assert result['body']['message'] == 'Certificate check configuration error'
        assert 'WARN_AT_DAYS' in result['body']['error']

    @patch.dict(os.environ, {'DOMAINS': 'a.com'}, clear=True)
    @patch('certcheck.lambda_handler.CertificateMonitor')
    def test_lambda_handler_critical_error(self, mock_monitor_class):
        """测试严重错误"""
        mock_monitor_class.return_value.execute.side_effect = RuntimeError("Critical error")

        result = lambda_handler({}, None)

        assert result['statusCode'] == 500
        assert result['body']['message'] == 'Certificate check encountered a critical error'
        assert result['body']['error'] == 'Critical error'

    @patch.dict(os.environ, {'DOMAINS': 'env.com', 'TIMEOUT': '3'}, clear=True)
    def test_environment_with_overrides(self):
        """测试环境变量覆盖"""
        environ = _environment_with_overrides({'targets': 'x.com y.com'})

        assert environ['DOMAINS'] == 'x.com y.com'
        assert environ['TIMEOUT'] == '3'
        assert 'WARN_AT_DAYS' not in environ
