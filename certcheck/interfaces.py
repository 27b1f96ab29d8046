"""
服务接口定义
"""
from abc import ABC, abstractmethod
from typing import List
from .models import ProbeOutcome, ReportSet, Target


class TargetSourceInterface(ABC):
    """检查目标来源接口"""

    @abstractmethod
    def get_targets(self) -> List[str]:
        """获取原始目标列表"""
        pass


class SSLCertificateCheckerInterface(ABC):
    """SSL证书检查器接口"""

    @abstractmethod
    def check_certificate(self, target: Target) -> ProbeOutcome:
        """检查单个目标的SSL证书"""
        pass


class NotificationServiceInterface(ABC):
    """通知服务接口"""

    @abstractmethod
    def send_report_notification(self, report: ReportSet) -> bool:
        """发送证书检查报告通知"""
        pass

    @abstractmethod
    def format_notification_content(self, report: ReportSet) -> str:
        """格式化通知内容"""
        pass


class LoggerServiceInterface(ABC):
    """日志服务接口"""

    @abstractmethod
    def log_check_start(self, target_count: int):
        """记录检查开始"""
        pass

    @abstractmethod
    def log_outcome(self, outcome: ProbeOutcome):
        """记录单个检查结果"""
        pass

    @abstractmethod
    def log_check_end(self, report: ReportSet):
        """记录检查结束"""
        pass
