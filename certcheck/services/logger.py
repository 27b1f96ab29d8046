"""
日志服务
"""
import os
import logging
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from ..interfaces import LoggerServiceInterface
from ..models import ProbeOutcome, ReportSet

PACKAGE_LOGGER = "certcheck"


class LoggerService(LoggerServiceInterface):
    """日志服务实现"""

    def __init__(self, logger_name: str = PACKAGE_LOGGER, log_level: Optional[str] = None):
        """
        初始化日志服务

        Args:
            logger_name: 日志器名称，默认为包名，各模块的日志器都会传递到这里
            log_level: 日志级别，如果为None则从环境变量读取
        """
        self.logger_name = logger_name
        self.log_level = log_level or self.default_level()

        self.logger = logging.getLogger(logger_name)
        self._configure_logger()

        self.execution_stats = self._empty_stats()

    @staticmethod
    def default_level(fallback: str = 'INFO') -> str:
        """LOG_LEVEL 环境变量，未设置时使用 fallback"""
        return os.getenv('LOG_LEVEL') or fallback

    @staticmethod
    def _empty_stats() -> Dict[str, Any]:
        return {
            'start_time': None,
            'end_time': None,
            'submitted_targets': 0,
            'total': 0,
            'host_errors': 0,
            'expiry_warnings': 0,
        }

    def _configure_logger(self):
        """配置日志器"""
        level = getattr(logging, self.log_level.upper(), logging.INFO)
        self.logger.setLevel(level)

        # 避免重复添加处理器
        if not self.logger.handlers:
            # 输出到stderr，stdout留给报告
            handler = logging.StreamHandler()
            handler.setLevel(level)

            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            handler.setFormatter(formatter)

            self.logger.addHandler(handler)
        else:
            for handler in self.logger.handlers:
                handler.setLevel(level)

        self.logger.propagate = False

    def log_check_start(self, target_count: int):
        """
        记录检查开始

        Args:
            target_count: 提交的目标数量（含重复）
        """
        self.execution_stats['start_time'] = datetime.now(timezone.utc)
        self.execution_stats['submitted_targets'] = target_count

        self.logger.info(f"开始证书检查，共提交 {target_count} 个目标")

    def log_outcome(self, outcome: ProbeOutcome):
        """
        记录单个检查结果

        Args:
            outcome: 检查结果
        """
        target = f"{outcome.host}:{outcome.port}" if outcome.port else outcome.host

        if outcome.host_error:
            self.logger.error(f"证书检查失败 - 目标: {target}, 错误: {outcome.message}")
        elif outcome.expiry_warning:
            self.logger.warning(
                f"证书即将过期或已过期 - 目标: {target}, "
                f"过期时间: {outcome.not_after}, "
                f"剩余天数: {outcome.days_to_expiry} 天, "
                f"颁发者: {outcome.issuer}"
            )
        else:
            self.logger.info(
                f"证书正常 - 目标: {target}, "
                f"过期时间: {outcome.not_after}, "
                f"剩余天数: {outcome.days_to_expiry} 天"
            )

    def log_check_end(self, report: ReportSet):
        """
        记录检查结束

        Args:
            report: 汇总报告
        """
        self.execution_stats['end_time'] = datetime.now(timezone.utc)
        self.execution_stats['total'] = report.total
        self.execution_stats['host_errors'] = report.host_errors
        self.execution_stats['expiry_warnings'] = report.expired_warnings

        for outcome in report.outcomes:
            self.log_outcome(outcome)

        summary = self.get_execution_summary()
        self.logger.info(
            f"证书检查完成，耗时 {summary['duration_seconds']:.2f} 秒: "
            f"唯一目标 {report.total} 个, "
            f"主机错误 {report.host_errors} 个, "
            f"过期警告 {report.expired_warnings} 个"
        )

    def log_configuration_info(self, config: Dict[str, Any]):
        """
        记录配置信息

        Args:
            config: 配置信息字典
        """
        safe_config = self._sanitize_config(config)

        self.logger.info("系统配置信息:")
        for key, value in safe_config.items():
            self.logger.info(f"  {key}: {value}")

    def _sanitize_config(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        清理配置信息中的敏感数据

        Args:
            config: 原始配置

        Returns:
            Dict[str, Any]: 清理后的配置
        """
        safe_config = {}
        for key, value in config.items():
            key_lower = key.lower()

            is_sensitive = (
                key_lower in {'password', 'secret', 'token', 'key', 'sns_topic_arn'} or
                key_lower.endswith('_key') or
                key_lower.endswith('_secret') or
                key_lower.endswith('_password') or
                key_lower.endswith('_token')
            )

            if is_sensitive and isinstance(value, str) and value:
                if value.startswith('arn:'):
                    # ARN只显示前缀和资源名
                    parts = value.split(':')
                    if len(parts) >= 6:
                        safe_value = f"{':'.join(parts[:3])}:***:{parts[-1]}"
                    else:
                        safe_value = "***"
                else:
                    safe_value = value[:3] + "***" if len(value) > 3 else "***"
                safe_config[key] = safe_value
            else:
                safe_config[key] = value

        return safe_config

    def get_execution_summary(self) -> Dict[str, Any]:
        """
        获取执行摘要

        Returns:
            Dict[str, Any]: 执行摘要信息
        """
        stats = self.execution_stats
        duration = 0.0
        if stats['start_time'] and stats['end_time']:
            duration = (stats['end_time'] - stats['start_time']).total_seconds()

        return {
            'start_time': stats['start_time'].isoformat() if stats['start_time'] else None,
            'end_time': stats['end_time'].isoformat() if stats['end_time'] else None,
            'duration_seconds': duration,
            'submitted_targets': stats['submitted_targets'],
            'total': stats['total'],
            'host_errors': stats['host_errors'],
            'expiry_warnings': stats['expiry_warnings'],
            'success_rate': (
                (stats['total'] - stats['host_errors']) / stats['total']
                if stats['total'] > 0 else 0
            ),
        }

    def reset_stats(self):
        """重置执行统计"""
        self.execution_stats = self._empty_stats()
