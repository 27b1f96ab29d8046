"""
证书检查调度服务

每个唯一的 host:port 启动一个探测任务，并发数由信号量限制。
跨任务共享的只有两处：去重集合（互斥锁保护）和并发信号量（只包住网络探测）。
"""
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Set
import logging

from ..exceptions import ConfigurationError, ProbeCancelledError, TargetParseError
from ..interfaces import SSLCertificateCheckerInterface
from ..models import (
    ParseFailure,
    ProbeOutcome,
    ProbeVerdict,
    ReportSet,
    Skipped,
    Success,
    Target,
    TransportFailure,
)
from .aggregator import build_report
from .error_handler import NetworkErrorHandler
from .expiry_calculator import format_duration, format_timestamp
from .future import CancellationToken, Promise, PromiseSet, run, with_cancellation
from .ssl_checker import SSLCertificateChecker
from .target_parser import parse_target

DEFAULT_MAX_CONCURRENCY = 16


@dataclass
class Dispatch:
    """一次提交：原始目标及其 Promise（结果为 ProbeVerdict）"""
    raw: str
    host: str
    port: str
    promise: Promise
    started: float


def _completed(verdict: ProbeVerdict) -> Promise:
    promise = Promise()
    promise.set_result(verdict)
    return promise


class ProbeScheduler:
    """证书检查调度器，每次运行创建一个实例"""

    def __init__(self, checker: SSLCertificateCheckerInterface,
                 max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
                 deadline: Optional[float] = None):
        """
        初始化调度器

        Args:
            checker: 单目标证书检查器
            max_concurrency: 同时进行的网络探测数量上限
            deadline: 整体截止时间（秒，从调度器创建开始计算），None 表示不限制
        """
        if max_concurrency < 1:
            raise ConfigurationError(f"max_concurrency must be >= 1, got {max_concurrency}")

        self.checker = checker
        self.max_concurrency = max_concurrency
        self.deadline = deadline
        self.logger = logging.getLogger(__name__)
        self.error_handler = NetworkErrorHandler()

        self._limiter = threading.BoundedSemaphore(max_concurrency)
        self._seen_lock = threading.Lock()
        self._seen: Set[str] = set()
        self._token = CancellationToken(deadline) if deadline is not None else None

    def _mark_seen(self, key: str) -> bool:
        """检查并登记去重键，首次出现时返回 True"""
        with self._seen_lock:
            if key in self._seen:
                return False
            self._seen.add(key)
            return True

    def _probe(self, target: Target) -> ProbeVerdict:
        with self._limiter:
            # 排队期间截止时间已到，不再发起连接
            if self._token is not None and self._token.cancelled:
                raise ProbeCancelledError(self._token.reason)
            return Success(self.checker.check_certificate(target))

    def submit(self, raw: str) -> Dispatch:
        """
        提交一个原始目标

        解析失败的目标直接得到 ParseFailure，不参与去重也不占用并发名额；
        重复的 host:port 得到 Skipped；其余目标在新线程中探测。

        Args:
            raw: 原始目标字符串

        Returns:
            Dispatch: 提交记录
        """
        started = time.monotonic()

        try:
            target = parse_target(raw)
        except TargetParseError as e:
            host = e.host if e.host is not None else raw.strip()
            port = e.port if e.port is not None else ""
            self.logger.warning(f"目标解析失败: {raw!r}: {e}")
            # 时间在提交时确定，不受其他目标探测耗时影响
            verdict = ParseFailure(
                raw, host, port, str(e),
                check_time=format_timestamp(datetime.now(timezone.utc)),
                fetch_time=format_duration(time.monotonic() - started),
            )
            return Dispatch(raw, host, port, _completed(verdict), started)

        if not self._mark_seen(target.key):
            self.logger.info(f"跳过重复目标: {target.key}")
            return Dispatch(raw, target.host, target.port, _completed(Skipped(target.key)), started)

        task = self._probe
        if self._token is not None:
            task = with_cancellation(self._probe, self._token)

        self.logger.debug(f"提交检查任务: {target.key}")
        return Dispatch(raw, target.host, target.port, run(task, target), started)

    def resolve(self, dispatch: Dispatch) -> Optional[ProbeOutcome]:
        """
        将提交记录转换为检查结果，重复目标返回 None

        Args:
            dispatch: 已完成的提交记录

        Returns:
            Optional[ProbeOutcome]: 检查结果
        """
        try:
            verdict = dispatch.promise.get()
        except ProbeCancelledError as e:
            self.logger.warning(f"{dispatch.host}:{dispatch.port} 检查被取消: {e}")
            verdict = TransportFailure(dispatch.host, dispatch.port, f"Probe cancelled: {e}")
        except Exception as e:
            self.logger.error(f"{dispatch.host}:{dispatch.port} 检查任务异常: {self.error_handler.describe(e)}")
            verdict = TransportFailure(dispatch.host, dispatch.port, self.error_handler.transport_message(e))

        if isinstance(verdict, Success):
            return verdict.outcome
        if isinstance(verdict, Skipped):
            return None
        if isinstance(verdict, ParseFailure):
            return ProbeOutcome.failure(
                host=verdict.host,
                port=verdict.port,
                message=verdict.reason,
                warn_at_days=getattr(self.checker, 'warn_at_days', 0),
                check_time=verdict.check_time,
                fetch_time=verdict.fetch_time,
            )
        if isinstance(verdict, TransportFailure):
            return ProbeOutcome.failure(
                host=verdict.host,
                port=verdict.port,
                message=verdict.reason,
                warn_at_days=getattr(self.checker, 'warn_at_days', 0),
                check_time=format_timestamp(datetime.now(timezone.utc)),
                fetch_time=format_duration(time.monotonic() - dispatch.started),
            )
        raise TypeError(f"unknown probe verdict: {verdict!r}")

    def run(self, targets: Iterable[str]) -> ReportSet:
        """
        检查所有目标并生成报告

        Args:
            targets: 原始目标列表（允许重复）

        Returns:
            ReportSet: 每个唯一目标恰好一条结果
        """
        promise_set = PromiseSet()
        dispatches: List[Dispatch] = []

        for raw in targets:
            dispatch = self.submit(raw)
            dispatches.append(dispatch)
            promise_set.add(dispatch.promise)

        first_error = promise_set.wait_all()
        if first_error is not None:
            self.logger.debug(f"部分检查任务失败，首个错误: {self.error_handler.describe(first_error)}")

        outcomes = []
        for dispatch in dispatches:
            outcome = self.resolve(dispatch)
            if outcome is not None:
                outcomes.append(outcome)

        if self._token is not None:
            self._token.close()

        return build_report(outcomes)


def check_targets(targets: Iterable[str], warn_at_days: int = 30, timeout: float = 10,
                  max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
                  deadline: Optional[float] = None,
                  checker: Optional[SSLCertificateCheckerInterface] = None) -> ReportSet:
    """
    检查一组目标的证书状态

    Args:
        targets: 原始目标列表
        warn_at_days: 提前警告天数
        timeout: 单个目标的连接超时（秒）
        max_concurrency: 并发上限
        deadline: 整体截止时间（秒）
        checker: 自定义检查器，默认按 timeout/warn_at_days 创建

    Returns:
        ReportSet: 汇总报告
    """
    checker = checker or SSLCertificateChecker(timeout=timeout, warn_at_days=warn_at_days)
    scheduler = ProbeScheduler(checker, max_concurrency=max_concurrency, deadline=deadline)
    return scheduler.run(targets)
