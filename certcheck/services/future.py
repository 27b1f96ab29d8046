"""
Promise并发原语

run() 立即返回一个 Promise，任务在独立线程中执行。Promise 只能写入一次，
可以被任意多个观察者读取：get() 阻塞并返回结果（或抛出任务的异常），
try_get() 不阻塞，wait() 只返回异常。PromiseSet 用于等待一组 Promise。

with_cancellation() 只负责让调用方停止等待，被包装的任务不会被强制终止，
会在后台运行到自身完成（网络调用由各自的超时限制）。
"""
import functools
import logging
import threading
import time
from typing import Any, Callable, Iterator, List, Optional

from ..exceptions import ProbeCancelledError, PromiseAlreadyCompletedError, PromiseIncompleteError

logger = logging.getLogger(__name__)


class Promise:
    """一次性异步结果容器"""

    def __init__(self):
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._value: Any = None
        self._error: Optional[BaseException] = None
        self._callbacks: List[Callable[['Promise'], None]] = []

    def set_result(self, value: Any):
        self._complete(value, None)

    def set_error(self, error: BaseException):
        self._complete(None, error)

    def _complete(self, value: Any, error: Optional[BaseException]):
        with self._lock:
            if self._done.is_set():
                raise PromiseAlreadyCompletedError("promise already completed")
            self._value = value
            self._error = error
            self._done.set()
            callbacks, self._callbacks = self._callbacks, []

        for callback in callbacks:
            self._invoke(callback)

    def _invoke(self, callback: Callable[['Promise'], None]):
        try:
            callback(self)
        except Exception:
            logger.exception("Promise回调执行失败")

    def add_done_callback(self, callback: Callable[['Promise'], None]):
        """
        注册完成回调，若已完成则立即在当前线程调用

        Args:
            callback: 接收 Promise 本身的回调函数
        """
        with self._lock:
            if not self._done.is_set():
                self._callbacks.append(callback)
                return
        self._invoke(callback)

    def done(self) -> bool:
        return self._done.is_set()

    def get(self, timeout: Optional[float] = None) -> Any:
        """
        阻塞直到完成

        Args:
            timeout: 最长等待时间（秒），None 表示一直等待

        Returns:
            Any: 任务返回值

        Raises:
            PromiseIncompleteError: 在 timeout 内未完成
            Exception: 任务抛出的异常
        """
        if not self._done.wait(timeout):
            raise PromiseIncompleteError(f"promise not completed within {timeout}s")
        if self._error is not None:
            raise self._error
        return self._value

    def try_get(self) -> Any:
        """非阻塞读取，未完成时抛出 PromiseIncompleteError"""
        if not self._done.is_set():
            raise PromiseIncompleteError("incomplete")
        if self._error is not None:
            raise self._error
        return self._value

    def wait(self, timeout: Optional[float] = None) -> Optional[BaseException]:
        """阻塞直到完成，只返回异常（成功时为 None）"""
        if not self._done.wait(timeout):
            raise PromiseIncompleteError(f"promise not completed within {timeout}s")
        return self._error


def run(task: Callable[..., Any], *args, **kwargs) -> Promise:
    """
    在新线程中执行任务并立即返回 Promise

    Args:
        task: 要执行的函数
        *args: 函数参数
        **kwargs: 函数关键字参数

    Returns:
        Promise: 任务结果
    """
    promise = Promise()

    def _worker():
        try:
            value = task(*args, **kwargs)
        except BaseException as e:
            promise.set_error(e)
        else:
            promise.set_result(value)

    name = getattr(task, '__name__', 'task')
    thread = threading.Thread(target=_worker, name=f"promise-{name}", daemon=True)
    thread.start()
    return promise


class PromiseSet:
    """Promise集合"""

    def __init__(self):
        self._lock = threading.Lock()
        self._promises: List[Promise] = []

    def add(self, *promises: Promise):
        with self._lock:
            self._promises.extend(promises)

    def __len__(self) -> int:
        with self._lock:
            return len(self._promises)

    def __iter__(self) -> Iterator[Promise]:
        with self._lock:
            return iter(list(self._promises))

    def wait_all(self) -> Optional[BaseException]:
        """
        等待所有成员完成

        Returns:
            Optional[BaseException]: 按完成顺序最先出现的异常，全部成功时为 None。
                各成员的具体错误需要通过各自的 get() 读取。
        """
        first_error: List[BaseException] = []
        record_lock = threading.Lock()

        def _record(promise: Promise):
            error = promise.wait()
            if error is None:
                return
            with record_lock:
                if not first_error:
                    first_error.append(error)

        members = list(self)
        for promise in members:
            promise.add_done_callback(_record)
        for promise in members:
            promise.wait()

        with record_lock:
            if first_error:
                return first_error[0]
        # 回调在完成线程中执行，可能晚于上面的 wait() 返回
        for promise in members:
            error = promise.wait()
            if error is not None:
                return error
        return None


class CancellationToken:
    """外部取消信号，支持显式取消和截止时间"""

    def __init__(self, timeout: Optional[float] = None):
        """
        初始化取消信号

        Args:
            timeout: 截止时间（秒），None 表示只能显式取消
        """
        self._lock = threading.Lock()
        self._event = threading.Event()
        self._reason: Optional[str] = None
        self._callbacks: List[Callable[[], None]] = []
        self._deadline = None
        self._timer = None

        if timeout is not None:
            self._deadline = time.monotonic() + timeout
            self._timer = threading.Timer(
                max(timeout, 0.0), self.cancel, args=(f"deadline exceeded after {timeout}s",)
            )
            self._timer.daemon = True
            self._timer.start()

    def cancel(self, reason: str = "cancelled"):
        with self._lock:
            if self._event.is_set():
                return
            self._reason = reason
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []

        if self._timer is not None:
            self._timer.cancel()

        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("取消回调执行失败")

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def remaining(self) -> Optional[float]:
        """距截止时间的剩余秒数，未设置截止时间时为 None"""
        if self._deadline is None:
            return None
        return max(self._deadline - time.monotonic(), 0.0)

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)

    def add_callback(self, callback: Callable[[], None]):
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def close(self):
        """停止截止时间计时器（不触发取消）"""
        if self._timer is not None:
            self._timer.cancel()


def with_cancellation(task: Callable[..., Any], token: CancellationToken) -> Callable[..., Any]:
    """
    为任务增加取消能力

    返回的函数在内部线程中执行 task。如果 token 先于 task 触发，
    调用方收到 ProbeCancelledError，而 task 继续在后台运行。

    Args:
        task: 要包装的函数
        token: 取消信号

    Returns:
        Callable: 包装后的函数
    """
    @functools.wraps(task)
    def cancellable(*args, **kwargs):
        if token.cancelled:
            raise ProbeCancelledError(token.reason)

        inner = run(task, *args, **kwargs)
        wake = threading.Event()
        inner.add_done_callback(lambda _: wake.set())
        token.add_callback(wake.set)
        wake.wait()

        # 两者同时就绪时以任务结果为准
        if inner.done():
            return inner.get()
        raise ProbeCancelledError(token.reason)

    return cancellable
