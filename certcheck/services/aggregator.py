"""
结果汇总服务
"""
from typing import Iterable

from ..models import ProbeOutcome, ReportSet


def build_report(outcomes: Iterable[ProbeOutcome]) -> ReportSet:
    """
    汇总检查结果并按主机名升序排列（稳定排序）

    Args:
        outcomes: 所有检查结果

    Returns:
        ReportSet: 汇总报告
    """
    total = 0
    host_errors = 0
    expired_warnings = 0
    collected = []

    for outcome in outcomes:
        total += 1
        if outcome.host_error:
            host_errors += 1
        if outcome.expiry_warning:
            expired_warnings += 1
        collected.append(outcome)

    collected.sort(key=lambda outcome: outcome.host)

    return ReportSet(
        total=total,
        host_errors=host_errors,
        expired_warnings=expired_warnings,
        outcomes=tuple(collected),
    )
