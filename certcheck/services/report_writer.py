"""
报告输出服务
"""
import json

import yaml

from ..models import ReportSet


def to_json(report: ReportSet) -> str:
    """JSON格式报告（2空格缩进）"""
    return json.dumps(report.to_dict(), indent=2, ensure_ascii=False)


def to_yaml(report: ReportSet) -> str:
    """YAML格式报告，字段顺序与JSON一致"""
    return yaml.safe_dump(report.to_dict(), sort_keys=False, allow_unicode=True)


def render(report: ReportSet, output_format: str = 'json') -> str:
    """按格式输出报告"""
    if output_format == 'yaml':
        return to_yaml(report)
    return to_json(report)
