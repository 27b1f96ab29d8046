"""
目标解析服务
"""
import re

from ..exceptions import InvalidPortError, TargetFormatError
from ..models import DEFAULT_PORT, Target

PORT_PATTERN = re.compile(r'[0-9]+')


def parse_target(raw: str) -> Target:
    """
    将 "host" 或 "host:port" 解析为 Target，不进行任何网络或DNS操作

    Args:
        raw: 原始目标字符串

    Returns:
        Target: 解析后的目标，未指定端口时使用443

    Raises:
        TargetFormatError: 冒号数量不对或主机为空
        InvalidPortError: 端口不是数字
    """
    text = raw.strip()
    parts = text.split(':')

    if len(parts) == 1:
        host, port = parts[0], DEFAULT_PORT
    elif len(parts) == 2:
        host, port = parts
    else:
        raise TargetFormatError(f"invalid host string {raw}", raw=raw)

    if not host:
        raise TargetFormatError(f"invalid host string {raw}", raw=raw, port=port)

    if not PORT_PATTERN.fullmatch(port):
        raise InvalidPortError(f"Port is not an integer {port}", raw=raw, host=host, port=port)

    return Target(host=host, port=port)
