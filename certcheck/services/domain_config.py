"""
检查目标配置服务
"""
import os
import re
from typing import Iterable, List, Optional, TextIO
import logging

from ..interfaces import TargetSourceInterface

SEPARATOR_PATTERN = re.compile(r'[\s,]+')


class TargetListManager(TargetSourceInterface):
    """检查目标列表管理器

    目标保持原始顺序，重复项保留，由调度器去重。
    """

    def __init__(self, env_var_name: str = "DOMAINS", stream: Optional[TextIO] = None,
                 targets: Optional[Iterable[str]] = None):
        """
        初始化目标列表管理器

        Args:
            env_var_name: 环境变量名称，默认为"DOMAINS"
            stream: 文本流（如stdin），优先级最高
            targets: 显式指定的目标，优先级高于环境变量
        """
        self.env_var_name = env_var_name
        self.stream = stream
        self.targets = list(targets) if targets is not None else None
        self.logger = logging.getLogger(__name__)

    def get_targets(self) -> List[str]:
        """
        按 文本流 > 显式列表 > 环境变量 的顺序获取目标

        Returns:
            List[str]: 原始目标列表
        """
        if self.stream is not None:
            targets = self.from_stream(self.stream)
            source = "标准输入"
        elif self.targets:
            targets = self.from_list(self.targets)
            source = "参数"
        else:
            targets = self.from_text(os.getenv(self.env_var_name, ""))
            source = f"环境变量 {self.env_var_name}"

        if not targets:
            self.logger.warning(f"{source} 中没有找到检查目标")
        else:
            self.logger.info(f"从{source}加载了 {len(targets)} 个目标")
        return targets

    def from_text(self, text: str) -> List[str]:
        """拆分逗号或空白分隔的目标"""
        return [item for item in SEPARATOR_PATTERN.split(text.strip()) if item]

    def from_list(self, items: Iterable[str]) -> List[str]:
        """清理列表中的每一项（每项本身也可以包含多个目标）"""
        targets: List[str] = []
        for item in items:
            targets.extend(self.from_text(item))
        return targets

    def from_stream(self, stream: TextIO) -> List[str]:
        """
        逐行读取目标，每行可包含多个空白分隔的目标，忽略空行

        Args:
            stream: 文本流

        Returns:
            List[str]: 原始目标列表
        """
        targets: List[str] = []
        for line in stream:
            line = line.strip()
            if not line:
                continue
            targets.extend(self.from_text(line))
        return targets
