#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
解包进度与结果

Extractor 每处理完一个条目就生成一个 RecordProgress，
交给可选的回调并累计到 ExtractResult。
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple


@dataclass(frozen=True)
class RecordProgress:
    """单个条目处理完毕 (成功或跳过) 时的快照"""
    position: int                       # 条目表中的序号，从 1 开始
    count: int                          # 条目总数
    name: str
    written: int                        # 实际写入磁盘的解码字节数
    size: int                           # 条目表声明的大小
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


ProgressCallback = Callable[[RecordProgress], None]


@dataclass
class ExtractResult:
    """
    解包结果

    失败条目不会中断解包，名称和异常按顺序记录在 failed_files 中。
    total_bytes 只统计成功条目。
    """
    success_count: int = 0
    failed_count: int = 0
    total_bytes: int = 0
    elapsed_time: float = 0.0
    failed_files: List[Tuple[str, Exception]] = field(default_factory=list)

    def add(self, progress: RecordProgress) -> None:
        if progress.ok:
            self.success_count += 1
            self.total_bytes += progress.written
        else:
            self.failed_count += 1
            self.failed_files.append((progress.name, progress.error))
