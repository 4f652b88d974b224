#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
解包配置

ExtractOptions 汇总解析和解包的所有可调参数，CLI 参数直接映射到这里。
"""

import codecs
from dataclasses import dataclass
from typing import Optional

from .core.schema import RecordLayout

DEFAULT_CHUNK_SIZE = 8192
DEFAULT_BLOCK_SIZE = 8192
DEFAULT_SIDECAR = "filenames.txt"


@dataclass
class ExtractOptions:
    """
    解包选项

    Attributes:
        chunk_size: 拷贝数据时的工作缓冲区大小
        pool_block_size: 内存池默认块大小
        pool_limit: 内存池总容量上限 (None 表示不限制)
        strict_header: 魔法数/版本不匹配时拒绝解析 (False 时仅警告)
        layout: 条目表布局
        name_encoding: 文件名字节的编码
        sidecar_path: 文件名清单的输出路径
    """
    chunk_size: int = DEFAULT_CHUNK_SIZE
    pool_block_size: int = DEFAULT_BLOCK_SIZE
    pool_limit: Optional[int] = None
    strict_header: bool = True
    layout: RecordLayout = RecordLayout.COMPACT
    name_encoding: str = "utf-8"
    sidecar_path: str = DEFAULT_SIDECAR

    def __post_init__(self):
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size 必须为正数: {self.chunk_size}")
        if self.pool_block_size <= 0:
            raise ValueError(f"pool_block_size 必须为正数: {self.pool_block_size}")
        if self.pool_limit is not None and self.pool_limit < 0:
            raise ValueError(f"pool_limit 不能为负数: {self.pool_limit}")
        if isinstance(self.layout, str):
            self.layout = RecordLayout(self.layout)
        # 提前暴露拼写错误的编码名，hex、rot13 之类的非文本编解码器同样拒绝
        info = codecs.lookup(self.name_encoding)
        if not getattr(info, "_is_text_encoding", True):
            raise LookupError(f"{self.name_encoding!r} 不是文本编码")
