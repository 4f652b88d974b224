#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
popcap-pak 数据结构定义

定义 PakHeader、FileRecord、RecordCollection 等核心数据结构。
所有字段均为 Stream Codec 解码后的值。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Iterator, List

from ..exceptions import InvalidFormatError, VersionMismatchError
from ..utils import FILETIME_SIZE, filetime_to_ns


# ==================== 常量定义 ====================

# 解码后的魔法数 (原始字节 37 BD 37 4D)
PAK_MAGIC = b'\xc0\x4a\xc0\xba'
PAK_VERSION = b'\x00\x00\x00\x00'

MAGIC_SIZE = 4
VERSION_SIZE = 4
FILE_SIZE_SIZE = 4

# 条目表结束标记 (解码后)
TABLE_END = 0x80
# FLAGGED 布局中普通条目的标志字节
RECORD_FLAG = 0x00


class RecordLayout(Enum):
    """条目表布局"""
    # [长度][名称][大小][时间]，长度字节兼作结束标记
    COMPACT = "compact"
    # [标志][长度][名称][大小][时间]，标志字节为 0x80 时结束
    FLAGGED = "flagged"


# ==================== 文件头 ====================

@dataclass
class PakHeader:
    """
    文件头 (8 bytes)

    位于文件开头，紧随其后的是条目表。
    """
    SIZE: ClassVar[int] = MAGIC_SIZE + VERSION_SIZE

    magic: bytes = PAK_MAGIC
    version: bytes = PAK_VERSION

    @property
    def version_number(self) -> int:
        return int.from_bytes(self.version, 'little')

    @property
    def is_valid(self) -> bool:
        return self.magic == PAK_MAGIC and self.version == PAK_VERSION

    def validate(self) -> None:
        """
        校验魔法数和版本号

        Raises:
            InvalidFormatError: 魔法数不匹配
            VersionMismatchError: 版本号不为 0
        """
        if self.magic != PAK_MAGIC:
            raise InvalidFormatError(
                "无效的 pak 魔法数",
                expected=PAK_MAGIC.hex(),
                actual=self.magic.hex()
            )
        if self.version != PAK_VERSION:
            raise VersionMismatchError(self.version_number, [0])


# ==================== 文件条目 ====================

@dataclass(frozen=True)
class FileRecord:
    """
    文件条目

    name 为条目相对路径 (可含 '\\' 或 '/' 分隔的子目录)，
    filetime 为原样保存的 8 字节 FILETIME，仅在写回磁盘时才换算。
    """
    name: str
    size: int
    filetime: bytes = field(default=b'\x00' * FILETIME_SIZE, repr=False)

    @property
    def mtime_ns(self) -> int:
        """修改时间 (Unix 纳秒)"""
        return filetime_to_ns(self.filetime)

    @property
    def mtime(self) -> float:
        """修改时间 (Unix 秒)"""
        return self.mtime_ns / 1e9


class RecordCollection:
    """
    条目集合

    只追加、保持声明顺序。解包时依赖此顺序与数据区顺序一致。
    """

    def __init__(self):
        self._records: List[FileRecord] = []

    def append(self, record: FileRecord) -> None:
        self._records.append(record)

    @property
    def count(self) -> int:
        return len(self._records)

    @property
    def total_size(self) -> int:
        """所有条目声明的数据总字节数"""
        return sum(r.size for r in self._records)

    def names(self) -> List[str]:
        return [r.name for r in self._records]

    def clear(self) -> None:
        """整体释放 (仅由会话结束时调用)"""
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[FileRecord]:
        return iter(self._records)

    def __getitem__(self, index: int) -> FileRecord:
        return self._records[index]


@dataclass
class PakIndex:
    """解析结果: 文件头 + 条目集合"""
    header: PakHeader
    records: RecordCollection
