#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
popcap-pak - 零依赖的 PopCap .pak 文件解包库

解析异或混淆的 pak 容器，按原相对路径和修改时间还原其中的文件。
"""

__version__ = "0.1.0"

# 异常类
from .exceptions import (
    PakError,
    InvalidFormatError,
    VersionMismatchError,
    TruncatedDataError,
    UnsafePathError,
    NameTooLongError,
    TargetExistsError,
    PoolExhaustedError,
    PoolReleasedError,
)

# 核心
from .core import (
    MemoryPool,
    StreamCodec,
    PakHeader,
    FileRecord,
    RecordCollection,
    RecordLayout,
    ExtractResult,
    RecordProgress,
)

# 配置
from .config import ExtractOptions

# Archive
from .archive import PakBuilder, PakParser, PakReader, Extractor

# 文件系统
from .fs import FileSystem, LocalFileSystem

# 会话
from .session import ExtractionSession

__all__ = [
    # 版本
    "__version__",
    # 异常
    "PakError",
    "InvalidFormatError",
    "VersionMismatchError",
    "TruncatedDataError",
    "UnsafePathError",
    "NameTooLongError",
    "TargetExistsError",
    "PoolExhaustedError",
    "PoolReleasedError",
    # 核心
    "MemoryPool",
    "StreamCodec",
    "PakHeader",
    "FileRecord",
    "RecordCollection",
    "RecordLayout",
    "ExtractResult",
    "RecordProgress",
    # 配置
    "ExtractOptions",
    # Archive
    "PakBuilder",
    "PakParser",
    "PakReader",
    "Extractor",
    # 文件系统
    "FileSystem",
    "LocalFileSystem",
    # 会话
    "ExtractionSession",
]
