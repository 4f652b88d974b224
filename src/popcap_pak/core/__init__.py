#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
popcap-pak 核心模块

提供内存池、Stream Codec、二进制 I/O 封装和数据结构定义。
"""

from .binary_io import BinaryReader, BinaryWriter
from .codec import StreamCodec, decode, decode_byte, decode_into
from .pool import MemoryPool, PoolBlock
from .schema import (
    PakHeader, FileRecord, RecordCollection, PakIndex, RecordLayout,
    PAK_MAGIC, PAK_VERSION, TABLE_END
)
from .progress import RecordProgress, ExtractResult, ProgressCallback

__all__ = [
    "BinaryReader",
    "BinaryWriter",
    "StreamCodec",
    "decode",
    "decode_byte",
    "decode_into",
    "MemoryPool",
    "PoolBlock",
    "PakHeader",
    "FileRecord",
    "RecordCollection",
    "PakIndex",
    "RecordLayout",
    "PAK_MAGIC",
    "PAK_VERSION",
    "TABLE_END",
    # 解包进度
    "RecordProgress",
    "ExtractResult",
    "ProgressCallback",
]
