#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
popcap-pak 工具函数

提供路径处理、FILETIME 换算等通用功能。
"""

import os
import struct

from .exceptions import UnsafePathError

# 1601-01-01 到 1970-01-01 之间的 100ns 间隔数
FILETIME_EPOCH_OFFSET = 116444736000000000
FILETIME_SIZE = 8


def normalize_path(path: str) -> str:
    """
    路径规范化

    1. 反斜杠统一为正斜杠
    2. 合并连续斜杠
    3. 移除首尾斜杠

    Examples:
        >>> normalize_path("images\\\\zombie.png")
        'images/zombie.png'
        >>> normalize_path("/data//main.xml/")
        'data/main.xml'
    """
    path = path.replace("\\", "/")

    while "//" in path:
        path = path.replace("//", "/")

    return path.strip("/")


def safe_join(root: str, name: str) -> str:
    """
    将条目名称拼接到解包根目录下

    名称视为相对路径，可以包含子目录。

    Raises:
        UnsafePathError: 名称为空、含 NUL 字节、为绝对路径 (含盘符) 或包含 '..'
    """
    raw = name.replace("\\", "/")
    normalized = normalize_path(raw)
    parts = normalized.split("/")

    if (
        not normalized
        or "\x00" in raw
        or raw.startswith("/")
        or ":" in parts[0]
        or any(part == ".." for part in parts)
    ):
        raise UnsafePathError(name)

    return os.path.join(root, *parts)


def filetime_to_ns(filetime: bytes) -> int:
    """
    Windows FILETIME (8 字节, Little-Endian) 转 Unix 纳秒时间戳

    结果可能为负 (1970 年之前)。
    """
    ticks = struct.unpack('<Q', filetime)[0]
    return (ticks - FILETIME_EPOCH_OFFSET) * 100


def ns_to_filetime(ns: int) -> bytes:
    """Unix 纳秒时间戳转 Windows FILETIME 字节"""
    ticks = ns // 100 + FILETIME_EPOCH_OFFSET
    return struct.pack('<Q', ticks)
