#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
popcap-pak 异常定义

所有异常均继承自 PakError，便于统一捕获。
"""

from typing import List, Optional


class PakError(Exception):
    """popcap-pak 基础异常"""
    pass


class InvalidFormatError(PakError):
    """
    文件格式无效异常

    当文件魔法数或结构不符合预期时抛出。
    """
    def __init__(self, message: str, expected: str = None, actual: str = None):
        self.expected = expected
        self.actual = actual
        if expected and actual:
            message = f"{message}: 期望 {expected}, 实际 {actual}"
        super().__init__(message)


class VersionMismatchError(PakError):
    """
    版本不匹配异常

    当文件头中的版本号不受支持时抛出。
    """
    def __init__(self, file_version: int, supported_versions: List[int]):
        self.file_version = file_version
        self.supported_versions = supported_versions
        super().__init__(
            f"不支持的文件版本 {file_version}, "
            f"支持的版本: {supported_versions}"
        )


class TruncatedDataError(PakError, EOFError):
    """
    数据截断异常

    数据流在读满声明的字节数之前结束时抛出。
    """
    def __init__(self, expected: int, actual: int, what: str = "数据"):
        self.expected = expected
        self.actual = actual
        self.what = what
        super().__init__(
            f"{what}被截断: 期望 {expected} 字节，实际只有 {actual} 字节"
        )


class UnsafePathError(PakError):
    """
    不安全路径异常

    条目名称为绝对路径、包含 '..' 或 NUL 字节，无法安全地写到解包目录之内。
    """
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"条目路径不安全，拒绝解包: {name!r}")


class NameTooLongError(PakError):
    """
    文件名无法编码异常

    条目名称的字节长度超出单字节长度前缀可表示的范围，
    或恰好等于表尾标记 0x80。
    """
    def __init__(self, name: str, length: int):
        self.name = name
        self.length = length
        super().__init__(
            f"文件名 '{name}' 无法写入: 编码后长度 {length} 不可用"
        )


class TargetExistsError(PakError):
    """解包目标目录已存在"""
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"目标目录已存在: {path}")


class PoolExhaustedError(PakError):
    """
    内存池耗尽

    属于致命错误，调用方不应尝试恢复。
    """
    def __init__(self, requested: int, limit: Optional[int] = None):
        self.requested = requested
        self.limit = limit
        if limit is None:
            message = f"内存池分配失败: 请求 {requested} 字节"
        else:
            message = f"内存池耗尽: 请求 {requested} 字节，上限 {limit} 字节"
        super().__init__(message)


class PoolReleasedError(PakError):
    """内存池已释放后仍尝试分配"""
    def __init__(self, message: str = None):
        super().__init__(message or "内存池已释放，不能再分配")
