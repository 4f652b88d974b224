#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
文件系统接口

Extractor 只通过 FileSystem 访问磁盘，便于替换实现 (测试、只读环境等)。
"""

import os
from abc import ABC, abstractmethod
from typing import BinaryIO

from .utils import filetime_to_ns


class FileSystem(ABC):
    """
    文件系统能力接口

    所有方法失败时抛出 OSError。
    """

    @abstractmethod
    def exists(self, path: str) -> bool:
        """路径是否已存在"""
        pass

    @abstractmethod
    def create_parents(self, path: str) -> None:
        """
        创建 path 的所有父目录

        幂等：目录已存在时不做任何事。
        """
        pass

    @abstractmethod
    def create_exclusive(self, path: str) -> BinaryIO:
        """
        以独占方式新建文件并返回可写的二进制文件对象

        文件已存在时抛出 FileExistsError，不会覆盖。
        """
        pass

    @abstractmethod
    def set_modified_time(self, path: str, filetime: bytes) -> None:
        """
        设置文件的最后修改时间

        Args:
            path: 文件路径
            filetime: 8 字节 Windows FILETIME
        """
        pass


class LocalFileSystem(FileSystem):
    """基于 os 模块的本地文件系统实现"""

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def create_parents(self, path: str) -> None:
        parent = os.path.dirname(path)
        if parent:
            try:
                os.makedirs(parent, exist_ok=True)
            except ValueError as e:
                raise OSError(f"无效路径 {parent!r}: {e}") from e

    def create_exclusive(self, path: str) -> BinaryIO:
        try:
            return open(path, 'xb')
        except ValueError as e:
            # 例如路径中含 NUL 字节
            raise OSError(f"无效路径 {path!r}: {e}") from e

    def set_modified_time(self, path: str, filetime: bytes) -> None:
        mtime_ns = filetime_to_ns(filetime)
        # 访问时间保持不变
        atime_ns = os.stat(path).st_atime_ns
        try:
            os.utime(path, ns=(atime_ns, mtime_ns))
        except (OverflowError, ValueError) as e:
            raise OSError(f"无法设置修改时间 {mtime_ns}ns: {e}") from e
