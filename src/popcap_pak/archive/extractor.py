#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
解包引擎

按条目表顺序把数据区逐块解码写出到磁盘，并恢复修改时间。
"""

import logging
import time
from typing import Optional

from ..core.binary_io import BinaryReader
from ..core.progress import ExtractResult, ProgressCallback, RecordProgress
from ..core.schema import FileRecord, RecordCollection
from ..exceptions import TruncatedDataError, UnsafePathError
from ..fs import FileSystem, LocalFileSystem
from ..utils import safe_join

logger = logging.getLogger(__name__)

# 只影响单个条目的错误，其余异常向上抛出
RECORD_ERRORS = (OSError, TruncatedDataError, UnsafePathError)


class Extractor:
    """
    顺序解包器

    数据区紧跟条目表，第 i 个条目的数据从第 i-1 个条目的数据末尾开始。
    某个条目失败时仍会读掉它的数据，保证后续条目对齐。
    """

    def __init__(
        self,
        reader: BinaryReader,
        buffer: memoryview,
        fs: Optional[FileSystem] = None,
        progress_callback: Optional[ProgressCallback] = None
    ):
        """
        Args:
            reader: 位于数据区开头的解码读取器
            buffer: 工作缓冲区，其长度即每次拷贝的块大小
            fs: 文件系统实现，默认本地文件系统
            progress_callback: 进度回调函数
        """
        if len(buffer) == 0:
            raise ValueError("工作缓冲区不能为空")
        self._reader = reader
        self._buffer = buffer
        self._fs = fs or LocalFileSystem()
        self._progress_callback = progress_callback
        self._written = 0

    def extract_all(self, records: RecordCollection, root: str) -> ExtractResult:
        """
        按顺序解包全部条目

        单个条目失败只记录到结果中，不中断其余条目，也不回滚已写出的文件。

        Args:
            records: 条目集合
            root: 解包根目录

        Returns:
            ExtractResult 解包结果
        """
        result = ExtractResult()
        start = time.monotonic()
        count = len(records)

        for position, record in enumerate(records, 1):
            self._written = 0
            error = None
            try:
                self.extract_one(record, root)
            except RECORD_ERRORS as e:
                error = e

            progress = RecordProgress(
                position, count, record.name, self._written, record.size, error
            )
            result.add(progress)
            if self._progress_callback:
                self._progress_callback(progress)

        result.elapsed_time = time.monotonic() - start
        return result

    def extract_one(self, record: FileRecord, root: str) -> int:
        """
        解包单个条目

        Returns:
            写出的字节数

        Raises:
            UnsafePathError: 条目名称越出解包目录
            OSError: 创建目录/文件、写入或设置时间失败
            TruncatedDataError: 数据区提前结束
        """
        try:
            path = safe_join(root, record.name)
        except UnsafePathError as e:
            logger.error("[ERROR] %s", e)
            self._discard(record)
            raise

        try:
            self._fs.create_parents(path)
        except OSError as e:
            logger.error("[ERROR] 无法创建 `%s` 的父目录: %s", path, e)
            self._discard(record)
            raise

        try:
            out = self._fs.create_exclusive(path)
        except OSError as e:
            logger.error("[ERROR] 无法新建文件 `%s`: %s", path, e)
            self._discard(record)
            raise

        try:
            with out:
                self._copy(record, out)
        except TruncatedDataError as e:
            logger.error("[ERROR] `%s` 数据不完整: %s", path, e)
            raise
        except OSError as e:
            logger.error("[ERROR] 写入 `%s` 失败: %s", path, e)
            raise

        try:
            self._fs.set_modified_time(path, record.filetime)
        except OSError as e:
            logger.error("[ERROR] 无法设置 `%s` 的修改时间: %s", path, e)
            raise

        return record.size

    def _copy(self, record: FileRecord, out) -> None:
        """
        从数据流拷贝 record.size 字节到 out

        写入失败后继续读完该条目的数据再抛出。
        读取返回 0 字节即视为数据流结束，不会无限等待。
        """
        remaining = record.size
        write_error = None
        self._written = 0

        while remaining > 0:
            chunk = self._buffer[:min(len(self._buffer), remaining)]
            n = self._reader.read_chunk(chunk)
            if n == 0:
                raise TruncatedDataError(
                    record.size, record.size - remaining, f"`{record.name}` 的数据"
                )

            if write_error is None:
                try:
                    out.write(chunk[:n])
                    self._written += n
                except OSError as e:
                    write_error = e
            remaining -= n

        if write_error is not None:
            raise write_error

    def _discard(self, record: FileRecord) -> None:
        """读掉被跳过条目的数据"""
        skipped = self._reader.skip(record.size, self._buffer)
        if skipped < record.size:
            logger.debug(
                "跳过 `%s` 时数据流结束: %d/%d 字节",
                record.name, skipped, record.size
            )
