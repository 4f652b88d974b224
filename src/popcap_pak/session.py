#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
解包会话

ExtractionSession 持有 pak 文件流、文件名清单流和内存池，
三者在会话结束 (正常或异常) 时一起释放。
"""

import logging
from contextlib import ExitStack
from typing import Optional, TextIO

from .archive.extractor import Extractor
from .archive.reader import PakParser
from .config import ExtractOptions
from .core.progress import ExtractResult, ProgressCallback
from .core.binary_io import BinaryReader
from .core.pool import MemoryPool
from .core.schema import PakIndex, RecordCollection
from .exceptions import TargetExistsError
from .fs import FileSystem, LocalFileSystem

logger = logging.getLogger(__name__)


def write_sidecar(records: RecordCollection, stream: TextIO) -> None:
    """按条目顺序写出 `name, size` 清单"""
    for record in records:
        stream.write(f"{record.name}, {record.size}\n")


class ExtractionSession:
    """
    一次完整的解包过程

    Example:
        >>> with ExtractionSession("main.pak", "out") as session:
        ...     result = session.run()
    """

    def __init__(
        self,
        pak_path: str,
        extract_dir: str,
        options: Optional[ExtractOptions] = None,
        fs: Optional[FileSystem] = None,
        progress_callback: Optional[ProgressCallback] = None
    ):
        """
        检查目标目录并打开全部资源

        Raises:
            TargetExistsError: 解包目录已存在
            OSError: pak 文件或清单文件无法打开
            PoolExhaustedError: 内存池无法创建
        """
        self._pak_path = pak_path
        self._extract_dir = extract_dir
        self._options = options or ExtractOptions()
        self._fs = fs or LocalFileSystem()
        self._progress_callback = progress_callback
        self._index: Optional[PakIndex] = None

        if self._fs.exists(extract_dir):
            raise TargetExistsError(extract_dir)

        self._stack = ExitStack()
        try:
            self._pool = self._stack.enter_context(MemoryPool(
                self._options.pool_block_size, self._options.pool_limit
            ))
            self._pak_file = self._stack.enter_context(open(pak_path, 'rb'))
            self._sidecar = self._stack.enter_context(
                open(self._options.sidecar_path, 'w', encoding='utf-8',
                     errors='surrogateescape')
            )
        except BaseException:
            self._stack.close()
            raise

        self._reader = BinaryReader(self._pak_file)

    @property
    def index(self) -> Optional[PakIndex]:
        return self._index

    @property
    def pool(self) -> MemoryPool:
        return self._pool

    def parse(self) -> PakIndex:
        """解析文件头和条目表"""
        parser = PakParser(
            self._reader,
            self._pool,
            layout=self._options.layout,
            strict=self._options.strict_header,
            name_encoding=self._options.name_encoding
        )
        self._index = parser.parse()
        logger.info(
            "[SUCCESS] `%s` 共有 %d 个文件", self._pak_path, len(self._index.records)
        )
        return self._index

    def save_file_list(self) -> None:
        """写出文件名清单"""
        write_sidecar(self._index.records, self._sidecar)
        self._sidecar.flush()
        logger.info("[SUCCESS] 文件名清单已保存到 `%s`", self._options.sidecar_path)

    def extract(self) -> ExtractResult:
        """解包所有条目"""
        logger.info("正在解包 ...")
        buffer = self._pool.allocate(self._options.chunk_size)
        extractor = Extractor(
            self._reader, buffer, fs=self._fs,
            progress_callback=self._progress_callback
        )
        result = extractor.extract_all(self._index.records, self._extract_dir)
        logger.info(
            "[SUCCESS] 文件已保存到 `%s` (成功 %d, 失败 %d)",
            self._extract_dir, result.success_count, result.failed_count
        )
        return result

    def run(self) -> ExtractResult:
        """解析、写清单、解包"""
        self.parse()
        self.save_file_list()
        return self.extract()

    def close(self) -> None:
        """释放全部资源"""
        if self._index is not None:
            self._index.records.clear()
        self._stack.close()

    def __enter__(self) -> 'ExtractionSession':
        return self

    def __exit__(self, *args) -> None:
        self.close()
