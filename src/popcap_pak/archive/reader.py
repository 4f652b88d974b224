#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Pak 文件读取器

PakParser 以状态机方式解析文件头和条目表，PakReader 负责打开文件并持有资源。
"""

import logging
from enum import Enum
from typing import List, Optional

from ..config import ExtractOptions
from ..core.binary_io import BinaryReader
from ..core.pool import MemoryPool
from ..core.progress import ExtractResult, ProgressCallback
from ..core.schema import (
    PakHeader, FileRecord, RecordCollection, PakIndex, RecordLayout,
    MAGIC_SIZE, VERSION_SIZE, TABLE_END
)
from ..exceptions import PakError
from ..fs import FileSystem
from ..utils import FILETIME_SIZE
from .extractor import Extractor

logger = logging.getLogger(__name__)


class ParserState(Enum):
    """解析状态"""
    READ_MAGIC = "read_magic"
    READ_VERSION = "read_version"
    READ_RECORD_OR_END = "read_record_or_end"
    DONE = "done"


class PakParser:
    """
    条目表解析器

    状态转移: READ_MAGIC → READ_VERSION → READ_RECORD_OR_END (循环) → DONE

    只向前读取，每个字节只读一次。解析结束时数据流正好位于
    第一个条目的数据开头。
    """

    def __init__(
        self,
        reader: BinaryReader,
        pool: MemoryPool,
        layout: RecordLayout = RecordLayout.COMPACT,
        strict: bool = True,
        name_encoding: str = "utf-8"
    ):
        """
        Args:
            reader: 解码读取器
            pool: 文件名缓冲区所用的内存池
            layout: 条目表布局
            strict: 魔法数/版本不匹配时抛出异常 (False 时仅警告)
            name_encoding: 文件名编码
        """
        self._reader = reader
        self._pool = pool
        self._layout = layout
        self._strict = strict
        self._name_encoding = name_encoding

        self._state = ParserState.READ_MAGIC
        self._magic = b''
        self._header: Optional[PakHeader] = None
        self._records = RecordCollection()

        self._handlers = {
            ParserState.READ_MAGIC: self._read_magic,
            ParserState.READ_VERSION: self._read_version,
            ParserState.READ_RECORD_OR_END: self._read_record_or_end,
        }

    @property
    def state(self) -> ParserState:
        return self._state

    def parse(self) -> PakIndex:
        """
        解析文件头和条目表

        Raises:
            InvalidFormatError: 魔法数不匹配 (strict 模式)
            VersionMismatchError: 版本号不匹配 (strict 模式)
            TruncatedDataError: 条目中途文件结束
        """
        while self._state is not ParserState.DONE:
            self._state = self._handlers[self._state]()

        logger.debug("条目表解析完成: %d 个条目", len(self._records))
        return PakIndex(header=self._header, records=self._records)

    # ==================== 状态处理 ====================

    def _read_magic(self) -> ParserState:
        self._magic = self._reader.read_bytes(MAGIC_SIZE, "魔法数")
        return ParserState.READ_VERSION

    def _read_version(self) -> ParserState:
        version = self._reader.read_bytes(VERSION_SIZE, "版本号")
        self._header = PakHeader(magic=self._magic, version=version)

        if self._strict:
            self._header.validate()
        elif not self._header.is_valid:
            logger.warning(
                "文件头不匹配 (magic=%s, version=%s)，继续解析",
                self._header.magic.hex(), self._header.version.hex()
            )
        return ParserState.READ_RECORD_OR_END

    def _read_record_or_end(self) -> ParserState:
        flag = self._reader.read_optional_u8()
        if flag is None:
            logger.warning(
                "条目表缺少结束标记，已读取 %d 个条目", len(self._records)
            )
            return ParserState.DONE
        if flag == TABLE_END:
            return ParserState.DONE

        if self._layout is RecordLayout.FLAGGED:
            name_length = self._reader.read_u8("文件名长度")
        else:
            name_length = flag

        self._records.append(self._read_record(name_length))
        return ParserState.READ_RECORD_OR_END

    def _read_record(self, name_length: int) -> FileRecord:
        # 文件名缓冲区来自内存池，末尾补 NUL
        buf = self._pool.allocate(name_length + 1)
        self._reader.read_into(buf[:name_length], "文件名")
        buf[name_length] = 0
        name = buf[:name_length].tobytes().decode(
            self._name_encoding, 'surrogateescape'
        )

        size = self._reader.read_u32("文件大小")
        filetime = self._reader.read_bytes(FILETIME_SIZE, "修改时间")
        return FileRecord(name=name, size=size, filetime=filetime)


class PakReader:
    """
    Pak 文件读取器

    打开文件后立即解析条目表，之后 stream 位于数据区开头，
    可交给 Extractor 顺序解包。每个 PakReader 只能解包一次。
    """

    def __init__(self, file_path: str, options: Optional[ExtractOptions] = None):
        """
        Args:
            file_path: pak 文件路径
            options: 解包选项
        """
        self._file_path = file_path
        self._options = options or ExtractOptions()

        self._file = None
        self._pool: Optional[MemoryPool] = None
        self._reader: Optional[BinaryReader] = None
        self._index: Optional[PakIndex] = None
        self._extracted = False

        try:
            self._load()
        except BaseException:
            self.close()
            raise

    def _load(self) -> None:
        """打开文件并解析条目表"""
        self._pool = MemoryPool(
            self._options.pool_block_size, self._options.pool_limit
        )
        self._file = open(self._file_path, 'rb')
        self._reader = BinaryReader(self._file)

        parser = PakParser(
            self._reader,
            self._pool,
            layout=self._options.layout,
            strict=self._options.strict_header,
            name_encoding=self._options.name_encoding
        )
        self._index = parser.parse()

    @property
    def header(self) -> PakHeader:
        return self._index.header

    @property
    def records(self) -> RecordCollection:
        return self._index.records

    @property
    def entry_count(self) -> int:
        return len(self._index.records)

    @property
    def reader(self) -> BinaryReader:
        return self._reader

    @property
    def pool(self) -> MemoryPool:
        return self._pool

    def list_all(self) -> List[str]:
        """按声明顺序列出所有条目名称"""
        return self._index.records.names()

    def extract_all(
        self,
        output_dir: str,
        fs: Optional[FileSystem] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> ExtractResult:
        """
        解包所有文件到指定目录

        Args:
            output_dir: 输出目录路径
            fs: 文件系统实现，默认本地文件系统
            progress_callback: 进度回调函数

        Returns:
            ExtractResult 解包结果
        """
        if self._extracted:
            raise PakError("数据区已被读取，不能重复解包")
        self._extracted = True

        buffer = self._pool.allocate(self._options.chunk_size)
        extractor = Extractor(
            self._reader, buffer, fs=fs, progress_callback=progress_callback
        )
        return extractor.extract_all(self._index.records, output_dir)

    def close(self) -> None:
        """关闭文件并释放内存池"""
        if self._file:
            self._file.close()
            self._file = None
        if self._pool:
            self._pool.release()

    def __enter__(self) -> 'PakReader':
        return self

    def __exit__(self, *args) -> None:
        self.close()
