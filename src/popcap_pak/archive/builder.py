#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Pak 文件构建器

把本地文件或内存数据打包为 pak 容器，是 PakReader 的逆操作。
"""

import os
from dataclasses import dataclass
from typing import BinaryIO, List, Optional, Union

from ..core.binary_io import BinaryWriter
from ..core.schema import (
    FileRecord, RecordLayout, PAK_MAGIC, PAK_VERSION, TABLE_END, RECORD_FLAG
)
from ..exceptions import NameTooLongError
from ..utils import FILETIME_SIZE, ns_to_filetime

# pak 内部使用 Windows 风格的路径分隔符
PATH_SEPARATOR = "\\"

MAX_FILE_SIZE = 0xFFFFFFFF
MAX_NAME_LENGTH = 0xFF


@dataclass
class _PendingEntry:
    record: FileRecord
    encoded_name: bytes
    source: Union[bytes, str]  # 内存数据或本地文件路径


class PakBuilder:
    """
    Pak 文件构建器

    条目按添加顺序写入条目表，数据区按同样顺序紧随其后。
    允许重复的名称，与原格式一致。
    """

    def __init__(
        self,
        output_path: Optional[str] = None,
        layout: RecordLayout = RecordLayout.COMPACT,
        name_encoding: str = "utf-8",
        magic: bytes = PAK_MAGIC,
        version: bytes = PAK_VERSION,
        chunk_size: int = 1024 * 1024
    ):
        """
        初始化构建器

        Args:
            output_path: 输出文件路径 (仅 build() 使用)
            layout: 条目表布局
            name_encoding: 文件名编码
            magic: 解码后的魔法数 (4 bytes)
            version: 解码后的版本号 (4 bytes)
            chunk_size: 写出本地文件时的分块大小
        """
        if len(magic) != 4 or len(version) != 4:
            raise ValueError("magic 和 version 必须为 4 字节")

        self._output_path = output_path
        self._layout = layout
        self._name_encoding = name_encoding
        self._magic = magic
        self._version = version
        self._chunk_size = chunk_size
        self._entries: List[_PendingEntry] = []

    def _encode_name(self, name: str) -> bytes:
        encoded = name.encode(self._name_encoding, 'surrogateescape')
        length = len(encoded)
        if length > MAX_NAME_LENGTH:
            raise NameTooLongError(name, length)
        # COMPACT 布局中长度字节兼作结束标记
        if self._layout is RecordLayout.COMPACT and length == TABLE_END:
            raise NameTooLongError(name, length)
        return encoded

    def _add(self, name: str, size: int, filetime: bytes, source) -> FileRecord:
        if size > MAX_FILE_SIZE:
            raise ValueError(f"文件过大，无法写入 pak: {name} ({size} 字节)")
        if len(filetime) != FILETIME_SIZE:
            raise ValueError(f"filetime 必须为 {FILETIME_SIZE} 字节")

        record = FileRecord(name=name, size=size, filetime=bytes(filetime))
        self._entries.append(_PendingEntry(record, self._encode_name(name), source))
        return record

    def add_bytes(
        self,
        name: str,
        data: bytes,
        mtime_ns: Optional[int] = None,
        filetime: Optional[bytes] = None
    ) -> FileRecord:
        """
        添加内存数据

        Args:
            name: 条目名称
            data: 文件内容
            mtime_ns: 修改时间 (Unix 纳秒)
            filetime: 直接指定 8 字节 FILETIME，优先于 mtime_ns

        Returns:
            生成的 FileRecord
        """
        if filetime is None:
            filetime = ns_to_filetime(mtime_ns if mtime_ns is not None else 0)
        return self._add(name, len(data), filetime, bytes(data))

    def add_file(self, local_path: str, name: Optional[str] = None) -> FileRecord:
        """
        添加本地文件

        Args:
            local_path: 本地文件路径
            name: 条目名称 (默认使用文件名)

        Raises:
            FileNotFoundError: 本地文件不存在
        """
        if not os.path.isfile(local_path):
            raise FileNotFoundError(f"文件不存在: {local_path}")

        if name is None:
            name = os.path.basename(local_path)

        st = os.stat(local_path)
        return self._add(name, st.st_size, ns_to_filetime(st.st_mtime_ns), local_path)

    def add_dir(self, local_dir: str, prefix: str = "", recursive: bool = True) -> int:
        """
        添加目录

        条目名称为相对 local_dir 的路径，以 '\\' 分隔。

        Returns:
            添加的文件数量
        """
        if not os.path.isdir(local_dir):
            raise NotADirectoryError(f"不是目录: {local_dir}")

        count = 0
        if recursive:
            for root, dirs, files in os.walk(local_dir):
                dirs.sort()
                for filename in sorted(files):
                    local_path = os.path.join(root, filename)
                    rel_path = os.path.relpath(local_path, local_dir)
                    name = prefix + rel_path.replace(os.sep, PATH_SEPARATOR)
                    self.add_file(local_path, name)
                    count += 1
        else:
            for filename in sorted(os.listdir(local_dir)):
                local_path = os.path.join(local_dir, filename)
                if os.path.isfile(local_path):
                    self.add_file(local_path, prefix + filename)
                    count += 1

        return count

    def write_to(self, file: BinaryIO) -> int:
        """
        写出完整的 pak 数据

        Returns:
            写入的总字节数
        """
        writer = BinaryWriter(file)

        # 1. 文件头
        writer.write_bytes(self._magic)
        writer.write_bytes(self._version)

        # 2. 条目表
        for entry in self._entries:
            if self._layout is RecordLayout.FLAGGED:
                writer.write_u8(RECORD_FLAG)
            writer.write_u8(len(entry.encoded_name))
            writer.write_bytes(entry.encoded_name)
            writer.write_u32(entry.record.size)
            writer.write_bytes(entry.record.filetime)
        writer.write_u8(TABLE_END)

        # 3. 数据区
        for entry in self._entries:
            if isinstance(entry.source, bytes):
                writer.write_bytes(entry.source)
            else:
                self._write_file(writer, entry)

        return writer.position

    def _write_file(self, writer: BinaryWriter, entry: _PendingEntry) -> None:
        remaining = entry.record.size
        with open(entry.source, 'rb') as f:
            while remaining > 0:
                chunk = f.read(min(self._chunk_size, remaining))
                if not chunk:
                    raise OSError(f"文件在打包过程中被截断: {entry.source}")
                writer.write_bytes(chunk)
                remaining -= len(chunk)

    def build(self) -> None:
        """构建并写入 pak 文件"""
        if not self._output_path:
            raise ValueError("未指定输出路径")
        with open(self._output_path, 'wb') as f:
            self.write_to(f)

    @property
    def entry_count(self) -> int:
        """已添加的文件数量"""
        return len(self._entries)

    @property
    def records(self) -> List[FileRecord]:
        return [e.record for e in self._entries]

    @property
    def total_size(self) -> int:
        return sum(e.record.size for e in self._entries)
