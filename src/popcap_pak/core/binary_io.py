#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
二进制 I/O 封装

提供 BinaryWriter 和 BinaryReader 类，封装所有底层文件操作，
读写时自动经过 Stream Codec，上层模块拿到的都是解码后的值。
"""

import struct
from typing import BinaryIO, Tuple, Any, Optional

from .codec import StreamCodec
from ..exceptions import TruncatedDataError


class BinaryWriter:
    """
    二进制写入器

    写入前对每个字节做 Stream Codec 变换。
    """

    def __init__(self, file: BinaryIO, codec: Optional[StreamCodec] = None):
        """
        初始化写入器

        Args:
            file: 以 'wb' 模式打开的文件对象
            codec: 编解码器，默认 0xF7 异或
        """
        self._file = file
        self._codec = codec or StreamCodec()
        self._position = 0

    @property
    def position(self) -> int:
        """当前写入位置"""
        return self._position

    # ==================== 原始写入 ====================

    def write_bytes(self, data: bytes) -> int:
        """
        编码并写入字节

        Returns:
            写入的字节数
        """
        written = self._file.write(self._codec.decode(data))
        self._position += written
        return written

    def write_struct(self, fmt: str, *values: Any) -> int:
        """按 struct 格式编码写入"""
        return self.write_bytes(struct.pack(fmt, *values))

    # ==================== 类型化写入 ====================

    def write_u8(self, value: int) -> int:
        """写入无符号 8 位整数"""
        return self.write_struct('<B', value)

    def write_u32(self, value: int) -> int:
        """写入无符号 32 位整数 (Little-Endian)"""
        return self.write_struct('<I', value)

    def write_u64(self, value: int) -> int:
        """写入无符号 64 位整数 (Little-Endian)"""
        return self.write_struct('<Q', value)


class BinaryReader:
    """
    二进制读取器

    只向前读取，不回退。所有读取结果均已解码。
    """

    def __init__(self, file: BinaryIO, codec: Optional[StreamCodec] = None):
        """
        初始化读取器

        Args:
            file: 以 'rb' 模式打开的文件对象
            codec: 编解码器，默认 0xF7 异或
        """
        self._file = file
        self._codec = codec or StreamCodec()
        self._position = 0

    @property
    def position(self) -> int:
        """当前读取位置 (相对于开始读取处)"""
        return self._position

    @property
    def codec(self) -> StreamCodec:
        return self._codec

    # ==================== 原始读取 ====================

    def read_bytes(self, size: int, what: str = "数据") -> bytes:
        """
        读取并解码指定字节数

        Raises:
            TruncatedDataError: 文件不足请求的字节数
        """
        data = self._file.read(size)
        self._position += len(data)
        if len(data) < size:
            raise TruncatedDataError(size, len(data), what)
        return self._codec.decode(data)

    def read_into(self, buffer: memoryview, what: str = "数据") -> None:
        """
        读满 buffer 并原地解码

        Raises:
            TruncatedDataError: 文件不足 len(buffer) 字节
        """
        size = len(buffer)
        got = 0
        while got < size:
            n = self.read_chunk(buffer[got:])
            if n == 0:
                raise TruncatedDataError(size, got, what)
            got += n

    def read_chunk(self, buffer: memoryview) -> int:
        """
        最多读取 len(buffer) 字节并原地解码

        短读按实际长度返回；返回 0 表示数据流已结束。
        """
        n = self._file.readinto(buffer)
        if not n:
            return 0
        self._codec.decode_into(buffer, n)
        self._position += n
        return n

    def read_struct(self, fmt: str, what: str = "数据") -> Tuple[Any, ...]:
        """按 struct 格式读取"""
        size = struct.calcsize(fmt)
        return struct.unpack(fmt, self.read_bytes(size, what))

    def read_optional_u8(self) -> Optional[int]:
        """
        读取一个字节

        Returns:
            解码后的值；已到文件末尾时返回 None
        """
        data = self._file.read(1)
        if not data:
            return None
        self._position += 1
        return self._codec.decode_byte(data[0])

    # ==================== 类型化读取 ====================

    def read_u8(self, what: str = "数据") -> int:
        """读取无符号 8 位整数"""
        return self.read_struct('<B', what)[0]

    def read_u32(self, what: str = "数据") -> int:
        """读取无符号 32 位整数 (Little-Endian)"""
        return self.read_struct('<I', what)[0]

    def read_u64(self, what: str = "数据") -> int:
        """读取无符号 64 位整数 (Little-Endian)"""
        return self.read_struct('<Q', what)[0]

    # ==================== 位置控制 ====================

    def skip(self, size: int, buffer: memoryview) -> int:
        """
        向前跳过 size 字节 (借用 buffer 读取后丢弃)

        Returns:
            实际跳过的字节数，小于 size 说明数据流已结束
        """
        skipped = 0
        while skipped < size:
            n = self.read_chunk(buffer[:min(len(buffer), size - skipped)])
            if n == 0:
                break
            skipped += n
        return skipped
