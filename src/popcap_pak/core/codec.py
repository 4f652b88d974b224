#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Stream Codec

pak 文件中的每个字节都与 0xF7 异或。变换是自反的，
解码两次即得到原值，因此没有单独的编码函数，写入时同样调用 decode。
"""

from typing import Optional, Union

DEFAULT_KEY = 0xF7

Buffer = Union[bytearray, memoryview]


def _make_table(key: int) -> bytes:
    return bytes(b ^ key for b in range(256))


_DEFAULT_TABLE = _make_table(DEFAULT_KEY)


def decode_byte(value: int) -> int:
    """解码单个字节"""
    return (value ^ DEFAULT_KEY) & 0xFF


def decode(data: bytes) -> bytes:
    """解码一段字节"""
    return bytes(data).translate(_DEFAULT_TABLE)


def decode_into(buffer: Buffer, length: Optional[int] = None) -> None:
    """
    原地解码可写缓冲区的前 length 个字节

    Args:
        buffer: bytearray 或可写 memoryview
        length: 解码长度，默认整个缓冲区
    """
    if length is None:
        length = len(buffer)
    view = memoryview(buffer)
    view[:length] = view[:length].tobytes().translate(_DEFAULT_TABLE)


class StreamCodec:
    """
    单字节异或编解码器

    无跨字节状态，可对任意切分的数据流逐块调用。
    注意：这不是加密，仅是 pak 格式自带的混淆。
    """

    def __init__(self, key: int = DEFAULT_KEY):
        """
        Args:
            key: 异或密钥 (0-255)
        """
        if not 0 <= key <= 0xFF:
            raise ValueError(f"异或密钥必须在 0-255 之间: {key}")
        self._key = key
        self._table = _DEFAULT_TABLE if key == DEFAULT_KEY else _make_table(key)

    @property
    def key(self) -> int:
        return self._key

    def decode_byte(self, value: int) -> int:
        return (value ^ self._key) & 0xFF

    def decode(self, data: bytes) -> bytes:
        return bytes(data).translate(self._table)

    def decode_into(self, buffer: Buffer, length: Optional[int] = None) -> None:
        if length is None:
            length = len(buffer)
        view = memoryview(buffer)
        view[:length] = view[:length].tobytes().translate(self._table)
