#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
pytest 全局配置

提供共享 fixtures 和手工构造 pak 数据的工具。
"""

import io
import logging
import os
import struct
from typing import List, Optional, Tuple

import pytest


# ==================== 常量 ====================

KEY = 0xF7
RAW_MAGIC = bytes([0x37, 0xBD, 0x37, 0x4D])
RAW_VERSION = bytes([KEY] * 4)
RAW_TERMINATOR = bytes([0x80 ^ KEY])

# 2020-09-13 12:26:40.123456700 UTC
SAMPLE_MTIME_NS = 1600000000123456700


# ==================== 手工编码工具 ====================

def encode(data: bytes) -> bytes:
    """逐字节异或 0xF7 (与解码相同)"""
    return bytes(b ^ KEY for b in data)


def filetime_from_ns(ns: int) -> bytes:
    return struct.pack('<Q', ns // 100 + 116444736000000000)


def make_pak(
    entries: List[Tuple[str, bytes]],
    mtime_ns: int = SAMPLE_MTIME_NS,
    terminator: bool = True,
    flagged: bool = False,
    magic: bytes = RAW_MAGIC,
    version: bytes = RAW_VERSION,
    sizes: Optional[List[int]] = None,
) -> bytes:
    """
    不借助 PakBuilder 直接拼出 pak 字节

    Args:
        entries: (名称, 内容) 列表
        sizes: 覆盖条目表中声明的大小 (用于构造截断数据)
    """
    out = bytearray(magic + version)
    for i, (name, data) in enumerate(entries):
        encoded_name = name.encode('utf-8')
        size = sizes[i] if sizes else len(data)
        if flagged:
            out += encode(b'\x00')
        out += encode(bytes([len(encoded_name)]))
        out += encode(encoded_name)
        out += encode(struct.pack('<I', size))
        out += encode(filetime_from_ns(mtime_ns))
    if terminator:
        out += RAW_TERMINATOR
    for _, data in entries:
        out += encode(data)
    return bytes(out)


# ==================== 日志隔离 ====================

@pytest.fixture(autouse=True)
def reset_package_logger():
    """CLI 测试会给包日志挂 handler，测试结束后恢复默认状态"""
    yield
    logger = logging.getLogger("popcap_pak")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


# ==================== 基础 Fixtures ====================

@pytest.fixture
def sample_files(tmp_path) -> tuple:
    """
    创建测试文件集 (带固定的修改时间)

    Returns:
        (目录路径, 文件内容字典)
    """
    src = tmp_path / "src"
    files = {
        "hero.txt": b"Hero data content",
        "config.json": b'{"name": "test", "value": 123}',
        "subdir/data.bin": b"\x00\x01\x02\x03\x04\x05\x06\x07",
        "subdir/nested/deep.txt": b"Deep nested file content",
        "empty.dat": b"",
        "中文文件.txt": "这是中文内容测试".encode("utf-8"),
    }

    for i, (name, content) in enumerate(files.items()):
        path = src / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        mtime = SAMPLE_MTIME_NS + i * 1000000000
        os.utime(path, ns=(mtime, mtime))

    return src, files


@pytest.fixture
def large_payload() -> bytes:
    """跨越多个拷贝块的数据"""
    return bytes(range(256)) * 100 + os.urandom(5000)


@pytest.fixture
def hello_pak(tmp_path):
    """单条目 pak: a.txt -> hello"""
    path = tmp_path / "hello.pak"
    path.write_bytes(make_pak([("a.txt", b"hello")]))
    return path


@pytest.fixture
def pak_stream():
    """返回一个把 make_pak 结果包装为 BytesIO 的工厂"""
    def factory(entries, **kwargs):
        return io.BytesIO(make_pak(entries, **kwargs))
    return factory
