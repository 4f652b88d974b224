#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
PakParser / PakReader 测试
"""

import io
import logging

import pytest

from conftest import RAW_MAGIC, RAW_VERSION, SAMPLE_MTIME_NS, encode, make_pak

from popcap_pak import ExtractOptions, PakReader, RecordLayout
from popcap_pak.archive.reader import PakParser, ParserState
from popcap_pak.core.binary_io import BinaryReader
from popcap_pak.core.pool import MemoryPool
from popcap_pak.core.schema import PAK_MAGIC, PAK_VERSION
from popcap_pak.exceptions import (
    InvalidFormatError,
    TruncatedDataError,
    VersionMismatchError,
)


def parse(stream, **kwargs):
    pool = MemoryPool(64)
    parser = PakParser(BinaryReader(stream), pool, **kwargs)
    return parser, parser.parse()


# ==================== 文件头 ====================

class TestParserHeader:
    """文件头解析测试"""

    def test_valid_header(self, pak_stream):
        parser, index = parse(pak_stream([]))

        assert parser.state is ParserState.DONE
        assert index.header.magic == PAK_MAGIC
        assert index.header.version == PAK_VERSION
        assert len(index.records) == 0

    def test_bad_magic_rejected(self, pak_stream):
        stream = pak_stream([], magic=b'PAK\x00')
        with pytest.raises(InvalidFormatError) as exc_info:
            parse(stream)
        assert exc_info.value.expected == PAK_MAGIC.hex()

    def test_bad_version_rejected(self, pak_stream):
        stream = pak_stream([], version=encode(b'\x01\x00\x00\x00'))
        with pytest.raises(VersionMismatchError) as exc_info:
            parse(stream)
        assert exc_info.value.file_version == 1

    def test_bad_magic_warns_when_not_strict(self, pak_stream, caplog):
        stream = pak_stream([("a.txt", b"abc")], magic=b'\x00\x00\x00\x00')
        with caplog.at_level(logging.WARNING, logger="popcap_pak"):
            _, index = parse(stream, strict=False)

        assert index.records.names() == ["a.txt"]
        assert not index.header.is_valid
        assert "文件头不匹配" in caplog.text

    def test_truncated_header(self):
        with pytest.raises(TruncatedDataError):
            parse(io.BytesIO(RAW_MAGIC + RAW_VERSION[:2]))


# ==================== 条目表 ====================

class TestParserRecords:
    """条目表解析测试"""

    def test_single_record(self, pak_stream):
        _, index = parse(pak_stream([("a.txt", b"hello")]))
        record = index.records[0]

        assert record.name == "a.txt"
        assert record.size == 5
        assert record.mtime_ns == SAMPLE_MTIME_NS

    def test_declaration_order_preserved(self, pak_stream):
        names = ["z.txt", "a.txt", "m\\n.txt", "b/c.bin", "0"]
        entries = [(n, n.encode()) for n in names]
        _, index = parse(pak_stream(entries))

        assert index.records.names() == names
        assert index.records.count == len(names)
        assert index.records.total_size == sum(len(n) for n in names)

    def test_stream_positioned_at_payload(self, pak_stream):
        """解析结束时数据流停在第一个条目的数据开头"""
        stream = pak_stream([("a.txt", b"hello"), ("b.txt", b"world")])
        parse(stream)
        assert stream.read() == encode(b"helloworld")

    def test_empty_name(self, pak_stream):
        _, index = parse(pak_stream([("", b"x")]))
        assert index.records[0].name == ""

    def test_max_length_name(self, pak_stream):
        name = "n" * 255
        _, index = parse(pak_stream([(name, b"")]))
        assert index.records[0].name == name

    def test_non_utf8_name_is_lossless(self):
        """无法按 UTF-8 解码的文件名字节可原样还原"""
        data = bytearray(RAW_MAGIC + RAW_VERSION)
        data += encode(b'\x02\xff\xfe' + b'\x00' * 4 + b'\x00' * 8 + b'\x80')
        _, index = parse(io.BytesIO(bytes(data)))

        name = index.records[0].name
        assert name.encode('utf-8', 'surrogateescape') == b'\xff\xfe'

    def test_names_allocated_from_pool(self, pak_stream):
        pool = MemoryPool(64)
        stream = pak_stream([("abc", b""), ("defgh", b"")])
        PakParser(BinaryReader(stream), pool).parse()

        # 每个文件名多占一个 NUL 字节
        assert pool.used == 4 + 6


class TestParserEndOfInput:
    """条目表提前结束测试"""

    def test_missing_terminator_is_implicit_end(self, pak_stream, caplog):
        stream = pak_stream([("a.txt", b""), ("b.txt", b"")], terminator=False)
        with caplog.at_level(logging.WARNING, logger="popcap_pak"):
            _, index = parse(stream)

        assert index.records.names() == ["a.txt", "b.txt"]
        assert "缺少结束标记" in caplog.text

    def test_truncated_inside_record(self):
        data = make_pak([("abcdef", b"")], terminator=False)
        with pytest.raises(TruncatedDataError):
            parse(io.BytesIO(data[:-5]))

    def test_truncated_inside_name(self):
        data = RAW_MAGIC + RAW_VERSION + encode(b'\x0aabc')
        with pytest.raises(TruncatedDataError) as exc_info:
            parse(io.BytesIO(data))
        assert exc_info.value.expected == 10
        assert exc_info.value.actual == 3


class TestParserFlaggedLayout:
    """FLAGGED 布局测试"""

    def test_flagged_records(self, pak_stream):
        stream = pak_stream([("a.txt", b"1"), ("dir\\b.txt", b"22")], flagged=True)
        _, index = parse(stream, layout=RecordLayout.FLAGGED)

        assert index.records.names() == ["a.txt", "dir\\b.txt"]
        assert [r.size for r in index.records] == [1, 2]

    def test_flagged_allows_length_0x80(self, pak_stream):
        """FLAGGED 布局中长度 0x80 不会被误认作结束标记"""
        name = "x" * 0x80
        stream = pak_stream([(name, b"")], flagged=True)
        _, index = parse(stream, layout=RecordLayout.FLAGGED)
        assert index.records.names() == [name]


# ==================== PakReader ====================

class TestPakReader:
    """PakReader 测试"""

    def test_open_and_list(self, tmp_path):
        path = tmp_path / "test.pak"
        path.write_bytes(make_pak([("a.txt", b"hello"), ("b.txt", b"!")]))

        with PakReader(str(path)) as reader:
            assert reader.entry_count == 2
            assert reader.list_all() == ["a.txt", "b.txt"]
            assert reader.header.is_valid

    def test_close_releases_pool(self, hello_pak):
        reader = PakReader(str(hello_pak))
        reader.close()
        assert reader.pool.released

    def test_invalid_file_closes_resources(self, tmp_path):
        path = tmp_path / "bad.pak"
        path.write_bytes(b"not a pak file")

        with pytest.raises(InvalidFormatError):
            PakReader(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            PakReader(str(tmp_path / "missing.pak"))

    def test_options_forwarded(self, tmp_path):
        path = tmp_path / "flagged.pak"
        path.write_bytes(make_pak([("a.txt", b"x")], flagged=True))

        options = ExtractOptions(layout=RecordLayout.FLAGGED)
        with PakReader(str(path), options) as reader:
            assert reader.list_all() == ["a.txt"]
