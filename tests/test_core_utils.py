#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Utils / Schema / Config 测试
"""

import os

import pytest

from conftest import SAMPLE_MTIME_NS, filetime_from_ns

from popcap_pak import ExtractOptions, FileRecord, RecordCollection, RecordLayout
from popcap_pak.core.schema import PakHeader
from popcap_pak.exceptions import InvalidFormatError, UnsafePathError, VersionMismatchError
from popcap_pak.utils import (
    filetime_to_ns,
    normalize_path,
    ns_to_filetime,
    safe_join,
)


# ==================== normalize_path 测试 ====================

class TestNormalizePath:
    """normalize_path 测试"""

    @pytest.mark.parametrize("input_path,expected", [
        ("images\\zombie.png", "images/zombie.png"),
        ("data/main.xml", "data/main.xml"),
        ("/data//main.xml/", "data/main.xml"),
        ("a\\\\b", "a/b"),
        ("", ""),
    ])
    def test_normalize(self, input_path, expected):
        assert normalize_path(input_path) == expected


# ==================== safe_join 测试 ====================

class TestSafeJoin:
    """safe_join 测试"""

    def test_nested(self):
        assert safe_join("root", "a\\b\\c.txt") == os.path.join("root", "a", "b", "c.txt")

    def test_dot_segments_allowed(self):
        """文件名中包含点号不是越界"""
        assert safe_join("root", "..hidden") == os.path.join("root", "..hidden")

    @pytest.mark.parametrize("name", ["", "/", "..", "a/../..", "\\abs", "D:\\x", "a\x00b.txt"])
    def test_rejected(self, name):
        with pytest.raises(UnsafePathError):
            safe_join("root", name)


# ==================== FILETIME 测试 ====================

class TestFiletime:
    """FILETIME 换算测试"""

    def test_unix_epoch(self):
        assert filetime_to_ns(ns_to_filetime(0)) == 0
        assert ns_to_filetime(0) == (116444736000000000).to_bytes(8, 'little')

    def test_matches_reference(self):
        assert ns_to_filetime(SAMPLE_MTIME_NS) == filetime_from_ns(SAMPLE_MTIME_NS)
        assert filetime_to_ns(filetime_from_ns(SAMPLE_MTIME_NS)) == SAMPLE_MTIME_NS

    def test_precision_is_100ns(self):
        assert filetime_to_ns(ns_to_filetime(SAMPLE_MTIME_NS + 99)) == SAMPLE_MTIME_NS


# ==================== Schema 测试 ====================

class TestSchema:
    """PakHeader / FileRecord / RecordCollection 测试"""

    def test_default_header_valid(self):
        header = PakHeader()
        assert header.is_valid
        header.validate()

    def test_header_bad_magic(self):
        with pytest.raises(InvalidFormatError):
            PakHeader(magic=b'ABCD').validate()

    def test_header_bad_version(self):
        with pytest.raises(VersionMismatchError):
            PakHeader(version=b'\x02\x00\x00\x00').validate()

    def test_record_is_immutable(self):
        record = FileRecord("a.txt", 5)
        with pytest.raises(AttributeError):
            record.size = 6

    def test_record_mtime(self):
        record = FileRecord("a", 0, filetime_from_ns(SAMPLE_MTIME_NS))
        assert record.mtime_ns == SAMPLE_MTIME_NS
        assert record.mtime == pytest.approx(SAMPLE_MTIME_NS / 1e9)

    def test_collection(self):
        records = RecordCollection()
        for i in range(5):
            records.append(FileRecord(f"f{i}", i))

        assert len(records) == records.count == 5
        assert records.names() == [f"f{i}" for i in range(5)]
        assert records.total_size == 10
        assert records[2].name == "f2"

        records.clear()
        assert len(records) == 0


# ==================== ExtractOptions 测试 ====================

class TestExtractOptions:
    """配置校验测试"""

    def test_defaults(self):
        options = ExtractOptions()
        assert options.chunk_size == 8192
        assert options.layout is RecordLayout.COMPACT
        assert options.strict_header

    def test_layout_from_string(self):
        assert ExtractOptions(layout="flagged").layout is RecordLayout.FLAGGED

    @pytest.mark.parametrize("kwargs", [
        {"chunk_size": 0},
        {"pool_block_size": -1},
        {"pool_limit": -5},
        {"layout": "zip"},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            ExtractOptions(**kwargs)

    def test_unknown_encoding(self):
        with pytest.raises(LookupError):
            ExtractOptions(name_encoding="no-such-codec")

    @pytest.mark.parametrize("name", ["hex", "rot13", "base64"])
    def test_non_text_codec_rejected(self, name):
        """bytes.decode 无法使用的编解码器在配置阶段就被拒绝"""
        with pytest.raises(LookupError):
            ExtractOptions(name_encoding=name)

    @pytest.mark.parametrize("name", ["utf-8", "cp1252", "shift_jis", "latin-1"])
    def test_text_encoding_accepted(self, name):
        assert ExtractOptions(name_encoding=name).name_encoding == name
