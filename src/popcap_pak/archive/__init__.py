#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
popcap-pak Archive

提供 pak 文件的解析、解包和构建功能。
"""

from .builder import PakBuilder
from .extractor import Extractor
from .reader import PakParser, PakReader, ParserState

__all__ = [
    "PakBuilder",
    "Extractor",
    "PakParser",
    "PakReader",
    "ParserState",
]
