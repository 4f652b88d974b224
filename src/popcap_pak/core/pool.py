#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
内存池

按块增长的 bump 分配器，为解析阶段的文件名缓冲区和解包工作缓冲区提供内存。
池内分配不会单独释放，整个池在会话结束时一次性释放。
"""

import logging
from typing import Iterator, Optional

from ..exceptions import PoolExhaustedError, PoolReleasedError

logger = logging.getLogger(__name__)


class PoolBlock:
    """
    内存块

    used 只增不减，满了之后不会被压缩或挪作他用。
    """

    __slots__ = ('data', 'capacity', 'used', 'previous')

    def __init__(self, capacity: int, used: int = 0,
                 previous: Optional['PoolBlock'] = None):
        self.data = bytearray(capacity)
        self.capacity = capacity
        self.used = used
        self.previous = previous

    @property
    def free(self) -> int:
        return self.capacity - self.used

    def __repr__(self) -> str:
        return f"PoolBlock(capacity={self.capacity}, used={self.used})"


class MemoryPool:
    """
    块式 bump 分配器

    - allocate() 从最新的块开始查找剩余空间足够的块
    - 找不到时新建 max(block_size, size) 大小的块，请求直接占据块首
    - release() 一次释放全部块

    非线程安全，只允许单一调用方顺序分配。
    """

    def __init__(self, block_size: int = 8192, limit: Optional[int] = None):
        """
        Args:
            block_size: 默认块大小
            limit: 所有块容量之和的上限，None 表示不限制
        """
        if block_size <= 0:
            raise ValueError(f"块大小必须为正数: {block_size}")

        self._block_size = block_size
        self._limit = limit
        self._head: Optional[PoolBlock] = None
        self._block_count = 0
        self._capacity = 0
        self._released = False

        self._head = self._new_block(block_size, 0)

    def _new_block(self, capacity: int, used: int) -> PoolBlock:
        if self._limit is not None and self._capacity + capacity > self._limit:
            raise PoolExhaustedError(capacity, self._limit)
        try:
            block = PoolBlock(capacity, used, self._head)
        except MemoryError:
            raise PoolExhaustedError(capacity) from None

        self._head = block
        self._block_count += 1
        self._capacity += capacity
        logger.debug("内存池新建块 #%d: %d 字节", self._block_count, capacity)
        return block

    def allocate(self, size: int) -> memoryview:
        """
        分配 size 字节

        返回的 memoryview 在池释放前始终指向同一段内存，
        任意两次分配的区间互不重叠。

        Raises:
            PoolReleasedError: 池已释放
            PoolExhaustedError: 超出上限或系统内存不足
        """
        if self._released:
            raise PoolReleasedError()
        if size < 0:
            raise ValueError(f"分配大小不能为负数: {size}")

        block = self._head
        while block is not None:
            if block.free >= size:
                start = block.used
                block.used += size
                return memoryview(block.data)[start:start + size]
            block = block.previous

        # 找不到时新建块
        block = self._new_block(max(self._block_size, size), size)
        return memoryview(block.data)[:size]

    def release(self) -> None:
        """释放所有块，之后不能再分配"""
        if self._released:
            return
        freed = self._capacity
        block = self._head
        while block is not None:
            self._head = block.previous
            block.previous = None
            block = self._head
        self._released = True
        logger.debug("内存池已释放: %d 个块, %d 字节", self._block_count, freed)

    def blocks(self) -> Iterator[PoolBlock]:
        """从最新到最旧遍历所有块"""
        block = self._head
        while block is not None:
            yield block
            block = block.previous

    @property
    def block_size(self) -> int:
        return self._block_size

    @property
    def block_count(self) -> int:
        return self._block_count

    @property
    def capacity(self) -> int:
        """所有块容量之和"""
        return sum(b.capacity for b in self.blocks())

    @property
    def used(self) -> int:
        """所有块已用字节之和"""
        return sum(b.used for b in self.blocks())

    @property
    def released(self) -> bool:
        return self._released

    def __enter__(self) -> 'MemoryPool':
        return self

    def __exit__(self, *args) -> None:
        self.release()
