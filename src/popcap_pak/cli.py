#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
命令行入口

用法: popcap-pak main.pak extract_dir
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from . import __version__
from .config import ExtractOptions, DEFAULT_CHUNK_SIZE, DEFAULT_SIDECAR
from .core.progress import RecordProgress
from .core.schema import RecordLayout
from .exceptions import PakError, PoolExhaustedError, TargetExistsError
from .session import ExtractionSession

logger = logging.getLogger("popcap_pak")

EXIT_OK = 0
EXIT_FAILURE = 1


class _MaxLevelFilter(logging.Filter):
    """只放行低于指定级别的日志"""

    def __init__(self, level: int):
        super().__init__()
        self._level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self._level


def configure_logging(verbosity: int = 0) -> None:
    """
    配置包日志

    INFO 及以下输出到 stdout，WARNING 及以上输出到 stderr。

    Args:
        verbosity: -1 只输出错误，0 常规，1 及以上输出调试信息
    """
    if verbosity < 0:
        level = logging.WARNING
    elif verbosity == 0:
        level = logging.INFO
    else:
        level = logging.DEBUG

    formatter = logging.Formatter("%(message)s")

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(logging.DEBUG)
    stdout_handler.addFilter(_MaxLevelFilter(logging.WARNING))
    stdout_handler.setFormatter(formatter)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    stderr_handler.setFormatter(formatter)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.addHandler(stdout_handler)
    logger.addHandler(stderr_handler)
    logger.setLevel(level)
    logger.propagate = False


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="popcap-pak",
        description="解包 PopCap .pak 文件，保留相对路径和修改时间。",
        epilog="例如要把 main.pak 解包到 extract_dir: popcap-pak main.pak extract_dir",
    )
    parser.add_argument("pak_file", help="pak 文件路径")
    parser.add_argument("extract_dir", help="解包目录 (必须不存在)")
    parser.add_argument(
        "--list", dest="sidecar_path", default=DEFAULT_SIDECAR,
        help=f"文件名清单输出路径 (默认 {DEFAULT_SIDECAR})",
    )
    parser.add_argument(
        "--chunk-size", type=int, default=DEFAULT_CHUNK_SIZE,
        help=f"拷贝缓冲区大小 (默认 {DEFAULT_CHUNK_SIZE})",
    )
    parser.add_argument(
        "--layout", choices=[layout.value for layout in RecordLayout],
        default=RecordLayout.COMPACT.value,
        help="条目表布局: compact 为 [长度][名称]...，flagged 为 [标志][长度][名称]...",
    )
    parser.add_argument(
        "--no-strict", dest="strict_header", action="store_false",
        help="魔法数/版本不匹配时仅警告并继续",
    )
    parser.add_argument(
        "--encoding", dest="name_encoding", default="utf-8",
        help="文件名编码 (默认 utf-8)",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="输出调试信息")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="只输出错误")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def log_progress(progress: RecordProgress) -> None:
    """-v 时逐条目输出进度: 序号、名称、写入字节数/声明大小"""
    logger.debug(
        "[%d/%d] %s %d/%d 字节%s",
        progress.position, progress.count, progress.name,
        progress.written, progress.size,
        "" if progress.ok else " (已跳过)"
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    命令行主函数

    Returns:
        退出码: 0 完成 (即使部分文件失败)，1 参数错误或无法初始化
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # --help / --version 返回 0，参数错误统一返回 1
        return EXIT_OK if e.code == 0 else EXIT_FAILURE

    configure_logging(1 if args.verbose else -1 if args.quiet else 0)

    try:
        options = ExtractOptions(
            chunk_size=args.chunk_size,
            strict_header=args.strict_header,
            layout=RecordLayout(args.layout),
            name_encoding=args.name_encoding,
            sidecar_path=args.sidecar_path,
        )
    except (ValueError, LookupError) as e:
        logger.error("[ERROR] 参数无效: %s", e)
        return EXIT_FAILURE

    # 初始化阶段的任何失败 (包括内存池无法创建) 都只返回 1
    try:
        session = ExtractionSession(
            args.pak_file, args.extract_dir, options,
            progress_callback=log_progress if args.verbose else None
        )
    except TargetExistsError as e:
        logger.error("[ERROR] %s", e)
        return EXIT_FAILURE
    except (OSError, PoolExhaustedError) as e:
        logger.error("[ERROR] 无法初始化: %s", e)
        return EXIT_FAILURE

    try:
        with session:
            session.run()
    except PoolExhaustedError as e:
        # 解析或解包途中内存耗尽不可恢复，立即终止
        logger.critical("[ERROR] %s", e)
        logging.shutdown()
        os.abort()
    except OSError as e:
        logger.error("[ERROR] 读写 `%s` 失败: %s", args.pak_file, e)
        return EXIT_FAILURE
    except PakError as e:
        logger.error("[ERROR] `%s` 不是有效的 pak 文件: %s", args.pak_file, e)
        return EXIT_FAILURE

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
