"""
区块删除脚本生成

根据选区内的区块生成 Windows 批处理或 bash 脚本，由管理员在服务器外部运行，
删除旧版格式的区块文件。本模块只写脚本，不会删除任何存档文件。
"""
import enum
import re
import shlex
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Optional, Union

from chunk_coords import ChunkCoordinate, legacy_filename

WORLD_FOLDER = "world"

_INTRO_LINES = [
    "It contains a list of chunks that were in the selected region",
    "at the time that the /delchunks command was used. Run this file",
    "in order to delete the chunk files listed in this file.",
]
_POSIX_PAUSE = 'read -p "Press any key to continue..."'
_BATCH_SPECIAL = re.compile(r"([&|<>^])")


class ScriptDialect(enum.Enum):
    WINDOWS = "bat"
    POSIX = "bash"

    @property
    def line_ending(self) -> str:
        return "\r\n" if self is ScriptDialect.WINDOWS else "\n"

    @property
    def script_name(self) -> str:
        return "worldedit-delchunks.bat" if self is ScriptDialect.WINDOWS else "worldedit-delchunks.sh"


class ScriptWriteError(Exception):
    """写入删除脚本失败"""

    def __init__(self, path: Union[str, Path], cause: OSError):
        super().__init__(cause.strerror or str(cause))
        self.path = Path(path)
        self.cause = cause


def parse_dialect(value: Any) -> Optional[ScriptDialect]:
    """解析配置中的脚本类型，忽略大小写；未配置、不是字符串或无法识别时返回 None"""
    if not isinstance(value, str) or not value:
        return None

    value = value.strip().lower()
    for dialect in ScriptDialect:
        if dialect.value == value:
            return dialect
    return None


def _quote_posix(path: str) -> str:
    escaped = re.sub(r'([\\"$`])', r"\\\1", path)
    return f'"{escaped}"'


def _quote_batch(path: str) -> str:
    return '"' + path.replace("%", "%%") + '"'


def _echo_batch(text: str) -> str:
    return _BATCH_SPECIAL.sub(r"^\1", text.replace("%", "%%"))


def _windows_lines(filenames: List[str]) -> Iterator[str]:
    yield "@ECHO off"
    yield "ECHO This batch file was generated by WorldEdit."
    for line in _INTRO_LINES:
        yield f"ECHO {line}"
    yield "ECHO."
    yield "PAUSE"

    for filename in filenames:
        yield f"ECHO {_echo_batch(filename)}"
        yield f"DEL {_quote_batch(WORLD_FOLDER + '/' + filename)}"

    yield "ECHO Complete."
    yield "PAUSE"


def _posix_lines(filenames: List[str]) -> Iterator[str]:
    yield "#!/bin/bash"
    yield "echo This shell file was generated by WorldEdit."
    for line in _INTRO_LINES:
        yield f"echo {line}"
    yield "echo"
    yield _POSIX_PAUSE

    for filename in filenames:
        yield f"echo {shlex.quote(filename)}"
        yield f"rm {_quote_posix(WORLD_FOLDER + '/' + filename)}"

    yield "echo Complete."
    yield _POSIX_PAUSE


_RENDERERS = {
    ScriptDialect.WINDOWS: _windows_lines,
    ScriptDialect.POSIX: _posix_lines,
}


def iter_script_lines(chunks: Iterable[ChunkCoordinate], dialect: ScriptDialect) -> Iterator[str]:
    """按 (x, z) 排序输出脚本的每一行（不含换行符）"""
    filenames = [legacy_filename(chunk) for chunk in sorted(set(chunks))]
    return _RENDERERS[dialect](filenames)


def render_script(chunks: Iterable[ChunkCoordinate], dialect: ScriptDialect) -> str:
    ending = dialect.line_ending
    return "".join(line + ending for line in iter_script_lines(chunks, dialect))


def write_deletion_script(chunks: Iterable[ChunkCoordinate], dialect: ScriptDialect,
                          output_path: Union[str, Path]) -> Path:
    """写入删除脚本（UTF-8），已存在的文件会被覆盖

    打开、写入或关闭失败时抛出 ScriptWriteError，可能留下不完整的文件
    """
    output_path = Path(output_path)
    ending = dialect.line_ending
    try:
        with open(output_path, "w", encoding="utf-8", newline="") as f:
            for line in iter_script_lines(chunks, dialect):
                f.write(line + ending)
    except OSError as e:
        raise ScriptWriteError(output_path, e) from e

    return output_path
