"""区块信息与分页列表的文本输出"""
import math
from typing import Iterable, List

from chunk_coords import ChunkCoordinate, anvil_filename, legacy_path, mcregion_filename

DEFAULT_PAGE_SIZE = 8


class InvalidPageError(ValueError):
    def __init__(self, page: int, page_count: int):
        super().__init__(f"页码无效: {page}，共 {page_count} 页")
        self.page = page
        self.page_count = page_count


def format_chunk_info(chunk: ChunkCoordinate) -> str:
    return "\n".join([
        f"区块: {chunk.x}, {chunk.z}",
        f"旧版格式: {legacy_path(chunk)}",
        f"McRegion: region/{mcregion_filename(chunk)}",
        f"Anvil: region/{anvil_filename(chunk)}",
    ])


def paginate(lines: List[str], page: int, page_size: int, title: str, command: str) -> str:
    """输出第 page 页（从1开始）

    command 中的 %page% 会被替换为下一页页码
    """
    if page_size < 1:
        raise ValueError(f"每页数量必须大于0: {page_size}")

    page_count = max(1, math.ceil(len(lines) / page_size))
    if page < 1 or page > page_count:
        raise InvalidPageError(page, page_count)

    start = (page - 1) * page_size
    result = [f"{'─' * 5} {title} {'─' * 5}"]
    result.extend(lines[start:start + page_size] or ["(无)"])
    result.append(f"{'─' * 10}")

    footer = f"第 {page}/{page_count} 页"
    if page < page_count:
        footer += f"，下一页: {command.replace('%page%', str(page + 1))}"
    result.append(footer)

    return "\n".join(result)


def format_chunk_list(chunks: Iterable[ChunkCoordinate], page: int = 1,
                      page_size: int = DEFAULT_PAGE_SIZE) -> str:
    lines = [str(chunk) for chunk in sorted(chunks)]
    return paginate(lines, page, page_size, f"已选区块 ({len(lines)})", "listchunks %page%")
