"""选区区块集合"""
from typing import FrozenSet, Iterable, Set, Tuple

from chunk_coords import ChunkCoordinate, to_chunk


class NoSelectionError(Exception):
    """当前没有可用的选区"""

    def __init__(self, message: str = "请先选择一个区域"):
        super().__init__(message)


class SelectionTooLargeError(Exception):
    """选区覆盖的区块数量超过上限"""

    def __init__(self, chunk_count: int, limit: int):
        super().__init__(f"区域过大 ({chunk_count} 个区块)，最多允许 {limit} 个区块")
        self.chunk_count = chunk_count
        self.limit = limit


class CuboidSelection:
    """由两个方块角点确定的矩形选区"""

    def __init__(self, x1: int, z1: int, x2: int, z2: int):
        self.min_x, self.max_x = min(x1, x2), max(x1, x2)
        self.min_z, self.max_z = min(z1, z2), max(z1, z2)

    def chunk_bounds(self) -> Tuple[ChunkCoordinate, ChunkCoordinate]:
        return to_chunk(self.min_x, self.min_z), to_chunk(self.max_x, self.max_z)

    def chunk_count(self) -> int:
        low, high = self.chunk_bounds()
        return (high.x - low.x + 1) * (high.z - low.z + 1)

    def get_selected_chunks(self) -> Set[ChunkCoordinate]:
        low, high = self.chunk_bounds()
        return {
            ChunkCoordinate(x, z)
            for x in range(low.x, high.x + 1)
            for z in range(low.z, high.z + 1)
        }


def resolve_chunks(selection) -> FrozenSet[ChunkCoordinate]:
    """获取选区内所有区块坐标（去重）

    selection 需提供 get_selected_chunks()，没有选区时由其抛出 NoSelectionError
    """
    if selection is None:
        raise NoSelectionError()

    chunks: Iterable = selection.get_selected_chunks()
    return frozenset(ChunkCoordinate(int(x), int(z)) for x, z in chunks)
