"""
区块坐标与存储文件名

- 方块坐标 -> 区块坐标（向下取整）
- 旧版存档格式: <桶X>/<桶Z>/c.<x>.<z>.dat（36进制）
- McRegion 格式: r.<rx>.<rz>.mcr
- Anvil 格式: r.<rx>.<rz>.mca
"""
import math
from typing import NamedTuple, Tuple, Union

CHUNK_SIZE = 16
LEGACY_BUCKET_COUNT = 64
REGION_SIZE = 32

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


class ChunkCoordinate(NamedTuple):
    """区块坐标 (x, z)"""

    x: int
    z: int

    def __str__(self) -> str:
        return f"({self.x}, {self.z})"


def divisor_mod(value: int, divisor: int) -> int:
    """数学意义上的取模，结果始终落在 [0, divisor)"""
    return value % divisor


def to_chunk(block_x: Union[int, float], block_z: Union[int, float]) -> ChunkCoordinate:
    """方块坐标转区块坐标，负坐标向负无穷取整"""
    return ChunkCoordinate(
        math.floor(block_x) // CHUNK_SIZE,
        math.floor(block_z) // CHUNK_SIZE,
    )


def to_bucket(chunk: ChunkCoordinate) -> Tuple[int, int]:
    """旧版格式的文件夹桶坐标"""
    return (
        divisor_mod(chunk.x, LEGACY_BUCKET_COUNT),
        divisor_mod(chunk.z, LEGACY_BUCKET_COUNT),
    )


def region_coordinate(chunk: ChunkCoordinate) -> Tuple[int, int]:
    return chunk.x // REGION_SIZE, chunk.z // REGION_SIZE


def to_base36(value: int) -> str:
    """有符号36进制，小写字母"""
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    value = abs(value)
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])

    return sign + "".join(reversed(digits))


def from_base36(text: str) -> int:
    return int(text, 36)


def legacy_filename(chunk: ChunkCoordinate) -> str:
    """旧版格式文件名（不含桶文件夹）"""
    return f"c.{to_base36(chunk.x)}.{to_base36(chunk.z)}.dat"


def legacy_path(chunk: ChunkCoordinate) -> str:
    """旧版格式完整相对路径"""
    bucket_x, bucket_z = to_bucket(chunk)
    return f"{to_base36(bucket_x)}/{to_base36(bucket_z)}/{legacy_filename(chunk)}"


def mcregion_filename(chunk: ChunkCoordinate) -> str:
    region_x, region_z = region_coordinate(chunk)
    return f"r.{region_x}.{region_z}.mcr"


def anvil_filename(chunk: ChunkCoordinate) -> str:
    region_x, region_z = region_coordinate(chunk)
    return f"r.{region_x}.{region_z}.mca"
