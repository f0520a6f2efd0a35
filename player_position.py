"""
从 playerdata 读取玩家坐标

支持 UUID、不带连字符的 UUID，以及通过 usercache.json 按玩家名查找
"""
import json
import logging
import math
import os
from typing import List, Optional, Tuple

import nbtlib


class PlayerDataReader:
    """玩家数据读取器"""

    def __init__(self, world_path: str, logger: logging.Logger):
        self.world_path = world_path
        self.playerdata_path = os.path.join(world_path, "playerdata")
        self.logger = logger

    def _candidate_files(self, uuid: str) -> List[str]:
        files = []
        for suffix in (".dat", ".dat_old"):
            path = os.path.join(self.playerdata_path, f"{uuid}{suffix}")
            if os.path.exists(path):
                files.append(path)
        return files

    def _lookup_uuid(self, player_name: str) -> Optional[str]:
        """从服务器根目录的 usercache.json 查找玩家 UUID"""
        usercache_path = os.path.join(os.path.dirname(os.path.abspath(self.world_path)), "usercache.json")
        if not os.path.exists(usercache_path):
            return None

        try:
            with open(usercache_path, 'r', encoding='utf-8') as f:
                cache = json.load(f)
        except (OSError, ValueError) as e:
            self.logger.debug(f"查询 usercache.json 失败: {e}")
            return None

        for entry in cache:
            if entry.get('name', '').lower() == player_name.lower():
                return entry.get('uuid')
        return None

    def find_player_files(self, player_identifier: str) -> List[str]:
        """查找玩家 dat 文件（.dat 优先，其次 .dat_old）"""
        if not os.path.isdir(self.playerdata_path):
            self.logger.error(f"playerdata 目录不存在: {self.playerdata_path}")
            return []

        dat_files = self._candidate_files(player_identifier)

        if not dat_files and len(player_identifier) == 32 and '-' not in player_identifier:
            p = player_identifier
            dat_files = self._candidate_files(f"{p[:8]}-{p[8:12]}-{p[12:16]}-{p[16:20]}-{p[20:]}")

        if not dat_files:
            uuid = self._lookup_uuid(player_identifier)
            if uuid:
                dat_files = self._candidate_files(uuid)
                if dat_files:
                    self.logger.info(f"从 usercache.json 找到玩家 {player_identifier} 的UUID: {uuid}")

        if not dat_files:
            self.logger.warning(f"找不到玩家 {player_identifier} 的 dat 文件")

        return dat_files

    def get_block_position(self, player_identifier: str) -> Optional[Tuple[int, int, int]]:
        """读取玩家所在的方块坐标"""
        dat_files = self.find_player_files(player_identifier)
        if not dat_files:
            return None

        nbt_file = nbtlib.load(dat_files[0])
        if 'Pos' not in nbt_file:
            self.logger.warning(f"玩家 {player_identifier} 的 NBT 数据中不存在 Pos 标签")
            return None

        pos = nbt_file['Pos']
        x, y, z = (math.floor(float(value)) for value in pos[:3])
        self.logger.debug(f"玩家 {player_identifier} 当前方块坐标: ({x}, {y}, {z})")
        return x, y, z
