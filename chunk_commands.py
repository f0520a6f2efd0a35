import json
import math
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from bot_plugin import BotPlugin
from chunk_coords import to_chunk
from chunk_report import DEFAULT_PAGE_SIZE, InvalidPageError, format_chunk_info, format_chunk_list
from chunk_selection import CuboidSelection, NoSelectionError, SelectionTooLargeError, resolve_chunks
from delchunks_script import ScriptDialect, ScriptWriteError, parse_dialect, write_deletion_script
from player_position import PlayerDataReader


class ChunkCommandsPlugin(BotPlugin):
    """区块信息查询与删除脚本生成插件"""

    name = "Chunk Tools"
    version = "1.0.0"
    author = "MSMP_QQBot"
    description = "查询区块存储位置、列出选区区块、生成区块删除脚本"

    # 插件配置
    DEFAULT_CONFIG = {
        "shell_save_type": None,  # 删除脚本类型: "bat" 或 "bash"
        "script_directory": ".",  # 删除脚本输出目录
        "page_size": DEFAULT_PAGE_SIZE,  # listchunks 每页数量
        "world_path": "",  # 世界文件夹，留空则使用服务器工作目录下的 world
        "max_selection_chunks": 100000  # 坐标选区允许的最大区块数
    }

    COMMANDS_HELP = {
        "chunkinfo": {
            "names": ["chunkinfo", "区块信息"],
            "description": "查询所在区块及其存档文件名",
            "usage": "chunkinfo [玩家名] 或 chunkinfo <x> <z>",
            "admin_only": False,
        },
        "listchunks": {
            "names": ["listchunks", "区块列表"],
            "description": "列出选区包含的区块",
            "usage": "listchunks [页码] 或 listchunks <x1> <z1> <x2> <z2> [页码]",
            "admin_only": False,
        },
        "delchunks": {
            "names": ["delchunks", "删除区块脚本"],
            "description": "生成删除选区内区块文件的脚本",
            "usage": "delchunks 或 delchunks <x1> <z1> <x2> <z2>",
            "admin_only": True,
        }
    }

    def __init__(self, logger, plugin_dir: Optional[Path] = None):
        super().__init__(logger)
        self.plugin_manager = None
        self.plugin_dir = Path(plugin_dir) if plugin_dir else Path("plugins/chunk_tools")
        self.config_file = self.plugin_dir / "config.json"
        self.config: Dict[str, Any] = self.DEFAULT_CONFIG.copy()

    def _load_config(self) -> Dict[str, Any]:
        """加载配置文件，不存在则创建默认配置"""
        default_config = self.DEFAULT_CONFIG.copy()

        try:
            if self.config_file.exists():
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    loaded_config = json.load(f)

                merged_config = default_config.copy()
                merged_config.update(loaded_config)

                self.logger.info(f"已加载配置文件: {self.config_file}")
                return merged_config

            self.plugin_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(default_config, f, ensure_ascii=False, indent=2)
            self.logger.info(f"已创建默认配置文件: {self.config_file}")
            return default_config

        except (OSError, ValueError) as e:
            self.logger.error(f"加载配置文件失败: {e}，使用默认配置")
            return default_config

    async def on_load(self, plugin_manager) -> bool:
        """插件加载时的初始化"""
        try:
            self.plugin_manager = plugin_manager
            self.config = self._load_config()

            handlers = {
                "chunkinfo": self.handle_chunkinfo,
                "listchunks": self.handle_listchunks,
                "delchunks": self.handle_delchunks,
            }
            for command_name, handler in handlers.items():
                info = self.COMMANDS_HELP[command_name]
                plugin_manager.register_command(
                    command_name=command_name,
                    handler=handler,
                    names=info["names"],
                    admin_only=info["admin_only"],
                    description=info["description"],
                    usage=info["usage"]
                )

            self.logger.info(f"{self.name} v{self.version} 已加载")
            return True

        except Exception as e:
            self.logger.error(f"加载区块工具插件失败: {e}", exc_info=True)
            return False

    async def on_unload(self) -> None:
        self.logger.info(f"{self.name} 已卸载")

    async def on_config_reload(self, old_config: dict, new_config: dict) -> None:
        """配置重新加载时的处理"""
        old_section = old_config.get("chunk_tools", {})
        new_section = new_config.get("chunk_tools", {})
        for key in new_section:
            if old_section.get(key) != new_section.get(key):
                self.logger.info(f"区块工具插件配置已变更: {key}")

        self.config.update(new_section)

    def _parse_page(self, text: str) -> int:
        try:
            return int(text)
        except ValueError:
            raise ValueError(f"页码格式错误: {text}")

    def _parse_area(self, parts: List[str]) -> CuboidSelection:
        """解析 x1 z1 x2 z2 方块坐标"""
        try:
            x1, z1, x2, z2 = (math.floor(float(value)) for value in parts[:4])
        except (ValueError, OverflowError):
            raise ValueError(f"坐标格式错误: {' '.join(parts[:4])}")

        selection = CuboidSelection(x1, z1, x2, z2)
        limit = self.config["max_selection_chunks"]
        if selection.chunk_count() > limit:
            raise SelectionTooLargeError(selection.chunk_count(), limit)
        return selection

    def _get_world_path(self, config_manager=None) -> str:
        """获取世界文件夹路径"""
        if self.config.get("world_path"):
            return self.config["world_path"]

        if config_manager is None or not hasattr(config_manager, 'get_server_working_directory'):
            return ""

        working_dir = config_manager.get_server_working_directory()
        if not working_dir:
            start_script = config_manager.get_server_start_script()
            if start_script:
                working_dir = os.path.dirname(start_script)

        if not working_dir:
            return ""

        return os.path.join(working_dir, "world")

    def _resolve_block_position(self, parts: List[str], player=None,
                                config_manager=None) -> Optional[Tuple[int, int, int]]:
        """确定 chunkinfo 查询的方块坐标"""
        if len(parts) >= 2:
            try:
                return math.floor(float(parts[0])), 0, math.floor(float(parts[1]))
            except (ValueError, OverflowError):
                raise ValueError(f"坐标格式错误: x={parts[0]}, z={parts[1]}")

        if len(parts) == 1:
            world_path = self._get_world_path(config_manager)
            if not world_path:
                raise ValueError("请先配置世界文件夹路径")
            return PlayerDataReader(world_path, self.logger).get_block_position(parts[0])

        if player is not None:
            return tuple(player.get_block_position())

        return None

    async def handle_chunkinfo(self, user_id: int, group_id: int, command_text: str,
                               player=None, config_manager=None, **kwargs) -> str:
        """处理 chunkinfo 命令"""
        try:
            parts = command_text.strip().split()

            try:
                position = self._resolve_block_position(parts, player, config_manager)
            except ValueError as e:
                return f"错误: {e}"

            if position is None:
                if len(parts) == 1:
                    return f"无法找到玩家 {parts[0]} 的数据"
                return f"用法: {self.COMMANDS_HELP['chunkinfo']['usage']}"

            block_x, _, block_z = position
            return format_chunk_info(to_chunk(block_x, block_z))

        except Exception as e:
            self.logger.error(f"处理 chunkinfo 命令失败: {e}", exc_info=True)
            return f"命令执行失败: {e}"

    def _selected_chunks(self, parts: List[str], session=None) -> Tuple[frozenset, List[str]]:
        """解析选区，返回区块集合和剩余参数"""
        if len(parts) >= 4:
            return resolve_chunks(self._parse_area(parts)), parts[4:]
        return resolve_chunks(session), parts

    async def handle_listchunks(self, user_id: int, group_id: int, command_text: str,
                                session=None, **kwargs) -> str:
        """处理 listchunks 命令"""
        try:
            parts = command_text.strip().split()

            # 参数: [页码] 或 x1 z1 x2 z2 [页码]
            if len(parts) not in (0, 1, 4, 5):
                return f"用法: {self.COMMANDS_HELP['listchunks']['usage']}"

            try:
                chunks, rest = self._selected_chunks(parts, session)
                page = self._parse_page(rest[0]) if rest else 1
                return format_chunk_list(chunks, page, self.config["page_size"])
            except (NoSelectionError, SelectionTooLargeError, InvalidPageError, ValueError) as e:
                return f"错误: {e}"

        except Exception as e:
            self.logger.error(f"处理 listchunks 命令失败: {e}", exc_info=True)
            return f"命令执行失败: {e}"

    async def handle_delchunks(self, user_id: int, group_id: int, command_text: str,
                               session=None, **kwargs) -> str:
        """处理 delchunks 命令，只生成脚本，不会直接删除文件"""
        result_parts = ["注意: 此命令暂不支持 McRegion/Anvil 区域文件格式，只处理旧版区块文件。"]
        try:
            parts = command_text.strip().split()

            if len(parts) not in (0, 4):
                result_parts.append(f"用法: {self.COMMANDS_HELP['delchunks']['usage']}")
                return "\n".join(result_parts)

            try:
                chunks, _ = self._selected_chunks(parts, session)
            except (NoSelectionError, SelectionTooLargeError, ValueError) as e:
                result_parts.append(f"错误: {e}")
                return "\n".join(result_parts)

            dialect = parse_dialect(self.config.get("shell_save_type"))
            if dialect is None:
                self.logger.warning(f"无效的脚本类型配置: {self.config.get('shell_save_type')!r}")
                result_parts.append("错误: 必须配置脚本类型 shell_save_type: 'bat' 或 'bash'")
                return "\n".join(result_parts)

            output_path = Path(self.config.get("script_directory") or ".") / dialect.script_name
            try:
                written = write_deletion_script(chunks, dialect, output_path)
            except ScriptWriteError as e:
                self.logger.error(f"写入删除脚本失败 {e.path}: {e.cause}")
                result_parts.append(f"发生错误: {e}")
                return "\n".join(result_parts)

            self.logger.info(f"用户 {user_id} 生成了删除脚本: {written} ({len(chunks)} 个区块)")

            result_parts.append(f"{written} 已写入 ({len(chunks)} 个区块)，请在附近没有玩家时运行。")
            if dialect is ScriptDialect.POSIX:
                result_parts.append(f"运行前需要添加执行权限: chmod +x {written}")
            return "\n".join(result_parts)

        except Exception as e:
            self.logger.error(f"处理 delchunks 命令失败: {e}", exc_info=True)
            return f"命令执行失败: {e}"

    def get_plugin_help(self) -> str:
        """返回插件帮助信息"""
        lines = [
            f"【{self.name}】 v{self.version}",
            f"作者: {self.author}",
            f"说明: {self.description}",
            ""
        ]

        for info in self.COMMANDS_HELP.values():
            main_name = info['names'][0]
            aliases = ' / '.join(info['names'][1:])
            suffix = " [管理员]" if info["admin_only"] else ""
            lines.append(f"• {main_name}" + (f" ({aliases})" if aliases else "") + suffix)
            lines.append(f"  {info['description']}")
            lines.append(f"  用法: {info['usage']}")

        dialect = parse_dialect(self.config.get("shell_save_type"))
        lines.append("")
        lines.append(f"删除脚本类型: {dialect.value if dialect else '未配置'}")
        return "\n".join(lines)
