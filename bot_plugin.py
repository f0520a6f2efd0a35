"""
插件基类

宿主机器人通过 plugin_manager 加载插件，调用 on_load 注册命令，
并在命令触发时调用已注册的 handler。

部署到机器人时，宿主按 issubclass(..., plugin_manager.BotPlugin) 发现插件，
此时 chunk_commands 必须继承宿主的 plugin_manager.BotPlugin；本模块只在
独立安装和测试时作为同名接口的替身。两者接口一致：name / version / author /
description 类属性、__init__(logger)、on_load / on_unload / on_config_reload。
"""
import logging


class BotPlugin:
    """所有插件的基类"""

    name = "Unnamed Plugin"
    version = "0.0.0"
    author = ""
    description = ""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    async def on_load(self, plugin_manager) -> bool:
        """插件加载，返回是否加载成功"""
        return True

    async def on_unload(self) -> None:
        """插件卸载"""

    async def on_config_reload(self, old_config: dict, new_config: dict) -> None:
        """配置重新加载"""

    def get_plugin_help(self) -> str:
        return f"{self.name} v{self.version}\n{self.description}"
