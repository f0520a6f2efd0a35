import logging

import pytest

from chunk_selection import NoSelectionError


class FakePluginManager:
    def __init__(self):
        self.commands = {}

    def register_command(self, command_name, handler, names=None, description="",
                         usage="", admin_only=False, cooldown=0):
        self.commands[command_name] = {
            "handler": handler,
            "names": names or [command_name],
            "admin_only": admin_only,
        }


class FakePlayer:
    def __init__(self, x, y, z):
        self.position = (x, y, z)

    def get_block_position(self):
        return self.position


class FakeSession:
    def __init__(self, chunks=None):
        self.chunks = chunks

    def get_selected_chunks(self):
        if self.chunks is None:
            raise NoSelectionError("没有选区")
        return list(self.chunks)


@pytest.fixture
def logger():
    return logging.getLogger("chunk_tools_test")


@pytest.fixture
def plugin_manager():
    return FakePluginManager()
