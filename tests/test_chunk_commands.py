import asyncio
import json

import nbtlib
import pytest
from nbtlib.tag import Double, List

from chunk_commands import ChunkCommandsPlugin
from conftest import FakePlayer, FakeSession


@pytest.fixture
def plugin(tmp_path, logger, plugin_manager):
    plugin = ChunkCommandsPlugin(logger, plugin_dir=tmp_path / "plugins" / "chunk_tools")
    assert asyncio.run(plugin.on_load(plugin_manager))
    plugin.config["script_directory"] = str(tmp_path)
    return plugin


def run(coro):
    return asyncio.run(coro)


def test_on_load_registers_commands_and_writes_default_config(plugin, plugin_manager):
    assert set(plugin_manager.commands) == {"chunkinfo", "listchunks", "delchunks"}
    assert plugin_manager.commands["delchunks"]["admin_only"] is True

    saved = json.loads(plugin.config_file.read_text(encoding="utf-8"))
    assert saved["shell_save_type"] is None
    assert saved["page_size"] == 8


def test_config_file_overrides_defaults(tmp_path, logger, plugin_manager):
    plugin_dir = tmp_path / "cfg"
    plugin_dir.mkdir()
    (plugin_dir / "config.json").write_text(json.dumps({"shell_save_type": "bash"}), encoding="utf-8")

    plugin = ChunkCommandsPlugin(logger, plugin_dir=plugin_dir)
    run(plugin.on_load(plugin_manager))

    assert plugin.config["shell_save_type"] == "bash"
    assert plugin.config["page_size"] == 8


def test_broken_config_file_falls_back_to_defaults(tmp_path, logger, plugin_manager):
    plugin_dir = tmp_path / "cfg"
    plugin_dir.mkdir()
    (plugin_dir / "config.json").write_text("{not json", encoding="utf-8")

    plugin = ChunkCommandsPlugin(logger, plugin_dir=plugin_dir)
    run(plugin.on_load(plugin_manager))

    assert plugin.config == ChunkCommandsPlugin.DEFAULT_CONFIG


def test_config_reload_updates_dialect(plugin):
    run(plugin.on_config_reload({}, {"chunk_tools": {"shell_save_type": "bat"}}))

    assert plugin.config["shell_save_type"] == "bat"


def test_chunkinfo_for_player(plugin):
    reply = run(plugin.handle_chunkinfo(1, 2, "", player=FakePlayer(-1, 64, 95)))

    assert reply.splitlines()[0] == "区块: -1, 5"
    assert "旧版格式: 1r/5/c.-1.5.dat" in reply
    assert "McRegion: region/r.-1.0.mcr" in reply


def test_chunkinfo_for_block_coordinates(plugin):
    reply = run(plugin.handle_chunkinfo(1, 2, "80 -48"))

    assert reply.splitlines()[0] == "区块: 5, -3"


def test_chunkinfo_rejects_bad_coordinates(plugin):
    assert run(plugin.handle_chunkinfo(1, 2, "a b")).startswith("错误:")


def test_chunkinfo_without_position_shows_usage(plugin):
    assert run(plugin.handle_chunkinfo(1, 2, "")).startswith("用法:")


def test_chunkinfo_for_named_player_requires_world(plugin):
    assert "世界文件夹" in run(plugin.handle_chunkinfo(1, 2, "Notch"))


def test_listchunks_from_session(plugin):
    session = FakeSession([(0, 0), (0, 1), (1, 0), (0, 0)])

    reply = run(plugin.handle_listchunks(1, 2, "", session=session))

    assert "(0, 0)\n(0, 1)\n(1, 0)" in reply


def test_listchunks_from_block_area_with_page(plugin):
    plugin.config["page_size"] = 2

    reply = run(plugin.handle_listchunks(1, 2, "0 0 47 15 2"))

    assert "(2, 0)" in reply
    assert "(0, 0)" not in reply
    assert "第 2/2 页" in reply


def test_listchunks_without_selection(plugin):
    reply = run(plugin.handle_listchunks(1, 2, "", session=FakeSession(None)))

    assert reply == "错误: 没有选区"


def test_listchunks_invalid_page(plugin):
    reply = run(plugin.handle_listchunks(1, 2, "9", session=FakeSession([(0, 0)])))

    assert reply.startswith("错误: 页码无效")


def test_listchunks_area_too_large(plugin):
    plugin.config["max_selection_chunks"] = 10

    reply = run(plugin.handle_listchunks(1, 2, "0 0 160 160"))

    assert "区域过大" in reply


def test_delchunks_writes_bash_script(plugin, tmp_path):
    plugin.config["shell_save_type"] = "bash"
    session = FakeSession([(0, 0), (0, 1), (1, 0)])

    reply = run(plugin.handle_delchunks(1, 2, "", session=session))

    script = tmp_path / "worldedit-delchunks.sh"
    content = script.read_bytes().decode("utf-8")
    assert "\r" not in content
    lines = content.splitlines()
    assert lines[0] == "#!/bin/bash"
    assert lines[-1] == 'read -p "Press any key to continue..."'
    for name in ("c.0.0.dat", "c.0.1.dat", "c.1.0.dat"):
        assert lines.count(f"echo {name}") == 1
        assert lines.count(f'rm "world/{name}"') == 1
    assert sum(1 for line in lines if line.startswith("rm ")) == 3

    assert "不支持" in reply.splitlines()[0]
    assert str(script) in reply
    assert "chmod +x" in reply


def test_delchunks_mixed_case_dialect(plugin, tmp_path):
    plugin.config["shell_save_type"] = "BAT"

    reply = run(plugin.handle_delchunks(1, 2, "", session=FakeSession([(0, 0)])))

    data = (tmp_path / "worldedit-delchunks.bat").read_bytes()
    assert data.startswith(b"@ECHO off\r\n")
    assert b'DEL "world/c.0.0.dat"\r\n' in data
    assert "chmod" not in reply


@pytest.mark.parametrize("dialect", [None, "xyz", 1, True, ["bat"]])
def test_delchunks_without_valid_dialect_writes_nothing(plugin, tmp_path, dialect):
    plugin.config["shell_save_type"] = dialect

    reply = run(plugin.handle_delchunks(1, 2, "", session=FakeSession([(0, 0)])))

    assert "'bat' 或 'bash'" in reply
    assert not (tmp_path / "worldedit-delchunks.bat").exists()
    assert not (tmp_path / "worldedit-delchunks.sh").exists()


def test_delchunks_without_selection(plugin):
    plugin.config["shell_save_type"] = "bash"

    reply = run(plugin.handle_delchunks(1, 2, "", session=FakeSession(None)))

    assert reply.splitlines()[-1] == "错误: 没有选区"


def test_delchunks_reports_io_failure(plugin, tmp_path):
    plugin.config["shell_save_type"] = "bash"
    plugin.config["script_directory"] = str(tmp_path / "does-not-exist")

    reply = run(plugin.handle_delchunks(1, 2, "", session=FakeSession([(0, 0)])))

    assert reply.splitlines()[-1].startswith("发生错误:")


def test_delchunks_from_block_area(plugin, tmp_path):
    plugin.config["shell_save_type"] = "bash"

    run(plugin.handle_delchunks(1, 2, "-1 -1 0 0"))

    content = (tmp_path / "worldedit-delchunks.sh").read_text(encoding="utf-8")
    rm_lines = [line for line in content.splitlines() if line.startswith("rm ")]
    assert rm_lines == [
        'rm "world/c.-1.-1.dat"',
        'rm "world/c.-1.0.dat"',
        'rm "world/c.0.-1.dat"',
        'rm "world/c.0.0.dat"',
    ]


def test_plugin_help_mentions_dialect(plugin):
    plugin.config["shell_save_type"] = "bash"

    assert "删除脚本类型: bash" in plugin.get_plugin_help()


def test_chunkinfo_for_named_player_reads_playerdata(plugin, tmp_path):
    playerdata = tmp_path / "world" / "playerdata"
    playerdata.mkdir(parents=True)
    uuid = "069a79f4-44e9-4726-a5be-fca90e38aaf5"
    nbtlib.File({"Pos": List[Double]([Double(-17.2), Double(70.0), Double(33.0)])},
                gzipped=True).save(str(playerdata / f"{uuid}.dat"))
    plugin.config["world_path"] = str(tmp_path / "world")

    reply = run(plugin.handle_chunkinfo(1, 2, uuid))

    assert reply.splitlines()[0] == "区块: -2, 2"


def test_chunkinfo_world_path_from_config_manager(plugin, tmp_path):
    class ConfigManager:
        def get_server_working_directory(self):
            return str(tmp_path)

        def get_server_start_script(self):
            return ""

    (tmp_path / "world" / "playerdata").mkdir(parents=True)

    reply = run(plugin.handle_chunkinfo(1, 2, "Herobrine", config_manager=ConfigManager()))

    assert reply == "无法找到玩家 Herobrine 的数据"


def test_delchunks_invalid_dialect_keeps_region_note(plugin):
    plugin.config["shell_save_type"] = 1

    lines = run(plugin.handle_delchunks(1, 2, "", session=FakeSession([(0, 0)]))).splitlines()

    assert "不支持" in lines[0]
    assert lines[-1].startswith("错误: 必须配置脚本类型")


def test_plugin_help_with_non_string_dialect(plugin):
    plugin.config["shell_save_type"] = ["bat"]

    assert "删除脚本类型: 未配置" in plugin.get_plugin_help()


@pytest.mark.parametrize("command_text", ["inf 0", "0 -inf", "1e400 0"])
def test_chunkinfo_rejects_infinite_coordinates(plugin, command_text):
    assert run(plugin.handle_chunkinfo(1, 2, command_text)).startswith("错误: 坐标格式错误")


def test_listchunks_rejects_infinite_coordinates(plugin):
    assert run(plugin.handle_listchunks(1, 2, "inf 0 1 1")).startswith("错误: 坐标格式错误")


@pytest.mark.parametrize("command_text", ["0 0", "0 0 16", "0 0 16 16 1 2"])
def test_listchunks_wrong_argument_count_shows_usage(plugin, command_text):
    session = FakeSession([(0, 0)])

    assert run(plugin.handle_listchunks(1, 2, command_text, session=session)).startswith("用法:")


@pytest.mark.parametrize("command_text", ["0", "0 0 16", "0 0 16 16 1"])
def test_delchunks_wrong_argument_count_writes_nothing(plugin, tmp_path, command_text):
    plugin.config["shell_save_type"] = "bash"

    reply = run(plugin.handle_delchunks(1, 2, command_text, session=FakeSession([(0, 0)])))

    assert reply.splitlines()[-1].startswith("用法:")
    assert not (tmp_path / "worldedit-delchunks.sh").exists()
