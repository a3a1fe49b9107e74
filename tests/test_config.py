"""
Tests for YAML configuration loading
"""

from pathlib import Path

import pytest

from config.config import SystemConfig, load_config, save_config
from zk.errors import ConfigError


def test_missing_file_gives_defaults(tmp_path):
    config = load_config(tmp_path / "absent.yaml")

    assert config.zk_config.snarkjs_bin == "snarkjs"
    assert config.chain_config.rpc_url == "http://127.0.0.1:8545"
    assert config.check_idempotence is True
    assert config.verify_off_chain is False


def test_round_trip(tmp_path):
    config = SystemConfig(log_level="DEBUG", verify_off_chain=True)
    config.zk_config.build_dir = Path("build/circuits")
    config.chain_config.rpc_url = "http://node:8545"
    config.chain_config.from_address = "0xabc"
    path = tmp_path / "config.yaml"

    save_config(config, path)
    loaded = load_config(path)

    assert loaded.log_level == "DEBUG"
    assert loaded.verify_off_chain is True
    assert loaded.zk_config.build_dir == Path("build/circuits")
    assert loaded.chain_config.rpc_url == "http://node:8545"
    assert loaded.chain_config.from_address == "0xabc"


def test_partial_sections_keep_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("chain:\n  poll_interval: 0.1\n")

    config = load_config(path)

    assert config.chain_config.poll_interval == 0.1
    assert config.chain_config.receipt_timeout == 60.0
    assert config.zk_config.command_timeout == 600


def test_empty_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("")
    assert load_config(path).log_level == "INFO"


def test_malformed_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("chain: [unclosed\n")
    with pytest.raises(ConfigError):
        load_config(path)


def test_non_mapping(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ConfigError):
        load_config(path)
