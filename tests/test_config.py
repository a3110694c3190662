"""Tests for configuration loading — networks.json, .env and environment."""

import json
import os
from pathlib import Path

import pytest

from jewelry_lifecycle.config import BUILTIN_NETWORKS, load_networks, load_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch) -> None:
    for key in list(os.environ):
        if key.startswith("JEWELRY_"):
            monkeypatch.delenv(key)


class TestNetworks:
    def test_shipped_profiles(self) -> None:
        default, networks = load_networks()
        assert default == "localhost"
        assert networks["localhost"].url == "http://127.0.0.1:8545"
        assert networks["localhost"].chain_id == 31337

    def test_shipped_profiles_live_inside_the_package(self) -> None:
        import jewelry_lifecycle

        package_dir = Path(jewelry_lifecycle.__file__).resolve().parent
        assert BUILTIN_NETWORKS.parent == package_dir
        assert BUILTIN_NETWORKS.is_file()

    def test_custom_config_dir(self, tmp_path: Path) -> None:
        (tmp_path / "networks.json").write_text(json.dumps({
            "networks": {"devnet": {"url": "http://10.0.0.5:8545", "chain_id": 1337}},
        }), encoding="utf-8")
        default, networks = load_networks(tmp_path)
        assert default == "devnet"
        assert networks["devnet"].chain_id == 1337

    def test_default_data_dir_is_relative(self, tmp_path: Path) -> None:
        settings = load_settings(env_file=tmp_path / "missing.env")
        assert settings.data_dir == Path("data")

    def test_unknown_default_rejected(self, tmp_path: Path) -> None:
        (tmp_path / "networks.json").write_text(json.dumps({
            "default_network": "mainnet",
            "networks": {"localhost": {"url": "http://127.0.0.1:8545", "chain_id": 31337}},
        }), encoding="utf-8")
        with pytest.raises(ValueError, match="mainnet"):
            load_networks(tmp_path)


class TestSettings:
    def test_defaults(self, tmp_path: Path) -> None:
        settings = load_settings(env_file=tmp_path / "missing.env")
        assert settings.network.name == "localhost"
        assert settings.private_key is None
        assert settings.log_level == "INFO"
        assert settings.state_path.name == "state.json"
        assert settings.events_path.name == "events.jsonl"

    def test_env_file_values(self, tmp_path: Path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text(
            "JEWELRY_NETWORK=sepolia\n"
            "JEWELRY_PRIVATE_KEY=0xabc\n"
            f"JEWELRY_DATA_DIR={tmp_path / 'data'}\n"
            "JEWELRY_LOG_LEVEL=debug\n",
            encoding="utf-8",
        )
        settings = load_settings(env_file=env_file)
        assert settings.network.name == "sepolia"
        assert settings.network.chain_id == 11155111
        assert settings.private_key == "0xabc"
        assert settings.data_dir == tmp_path / "data"
        assert settings.log_level == "DEBUG"

    def test_environment_beats_env_file(self, tmp_path: Path, monkeypatch) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("JEWELRY_RPC_URL=http://from-file:8545\n", encoding="utf-8")
        monkeypatch.setenv("JEWELRY_RPC_URL", "http://from-env:8545")
        monkeypatch.setenv("JEWELRY_CHAIN_ID", "1337")
        settings = load_settings(env_file=env_file)
        assert settings.network.url == "http://from-env:8545"
        assert settings.network.chain_id == 1337

    def test_explicit_arguments_win(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setenv("JEWELRY_NETWORK", "sepolia")
        settings = load_settings(
            env_file=tmp_path / "missing.env",
            network="localhost",
            data_dir=tmp_path,
        )
        assert settings.network.name == "localhost"
        assert settings.data_dir == tmp_path

    def test_env_file_does_not_leak_into_environment(self, tmp_path: Path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("JEWELRY_LOG_LEVEL=WARNING\n", encoding="utf-8")
        load_settings(env_file=env_file)
        assert "JEWELRY_LOG_LEVEL" not in os.environ

    def test_unknown_network(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="Unknown network"):
            load_settings(env_file=tmp_path / "missing.env", network="mars")

    def test_bad_chain_id(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setenv("JEWELRY_CHAIN_ID", "lots")
        with pytest.raises(ValueError, match="JEWELRY_CHAIN_ID"):
            load_settings(env_file=tmp_path / "missing.env")

    def test_bad_log_level(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setenv("JEWELRY_LOG_LEVEL", "chatty")
        with pytest.raises(ValueError, match="log level"):
            load_settings(env_file=tmp_path / "missing.env")

    def test_repr_hides_private_key(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setenv("JEWELRY_PRIVATE_KEY", "0xsecret")
        settings = load_settings(env_file=tmp_path / "missing.env")
        assert "0xsecret" not in repr(settings)
