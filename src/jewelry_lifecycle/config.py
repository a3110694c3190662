"""Runtime configuration — network profiles, data paths, and secrets.

Sources, later ones winning:
1. ``networks.json`` — named network profiles (url, chain id). The copy
   shipped inside the package is used unless a config directory is given.
2. A ``.env`` file in the working directory (or an explicit path).
3. The process environment.

Relative defaults (``.env``, ``data/``) resolve against the working
directory, so an installed package never writes into site-packages.

Recognised keys:
    JEWELRY_NETWORK       profile name (default from networks.json)
    JEWELRY_RPC_URL       overrides the profile url
    JEWELRY_CHAIN_ID      overrides the profile chain id
    JEWELRY_PRIVATE_KEY   signing key for anchoring (never logged)
    JEWELRY_DATA_DIR      where state.json and events.jsonl live
    JEWELRY_LOG_LEVEL     logging level name (default INFO)
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values


BUILTIN_NETWORKS = Path(__file__).resolve().parent / "networks.json"
DEFAULT_DATA = Path("data")
DEFAULT_ENV_FILE = Path(".env")


@dataclass(frozen=True)
class NetworkConfig:
    """A JSON-RPC endpoint profile."""
    name: str
    url: str
    chain_id: int


@dataclass(frozen=True)
class Settings:
    network: NetworkConfig
    data_dir: Path
    private_key: Optional[str] = None
    log_level: str = "INFO"

    @property
    def state_path(self) -> Path:
        return self.data_dir / "state.json"

    @property
    def events_path(self) -> Path:
        return self.data_dir / "events.jsonl"

    def __repr__(self) -> str:
        key = "<set>" if self.private_key else None
        return (
            f"Settings(network={self.network!r}, data_dir={self.data_dir!r}, "
            f"private_key={key!r}, log_level={self.log_level!r})"
        )


def load_networks(config_dir: Optional[Path] = None) -> tuple[str, dict[str, NetworkConfig]]:
    """Read network profiles. Returns (default name, profiles by name).

    ``config_dir`` None reads the profiles bundled with the package.
    """
    path = config_dir / "networks.json" if config_dir is not None else BUILTIN_NETWORKS
    with path.open("r", encoding="utf-8") as handle:
        raw = json.load(handle)
    networks = {
        name: NetworkConfig(name=name, url=entry["url"], chain_id=int(entry["chain_id"]))
        for name, entry in raw.get("networks", {}).items()
    }
    if not networks:
        raise ValueError(f"No networks defined in {path}")
    default = raw.get("default_network") or next(iter(networks))
    if default not in networks:
        raise ValueError(f"Default network {default!r} is not defined in {path}")
    return default, networks


def load_settings(
    config_dir: Optional[Path] = None,
    env_file: Optional[Path] = None,
    network: Optional[str] = None,
    data_dir: Optional[Path] = None,
) -> Settings:
    """Merge networks.json, the .env file and the environment.

    Explicit ``network`` and ``data_dir`` arguments beat every other source.
    Raises ValueError for an unknown network, chain id, or log level.
    """
    env_path = env_file if env_file is not None else DEFAULT_ENV_FILE
    values: dict[str, Optional[str]] = {}
    if env_path.exists():
        values.update(dotenv_values(env_path))
    values.update({k: v for k, v in os.environ.items() if k.startswith("JEWELRY_")})

    default, networks = load_networks(config_dir)
    name = network or values.get("JEWELRY_NETWORK") or default
    profile = networks.get(name)
    if profile is None:
        known = ", ".join(sorted(networks))
        raise ValueError(f"Unknown network: {name}. Known networks: [{known}]")

    chain_id = profile.chain_id
    if values.get("JEWELRY_CHAIN_ID"):
        try:
            chain_id = int(values["JEWELRY_CHAIN_ID"])
        except ValueError:
            raise ValueError(f"JEWELRY_CHAIN_ID must be an integer, got {values['JEWELRY_CHAIN_ID']!r}") from None

    level = (values.get("JEWELRY_LOG_LEVEL") or "INFO").upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"Unknown log level: {level}")

    if data_dir is None:
        data_dir = Path(values["JEWELRY_DATA_DIR"]) if values.get("JEWELRY_DATA_DIR") else DEFAULT_DATA

    return Settings(
        network=NetworkConfig(
            name=name,
            url=values.get("JEWELRY_RPC_URL") or profile.url,
            chain_id=chain_id,
        ),
        data_dir=data_dir,
        private_key=values.get("JEWELRY_PRIVATE_KEY") or None,
        log_level=level,
    )
