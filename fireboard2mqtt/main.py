import os
import sys
import argparse
import asyncio
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from fireboard2mqtt.app import BridgeApp
from fireboard2mqtt.config import BridgeConfig, apply_env_overrides
from fireboard2mqtt.exceptions import ConfigError, FireboardError, SinkError

log = logging.getLogger(__name__)

EXIT_CONFIG_ERROR = 1
EXIT_SETUP_ERROR = 2
EXIT_MQTT_ERROR = 3


def _resolve_config_path(cli_path: Optional[str]) -> Optional[Path]:
    """
    Resolve config path with the following precedence:
    1) CLI: --config /path/to/config.yaml
    2) ENV: FB2MQTT_CONFIG=/path/to/config.yaml
    3) Default: <project_root>/config.yaml, only if it exists

    Returns None when there is no file; everything then comes from FB2MQTT_* variables.
    """
    if cli_path:
        return Path(cli_path).expanduser().resolve()

    env = os.getenv("FB2MQTT_CONFIG")
    if env:
        return Path(env).expanduser().resolve()

    default = Path(__file__).resolve().parents[1] / "config.yaml"
    return default if default.exists() else None


def load_config(path: Optional[Path], environ=None) -> BridgeConfig:
    """Load config.yaml (if any), overlay the environment and validate."""
    data = {}
    if path is not None:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to read config file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")

    try:
        return BridgeConfig.model_validate(apply_env_overrides(data, environ))
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


async def amain(cfg: BridgeConfig) -> None:
    app = BridgeApp(cfg)
    log.info("Starting application initialization...")
    await app.init()
    await app.run()


def main() -> None:
    parser = argparse.ArgumentParser(description="FireBoard cloud to MQTT bridge")
    parser.add_argument(
        "--config",
        help="Path to config.yaml (overrides FB2MQTT_CONFIG and default).",
        required=False,
    )
    args = parser.parse_args()

    try:
        cfg = load_config(_resolve_config_path(args.config))
    except ConfigError as e:
        logging.basicConfig(level=logging.ERROR)
        log.error(str(e))
        sys.exit(EXIT_CONFIG_ERROR)

    try:
        asyncio.run(amain(cfg))
    except FireboardError as e:
        log.error(f"Error setting up FireboardWatcher: {e}")
        sys.exit(EXIT_SETUP_ERROR)
    except SinkError as e:
        log.error(f"mqtt error: {e}")
        sys.exit(EXIT_MQTT_ERROR)
    except KeyboardInterrupt:
        log.info("Application interrupted by user")


if __name__ == "__main__":
    main()
