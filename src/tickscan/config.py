import tomllib
from pathlib import Path

import tomlkit
from pydantic import BaseModel, Field, HttpUrl, WebsocketUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tickscan.logging import logger
from tickscan.types.aliases import ChainId

CONFIG_DIR = Path.home() / ".config" / "tickscan"
CONFIG_FILE = CONFIG_DIR / "config.toml"


class FetchingSettings(BaseModel):
    # Maximum number of lookups in flight at once
    batch_size: int = Field(default=10, ge=1)
    # Seconds to wait between consecutive batches
    batch_delay: float = Field(default=0.1, ge=0)
    # Extra attempts made by the pool reader for a single failed call
    lookup_retries: int = Field(default=0, ge=0)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TICKSCAN_",
        env_nested_delimiter="__",
    )

    fetching: FetchingSettings = FetchingSettings()
    rpc: dict[
        ChainId,
        HttpUrl | WebsocketUrl | Path,
    ] = {}
    ticks_around: int = Field(default=100, ge=0)

    @field_validator("rpc", mode="after")
    def validate_paths(
        cls,  # noqa: N805
        rpc_dict: dict[ChainId, HttpUrl | WebsocketUrl | Path],
    ) -> dict[ChainId, HttpUrl | WebsocketUrl | Path]:
        """
        Validate the endpoints.

        This will convert all file paths to an absolute reference, leaving HTTP and WS URLs as-is.
        """

        return {
            chain_id: endpoint.expanduser().absolute() if isinstance(endpoint, Path) else endpoint
            for chain_id, endpoint in rpc_dict.items()
        }


def load_config_from_file(config_path: Path) -> Settings:
    return Settings.model_validate(
        tomllib.loads(
            config_path.read_text(),
        ),
    )


def save_config_to_file(config: Settings, config_path: Path = CONFIG_FILE) -> None:
    config_dict = config.model_dump(mode="json")
    # TOML tables only accept string keys
    config_dict["rpc"] = {
        str(chain_id): str(endpoint) for chain_id, endpoint in config.rpc.items()
    }

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(tomlkit.dumps(config_dict))
    logger.info(f"Saved configuration file at {config_path}.")


if CONFIG_FILE.exists():
    settings = load_config_from_file(CONFIG_FILE)
else:
    settings = Settings()
