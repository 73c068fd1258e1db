from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from emulauncher.device.models import LaunchOptions


class TimeoutSettings(BaseModel):
    """Timeouts (in seconds) for one-shot toolchain invocations."""

    list_sec: float = 5.0  # `emulator -list-avds`
    bridge_sec: float = 5.0  # `adb devices`
    kill_sec: float = 5.0  # `adb -s <id> emu kill`
    query_sec: float = 3.0  # `adb -s <id> emu avd name`


class Settings(BaseSettings):
    """
    Main configuration for the emulator lifecycle manager.

    Loads values from the following sources:
    - Environment variables (with prefix EMULAUNCHER_)
    - Initialization values (e.g., from YAML)
    - .env file
    - Secret files
    """

    model_config = SettingsConfigDict(env_prefix="EMULAUNCHER_", env_nested_delimiter="__")

    sdk_root: str | None = None  # Explicit SDK root, checked before the environment
    sdk_env_vars: list[str] = Field(
        default_factory=lambda: ["ANDROID_HOME", "ANDROID_SDK_ROOT"]
    )  # Environment variables naming the SDK root, first set one wins
    timeouts: TimeoutSettings = Field(default_factory=TimeoutSettings)
    launch: LaunchOptions = Field(default_factory=LaunchOptions)  # Defaults for launch requests
    resolve_transport_names: bool = False  # Ask each emulator for its AVD name via adb

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,  # type: type[BaseSettings]
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """
        Configure the order of configuration sources.

        Loading priority:
        1. Environment variables
        2. Initialization values (e.g., from YAML)
        3. .env file
        4. Secret files
        """
        return (env_settings, init_settings, dotenv_settings, file_secret_settings)
