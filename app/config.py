from __future__ import annotations

import os
from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import PydanticBaseSettingsSource, YamlConfigSettingsSource

from adapters.layout.layered import LayoutConfig
from adapters.svg.renderer import SvgTheme
from domain.services.build_state_diagram import DEFAULT_CACHE_SIZE

DEFAULT_CONFIG_PATH = Path("config/diagram.yaml")
CONFIG_PATH_ENV = "FIBER_DIAGRAM_CONFIG_PATH"


class LayoutSettings(BaseModel):
    column_spacing: float = Field(default=180.0, gt=0)
    row_spacing: float = Field(default=130.0, gt=0)
    node_width: float = Field(default=120.0, gt=0)
    node_height: float = Field(default=50.0, gt=0)
    margin: float = Field(default=80.0, ge=0)
    offset_unit: float = Field(default=15.0, ge=0)
    curvature: float = Field(default=0.3, ge=0)
    self_loop_size: float = Field(default=40.0, ge=0)
    min_width: float = Field(default=400.0, ge=0)
    min_height: float = Field(default=300.0, ge=0)

    @model_validator(mode="after")
    def ensure_nodes_do_not_overlap(self) -> LayoutSettings:
        if self.row_spacing < self.node_height:
            msg = "layout.row_spacing must be at least layout.node_height"
            raise ValueError(msg)
        if self.column_spacing < self.node_width:
            msg = "layout.column_spacing must be at least layout.node_width"
            raise ValueError(msg)
        return self

    def to_layout_config(self) -> LayoutConfig:
        return LayoutConfig(**self.model_dump())


class ThemeSettings(BaseModel):
    background: str = "#0f1115"
    card: str = "#181b22"
    border: str = "#3a3f4b"
    accent: str = "#7c6cf2"
    text_primary: str = "#e8eaf0"
    text_muted: str = "#8a90a0"
    initial_marker: str = "#34c77b"

    def to_svg_theme(self) -> SvgTheme:
        return SvgTheme(**self.model_dump())


class DiagramSettings(BaseModel):
    layout: LayoutSettings = LayoutSettings()
    theme: ThemeSettings = ThemeSettings()
    cache_size: int = Field(default=DEFAULT_CACHE_SIZE, ge=0)
    excalidraw_base_url: str = "https://excalidraw.com/"


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="FIBER_DIAGRAM_", env_nested_delimiter="__")

    diagram: DiagramSettings = DiagramSettings()
    log_level: str = "INFO"

    _yaml_path: ClassVar[Path | None] = None

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: object) -> str:
        return str(value).upper() if value else "INFO"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        ]
        if cls._yaml_path:
            sources.append(YamlConfigSettingsSource(settings_cls, yaml_file=cls._yaml_path))
        return tuple(sources)


def load_settings(config_path: Path | None = None) -> AppSettings:
    env_path = os.getenv(CONFIG_PATH_ENV)
    resolved_path: Path | None = None

    if config_path is not None:
        resolved_path = config_path
    elif env_path:
        resolved_path = Path(env_path)
    elif DEFAULT_CONFIG_PATH.exists():
        resolved_path = DEFAULT_CONFIG_PATH

    previous = AppSettings._yaml_path
    try:
        if resolved_path is not None:
            if not resolved_path.exists():
                msg = f"Config file not found: {resolved_path}"
                raise FileNotFoundError(msg)
            AppSettings._yaml_path = resolved_path
        return AppSettings()
    finally:
        AppSettings._yaml_path = previous
