from __future__ import annotations

from pathlib import Path
from typing import Any, Type, TypeVar

from hydra.utils import instantiate
from loguru import logger
from omegaconf import DictConfig, OmegaConf
from PIL import Image
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from imgevolve.exceptions import PluginError, ValidationError
from imgevolve.plugins.base import Evaluator, Initializer, Mutator, Plugin
from imgevolve.session.task_state import TaskState
from imgevolve.utils.logger_setup import setup_logger

DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"
PLUGIN_KEYS = ("initializer", "mutator", "evaluator")

P = TypeVar("P", bound=Plugin)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    log_dir: str = Field(default="logs")
    rotation: str = Field(default="50 MB")
    retention: str = Field(default="30 days")
    enable_colors: bool = Field(default=True)


class SessionConfig(BaseModel):
    """Validated session configuration."""

    shape_count: int = Field(gt=0, description="Number of shapes per genome")
    vertex_count: int = Field(ge=3, description="Vertices per shape")
    target_image: str | None = Field(
        default=None, description="Path of the image to approximate"
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    initializer: dict[str, Any] = Field(description="Hydra node for the initializer")
    mutator: dict[str, Any] = Field(description="Hydra node for the mutator")
    evaluator: dict[str, Any] = Field(description="Hydra node for the evaluator")

    model_config = ConfigDict(extra="forbid")

    @field_validator("initializer", "mutator", "evaluator")
    @classmethod
    def validate_target(cls, v: dict[str, Any]) -> dict[str, Any]:
        if "_target_" not in v:
            raise ValueError("Plugin node needs a '_target_' key")
        return v


def _merge(base: DictConfig, incoming: DictConfig) -> DictConfig:
    # A plugin node naming a _target_ replaces the old node, parameters included
    for key in PLUGIN_KEYS:
        node = incoming.get(key)
        if isinstance(node, DictConfig) and "_target_" in node:
            base[key] = node
    return OmegaConf.merge(base, incoming)


def load_config(
    path: str | Path | None = None, overrides: list[str] | None = None
) -> SessionConfig:
    """Merge the default config, an optional user file and dotlist overrides.

    Args:
        path: Optional YAML file merged over the defaults
        overrides: Dotlist overrides, e.g. ``["shape_count=50"]``

    Returns:
        Validated SessionConfig

    Raises:
        ValidationError: If the merged config is invalid
    """
    cfg = OmegaConf.load(DEFAULT_CONFIG_PATH)
    if path is not None:
        cfg = _merge(cfg, OmegaConf.load(path))
    if overrides:
        cfg = _merge(cfg, OmegaConf.from_dotlist(overrides))

    try:
        return SessionConfig.model_validate(OmegaConf.to_container(cfg, resolve=True))
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid session config: {exc}") from exc


def _instantiate_plugin(node: dict[str, Any], expected: Type[P]) -> P:
    plugin = instantiate(node, _convert_="all")
    if not isinstance(plugin, expected):
        raise PluginError(
            f"{node['_target_']} is not a {expected.__name__}"
        )
    return plugin


def build_task_state(
    config: SessionConfig, image: Image.Image | None = None
) -> TaskState:
    """Create a fresh session from *config*.

    The target image is *image* if given, otherwise ``config.target_image``
    opened with Pillow; a session without either has no target yet.
    """
    if image is None and config.target_image is not None:
        with Image.open(config.target_image) as opened:
            image = opened.convert("RGB")

    state = TaskState(
        config.shape_count,
        config.vertex_count,
        image,
        initializer=_instantiate_plugin(config.initializer, Initializer),
        mutator=_instantiate_plugin(config.mutator, Mutator),
        evaluator=_instantiate_plugin(config.evaluator, Evaluator),
    )
    logger.info(
        "[config] Built session | shapes={}, vertices={}, image={}",
        config.shape_count,
        config.vertex_count,
        config.target_image,
    )
    return state


def setup_logging(config: SessionConfig) -> str:
    return setup_logger(
        log_dir=config.logging.log_dir,
        level=config.logging.level,
        rotation=config.logging.rotation,
        retention=config.logging.retention,
        enable_colors=config.logging.enable_colors,
    )
