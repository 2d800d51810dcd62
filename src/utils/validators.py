"""YAML schema validation and config loading.

Provides centralized validation for configuration files using pydantic:
    - Outline schema (outline.v1.yaml): canvas, mask source, outline style

All modules must use these validators to load configs for fail-fast error
detection with actionable messages (offending keys, expected ranges).

Units:
    - Geometry: pixels, image frame (top-left origin, +Y down)
    - Intensity: 8-bit (0..255)

Usage:
    from src.utils import validators

    cfg = validators.load_outline_config("configs/outline.v1.yaml")
    cfg = validators.OutlineConfigV1(mask_source="analytic-circle")
"""

from pathlib import Path
from typing import Any, Dict, Literal, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ============================================================================
# OUTLINE SCHEMA V1
# ============================================================================

MaskSource = Literal["image", "analytic-circle"]
OutlineStyleName = Literal["black-and-white", "simple"]


class CanvasConfig(BaseModel):
    """Canvas size, row stride and background gradient."""
    width: int = Field(512, ge=1, description="Canvas width (px)")
    height: int = Field(512, ge=1, description="Canvas height (px)")
    stride: Optional[int] = Field(None, ge=1, description="Row pitch (px); None means width")
    gradient_top: int = Field(32, ge=0, le=255, description="Intensity at top edge")
    gradient_bottom: int = Field(224, ge=0, le=255, description="Intensity at bottom edge")

    @model_validator(mode='after')
    def validate_stride(self) -> 'CanvasConfig':
        if self.stride is not None and self.stride < self.width:
            raise ValueError(f"stride {self.stride} must be >= width {self.width}")
        return self


class CircleConfig(BaseModel):
    """Analytic circle mask (pixel coordinates)."""
    center: Optional[Tuple[float, float]] = Field(
        None, description="Centre (x, y) in px; None means canvas centre"
    )
    radius: float = Field(100.0, ge=0.0, description="Radius (px)")


class OutlineConfigV1(BaseModel):
    """Outline renderer configuration (outline.v1.yaml schema).

    The mask source and outline style are fixed at setup; nothing is
    switched per pixel.
    """
    model_config = ConfigDict(populate_by_name=True)

    schema_version: str = Field("outline.v1", alias="schema", description="Schema version")
    canvas: CanvasConfig = Field(default_factory=CanvasConfig)
    mask_source: MaskSource = Field("image", description="Sampler strategy")
    mask_path: Optional[str] = Field(None, description="Mask image path (mask_source=image)")
    circle: CircleConfig = Field(default_factory=CircleConfig)
    outline_style: OutlineStyleName = Field("black-and-white", description="Alpha policy")
    border: int = Field(1, ge=1, description="Unprocessed frame width (px)")
    workers: int = Field(1, ge=1, le=64, description="Row bands rendered concurrently")

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "outline.v1":
            raise ValueError(f"Expected schema 'outline.v1', got '{v}'")
        return v

    @model_validator(mode='after')
    def validate_mask_source(self) -> 'OutlineConfigV1':
        if self.mask_source == "image" and not self.mask_path:
            raise ValueError("mask_source 'image' requires mask_path")
        min_size = 2 * self.border + 1
        if self.canvas.width < min_size or self.canvas.height < min_size:
            raise ValueError(
                f"Canvas {self.canvas.width}x{self.canvas.height} too small for "
                f"border {self.border} (need at least {min_size}x{min_size})"
            )
        return self


# ============================================================================
# PUBLIC API
# ============================================================================

def load_outline_config(path: Union[str, Path]) -> OutlineConfigV1:
    """Load and validate outline config from YAML.

    Parameters
    ----------
    path : Union[str, Path]
        Path to outline.v1.yaml file

    Returns
    -------
    OutlineConfigV1
        Validated configuration

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ValueError
        If the file is not valid YAML or validation fails (with actionable
        error message)

    Notes
    -----
    A relative ``mask_path`` is resolved against the config file's directory.
    """
    from . import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Outline config not found: {path}")

    try:
        data = fs.load_yaml(path) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Outline config is not valid YAML: {e}") from e

    try:
        cfg = OutlineConfigV1(**data)
    except Exception as e:
        raise ValueError(f"Outline config validation failed at {path}: {e}") from e

    if cfg.mask_path and not Path(cfg.mask_path).is_absolute():
        cfg.mask_path = str(path.parent / cfg.mask_path)
    return cfg


def flatten_config(cfg: Union[Dict, BaseModel], prefix: str = "") -> Dict[str, Any]:
    """Flatten nested config into dot-separated keys (for metadata dumps).

    Examples
    --------
    >>> flatten_config({"canvas": {"width": 512}})
    {'canvas.width': 512}
    """
    if isinstance(cfg, BaseModel):
        cfg = cfg.model_dump(by_alias=True)

    flat = {}
    for key, value in cfg.items():
        name = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            flat.update(flatten_config(value, name))
        elif isinstance(value, tuple):
            flat[name] = list(value)
        else:
            flat[name] = value
    return flat
