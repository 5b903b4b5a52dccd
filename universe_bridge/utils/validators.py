"""YAML schema validation for the environment registry.

Provides centralized validation for environment configuration using pydantic:
    - Environments schema (environments.v1.yaml): per-environment key
      vocabulary, pointer geometry, and native observation resolution

All loaders must go through these validators for fail-fast error detection
with actionable messages (offending environment, key, expected range).

Units:
    - Geometry: integer screen pixels, top-left origin
    - Regions: [x, y, width, height]

Usage:
    from universe_bridge.utils import validators

    cfg = validators.load_environments_config("environments.yaml")
    cfg.environments["flashgames.DuskDrive-v0"].keys
"""

from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ============================================================================
# ENVIRONMENTS SCHEMA V1
# ============================================================================

class RegionModel(BaseModel):
    """Screen rectangle (pixels)."""
    x: int = Field(..., description="Left edge (px)")
    y: int = Field(..., description="Top edge (px)")
    width: int = Field(..., ge=0, description="Width (px)")
    height: int = Field(..., ge=0, description="Height (px)")

    @model_validator(mode='before')
    @classmethod
    def accept_xywh_list(cls, data):
        """Allow the compact [x, y, width, height] form."""
        if isinstance(data, (list, tuple)):
            if len(data) != 4:
                raise ValueError(
                    f"Region list must have 4 elements [x, y, width, height], got {len(data)}"
                )
            x, y, width, height = data
            return {"x": x, "y": y, "width": width, "height": height}
        return data


class PointerInfoModel(BaseModel):
    """Where pointer events may land and where clicks are suppressed."""
    bounding_region: RegionModel = Field(..., description="Region pointer events are clipped to")
    forbidden_regions: List[RegionModel] = Field(
        default_factory=list, description="Regions where clicks are forced off"
    )

    @model_validator(mode='after')
    def validate_bounding_not_empty(self) -> 'PointerInfoModel':
        region = self.bounding_region
        if region.width == 0 or region.height == 0:
            raise ValueError(
                f"bounding_region must have a positive size, got {region.width}x{region.height}"
            )
        return self


class ObservationModel(BaseModel):
    """Native frame resolution of an environment."""
    width: int = Field(..., gt=0, description="Native frame width (px)")
    height: int = Field(..., gt=0, description="Native frame height (px)")


class EnvironmentModel(BaseModel):
    """Single environment entry."""
    keys: List[str] = Field(default_factory=list, description="Keys with meaningful actions")
    pointer: Optional[PointerInfoModel] = Field(None, description="Pointer geometry (None: no pointer)")
    observation: Optional[ObservationModel] = Field(None, description="Native observation size")

    @field_validator('keys')
    @classmethod
    def validate_keys(cls, v: List[str]) -> List[str]:
        seen = set()
        for key in v:
            if not key:
                raise ValueError("Key names must be non-empty strings")
            if key in seen:
                raise ValueError(f"Duplicate key name: {key!r}")
            seen.add(key)
        return v


class EnvironmentsV1(BaseModel):
    """Environment registry schema v1 (complete config file)."""
    model_config = ConfigDict(populate_by_name=True)

    schema_version: str = Field("environments.v1", alias="schema", description="Schema version")
    environments: Dict[str, EnvironmentModel] = Field(..., description="Entries by environment id")

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "environments.v1":
            raise ValueError(f"Expected schema 'environments.v1', got '{v}'")
        return v

    @field_validator('environments')
    @classmethod
    def validate_not_empty(cls, v: Dict[str, EnvironmentModel]) -> Dict[str, EnvironmentModel]:
        if not v:
            raise ValueError("At least one environment must be defined")
        return v


# ============================================================================
# PUBLIC API
# ============================================================================

def load_environments_config(path: Union[str, Path]) -> EnvironmentsV1:
    """Load and validate the environment registry from YAML.

    Parameters
    ----------
    path : Union[str, Path]
        Path to an environments.v1 YAML file

    Returns
    -------
    EnvironmentsV1
        Validated registry configuration

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ValueError
        If validation fails (with actionable error message)
    """
    from . import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Environments config not found: {path}")

    data = fs.load_yaml(path)
    if data is None:
        raise ValueError(f"Environments config is empty: {path}")
    try:
        return EnvironmentsV1(**data)
    except Exception as e:
        raise ValueError(f"Environments config validation failed at {path}: {e}") from e
