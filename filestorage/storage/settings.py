"""
Immutable storage configuration value.
"""

from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..models.disk import DiskConfig
from .errors import StorageConfigurationError


class StorageSettings(BaseModel):
    """
    Everything a ``Storage`` façade is built from.

    Scoped handles are derived with ``with_overrides`` so the settings
    of the original façade are never mutated.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    default_disk_name: Optional[str] = Field(
        None,
        description="Name of the default disk, inferred when a single disk is configured"
    )

    disk_configs: List[DiskConfig] = Field(
        default_factory=list,
        description="Disks available in the application"
    )

    plugins: List[Callable[[], Any]] = Field(
        default_factory=list,
        description="Plugin classes or zero-argument factories, in execution order"
    )

    unique_file_name: bool = Field(
        False,
        description="Replace uploaded file names with a random unique name"
    )

    custom_drivers: Dict[str, Callable[..., Any]] = Field(
        default_factory=dict,
        description="Extra driver identifier -> factory pairs"
    )

    def disk_names(self) -> List[str]:
        return [config.name for config in self.disk_configs]

    def with_overrides(self, **overrides: Any) -> "StorageSettings":
        """
        Validated copy of these settings with the given fields replaced.

        Raises:
            StorageConfigurationError: If an override is unknown or has an invalid value
        """
        values = {name: getattr(self, name) for name in type(self).model_fields}
        values.update(overrides)
        try:
            return StorageSettings.model_validate(values)
        except ValidationError as e:
            raise StorageConfigurationError(f"Invalid storage settings: {e}") from e
