"""
benefits_reporting/config.py - Engine Configuration

Per-client settings that vary between reporting engagements. Business
constants fixed across clients (reconciliation tolerance, fuel gauge bounds,
claimant buckets, budget claim split) live in the calculation modules.

Author: Actuarial Pipeline Project
License: MIT
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

from pydantic import BaseModel, ConfigDict, Field

from .budget_variance import BudgetConfig
from .high_claimants import DEFAULT_ISL_THRESHOLD, DEFAULT_MIN_PERCENT_THRESHOLD
from .rounding import RoundingMode

logger = logging.getLogger(__name__)


class EngineConfig(BaseModel):
    """Client-level reporting settings."""
    model_config = ConfigDict(frozen=True)

    client_name: str = Field(default="", description="Client shown on report headers")
    isl_threshold: float = Field(default=DEFAULT_ISL_THRESHOLD, ge=0,
                                 description="Specific stop-loss attachment point")
    min_percent_threshold: float = Field(default=DEFAULT_MIN_PERCENT_THRESHOLD, ge=0, le=1,
                                         description="HCC reporting floor as a fraction of ISL")
    rounding_mode: RoundingMode = RoundingMode.HALF_UP
    precision: int = Field(default=2, ge=0, le=10)
    all_plans_name: str = Field(default="All Plans",
                                description="Plan name of the aggregate row in monthly uploads")

    def budget_config(self) -> BudgetConfig:
        return BudgetConfig(rounding_mode=self.rounding_mode, precision=self.precision)

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'EngineConfig':
        return cls.model_validate(config)


def load_config(path: Union[str, Path]) -> EngineConfig:
    """
    Load EngineConfig from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist
        pydantic.ValidationError: If a setting is out of range
    """
    path = Path(path)
    with open(path) as f:
        raw = json.load(f)

    config = EngineConfig.from_dict(raw)
    logger.info(f"Loaded configuration from {path.name} "
                f"(ISL ${config.isl_threshold:,.0f}, {config.rounding_mode.value})")
    return config
