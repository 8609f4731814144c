from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class StageFlag(BaseModel):
    """Done flag for a single pipeline stage of one order."""

    index: int
    id: str
    label: str
    done: bool


class StageProgress(BaseModel):
    """Where an order sits in the pipeline."""

    current_stage_index: int = Field(..., ge=0)
    current_stage_id: str
    current_stage_label: str
    completed_stages: int = Field(..., ge=0)
    total_stages: int
    stage_progress: List[StageFlag]


class StageDelay(BaseModel):
    """Planned-versus-actual delay of one stage."""

    delay_days: int
    delay_hours: int
    on_time: bool


class StageTiming(BaseModel):
    """Timeline entry for one stage of one order."""

    stage: str
    stage_index: int
    planned: Optional[datetime] = None
    actual: Optional[datetime] = None
    delay_days: Optional[int] = None
    delay_hours: Optional[int] = None
    on_time: Optional[bool] = None
