from datetime import datetime
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, List, Literal, Optional, Union


class NodeKind(str, Enum):
    START = "start"
    TASK = "task"
    DECISION = "decision"
    END = "end"
    LANE = "lane-container"


def _coerce_id(value: Any) -> Any:
    # Generators often emit numeric ids
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class _PayloadModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PayloadNode(_PayloadModel):
    id: str
    kind: NodeKind                 # REQUIRED, closed set
    label: Optional[str] = None
    name: Optional[str] = None     # lane-containers
    lane_id: Optional[str] = Field(default=None, alias="laneId")

    @field_validator("id", "lane_id", mode="before")
    @classmethod
    def coerce_ids(cls, value):
        return _coerce_id(value)


class PayloadEdge(_PayloadModel):
    id: Optional[str] = None
    source: str
    target: str
    label: Optional[str] = None
    style: Optional[Union[str, Dict[str, Any]]] = None

    @field_validator("id", "source", "target", mode="before")
    @classmethod
    def coerce_ids(cls, value):
        return _coerce_id(value)


class PayloadLane(_PayloadModel):
    id: str
    name: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_ids(cls, value):
        return _coerce_id(value)


class PayloadMetadata(_PayloadModel):
    process_name: str = Field(alias="processName")
    total_elements: Optional[int] = Field(default=None, alias="totalElements", ge=0)
    complexity: Optional[Literal["low", "medium", "high"]] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


class ProcessPayload(_PayloadModel):
    nodes: List[PayloadNode]
    edges: List[PayloadEdge]
    lanes: List[PayloadLane] = Field(default_factory=list)
    metadata: Optional[PayloadMetadata] = None
