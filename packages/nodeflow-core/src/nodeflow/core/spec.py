from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

# ---------------------------------------------------------------------------
# Graph documents
# ---------------------------------------------------------------------------


class GraphMetaSpec(BaseModel):
    id: str
    description: Optional[str] = None
    # Node touched by Graph.touch(); defaults to the first declared node.
    entry: Optional[str] = None


class StepRefSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: str
    id: Optional[str] = None
    inputs: Dict[str, Any] = Field(default_factory=dict)


class SinkRefSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: str
    id: Optional[str] = None
    inputs: Dict[str, Any] = Field(default_factory=dict)


class LinkSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    to: str
    # Optional activation expression evaluated against the target node and the context.
    when: Optional[str] = None


class NodeSpec(BaseModel):
    id: str
    description: Optional[str] = None
    # Optional activation expression. When false the node is not executed.
    when: Optional[str] = None
    use: List[StepRefSpec] = Field(default_factory=list)
    links: List[LinkSpec] = Field(default_factory=list)
    sinks: List[SinkRefSpec] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class GraphSpec(BaseModel):
    version: int = 1
    graph: GraphMetaSpec
    nodes: List[NodeSpec]
