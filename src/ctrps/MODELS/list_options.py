"""
Options accepted by a container listing call.
"""
from typing import Dict, List

from pydantic import BaseModel, Field


class ContainerListOptions(BaseModel):
    """
    What to list and how much detail to gather per container.
    """
    all: bool = False
    last: int = 0
    filters: Dict[str, List[str]] = Field(default_factory=dict)

    # Extra per-container detail, each one costs more work per container
    size: bool = False
    namespace: bool = False
    pod: bool = False
    sync: bool = False

    # Also list containers that only exist in storage (e.g. created by buildah)
    external: bool = False
