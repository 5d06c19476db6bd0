"""
Immutable configuration of a runtime-tracked container.
"""
from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel, ConfigDict

# Annotation under which the runtime records the --cidfile path
CID_FILE_ANNOTATION = "io.podman.annotations.cid-file"


class ContainerConfig(BaseModel):
    """
    Configuration fixed at container creation time.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    created_time: datetime
    pod: str = ""

    rootfs_image_name: str = ""
    rootfs_image_id: str = ""

    command: List[str] = []
    labels: Dict[str, str] = {}
    annotations: Dict[str, str] = {}
    exposed_ports: Dict[int, List[str]] = {}
    is_infra: bool = False

    @property
    def cid_file(self) -> str:
        return self.annotations.get(CID_FILE_ANNOTATION, "")
