"""Camera entity exposed by the camera bridge."""

from pydantic import BaseModel, Field


class Camera(BaseModel):
    """Camera available for unattended snapshots."""

    entity_id: str = Field(..., description="Bridge entity ID (e.g., 'camera.living_room')")
    name: str = Field(..., description="Friendly name")
    state: str = Field(default="unknown", description="Bridge-reported state")
