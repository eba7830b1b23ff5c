"""Runtime credentials and persona selection."""

from pydantic import BaseModel, Field

from src.core.config import Settings
from src.domain.persona import Persona


class AppSettings(BaseModel):
    """Credentials and active persona the controller operates with."""

    gemini_api_key: str = Field(default="", description="Analysis service credential")
    home_assistant_url: str = Field(default="", description="Camera bridge base URL")
    home_assistant_token: str = Field(default="", description="Camera bridge bearer token")
    selected_persona: Persona = Field(default=Persona.CLASSIC, description="Active persona (verification strictness)")

    @classmethod
    def from_settings(cls, settings: Settings) -> "AppSettings":
        return cls(
            gemini_api_key=settings.gemini_api_key,
            home_assistant_url=settings.home_assistant_url,
            home_assistant_token=settings.home_assistant_token,
            selected_persona=Persona(settings.selected_persona),
        )

    @property
    def has_bridge_credentials(self) -> bool:
        return bool(self.home_assistant_url) and bool(self.home_assistant_token)
