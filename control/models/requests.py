"""
Control Request Models
"""

from pydantic import BaseModel, ConfigDict, Field


class TickRequest(BaseModel):
    """Manual tick request body: {"gameId": "..."}"""
    model_config = ConfigDict(populate_by_name=True)

    game_id: str = Field(default="", alias="gameId")
