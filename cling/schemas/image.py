from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ImageGenerationRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    prompt: Optional[str] = None
    width: int = Field(default=1024, ge=1)
    height: int = Field(default=1024, ge=1)
    samples: int = Field(default=1, ge=1)
    cfg_scale: float = 7


class ImageGenerationResponse(BaseModel):
    prompt: str
    urls: List[str]


class NoImageResponse(BaseModel):
    message: str = "No image found in response"
    raw: Any = None


class IconSuggestionRequest(BaseModel):
    description: Optional[str] = None


class IconSuggestionResponse(BaseModel):
    urls: List[str]
