from typing import Any

from fastapi import APIRouter, Depends

from cling.api import deps
from cling.schemas.image import IconSuggestionRequest, IconSuggestionResponse, ImageGenerationRequest
from cling.services.icon_suggestions import IconSuggestionService
from cling.services.image_generation import ImageGenerationService

router = APIRouter()


@router.post("/generate-image")
def generate_image(
    request_data: ImageGenerationRequest,
    service: ImageGenerationService = Depends(deps.get_image_generation_service),
) -> Any:
    """
    Proxy a text prompt to Stability AI.

    Returns ``{"prompt", "urls"}``, or ``{"message", "raw"}`` when the upstream
    reply holds no image.
    """
    return service.generate(
        prompt=request_data.prompt,
        width=request_data.width,
        height=request_data.height,
        samples=request_data.samples,
        cfg_scale=request_data.cfg_scale,
    )


@router.post("/ai/generate-images", response_model=IconSuggestionResponse)
def generate_icon_suggestions(
    request_data: IconSuggestionRequest,
    service: IconSuggestionService = Depends(deps.get_icon_suggestion_service),
) -> Any:
    return IconSuggestionResponse(urls=service.suggest(request_data.description))
