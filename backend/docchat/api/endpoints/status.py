from fastapi import APIRouter, Depends

from docchat.core.state import AppServices, get_services
from docchat.models.api_models import StatusResponse

router = APIRouter()

@router.get("", response_model=StatusResponse)
async def get_corpus_status(services: AppServices = Depends(get_services)):
    """
    Reports whether any document has been ingested yet.
    """
    count = len(services.store)
    return StatusResponse(status="ready" if count else "empty", chunks=count, dimension=services.store.dimension)
