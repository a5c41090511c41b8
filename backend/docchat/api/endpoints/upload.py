from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
import os
from typing import Optional

from loguru import logger

from docchat.core.errors import IngestionError
from docchat.core.state import AppServices, get_services
from docchat.models.api_models import UploadResponse
from docchat.services.uploads import save_upload

router = APIRouter()

@router.post("", response_model=UploadResponse)
async def handle_file_upload(file: Optional[UploadFile] = File(None), pdf: Optional[UploadFile] = File(None),
                             services: AppServices = Depends(get_services)):
    """Saves the document and ingests it into the corpus before responding.

    The document may come in the `file` or the `pdf` multipart field.
    """
    file = file if file is not None else pdf
    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded")
    try:
        filename = save_upload(services.upload_dir, file.filename, file.file)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    finally:
        await file.close()

    file_path = services.upload_dir / filename
    logger.info(f"API: Processing file: {file_path}")
    try:
        result = await services.ingestion.ingest(str(file_path), source=os.path.basename(file.filename))
    except IngestionError as e:
        logger.error(f"API: Error processing {filename}: {e.message}")
        file_path.unlink(missing_ok=True)
        raise HTTPException(status_code=500, detail="Failed to process document")

    return UploadResponse(
        status="processed",
        filename=filename,
        message="File uploaded and processed successfully",
        pages=result.pages,
        chunks=result.chunks,
    )
