from fastapi import APIRouter

from matching_api.api.admin.embeddings import router as embeddings_router

router = APIRouter()
router.include_router(embeddings_router)
