"""FastAPI API endpoints under /api.

Endpoint groups: health and system prompt settings, publications, context
files, sessions, chat, legacy migration, model catalog. Context files and
session listings are nested under /api/publications/{pid}/; single sessions
and context files can also be addressed globally by id.
"""

from fastapi import APIRouter

from .catalog import router as catalog_router
from .chat import router as chat_router
from .context import router as context_router
from .migrate import router as migrate_router
from .publications import router as publications_router
from .sessions import router as sessions_router
from .settings import router as settings_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(publications_router)
router.include_router(context_router)
router.include_router(sessions_router)
router.include_router(chat_router)
router.include_router(migrate_router)
router.include_router(catalog_router)
