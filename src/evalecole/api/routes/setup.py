"""Provisioning routes.

These endpoints stay reachable while the store needs provisioning, so they
depend on the raw store rather than the ready one.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from evalecole import config
from evalecole.core.dependencies import get_store
from evalecole.schemas.setup import SetupStatus
from evalecole.utils.entity_store import EntityStore
from evalecole.utils.provisioning import SETUP_SQL_SCRIPT

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/setup", tags=["Setup"])


@router.get("/status", response_model=SetupStatus, summary="État du stockage")
def setup_status(store: EntityStore = Depends(get_store)) -> SetupStatus:
    status = store.initialize()
    logger.info("Store status: %s", status.value)
    return SetupStatus(status=status, backend=config.STORE_BACKEND)


@router.get("/script", response_class=PlainTextResponse, summary="Script SQL d'installation")
def setup_script() -> str:
    """SQL to paste into the database's SQL editor."""
    return SETUP_SQL_SCRIPT
