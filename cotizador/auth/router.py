"""
Routes API pour la connexion (vérification simple des identifiants configurés).
"""
import logging

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from cotizador.auth.service import verify_login

logger = logging.getLogger(__name__)

router = APIRouter()


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    authenticated: bool
    username: str


@router.post("/login", response_model=LoginResponse)
async def login(credentials: LoginRequest):
    logger.info("[Router] Tentative de login pour: %s", credentials.username)
    if not verify_login(credentials.username, credentials.password):
        logger.warning("[Router] Échec authentification pour: %s", credentials.username)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Identifiants invalides.")
    return LoginResponse(authenticated=True, username=credentials.username)


auth_router = router
