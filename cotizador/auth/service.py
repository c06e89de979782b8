"""
Vérification de connexion minimale.

Compare les identifiants soumis à ceux configurés (ADMIN_USERNAME / ADMIN_PASSWORD).
Aucun jeton, aucune session: l'interface se contente du résultat.
"""
import hmac
import logging

from cotizador.core.config import settings

logger = logging.getLogger(__name__)


def verify_login(username: str, password: str) -> bool:
    if not settings.ADMIN_PASSWORD:
        logger.warning("[Auth] Connexion refusée: ADMIN_PASSWORD non configuré.")
        return False
    user_ok = hmac.compare_digest((username or "").encode(), settings.ADMIN_USERNAME.encode())
    password_ok = hmac.compare_digest((password or "").encode(), settings.ADMIN_PASSWORD.encode())
    return user_ok and password_ok
