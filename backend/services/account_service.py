import logging

import bcrypt

from services.errors import DuplicateAccount, InvalidCredentials
from stores.base import HealthStore, UserRecord, normalize_email

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), hashed.encode())
    except ValueError:
        return False


def signup(store: HealthStore, email: str, password: str, name: str) -> UserRecord:
    email_norm = normalize_email(email)
    if store.get_user_by_email(email_norm):
        logger.info("Signup rejected: email already registered")
        raise DuplicateAccount()
    display_name = " ".join((name or "").split()) or email_norm.split("@", 1)[0]
    user = store.create_user(
        email=email_norm,
        display_name=display_name,
        password_hash=hash_password(password),
    )
    logger.info("User %s signed up", user.id)
    return user


def authenticate(store: HealthStore, email: str, password: str) -> UserRecord:
    user = store.get_user_by_email(email)
    if not user or not verify_password(password, user.password_hash):
        logger.warning("Failed login attempt")
        raise InvalidCredentials()
    return user
