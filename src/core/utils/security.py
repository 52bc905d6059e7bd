import asyncio

from passlib.context import CryptContext
from pydantic import EmailStr

from loggers import get_logger

logger = get_logger(__name__)

pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
    argon2__memory_cost=65536,  # 64 MB
    argon2__time_cost=3,
    argon2__parallelism=2,
)


def hash_password(password: str) -> str:
    """
    Hashes the provided password using Argon2 with the configured parameters.

    :param password: The plaintext password as a string.
    :return: The hashed password as a string.
    """
    return pwd_context.hash(password)


async def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verifies that a text password matches its hashed counterpart.

    Runs in a worker thread since Argon2 is deliberately slow.

    :param plain_password: The text password provided by the user.
    :param hashed_password: The stored hashed password from the database.
    :return: True if the passwords match, False otherwise.
    """
    try:
        return await asyncio.to_thread(
            pwd_context.verify, plain_password, hashed_password
        )
    except ValueError:
        return False


def mask_email(email: str | EmailStr) -> str:
    """
    Masks an email address for logs.
    Mask pattern: ab***@cd***
    """
    email_str = str(email)
    local, sep, domain = email_str.partition("@")
    if not sep:
        return "***"
    masked_local = (local[:2] + "***") if local else "*****"
    masked_domain = (domain[:2] + "***") if domain else "*****"
    return f"{masked_local}@{masked_domain}"


def normalize_email(email: str) -> str:
    """Normalize an email address."""
    return email.strip().lower()
