"""Parola hashleme ve doğrulama yardımcıları (bcrypt)."""

import bcrypt

from kutuphane.config import settings


def hash_password(password: str) -> str:
    """Parolayı bcrypt ile hashler; maliyet ``settings.bcrypt_rounds`` değeridir."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Parola hash ile eşleşiyorsa True döndürür.

    Bozuk veya boş bir hash eşleşmeme olarak kabul edilir.
    """
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False
