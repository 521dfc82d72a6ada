"""Servis katmanının fırlattığı hata türleri.

Her hata, API katmanında ``{"error": mesaj}`` gövdesine çevrilirken
kullanılacak HTTP durum kodunu taşır.
"""


class LibraryError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BadRequestError(LibraryError):
    """Hatalı girdi veya iş kuralı ihlali (limit, sahiplik, ödünçte)."""
    status_code = 400


class ConflictError(BadRequestError):
    """Aynı kullanıcı adıyla ikinci kayıt denemesi."""


class NotFoundError(LibraryError):
    status_code = 404


class UnauthorizedError(LibraryError):
    status_code = 401


class InternalError(LibraryError):
    """Veritabanı veya şifreleme hatası."""
    status_code = 500
