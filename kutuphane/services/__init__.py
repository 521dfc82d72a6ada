"""Kütüphane - Servis Paketi

Bu paket veritabanı koleksiyonlarını kullanan servisleri içerir:
- Kullanıcı servisi (kayıt, giriş, okuma, silme)
- Kitap servisi (ekleme, listeleme)
- Ödünç servisi (ödünç alma, iade)
"""

from kutuphane.services.books import BookService
from kutuphane.services.lending import LendingService
from kutuphane.services.users import UserService

__all__ = ["BookService", "LendingService", "UserService"]
