"""Kütüphane - Ödünç Servisi Paketi

Bu paket uygulamanın çekirdek modüllerini içerir:
- API uç noktaları (api.py)
- Servisler (services/)
- CLI arayüzü (main.py)
- Veri modelleri (models.py)
- Veritabanı katmanı (database.py)
"""
