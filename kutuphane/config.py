import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

@dataclass
class Settings:
    # API Ayarları
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "3000"))

    # Veritabanı Ayarları
    mongo_uri: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    mongo_database: str = os.getenv("MONGO_DATABASE", "library")
    # Saniye cinsinden; istek başına tüm veritabanı işlemleri için süre sınırı
    request_timeout: float = float(os.getenv("REQUEST_TIMEOUT", "5"))
    # İlk bağlantı ve ping için süre sınırı
    connect_timeout: float = float(os.getenv("CONNECT_TIMEOUT", "10"))

    # Ödünç Ayarları
    lending_limit: int = int(os.getenv("LENDING_LIMIT", "2"))

    # Güvenlik Ayarları
    bcrypt_rounds: int = int(os.getenv("BCRYPT_ROUNDS", "10"))

    # Uygulama Ayarları
    app_name: str = os.getenv("APP_NAME", "Kütüphane Ödünç API'si")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
