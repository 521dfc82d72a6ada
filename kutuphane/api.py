import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pymongo.database import Database
from starlette.exceptions import HTTPException as StarletteHTTPException

from kutuphane.config import settings
from kutuphane.database import (
    BOOKS_COLLECTION,
    USERS_COLLECTION,
    connect,
    ensure_indexes,
    get_database,
    ping,
)
from kutuphane.errors import LibraryError
from kutuphane.logging_config import setup_logging
from kutuphane.services import BookService, LendingService, UserService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Dışarıdan bir veritabanı verilmediyse başlangıçta bağlan
    client = None
    if getattr(app.state, "db", None) is None:
        client = connect()
        app.state.db = get_database(client)
    ensure_indexes(app.state.db)
    try:
        yield
    finally:
        if client is not None:
            client.close()
            logger.info("MongoDB bağlantısı kapatıldı")


# --- Modeller ---
class CredentialsModel(BaseModel):
    username: str
    password: str

class BookCreateModel(BaseModel):
    title: str

class LendingRequestModel(BaseModel):
    user_id: str
    book_id: str

class InsertedModel(BaseModel):
    inserted_id: str

class MessageModel(BaseModel):
    message: str

class LoginResponseModel(BaseModel):
    message: str
    user_id: str

class UserModel(BaseModel):
    id: str
    username: str
    books: List[str]

class BookModel(BaseModel):
    id: str
    title: str
    borrower_id: Optional[str] = None


# --- Bağımlılıklar ---
# Servisler her istekte uygulamanın veritabanından oluşturulur
def get_db(request: Request) -> Database:
    return request.app.state.db

def get_user_service(db: Database = Depends(get_db)) -> UserService:
    return UserService(db[USERS_COLLECTION])

def get_book_service(db: Database = Depends(get_db)) -> BookService:
    return BookService(db[BOOKS_COLLECTION])

def get_lending_service(db: Database = Depends(get_db)) -> LendingService:
    return LendingService(db[USERS_COLLECTION], db[BOOKS_COLLECTION])


# --- API Uç Noktaları ---
router = APIRouter()

@router.post("/register", response_model=InsertedModel, status_code=201)
def register_user(body: CredentialsModel, users: UserService = Depends(get_user_service)):
    """Yeni kullanıcı kaydı."""
    inserted_id = users.register(body.username, body.password)
    return InsertedModel(inserted_id=str(inserted_id))

@router.post("/login", response_model=LoginResponseModel)
def login_user(body: CredentialsModel, users: UserService = Depends(get_user_service)):
    """Kullanıcı adı ve parolayı doğrular; oturum belirteci üretilmez."""
    user_id = users.authenticate(body.username, body.password)
    return LoginResponseModel(message="Giriş başarılı", user_id=str(user_id))

@router.get("/user/{user_id}", response_model=UserModel)
def get_user(user_id: str, users: UserService = Depends(get_user_service)):
    return UserModel(**users.get_by_id(user_id).to_dict())

@router.delete("/user/{user_id}", response_model=MessageModel)
def delete_user(user_id: str, users: UserService = Depends(get_user_service)):
    users.delete_by_id(user_id)
    return MessageModel(message="Kullanıcı silindi")

@router.post("/book", response_model=InsertedModel, status_code=201)
def add_book(body: BookCreateModel, books: BookService = Depends(get_book_service)):
    inserted_id = books.create(body.title)
    return InsertedModel(inserted_id=str(inserted_id))

@router.get("/books", response_model=List[BookModel], response_model_exclude_none=True)
def list_books(books: BookService = Depends(get_book_service)):
    """Tüm kitapları filtresiz ve sayfalamasız döndürür."""
    return [BookModel(**b.to_dict()) for b in books.list_all()]

@router.post("/borrow", response_model=MessageModel)
def borrow_book(body: LendingRequestModel, lending: LendingService = Depends(get_lending_service)):
    return MessageModel(message=lending.borrow(body.user_id, body.book_id))

@router.post("/return", response_model=MessageModel)
def return_book(body: LendingRequestModel, lending: LendingService = Depends(get_lending_service)):
    return MessageModel(message=lending.return_book(body.user_id, body.book_id))

@router.get("/health")
def health(db: Database = Depends(get_db)):
    """Docker ve compose sağlık kontrolleri için hafif sağlık uç noktası."""
    db_ok = ping(db)
    return {
        "status": "healthy" if db_ok else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "db": db_ok,
    }


# --- Hata İşleyicileri ---
# Tüm hatalar kısa bir Türkçe mesajla {"error": ...} gövdesine çevrilir
async def handle_library_error(request: Request, exc: LibraryError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Geçersiz JSON"})

async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)

async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    # Ör. BSON'a kodlanamayan bir dize; ayrıntı yalnızca loga yazılır
    logger.error("Beklenmeyen hata: %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Sunucu hatası"})


def create_app(database: Optional[Database] = None) -> FastAPI:
    """Uygulamayı oluşturur.

    ``database`` verilirse (ör. testlerde) başlangıçta bağlantı kurulmaz,
    verilen veritabanı kullanılır.
    """
    setup_logging(settings.log_level)

    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)
    app.state.db = database
    app.include_router(router)
    app.add_exception_handler(LibraryError, handle_library_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    return app


app = create_app()
