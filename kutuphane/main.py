import subprocess
import sys
from contextlib import contextmanager
from typing import Optional

import typer
from pymongo.errors import PyMongoError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from kutuphane.config import settings
from kutuphane.database import BOOKS_COLLECTION, USERS_COLLECTION, connect, get_database
from kutuphane.errors import LibraryError
from kutuphane.logging_config import setup_logging
from kutuphane.services import BookService, UserService

APP_NAME = "Kütüphane CLI"

console = Console()

app = typer.Typer(help=APP_NAME)


@contextmanager
def open_database():
    """Komut süresince açık kalan bir veritabanı bağlantısı sağlar."""
    try:
        client = connect()
    except PyMongoError as e:
        console.print(f"[bold red]MongoDB'ye bağlanılamadı:[/] {escape(str(e))}")
        raise typer.Exit(code=1)
    try:
        yield get_database(client)
    finally:
        client.close()


@app.callback()
def main_callback() -> None:
    setup_logging(settings.log_level)


@app.command("serve")
def cli_serve(
    host: Optional[str] = typer.Option(None, "--host", help="Dinlenecek adres"),
    port: Optional[int] = typer.Option(None, "--port", help="Dinlenecek port"),
):
    """API sunucusunu Uvicorn ile başlat."""
    host = host or settings.api_host
    port = int(port or settings.api_port)
    console.print(f"[green]API başlatılıyor: http://{host}:{port}/[/]")
    args = [
        sys.executable,
        "-m", "uvicorn",
        "kutuphane.api:app",
        "--host", host,
        "--port", str(port),
    ]
    try:
        subprocess.run(args)
    except FileNotFoundError:
        console.print("[bold red]Hata:[/] `uvicorn` komutu bulunamadı. Lütfen ortamınızda yüklü olduğundan emin olun.")
        raise typer.Exit(code=1)


@app.command("books")
def cli_books():
    """Tüm kitapları ve ödünç durumlarını listele."""
    with open_database() as db:
        try:
            books = BookService(db[BOOKS_COLLECTION]).list_all()
        except LibraryError as e:
            console.print(f"[bold red]Hata:[/] {e.message}")
            raise typer.Exit(code=1)

    if not books:
        console.print("[yellow]Kütüphanede kitap yok.[/]")
        return

    table = Table(title="📚 Katalog", show_lines=True, header_style="bold cyan")
    table.add_column("ID", style="magenta", no_wrap=True)
    table.add_column("Başlık", style="white")
    table.add_column("Durum", style="white")
    for book in books:
        status = "Rafta" if book.is_available else f"Ödünçte ({book.borrower_id})"
        table.add_row(str(book.id), escape(book.title), status)

    console.print(table)
    console.print(f"[dim]📊 Toplam {len(books)} kitap[/]")


@app.command("user")
def cli_user(user_id: str = typer.Argument(..., help="Kullanıcı ID")):
    """Bir kullanıcının bilgilerini ve elindeki kitapları göster."""
    with open_database() as db:
        try:
            user = UserService(db[USERS_COLLECTION]).get_by_id(user_id)
        except LibraryError as e:
            console.print(f"[bold red]Hata:[/] {e.message}")
            raise typer.Exit(code=1)

    books = ", ".join(str(b) for b in user.books) or "-"
    console.print(Panel.fit(
        f"[bold]Kullanıcı adı:[/] {escape(user.username)}\n"
        f"[bold]Kitaplar ({len(user.books)}/{settings.lending_limit}):[/] {books}",
        title=f"👤 {user.id}",
        border_style="green",
    ))


if __name__ == "__main__":
    app()
