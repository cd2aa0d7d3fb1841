"""HTML pages served from the templates directory."""
from functools import lru_cache
from html import escape
from pathlib import Path
from urllib.parse import quote

from filemanager.models import FileRecord
from filemanager.services.file_storage import FileStorageService

TEMPLATES_DIR = Path(__file__).parent / "templates"

WELCOME_HTML = (
    "<html><body><h1>Welcome to File Manager</h1>"
    '<a href="/files">View Files</a></body></html>'
)


@lru_cache(maxsize=None)
def load_template(name: str) -> str:
    return (TEMPLATES_DIR / name).read_text(encoding="utf-8")


def render_file_list(files: list[FileRecord], storage: FileStorageService) -> str:
    rows = [_render_row(f, storage) for f in files]
    if not rows:
        rows = ['      <tr><td colspan="6">No files yet.</td></tr>']
    return load_template("files.html").replace("__FILE_ROWS__", "\n".join(rows))


def _render_row(record: FileRecord, storage: FileStorageService) -> str:
    url = storage.public_url(record.path)
    name = escape(record.name)
    if url:
        name = (
            f'<a href="{escape(url)}">{name}</a> '
            f'(<a href="/player?src={quote(url, safe="")}">play</a>)'
        )
    recorded_at = record.recorded_at.strftime("%Y-%m-%d %H:%M") if record.recorded_at else ""
    return (
        f"      <tr><td>{record.id}</td><td>{name}</td><td>{record.size}</td>"
        f"<td>{recorded_at}</td><td>{record.duration}s</td>"
        f'<td><button onclick="deleteFile({record.id})">Delete</button></td></tr>'
    )
