"""Static pages: welcome and media player."""
from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from filemanager.views import WELCOME_HTML, load_template

router = APIRouter(tags=["pages"])


@router.get("/", response_class=HTMLResponse)
async def welcome():
    return HTMLResponse(WELCOME_HTML)


@router.get("/player", response_class=HTMLResponse)
async def player():
    return HTMLResponse(load_template("player.html"))
