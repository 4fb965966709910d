"""User and session routes.

/registration, /login and /logout are public; the directories require a
session like every other route.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Form, Query, Request, Response
from sqlalchemy.orm import Session

from audioshare.api.deps import get_app_settings, get_db
from audioshare.auth.middleware import Viewer, get_viewer
from audioshare.config import Settings
from audioshare.schemas.users import RegisteredOut, SharerListOut, UserListOut
from audioshare.services import users as users_service

router = APIRouter()


@router.put("/registration", status_code=201, response_model=RegisteredOut)
def register(
    db: Annotated[Session, Depends(get_db)],
    login: Annotated[str, Form()],
    passwd: Annotated[str, Form()],
    name: Annotated[str | None, Form()] = None,
) -> RegisteredOut:
    """Register a new user. Returns 409 if the login is taken."""
    return users_service.register(db, login, passwd, name)


@router.post("/login")
def login(
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    login: Annotated[str, Form()],
    passwd: Annotated[str, Form()],
) -> Response:
    """Open a session and set the session cookie.

    Any earlier session of the same user stops working.
    """
    token = users_service.login(db, login, passwd)
    response = Response(status_code=200)
    response.set_cookie(
        settings.session_cookie_name,
        token,
        httponly=True,
        samesite="lax",
    )
    return response


@router.post("/logout")
def logout(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> Response:
    """End the current session, if any, and clear the cookie."""
    users_service.logout(db, request.cookies.get(settings.session_cookie_name))
    response = Response(status_code=200)
    response.delete_cookie(settings.session_cookie_name, httponly=True, samesite="lax")
    return response


@router.get("/user/list", response_model=UserListOut)
def list_users(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    page_no: Annotated[str | None, Query()] = None,
    on_page: Annotated[str | None, Query()] = None,
) -> UserListOut:
    """Page through registered users, ordered by id."""
    return users_service.list_users(
        db, page_no=page_no, on_page=on_page, default_page_size=settings.default_page_size
    )


@router.get("/user/share", response_model=SharerListOut)
def list_sharers(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    page_no: Annotated[str | None, Query()] = None,
    on_page: Annotated[str | None, Query()] = None,
) -> SharerListOut:
    """Page through owners who share tracks, with their shared-track counts."""
    return users_service.list_sharers(
        db, page_no=page_no, on_page=on_page, default_page_size=settings.default_page_size
    )
