import logging
from fastapi import APIRouter, Depends, Request, HTTPException
from fastapi.responses import RedirectResponse
from authlib.integrations.starlette_client import OAuth
from sqlmodel import Session, select

from splitease.config import config
from splitease.db import get_session
from splitease.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter()
oauth = OAuth()
oauth.register(
    name='google',
    client_id=config.GOOGLE_CLIENT_ID,
    client_secret=config.GOOGLE_CLIENT_SECRET,
    server_metadata_url='https://accounts.google.com/.well-known/openid-configuration',
    client_kwargs={'scope': 'openid email profile'},
)


def upsert_user(s: Session, google_id, email, name) -> User:
    """Find the user by Google id, then email; create or refresh the row."""
    user = None
    if google_id:
        user = s.exec(select(User).where(User.google_id == google_id)).first()
    if not user and email:
        user = s.exec(select(User).where(User.email == email)).first()
    if not user:
        user = User(name=name, email=email, google_id=google_id)
    else:
        if google_id:
            user.google_id = google_id
        if email:
            user.email = email
        user.name = name
    s.add(user)
    s.commit()
    s.refresh(user)
    return user


async def _fetch_userinfo(request: Request, token) -> dict:
    if token and token.get("userinfo"):
        return token["userinfo"]
    if token and "id_token" in token:
        try:
            return await oauth.google.parse_id_token(request, token)
        except KeyError:
            logger.debug("id_token could not be parsed, asking the userinfo endpoint")
    resp = await oauth.google.get("userinfo", token=token)
    return resp.json()


@router.get("/login")
async def login(request: Request):
    redirect_uri = request.url_for('auth_callback')
    return await oauth.google.authorize_redirect(request, str(redirect_uri))


@router.get("/auth", name="auth_callback")
async def auth(request: Request, s: Session = Depends(get_session)):
    try:
        token = await oauth.google.authorize_access_token(request)
        userinfo = await _fetch_userinfo(request, token)
    except Exception as e:
        logger.exception("OAuth callback failed: %s", e)
        raise HTTPException(status_code=500, detail="Authentication failed; check server logs")

    if not userinfo or not isinstance(userinfo, dict):
        raise HTTPException(status_code=500, detail="Authentication failed: invalid userinfo")

    google_id = userinfo.get("sub") or userinfo.get("id")
    email = userinfo.get("email")
    name = userinfo.get("name") or email or "GoogleUser"

    user = upsert_user(s, google_id, email, name)
    logger.info("user %s signed in", user.id)
    request.session['user'] = {"id": user.id, "name": user.name, "email": user.email}
    return RedirectResponse(url="/me")


@router.get("/logout")
def logout(request: Request):
    request.session.pop('user', None)
    return {"status": "ok"}


@router.get("/me")
def me(request: Request):
    user = request.session.get("user")
    if not user:
        return {"authenticated": False}
    return {"authenticated": True, "user": user}
