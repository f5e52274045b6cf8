import logging

from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from splitease.config import config
from splitease.db import init_db
from splitease.auth import router as auth_router
from splitease.routes.group import router as group_router
from splitease.routes.expense import router as expense_router

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = FastAPI(title="SplitEase")

app.add_middleware(SessionMiddleware, secret_key=config.SECRET_KEY, session_cookie=config.SESSION_COOKIE_NAME)

app.include_router(auth_router)
app.include_router(group_router)
app.include_router(expense_router)


@app.on_event("startup")
def on_startup():
    init_db()
