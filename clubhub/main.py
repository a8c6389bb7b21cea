"""Club Hub FastAPI application."""
# Load .env before any app code that might read config
from dotenv import load_dotenv
from pathlib import Path
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from clubhub.config import get_settings
from clubhub.database import Base, SessionLocal, engine
from clubhub.errors import register_exception_handlers
# Import models so Base.metadata has all tables before create_all (schema source of truth)
from clubhub import models  # noqa: F401
from clubhub.routers import admin, announcements, auth, clubs, profile, registrations, social
from clubhub.seed import seed_clubs
from clubhub.services.mailer import get_mailer
from clubhub.services.uploads import URL_PREFIX, uploads_path

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger("clubhub")

app = FastAPI(title=settings.app_name, debug=settings.debug)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.frontend_origin.split(",") if o.strip()] or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)

app.include_router(auth.router)
app.include_router(profile.router)
app.include_router(clubs.router)
app.include_router(announcements.router)
app.include_router(registrations.router)
app.include_router(social.router)
app.include_router(admin.router)

app.mount(URL_PREFIX, StaticFiles(directory=str(uploads_path())), name="uploads")


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_clubs(db)
    finally:
        db.close()


@app.on_event("startup")
def startup():
    mailer = get_mailer()
    if mailer.configured:
        logger.info("Mailgun configured: domain=%s from=%s", settings.mailgun_domain, settings.mailgun_from_email)
    else:
        logger.warning(
            "Mailgun not configured; verification emails will fail%s",
            " (DEV_FALLBACK returns codes in responses)" if settings.dev_fallback else "",
        )
    if not settings.coordinators:
        logger.warning("COORDINATOR_EMAILS is empty; nobody can approve club admin requests")
    try:
        init_db()
    except Exception as e:
        # Not fatal: the engine reconnects on the next request
        logger.warning("Database startup failed (tables/seed skipped). Check DATABASE_URL and network. Error: %s", e)


@app.on_event("shutdown")
def shutdown():
    get_mailer().close()


@app.get("/")
def root():
    return {"app": settings.app_name, "status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}
