import asyncio
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .backends import AuthBackend, build_auth_backend
from .config import Settings, get_settings
from .routers import auth, bookings, sections
from .session import SessionStore
from .storage import FileStorage, LocalStorage
from .utils.logging import configure_logging


def create_app(
    settings: Settings | None = None,
    backend: AuthBackend | None = None,
    storage: LocalStorage | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        auth_backend = backend or build_auth_backend(settings)
        store = SessionStore(auth_backend, storage or FileStorage(settings.STORAGE_PATH), settings)
        app.state.auth_backend = auth_backend
        app.state.session_store = store
        # Restore in the background; guards answer 503 until it settles.
        app.state.restore_task = asyncio.create_task(store.restore())
        try:
            yield
        finally:
            restore_task = app.state.restore_task
            if not restore_task.done():
                restore_task.cancel()
                with suppress(asyncio.CancelledError):
                    await restore_task
            await auth_backend.aclose()

    app = FastAPI(title=settings.APP_NAME, redirect_slashes=False, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth.router)
    app.include_router(bookings.router)
    app.include_router(sections.router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()
