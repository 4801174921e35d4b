import asyncio
from coastalconnect.backends import build_auth_backend
from coastalconnect.config import get_settings
from coastalconnect.session import SessionStore
from coastalconnect.storage import FileStorage


async def check_session():
    settings = get_settings()
    print(f"Auth backend: {settings.AUTH_BACKEND}")
    print(f"API base URL: {settings.API_BASE_URL}")
    print(f"Storage file: {settings.STORAGE_PATH}")

    storage = FileStorage(settings.STORAGE_PATH)
    print(f"Token stored: {storage.get_item(settings.AUTH_TOKEN_KEY) is not None}")

    backend = build_auth_backend(settings)
    store = SessionStore(backend, storage, settings)
    try:
        print("Restoring session...")
        result = await store.restore()
    finally:
        await backend.aclose()

    if result.ok:
        print(f"Signed in as {result.user.email} ({result.user.role})")
        print(f"Permissions: {', '.join(result.user.permissions)}")
    else:
        print(f"Not signed in: {result.error.value}")


if __name__ == "__main__":
    asyncio.run(check_session())
