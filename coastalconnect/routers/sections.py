from fastapi import APIRouter, Depends, Request

from ..dependencies import require_section
from ..schemas.auth import User

router = APIRouter(tags=["sections"])

SECTIONS = (
    "/admin",
    "/vendor",
    "/dashboard",
    "/business",
    "/events",
    "/analytics",
    "/organizer-dashboard",
    "/profile",
)


def section_summary(request: Request, user: User = Depends(require_section)):
    return {
        "section": request.url.path,
        "role": user.role,
        "permissions": user.permissions,
    }


for _path in SECTIONS:
    router.add_api_route(_path, section_summary, methods=["GET"], name=_path.strip("/"))
