from fastapi import APIRouter

from api.routes.auth import router as auth_router
from api.routes.employees import router as employees_router
from api.routes.setup import router as setup_router

router = APIRouter()

router.include_router(setup_router)
router.include_router(auth_router)
router.include_router(employees_router)
