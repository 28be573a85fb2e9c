"""
API v1 Router - CoverOps
"""
from fastapi import APIRouter

from app.api.v1.endpoints import orders, po_validation, print_queue
from app.api.v1.endpoints.admin import router as admin_router

router = APIRouter()

# Print queue
router.include_router(print_queue.router)

# Order approval
router.include_router(orders.router)

# PO duplicate validation
router.include_router(po_validation.router)

# Admin: print queue maintenance
router.include_router(admin_router, prefix="/admin")
