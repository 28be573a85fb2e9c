"""
Admin endpoints - requires Admin or Super Admin
"""
from fastapi import APIRouter

from . import print_queue_maintenance

router = APIRouter()

# Print queue maintenance and diagnostics
router.include_router(print_queue_maintenance.router)
