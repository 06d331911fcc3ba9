from fastapi import APIRouter

from brodesk.api.routes.analysis import router as analysis_router
from brodesk.api.routes.analytics import router as analytics_router
from brodesk.api.routes.attachments import router as attachment_router
from brodesk.api.routes.board import router as board_router
from brodesk.api.routes.comments import router as comment_router
from brodesk.api.routes.health import router as health_router
from brodesk.api.routes.reference import router as reference_router
from brodesk.api.routes.tickets import router as ticket_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(ticket_router, tags=["tickets"])
api_router.include_router(comment_router, tags=["comments"])
api_router.include_router(attachment_router, tags=["attachments"])
api_router.include_router(reference_router, tags=["reference"])
api_router.include_router(analytics_router, tags=["analytics"])
api_router.include_router(analysis_router, tags=["analysis"])
api_router.include_router(board_router, tags=["board"])
