import logging
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from koko_api.controllers.dependencies import get_webhook_reconciler
from koko_api.schema import BunnyWebhookPayload
from koko_api.services.webhook_service import WebhookReconciler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


@router.post("/bunny")
async def bunny_webhook(request: Request, reconciler: WebhookReconciler = Depends(get_webhook_reconciler)):
    try:
        payload = BunnyWebhookPayload.model_validate(await request.json())
    except (ValueError, ValidationError) as e:
        logger.warning(f"Invalid Bunny webhook payload: {e}")
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Invalid payload"})

    try:
        result = await reconciler.handle(payload)
    except Exception as e:
        logger.error(f"Bunny webhook processing error: {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )

    if result.success:
        return JSONResponse(status_code=status.HTTP_200_OK, content={"message": result.message})
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": result.message})
