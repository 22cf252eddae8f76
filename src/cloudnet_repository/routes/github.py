"""GitHub webhook endpoint."""

import logging

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request

from cloudnet_repository.errors import InvalidSignatureError
from cloudnet_repository.services.webhook import MalformedPayloadError, WebhookIngress

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhooks"])

ACKNOWLEDGEMENT = {"received": True}


def get_ingress(request: Request) -> WebhookIngress:
    return request.app.state.ingress


@router.post("/github", status_code=202)
async def github_webhook(request: Request, background_tasks: BackgroundTasks) -> dict[str, bool]:
    """Receive a GitHub delivery.

    The acknowledgement is identical whether or not the event matched a
    configured parent.
    """
    ingress = get_ingress(request)
    body = await request.body()
    signature = request.headers.get("X-Hub-Signature-256") or request.headers.get("X-Hub-Signature")
    try:
        ingress.verify(body, signature)
    except InvalidSignatureError as err:
        logger.warning("Rejected webhook from %s: %s", request.client.host if request.client else "?", err)
        raise HTTPException(status_code=401, detail="Invalid signature") from err

    try:
        dispatch = ingress.accept(request.headers.get("X-GitHub-Event"), body)
    except MalformedPayloadError as err:
        raise HTTPException(status_code=400, detail="Malformed payload") from err

    if dispatch is not None:
        background_tasks.add_task(ingress.dispatch, dispatch)
    return ACKNOWLEDGEMENT
