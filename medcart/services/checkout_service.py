# medcart/services/checkout_service.py
import uuid

from medcart.celery_worker import celery_app
from medcart.domain.errors import CheckoutNotAllowedError
from medcart.services.cart_service import CartService
from medcart.utils.logging import get_logger

logger = get_logger(__name__)


class CheckoutService:
    """
    Hands a confirmed cart to the checkout/payment side.
    Uses Celery so the request path never waits on the payment collaborator.
    """

    def submit(self, cart: CartService) -> str:
        if not cart.can_checkout():
            raise CheckoutNotAllowedError(
                "Cart is empty or a prescription item is missing prescriber/pharmacy"
            )

        summary = cart.get_summary()
        handoff_id = f"chk_{uuid.uuid4().hex}"
        payload = {
            "handoff_id": handoff_id,
            "session_id": cart.session_id,
            "cart_version": cart.state.version,
            "items": [i.model_dump(mode="json") for i in cart.state.items],
            "summary": summary.model_dump(mode="json"),
        }

        logger.info(
            f"Checkout {handoff_id} for cart {cart.session_id}: "
            f"{len(payload['items'])} items, total {summary.final_total}"
        )
        submit_checkout_task.delay(payload)
        return handoff_id


@celery_app.task(name="medcart.services.checkout_service.submit_checkout_task")
def submit_checkout_task(payload: dict):
    """
    Celery task - the payment collaborator picks the order up from here.
    Payment capture itself is not done by this service.
    """
    logger.info(
        f"[CHECKOUT] {payload['handoff_id']} session {payload['session_id']} "
        f"final total {payload['summary']['final_total']}"
    )
    return {"handoff_id": payload["handoff_id"], "status": "queued"}
