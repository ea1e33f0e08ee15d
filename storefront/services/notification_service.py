# storefront/services/notification_service.py
from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Serwis do wysylania powiadomien.
    Uzywa Celery do asynchronicznego przetwarzania.
    """

    @staticmethod
    def send_order_confirmation(session_id: str, total_cents: int, item_count: int):
        """
        Wysyla potwierdzenie zlozenia zamowienia.
        """
        send_order_confirmation_task.delay(session_id, total_cents, item_count)


@celery_app.task(name="storefront.services.notification_service.send_order_confirmation_task")
def send_order_confirmation_task(session_id: str, total_cents: int, item_count: int):
    """
    Celery task - dostarczanie maili jest poza zakresem, tylko logujemy.
    """
    logger.info(
        f"[NOTIFICATION] Session {session_id}: order with {item_count} items "
        f"({total_cents} cents) confirmed"
    )
    return {"session_id": session_id, "total_cents": total_cents, "status": "sent"}
