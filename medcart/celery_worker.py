# medcart/celery_worker.py
from celery import Celery

from medcart.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "medcart",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# explicit import so the worker registers the tasks
celery_app.conf.imports = (
    "medcart.services.checkout_service",
)

celery_app.conf.timezone = "UTC"
