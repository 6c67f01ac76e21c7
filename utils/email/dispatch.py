"""Fire-and-forget delivery of notification emails."""

from typing import Callable

from fastapi import BackgroundTasks

from utils.monitoring import get_logger

logger = get_logger(__name__)


def send_logged(send: Callable[..., bool], **kwargs) -> bool:
    """
    Run ``send`` and log the outcome.

    Delivery problems never reach the caller: a failed send is logged and
    reported as False.
    """
    name = getattr(send, "__name__", "send_email")
    try:
        delivered = send(**kwargs)
    except Exception as e:
        logger.error(f"Notification {name} raised", error=e, to_email=kwargs.get("to_email"))
        return False

    if not delivered:
        logger.warning(f"Notification {name} was not delivered", to_email=kwargs.get("to_email"))
    return delivered


def dispatch_email(background_tasks: BackgroundTasks, send: Callable[..., bool], **kwargs) -> None:
    """Queue ``send(**kwargs)`` to run after the response has been sent."""
    background_tasks.add_task(send_logged, send, **kwargs)
