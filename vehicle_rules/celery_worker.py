from celery import Celery
from pydantic import ValidationError

from vehicle_rules.config import settings
from vehicle_rules.database import session_scope
from vehicle_rules.models import AuditLog
from vehicle_rules.schemas import AuditEntry
from vehicle_rules.utils.logging import logger

REDIS_URL = settings.REDIS_URL

celery = Celery("vehicle_rules", broker=REDIS_URL, backend=REDIS_URL)

celery.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    broker_connection_retry_on_startup=True,
    worker_prefetch_multiplier=1,
    task_ignore_result=True,
)


# a malformed payload fails the same way on every attempt
@celery.task(name="record_audit_entry", autoretry_for=(Exception,), dont_autoretry_for=(ValidationError,),
             retry_backoff=True, max_retries=5)
def record_audit_entry(entry: dict):
    """Insert one audit row produced by AuditRecorder in celery mode."""
    parsed = AuditEntry.model_validate(entry)

    with session_scope() as db:
        row = AuditLog(**parsed.model_dump())
        db.add(row)
        db.commit()

    logger.info("Audit entry %s stored (rule_id=%s, success=%s)", row.id, parsed.rule_id, parsed.success)
    return {"ok": True, "id": row.id}
