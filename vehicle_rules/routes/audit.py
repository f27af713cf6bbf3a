from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas import AuditEntryOut
from ..services.audit import recent_entries


router = APIRouter(prefix="/api", tags=["audit"])

@router.get("/audit-log", response_model=List[AuditEntryOut])
def audit_log(db: Session = Depends(get_db), limit: int = Query(50, ge=1, le=500)):
    return recent_entries(db, limit=limit)
