from fastapi import APIRouter, HTTPException, Depends
from typing import List, Optional
import logging
from pydantic import BaseModel, Field, field_validator
from sqlmodel import Session
from sqlalchemy.exc import SQLAlchemyError

from repairshop.database import get_session, tenant_settings
from repairshop.models import MAX_CHECKLIST_OPTIONS, PrintFormat, Settings, utcnow
from repairshop.security import AuthContext, Authenticated, get_auth_context, require_tenant

logger = logging.getLogger("repairshop.settings")

router = APIRouter(prefix="/api/settings", tags=["settings"])


class SettingsIn(BaseModel):
    shop_name: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    whatsapp: Optional[str] = None
    landline: Optional[str] = None
    logo_url: Optional[str] = None
    card_surcharge: Optional[float] = Field(None, ge=0)
    transfer_surcharge: Optional[float] = Field(None, ge=0)
    checklist_options: Optional[List[str]] = Field(None, max_length=MAX_CHECKLIST_OPTIONS)
    receipt_disclaimer: Optional[str] = None
    ticket_footer: Optional[str] = None
    print_format: Optional[PrintFormat] = None

    @field_validator("checklist_options")
    @classmethod
    def _clean_options(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        return [o.strip() for o in v if o and o.strip()]


@router.get("", response_model=Settings)
def get_settings(session: Session = Depends(get_session), ctx: AuthContext = Depends(get_auth_context)):
    try:
        return tenant_settings(session, ctx.tenant_id)
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")


@router.post("", response_model=Settings)
def save_settings(settings_in: SettingsIn, session: Session = Depends(get_session), user: Authenticated = Depends(require_tenant)):
    try:
        row = tenant_settings(session, user.tenant_id)
        for field, value in settings_in.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(row, field, value)
        row.updated_at = utcnow()
        session.add(row)
        session.commit()
        session.refresh(row)
        logger.info("Settings saved for tenant=%s", user.tenant_id)
        return row
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")
