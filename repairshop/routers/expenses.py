from fastapi import APIRouter, HTTPException, Depends, status
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator
from sqlmodel import Session, select
from sqlalchemy.exc import SQLAlchemyError

from repairshop.database import get_session
from repairshop.models import Expense, to_naive_utc, utcnow
from repairshop.security import AuthContext, Authenticated, get_auth_context, require_tenant

router = APIRouter(prefix="/api/expenses", tags=["expenses"])


class ExpenseCreate(BaseModel):
    amount: float = Field(..., gt=0)
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    date: Optional[datetime] = None

    @field_validator("date")
    @classmethod
    def _naive(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)


@router.get("", response_model=List[Expense])
def list_expenses(session: Session = Depends(get_session), ctx: AuthContext = Depends(get_auth_context)):
    try:
        q = select(Expense).where(Expense.tenant_id == ctx.tenant_id).order_by(Expense.date.desc())
        return session.exec(q).all()
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")


@router.post("", response_model=Expense, status_code=status.HTTP_201_CREATED)
def create_expense(expense_in: ExpenseCreate, session: Session = Depends(get_session), user: Authenticated = Depends(require_tenant)):
    try:
        expense = Expense(
            tenant_id=user.tenant_id,
            amount=round(expense_in.amount, 2),
            description=expense_in.description,
            category=expense_in.category,
            date=expense_in.date or utcnow(),
        )
        session.add(expense)
        session.commit()
        session.refresh(expense)
        return expense
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")
