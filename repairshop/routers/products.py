from fastapi import APIRouter, HTTPException, Depends, status, Query
from typing import List, Optional
from pydantic import BaseModel, Field
from sqlmodel import select, Session
from sqlalchemy.exc import SQLAlchemyError

from repairshop.database import get_session, get_owned
from repairshop.models import Product
from repairshop.security import AuthContext, Authenticated, get_auth_context, require_tenant

router = APIRouter(prefix="/api/products", tags=["products"])


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    sku: str = ""
    category: str = "General"
    cost: float = Field(0.0, ge=0)
    price: float = Field(..., ge=0)
    quantity: int = Field(0, ge=0)
    low_stock_threshold: int = Field(5, ge=0)
    description: str = ""


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    sku: Optional[str] = None
    category: Optional[str] = None
    cost: Optional[float] = Field(None, ge=0)
    price: Optional[float] = Field(None, ge=0)
    quantity: Optional[int] = Field(None, ge=0)
    low_stock_threshold: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None


class RestockIn(BaseModel):
    quantity: int = Field(..., gt=0)


@router.get("", response_model=List[Product])
def list_products(
    low_stock: bool = Query(False),
    session: Session = Depends(get_session),
    ctx: AuthContext = Depends(get_auth_context),
):
    try:
        q = select(Product).where(Product.tenant_id == ctx.tenant_id).order_by(Product.name)
        if low_stock:
            q = q.where(Product.quantity <= Product.low_stock_threshold)
        return session.exec(q).all()
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")


@router.get("/{product_id}", response_model=Product)
def get_product(product_id: int, session: Session = Depends(get_session), ctx: AuthContext = Depends(get_auth_context)):
    try:
        product = get_owned(session, Product, product_id, ctx.tenant_id)
        if not product:
            raise HTTPException(status_code=404, detail="Producto no encontrado")
        return product
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")


@router.post("", response_model=Product, status_code=status.HTTP_201_CREATED)
def create_product(product_in: ProductCreate, session: Session = Depends(get_session), user: Authenticated = Depends(require_tenant)):
    try:
        product = Product(tenant_id=user.tenant_id, **product_in.model_dump())
        session.add(product)
        session.commit()
        session.refresh(product)
        return product
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")


@router.patch("/{product_id}", response_model=Product)
def update_product(
    product_id: int,
    product_in: ProductUpdate,
    session: Session = Depends(get_session),
    user: Authenticated = Depends(require_tenant),
):
    try:
        product = get_owned(session, Product, product_id, user.tenant_id)
        if not product:
            raise HTTPException(status_code=404, detail="Producto no encontrado")
        for field, value in product_in.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(product, field, value)
        session.add(product)
        session.commit()
        session.refresh(product)
        return product
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")


@router.post("/{product_id}/restock", response_model=Product)
def restock_product(
    product_id: int,
    restock_in: RestockIn,
    session: Session = Depends(get_session),
    user: Authenticated = Depends(require_tenant),
):
    try:
        product = get_owned(session, Product, product_id, user.tenant_id)
        if not product:
            raise HTTPException(status_code=404, detail="Producto no encontrado")
        product.quantity = product.quantity + restock_in.quantity
        session.add(product)
        session.commit()
        session.refresh(product)
        return product
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(product_id: int, session: Session = Depends(get_session), user: Authenticated = Depends(require_tenant)):
    try:
        product = get_owned(session, Product, product_id, user.tenant_id)
        if not product:
            raise HTTPException(status_code=404, detail="Producto no encontrado")
        session.delete(product)
        session.commit()
        return None
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")
