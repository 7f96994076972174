"""AdOrchestrator — Product Routes."""

from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlmodel import Session, select

from adorchestrator.api.campaign_routes import delete_campaign_rows
from adorchestrator.core.auth import require_user
from adorchestrator.core.validation import parse_uuid
from adorchestrator.database import get_session
from adorchestrator.models.brand_models import Brand, Product
from adorchestrator.models.campaign_models import Campaign

router = APIRouter(
    prefix="/api/products",
    tags=["Products"],
    dependencies=[Depends(require_user)],
)


class ProductCreate(BaseModel):
    brand_id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    sku: Optional[str] = None


@router.get("", response_model=List[Product])
async def list_products(
    brand_id: Optional[str] = Query(None),
    session: Session = Depends(get_session),
):
    query = select(Product).order_by(Product.created_at.desc())  # type: ignore
    if brand_id:
        query = query.where(Product.brand_id == parse_uuid(brand_id, "brand_id"))
    return session.exec(query).all()


@router.post("", status_code=201, response_model=Product)
async def create_product(body: ProductCreate, session: Session = Depends(get_session)):
    if not body.brand_id or not body.name:
        raise HTTPException(status_code=400, detail="brand_id and name are required")

    brand_id = parse_uuid(body.brand_id, "brand_id")
    if not session.get(Brand, brand_id):
        raise HTTPException(status_code=404, detail="Brand not found")

    product = Product(
        brand_id=brand_id,
        name=body.name,
        description=body.description,
        sku=body.sku,
    )
    session.add(product)
    session.commit()
    session.refresh(product)
    return product


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    sku: Optional[str] = None

    model_config = {"extra": "ignore"}


def _get_product_or_404(session: Session, product_id: str) -> Product:
    product = session.get(Product, parse_uuid(product_id, "product ID"))
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


def delete_product_rows(session: Session, product: Product) -> None:
    """Delete a product with its campaigns. Caller commits."""
    for campaign in session.exec(
        select(Campaign).where(Campaign.product_id == product.id)
    ).all():
        delete_campaign_rows(session, campaign)
    session.flush()
    session.delete(product)


@router.get("/{product_id}", response_model=Product)
async def get_product(product_id: str, session: Session = Depends(get_session)):
    return _get_product_or_404(session, product_id)


@router.patch("/{product_id}", response_model=Product)
async def update_product(
    product_id: str,
    body: ProductUpdate,
    session: Session = Depends(get_session),
):
    product = _get_product_or_404(session, product_id)
    updates = body.model_dump(exclude_unset=True)
    if "name" in updates and not updates["name"]:
        raise HTTPException(status_code=400, detail="Name is required")

    for field, value in updates.items():
        setattr(product, field, value)
    product.updated_at = datetime.now(timezone.utc)

    session.add(product)
    session.commit()
    session.refresh(product)
    return product


@router.delete("/{product_id}")
async def delete_product(product_id: str, session: Session = Depends(get_session)):
    product = _get_product_or_404(session, product_id)
    delete_product_rows(session, product)
    session.commit()
    return {"success": True, "deleted_id": product_id}
