"""AdOrchestrator — Brand Routes.

Brands are created by hand or extracted from a brand-guidelines PDF.
"""

from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel
from sqlmodel import Session, select

from adorchestrator.ai.brand_extraction import (
    BrandExtractionError,
    ExtractedBrandData,
    ExtractedColor,
    ExtractedFont,
    ExtractedTone,
    extract_brand_from_text,
)
from adorchestrator.ai.providers import select_provider
from adorchestrator.api.product_routes import delete_product_rows
from adorchestrator.core.auth import require_user
from adorchestrator.core.logging import get_logger
from adorchestrator.core.validation import parse_uuid
from adorchestrator.database import get_session
from adorchestrator.models.brand_models import (
    Brand,
    BrandColor,
    BrandFont,
    BrandTone,
    BrandWithRelations,
    Product,
)
from adorchestrator.models.conversion_models import CAPIConfig
from adorchestrator.services.pdf_extraction import PDFExtractionError, extract_text_from_pdf
from adorchestrator.services.usage import create_timer, track_api_usage

logger = get_logger("api.brands")

router = APIRouter(
    prefix="/api/brands",
    tags=["Brands"],
    dependencies=[Depends(require_user)],
)


class BrandCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class BrandUpdate(BaseModel):
    """Brand fields plus child lists; a given list replaces the stored one."""

    name: Optional[str] = None
    description: Optional[str] = None
    source_pdf_url: Optional[str] = None
    colors: Optional[List[ExtractedColor]] = None
    fonts: Optional[List[ExtractedFont]] = None
    tone: Optional[List[ExtractedTone]] = None

    model_config = {"extra": "ignore"}


# ── Helpers ──


def _with_relations(session: Session, brand: Brand) -> BrandWithRelations:
    def children(model):
        return session.exec(select(model).where(model.brand_id == brand.id)).all()

    return BrandWithRelations(
        **brand.model_dump(),
        colors=children(BrandColor),
        fonts=children(BrandFont),
        tone=children(BrandTone),
    )


def _get_brand_or_404(session: Session, brand_id: str) -> Brand:
    brand = session.get(Brand, parse_uuid(brand_id, "brand ID"))
    if not brand:
        raise HTTPException(status_code=404, detail="Brand not found")
    return brand


def save_extracted_brand(
    session: Session, data: ExtractedBrandData, source_pdf_url: Optional[str] = None
) -> Brand:
    """Persist an extracted brand with its colors, fonts and tone."""
    brand = Brand(
        name=data.name or "Untitled Brand",
        description=data.description,
        source_pdf_url=source_pdf_url,
    )
    session.add(brand)
    session.flush()

    for c in data.colors:
        session.add(BrandColor(brand_id=brand.id, **c.model_dump()))
    for f in data.fonts:
        session.add(BrandFont(brand_id=brand.id, **f.model_dump()))
    for t in data.tone:
        session.add(BrandTone(brand_id=brand.id, **t.model_dump()))

    session.commit()
    session.refresh(brand)
    return brand


# ── Endpoints ──


@router.get("", response_model=List[Brand])
async def list_brands(session: Session = Depends(get_session)):
    return session.exec(select(Brand).order_by(Brand.created_at.desc())).all()  # type: ignore


@router.post("", status_code=201, response_model=Brand)
async def create_brand(body: BrandCreate, session: Session = Depends(get_session)):
    if not body.name or not body.name.strip():
        raise HTTPException(status_code=400, detail="name is required")

    brand = Brand(name=body.name.strip(), description=body.description)
    session.add(brand)
    session.commit()
    session.refresh(brand)
    return brand


@router.post("/upload", status_code=201, response_model=BrandWithRelations)
async def upload_brand_guidelines(
    file: Optional[UploadFile] = File(None),
    session: Session = Depends(get_session),
):
    """Extract a brand from an uploaded guidelines PDF and save it."""
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")
    if file.content_type != "application/pdf" and not file.filename.lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail="File must be a PDF")

    try:
        pdf_text = extract_text_from_pdf(await file.read())
    except PDFExtractionError as e:
        logger.error(str(e))
        raise HTTPException(status_code=500, detail="Failed to extract text from PDF")
    if not pdf_text.strip():
        raise HTTPException(status_code=500, detail="Failed to extract text from PDF")

    provider_name, provider = select_provider("auto")
    elapsed = create_timer()
    try:
        data, result = await extract_brand_from_text(provider, pdf_text)
    except BrandExtractionError as e:
        track_api_usage(
            session,
            api_provider=provider_name,
            api_endpoint="brand_extraction",
            model=provider.model,
            duration_ms=elapsed(),
            success=False,
            error_message=str(e),
        )
        raise HTTPException(
            status_code=500, detail="Failed to extract brand data from PDF content"
        )

    track_api_usage(
        session,
        api_provider=provider_name,
        api_endpoint="brand_extraction",
        model=result.model,
        input_tokens=result.input_tokens,
        output_tokens=result.output_tokens,
        duration_ms=elapsed(),
    )

    brand = save_extracted_brand(session, data)
    logger.info(
        f"Brand extracted from {file.filename}: {brand.name}",
        extra={"brand_id": str(brand.id), "provider": provider_name},
    )
    return _with_relations(session, brand)


@router.get("/{brand_id}", response_model=BrandWithRelations)
async def get_brand(brand_id: str, session: Session = Depends(get_session)):
    return _with_relations(session, _get_brand_or_404(session, brand_id))


@router.patch("/{brand_id}", response_model=BrandWithRelations)
async def update_brand(
    brand_id: str,
    body: BrandUpdate,
    session: Session = Depends(get_session),
):
    brand = _get_brand_or_404(session, brand_id)
    updates = body.model_dump(exclude_unset=True)
    if "name" in updates and not updates["name"]:
        raise HTTPException(status_code=400, detail="name is required")

    for field in ("name", "description", "source_pdf_url"):
        if field in updates:
            setattr(brand, field, updates[field])
    brand.updated_at = datetime.now(timezone.utc)
    session.add(brand)

    children = (("colors", BrandColor), ("fonts", BrandFont), ("tone", BrandTone))
    for field, model in children:
        if field not in updates:
            continue
        for row in session.exec(select(model).where(model.brand_id == brand.id)).all():
            session.delete(row)
        for item in updates[field] or []:
            session.add(model(brand_id=brand.id, **item))

    session.commit()
    session.refresh(brand)
    return _with_relations(session, brand)


@router.delete("/{brand_id}")
async def delete_brand(brand_id: str, session: Session = Depends(get_session)):
    """Delete a brand together with everything that references it."""
    brand = _get_brand_or_404(session, brand_id)
    for product in session.exec(select(Product).where(Product.brand_id == brand.id)).all():
        delete_product_rows(session, product)
    for model in (BrandColor, BrandFont, BrandTone, CAPIConfig):
        for row in session.exec(select(model).where(model.brand_id == brand.id)).all():
            session.delete(row)
    session.flush()
    session.delete(brand)
    session.commit()
    return {"success": True, "deleted_id": brand_id}
