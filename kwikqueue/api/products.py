"""Product (menu) management API endpoints"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
import structlog

from kwikqueue.api.auth import verify_company_access
from kwikqueue.api.deps import get_store
from kwikqueue.domain.errors import RecordNotFound
from kwikqueue.domain.status import ProductStatus
from kwikqueue.models.user import User
from kwikqueue.schemas.product import ProductCreate, ProductResponse, ProductUpdate
from kwikqueue.store.base import Record, Store
from kwikqueue.store.filters import eq

router = APIRouter()
logger = structlog.get_logger()


async def _company_product(store: Store, company_id: int, product_id: UUID) -> Record:
    record = await store.get_by_id("products", product_id)
    if record["company_id"] != company_id:
        raise RecordNotFound("products", product_id)
    return record


@router.get("", response_model=List[ProductResponse])
async def list_products(
    company_id: int,
    category: Optional[str] = None,
    status: Optional[ProductStatus] = None,
    current_user: User = Depends(verify_company_access),
    store: Store = Depends(get_store),
):
    filters = [eq("company_id", company_id)]
    if category:
        filters.append(eq("category", category))
    if status:
        filters.append(eq("status", status))
    return await store.get("products", filters, order_by="name")


@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(
    company_id: int,
    request: ProductCreate,
    current_user: User = Depends(verify_company_access),
    store: Store = Depends(get_store),
):
    record = await store.insert("products", {**request.model_dump(), "company_id": company_id})
    logger.info("Product created", company_id=company_id, product_id=str(record["id"]))
    return record


@router.patch("/{product_id}", response_model=ProductResponse)
async def update_product(
    company_id: int,
    product_id: UUID,
    request: ProductUpdate,
    current_user: User = Depends(verify_company_access),
    store: Store = Depends(get_store),
):
    """Edit a product; price changes never touch confirmed orders"""
    await _company_product(store, company_id, product_id)
    data = request.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(status_code=400, detail="Nothing to update")
    return await store.update("products", product_id, data)


@router.delete("/{product_id}", status_code=204)
async def delete_product(
    company_id: int,
    product_id: UUID,
    current_user: User = Depends(verify_company_access),
    store: Store = Depends(get_store),
):
    await _company_product(store, company_id, product_id)
    await store.delete("products", product_id)
    logger.info("Product deleted", company_id=company_id, product_id=str(product_id))
