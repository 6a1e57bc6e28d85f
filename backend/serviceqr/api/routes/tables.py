"""Table routes: guest URL resolution and admin table management."""

from typing import List

from fastapi import APIRouter, HTTPException

from serviceqr.api.routes.restaurants import page_context
from serviceqr.core.responses import MutationResult, mutation_response
from serviceqr.db.session import DbSession
from serviceqr.schemas.restaurant import TableCreate, TableLink, TableResponse, TableUpdate
from serviceqr.services.restaurant_service import get_restaurant_by_slug
from serviceqr.services import table_service

router = APIRouter()


def _lookup_context(lookup: table_service.TableLookup) -> dict:
    if not lookup.found:
        raise HTTPException(status_code=404, detail="Table not found")
    return page_context(lookup.restaurant, table=TableResponse.model_validate(lookup.table).model_dump())


@router.get("/tables/qr/{qr_code_id}")
def get_table_by_qr(qr_code_id: str, db: DbSession):
    """Guest page context for a scanned QR token."""
    return _lookup_context(table_service.get_table_by_qr_code(db, qr_code_id))


@router.get("/restaurants/{slug}/tables/{table_number}")
def get_table_by_number(slug: str, table_number: str, db: DbSession):
    """Guest page context for /<slug>/<table number>."""
    return _lookup_context(table_service.get_table_by_slug_and_number(db, slug, table_number))


@router.get("/restaurants/{slug}/tables", response_model=List[TableResponse])
def list_tables(slug: str, db: DbSession):
    restaurant = get_restaurant_by_slug(db, slug)
    if restaurant is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return table_service.get_tables_by_restaurant_id(db, restaurant.id)


@router.get("/restaurants/{slug}/tables-links", response_model=List[TableLink])
def list_table_links(slug: str, db: DbSession):
    """Guest URL for every table, ready to be encoded as QR codes."""
    restaurant = get_restaurant_by_slug(db, slug)
    if restaurant is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    tables = table_service.get_tables_by_restaurant_id(db, restaurant.id)
    return table_service.table_links(restaurant, tables)


@router.post("/restaurants/{slug}/tables")
def create_table(slug: str, payload: TableCreate, db: DbSession):
    restaurant = get_restaurant_by_slug(db, slug)
    if restaurant is None:
        return mutation_response(MutationResult.fail("Restaurant not found"))
    qr_code_id = payload.qr_code_id or table_service.generate_qr_code_id(restaurant.slug)
    return mutation_response(
        table_service.create_table(db, restaurant.id, payload.table_number, qr_code_id)
    )


@router.put("/tables/{table_id}")
def update_table(table_id: int, payload: TableUpdate, db: DbSession):
    return mutation_response(
        table_service.update_table(db, table_id, payload.table_number, payload.qr_code_id)
    )


@router.delete("/tables/{table_id}")
def delete_table(table_id: int, db: DbSession):
    return mutation_response(table_service.delete_table(db, table_id))
