"""Table lookups, admin table management and QR links."""

import logging
import uuid
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import quote, unquote

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from serviceqr.core.config import settings
from serviceqr.core.responses import MutationResult, error_message
from serviceqr.models.restaurant import Restaurant, Table
from serviceqr.schemas.restaurant import TableLink, TableResponse
from serviceqr.services.restaurant_service import get_restaurant_by_slug

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TableLookup:
    """Result of resolving a guest URL. Both parts are None on any miss."""
    table: Optional[Table]
    restaurant: Optional[Restaurant]

    @property
    def found(self) -> bool:
        return self.table is not None and self.restaurant is not None


NOT_FOUND = TableLookup(table=None, restaurant=None)


def get_table_by_qr_code(db: Session, qr_code_id: str) -> TableLookup:
    """Resolve a printed QR token to its table and restaurant."""
    if not qr_code_id:
        return NOT_FOUND
    try:
        table = (
            db.query(Table)
            .options(joinedload(Table.restaurant))
            .filter(Table.qr_code_id == qr_code_id)
            .first()
        )
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Error looking up table by QR code '{qr_code_id}'")
        return NOT_FOUND
    if table is None:
        return NOT_FOUND
    return TableLookup(table=table, restaurant=table.restaurant)


def get_table_by_slug_and_number(db: Session, slug: str, table_number: str) -> TableLookup:
    """Resolve /<slug>/<table number>.

    The restaurant is looked up first and a miss stops there. The table
    number arrives URL-encoded ("Patio%201") and is decoded before matching.
    """
    restaurant = get_restaurant_by_slug(db, slug)
    if restaurant is None:
        return NOT_FOUND

    decoded = unquote(table_number or "")
    try:
        table = db.query(Table).filter(
            Table.restaurant_id == restaurant.id,
            Table.table_number == decoded,
        ).first()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Error looking up table '{decoded}' of '{slug}'")
        return NOT_FOUND
    if table is None:
        return NOT_FOUND
    return TableLookup(table=table, restaurant=restaurant)


def get_tables_by_restaurant_id(db: Session, restaurant_id: int) -> List[Table]:
    return (
        db.query(Table)
        .filter(Table.restaurant_id == restaurant_id)
        .order_by(Table.table_number.asc())
        .all()
    )


def generate_qr_code_id(slug: str) -> str:
    """Fresh opaque token for a new table."""
    return f"{slug}-table-{uuid.uuid4().hex[:12]}"


def table_url(slug: str, qr_code_id: str, base_url: Optional[str] = None) -> str:
    base = (base_url or settings.public_base_url).rstrip("/")
    return f"{base}/table/{quote(slug)}/{quote(qr_code_id)}"


def table_links(restaurant: Restaurant, tables: List[Table], base_url: Optional[str] = None) -> List[TableLink]:
    """Guest URLs for every table, in the order given."""
    return [
        TableLink(
            table_number=t.table_number,
            qr_code_id=t.qr_code_id,
            url=table_url(restaurant.slug, t.qr_code_id, base_url),
        )
        for t in tables
    ]


def _write_failed(db: Session, e: Exception, action: str) -> MutationResult:
    db.rollback()
    if isinstance(e, IntegrityError):
        logger.warning(f"Table {action} rejected: {error_message(e)}")
        return MutationResult.fail("A table with this number or QR code already exists")
    logger.exception(f"Error during table {action}")
    return MutationResult.fail(error_message(e))


def create_table(db: Session, restaurant_id: int, table_number: str, qr_code_id: str) -> MutationResult:
    try:
        table = Table(
            restaurant_id=restaurant_id,
            table_number=table_number,
            qr_code_id=qr_code_id,
        )
    except ValueError as e:
        return MutationResult.fail(str(e))

    try:
        db.add(table)
        db.commit()
        db.refresh(table)
    except SQLAlchemyError as e:
        return _write_failed(db, e, "create")

    logger.info(f"Table '{table.table_number}' created for restaurant {restaurant_id}")
    return MutationResult.ok(TableResponse.model_validate(table).model_dump())


def update_table(db: Session, table_id: int, table_number: str, qr_code_id: str) -> MutationResult:
    try:
        table = db.query(Table).filter(Table.id == table_id).first()
        if table is None:
            return MutationResult.fail("Table not found")
        table.table_number = table_number
        table.qr_code_id = qr_code_id
        db.commit()
        db.refresh(table)
    except ValueError as e:
        db.rollback()
        return MutationResult.fail(str(e))
    except SQLAlchemyError as e:
        return _write_failed(db, e, "update")

    return MutationResult.ok(TableResponse.model_validate(table).model_dump())


def delete_table(db: Session, table_id: int) -> MutationResult:
    try:
        table = db.query(Table).filter(Table.id == table_id).first()
        if table is None:
            return MutationResult.fail("Table not found")
        db.delete(table)
        db.commit()
    except SQLAlchemyError as e:
        return _write_failed(db, e, "delete")

    logger.info(f"Table {table_id} deleted")
    return MutationResult.ok()
