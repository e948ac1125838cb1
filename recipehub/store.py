"""Identity-scoped access to the recipe tables.

``RecipeStore`` is built once per request from a database session and the
caller's verified identity (if any) and handed explicitly to the workflow
and query functions. Every operation is its own unit of work: it commits on
success and rolls back on failure, mirroring a row-oriented REST store with
no multi-statement transactions.

Errors are translated at this boundary:
- ``NoResultFound`` -> ``NotFoundError``
- any other ``SQLAlchemyError`` -> ``UpstreamError``
- any other exception raised mid-operation -> ``UpstreamError``
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from typing import Any, Optional

from sqlalchemy import Select, text
from sqlalchemy.exc import NoResultFound, SQLAlchemyError
from sqlalchemy.orm import Session

from .auth import Identity
from .errors import ApiError, NotFoundError, UpstreamError

logger = logging.getLogger("recipehub.store")

ANON_ROLE = "anon"
AUTHENTICATED_ROLE = "authenticated"


class RecipeStore:
    def __init__(self, session: Session, identity: Optional[Identity] = None):
        self.session = session
        self.identity = identity

    @property
    def owner_id(self) -> Optional[str]:
        return self.identity.id if self.identity else None

    @property
    def role(self) -> str:
        if self.identity is None:
            return ANON_ROLE
        return self.identity.claims.get("role") or AUTHENTICATED_ROLE

    def _apply_claims(self) -> None:
        """Run the transaction as the caller so Postgres row-level security applies.

        Both settings are transaction-local and vanish at commit or rollback.
        """
        if self.session.get_bind().dialect.name != "postgresql":
            return
        claims = self.identity.claims if self.identity else {"role": ANON_ROLE}
        self.session.execute(
            text(
                "select set_config('request.jwt.claims', :claims, true),"
                " set_config('role', :role, true)"
            ),
            {"claims": json.dumps(claims), "role": self.role},
        )

    @contextmanager
    def _unit_of_work(self, action: str, not_found: str = "Resource not found"):
        try:
            self._apply_claims()
            yield
            self.session.commit()
        except NoResultFound as e:
            self.session.rollback()
            raise NotFoundError(not_found) from e
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Store failed to {action}: {e}")
            raise UpstreamError(f"Failed to {action}", detail=str(e)) from e
        except ApiError:
            self.session.rollback()
            raise
        except Exception as e:
            # Driver errors outside the SQLAlchemy hierarchy, e.g. OverflowError
            self.session.rollback()
            logger.error(f"Store failed to {action}: {e!r}")
            raise UpstreamError(f"Failed to {action}", detail=repr(e)) from e

    # --- Reads ---

    def select_one(self, model, *, not_found: str = "Resource not found", **filters):
        with self._unit_of_work(f"read {model.__tablename__}", not_found):
            return self.session.query(model).filter_by(**filters).one()

    def select_ordered(self, model, *order_by) -> list:
        with self._unit_of_work(f"read {model.__tablename__}"):
            return self.session.query(model).order_by(*order_by).all()

    def fetch_one(self, stmt: Select, *, not_found: str = "Resource not found"):
        with self._unit_of_work("run query", not_found):
            return self.session.execute(stmt).unique().scalar_one()

    def fetch_rows(self, stmt: Select) -> list:
        with self._unit_of_work("run query"):
            return list(self.session.execute(stmt).all())

    def fetch_range(self, stmt: Select, count_stmt: Select, start: int, end: int) -> tuple[list, int]:
        """Rows ``start..end`` (inclusive, zero-based) plus the exact total count."""
        with self._unit_of_work("run query"):
            total = self.session.execute(count_stmt).scalar_one()
            rows = (
                self.session.execute(stmt.offset(start).limit(end - start + 1))
                .unique()
                .scalars()
                .all()
            )
        return list(rows), total

    # --- Writes ---

    def insert(self, model, rows: list[dict[str, Any]]) -> list:
        """Batch insert; returns the new objects with generated ids populated."""
        objects = [model(**row) for row in rows]
        with self._unit_of_work(f"insert into {model.__tablename__}"):
            self.session.add_all(objects)
            self.session.flush()
        return objects

    def update(self, model, values: dict[str, Any], **filters) -> int:
        with self._unit_of_work(f"update {model.__tablename__}"):
            return (
                self.session.query(model)
                .filter_by(**filters)
                .update(values)
            )

    def delete(self, model, **filters) -> int:
        """Delete matching rows; dependents go with them via ON DELETE CASCADE."""
        with self._unit_of_work(f"delete from {model.__tablename__}"):
            return (
                self.session.query(model)
                .filter_by(**filters)
                .delete()
            )

    def ping(self) -> bool:
        with self._unit_of_work("ping"):
            self.session.execute(text("SELECT 1"))
        return True
