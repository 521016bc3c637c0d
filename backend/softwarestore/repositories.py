"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate (categories,
programs). Repositories return SQLModel objects; writes run inside
`_write`, which commits on success and rolls back and raises
`PersistenceFailure` when the database refuses the change.
"""

from contextlib import contextmanager
from typing import List, Optional
from sqlmodel import Session, select
from sqlalchemy.exc import SQLAlchemyError
from . import models
from .errors import PersistenceFailure


@contextmanager
def _write(session: Session):
    """Scope a write: commit on success, roll back on database errors."""
    try:
        yield
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        raise PersistenceFailure(str(exc)) from exc


class CategoryRepository:
    """Read access (plus seeding) for `Category` rows."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, category: models.Category) -> models.Category:
        """Persist a new category and return the managed instance."""
        with _write(self.session):
            self.session.add(category)
        self.session.refresh(category)
        return category

    def get(self, category_id: int) -> Optional[models.Category]:
        """Get a `Category` by primary key."""
        return self.session.get(models.Category, category_id)

    def list_all(self) -> List[models.Category]:
        """Return all categories in insertion order."""
        stmt = select(models.Category).order_by(models.Category.id)
        return self.session.exec(stmt).all()


class ProgramRepository:
    """CRUD operations for `Program` rows."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, program: models.Program) -> models.Program:
        """Persist a new program and return the managed instance."""
        with _write(self.session):
            self.session.add(program)
        self.session.refresh(program)
        return program

    def get(self, program_id: int) -> Optional[models.Program]:
        """Fetch a program by id."""
        return self.session.get(models.Program, program_id)

    def delete(self, program_id: int) -> bool:
        """Delete a program; returns False when there was nothing to delete."""
        program = self.get(program_id)
        if program is None:
            return False
        with _write(self.session):
            self.session.delete(program)
        return True

    def list_with_category(self, category_id: Optional[int] = None):
        """Return `(Program, Category)` pairs, optionally for one category."""
        stmt = select(models.Program, models.Category).join(
            models.Category, models.Program.category_id == models.Category.id
        )
        if category_id is not None:
            stmt = stmt.where(models.Program.category_id == category_id)
        stmt = stmt.order_by(models.Program.id)
        return self.session.exec(stmt).all()
