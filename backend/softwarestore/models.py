"""SQLModel data models.

This module defines the catalog tables using SQLModel. A `Program`
belongs to exactly one `Category` and carries its download statistics
as embedded columns, exposed through the `Statistics` value object.
"""

from typing import Optional
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime, timezone
from typing import List


class Statistics(SQLModel):
    """Download statistics embedded in a `Program` row.

    `time_uploaded` is fixed at submission; `downloads` only grows.
    """
    time_uploaded: datetime
    downloads: int = 0

    @classmethod
    def initial(cls) -> "Statistics":
        """Statistics for a freshly submitted program."""
        return cls(time_uploaded=datetime.now(timezone.utc), downloads=0)


class Category(SQLModel, table=True):
    """A named group of programs shown in the catalog."""
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, nullable=False, unique=True)
    programs: List['Program'] = Relationship(back_populates='category')


class Program(SQLModel, table=True):
    """A submitted program.

    Fields:
    - `img128` / `img512`: icon filenames inside the program's stored files
    - `time_uploaded` / `downloads`: embedded `Statistics` columns
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, nullable=False)
    description: str
    img128: Optional[str] = None
    img512: Optional[str] = None
    category_id: int = Field(foreign_key='category.id', nullable=False)
    time_uploaded: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    downloads: int = 0
    category: Optional[Category] = Relationship(back_populates='programs')

    @property
    def statistics(self) -> Statistics:
        return Statistics(time_uploaded=self.time_uploaded, downloads=self.downloads)
