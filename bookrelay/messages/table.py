import sqlalchemy as sa
from sqlalchemy import orm as sa_orm
from sqlalchemy.ext import asyncio as saio


def declarative(cls: type) -> type[sa_orm.DeclarativeBase]:
    """
    A more pythonic way to declare a sqlalchemy table
    """

    return sa_orm.declarative_base(cls=cls)


@declarative
class TableBase:
    "the books store owns exactly the columns it declares, no bookkeeping columns"


class Books(TableBase):
    __tablename__: str = "Books"

    isbn = sa.Column("ISBN", sa.String(32), key="isbn", primary_key=True)
    title = sa.Column("Title", sa.String, key="title", nullable=True)
    author = sa.Column("Author", sa.String, key="author", nullable=True)
    publication_date = sa.Column(
        "publication_date", sa.Date, key="publication_date", nullable=True
    )
    price = sa.Column(
        "Price", sa.Numeric(10, 2, asdecimal=True), key="price", nullable=True
    )


books_table: sa.Table = Books.__table__  # type: ignore


async def create_tables(engine: saio.AsyncEngine):
    async with engine.begin() as conn:
        await conn.run_sync(TableBase.metadata.create_all)
