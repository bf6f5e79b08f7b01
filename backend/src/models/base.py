"""Declarative base shared by the catalog and price tier models"""

from sqlalchemy import MetaData
from sqlalchemy.orm import declarative_base

# Deterministic constraint names on PostgreSQL and SQLite alike
NAMING_CONVENTION = {
    "pk": "pk_%(table_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
}

Base = declarative_base(metadata=MetaData(naming_convention=NAMING_CONVENTION))
