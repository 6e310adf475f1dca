from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base shared by the location and weather tables.

    Every ORM model of the service derives from this class so that
    `Base.metadata` describes the complete schema in one place.
    """

    pass
