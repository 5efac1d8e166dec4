# /smart-lms-backend/app/db/base_class.py

from sqlalchemy.orm import DeclarativeBase, declared_attr


class Base(DeclarativeBase):
    """
    Declarative base for every ORM model.

    Table names are generated automatically as the lowercased class name with
    an "s" suffix (e.g. `Meeting` -> `meetings`). A model can still override
    `__tablename__` explicitly.
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return f"{cls.__name__.lower()}s"
