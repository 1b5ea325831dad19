from .database import DatabaseContext
from .unit_of_work import SqlAlchemyUnitOfWork, UnitOfWork

__all__ = ["DatabaseContext", "SqlAlchemyUnitOfWork", "UnitOfWork"]
