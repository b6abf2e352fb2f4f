# DatabaseGateway: notes_gateway.resources.database.database_manager (Repository 에 의존)
from .postgresql import ExecuteResult, PostgreSQLManager

__all__ = ["ExecuteResult", "PostgreSQLManager"]
