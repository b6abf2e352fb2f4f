from .postgresql_manager import ExecuteResult, PostgreSQLManager

__all__ = ["ExecuteResult", "PostgreSQLManager"]
