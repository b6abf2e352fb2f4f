"""
서비스 설정
PostgreSQL 연결, 로깅(OpenTelemetry), 보안(API 키), 서버 설정을 관리합니다.
"""

import os
from dataclasses import dataclass
from typing import Optional


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class LoggingConfig:
    """로그 레벨과 OpenTelemetry 내보내기 설정"""
    service_name: str
    service_version: str = "1.0.0"
    environment: str = "development"
    otlp_endpoint: Optional[str] = None
    enable_console_export: bool = False
    log_level: str = "INFO"

    def __post_init__(self):
        """설정 검증"""
        if not self.service_name:
            raise ValueError("Service name이 필요합니다")

        valid_environments = ["development", "production", "staging", "test"]
        if self.environment not in valid_environments:
            raise ValueError(f"지원하지 않는 environment: {self.environment}. 지원되는 환경: {valid_environments}")

        self.log_level = self.log_level.upper()
        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"지원하지 않는 log level: {self.log_level}")

    @classmethod
    def from_env(cls) -> 'LoggingConfig':
        return cls(
            service_name=os.getenv("OTEL_SERVICE_NAME", "notes-gateway"),
            service_version=os.getenv("OTEL_SERVICE_VERSION", "1.0.0"),
            environment=os.getenv("ENVIRONMENT", "development"),
            otlp_endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT"),
            enable_console_export=_env_bool("OTEL_CONSOLE_EXPORT", "false"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


@dataclass
class PostgreSQLConfig:
    """PostgreSQL 접속 및 커넥션 풀 설정 (PG_* 환경변수)"""
    host: str
    port: int
    user: str
    password: Optional[str]
    database: str
    max_connections: int = 10
    min_connections: int = 1
    # 커넥션 획득 대기 시간(초)
    pool_timeout: float = 30.0
    # 커넥션 대기열 최대 길이 (0 = 무제한)
    max_waiting: int = 0
    # health_check 결과 캐시 시간(초, 0 = 캐시 안 함)
    health_check_ttl: float = 5.0
    sslmode: str = "prefer"

    def __post_init__(self):
        """설정 검증"""
        if not self.host or not self.port:
            raise ValueError("PostgreSQL host/port가 필요합니다")
        if not self.user:
            raise ValueError("PostgreSQL user가 필요합니다")
        if not self.database:
            raise ValueError("PostgreSQL database가 필요합니다")
        if self.min_connections < 0 or self.max_connections < 1:
            raise ValueError("PostgreSQL 풀 크기가 올바르지 않습니다")
        if self.min_connections > self.max_connections:
            raise ValueError("PG_MIN_CONNECTIONS는 PG_MAX_CONNECTIONS보다 클 수 없습니다")
        if self.max_waiting < 0:
            raise ValueError("PG_MAX_WAITING은 0 이상이어야 합니다")

    @classmethod
    def from_env(cls) -> 'PostgreSQLConfig':
        return cls(
            host=os.getenv("PG_HOST", "127.0.0.1"),
            port=int(os.getenv("PG_PORT", "5432")),
            user=os.getenv("PG_USER", "postgres"),
            password=os.getenv("PG_PASSWORD", "postgres"),
            database=os.getenv("PG_DATABASE", "notes"),
            max_connections=int(os.getenv("PG_MAX_CONNECTIONS", "10")),
            min_connections=int(os.getenv("PG_MIN_CONNECTIONS", "1")),
            pool_timeout=float(os.getenv("PG_POOL_TIMEOUT", "30.0")),
            max_waiting=int(os.getenv("PG_MAX_WAITING", "0")),
            health_check_ttl=float(os.getenv("PG_HEALTH_CHECK_TTL", "5.0")),
            sslmode=os.getenv("PG_SSLMODE", "prefer"),
        )


@dataclass
class SecurityConfig:
    """API 키 인증 설정"""
    api_key: str

    def __post_init__(self):
        if not self.api_key:
            raise ValueError("API_KEY 환경변수가 필요합니다")

    @classmethod
    def from_env(cls) -> 'SecurityConfig':
        return cls(api_key=os.getenv("API_KEY", ""))


@dataclass
class ServerConfig:
    """HTTP 서버 설정"""
    host: str = "0.0.0.0"
    port: int = 3001
    # 대용량 노트 동기화를 고려한 요청 바디 상한 (bytes)
    body_limit: int = 50 * 1024 * 1024

    @classmethod
    def from_env(cls) -> 'ServerConfig':
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3001")),
            body_limit=int(os.getenv("BODY_LIMIT", str(50 * 1024 * 1024))),
        )


@dataclass
class ResourceConfig:
    """서비스 전체 설정 묶음"""
    logging: LoggingConfig
    postgresql: PostgreSQLConfig
    security: SecurityConfig
    server: ServerConfig

    @classmethod
    def from_env(cls) -> 'ResourceConfig':
        """환경변수로부터 설정 생성"""
        try:
            return cls(
                logging=LoggingConfig.from_env(),
                postgresql=PostgreSQLConfig.from_env(),
                security=SecurityConfig.from_env(),
                server=ServerConfig.from_env(),
            )
        except Exception as e:
            raise RuntimeError(f"리소스 설정 초기화 실패: {e}") from e
