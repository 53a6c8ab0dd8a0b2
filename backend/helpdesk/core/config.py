# helpdesk/core/config.py
from typing import List, Union
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import json


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === App ===
    app_name: str = "Helpdesk TI"
    app_version: str = "0.1.0"
    log_level: str = "INFO"

    # === MongoDB ===
    mongo_url: str = "mongodb://localhost:27017"
    db_name: str = "helpdesk"
    mongo_tls: bool = False
    # tiempo máximo por operación contra la base (segundos)
    store_timeout_seconds: float = 15.0

    # === Seguridad / JWT (tokens emitidos por el proveedor de auth) ===
    secret_key: str = "change-me"
    algorithm: str = "HS256"

    # === Rate limit al crear solicitudes ===
    create_rate_limit: str = "20/minute"
    rate_limit_enabled: bool = True

    # === CORS ===
    # Acepta JSON (["http://a","https://b"]) o lista separada por comas ("http://a,https://b")
    cors_origins: Union[str, List[str]] = ""

    # === Paginación ===
    max_page_size: int = 50

    # === Plazos ===
    timezone: str = "America/Sao_Paulo"
    end_of_day_hour: int = 18

    # === Notificaciones / tareas en segundo plano ===
    notification_poll_seconds: int = 120
    deadline_check_minutes: int = 60
    scheduler_enabled: bool = True

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        if v is None:
            return []
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            s = v.strip()
            if not s:
                return []
            if s.startswith("["):
                try:
                    data = json.loads(s)
                    if isinstance(data, list):
                        return [str(x).strip() for x in data if str(x).strip()]
                except ValueError:
                    # JSON mal formado: caemos al split por comas
                    pass
            return [item.strip() for item in s.split(",") if item.strip()]
        return [str(v).strip()] if str(v).strip() else []


# Instancia global usada por la app
settings = Settings()
