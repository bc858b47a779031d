"""
Configuracion central de la aplicacion.
Gestiona variables de entorno y configuraciones globales del sync
hoja de calculo <-> Notion.
"""
from pydantic_settings import BaseSettings
from pydantic import Field, computed_field


class Settings(BaseSettings):
    """
    Clase de configuracion de la aplicacion.
    Lee variables de entorno y proporciona valores por defecto.

    Obligatorias para sincronizar:
    - NOTION_API_KEY: token de la integracion (secret_... o ntn_...)
    - NOTION_DATABASE_ID: base de datos destino
    - SHEET_PATH: libro .xlsx local que actua como hoja
    """

    # Configuracion de la aplicacion
    APP_NAME: str = Field(default="Notion Stock Sync")
    APP_VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="production")

    # Configuracion del servidor
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)

    # Notion
    NOTION_API_KEY: str = Field(default="")
    NOTION_DATABASE_ID: str = Field(default="")
    NOTION_VERSION: str = Field(default="2022-06-28")
    NOTION_BASE_URL: str = Field(default="https://api.notion.com/v1")
    NOTION_TIMEOUT_S: int = Field(default=30)

    # Hoja de calculo
    SHEET_PATH: str = Field(default="")
    SHEET_NAME: str = Field(default="Products")
    # Tabla de mapeo (ver table_mappings.py): Products, Manufacturers o Devices
    SYNC_TABLE: str = Field(default="Products")

    # Motor de push
    BATCH_SIZE: int = Field(default=25, ge=1)
    # ~3 requests/segundo (limite de Notion por integracion)
    REQUEST_INTERVAL_S: float = Field(default=0.35, ge=0)
    CONTINUATION_DELAY_S: float = Field(default=5.0, ge=0)
    QUERY_PAGE_SIZE: int = Field(default=100, ge=1, le=100)
    PUSH_ONLY_CHANGED: bool = Field(default=True)
    PUSH_RECONCILE_SCHEMA: bool = Field(default=True)
    # Si True, un push fresco con una corrida suspendida se rechaza en vez de sobreescribirla
    PUSH_GUARD_FRESH_START: bool = Field(default=False)

    # Estado persistido de corridas (cursor + change-set)
    STATE_DATABASE_URL: str = Field(default="sqlite:///stocksync_state.db")

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="logs/stocksync.log")

    @computed_field
    @property
    def run_key(self) -> str:
        """
        Clave del estado persistido: una corrida activa por hoja/base.
        """
        return f"{self.SHEET_NAME}:{self.NOTION_DATABASE_ID}"

    class Config:
        """Configuracion de Pydantic."""
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignorar campos extra del .env


# Instancia global de configuracion
settings = Settings()
