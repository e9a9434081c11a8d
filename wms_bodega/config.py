"""Configuración del WMS de bodega.

Todo sale de variables de entorno; si existe un ``config.env`` (o ``.env``)
en el directorio de trabajo se carga primero.
"""
import os

from dotenv import load_dotenv

load_dotenv("config.env")
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "si", "sí")


# =========================
# BASE DE DATOS
# =========================
DB_ENGINE = os.getenv("WMS_DB_ENGINE", "sqlite").strip().lower()  # mysql | sqlite

MYSQL_HOST = os.getenv("WMS_MYSQL_HOST", "127.0.0.1")
MYSQL_PORT = int(os.getenv("WMS_MYSQL_PORT", 3306))
MYSQL_USER = os.getenv("WMS_MYSQL_USER", "compras")
MYSQL_PASSWORD = os.getenv("WMS_MYSQL_PASSWORD", "")
MYSQL_DATABASE = os.getenv("WMS_MYSQL_DATABASE", "superpos")
MYSQL_CHARSET = "utf8mb4"
MYSQL_CONNECT_TIMEOUT = int(os.getenv("WMS_MYSQL_CONNECT_TIMEOUT", 30))
MYSQL_POOL_SIZE = int(os.getenv("WMS_MYSQL_POOL_SIZE", 10))

SQLITE_PATH = os.getenv("WMS_SQLITE_PATH", "bodega_wms.db")
SEED_DEMO = _env_bool("WMS_SEED_DEMO", False)  # solo SQLite

# Tablas que el sistema espera encontrar en el esquema externo
SYSTEM_TABLES = [
    "usuarios",
    "transacciones_sistema",
    "pedidostienda_bodega",
    "detallepedidostienda_bodega",
    "estadopedidotiendabodega",
    "PreparacionPedidos",
    "TarimasInventario",
]

# =========================
# LOGS
# =========================
LOG_LEVEL = os.getenv("WMS_LOG_LEVEL", "INFO").upper()
LOG_DIR = os.getenv("WMS_LOG_DIR", "logs")
LOG_TO_FILE = _env_bool("WMS_LOG_TO_FILE", True)

# =========================
# NEGOCIO
# =========================
TAMANO_HOJA = 25  # líneas de detalle por hoja de preparación

ESTADO_POR_PREPARAR = 4
ESTADO_EN_PREPARACION = 5
ESTADO_EN_CHEQUEO = 6
ESTADO_COMPLETADO = 7
ESTADOS_ACTIVOS = (ESTADO_POR_PREPARAR, ESTADO_EN_PREPARACION, ESTADO_EN_CHEQUEO)

PRODUCTO_CHEQUEADO = 5  # EstadoPreparacionproducto

NIVEL_PREPARADOR = 3
NIVEL_RECHEQUEADOR = 4

PERMISO_ASIGNAR_HOJAS = 200
PERMISO_REPORTES_PEDIDOS = 201
PERMISO_ASIGNAR_TARIMAS = 202
PERMISO_REPORTE_RECHEQUEADORES = 203

REFRESH_DASHBOARD_S = 30
REFRESH_HOJAS_S = 30
REFRESH_TARIMAS_S = 30
REFRESH_REPORTES_S = 60

TARIMAS_PAGE_SIZE = 25
MIN_BUSQUEDA = 2

TIMEZONE = os.getenv("WMS_TIMEZONE", "America/Guatemala")
