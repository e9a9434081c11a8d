"""Capa de conexión.

Producción corre contra el MySQL de la bodega (pool de ``mysql.connector``);
en local y en pruebas se usa un archivo SQLite con el subconjunto del esquema
que la aplicación toca. Las consultas se escriben con ``?`` y se adaptan a
``%s`` cuando el motor es MySQL.
"""
import re
import sqlite3
from contextlib import contextmanager

import mysql.connector
from mysql.connector import errorcode, pooling

from . import config
from .errores import ConexionError, ConsultaError
from .log import get_logger

logger = get_logger(__name__)

_pool = None
_pool_closed = False

_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_MENSAJES_CONEXION = {
    errorcode.CR_CONN_HOST_ERROR: "Servidor MySQL no disponible. Verificar que esté ejecutándose.",
    errorcode.ER_ACCESS_DENIED_ERROR: "Acceso denegado. Verificar credenciales de usuario.",
    errorcode.ER_BAD_DB_ERROR: "Base de datos no encontrada.",
    errorcode.CR_UNKNOWN_HOST: "Host no encontrado. Verificar dirección IP.",
    errorcode.CR_SERVER_LOST: "Timeout de conexión. El servidor no responde.",
}


def normalize_rows(resultado) -> list:
    """Lista de filas a partir de lo que devuelva el driver.

    Acepta una lista de filas, un par ``(rows, fields)`` o un objeto con
    atributo ``rows``; cualquier otra cosa se trata como vacío.
    """
    if isinstance(resultado, tuple) and len(resultado) == 2 and isinstance(resultado[0], list):
        return resultado[0]
    if isinstance(resultado, list):
        return resultado
    rows = getattr(resultado, "rows", None)
    if isinstance(rows, list):
        return rows
    return []


class Conexion:
    """Conexión de una operación: ``query()``, ``transaction()``, ``close()``."""

    def __init__(self, raw, engine: str):
        self.raw = raw
        self.engine = engine
        self._closed = False

    def _adapt(self, sql: str) -> str:
        if self.engine == "mysql":
            return sql.replace("?", "%s")
        return sql

    def query(self, sql: str, params=()):
        """SELECT -> lista de dicts; UPDATE/INSERT/DELETE -> filas afectadas."""
        sql = self._adapt(sql)
        params = tuple(params or ())
        cur = self.raw.cursor()
        try:
            cur.execute(sql, params)
            if cur.description is not None:
                cols = [d[0] for d in cur.description]
                return [dict(zip(cols, r)) for r in cur.fetchall()]
            return cur.rowcount
        except (sqlite3.Error, mysql.connector.Error) as e:
            logger.error("Error SQL: %s", e)
            logger.debug("Query: %s", sql)
            logger.debug("Params: %s", params)
            raise ConsultaError(str(e)) from e
        finally:
            cur.close()

    def executemany(self, sql: str, seq_params) -> int:
        sql = self._adapt(sql)
        cur = self.raw.cursor()
        try:
            cur.executemany(sql, list(seq_params))
            return cur.rowcount
        except (sqlite3.Error, mysql.connector.Error) as e:
            logger.error("Error SQL: %s", e)
            logger.debug("Query: %s", sql)
            raise ConsultaError(str(e)) from e
        finally:
            cur.close()

    def one(self, sql: str, params=()):
        rows = normalize_rows(self.query(sql, params))
        return rows[0] if rows else None

    def scalar(self, sql: str, params=(), default=0):
        row = self.one(sql, params)
        if not row:
            return default
        value = next(iter(row.values()))
        return default if value is None else value

    @contextmanager
    def transaction(self):
        if self.engine == "mysql":
            self.raw.start_transaction()
        else:
            self.raw.execute("BEGIN")
        try:
            yield self
        except Exception:
            self.raw.rollback()
            raise
        else:
            self.raw.commit()

    def is_active(self) -> bool:
        return not self._closed

    def close(self):
        if self._closed:
            return
        self._closed = True
        try:
            self.raw.close()
        except (sqlite3.Error, mysql.connector.Error) as e:
            logger.error("Error liberando conexión: %s", e)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


def _get_pool():
    global _pool
    if _pool is None:
        _pool = pooling.MySQLConnectionPool(
            pool_name="wms",
            pool_size=config.MYSQL_POOL_SIZE,
            host=config.MYSQL_HOST,
            port=config.MYSQL_PORT,
            user=config.MYSQL_USER,
            password=config.MYSQL_PASSWORD,
            database=config.MYSQL_DATABASE,
            charset=config.MYSQL_CHARSET,
            connection_timeout=config.MYSQL_CONNECT_TIMEOUT,
            autocommit=True,
            time_zone="+00:00",
        )
    return _pool


def get_conn() -> Conexion:
    """Conexión lista para usar. Siempre cerrarla (``with get_conn() as conn``)."""
    if config.DB_ENGINE == "mysql":
        if _pool_closed:
            raise ConexionError("El pool de conexiones ha sido cerrado")
        raw = None
        try:
            raw = _get_pool().get_connection()
            cur = raw.cursor()
            cur.execute("SET NAMES utf8mb4")
            cur.close()
            return Conexion(raw, "mysql")
        except mysql.connector.Error as e:
            if raw is not None:
                try:
                    raw.close()
                except mysql.connector.Error:
                    pass
            msg = _MENSAJES_CONEXION.get(e.errno, "Error de conexión a la base de datos")
            logger.error("Error de conexión: %s", e)
            raise ConexionError(f"{msg}: {e}") from e

    try:
        raw = sqlite3.connect(config.SQLITE_PATH, check_same_thread=False, isolation_level=None)
    except sqlite3.Error as e:
        logger.error("Error de conexión: %s", e)
        raise ConexionError(f"Error de conexión a la base de datos: {e}") from e
    return Conexion(raw, "sqlite")


def run_query(conn: Conexion, sql: str, params=()):
    return conn.query(sql, params)


def fetch_one(conn: Conexion, sql: str, params=()):
    return conn.one(sql, params)


def fetch_scalar(conn: Conexion, sql: str, params=(), default=0):
    return conn.scalar(sql, params, default)


def transaction(conn: Conexion):
    return conn.transaction()


def test_connection() -> bool:
    try:
        with get_conn() as conn:
            rows = conn.query("SELECT 1 AS test")
        return bool(rows)
    except (ConexionError, ConsultaError) as e:
        logger.error("Test de conexión falló: %s", e)
        return False


def get_database_info() -> dict:
    with get_conn() as conn:
        if conn.engine == "mysql":
            return {
                "engine": "mysql",
                "version": conn.scalar("SELECT VERSION() AS version", default=""),
                "database": conn.scalar("SELECT DATABASE() AS db", default=""),
                "user": conn.scalar("SELECT USER() AS user", default=""),
                "host": config.MYSQL_HOST,
                "port": config.MYSQL_PORT,
            }
        return {
            "engine": "sqlite",
            "version": conn.scalar("SELECT sqlite_version() AS version", default=""),
            "database": config.SQLITE_PATH,
            "user": "",
            "host": "",
            "port": None,
        }


def check_system_tables(tables=None) -> dict:
    tables = list(tables or config.SYSTEM_TABLES)
    status = {}
    with get_conn() as conn:
        for table in tables:
            if not _IDENT_RE.match(table):
                status[table] = {"exists": False, "error": "nombre de tabla inválido"}
                continue
            try:
                count = conn.scalar(f"SELECT COUNT(*) AS count FROM {table}")
                status[table] = {"exists": True, "count": int(count)}
            except ConsultaError as e:
                status[table] = {"exists": False, "error": str(e)}
    return status


def close_pool():
    global _pool, _pool_closed
    if _pool_closed:
        logger.info("Pool ya está cerrado")
        return
    if _pool is not None:
        # mysql.connector no expone API pública para vaciar el pool; nombre privado
        remove = getattr(_pool, "_remove_connections", None)
        if remove is None:
            logger.warning("MySQLConnectionPool sin _remove_connections; las conexiones se liberan al cerrar el proceso")
        else:
            try:
                remove()
            except mysql.connector.Error as e:
                logger.error("Error cerrando pool: %s", e)
        _pool = None
    _pool_closed = True
    logger.info("Pool de conexiones cerrado")


def get_pool_stats() -> dict:
    if config.DB_ENGINE != "mysql":
        return {"engine": "sqlite", "pool_size": 0, "free_connections": 0, "closed": False}
    free = 0
    if _pool is not None:
        # _cnx_queue es privado en mysql.connector; sin él se informa 0
        queue = getattr(_pool, "_cnx_queue", None)
        free = queue.qsize() if queue is not None else 0
    return {
        "engine": "mysql",
        "pool_size": config.MYSQL_POOL_SIZE,
        "free_connections": free,
        "closed": _pool_closed,
    }


# =========================
# DB INIT (solo SQLite local)
# =========================
SQLITE_SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS usuarios (
        Id INTEGER PRIMARY KEY AUTOINCREMENT,
        NombreCompleto TEXT,
        Nombres TEXT,
        Apellidos TEXT,
        Usuario TEXT,
        Password TEXT,
        IdNivel INTEGER,
        Activo INTEGER DEFAULT 1,
        Entrada INTEGER DEFAULT 1
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS transacciones_sistema (
        Id INTEGER PRIMARY KEY AUTOINCREMENT,
        IdUsuario INTEGER,
        Codigo INTEGER,
        Estado INTEGER DEFAULT 1
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS estadopedidotiendabodega (
        IdEstado INTEGER PRIMARY KEY,
        EstadoPedido TEXT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS departamentos (
        Id INTEGER PRIMARY KEY,
        Nombre TEXT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS pedidostienda_bodega (
        IdPedidos INTEGER PRIMARY KEY AUTOINCREMENT,
        Fecha TEXT,
        NombreEmpresa TEXT,
        TotalCantidad INTEGER DEFAULT 0,
        Departamento INTEGER,
        Estado INTEGER,
        NombreUsuario TEXT,
        Paginado INTEGER DEFAULT 0,
        Nohojas INTEGER DEFAULT 0,
        CantTarimas INTEGER DEFAULT 0
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS detallepedidostienda_bodega (
        Id INTEGER PRIMARY KEY AUTOINCREMENT,
        IdConsolidado INTEGER,
        UPC TEXT,
        UPCProducto TEXT,
        Descripcion TEXT,
        Cantidad INTEGER DEFAULT 0,
        CantConfirmada INTEGER,
        NoHoja INTEGER,
        IdUbicacionBodega INTEGER,
        EstadoPreparacionproducto INTEGER DEFAULT 0,
        IdUsuariopreparo INTEGER,
        Fechahorapreparo TEXT,
        NoTarima INTEGER
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS productospaquetes (
        Id INTEGER PRIMARY KEY AUTOINCREMENT,
        UPCPaquete TEXT,
        Upc TEXT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS productos (
        Upc TEXT PRIMARY KEY,
        Descripcion TEXT,
        IdUbicacionBodega INTEGER
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS ubicacionesbodega (
        Id INTEGER PRIMARY KEY,
        Rack TEXT,
        Nivel INTEGER,
        Descripcion TEXT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS PreparacionPedidos (
        Idpreparo INTEGER PRIMARY KEY AUTOINCREMENT,
        IdPedido INTEGER,
        NoHoja INTEGER,
        Sucursal TEXT,
        TotalSKUs INTEGER,
        TotalFardos INTEGER,
        IdUsuario INTEGER,
        FechaHoraInicio TEXT,
        FechaHorafinalizo TEXT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS TarimasInventario (
        IdTarima INTEGER PRIMARY KEY AUTOINCREMENT,
        IdPedido INTEGER,
        NoTarima INTEGER,
        FechaCreacion TEXT,
        FechaFinalizacion TEXT,
        CantidadFardos INTEGER DEFAULT 0,
        CantidadSkus INTEGER DEFAULT 0,
        IdUsuarioChequeo INTEGER,
        FechaHoraInicio TEXT,
        FechaHoraFin TEXT
    );
    """,
]

ESTADOS_PEDIDO = [
    (4, "Por preparar"),
    (5, "En preparación"),
    (6, "En chequeo"),
    (7, "Completado"),
]


def init_db():
    if config.DB_ENGINE == "mysql":
        # El esquema de producción no es nuestro
        return
    with get_conn() as conn:
        for ddl in SQLITE_SCHEMA:
            conn.query(ddl)
        for id_estado, nombre in ESTADOS_PEDIDO:
            conn.query(
                "INSERT OR IGNORE INTO estadopedidotiendabodega (IdEstado, EstadoPedido) VALUES (?, ?)",
                (id_estado, nombre),
            )
