import hmac

from .db import get_conn
from .errores import WmsError
from .log import get_logger

logger = get_logger(__name__)

OK = "ok"
CAMPOS_INCOMPLETOS = "campos_incompletos"
USUARIO_NO_ENCONTRADO = "usuario_no_encontrado"
PASSWORD_INCORRECTA = "password_incorrecta"

MENSAJES_LOGIN = {
    CAMPOS_INCOMPLETOS: "Por favor ingresa usuario y contraseña",
    USUARIO_NO_ENCONTRADO: "El usuario ingresado no existe o no tiene permisos de acceso",
    PASSWORD_INCORRECTA: "La contraseña ingresada no es válida",
}


def buscar_usuario(usuario: str):
    """Fila del usuario activo con entrada habilitada, o None."""
    with get_conn() as conn:
        return conn.one(
            """
            SELECT
                usuarios.Id,
                usuarios.NombreCompleto,
                usuarios.Usuario,
                usuarios.Password
            FROM usuarios
            WHERE
                usuarios.Activo = 1 AND
                usuarios.Entrada = 1 AND
                usuarios.Usuario = ?
            """,
            (usuario,),
        )


def verificar_credenciales(usuario, password) -> tuple[str, dict | None]:
    """Devuelve (resultado, sesión). La sesión es {id, nombre, usuario} solo si resultado == OK.

    Errores de base de datos se propagan (la página muestra "Error de Conexión").
    """
    usuario = str(usuario or "").strip()
    password = str(password or "")
    if not usuario or not password:
        return CAMPOS_INCOMPLETOS, None

    row = buscar_usuario(usuario)
    if row is None:
        logger.info("Login rechazado: usuario %s no encontrado", usuario)
        return USUARIO_NO_ENCONTRADO, None

    guardada = str(row.get("Password") or "")
    if not hmac.compare_digest(guardada.encode("utf-8"), password.encode("utf-8")):
        logger.info("Login rechazado: contraseña incorrecta para %s", usuario)
        return PASSWORD_INCORRECTA, None

    logger.info("Login correcto: %s", usuario)
    return OK, {
        "id": row["Id"],
        "nombre": row.get("NombreCompleto") or usuario,
        "usuario": row.get("Usuario") or usuario,
    }


def verificar_permiso(id_usuario, codigo) -> bool:
    if not id_usuario:
        return False
    try:
        with get_conn() as conn:
            rows = conn.query(
                """
                SELECT * FROM transacciones_sistema
                WHERE IdUsuario = ? AND Codigo = ? AND Estado = 1
                """,
                (id_usuario, codigo),
            )
        return len(rows) > 0
    except WmsError as e:
        logger.error("Error al verificar permisos (%s, %s): %s", id_usuario, codigo, e)
        return False
