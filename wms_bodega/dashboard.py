from datetime import date, datetime, timedelta

from . import config
from .db import get_conn
from .errores import WmsError
from .formato import calcular_cambio, calcular_tiempo_transcurrido, icono_estado, to_int
from .log import get_logger

logger = get_logger(__name__)


def cargar_estadisticas(hoy: date | None = None) -> dict:
    hoy = hoy or date.today()
    ayer = hoy - timedelta(days=1)
    activos = ",".join(str(e) for e in config.ESTADOS_ACTIVOS)

    with get_conn() as conn:
        pedidos_activos = conn.scalar(
            f"SELECT COUNT(*) AS total FROM pedidostienda_bodega WHERE Estado IN ({activos})"
        )
        completados_hoy = conn.scalar(
            "SELECT COUNT(*) AS total FROM pedidostienda_bodega WHERE Estado = ? AND DATE(Fecha) = ?",
            (config.ESTADO_COMPLETADO, hoy.isoformat()),
        )
        completados_ayer = conn.scalar(
            "SELECT COUNT(*) AS total FROM pedidostienda_bodega WHERE Estado = ? AND DATE(Fecha) = ?",
            (config.ESTADO_COMPLETADO, ayer.isoformat()),
        )
        pendientes = conn.scalar(
            "SELECT COUNT(*) AS total FROM pedidostienda_bodega WHERE Estado = ?",
            (config.ESTADO_POR_PREPARAR,),
        )
        preparadores = conn.scalar(
            "SELECT COUNT(*) AS total FROM usuarios WHERE IdNivel = ? AND Activo = 1",
            (config.NIVEL_PREPARADOR,),
        )

    return {
        "pedidos_activos": to_int(pedidos_activos),
        "completados_hoy": to_int(completados_hoy),
        "completados_ayer": to_int(completados_ayer),
        "pendientes": to_int(pendientes),
        "preparadores_activos": to_int(preparadores),
        "cambio_completados": calcular_cambio(completados_hoy, completados_ayer),
    }


def cargar_actividad_reciente(limit: int = 10, ahora: datetime | None = None) -> list[dict]:
    with get_conn() as conn:
        rows = conn.query(
            f"""
            SELECT
                pedidostienda_bodega.IdPedidos,
                pedidostienda_bodega.Fecha,
                pedidostienda_bodega.Estado,
                estadopedidotiendabodega.EstadoPedido
            FROM pedidostienda_bodega
            INNER JOIN estadopedidotiendabodega
                ON pedidostienda_bodega.Estado = estadopedidotiendabodega.IdEstado
            WHERE pedidostienda_bodega.Estado IN (4, 5, 6, 7)
            ORDER BY pedidostienda_bodega.Fecha DESC
            LIMIT {int(limit)}
            """
        )

    out = []
    for r in rows:
        icon, clase = icono_estado(r["Estado"])
        out.append({
            **r,
            "titulo": f"Pedido #{r['IdPedidos']} - {r['EstadoPedido']}",
            "tiempo": calcular_tiempo_transcurrido(r["Fecha"], ahora),
            "icono": icon,
            "clase": clase,
        })
    return out


def cargar_preparadores_activos(limit: int = 10) -> list[dict]:
    with get_conn() as conn:
        rows = conn.query(
            f"""
            SELECT
                usuarios.Id,
                usuarios.NombreCompleto,
                usuarios.Usuario,
                (SELECT COUNT(*)
                 FROM pedidostienda_bodega
                 WHERE pedidostienda_bodega.Estado IN (5, 6)
                 AND pedidostienda_bodega.NombreUsuario = usuarios.Usuario
                ) AS pedidos_activos
            FROM usuarios
            WHERE usuarios.IdNivel = ? AND usuarios.Activo = 1
            ORDER BY pedidos_activos DESC
            LIMIT {int(limit)}
            """,
            (config.NIVEL_PREPARADOR,),
        )

    out = []
    for r in rows:
        n = to_int(r["pedidos_activos"])
        out.append({
            **r,
            "pedidos_activos": n,
            "estado": "Activo" if n > 0 else "En descanso",
        })
    return out


def cargar_datos_dashboard(hoy: date | None = None) -> dict:
    """Las tres secciones por separado; si una falla, las otras se muestran igual."""
    datos = {"estadisticas": None, "actividad": None, "preparadores": None, "errores": {}}

    for clave, fn, mensaje in (
        ("estadisticas", lambda: cargar_estadisticas(hoy), "Error al cargar estadísticas"),
        ("actividad", cargar_actividad_reciente, "Error al cargar actividades"),
        ("preparadores", cargar_preparadores_activos, "Error al cargar preparadores"),
    ):
        try:
            datos[clave] = fn()
        except WmsError as e:
            logger.error("%s: %s", mensaje, e)
            datos["errores"][clave] = mensaje

    return datos
