"""Asignación de tarimas a rechequeadores."""
import math

from . import config
from .busqueda import coincide_nombre, filtrar
from .db import get_conn
from .errores import WmsError
from .formato import color_progreso, porcentaje, to_int
from .log import get_logger

logger = get_logger(__name__)

ELIPSIS = "..."


# =========================
# PEDIDOS CON TARIMAS
# =========================
def pedidos_con_tarimas() -> list[dict]:
    with get_conn() as conn:
        pedidos = conn.query(
            """
            SELECT
                pedidostienda_bodega.IdPedidos,
                pedidostienda_bodega.Fecha,
                pedidostienda_bodega.NombreEmpresa,
                pedidostienda_bodega.TotalCantidad,
                pedidostienda_bodega.CantTarimas,
                pedidostienda_bodega.Estado,
                estadopedidotiendabodega.EstadoPedido
            FROM pedidostienda_bodega
            INNER JOIN estadopedidotiendabodega
                ON pedidostienda_bodega.Estado = estadopedidotiendabodega.IdEstado
            WHERE pedidostienda_bodega.Estado IN (?, ?) AND pedidostienda_bodega.Nohojas > 0
            ORDER BY pedidostienda_bodega.Fecha DESC
            """,
            (config.ESTADO_EN_PREPARACION, config.ESTADO_EN_CHEQUEO),
        )

        for p in pedidos:
            total, checkeados = _progreso_chequeo(conn, p["IdPedidos"])
            p["CantTarimas"] = to_int(p.get("CantTarimas"))
            p["TotalProductos"] = total
            p["ProductosCheckeados"] = checkeados
            p["PorcentajeProgreso"] = porcentaje(checkeados, total)
    return pedidos


def _progreso_chequeo(conn, id_pedido, no_tarima=None) -> tuple[int, int]:
    sql = """
        SELECT
            COUNT(*) AS TotalProductos,
            SUM(CASE WHEN EstadoPreparacionproducto = ? THEN 1 ELSE 0 END) AS ProductosCheckeados
        FROM detallepedidostienda_bodega
        WHERE IdConsolidado = ?
    """
    params = [config.PRODUCTO_CHEQUEADO, id_pedido]
    if no_tarima is not None:
        sql += " AND NoTarima = ?"
        params.append(no_tarima)
    row = conn.one(sql, params) or {}
    return to_int(row.get("TotalProductos")), to_int(row.get("ProductosCheckeados"))


def filtrar_pedidos(pedidos: list[dict], termino) -> list[dict]:
    return filtrar(pedidos, termino, "NombreEmpresa")


def estadisticas(pedidos: list[dict]) -> dict:
    return {
        "total_pedidos": len(pedidos),
        "total_tarimas": sum(to_int(p.get("CantTarimas")) for p in pedidos),
        "total_cantidad": sum(to_int(p.get("TotalCantidad")) for p in pedidos),
    }


# =========================
# PAGINACIÓN DE LA TABLA
# =========================
def numeros_de_pagina(pagina: int, total_paginas: int) -> list:
    """Botones a mostrar: hasta 7 páginas todas; si hay más, ventana de 5 con elipsis."""
    if total_paginas <= 0:
        return []
    if total_paginas <= 7:
        inicio, fin = 1, total_paginas
    elif pagina <= 4:
        inicio, fin = 1, 5
    elif pagina >= total_paginas - 3:
        inicio, fin = total_paginas - 4, total_paginas
    else:
        inicio, fin = pagina - 2, pagina + 2

    out = []
    if inicio > 1:
        out.append(1)
        if inicio > 2:
            out.append(ELIPSIS)
    out.extend(range(inicio, fin + 1))
    if fin < total_paginas:
        if fin < total_paginas - 1:
            out.append(ELIPSIS)
        out.append(total_paginas)
    return out


def paginar(items: list, pagina: int = 1, tamano: int = config.TARIMAS_PAGE_SIZE) -> dict:
    total = len(items)
    total_paginas = math.ceil(total / tamano) if tamano > 0 else 0
    pagina = max(1, min(to_int(pagina) or 1, max(total_paginas, 1)))
    inicio = (pagina - 1) * tamano
    fin = min(inicio + tamano, total)
    return {
        "items": items[inicio:fin],
        "pagina": pagina,
        "total_paginas": total_paginas,
        "desde": inicio + 1 if total else 0,
        "hasta": fin,
        "total": total,
        "numeros": numeros_de_pagina(pagina, total_paginas),
    }


# =========================
# TARIMAS DE UN PEDIDO
# =========================
def tarimas_de_pedido(id_pedido) -> dict:
    with get_conn() as conn:
        tarimas = conn.query(
            """
            SELECT
                TarimasInventario.IdTarima,
                TarimasInventario.IdPedido,
                TarimasInventario.NoTarima,
                TarimasInventario.FechaCreacion,
                TarimasInventario.FechaFinalizacion,
                TarimasInventario.CantidadFardos,
                TarimasInventario.CantidadSkus,
                TarimasInventario.IdUsuarioChequeo,
                usuarios.NombreCompleto AS UsuarioChequeo
            FROM TarimasInventario
            LEFT JOIN usuarios ON TarimasInventario.IdUsuarioChequeo = usuarios.Id
            WHERE
                TarimasInventario.IdPedido = ? AND
                TarimasInventario.FechaCreacion IS NOT NULL AND
                TarimasInventario.FechaFinalizacion IS NOT NULL AND
                (TarimasInventario.FechaHoraInicio IS NULL OR TarimasInventario.FechaHoraFin IS NULL)
            ORDER BY TarimasInventario.NoTarima ASC
            """,
            (id_pedido,),
        )

        for t in tarimas:
            total, checkeados = _progreso_chequeo(conn, id_pedido, t["NoTarima"])
            t["TotalProductos"] = total
            t["ProductosCheckeados"] = checkeados
            t["PorcentajeProgreso"] = porcentaje(checkeados, total)
            t["color"] = color_progreso(t["PorcentajeProgreso"])

        total, checkeados = _progreso_chequeo(conn, id_pedido)

    general = {
        "totalProductos": total,
        "productosCheckeados": checkeados,
        "porcentaje": porcentaje(checkeados, total),
    }
    general["color"] = color_progreso(general["porcentaje"])
    asignadas = sum(1 for t in tarimas if t.get("IdUsuarioChequeo"))
    return {
        "tarimas": tarimas,
        "progreso": general,
        "totales": {
            "fardos": sum(to_int(t.get("CantidadFardos")) for t in tarimas),
            "skus": sum(to_int(t.get("CantidadSkus")) for t in tarimas),
            "asignadas": asignadas,
            "sin_asignar": len(tarimas) - asignadas,
        },
    }


def detalle_tarima(no_tarima, id_pedido) -> list[dict]:
    with get_conn() as conn:
        return conn.query(
            """
            SELECT
                detallepedidostienda_bodega.UPC,
                detallepedidostienda_bodega.Descripcion,
                detallepedidostienda_bodega.Cantidad,
                detallepedidostienda_bodega.CantConfirmada,
                usuarios.NombreCompleto,
                detallepedidostienda_bodega.Fechahorapreparo AS FechaPreparo
            FROM detallepedidostienda_bodega
            INNER JOIN usuarios ON detallepedidostienda_bodega.IdUsuariopreparo = usuarios.Id
            WHERE
                detallepedidostienda_bodega.NoTarima = ? AND
                detallepedidostienda_bodega.IdConsolidado = ?
            ORDER BY detallepedidostienda_bodega.Descripcion ASC
            """,
            (no_tarima, id_pedido),
        )


# =========================
# RECHEQUEADORES
# =========================
def buscar_rechequeadores(termino) -> list[dict]:
    termino = str(termino or "").strip()
    if len(termino) < config.MIN_BUSQUEDA:
        return []
    with get_conn() as conn:
        usuarios = conn.query(
            """
            SELECT usuarios.Id, usuarios.NombreCompleto
            FROM usuarios
            WHERE
                usuarios.IdNivel = ? AND
                usuarios.Activo = 1 AND
                usuarios.NombreCompleto IS NOT NULL
            ORDER BY usuarios.NombreCompleto ASC
            """,
            (config.NIVEL_RECHEQUEADOR,),
        )
    return [u for u in usuarios if coincide_nombre(u["NombreCompleto"], termino)]


def asignar_tarima(id_tarima, id_usuario) -> None:
    if not id_usuario:
        raise WmsError("Debes seleccionar un usuario para la tarima")
    with get_conn() as conn:
        # MySQL devuelve 0 filas afectadas si el valor no cambia; no sirve como prueba de existencia
        if conn.one("SELECT IdTarima FROM TarimasInventario WHERE IdTarima = ?", (id_tarima,)) is None:
            raise WmsError(f"La tarima {id_tarima} no existe")
        conn.query(
            "UPDATE TarimasInventario SET IdUsuarioChequeo = ? WHERE IdTarima = ?",
            (id_usuario, id_tarima),
        )
    logger.info("Tarima %s asignada al rechequeador %s", id_tarima, id_usuario)


def resumen_asignaciones(tarimas: list[dict], seleccion: dict | None = None) -> dict:
    """Cuenta como asignada la tarima con usuario elegido en pantalla o ya guardado."""
    seleccion = seleccion or {}
    asignadas = sum(
        1 for t in tarimas
        if seleccion.get(t["IdTarima"]) or t.get("IdUsuarioChequeo")
    )
    total = len(tarimas)
    return {
        "asignadas": asignadas,
        "total": total,
        "completo": total > 0 and asignadas == total,
        "texto": f"{asignadas} de {total} tarimas",
    }
