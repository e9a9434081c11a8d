"""Asignación de pedidos: paginación en hojas y asignación de hojas a preparadores.

Estados de ``pedidostienda_bodega.Estado`` usados aquí: 4 (por preparar) y
5 (en preparación). Una hoja es un bloque de hasta ``TAMANO_HOJA`` líneas de
detalle que prepara una sola persona.
"""
from . import config
from .db import get_conn
from .errores import (
    ConsultaError,
    EstadoPedidoInvalidoError,
    HojaFinalizadaError,
    PaginacionError,
    PedidoNoEncontradoError,
    WmsError,
)
from .formato import COLOR_AMBAR, COLOR_AZUL, COLOR_GRIS, COLOR_VERDE, porcentaje, to_int
from .log import get_logger

logger = get_logger(__name__)

HOJA_FINALIZADA = "finalizada"
HOJA_EN_PROCESO = "en_proceso"
HOJA_ASIGNADA = "asignada"
HOJA_SIN_ASIGNAR = "sin_asignar"

ETIQUETAS_HOJA = {
    HOJA_FINALIZADA: "Finalizada",
    HOJA_EN_PROCESO: "En proceso",
    HOJA_ASIGNADA: "Asignada",
    HOJA_SIN_ASIGNAR: "Sin asignar",
}


# =========================
# LISTADOS
# =========================
def pedidos_pendientes() -> list[dict]:
    with get_conn() as conn:
        return conn.query(
            """
            SELECT
                pedidostienda_bodega.IdPedidos,
                pedidostienda_bodega.Fecha,
                pedidostienda_bodega.NombreEmpresa,
                pedidostienda_bodega.TotalCantidad,
                pedidostienda_bodega.Departamento
            FROM pedidostienda_bodega
            WHERE pedidostienda_bodega.Estado = ?
            ORDER BY pedidostienda_bodega.Fecha ASC
            """,
            (config.ESTADO_POR_PREPARAR,),
        )


def color_barra_pedido(pct: int, hojas_en_proceso: int, preparados: int) -> str:
    if pct == 100:
        return COLOR_VERDE
    if hojas_en_proceso > 0 or preparados > 0:
        return COLOR_AMBAR
    return COLOR_AZUL


def pedidos_en_preparacion() -> list[dict]:
    with get_conn() as conn:
        pedidos = conn.query(
            """
            SELECT
                pedidostienda_bodega.IdPedidos,
                pedidostienda_bodega.Fecha,
                pedidostienda_bodega.NombreEmpresa,
                pedidostienda_bodega.TotalCantidad,
                pedidostienda_bodega.Departamento,
                departamentos.Nombre AS NombreDepartamento,
                pedidostienda_bodega.Nohojas
            FROM pedidostienda_bodega
            INNER JOIN departamentos ON pedidostienda_bodega.Departamento = departamentos.Id
            WHERE pedidostienda_bodega.Estado = ?
            ORDER BY pedidostienda_bodega.Fecha DESC
            """,
            (config.ESTADO_EN_PREPARACION,),
        )

        out = []
        for p in pedidos:
            id_pedido = p["IdPedidos"]
            total_skus = to_int(conn.scalar(
                "SELECT COUNT(*) AS total FROM detallepedidostienda_bodega WHERE IdConsolidado = ?",
                (id_pedido,),
            ))
            preparados = to_int(conn.scalar(
                """
                SELECT COUNT(*) AS total FROM detallepedidostienda_bodega
                WHERE IdConsolidado = ? AND EstadoPreparacionproducto > 0
                """,
                (id_pedido,),
            ))
            en_proceso = to_int(conn.scalar(
                """
                SELECT COUNT(*) AS total FROM PreparacionPedidos
                WHERE IdPedido = ? AND FechaHoraInicio IS NOT NULL AND FechaHorafinalizo IS NULL
                """,
                (id_pedido,),
            ))
            pct = porcentaje(preparados, total_skus)
            out.append({
                **p,
                "Nohojas": to_int(p.get("Nohojas")),
                "totalSKUs": total_skus,
                "productosPreparados": preparados,
                "hojasEnProceso": en_proceso,
                "porcentaje": pct,
                "color": color_barra_pedido(pct, en_proceso, preparados),
            })
    return out


# =========================
# HOJAS
# =========================
def estado_hoja(hoja: dict) -> str:
    if hoja.get("FechaHorafinalizo"):
        return HOJA_FINALIZADA
    if hoja.get("FechaHoraInicio"):
        return HOJA_EN_PROCESO
    if hoja.get("IdUsuario"):
        return HOJA_ASIGNADA
    return HOJA_SIN_ASIGNAR


def hojas_de_pedido(id_pedido) -> list[dict]:
    with get_conn() as conn:
        hojas = conn.query(
            """
            SELECT
                usuarios.NombreCompleto,
                PreparacionPedidos.Idpreparo AS IdPreparacion,
                PreparacionPedidos.IdPedido,
                PreparacionPedidos.NoHoja,
                PreparacionPedidos.FechaHoraInicio,
                PreparacionPedidos.FechaHorafinalizo,
                PreparacionPedidos.Sucursal,
                PreparacionPedidos.TotalSKUs,
                PreparacionPedidos.TotalFardos,
                PreparacionPedidos.IdUsuario
            FROM PreparacionPedidos
            LEFT JOIN usuarios ON PreparacionPedidos.IdUsuario = usuarios.Id
            WHERE PreparacionPedidos.IdPedido = ?
            ORDER BY PreparacionPedidos.NoHoja ASC
            """,
            (id_pedido,),
        )

    for h in hojas:
        estado = estado_hoja(h)
        h["estado"] = estado
        h["preparador"] = h.get("NombreCompleto") or "Sin asignar"
        # Solo se bloquean las finalizadas; en proceso se puede reasignar
        h["reasignable"] = estado != HOJA_FINALIZADA
    return hojas


def preparadores_activos() -> list[dict]:
    with get_conn() as conn:
        rows = conn.query(
            """
            SELECT Id, NombreCompleto FROM usuarios
            WHERE IdNivel = ? AND Activo = 1
            ORDER BY NombreCompleto ASC
            """,
            (config.NIVEL_PREPARADOR,),
        )
    return [r for r in rows if r.get("NombreCompleto") and str(r["NombreCompleto"]).strip()]


def asignar_hoja(id_preparacion, id_preparador) -> None:
    """Asigna (o reasigna) una hoja; reinicia sus tiempos de inicio y fin."""
    with get_conn() as conn:
        hoja = conn.one(
            "SELECT Idpreparo, FechaHorafinalizo FROM PreparacionPedidos WHERE Idpreparo = ?",
            (id_preparacion,),
        )
        if hoja is None:
            raise WmsError(f"La hoja {id_preparacion} no existe")
        if hoja.get("FechaHorafinalizo"):
            raise HojaFinalizadaError("La hoja ya fue finalizada y no puede reasignarse")

        preparador = conn.one(
            "SELECT Id FROM usuarios WHERE Id = ? AND IdNivel = ? AND Activo = 1",
            (id_preparador, config.NIVEL_PREPARADOR),
        )
        if preparador is None:
            raise WmsError("Debes buscar y seleccionar un preparador de la lista")

        conn.query(
            """
            UPDATE PreparacionPedidos
            SET IdUsuario = ?, FechaHoraInicio = NULL, FechaHorafinalizo = NULL
            WHERE Idpreparo = ?
            """,
            (id_preparador, id_preparacion),
        )
    logger.info("Hoja %s asignada al preparador %s", id_preparacion, id_preparador)


# =========================
# PAGINACIÓN (iniciar pedido)
# =========================
def paginar_lineas(lineas: list[dict], tamano: int = config.TAMANO_HOJA) -> list[dict]:
    """Numera las líneas ya ordenadas y asigna hoja = ceil(n / tamano).

    Si una línea aparece repetida (varios paquetes para el mismo UPC) cuenta
    una sola vez, en su primera posición.
    """
    if tamano <= 0:
        raise ValueError("tamano debe ser positivo")
    vistos = set()
    out = []
    for linea in lineas:
        detalle_id = linea["DetalleId"]
        if detalle_id in vistos:
            continue
        vistos.add(detalle_id)
        n = len(out) + 1
        out.append({
            "DetalleId": detalle_id,
            "IdUbicacionBodega": linea.get("IdUbicacionBodega"),
            "RowNum": n,
            "NoHoja": (n - 1) // tamano + 1,
        })
    return out


def _lineas_con_ubicacion(conn, id_pedido) -> list[dict]:
    return conn.query(
        """
        SELECT
            d.Id AS DetalleId,
            d.Cantidad,
            ub.Id AS IdUbicacionBodega,
            ub.Nivel
        FROM detallepedidostienda_bodega d
        INNER JOIN productospaquetes pp ON d.UPC = pp.UPCPaquete
        INNER JOIN productos pr ON pp.Upc = pr.Upc
        INNER JOIN ubicacionesbodega ub ON pr.IdUbicacionBodega = ub.Id
        WHERE d.IdConsolidado = ?
        ORDER BY ub.Nivel ASC, ub.Id ASC, d.Id ASC
        """,
        (id_pedido,),
    )


def iniciar_pedido(id_pedido) -> dict:
    """Pasa el pedido a "En preparación" y, si no estaba paginado, lo pagina.

    Todo corre en una sola transacción: si algo falla no queda el pedido a
    medio paginar (ni con el estado cambiado).
    """
    with get_conn() as conn:
        pedido = conn.one(
            "SELECT IdPedidos, Estado, Paginado FROM pedidostienda_bodega WHERE IdPedidos = ?",
            (id_pedido,),
        )
        if pedido is None:
            raise PedidoNoEncontradoError(f"El pedido #{id_pedido} no existe")
        estado = to_int(pedido["Estado"])
        if estado not in (config.ESTADO_POR_PREPARAR, config.ESTADO_EN_PREPARACION):
            raise EstadoPedidoInvalidoError(
                f"El pedido #{id_pedido} está en estado {estado} y no puede iniciarse"
            )

        resultado = {"id_pedido": id_pedido, "ya_paginado": False, "hojas": 0, "lineas": 0, "sin_ubicacion": 0}
        try:
            with conn.transaction():
                conn.query(
                    "UPDATE pedidostienda_bodega SET Estado = ? WHERE IdPedidos = ?",
                    (config.ESTADO_EN_PREPARACION, id_pedido),
                )
                paginado = to_int(conn.scalar(
                    "SELECT Paginado FROM pedidostienda_bodega WHERE IdPedidos = ?", (id_pedido,)
                ))
                if paginado == 0:
                    resultado.update(_paginar(conn, id_pedido))
                else:
                    resultado["ya_paginado"] = True
                    resultado["hojas"] = to_int(conn.scalar(
                        "SELECT Nohojas FROM pedidostienda_bodega WHERE IdPedidos = ?", (id_pedido,)
                    ))
        except ConsultaError as e:
            logger.error("Paginación del pedido %s revertida: %s", id_pedido, e)
            raise PaginacionError(f"No se pudo iniciar el pedido: {e}") from e

    logger.info(
        "Pedido %s iniciado: %s hojas, %s líneas (ya paginado: %s)",
        id_pedido, resultado["hojas"], resultado["lineas"], resultado["ya_paginado"],
    )
    return resultado


def _paginar(conn, id_pedido) -> dict:
    total_lineas = to_int(conn.scalar(
        "SELECT COUNT(*) AS total FROM detallepedidostienda_bodega WHERE IdConsolidado = ?",
        (id_pedido,),
    ))
    numeradas = paginar_lineas(_lineas_con_ubicacion(conn, id_pedido))
    if not numeradas:
        raise PaginacionError(
            f"El pedido #{id_pedido} no tiene líneas con ubicación en bodega; no se puede paginar"
        )

    conn.executemany(
        """
        UPDATE detallepedidostienda_bodega
        SET NoHoja = ?, IdUbicacionBodega = ?
        WHERE Id = ? AND IdConsolidado = ?
        """,
        [(n["NoHoja"], n["IdUbicacionBodega"], n["DetalleId"], id_pedido) for n in numeradas],
    )

    # Restos de una paginación anterior incompleta
    conn.query("DELETE FROM PreparacionPedidos WHERE IdPedido = ?", (id_pedido,))
    conn.query(
        """
        INSERT INTO PreparacionPedidos (IdPedido, NoHoja, Sucursal, TotalSKUs, TotalFardos)
        SELECT
            d.IdConsolidado,
            d.NoHoja,
            p.NombreEmpresa,
            COUNT(*) AS TotalSKUs,
            SUM(d.Cantidad) AS TotalFardos
        FROM detallepedidostienda_bodega d
        INNER JOIN pedidostienda_bodega p ON p.IdPedidos = d.IdConsolidado
        WHERE d.IdConsolidado = ? AND d.NoHoja IS NOT NULL
        GROUP BY d.IdConsolidado, d.NoHoja, p.NombreEmpresa
        """,
        (id_pedido,),
    )

    no_hojas = max(n["NoHoja"] for n in numeradas)
    conn.query(
        "UPDATE pedidostienda_bodega SET Paginado = 1, Nohojas = ? WHERE IdPedidos = ?",
        (no_hojas, id_pedido),
    )

    sin_ubicacion = max(0, total_lineas - len(numeradas))
    if sin_ubicacion:
        logger.warning("Pedido %s: %s líneas sin ubicación quedaron fuera de las hojas", id_pedido, sin_ubicacion)
    return {"hojas": no_hojas, "lineas": len(numeradas), "sin_ubicacion": sin_ubicacion}


# =========================
# PROGRESO
# =========================
MENSAJE_SIN_PREPARADOR = "No hay preparador asignado para esta hoja"
MENSAJE_NO_INICIADA = "Aún no se ha iniciado la preparación"


def progreso_preparacion(id_pedido) -> dict:
    with get_conn() as conn:
        hojas = conn.query(
            """
            SELECT
                PreparacionPedidos.NoHoja,
                PreparacionPedidos.TotalSKUs,
                PreparacionPedidos.TotalFardos,
                PreparacionPedidos.FechaHoraInicio,
                PreparacionPedidos.FechaHorafinalizo,
                PreparacionPedidos.IdUsuario,
                usuarios.NombreCompleto
            FROM PreparacionPedidos
            LEFT JOIN usuarios ON PreparacionPedidos.IdUsuario = usuarios.Id
            WHERE PreparacionPedidos.IdPedido = ?
            ORDER BY PreparacionPedidos.NoHoja ASC
            """,
            (id_pedido,),
        )

        for h in hojas:
            preparados = 0
            if h.get("IdUsuario"):
                preparados = to_int(conn.scalar(
                    """
                    SELECT COUNT(*) AS total
                    FROM detallepedidostienda_bodega
                    WHERE
                        detallepedidostienda_bodega.EstadoPreparacionproducto > 0 AND
                        detallepedidostienda_bodega.IdConsolidado = ? AND
                        detallepedidostienda_bodega.NoHoja = ?
                    """,
                    (id_pedido, h["NoHoja"]),
                ))
            h["totalProductos"] = to_int(h.get("TotalSKUs"))
            h["productosPreparados"] = preparados
            h["porcentaje"] = porcentaje(preparados, h["totalProductos"])

    resumen = {"total": len(hojas), "finalizadas": 0, "en_proceso": 0, "sin_asignar": 0, "progreso": 0}
    for h in hojas:
        estado = estado_hoja(h)
        h["estado"] = estado
        h["preparador"] = h.get("NombreCompleto") or "Sin asignar"
        if estado == HOJA_FINALIZADA:
            h["color"] = COLOR_VERDE
            resumen["finalizadas"] += 1
        elif estado == HOJA_EN_PROCESO:
            h["color"] = COLOR_AMBAR
            resumen["en_proceso"] += 1
        elif estado == HOJA_ASIGNADA:
            h["color"] = COLOR_AZUL
        else:
            h["color"] = COLOR_GRIS

        if not h.get("IdUsuario"):
            resumen["sin_asignar"] += 1
            h["mensaje"] = MENSAJE_SIN_PREPARADOR
        elif estado == HOJA_ASIGNADA:
            h["mensaje"] = MENSAJE_NO_INICIADA
        else:
            h["mensaje"] = ""

    resumen["progreso"] = porcentaje(resumen["finalizadas"], resumen["total"])
    return {"hojas": hojas, "resumen": resumen}
