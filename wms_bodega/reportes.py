"""Reportes de productividad (preparadores y rechequeadores)."""
from datetime import date, datetime
from io import BytesIO

import pandas as pd

from . import config
from .db import get_conn
from .errores import FechasRequeridasError
from .formato import formatear_fecha_corta, to_int
from .log import get_logger

logger = get_logger(__name__)

METRICAS = ["TotalHojas", "TotalSKUs", "TotalFardos", "TotalPedidos"]
COLUMNAS_PREPARADORES = ["IdUsuariopreparo", "Preparador"] + METRICAS

METRICAS_RECHEQUEO = ["TotalTarimas", "TotalSKUs", "TotalFardos", "TotalPedidos"]
COLUMNAS_RECHEQUEADORES = ["IdUsuarioChequeo", "Rechequeador"] + METRICAS_RECHEQUEO

ENCABEZADOS_CSV = {
    "Preparador": "Preparador",
    "Rechequeador": "Rechequeador",
    "TotalHojas": "Total Hojas",
    "TotalTarimas": "Total Tarimas",
    "TotalSKUs": "Total SKUs",
    "TotalFardos": "Total Fardos",
    "TotalPedidos": "Total Pedidos",
}


def estadisticas_del_dia(hoy: date | None = None) -> dict:
    """Tarjetas del encabezado. "Completados" cuenta los que llegaron a chequeo (6) hoy."""
    hoy = (hoy or date.today()).isoformat()
    with get_conn() as conn:
        por_preparar = conn.scalar(
            "SELECT COUNT(*) AS Total FROM pedidostienda_bodega WHERE Estado = ? AND DATE(Fecha) = ?",
            (config.ESTADO_POR_PREPARAR, hoy),
        )
        en_preparacion = conn.scalar(
            "SELECT COUNT(*) AS Total FROM pedidostienda_bodega WHERE Estado = ? AND NoHojas > 0",
            (config.ESTADO_EN_PREPARACION,),
        )
        completados = conn.scalar(
            "SELECT COUNT(*) AS Total FROM pedidostienda_bodega WHERE Estado = ? AND DATE(Fecha) = ?",
            (config.ESTADO_EN_CHEQUEO, hoy),
        )
    return {
        "por_preparar": to_int(por_preparar),
        "en_preparacion": to_int(en_preparacion),
        "completados": to_int(completados),
    }


def _fecha(valor, nombre: str) -> date:
    if valor is None or valor == "":
        raise FechasRequeridasError("Por favor selecciona ambas fechas")
    if isinstance(valor, datetime):
        return valor.date()
    if isinstance(valor, date):
        return valor
    try:
        return date.fromisoformat(str(valor).strip())
    except ValueError as e:
        raise FechasRequeridasError(f"Fecha {nombre} inválida: {valor}") from e


def validar_rango(desde, hasta) -> tuple[date, date]:
    d = _fecha(desde, "desde")
    h = _fecha(hasta, "hasta")
    if d > h:
        raise FechasRequeridasError("La fecha inicial no puede ser mayor que la fecha final")
    return d, h


def nombre_empleado(nombre_completo, nombres, apellidos, id_usuario) -> str:
    if nombre_completo is not None and str(nombre_completo).strip():
        return str(nombre_completo).strip()
    if nombres is not None and apellidos is not None:
        return f"{nombres} {apellidos}".strip()
    return str(id_usuario)


def _agregar(rows: list[dict], id_col: str, nombre_col: str, agg: dict, orden: str, columnas: list) -> pd.DataFrame:
    if not rows:
        return pd.DataFrame(columns=columnas)
    df = pd.DataFrame(rows)
    df[nombre_col] = [
        nombre_empleado(r.get("NombreCompleto"), r.get("Nombres"), r.get("Apellidos"), r.get(id_col))
        for r in rows
    ]
    for col in {c for c, _ in agg.values()}:
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0)
    out = (
        df.groupby([id_col, nombre_col], as_index=False)
        .agg(**agg)
        .sort_values(orden, ascending=False, kind="stable")
        .reset_index(drop=True)
    )
    for col in columnas[2:]:
        out[col] = out[col].astype("int64")
    return out[columnas]


def productividad_preparadores(desde, hasta) -> pd.DataFrame:
    """Una fila por preparador: hojas, SKUs distintos por hoja sumados, fardos y pedidos.

    Cada hoja preparada cuenta como un pedido, igual que en el tablero de la bodega.
    """
    d, h = validar_rango(desde, hasta)
    with get_conn() as conn:
        rows = conn.query(
            """
            SELECT
                d.IdUsuariopreparo,
                u.NombreCompleto,
                u.Nombres,
                u.Apellidos,
                d.IdConsolidado,
                d.NoHoja,
                COUNT(DISTINCT d.UPCProducto) AS TotalSKUs,
                SUM(d.Cantidad) AS TotalFardos
            FROM detallepedidostienda_bodega d
            LEFT JOIN usuarios u ON d.IdUsuariopreparo = u.Id
            WHERE DATE(d.Fechahorapreparo) BETWEEN ? AND ?
                AND d.IdUsuariopreparo IS NOT NULL
                AND d.IdUsuariopreparo != ''
                AND d.IdUsuariopreparo != 0
            GROUP BY d.IdUsuariopreparo, u.NombreCompleto, u.Nombres, u.Apellidos, d.IdConsolidado, d.NoHoja
            """,
            (d.isoformat(), h.isoformat()),
        )

    for r in rows:
        r["Hoja"] = 1
    df = _agregar(
        rows,
        "IdUsuariopreparo",
        "Preparador",
        {
            "TotalHojas": ("Hoja", "sum"),
            "TotalSKUs": ("TotalSKUs", "sum"),
            "TotalFardos": ("TotalFardos", "sum"),
            "TotalPedidos": ("Hoja", "sum"),
        },
        "TotalHojas",
        COLUMNAS_PREPARADORES,
    )
    logger.info("Reporte de preparadores %s a %s: %s filas", d, h, len(df))
    return df


def productividad_rechequeadores(desde, hasta) -> pd.DataFrame:
    """Una fila por rechequeador con las tarimas terminadas de chequear en el rango."""
    d, h = validar_rango(desde, hasta)
    with get_conn() as conn:
        rows = conn.query(
            """
            SELECT
                t.IdUsuarioChequeo,
                u.NombreCompleto,
                u.Nombres,
                u.Apellidos,
                t.IdPedido,
                t.CantidadSkus,
                t.CantidadFardos
            FROM TarimasInventario t
            LEFT JOIN usuarios u ON t.IdUsuarioChequeo = u.Id
            WHERE DATE(t.FechaHoraFin) BETWEEN ? AND ?
                AND t.IdUsuarioChequeo IS NOT NULL
                AND t.IdUsuarioChequeo != 0
            """,
            (d.isoformat(), h.isoformat()),
        )

    df = _agregar(
        rows,
        "IdUsuarioChequeo",
        "Rechequeador",
        {
            "TotalTarimas": ("IdPedido", "size"),
            "TotalSKUs": ("CantidadSkus", "sum"),
            "TotalFardos": ("CantidadFardos", "sum"),
            "TotalPedidos": ("IdPedido", "nunique"),
        },
        "TotalTarimas",
        COLUMNAS_RECHEQUEADORES,
    )
    logger.info("Reporte de rechequeadores %s a %s: %s filas", d, h, len(df))
    return df


def totales(df: pd.DataFrame, metricas=None) -> dict:
    metricas = metricas or METRICAS
    return {m: int(df[m].sum()) if m in df and len(df) else 0 for m in metricas}


def datos_graficos(df: pd.DataFrame, nombre_col: str = "Preparador", metricas=None) -> dict:
    metricas = metricas or ["TotalHojas", "TotalSKUs", "TotalFardos"]
    return {
        m: df[[nombre_col, m]].sort_values(m, ascending=False, kind="stable").reset_index(drop=True)
        for m in metricas
    }


# =========================
# EXPORTACIÓN
# =========================
def nombre_archivo(desde, hasta, extension: str = "csv", prefijo: str = "Reporte_Preparadores") -> str:
    return f"{prefijo}_{desde}_{hasta}.{extension}"


def _para_exportar(df: pd.DataFrame) -> pd.DataFrame:
    cols = [c for c in ENCABEZADOS_CSV if c in df.columns]
    return df[cols].rename(columns=ENCABEZADOS_CSV)


def exportar_csv(df: pd.DataFrame) -> bytes:
    """CSV UTF-8 con BOM para que Excel respete los acentos."""
    return ("\ufeff" + _para_exportar(df).to_csv(index=False)).encode("utf-8")


def exportar_excel(df: pd.DataFrame, hoja: str = "Preparadores") -> bytes:
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        _para_exportar(df).to_excel(writer, index=False, sheet_name=hoja)
    return buffer.getvalue()


def exportar_pdf(df: pd.DataFrame, desde, hasta, titulo: str = "Reporte de Preparadores") -> bytes:
    from reportlab.lib.pagesizes import A4
    from reportlab.pdfgen import canvas

    tabla = _para_exportar(df)
    subtitulo = f"Del {formatear_fecha_corta(desde)} al {formatear_fecha_corta(hasta)}"
    columnas_x = [40, 250, 340, 420, 500]

    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    w, h = A4

    def encabezado(y):
        pdf.setFont("Helvetica-Bold", 14)
        pdf.drawString(40, y, titulo)
        y -= 18
        pdf.setFont("Helvetica", 10)
        pdf.drawString(40, y, subtitulo)
        y -= 22
        pdf.setFont("Helvetica-Bold", 10)
        for x, col in zip(columnas_x, tabla.columns):
            pdf.drawString(x, y, str(col))
        pdf.setFont("Helvetica", 10)
        return y - 14

    y = encabezado(h - 40)
    for _, r in tabla.iterrows():
        if y < 60:
            pdf.showPage()
            y = encabezado(h - 40)
        pdf.drawString(columnas_x[0], y, str(r.iloc[0])[:38])
        for x, valor in zip(columnas_x[1:], r.iloc[1:]):
            pdf.drawRightString(x + 60, y, f"{int(valor):,}")
        y -= 12

    pdf.save()
    data = buffer.getvalue()
    buffer.close()
    return data
