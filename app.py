import time
from datetime import date, datetime

import pandas as pd
import plotly.express as px
import streamlit as st

from wms_bodega import __version__, config
from wms_bodega import auth, dashboard, hojas, reportes, tarimas
from wms_bodega.busqueda import filtrar
from wms_bodega.db import init_db
from wms_bodega.demo import seed_demo_data
from wms_bodega.errores import WmsError
from wms_bodega.formato import (
    formatear_fecha,
    formatear_fecha_hora,
    formato_miles,
    hace_texto,
    texto_cambio,
)
from wms_bodega.log import get_logger, setup_logging

logger = get_logger("app")


# =========================
# ARRANQUE
# =========================
@st.cache_resource
def arranque():
    setup_logging()
    logger.info("Iniciando WMS Bodega v%s (motor %s)", __version__, config.DB_ENGINE)
    init_db()
    if config.SEED_DEMO and config.DB_ENGINE == "sqlite":
        seed_demo_data()
    return True


def usuario_actual() -> dict | None:
    return st.session_state.get("user")


def flash(kind: str, msg: str):
    """Mensaje que sobrevive a un st.rerun()."""
    st.session_state["flash"] = (kind, msg)


def render_flash():
    if "flash" not in st.session_state:
        return
    k, msg = st.session_state.pop("flash")
    if k == "ok":
        st.success(msg)
    elif k == "warn":
        st.warning(msg)
    else:
        st.error(msg)


# =========================
# UI: LOGIN
# =========================
def page_login():
    st.title("📦 Bodega – WMS")
    st.caption(f"Versión {__version__}")

    with st.form("login_form"):
        usuario = st.text_input("Usuario")
        password = st.text_input("Contraseña", type="password")
        entrar = st.form_submit_button("Iniciar sesión", use_container_width=True)

    if not entrar:
        return

    try:
        resultado, sesion = auth.verificar_credenciales(usuario, password)
    except WmsError as e:
        logger.error("Error en login: %s", e)
        st.error(f"Error de Conexión: no se pudo conectar con la base de datos. {e}")
        return

    if resultado != auth.OK:
        if resultado == auth.CAMPOS_INCOMPLETOS:
            st.warning(auth.MENSAJES_LOGIN[resultado])
        else:
            st.error(auth.MENSAJES_LOGIN[resultado])
        return

    st.session_state["user"] = sesion
    flash("ok", f"¡Bienvenido, {sesion['nombre']}!")
    st.rerun()


def sidebar_sesion():
    user = usuario_actual()
    st.sidebar.title("Bodega – WMS")
    st.sidebar.caption(f"👤 {user['nombre']} ({user['usuario']})")

    if not st.session_state.get("confirm_logout"):
        if st.sidebar.button("🚪 Cerrar sesión", use_container_width=True):
            st.session_state["confirm_logout"] = True
            st.rerun()
        return

    st.sidebar.warning("¿Seguro que deseas cerrar sesión?")
    c1, c2 = st.sidebar.columns(2)
    if c1.button("Sí, salir", use_container_width=True):
        logger.info("Sesión cerrada: %s", user["usuario"])
        for k in list(st.session_state.keys()):
            del st.session_state[k]
        st.rerun()
    if c2.button("Cancelar", use_container_width=True):
        st.session_state["confirm_logout"] = False
        st.rerun()


# =========================
# UI: HOME (dashboard)
# =========================
def page_home():
    st.header("🏠 Inicio")
    user = usuario_actual()
    st.caption(f"Hola, {user['nombre']}. {formatear_fecha(date.today())}")

    st.fragment(run_every=config.REFRESH_DASHBOARD_S)(_home_body)()


def _home_body():
    datos = dashboard.cargar_datos_dashboard()
    errores = datos["errores"]

    est = datos["estadisticas"]
    if est is None:
        st.error(errores.get("estadisticas", "Error al cargar estadísticas"))
    else:
        texto, direccion = texto_cambio(est["cambio_completados"])
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Pedidos activos", formato_miles(est["pedidos_activos"]))
        c2.metric(
            "Completados hoy",
            formato_miles(est["completados_hoy"]),
            delta=None if direccion == "flat" else (texto if direccion == "up" else f"-{texto}"),
            delta_color="normal",
        )
        if direccion == "flat":
            c2.caption(texto)
        c3.metric("Pendientes", formato_miles(est["pendientes"]))
        c4.metric("Preparadores activos", formato_miles(est["preparadores_activos"]))

    st.divider()
    colA, colB = st.columns([3, 2])

    with colA:
        st.subheader("Actividad reciente")
        actividad = datos["actividad"]
        if actividad is None:
            st.error(errores.get("actividad", "Error al cargar actividades"))
        elif not actividad:
            st.info("No hay actividad reciente.")
        else:
            for a in actividad:
                st.markdown(f"{a['icono']} **{a['titulo']}**  \n<small>{a['tiempo']}</small>", unsafe_allow_html=True)

    with colB:
        st.subheader("Preparadores")
        preparadores = datos["preparadores"]
        if preparadores is None:
            st.error(errores.get("preparadores", "Error al cargar preparadores"))
        elif not preparadores:
            st.info("No hay preparadores activos.")
        else:
            df = pd.DataFrame(preparadores)[["NombreCompleto", "pedidos_activos", "estado"]]
            df.columns = ["Preparador", "Pedidos", "Estado"]
            st.dataframe(df, use_container_width=True, hide_index=True)

    st.caption(f"Actualizado {formatear_fecha_hora(datetime.now())} · cada {config.REFRESH_DASHBOARD_S}s")


# =========================
# UI: ASIGNAR HOJAS
# =========================
def page_asignar_hojas():
    st.header("🧾 Asignar pedidos")

    tab_pend, tab_prep = st.tabs(["📥 Por preparar", "🛠️ En preparación"])
    with tab_pend:
        st.fragment(run_every=config.REFRESH_HOJAS_S)(_hojas_pendientes)()
    with tab_prep:
        st.fragment(run_every=config.REFRESH_HOJAS_S)(_hojas_en_preparacion)()


def _hojas_pendientes():
    try:
        pedidos = hojas.pedidos_pendientes()
    except WmsError as e:
        st.error(f"Error al cargar pedidos: {e}")
        return

    if not pedidos:
        st.info("No hay pedidos por preparar.")
        return

    busqueda = st.text_input("Buscar tienda", key="hojas_buscar_pend")
    pedidos = filtrar(pedidos, busqueda, "NombreEmpresa")

    df = pd.DataFrame(pedidos)
    if df.empty:
        st.info("Ningún pedido coincide con la búsqueda.")
        return
    df["Fecha"] = df["Fecha"].apply(formatear_fecha_hora)
    df = df.rename(columns={"IdPedidos": "Pedido", "NombreEmpresa": "Tienda", "TotalCantidad": "Cantidad"})
    st.dataframe(df[["Pedido", "Fecha", "Tienda", "Cantidad", "Departamento"]], use_container_width=True, hide_index=True)

    opciones = {f"#{p['IdPedidos']} · {p['NombreEmpresa']}": p["IdPedidos"] for p in pedidos}
    sel = st.selectbox("Pedido", list(opciones.keys()), key="hojas_sel_pend")
    if st.button("▶️ Iniciar preparación", use_container_width=True, key="hojas_iniciar"):
        id_pedido = opciones[sel]
        try:
            r = hojas.iniciar_pedido(id_pedido)
        except WmsError as e:
            st.error(str(e))
            return
        msg = f"Pedido #{id_pedido} en preparación: {r['hojas']} hoja(s)."
        if r["sin_ubicacion"]:
            msg += f" {r['sin_ubicacion']} línea(s) sin ubicación quedaron fuera."
            flash("warn", msg)
        else:
            flash("ok", msg)
        st.rerun()


def _hojas_en_preparacion():
    try:
        pedidos = hojas.pedidos_en_preparacion()
    except WmsError as e:
        st.error(f"Error al cargar pedidos: {e}")
        return

    if not pedidos:
        st.info("No hay pedidos en preparación.")
        return

    for p in pedidos:
        c1, c2 = st.columns([3, 2])
        c1.markdown(
            f"**#{p['IdPedidos']} · {p['NombreEmpresa']}** · {p['NombreDepartamento']}  \n"
            f"<small>{formatear_fecha_hora(p['Fecha'])} · {p['Nohojas']} hoja(s) · "
            f"{p['hojasEnProceso']} en proceso</small>",
            unsafe_allow_html=True,
        )
        c2.progress(p["porcentaje"] / 100, text=f"{p['productosPreparados']}/{p['totalSKUs']} ({p['porcentaje']}%)")

    st.divider()
    opciones = {f"#{p['IdPedidos']} · {p['NombreEmpresa']}": p["IdPedidos"] for p in pedidos}
    sel = st.selectbox("Ver hojas del pedido", list(opciones.keys()), key="hojas_sel_prep")
    id_pedido = opciones[sel]

    try:
        lista = hojas.hojas_de_pedido(id_pedido)
        preparadores = hojas.preparadores_activos()
    except WmsError as e:
        st.error(f"Error al cargar hojas: {e}")
        return

    if not lista:
        st.info("Este pedido no tiene hojas.")
        return

    df = pd.DataFrame(lista)
    df["Estado"] = df["estado"].map(hojas.ETIQUETAS_HOJA)
    df["Inicio"] = df["FechaHoraInicio"].apply(formatear_fecha_hora)
    df["Fin"] = df["FechaHorafinalizo"].apply(formatear_fecha_hora)
    df = df.rename(columns={"NoHoja": "Hoja", "TotalSKUs": "SKUs", "TotalFardos": "Fardos", "preparador": "Preparador"})
    st.dataframe(
        df[["Hoja", "Sucursal", "SKUs", "Fardos", "Preparador", "Estado", "Inicio", "Fin"]],
        use_container_width=True,
        hide_index=True,
    )

    reasignables = [h for h in lista if h["reasignable"]]
    if not reasignables:
        st.success("Todas las hojas de este pedido están finalizadas.")
    else:
        st.subheader("Asignar hoja")
        hoja_opts = {
            f"Hoja {h['NoHoja']} · {h['preparador']} ({hojas.ETIQUETAS_HOJA[h['estado']]})": h["IdPreparacion"]
            for h in reasignables
        }
        hoja_sel = st.selectbox("Hoja", list(hoja_opts.keys()), key=f"hoja_sel_{id_pedido}")
        termino = st.text_input("Buscar preparador", key=f"prep_buscar_{id_pedido}")
        candidatos = filtrar(preparadores, termino, "NombreCompleto")
        if not candidatos:
            st.warning("No se encontraron preparadores.")
        else:
            prep_opts = {c["NombreCompleto"]: c["Id"] for c in candidatos}
            prep_sel = st.selectbox("Preparador", list(prep_opts.keys()), key=f"prep_sel_{id_pedido}")
            if st.button("✅ Asignar", use_container_width=True, key=f"asignar_hoja_{id_pedido}"):
                try:
                    hojas.asignar_hoja(hoja_opts[hoja_sel], prep_opts[prep_sel])
                except WmsError as e:
                    st.error(str(e))
                else:
                    flash("ok", f"{hoja_sel.split(' · ')[0]} asignada a {prep_sel}.")
                    st.rerun()

    with st.expander("📊 Progreso de preparación", expanded=False):
        _progreso_pedido(id_pedido)


def _progreso_pedido(id_pedido):
    try:
        prog = hojas.progreso_preparacion(id_pedido)
    except WmsError as e:
        st.error(f"Error al cargar progreso: {e}")
        return

    r = prog["resumen"]
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Hojas", r["total"])
    c2.metric("Finalizadas", r["finalizadas"])
    c3.metric("En proceso", r["en_proceso"])
    c4.metric("Sin asignar", r["sin_asignar"])
    st.progress(r["progreso"] / 100, text=f"Progreso general: {r['progreso']}%")

    for h in prog["hojas"]:
        st.markdown(f"**Hoja {h['NoHoja']}** · {h['preparador']}")
        st.progress(
            h["porcentaje"] / 100,
            text=f"{h['productosPreparados']}/{h['totalProductos']} productos ({h['porcentaje']}%)",
        )
        if h["mensaje"]:
            st.caption(h["mensaje"])


# =========================
# UI: ASIGNAR TARIMAS
# =========================
def page_asignar_tarimas():
    st.header("🪵 Asignar tarimas")

    ss = st.session_state
    if "tarimas_auto" not in ss:
        ss["tarimas_auto"] = True
    if "tarimas_pagina" not in ss:
        ss["tarimas_pagina"] = 1

    c1, c2 = st.columns([3, 1])
    c1.text_input("Buscar tienda", key="tarimas_buscar", on_change=lambda: ss.update(tarimas_pagina=1))
    c2.toggle("Auto-actualización", key="tarimas_auto")

    run_every = config.REFRESH_TARIMAS_S if ss["tarimas_auto"] else None
    st.fragment(run_every=run_every)(_tarimas_listado)()

    _tarimas_del_pedido()


def _cargar_pedidos_tarimas():
    """Refresco silencioso: si falla se conservan los datos anteriores."""
    ss = st.session_state
    try:
        ss["tarimas_pedidos"] = tarimas.pedidos_con_tarimas()
        ss["tarimas_ts"] = time.time()
        ss.pop("tarimas_error", None)
    except WmsError as e:
        logger.error("Error al refrescar pedidos con tarimas: %s", e)
        ss["tarimas_error"] = str(e)


def _tarimas_listado():
    ss = st.session_state
    _cargar_pedidos_tarimas()

    if "tarimas_pedidos" not in ss:
        st.error(f"Error al cargar pedidos: {ss.get('tarimas_error', '')}")
        return
    if ss.get("tarimas_error"):
        st.warning("No se pudo actualizar; se muestran los últimos datos.")

    estado = "Auto-actualización activa" if ss["tarimas_auto"] else "Auto-actualización pausada"
    ts = ss.get("tarimas_ts")
    ultima = hace_texto(time.time() - ts) if ts else "-"
    st.caption(f"{estado} · Última actualización: {ultima}")

    pedidos = tarimas.filtrar_pedidos(ss["tarimas_pedidos"], ss.get("tarimas_buscar", ""))
    est = tarimas.estadisticas(pedidos)
    c1, c2, c3 = st.columns(3)
    c1.metric("Pedidos", formato_miles(est["total_pedidos"]))
    c2.metric("Tarimas", formato_miles(est["total_tarimas"]))
    c3.metric("Cantidad total", formato_miles(est["total_cantidad"]))

    if not pedidos:
        st.info("No hay pedidos con tarimas.")
        return

    pag = tarimas.paginar(pedidos, ss["tarimas_pagina"])
    ss["tarimas_pagina"] = pag["pagina"]

    df = pd.DataFrame(pag["items"])
    df["Fecha"] = df["Fecha"].apply(formatear_fecha_hora)
    df["Progreso"] = df["PorcentajeProgreso"]
    df = df.rename(columns={
        "IdPedidos": "Pedido",
        "NombreEmpresa": "Tienda",
        "TotalCantidad": "Cantidad",
        "CantTarimas": "Tarimas",
        "EstadoPedido": "Estado",
    })
    st.dataframe(
        df[["Pedido", "Fecha", "Tienda", "Cantidad", "Tarimas", "Estado", "Progreso"]],
        use_container_width=True,
        hide_index=True,
        column_config={
            "Progreso": st.column_config.ProgressColumn("Progreso", min_value=0, max_value=100, format="%d%%"),
        },
    )
    st.caption(f"Mostrando {pag['desde']}–{pag['hasta']} de {pag['total']}")

    if pag["total_paginas"] > 1:
        cols = st.columns(len(pag["numeros"]) + 2)
        if cols[0].button("◀", disabled=pag["pagina"] == 1, key="tar_prev"):
            ss["tarimas_pagina"] = pag["pagina"] - 1
            st.rerun()
        for i, n in enumerate(pag["numeros"], start=1):
            if n == tarimas.ELIPSIS:
                cols[i].markdown("…")
            elif cols[i].button(str(n), disabled=n == pag["pagina"], key=f"tar_pag_{n}"):
                ss["tarimas_pagina"] = n
                st.rerun()
        if cols[-1].button("▶", disabled=pag["pagina"] == pag["total_paginas"], key="tar_next"):
            ss["tarimas_pagina"] = pag["pagina"] + 1
            st.rerun()


def _tarimas_del_pedido():
    ss = st.session_state
    pedidos = ss.get("tarimas_pedidos") or []
    if not pedidos:
        return

    st.divider()
    opciones = {f"#{p['IdPedidos']} · {p['NombreEmpresa']}": p for p in pedidos}
    sel = st.selectbox("Pedido", list(opciones.keys()), key="tarimas_sel_pedido")
    pedido = opciones[sel]
    id_pedido = pedido["IdPedidos"]

    try:
        data = tarimas.tarimas_de_pedido(id_pedido)
    except WmsError as e:
        st.error(f"Error al cargar tarimas: {e}")
        return

    lista = data["tarimas"]
    if not lista:
        st.info(f"El pedido #{id_pedido} no tiene tarimas pendientes de chequeo.")
        return

    prog = data["progreso"]
    tot = data["totales"]
    st.subheader(f"Tarimas del pedido #{id_pedido} · {pedido['NombreEmpresa']}")
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Fardos", formato_miles(tot["fardos"]))
    c2.metric("SKUs", formato_miles(tot["skus"]))
    c3.metric("Asignadas", tot["asignadas"])
    c4.metric("Sin asignar", tot["sin_asignar"])
    st.progress(
        prog["porcentaje"] / 100,
        text=f"Chequeo general: {prog['productosCheckeados']}/{prog['totalProductos']} ({prog['porcentaje']}%)",
    )

    seleccion = ss.setdefault(f"tarimas_seleccion_{id_pedido}", {})
    for t in lista:
        titulo = f"Tarima #{t['NoTarima']} · {t.get('UsuarioChequeo') or 'Sin asignar'} · {t['PorcentajeProgreso']}%"
        with st.expander(titulo, expanded=False):
            a, b, c = st.columns(3)
            a.metric("Fardos", formato_miles(t.get("CantidadFardos")))
            b.metric("SKUs", formato_miles(t.get("CantidadSkus")))
            c.metric("Finalizada", formatear_fecha_hora(t.get("FechaFinalizacion")))
            st.progress(t["PorcentajeProgreso"] / 100, text=f"{t['ProductosCheckeados']}/{t['TotalProductos']} chequeados")

            if t.get("IdUsuarioChequeo"):
                st.caption(f"Asignada a {t['UsuarioChequeo']}")
            else:
                _asignar_rechequeador(t, seleccion)

            if st.checkbox("Ver detalle", key=f"det_{t['IdTarima']}"):
                _detalle_tarima(t["NoTarima"], id_pedido)

    resumen = tarimas.resumen_asignaciones(lista, seleccion)
    if resumen["completo"]:
        st.success(f"Se han asignado correctamente {resumen['total']} tarimas.")
    else:
        st.info(f"Se han procesado {resumen['texto']}.")


def _asignar_rechequeador(tarima: dict, seleccion: dict):
    id_tarima = tarima["IdTarima"]
    termino = st.text_input("Buscar usuario...", key=f"rech_buscar_{id_tarima}")
    if len(termino.strip()) < config.MIN_BUSQUEDA:
        st.caption(f"Escribe al menos {config.MIN_BUSQUEDA} caracteres.")
        return
    try:
        usuarios = tarimas.buscar_rechequeadores(termino)
    except WmsError as e:
        st.error(f"Error al buscar usuarios: {e}")
        return
    if not usuarios:
        st.warning("No se encontraron usuarios.")
        return

    opts = {u["NombreCompleto"]: u["Id"] for u in usuarios}
    nombre = st.selectbox("Rechequeador", list(opts.keys()), key=f"rech_sel_{id_tarima}")
    if st.button("✅ Asignar tarima", key=f"rech_asignar_{id_tarima}", use_container_width=True):
        try:
            tarimas.asignar_tarima(id_tarima, opts[nombre])
        except WmsError as e:
            st.error(str(e))
            return
        seleccion[id_tarima] = opts[nombre]
        flash("ok", f"Tarima #{tarima['NoTarima']} asignada a {nombre}.")
        st.rerun()


def _detalle_tarima(no_tarima, id_pedido):
    try:
        rows = tarimas.detalle_tarima(no_tarima, id_pedido)
    except WmsError as e:
        st.error(f"Error al cargar detalle: {e}")
        return
    if not rows:
        st.info("La tarima no tiene productos.")
        return
    df = pd.DataFrame(rows)
    df["FechaPreparo"] = df["FechaPreparo"].apply(formatear_fecha_hora)
    df.columns = ["UPC", "Descripción", "Cantidad", "Confirmada", "Preparó", "Hora"]
    st.dataframe(df, use_container_width=True, hide_index=True)


# =========================
# UI: REPORTES
# =========================
def _rango_fechas(prefijo: str):
    c1, c2 = st.columns(2)
    desde = c1.date_input("Desde", value=date.today(), key=f"{prefijo}_desde", format="DD/MM/YYYY")
    hasta = c2.date_input("Hasta", value=date.today(), key=f"{prefijo}_hasta", format="DD/MM/YYYY")
    return desde, hasta


def page_reporte_preparadores():
    st.header("📈 Reporte de preparadores")

    st.fragment(run_every=config.REFRESH_REPORTES_S)(_estadisticas_del_dia)()

    desde, hasta = _rango_fechas("rep_prep")
    if st.button("🔎 Generar reporte", use_container_width=True, key="rep_prep_generar"):
        st.session_state["rep_prep_rango"] = (desde, hasta)

    if "rep_prep_rango" not in st.session_state:
        st.info("Selecciona el rango de fechas y genera el reporte.")
        return

    st.fragment(run_every=config.REFRESH_REPORTES_S)(_reporte_preparadores_body)()


def _estadisticas_del_dia():
    try:
        dia = reportes.estadisticas_del_dia()
    except WmsError as e:
        st.error(f"Error al cargar estadísticas: {e}")
        return
    c1, c2, c3 = st.columns(3)
    c1.metric("Por preparar hoy", formato_miles(dia["por_preparar"]))
    c2.metric("En preparación", formato_miles(dia["en_preparacion"]))
    c3.metric("Completados hoy", formato_miles(dia["completados"]))


def _reporte_preparadores_body():
    desde, hasta = st.session_state["rep_prep_rango"]
    try:
        df = reportes.productividad_preparadores(desde, hasta)
    except WmsError as e:
        st.error(str(e))
        return

    st.caption(f"Del {formatear_fecha(desde)} al {formatear_fecha(hasta)}")
    if df.empty:
        st.info("No hay datos para el rango seleccionado.")
        return

    tot = reportes.totales(df)
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Hojas", formato_miles(tot["TotalHojas"]))
    c2.metric("SKUs", formato_miles(tot["TotalSKUs"]))
    c3.metric("Fardos", formato_miles(tot["TotalFardos"]))
    c4.metric("Pedidos", formato_miles(tot["TotalPedidos"]))

    st.dataframe(
        df.drop(columns=["IdUsuariopreparo"]).rename(columns=reportes.ENCABEZADOS_CSV),
        use_container_width=True,
        hide_index=True,
    )

    graficos = reportes.datos_graficos(df)
    t1, t2, t3 = st.tabs(["Hojas", "SKUs", "Fardos"])
    for tab, metrica in zip((t1, t2, t3), ("TotalHojas", "TotalSKUs", "TotalFardos")):
        with tab:
            fig = px.bar(graficos[metrica], x="Preparador", y=metrica, title=reportes.ENCABEZADOS_CSV[metrica])
            st.plotly_chart(fig, use_container_width=True)

    c1, c2, c3 = st.columns(3)
    c1.download_button(
        "⬇️ CSV",
        data=reportes.exportar_csv(df),
        file_name=reportes.nombre_archivo(desde, hasta, "csv"),
        mime="text/csv",
        use_container_width=True,
    )
    c2.download_button(
        "⬇️ Excel",
        data=reportes.exportar_excel(df),
        file_name=reportes.nombre_archivo(desde, hasta, "xlsx"),
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        use_container_width=True,
    )
    c3.download_button(
        "⬇️ PDF",
        data=reportes.exportar_pdf(df, desde, hasta),
        file_name=reportes.nombre_archivo(desde, hasta, "pdf"),
        mime="application/pdf",
        use_container_width=True,
    )


def page_reporte_rechequeadores():
    st.header("✅ Reporte de rechequeadores")

    desde, hasta = _rango_fechas("rep_rech")
    try:
        df = reportes.productividad_rechequeadores(desde, hasta)
    except WmsError as e:
        st.error(str(e))
        return

    if df.empty:
        st.info("No hay tarimas chequeadas en el rango seleccionado.")
        return

    tot = reportes.totales(df, reportes.METRICAS_RECHEQUEO)
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Tarimas", formato_miles(tot["TotalTarimas"]))
    c2.metric("SKUs", formato_miles(tot["TotalSKUs"]))
    c3.metric("Fardos", formato_miles(tot["TotalFardos"]))
    c4.metric("Pedidos", formato_miles(tot["TotalPedidos"]))

    st.dataframe(
        df.drop(columns=["IdUsuarioChequeo"]).rename(columns=reportes.ENCABEZADOS_CSV),
        use_container_width=True,
        hide_index=True,
    )
    fig = px.bar(
        reportes.datos_graficos(df, "Rechequeador", ["TotalTarimas"])["TotalTarimas"],
        x="Rechequeador",
        y="TotalTarimas",
        title="Tarimas chequeadas",
    )
    st.plotly_chart(fig, use_container_width=True)
    st.download_button(
        "⬇️ CSV",
        data=reportes.exportar_csv(df),
        file_name=reportes.nombre_archivo(desde, hasta, "csv", prefijo="Reporte_Rechequeadores"),
        mime="text/csv",
        use_container_width=True,
    )


# =========================
# MAIN
# =========================
PAGINAS = [
    ("1) Inicio", None, page_home),
    ("2) Asignar hojas", config.PERMISO_ASIGNAR_HOJAS, page_asignar_hojas),
    ("3) Asignar tarimas", config.PERMISO_ASIGNAR_TARIMAS, page_asignar_tarimas),
    ("4) Reporte preparadores", config.PERMISO_REPORTES_PEDIDOS, page_reporte_preparadores),
    ("5) Reporte rechequeadores", config.PERMISO_REPORTE_RECHEQUEADORES, page_reporte_rechequeadores),
]


def main():
    st.set_page_config(page_title="Bodega – WMS", layout="wide")
    arranque()

    if usuario_actual() is None:
        page_login()
        return

    sidebar_sesion()
    user = usuario_actual()
    if user is None:
        return

    page = st.sidebar.radio("Menú", [p[0] for p in PAGINAS], index=0)
    render_flash()

    for nombre, permiso, fn in PAGINAS:
        if page != nombre:
            continue
        if permiso is not None and not auth.verificar_permiso(user["id"], permiso):
            st.error("No tienes permiso para acceder a esta sección.")
            return
        fn()
        return


if __name__ == "__main__":
    main()
