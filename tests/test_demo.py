"""
Smoke tests: the demo data set drives every page's queries end to end.
"""

from datetime import date, datetime

import pytest

from wms_bodega import auth, config, dashboard, hojas, reportes, tarimas
from wms_bodega.demo import seed_demo_data

AHORA = datetime(2025, 3, 5, 12, 0, 0)


@pytest.fixture
def demo(db):
    assert seed_demo_data(ahora=AHORA) is True
    return AHORA


def test_seed_only_once(demo):
    assert seed_demo_data(ahora=AHORA) is False


def test_admin_can_log_in_with_every_permission(demo):
    resultado, sesion = auth.verificar_credenciales("admin", "admin")
    assert resultado == auth.OK
    for codigo in (
        config.PERMISO_ASIGNAR_HOJAS,
        config.PERMISO_REPORTES_PEDIDOS,
        config.PERMISO_ASIGNAR_TARIMAS,
        config.PERMISO_REPORTE_RECHEQUEADORES,
    ):
        assert auth.verificar_permiso(sesion["id"], codigo)


def test_dashboard(demo):
    datos = dashboard.cargar_datos_dashboard(date(2025, 3, 5))
    assert datos["errores"] == {}
    assert datos["estadisticas"]["pendientes"] == 2
    assert datos["estadisticas"]["completados_hoy"] == 1
    assert datos["estadisticas"]["completados_ayer"] == 1


def test_orders_and_sheets(demo):
    assert len(hojas.pedidos_pendientes()) == 2
    [en_prep] = hojas.pedidos_en_preparacion()
    assert en_prep["Nohojas"] == 2
    assert en_prep["productosPreparados"] == 25

    id_pedido = hojas.pedidos_pendientes()[0]["IdPedidos"]
    r = hojas.iniciar_pedido(id_pedido)
    assert r["hojas"] >= 1
    assert r["sin_ubicacion"] == 0


def test_pallets(demo):
    pedidos = tarimas.pedidos_con_tarimas()
    assert len(pedidos) == 2
    pendientes = [t for p in pedidos for t in tarimas.tarimas_de_pedido(p["IdPedidos"])["tarimas"]]
    assert pendientes
    assert all(t["IdUsuarioChequeo"] is None for t in pendientes)


def test_reports(demo):
    df = reportes.productividad_preparadores(date(2025, 3, 5), date(2025, 3, 5))
    assert reportes.totales(df)["TotalHojas"] == 4
    rech = reportes.productividad_rechequeadores(date(2025, 3, 5), date(2025, 3, 5))
    assert rech["Rechequeador"].tolist() == ["Ana García"]
    assert rech.iloc[0]["TotalTarimas"] == 2


def test_not_for_mysql(monkeypatch):
    monkeypatch.setattr(config, "DB_ENGINE", "mysql")
    assert seed_demo_data() is False
