"""
Tests for the home dashboard queries.
"""

from datetime import date, datetime

import pytest

from wms_bodega import dashboard

HOY = date(2025, 3, 5)


@pytest.fixture
def escenario(add_user, add_pedido):
    add_user(nombre="Juan Pérez", usuario="jperez", nivel=3)
    add_user(nombre="María López", usuario="mlopez", nivel=3)
    add_user(nombre="Inactivo", usuario="inactivo", nivel=3, activo=0)
    add_user(nombre="Ana García", usuario="agarcia", nivel=4)

    add_pedido(estado=4, fecha="2025-03-05 07:00:00")
    add_pedido(estado=4, fecha="2025-03-01 07:00:00")
    add_pedido(estado=5, fecha="2025-03-05 08:00:00", nombre_usuario="jperez")
    add_pedido(estado=6, fecha="2025-03-05 09:00:00", nombre_usuario="jperez")
    add_pedido(estado=7, fecha="2025-03-05 10:00:00")
    add_pedido(estado=7, fecha="2025-03-05 11:00:00")
    add_pedido(estado=7, fecha="2025-03-04 11:00:00")
    add_pedido(estado=2, fecha="2025-03-05 12:00:00")


class TestEstadisticas:

    def test_counts(self, escenario):
        est = dashboard.cargar_estadisticas(HOY)
        assert est == {
            "pedidos_activos": 4,
            "completados_hoy": 2,
            "completados_ayer": 1,
            "pendientes": 2,
            "preparadores_activos": 2,
            "cambio_completados": 100,
        }

    def test_empty_database(self, db):
        est = dashboard.cargar_estadisticas(HOY)
        assert est["pedidos_activos"] == 0
        assert est["cambio_completados"] == 0


class TestActividad:

    def test_newest_first_with_labels(self, escenario):
        ahora = datetime(2025, 3, 5, 12, 0, 0)
        actividad = dashboard.cargar_actividad_reciente(limit=3, ahora=ahora)

        assert [a["Estado"] for a in actividad] == [7, 7, 6]
        primero = actividad[0]
        assert primero["titulo"] == f"Pedido #{primero['IdPedidos']} - Completado"
        assert primero["tiempo"] == "Hace 1 hora"
        assert (primero["icono"], primero["clase"]) == ("✅", "success")

    def test_ignores_other_statuses(self, escenario):
        actividad = dashboard.cargar_actividad_reciente(limit=50)
        assert len(actividad) == 7
        assert all(a["Estado"] in (4, 5, 6, 7) for a in actividad)


class TestPreparadores:

    def test_active_orders_per_picker(self, escenario):
        preparadores = dashboard.cargar_preparadores_activos()
        por_usuario = {p["Usuario"]: p for p in preparadores}

        assert set(por_usuario) == {"jperez", "mlopez"}
        assert preparadores[0]["Usuario"] == "jperez"
        assert por_usuario["jperez"]["pedidos_activos"] == 2
        assert por_usuario["jperez"]["estado"] == "Activo"
        assert por_usuario["mlopez"]["estado"] == "En descanso"


class TestCargarDatosDashboard:

    def test_all_sections(self, escenario):
        datos = dashboard.cargar_datos_dashboard(HOY)
        assert datos["errores"] == {}
        assert datos["estadisticas"]["pendientes"] == 2
        assert len(datos["actividad"]) == 7
        assert len(datos["preparadores"]) == 2

    def test_sections_fail_independently(self, escenario, sql):
        sql("DROP TABLE usuarios")
        datos = dashboard.cargar_datos_dashboard(HOY)

        assert datos["estadisticas"] is None
        assert datos["preparadores"] is None
        assert datos["actividad"] is not None
        assert datos["errores"] == {
            "estadisticas": "Error al cargar estadísticas",
            "preparadores": "Error al cargar preparadores",
        }
