"""
Tests for pallet listing, pagination of the order table and checker assignment.
"""

import pytest

from wms_bodega import tarimas
from wms_bodega.errores import WmsError
from wms_bodega.formato import COLOR_GRIS, COLOR_ROJO

E = tarimas.ELIPSIS


@pytest.fixture
def escenario(add_user, add_pedido, sql):
    juan = add_user(nombre="Juan Pérez", usuario="jperez", nivel=3)
    ana = add_user(nombre="Ana García", usuario="agarcia", nivel=4)
    add_user(nombre="Luis Hernández", usuario="lhernandez", nivel=4)
    add_user(nombre="Ana Baja", usuario="abaja", nivel=4, activo=0)

    pedido = add_pedido(estado=5, fecha="2025-03-05 09:00:00", empresa="Tienda Centro",
                        cantidad=40, nohojas=2, cant_tarimas=3)
    add_pedido(estado=6, fecha="2025-03-05 10:00:00", empresa="Tienda Mixco", cantidad=15, nohojas=1, cant_tarimas=1)
    add_pedido(estado=5, fecha="2025-03-05 11:00:00", empresa="Sin hojas", nohojas=0)
    add_pedido(estado=7, fecha="2025-03-05 12:00:00", empresa="Completado", nohojas=1)

    # tarima 1: 4 líneas, 1 chequeada; tarima 2: 2 líneas sin chequear
    lineas = [
        ("B producto", 1, 5),
        ("A producto", 1, 1),
        ("C producto", 1, 1),
        ("D producto", 1, 1),
        ("E producto", 2, 1),
        ("F producto", 2, 1),
    ]
    for descripcion, no_tarima, estado in lineas:
        sql(
            """
            INSERT INTO detallepedidostienda_bodega
                (IdConsolidado, UPC, UPCProducto, Descripcion, Cantidad, CantConfirmada,
                 EstadoPreparacionproducto, IdUsuariopreparo, Fechahorapreparo, NoTarima)
            VALUES (?, ?, ?, ?, 3, 3, ?, ?, '2025-03-05 09:30:00', ?)
            """,
            (pedido, f"P{descripcion}", descripcion, descripcion, estado, juan, no_tarima),
        )

    tarimas_rows = [
        # NoTarima, FechaFinalizacion, IdUsuarioChequeo, FechaHoraInicio, FechaHoraFin
        (2, "2025-03-05 10:00:00", None, None, None),
        (1, "2025-03-05 10:00:00", ana, "2025-03-05 10:10:00", None),
        (3, "2025-03-05 10:00:00", ana, "2025-03-05 10:10:00", "2025-03-05 10:40:00"),
        (4, None, None, None, None),
    ]
    for no_tarima, fin, usuario, inicio, fin_chequeo in tarimas_rows:
        sql(
            """
            INSERT INTO TarimasInventario
                (IdPedido, NoTarima, FechaCreacion, FechaFinalizacion, CantidadFardos, CantidadSkus,
                 IdUsuarioChequeo, FechaHoraInicio, FechaHoraFin)
            VALUES (?, ?, '2025-03-05 09:00:00', ?, ?, ?, ?, ?, ?)
            """,
            (pedido, no_tarima, fin, no_tarima * 10, no_tarima * 2, usuario, inicio, fin_chequeo),
        )
    return {"pedido": pedido, "ana": ana, "juan": juan}


class TestPedidosConTarimas:

    def test_only_orders_in_preparation_or_check_with_sheets(self, escenario):
        pedidos = tarimas.pedidos_con_tarimas()
        assert [p["NombreEmpresa"] for p in pedidos] == ["Tienda Mixco", "Tienda Centro"]
        assert pedidos[0]["EstadoPedido"] == "En chequeo"

    def test_check_progress(self, escenario):
        centro = tarimas.pedidos_con_tarimas()[1]
        assert centro["TotalProductos"] == 6
        assert centro["ProductosCheckeados"] == 1
        assert centro["PorcentajeProgreso"] == 17

    def test_search_and_stats(self, escenario):
        pedidos = tarimas.pedidos_con_tarimas()
        assert [p["NombreEmpresa"] for p in tarimas.filtrar_pedidos(pedidos, "mix")] == ["Tienda Mixco"]
        assert tarimas.filtrar_pedidos(pedidos, "") == pedidos
        assert tarimas.estadisticas(pedidos) == {"total_pedidos": 2, "total_tarimas": 4, "total_cantidad": 55}


class TestPaginacion:

    def test_slices_and_bounds(self):
        items = list(range(60))
        pag = tarimas.paginar(items, 2)
        assert pag["items"] == list(range(25, 50))
        assert (pag["pagina"], pag["total_paginas"], pag["desde"], pag["hasta"], pag["total"]) == (2, 3, 26, 50, 60)

    @pytest.mark.parametrize("pedida, efectiva", [(0, 1), (-4, 1), (99, 3), ("2", 2)])
    def test_page_is_clamped(self, pedida, efectiva):
        assert tarimas.paginar(list(range(60)), pedida)["pagina"] == efectiva

    def test_last_page_is_partial(self):
        pag = tarimas.paginar(list(range(60)), 3)
        assert pag["items"] == list(range(50, 60))
        assert (pag["desde"], pag["hasta"]) == (51, 60)

    def test_empty(self):
        pag = tarimas.paginar([], 5)
        assert pag["items"] == []
        assert (pag["pagina"], pag["total_paginas"], pag["desde"], pag["hasta"]) == (1, 0, 0, 0)
        assert pag["numeros"] == []

    @pytest.mark.parametrize("pagina, total, esperado", [
        (1, 5, [1, 2, 3, 4, 5]),
        (3, 7, [1, 2, 3, 4, 5, 6, 7]),
        (1, 10, [1, 2, 3, 4, 5, E, 10]),
        (4, 8, [1, 2, 3, 4, 5, E, 8]),
        (5, 10, [1, E, 3, 4, 5, 6, 7, E, 10]),
        (6, 12, [1, E, 4, 5, 6, 7, 8, E, 12]),
        (10, 12, [1, E, 8, 9, 10, 11, 12]),
    ])
    def test_page_numbers(self, pagina, total, esperado):
        assert tarimas.numeros_de_pagina(pagina, total) == esperado


class TestTarimasDePedido:

    def test_pending_pallets_only(self, escenario):
        data = tarimas.tarimas_de_pedido(escenario["pedido"])
        lista = data["tarimas"]

        assert [t["NoTarima"] for t in lista] == [1, 2]
        assert lista[0]["UsuarioChequeo"] == "Ana García"
        assert lista[1]["UsuarioChequeo"] is None

    def test_per_pallet_and_order_progress(self, escenario):
        data = tarimas.tarimas_de_pedido(escenario["pedido"])
        t1, t2 = data["tarimas"]

        assert (t1["TotalProductos"], t1["ProductosCheckeados"], t1["PorcentajeProgreso"]) == (4, 1, 25)
        assert (t2["TotalProductos"], t2["ProductosCheckeados"], t2["PorcentajeProgreso"]) == (2, 0, 0)
        assert t2["color"] == COLOR_GRIS
        assert data["progreso"] == {
            "totalProductos": 6,
            "productosCheckeados": 1,
            "porcentaje": 17,
            "color": COLOR_ROJO,
        }

    def test_totals(self, escenario):
        data = tarimas.tarimas_de_pedido(escenario["pedido"])
        assert data["totales"] == {"fardos": 30, "skus": 6, "asignadas": 1, "sin_asignar": 1}

    def test_detail_sorted_by_description(self, escenario):
        rows = tarimas.detalle_tarima(1, escenario["pedido"])
        assert [r["Descripcion"] for r in rows] == ["A producto", "B producto", "C producto", "D producto"]
        assert rows[0]["NombreCompleto"] == "Juan Pérez"
        assert rows[0]["FechaPreparo"] == "2025-03-05 09:30:00"


class TestRechequeadores:

    def test_short_terms_return_nothing(self, escenario):
        assert tarimas.buscar_rechequeadores("a") == []
        assert tarimas.buscar_rechequeadores("  ") == []

    def test_smart_search_on_active_checkers(self, escenario):
        assert [u["NombreCompleto"] for u in tarimas.buscar_rechequeadores("ana")] == ["Ana García"]
        assert [u["NombreCompleto"] for u in tarimas.buscar_rechequeadores("lh")] == ["Luis Hernández"]

    def test_assign(self, escenario, sql):
        id_tarima = tarimas.tarimas_de_pedido(escenario["pedido"])["tarimas"][1]["IdTarima"]
        tarimas.asignar_tarima(id_tarima, escenario["ana"])
        row = sql("SELECT IdUsuarioChequeo FROM TarimasInventario WHERE IdTarima = ?", (id_tarima,))[0]
        assert row["IdUsuarioChequeo"] == escenario["ana"]

    def test_assign_requires_user_and_existing_pallet(self, escenario):
        with pytest.raises(WmsError):
            tarimas.asignar_tarima(1, None)
        with pytest.raises(WmsError):
            tarimas.asignar_tarima(99999, escenario["ana"])


class TestResumenAsignaciones:

    TARIMAS = [
        {"IdTarima": 1, "IdUsuarioChequeo": 5},
        {"IdTarima": 2, "IdUsuarioChequeo": None},
        {"IdTarima": 3, "IdUsuarioChequeo": None},
    ]

    def test_counts_saved_and_selected(self):
        r = tarimas.resumen_asignaciones(self.TARIMAS, {2: 7})
        assert r == {"asignadas": 2, "total": 3, "completo": False, "texto": "2 de 3 tarimas"}

    def test_complete(self):
        r = tarimas.resumen_asignaciones(self.TARIMAS, {2: 7, 3: 8})
        assert r["completo"] is True

    def test_empty(self):
        assert tarimas.resumen_asignaciones([])["completo"] is False

