"""
Test configuration and shared fixtures for the bodega WMS tests.

Every test runs against a fresh SQLite file built with ``init_db()``;
no MySQL server is needed.
"""

import pytest

from wms_bodega import config
from wms_bodega.db import get_conn, init_db


@pytest.fixture
def db(tmp_path, monkeypatch):
    """Empty schema in a temporary SQLite file."""
    monkeypatch.setattr(config, "DB_ENGINE", "sqlite")
    monkeypatch.setattr(config, "SQLITE_PATH", str(tmp_path / "test_wms.db"))
    init_db()
    return config.SQLITE_PATH


def execute(sql, params=()):
    with get_conn() as conn:
        return conn.query(sql, params)


def last_id(table, column):
    with get_conn() as conn:
        return conn.scalar(f"SELECT MAX({column}) AS id FROM {table}")


@pytest.fixture
def sql(db):
    """Run a raw statement against the test database."""
    return execute


@pytest.fixture
def add_user(db):
    def _add(nombre="Juan Pérez", usuario="jperez", password="1234", nivel=3,
             activo=1, entrada=1, nombres=None, apellidos=None, permisos=()):
        execute(
            """
            INSERT INTO usuarios (NombreCompleto, Nombres, Apellidos, Usuario, Password, IdNivel, Activo, Entrada)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (nombre, nombres, apellidos, usuario, password, nivel, activo, entrada),
        )
        id_usuario = last_id("usuarios", "Id")
        for codigo in permisos:
            execute(
                "INSERT INTO transacciones_sistema (IdUsuario, Codigo, Estado) VALUES (?, ?, 1)",
                (id_usuario, codigo),
            )
        return id_usuario
    return _add


@pytest.fixture
def add_pedido(db):
    def _add(estado=4, fecha="2025-03-05 08:00:00", empresa="Tienda Centro", cantidad=10,
             departamento=1, nohojas=0, paginado=0, cant_tarimas=0, nombre_usuario=None):
        execute(
            """
            INSERT INTO pedidostienda_bodega
                (Fecha, NombreEmpresa, TotalCantidad, Departamento, Estado, NombreUsuario,
                 Paginado, Nohojas, CantTarimas)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (fecha, empresa, cantidad, departamento, estado, nombre_usuario, paginado, nohojas, cant_tarimas),
        )
        return last_id("pedidostienda_bodega", "IdPedidos")
    return _add


@pytest.fixture
def add_lineas(db):
    """Detail lines with a full location chain (paquete -> producto -> ubicación).

    ``niveles`` gives the location level of each line; the location id equals
    the line position so ordering within a level is predictable.
    """
    def _add(id_pedido, niveles, cantidad=2, con_ubicacion=True):
        with get_conn() as conn:
            previas = conn.scalar(
                "SELECT COUNT(*) AS total FROM detallepedidostienda_bodega WHERE IdConsolidado = ?",
                (id_pedido,),
            )
        ids = []
        for i, nivel in enumerate(niveles, start=previas + 1):
            upc = f"{id_pedido}-{i:04d}"
            if con_ubicacion:
                id_ubicacion = id_pedido * 1000 + i
                execute(
                    "INSERT INTO ubicacionesbodega (Id, Rack, Nivel, Descripcion) VALUES (?, ?, ?, ?)",
                    (id_ubicacion, "R01", nivel, f"R01-{nivel}"),
                )
                execute(
                    "INSERT INTO productos (Upc, Descripcion, IdUbicacionBodega) VALUES (?, ?, ?)",
                    (upc, f"Producto {i}", id_ubicacion),
                )
                execute(
                    "INSERT INTO productospaquetes (UPCPaquete, Upc) VALUES (?, ?)",
                    (f"P{upc}", upc),
                )
            execute(
                """
                INSERT INTO detallepedidostienda_bodega (IdConsolidado, UPC, UPCProducto, Descripcion, Cantidad)
                VALUES (?, ?, ?, ?, ?)
                """,
                (id_pedido, f"P{upc}", upc, f"Producto {i}", cantidad),
            )
            ids.append(last_id("detallepedidostienda_bodega", "Id"))
        return ids
    return _add


@pytest.fixture
def departamento(db):
    execute("INSERT INTO departamentos (Id, Nombre) VALUES (1, 'Abarrotes')")
    return 1
