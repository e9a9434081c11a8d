"""Datos de demostración para correr la app sin el MySQL de la bodega."""
from datetime import datetime, timedelta

from . import config
from .db import get_conn, init_db
from .log import get_logger

logger = get_logger(__name__)

DEPARTAMENTOS = [(1, "Abarrotes"), (2, "Limpieza"), (3, "Bebidas")]

# (Id, Rack, Nivel)
UBICACIONES = [(i, f"R{(i - 1) // 4 + 1:02d}", (i - 1) % 4 + 1) for i in range(1, 13)]

USUARIOS = [
    # NombreCompleto, Usuario, Password, IdNivel, permisos
    ("Administrador Bodega", "admin", "admin", 1, (200, 201, 202, 203)),
    ("Juan Pérez", "jperez", "1234", 3, ()),
    ("María López", "mlopez", "1234", 3, ()),
    ("Carlos Ramírez", "cramirez", "1234", 3, ()),
    ("Ana García", "agarcia", "1234", 4, ()),
    ("Luis Hernández", "lhernandez", "1234", 4, ()),
]

EMPRESAS = ["Tienda Centro", "Tienda Zona 10", "Tienda Mixco", "Tienda Villa Nueva", "Tienda Antigua"]


def _ts(dt: datetime) -> str:
    return dt.strftime("%Y-%m-%d %H:%M:%S")


def seed_demo_data(ahora: datetime | None = None) -> bool:
    """Carga el set de demo si la base está vacía. Devuelve True si cargó algo."""
    if config.DB_ENGINE != "sqlite":
        logger.warning("seed_demo_data solo aplica a SQLite")
        return False

    init_db()
    ahora = ahora or datetime.now()

    with get_conn() as conn:
        if conn.scalar("SELECT COUNT(*) AS total FROM usuarios"):
            return False

        with conn.transaction():
            conn.executemany("INSERT INTO departamentos (Id, Nombre) VALUES (?, ?)", DEPARTAMENTOS)
            conn.executemany(
                "INSERT INTO ubicacionesbodega (Id, Rack, Nivel, Descripcion) VALUES (?, ?, ?, ?)",
                [(i, rack, nivel, f"{rack}-N{nivel}") for i, rack, nivel in UBICACIONES],
            )

            ids = {}
            for nombre, usuario, password, nivel, permisos in USUARIOS:
                nombres, _, apellidos = nombre.partition(" ")
                conn.query(
                    """
                    INSERT INTO usuarios (NombreCompleto, Nombres, Apellidos, Usuario, Password, IdNivel, Activo, Entrada)
                    VALUES (?, ?, ?, ?, ?, ?, 1, 1)
                    """,
                    (nombre, nombres, apellidos, usuario, password, nivel),
                )
                ids[usuario] = conn.scalar("SELECT Id FROM usuarios WHERE Usuario = ?", (usuario,))
                for codigo in permisos:
                    conn.query(
                        "INSERT INTO transacciones_sistema (IdUsuario, Codigo, Estado) VALUES (?, ?, 1)",
                        (ids[usuario], codigo),
                    )

            # Catálogo: 60 productos, cada uno con su paquete
            for n in range(1, 61):
                upc = f"7401{n:08d}"
                conn.query(
                    "INSERT INTO productos (Upc, Descripcion, IdUbicacionBodega) VALUES (?, ?, ?)",
                    (upc, f"Producto {n:02d}", (n - 1) % len(UBICACIONES) + 1),
                )
                conn.query(
                    "INSERT INTO productospaquetes (UPCPaquete, Upc) VALUES (?, ?)",
                    (f"P{upc}", upc),
                )

            estados = [
                (4, 0, 32),
                (4, 0, 10),
                (5, 0, 40),
                (6, 0, 20),
                (7, 0, 15),
                (7, 1, 12),
            ]
            for i, (estado, dias, lineas) in enumerate(estados):
                fecha = ahora - timedelta(days=dias, minutes=15 * (i + 1))
                conn.query(
                    """
                    INSERT INTO pedidostienda_bodega
                        (Fecha, NombreEmpresa, TotalCantidad, Departamento, Estado, NombreUsuario)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (_ts(fecha), EMPRESAS[i % len(EMPRESAS)], lineas * 3, i % 3 + 1, estado, "jperez"),
                )
                id_pedido = conn.scalar("SELECT MAX(IdPedidos) AS id FROM pedidostienda_bodega")
                conn.executemany(
                    """
                    INSERT INTO detallepedidostienda_bodega
                        (IdConsolidado, UPC, UPCProducto, Descripcion, Cantidad)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    [
                        (id_pedido, f"P7401{n:08d}", f"7401{n:08d}", f"Producto {n:02d}", (n % 5) + 1)
                        for n in range(1, lineas + 1)
                    ],
                )

    logger.info("Datos de demostración cargados en %s", config.SQLITE_PATH)
    _avanzar_pedidos(ids, ahora)
    return True


def _avanzar_pedidos(ids: dict, ahora: datetime):
    """Pagina los pedidos que ya salieron de "por preparar" y simula avance."""
    from .hojas import iniciar_pedido

    with get_conn() as conn:
        avanzados = conn.query(
            "SELECT IdPedidos, Estado FROM pedidostienda_bodega WHERE Estado > ? ORDER BY IdPedidos",
            (config.ESTADO_POR_PREPARAR,),
        )

    preparadores = [ids["jperez"], ids["mlopez"], ids["cramirez"]]
    for p in avanzados:
        estado_final = p["Estado"]
        with get_conn() as conn:
            conn.query(
                "UPDATE pedidostienda_bodega SET Estado = ? WHERE IdPedidos = ?",
                (config.ESTADO_POR_PREPARAR, p["IdPedidos"]),
            )
        iniciar_pedido(p["IdPedidos"])

        with get_conn() as conn, conn.transaction():
            hojas = conn.query(
                "SELECT Idpreparo, NoHoja FROM PreparacionPedidos WHERE IdPedido = ? ORDER BY NoHoja",
                (p["IdPedidos"],),
            )
            for i, h in enumerate(hojas):
                preparador = preparadores[i % len(preparadores)]
                terminada = estado_final > config.ESTADO_EN_PREPARACION or i == 0
                inicio = ahora - timedelta(hours=2)
                conn.query(
                    """
                    UPDATE PreparacionPedidos
                    SET IdUsuario = ?, FechaHoraInicio = ?, FechaHorafinalizo = ?
                    WHERE Idpreparo = ?
                    """,
                    (preparador, _ts(inicio), _ts(ahora - timedelta(hours=1)) if terminada else None, h["Idpreparo"]),
                )
                if terminada:
                    conn.query(
                        """
                        UPDATE detallepedidostienda_bodega
                        SET EstadoPreparacionproducto = ?, IdUsuariopreparo = ?, Fechahorapreparo = ?,
                            CantConfirmada = Cantidad, NoTarima = ?
                        WHERE IdConsolidado = ? AND NoHoja = ?
                        """,
                        (
                            config.PRODUCTO_CHEQUEADO if estado_final >= config.ESTADO_COMPLETADO else 1,
                            preparador,
                            _ts(ahora - timedelta(hours=1)),
                            h["NoHoja"],
                            p["IdPedidos"],
                            h["NoHoja"],
                        ),
                    )
                    conn.query(
                        """
                        INSERT INTO TarimasInventario
                            (IdPedido, NoTarima, FechaCreacion, FechaFinalizacion, CantidadFardos, CantidadSkus,
                             IdUsuarioChequeo, FechaHoraInicio, FechaHoraFin)
                        SELECT ?, ?, ?, ?, COALESCE(SUM(Cantidad), 0), COUNT(*), ?, ?, ?
                        FROM detallepedidostienda_bodega
                        WHERE IdConsolidado = ? AND NoTarima = ?
                        """,
                        (
                            p["IdPedidos"],
                            h["NoHoja"],
                            _ts(inicio),
                            _ts(ahora - timedelta(hours=1)),
                            ids["agarcia"] if estado_final >= config.ESTADO_COMPLETADO else None,
                            _ts(ahora - timedelta(minutes=50)) if estado_final >= config.ESTADO_COMPLETADO else None,
                            _ts(ahora - timedelta(minutes=20)) if estado_final >= config.ESTADO_COMPLETADO else None,
                            p["IdPedidos"],
                            h["NoHoja"],
                        ),
                    )

            conn.query(
                """
                UPDATE pedidostienda_bodega
                SET Estado = ?,
                    CantTarimas = (SELECT COUNT(*) FROM TarimasInventario WHERE TarimasInventario.IdPedido = ?)
                WHERE IdPedidos = ?
                """,
                (estado_final, p["IdPedidos"], p["IdPedidos"]),
            )
