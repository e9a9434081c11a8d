class WmsError(Exception):
    """Base de los errores que las páginas muestran al operador."""


class ConexionError(WmsError):
    pass


class ConsultaError(WmsError):
    pass


class PedidoNoEncontradoError(WmsError):
    pass


class EstadoPedidoInvalidoError(WmsError):
    pass


class PaginacionError(WmsError):
    pass


class HojaFinalizadaError(WmsError):
    pass


class FechasRequeridasError(WmsError):
    pass
