"""
Tests for login credential checks and permission lookups.
"""

import pytest

from wms_bodega import auth, config
from wms_bodega.errores import ConsultaError


class TestVerificarCredenciales:

    def test_ok_returns_session(self, add_user):
        id_usuario = add_user(nombre="Administrador Bodega", usuario="admin", password="s3cret", nivel=1)
        resultado, sesion = auth.verificar_credenciales("  admin ", "s3cret")
        assert resultado == auth.OK
        assert sesion == {"id": id_usuario, "nombre": "Administrador Bodega", "usuario": "admin"}

    def test_blank_fields_do_not_touch_db(self, monkeypatch):
        def boom(*_):
            raise AssertionError("no debería consultar la base")
        monkeypatch.setattr(auth, "buscar_usuario", boom)

        assert auth.verificar_credenciales("", "x") == (auth.CAMPOS_INCOMPLETOS, None)
        assert auth.verificar_credenciales("   ", "x") == (auth.CAMPOS_INCOMPLETOS, None)
        assert auth.verificar_credenciales("admin", "") == (auth.CAMPOS_INCOMPLETOS, None)

    def test_unknown_user(self, add_user):
        add_user(usuario="admin")
        assert auth.verificar_credenciales("otro", "1234") == (auth.USUARIO_NO_ENCONTRADO, None)

    @pytest.mark.parametrize("activo, entrada", [(0, 1), (1, 0)])
    def test_inactive_or_blocked_user_is_not_found(self, add_user, activo, entrada):
        add_user(usuario="admin", password="1234", activo=activo, entrada=entrada)
        resultado, _ = auth.verificar_credenciales("admin", "1234")
        assert resultado == auth.USUARIO_NO_ENCONTRADO

    def test_wrong_password(self, add_user):
        add_user(usuario="admin", password="1234")
        assert auth.verificar_credenciales("admin", "12345") == (auth.PASSWORD_INCORRECTA, None)

    def test_name_falls_back_to_username(self, add_user):
        add_user(nombre=None, usuario="bodega1", password="1234")
        _, sesion = auth.verificar_credenciales("bodega1", "1234")
        assert sesion["nombre"] == "bodega1"

    def test_database_errors_propagate(self, db, sql):
        sql("DROP TABLE usuarios")
        with pytest.raises(ConsultaError):
            auth.verificar_credenciales("admin", "1234")


class TestVerificarPermiso:

    def test_granted(self, add_user):
        id_usuario = add_user(permisos=(config.PERMISO_ASIGNAR_HOJAS,))
        assert auth.verificar_permiso(id_usuario, config.PERMISO_ASIGNAR_HOJAS)
        assert not auth.verificar_permiso(id_usuario, config.PERMISO_ASIGNAR_TARIMAS)

    def test_disabled_permission(self, add_user, sql):
        id_usuario = add_user(permisos=(config.PERMISO_REPORTES_PEDIDOS,))
        sql("UPDATE transacciones_sistema SET Estado = 0 WHERE IdUsuario = ?", (id_usuario,))
        assert not auth.verificar_permiso(id_usuario, config.PERMISO_REPORTES_PEDIDOS)

    def test_no_user(self, db):
        assert not auth.verificar_permiso(None, config.PERMISO_ASIGNAR_HOJAS)

    def test_errors_mean_no_permission(self, add_user, sql):
        id_usuario = add_user(permisos=(config.PERMISO_ASIGNAR_HOJAS,))
        sql("DROP TABLE transacciones_sistema")
        assert not auth.verificar_permiso(id_usuario, config.PERMISO_ASIGNAR_HOJAS)
