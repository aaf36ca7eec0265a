from datetime import timedelta

import pytest

from app.errors import AuthorizationError, NotFoundError, ValidationError
from app.models.notificacion import Notificacion, TipoNotificacion
from app.services import notificacion_service as svc


def test_notificar_crea_no_leida(db_session, aprendiz):
    notificacion = svc.notificar(db_session, aprendiz.id, "success", "Hola", "Bienvenido")
    assert notificacion.id is not None
    assert notificacion.tipo == TipoNotificacion.SUCCESS
    assert notificacion.leida is False


def test_notificar_tipo_invalido(db_session, aprendiz):
    with pytest.raises(ValidationError):
        svc.notificar(db_session, aprendiz.id, "warning", "Hola", "Bienvenido")


def test_notificar_sin_commit_queda_en_la_transaccion(db_session, aprendiz):
    svc.notificar(db_session, aprendiz.id, TipoNotificacion.INFO, "A", "a", commit=False)
    db_session.rollback()
    assert db_session.query(Notificacion).count() == 0


def test_marcar_leida_es_idempotente(db_session, aprendiz):
    notificacion = svc.notificar(db_session, aprendiz.id, TipoNotificacion.INFO, "A", "a")
    assert svc.marcar_leida(db_session, notificacion.id, aprendiz.id).leida is True
    assert svc.marcar_leida(db_session, notificacion.id, aprendiz.id).leida is True
    assert svc.contar_no_leidas(db_session, aprendiz.id) == 0


def test_marcar_leida_ajena_o_inexistente(db_session, aprendiz, otro_aprendiz):
    notificacion = svc.notificar(db_session, aprendiz.id, TipoNotificacion.INFO, "A", "a")
    with pytest.raises(AuthorizationError):
        svc.marcar_leida(db_session, notificacion.id, otro_aprendiz.id)
    with pytest.raises(NotFoundError):
        svc.marcar_leida(db_session, 4040, aprendiz.id)
    db_session.refresh(notificacion)
    assert notificacion.leida is False


def test_marcar_todas_solo_afecta_al_usuario(db_session, aprendiz, otro_aprendiz):
    for i in range(3):
        svc.notificar(db_session, aprendiz.id, TipoNotificacion.INFO, f"T{i}", "m")
    svc.notificar(db_session, otro_aprendiz.id, TipoNotificacion.INFO, "Otro", "m")

    assert svc.marcar_todas_leidas(db_session, aprendiz.id) == 3
    assert svc.contar_no_leidas(db_session, aprendiz.id) == 0
    assert svc.contar_no_leidas(db_session, otro_aprendiz.id) == 1
    assert svc.marcar_todas_leidas(db_session, aprendiz.id) == 0


def test_listar_mas_recientes_primero(db_session, aprendiz):
    primera = svc.notificar(db_session, aprendiz.id, TipoNotificacion.INFO, "Primera", "m")
    segunda = svc.notificar(db_session, aprendiz.id, TipoNotificacion.INFO, "Segunda", "m")
    primera.created_at = segunda.created_at - timedelta(minutes=5)
    db_session.commit()

    filas, total = svc.listar_notificaciones(db_session, aprendiz.id)
    assert total == 2
    assert [n.titulo for n in filas] == ["Segunda", "Primera"]


def test_listar_solo_no_leidas(db_session, aprendiz):
    leida = svc.notificar(db_session, aprendiz.id, TipoNotificacion.INFO, "Vieja", "m")
    svc.notificar(db_session, aprendiz.id, TipoNotificacion.INFO, "Nueva", "m")
    svc.marcar_leida(db_session, leida.id, aprendiz.id)

    filas, total = svc.listar_notificaciones(db_session, aprendiz.id, solo_no_leidas=True)
    assert total == 1
    assert filas[0].titulo == "Nueva"


def test_eliminar_notificacion(db_session, aprendiz, otro_aprendiz):
    notificacion = svc.notificar(db_session, aprendiz.id, TipoNotificacion.INFO, "A", "a")
    with pytest.raises(AuthorizationError):
        svc.eliminar_notificacion(db_session, notificacion.id, otro_aprendiz.id)
    svc.eliminar_notificacion(db_session, notificacion.id, aprendiz.id)
    assert db_session.query(Notificacion).count() == 0


def test_tras_marcar_todas_no_quedan_no_leidas(db_session, aprendiz):
    for i in range(2):
        svc.notificar(db_session, aprendiz.id, TipoNotificacion.INFO, f"T{i}", "m")
    svc.marcar_todas_leidas(db_session, aprendiz.id)

    filas, total = svc.listar_notificaciones(db_session, aprendiz.id, solo_no_leidas=True)
    assert filas == []
    assert total == 0
