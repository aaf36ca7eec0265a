from datetime import datetime, timedelta, timezone

from app.models.certificado import Certificado


def _crear(client, usuario, tipo_id, observaciones=None):
    payload = {"certificate_type_id": tipo_id}
    if observaciones:
        payload["observaciones"] = observaciones
    return client.post("/certificates", json=payload, headers=usuario.headers)


def test_health(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["message"] == "API funcionando!"


def test_sin_token_es_401(client):
    response = client.get("/certificates")
    assert response.status_code == 401
    assert response.json() == {"error": "Token de autorización requerido"}


def test_token_invalido_es_401(client):
    response = client.get("/certificates", headers={"Authorization": "Bearer no-es-un-jwt"})
    assert response.status_code == 401
    assert response.json()["error"] == "Token inválido"


def test_metodo_no_soportado_es_405(client, aprendiz):
    response = client.patch("/certificates/1", json={}, headers=aprendiz.headers)
    assert response.status_code == 405
    assert response.json() == {"error": "Método no permitido"}


def test_listar_tipos_activos(client, aprendiz):
    response = client.get("/certificates/types", headers=aprendiz.headers)
    assert response.status_code == 200
    nombres = [t["nombre"] for t in response.json()["data"]]
    assert "Certificado Académico" in nombres


def test_crear_tipo_requiere_staff(client, aprendiz, funcionario):
    payload = {"nombre": "Paz y Salvo", "tiempo_procesamiento_dias": 1}
    assert client.post("/certificates/types", json=payload, headers=aprendiz.headers).status_code == 403

    response = client.post("/certificates/types", json=payload, headers=funcionario.headers)
    assert response.status_code == 201
    tipo_id = response.json()["data"]["id"]

    response = client.put(f"/certificates/types/{tipo_id}", json={"activo": False}, headers=funcionario.headers)
    assert response.status_code == 200
    assert response.json()["data"]["activo"] is False


def test_escenario_creacion_pendiente_con_notificacion(client, aprendiz, tipo_academico):
    response = _crear(client, aprendiz, tipo_academico.id, "Para convocatoria")
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Solicitud creada exitosamente"
    data = body["data"]
    assert data["estado"] == "pendiente"
    assert data["user_id"] == aprendiz.id
    assert data["certificate_types"]["nombre"] == "Certificado Académico"
    assert data["profiles"]["email"] == aprendiz.email
    assert data["fecha_entrega"] is None

    notificaciones = client.get("/notifications", headers=aprendiz.headers).json()
    assert notificaciones["count"] == 1
    assert notificaciones["unread_count"] == 1
    assert notificaciones["data"][0]["titulo"] == "Solicitud Creada"
    assert notificaciones["data"][0]["tipo"] == "info"


def test_crear_sin_tipo_es_400(client, aprendiz):
    response = client.post("/certificates", json={}, headers=aprendiz.headers)
    assert response.status_code == 400
    assert response.json() == {"error": "certificate_type_id es requerido"}


def test_crear_con_tipo_mal_formado_es_400(client, aprendiz):
    response = client.post("/certificates", json={"certificate_type_id": "abc"}, headers=aprendiz.headers)
    assert response.status_code == 400
    assert "certificate_type_id" in response.json()["error"]


def test_escenario_staff_completa_y_notifica_exito(client, aprendiz, funcionario, tipo_academico):
    certificado_id = _crear(client, aprendiz, tipo_academico.id).json()["data"]["id"]

    response = client.put(
        f"/certificates/{certificado_id}", json={"estado": "completado"}, headers=funcionario.headers
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["estado"] == "completado"
    assert data["fecha_entrega"] is not None

    notificaciones = client.get("/notifications", headers=aprendiz.headers).json()["data"]
    assert notificaciones[0]["tipo"] == "success"
    assert notificaciones[0]["titulo"] == "Actualización de Solicitud"


def test_escenario_aprendiz_no_puede_cambiar_estado(client, aprendiz, otro_aprendiz, tipo_academico):
    certificado_id = _crear(client, aprendiz, tipo_academico.id).json()["data"]["id"]
    response = client.put(
        f"/certificates/{certificado_id}", json={"estado": "completado"}, headers=otro_aprendiz.headers
    )
    assert response.status_code == 403
    assert "error" in response.json()


def test_escenarios_borrado_de_completada(client, aprendiz, funcionario, admin, tipo_academico):
    certificado_id = _crear(client, aprendiz, tipo_academico.id).json()["data"]["id"]
    client.put(f"/certificates/{certificado_id}", json={"estado": "completado"}, headers=funcionario.headers)

    response = client.delete(f"/certificates/{certificado_id}", headers=aprendiz.headers)
    assert response.status_code == 403
    assert response.json() == {"error": "Solo se pueden eliminar solicitudes pendientes"}

    response = client.delete(f"/certificates/{certificado_id}", headers=admin.headers)
    assert response.status_code == 200
    assert client.get(f"/certificates/{certificado_id}", headers=admin.headers).status_code == 404


def test_escenario_staff_lista_pendientes_paginadas(
    client, db_session, aprendiz, otro_aprendiz, funcionario, tipo_academico
):
    for usuario in (aprendiz, otro_aprendiz):
        for _ in range(6):
            _crear(client, usuario, tipo_academico.id)
    en_proceso = _crear(client, aprendiz, tipo_academico.id).json()["data"]["id"]
    client.put(f"/certificates/{en_proceso}", json={"estado": "en_proceso"}, headers=funcionario.headers)

    # Fechas distintas para que el orden sea verificable
    base = datetime(2024, 5, 1, tzinfo=timezone.utc)
    for i, certificado in enumerate(db_session.query(Certificado).order_by(Certificado.id).all()):
        certificado.fecha_solicitud = base + timedelta(hours=i)
    db_session.commit()

    response = client.get(
        "/certificates",
        params={"estado": "pendiente", "limit": 10, "offset": 0},
        headers=funcionario.headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 12
    assert len(body["data"]) == 10
    assert {c["estado"] for c in body["data"]} == {"pendiente"}
    assert {c["user_id"] for c in body["data"]} == {aprendiz.id, otro_aprendiz.id}
    fechas = [c["fecha_solicitud"] for c in body["data"]]
    assert fechas == sorted(fechas, reverse=True)


def test_aprendiz_solo_lista_las_propias(client, aprendiz, otro_aprendiz, tipo_academico):
    _crear(client, aprendiz, tipo_academico.id)
    _crear(client, otro_aprendiz, tipo_academico.id)

    body = client.get("/certificates", headers=aprendiz.headers).json()
    assert body["count"] == 1
    assert body["data"][0]["user_id"] == aprendiz.id


def test_ver_solicitud_ajena_es_403(client, aprendiz, otro_aprendiz, tipo_academico):
    certificado_id = _crear(client, aprendiz, tipo_academico.id).json()["data"]["id"]
    assert client.get(f"/certificates/{certificado_id}", headers=otro_aprendiz.headers).status_code == 403
    assert client.get(f"/certificates/{certificado_id}", headers=aprendiz.headers).status_code == 200


def test_transicion_invalida_es_400(client, aprendiz, funcionario, tipo_academico):
    certificado_id = _crear(client, aprendiz, tipo_academico.id).json()["data"]["id"]
    client.put(f"/certificates/{certificado_id}", json={"estado": "rechazado"}, headers=funcionario.headers)

    response = client.put(
        f"/certificates/{certificado_id}", json={"estado": "en_proceso"}, headers=funcionario.headers
    )
    assert response.status_code == 400
    assert response.json()["error"].startswith("Transición no permitida")


def test_estado_desconocido_es_400(client, aprendiz, funcionario, tipo_academico):
    certificado_id = _crear(client, aprendiz, tipo_academico.id).json()["data"]["id"]
    response = client.put(
        f"/certificates/{certificado_id}", json={"estado": "perdido"}, headers=funcionario.headers
    )
    assert response.status_code == 400


def test_actualizar_inexistente_es_404(client, funcionario):
    response = client.put("/certificates/9999", json={"estado": "en_proceso"}, headers=funcionario.headers)
    assert response.status_code == 404
    assert response.json() == {"error": "Certificado no encontrado"}


def test_adjuntar_pdf_no_valido(client, aprendiz, funcionario, tipo_academico, cloudinary_fake):
    certificado_id = _crear(client, aprendiz, tipo_academico.id).json()["data"]["id"]
    response = client.post(
        f"/certificates/{certificado_id}/archivo",
        files={"file": ("certificado.pdf", b"no soy un pdf", "application/pdf")},
        headers=funcionario.headers,
    )
    assert response.status_code == 400
    assert cloudinary_fake["subidos"] == []


def test_completar_con_fecha_entrega_null_la_fija_igual(client, aprendiz, funcionario, tipo_academico):
    certificado_id = _crear(client, aprendiz, tipo_academico.id).json()["data"]["id"]

    response = client.put(
        f"/certificates/{certificado_id}",
        json={"estado": "completado", "fecha_entrega": None},
        headers=funcionario.headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["estado"] == "completado"
    assert data["fecha_entrega"] is not None

    response = client.put(f"/certificates/{certificado_id}", json={"fecha_entrega": None}, headers=funcionario.headers)
    assert response.status_code == 200
    assert response.json()["data"]["fecha_entrega"] == data["fecha_entrega"]


def test_limit_mayor_a_cien_se_respeta(client, aprendiz, tipo_academico):
    _crear(client, aprendiz, tipo_academico.id)

    for ruta in ("/certificates", "/documents", "/notifications"):
        response = client.get(ruta, params={"limit": 200}, headers=aprendiz.headers)
        assert response.status_code == 200
    assert client.get("/certificates", params={"limit": 0}, headers=aprendiz.headers).status_code == 400
