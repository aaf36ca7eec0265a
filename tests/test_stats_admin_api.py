from app.models.documento import Documento
from app.services import sincronizacion_service


def _crear_certificado(client, usuario, tipo_id):
    return client.post("/certificates", json={"certificate_type_id": tipo_id}, headers=usuario.headers).json()["data"]


def test_estadisticas_de_aprendiz(client, aprendiz, otro_aprendiz, funcionario, tipo_academico):
    propio = _crear_certificado(client, aprendiz, tipo_academico.id)
    _crear_certificado(client, aprendiz, tipo_academico.id)
    _crear_certificado(client, otro_aprendiz, tipo_academico.id)
    client.put(f"/certificates/{propio['id']}", json={"estado": "en_proceso"}, headers=funcionario.headers)
    client.post(
        "/documents",
        json={"nombre": "Cédula", "archivo_url": "https://files.test/c.pdf"},
        headers=aprendiz.headers,
    )

    response = client.get("/stats", headers=aprendiz.headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["certificates"] == {"total": 2, "pending": 1, "in_process": 1, "completed": 0}
    assert data["documents"] == {"total": 1}
    # Dos "Solicitud Creada" y una actualización
    assert data["notifications"] == {"unread": 3}
    assert len(data["recent_activity"]) == 2
    assert data["recent_activity"][0]["certificate_types"]["nombre"] == "Certificado Académico"
    assert data["staff_stats"] is None
    assert data["user_role"] == "aprendiz"


def test_estadisticas_de_staff(client, aprendiz, otro_aprendiz, funcionario, tipo_academico):
    for _ in range(3):
        _crear_certificado(client, aprendiz, tipo_academico.id)
    for _ in range(4):
        _crear_certificado(client, otro_aprendiz, tipo_academico.id)

    data = client.get("/stats", headers=funcionario.headers).json()["data"]
    assert data["certificates"]["total"] == 7
    assert data["certificates"]["pending"] == 7
    assert len(data["recent_activity"]) == 5
    assert data["staff_stats"] == {"total_users": 3}
    assert data["user_role"] == "funcionario"


def test_asignar_rol_solo_admin(client, aprendiz, funcionario, admin):
    response = client.put(f"/admin/usuarios/{aprendiz.id}/rol", json={"role": "instructor"}, headers=funcionario.headers)
    assert response.status_code == 403

    response = client.put(f"/admin/usuarios/{aprendiz.id}/rol", json={"role": "funcionario"}, headers=admin.headers)
    assert response.status_code == 200
    assert response.json()["data"] == {"user_id": aprendiz.id, "role": "funcionario"}

    # El rol se resuelve en cada request, el token existente ya refleja el cambio
    assert client.get("/profile", headers=aprendiz.headers).json()["data"]["role"] == "funcionario"


def test_asignar_rol_invalido_o_usuario_inexistente(client, admin):
    assert client.put(f"/admin/usuarios/{admin.id}/rol", json={"role": "rector"}, headers=admin.headers).status_code == 400
    assert client.put("/admin/usuarios/9999/rol", json={"role": "aprendiz"}, headers=admin.headers).status_code == 404


def test_sincronizar_documentos(client, db_session, aprendiz, admin, monkeypatch):
    for nombre, public_id in (("Vivo", "portal-certificados/documents/1/vivo.pdf"),
                              ("Huérfano", "portal-certificados/documents/1/borrado.pdf"),
                              ("Externo", None)):
        db_session.add(Documento(user_id=aprendiz.id, nombre=nombre, archivo_url="https://x.test", public_id=public_id))
    db_session.commit()

    async def _existe(public_id):
        return public_id.endswith("vivo.pdf")

    monkeypatch.setattr(sincronizacion_service, "archivo_existe_cloudinary", _existe)

    assert client.post("/admin/sincronizar-documentos", headers=aprendiz.headers).status_code == 403

    response = client.post("/admin/sincronizar-documentos", headers=admin.headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["documentos_revisados"] == 2
    assert len(data["documentos_removidos"]) == 1

    restantes = sorted(d.nombre for d in db_session.query(Documento).all())
    assert restantes == ["Externo", "Vivo"]
