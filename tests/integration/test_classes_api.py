"""
Integration tests for /api/v1/classes
"""
from app.modules.enrollments.models import Enrollment, STATUS_PENDING

URL = "/api/v1/classes"

NEW_CLASS = {
    "nome": "Hip Hop Teen",
    "modalidade": "hip hop",
    "nivel": "basico",
    "dias_semana": ["terca", "quinta"],
    "horario_inicio": "19:00:00",
    "horario_fim": "20:00:00",
    "capacidade": 15,
    "valor_aula": 160.0,
    "valor_matricula": 40.0,
}


class TestClassCrud:
    async def test_staff_creates_class(self, api, admin_headers):
        r = await api.post(URL, json=NEW_CLASS, headers=admin_headers)

        assert r.status_code == 201
        assert r.json()["ativa"] is True
        assert r.json()["valor_aula"] == 160.0

    async def test_end_before_start_is_rejected(self, api, admin_headers):
        r = await api.post(URL, json={**NEW_CLASS, "horario_fim": "18:00:00"}, headers=admin_headers)
        assert r.status_code == 422

    async def test_student_cannot_create(self, api, db, factories, headers_for):
        student = await factories.student(db)
        r = await api.post(URL, json=NEW_CLASS, headers=headers_for(student.profile))
        assert r.status_code == 403

    async def test_student_only_lists_active_classes(self, api, db, factories, headers_for):
        student = await factories.student(db)
        await factories.dance_class(db, nome="Aberta")
        await factories.dance_class(db, nome="Fechada", ativa=False)

        r = await api.get(URL, params={"ativa": "false"}, headers=headers_for(student.profile))

        assert [c["nome"] for c in r.json()] == ["Aberta"]

    async def test_toggle(self, api, db, factories, admin_headers):
        turma = await factories.dance_class(db)
        r = await api.post(f"{URL}/{turma.id}/toggle", headers=admin_headers)
        assert r.json()["ativa"] is False


class TestScheduleLock:
    """Schedule fields are frozen while enrollments are pending or active"""

    async def test_schedule_change_blocked_with_enrollments(self, api, db, factories, admin_headers):
        student = await factories.student(db)
        turma = await factories.dance_class(db)
        db.add(Enrollment(student_id=student.id, class_id=turma.id, ativa=False, status=STATUS_PENDING))
        await db.commit()

        r = await api.put(f"{URL}/{turma.id}", json={"horario_inicio": "17:00:00"}, headers=admin_headers)

        assert r.status_code == 409
        assert "horario_inicio" in r.json()["detail"]

    async def test_price_change_allowed_with_enrollments(self, api, db, factories, admin_headers):
        student = await factories.student(db)
        turma = await factories.dance_class(db)
        db.add(Enrollment(student_id=student.id, class_id=turma.id, ativa=False, status=STATUS_PENDING))
        await db.commit()

        r = await api.put(f"{URL}/{turma.id}", json={"valor_aula": 175.5}, headers=admin_headers)

        assert r.status_code == 200
        assert r.json()["valor_aula"] == 175.5

    async def test_schedule_change_allowed_when_empty(self, api, db, factories, admin_headers):
        turma = await factories.dance_class(db)
        r = await api.put(f"{URL}/{turma.id}", json={"dias_semana": ["sabado"]}, headers=admin_headers)
        assert r.status_code == 200
        assert r.json()["dias_semana"] == ["sabado"]

    async def test_occupancy(self, api, db, factories, admin_headers):
        turma = await factories.dance_class(db, capacidade=3)
        for _ in range(2):
            student = await factories.student(db)
            db.add(Enrollment(student_id=student.id, class_id=turma.id, ativa=False, status=STATUS_PENDING))
        await db.commit()

        r = await api.get(f"{URL}/{turma.id}/occupancy", headers=admin_headers)

        assert r.json() == {"class_id": str(turma.id), "capacidade": 3, "ativas": 0, "pendentes": 2, "vagas": 1}
