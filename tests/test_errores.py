"""
Fallas de la base de datos: se envuelven en ErrorBaseDatos y la API responde 500.
"""
import pytest
from sqlalchemy.exc import OperationalError

from circuitooka.repositorios.etapa import RepositorioEtapa
from circuitooka.utils.exceptions_circuito import ErrorBaseDatos


@pytest.fixture
def base_caida(db, monkeypatch):
    def execute_fallido(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("conexión perdida"))

    monkeypatch.setattr(db, "execute", execute_fallido)
    return db


@pytest.mark.asyncio
async def test_falla_de_consulta_se_envuelve_conservando_la_causa(base_caida):
    with pytest.raises(ErrorBaseDatos) as excinfo:
        await RepositorioEtapa(base_caida).get_all()

    assert excinfo.value.funcion == "get_all"
    assert isinstance(excinfo.value.__cause__, OperationalError)


def test_falla_de_consulta_responde_500(client, base_caida):
    response = client.get("/api/v1/etapas/listar")

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert "status_code" not in body
