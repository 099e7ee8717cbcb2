"""
Cuadro de playoff: cruces, partidos, resultado y movimientos con promedio pendiente.
"""
import pytest
from sqlalchemy import select

from circuitooka.database import models, schemas
from circuitooka.repositorios.playoff import RepositorioPlayoff
from circuitooka.utils.exceptions_circuito import JugadoresInsuficientesException, PlayoffException


@pytest.fixture
def circuito(fabrica):
    etapa = fabrica.etapa()
    primera = fabrica.division(1)
    segunda = fabrica.division(2)
    fabrica.poblar_division(etapa, primera, 10)
    inferiores = fabrica.poblar_division(etapa, segunda, 20)
    return etapa, primera, segunda, inferiores


@pytest.mark.asyncio
async def test_formar_parejas_zona_de_ascenso(db, circuito):
    etapa, _, segunda, inferiores = circuito

    parejas = await RepositorioPlayoff(db).formar_parejas(etapa.id, segunda.id, 'ascenso')

    # zona de ascenso: posiciones 5 a 8
    assert [(p['jugador_1_superior_id'], p['jugador_1_inferior_id']) for p in parejas] == [
        (inferiores[4].id, inferiores[7].id),
        (inferiores[5].id, inferiores[6].id),
    ]


@pytest.mark.asyncio
async def test_crear_playoffs_y_partidos(db, circuito):
    etapa, primera, segunda, inferiores = circuito

    playoffs = await RepositorioPlayoff(db).crear_playoffs(etapa.id, segunda.id, 'ascenso')

    assert len(playoffs) == 2
    playoff = playoffs[0]
    assert playoff.estado == 'pendiente'
    assert playoff.division_origen_id == segunda.id
    assert playoff.division_destino_id == primera.id
    assert playoff.jugador_2_superior_id is None
    assert playoff.jugador_2_inferior_id is None

    partido = db.get(schemas.Partidos, playoff.partido_id)
    assert partido.estado == 'pendiente'
    assert partido.jugador_a1_id == partido.jugador_a2_id == inferiores[4].id
    assert partido.jugador_b1_id == partido.jugador_b2_id == inferiores[7].id


@pytest.mark.asyncio
async def test_playoff_de_descenso_apunta_a_la_division_inferior(db, fabrica, circuito):
    etapa, _, segunda, _ = circuito
    tercera = fabrica.division(3)

    playoffs = await RepositorioPlayoff(db).crear_playoffs(etapa.id, segunda.id, 'descenso')

    assert playoffs
    assert all(p.division_destino_id == tercera.id for p in playoffs)


@pytest.mark.asyncio
async def test_zona_insuficiente(db, fabrica):
    etapa = fabrica.etapa()
    fabrica.division(1)
    segunda = fabrica.division(2)
    fabrica.poblar_division(etapa, segunda, 5)

    with pytest.raises(JugadoresInsuficientesException):
        await RepositorioPlayoff(db).crear_playoffs(etapa.id, segunda.id, 'ascenso')

    assert await RepositorioPlayoff(db).listar(etapa.id) == []


@pytest.mark.asyncio
async def test_resultado_y_aplicacion_gana_el_inferior(db, circuito):
    etapa, _, segunda, inferiores = circuito
    repo = RepositorioPlayoff(db)
    playoff = (await repo.crear_playoffs(etapa.id, segunda.id, 'ascenso'))[0]

    jugado = await repo.procesar_resultado(playoff.id, models.ResultadoPartido(
        equipo_ganador='B', sets_equipo_a=1, sets_equipo_b=2, games_equipo_a=14, games_equipo_b=16
    ))

    assert jugado.estado == 'jugado'
    assert jugado.resultado['equipo_ganador'] == 'B'
    partido = db.get(schemas.Partidos, playoff.partido_id)
    assert partido.estado == 'jugado'
    assert partido.equipo_ganador == 'B'
    assert partido.sets_equipo_b == 2

    cambios = await repo.aplicar_ascensos_descensos(playoff.id)

    assert [m.usuario_id for m in cambios['ascensos']] == [inferiores[7].id]
    assert [m.usuario_id for m in cambios['descensos']] == [inferiores[4].id]
    for movimiento in cambios['ascensos'] + cambios['descensos']:
        assert movimiento.motivo == 'playoff'
        assert movimiento.promedio_final is None
        assert movimiento.promedio_pendiente is True


@pytest.mark.asyncio
async def test_gana_el_superior(db, circuito):
    etapa, _, segunda, inferiores = circuito
    repo = RepositorioPlayoff(db)
    playoff = (await repo.crear_playoffs(etapa.id, segunda.id, 'ascenso'))[1]
    await repo.procesar_resultado(playoff.id, models.ResultadoPartido(equipo_ganador='A', sets_equipo_a=2))

    cambios = await repo.aplicar_ascensos_descensos(playoff.id)

    assert [m.usuario_id for m in cambios['ascensos']] == [inferiores[5].id]
    assert [m.usuario_id for m in cambios['descensos']] == [inferiores[6].id]


@pytest.mark.asyncio
async def test_aplicar_playoff_pendiente(db, circuito):
    etapa, _, segunda, _ = circuito
    repo = RepositorioPlayoff(db)
    playoff = (await repo.crear_playoffs(etapa.id, segunda.id, 'ascenso'))[0]

    with pytest.raises(PlayoffException):
        await repo.aplicar_ascensos_descensos(playoff.id)


@pytest.mark.asyncio
async def test_playoff_inexistente(db):
    repo = RepositorioPlayoff(db)

    with pytest.raises(PlayoffException):
        await repo.procesar_resultado(404, models.ResultadoPartido(equipo_ganador='A'))

    assert await repo.get_by_id(404) is None


@pytest.mark.asyncio
async def test_aplicar_dos_veces_no_duplica_movimientos(db, circuito):
    etapa, _, segunda, _ = circuito
    repo = RepositorioPlayoff(db)
    playoff = (await repo.crear_playoffs(etapa.id, segunda.id, 'ascenso'))[0]
    await repo.procesar_resultado(playoff.id, models.ResultadoPartido(equipo_ganador='B', sets_equipo_b=2))
    await repo.aplicar_ascensos_descensos(playoff.id)

    with pytest.raises(PlayoffException):
        await repo.aplicar_ascensos_descensos(playoff.id)

    movimientos = db.execute(select(schemas.AscensosDescensos)).scalars().all()
    assert len(movimientos) == 2


@pytest.mark.asyncio
async def test_otro_playoff_de_la_division_se_aplica_aparte(db, circuito):
    etapa, _, segunda, _ = circuito
    repo = RepositorioPlayoff(db)
    primero, segundo = await repo.crear_playoffs(etapa.id, segunda.id, 'ascenso')
    for playoff in (primero, segundo):
        await repo.procesar_resultado(playoff.id, models.ResultadoPartido(equipo_ganador='A', sets_equipo_a=2))

    await repo.aplicar_ascensos_descensos(primero.id)
    cambios = await repo.aplicar_ascensos_descensos(segundo.id)

    assert len(cambios['ascensos']) == 1


@pytest.mark.asyncio
async def test_destino_salta_numeros_de_division_faltantes(db, fabrica):
    etapa = fabrica.etapa()
    primera = fabrica.division(1)
    tercera = fabrica.division(3)
    fabrica.poblar_division(etapa, tercera, 20)

    playoffs = await RepositorioPlayoff(db).crear_playoffs(etapa.id, tercera.id, 'ascenso')

    assert all(p.division_destino_id == primera.id for p in playoffs)
