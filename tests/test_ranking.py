"""
Ranking por división: conteo desde partidos, WO individual, desempates y posiciones.
"""
import pytest

from circuitooka.database import models
from circuitooka.repositorios.partido import RepositorioPartido
from circuitooka.repositorios.promedios import RepositorioPromedios
from circuitooka.repositorios.ranking import RepositorioRanking
from circuitooka.utils.exceptions_circuito import ResultadoInvalidoException


@pytest.fixture
def cuadrangular(fabrica):
    etapa = fabrica.etapa()
    division = fabrica.division(1)
    jugadores = [fabrica.jugador(f"J{i}") for i in range(1, 5)]
    for jugador in jugadores:
        fabrica.inscribir(etapa, division, jugador)
    return etapa, division, jugadores


@pytest.mark.asyncio
async def test_resultado_actualiza_ranking_de_los_cuatro(db, fabrica, cuadrangular):
    etapa, division, (j1, j2, j3, j4) = cuadrangular
    partido = fabrica.partido(etapa, division, j1, j2, j3, j4)

    await RepositorioPartido(db).registrar_resultado(partido.id, models.ResultadoPartido(
        equipo_ganador='A', sets_equipo_a=2, sets_equipo_b=0, games_equipo_a=12, games_equipo_b=5
    ))

    repo = RepositorioRanking(db)
    ganador = await repo.get(etapa.id, division.id, j1.id)
    perdedor = await repo.get(etapa.id, division.id, j3.id)

    assert ganador.partidos_ganados == 1
    assert ganador.partidos_jugados == 1
    assert ganador.minimo_requerido == 1
    assert ganador.cumple_minimo is True
    assert ganador.promedio_final == 1
    assert ganador.diferencia_sets == 2
    assert ganador.diferencia_games == 7

    assert perdedor.partidos_ganados == 0
    assert perdedor.promedio_final == 0.1
    assert perdedor.diferencia_sets == -2
    assert perdedor.diferencia_games == -7

    posiciones = {r.usuario_id: r.posicion_ranking for r in await repo.listar_ordenado(etapa.id, division.id)}
    assert sorted(posiciones.values()) == [1, 2, 3, 4]
    assert posiciones[j1.id] in (1, 2)


@pytest.mark.asyncio
async def test_wo_individual_no_cuenta_como_partido_jugado(db, fabrica, cuadrangular):
    etapa, division, (j1, j2, j3, j4) = cuadrangular
    fabrica.partido(etapa, division, j1, j2, j3, j4, estado='jugado', equipo_ganador='A',
                    sets_equipo_a=2, sets_equipo_b=1, games_equipo_a=10, games_equipo_b=9)
    fabrica.partido(etapa, division, j1, j3, j2, j4, estado='jugado', equipo_ganador='B',
                    sets_equipo_a=0, sets_equipo_b=2, games_equipo_a=0, games_equipo_b=12,
                    wo_jugador_ids=[j4.id])

    repo = RepositorioRanking(db)
    j4_ranking = await repo.actualizar_ranking_jugador(j4.id, etapa.id, division.id)
    j2_ranking = await repo.actualizar_ranking_jugador(j2.id, etapa.id, division.id)

    assert j4_ranking.partidos_jugados == 1
    assert j4_ranking.partidos_ganados == 0
    assert j2_ranking.partidos_jugados == 2
    assert j2_ranking.partidos_ganados == 2


@pytest.mark.asyncio
async def test_victorias_contra_top_3(db, fabrica):
    etapa = fabrica.etapa()
    division = fabrica.division(1)
    jugadores = [fabrica.jugador(f"J{i}") for i in range(1, 7)]
    for jugador, promedio in zip(jugadores, [0.9, 0.8, 0.7, 0.1, 0.1, 0.1]):
        fabrica.inscribir(etapa, division, jugador)
        fabrica.ranking(etapa, division, jugador, promedio)
    j1, _, _, j4, j5, j6 = jugadores
    fabrica.partido(etapa, division, j4, j5, j1, j6, estado='jugado', equipo_ganador='A',
                    sets_equipo_a=2, sets_equipo_b=0, games_equipo_a=12, games_equipo_b=4)

    repo = RepositorioRanking(db)
    ganador = await repo.actualizar_ranking_jugador(j4.id, etapa.id, division.id)
    perdedor = await repo.actualizar_ranking_jugador(j6.id, etapa.id, division.id)

    assert ganador.victorias_mejores_parejas == 1
    assert perdedor.victorias_mejores_parejas == 0


@pytest.mark.asyncio
async def test_posiciones_solo_para_quienes_cumplen_minimo(db, fabrica):
    etapa = fabrica.etapa()
    division = fabrica.division(1)
    usuarios = fabrica.poblar_division(etapa, division, 5, no_cumplen=(1,))

    rankings = await RepositorioRanking(db).recalcular_posiciones(etapa.id, division.id)

    posiciones = {r.usuario_id: r.posicion_ranking for r in rankings}
    assert posiciones[usuarios[0].id] == 1
    assert posiciones[usuarios[1].id] is None
    assert posiciones[usuarios[2].id] == 2
    assert posiciones[usuarios[4].id] == 4


@pytest.mark.asyncio
async def test_ranking_completo_incluye_inscriptos_sin_fila(db, fabrica):
    etapa = fabrica.etapa()
    division = fabrica.division(1)
    usuarios = fabrica.poblar_division(etapa, division, 3)
    nuevo = fabrica.jugador("Nuevo")
    fabrica.inscribir(etapa, division, nuevo)
    await RepositorioRanking(db).recalcular_posiciones(etapa.id, division.id)

    completo = await RepositorioRanking(db).obtener_ranking_completo(etapa.id, division.id)

    assert [r.usuario_id for r in completo] == [u.id for u in usuarios] + [nuevo.id]
    assert completo[-1].promedio_final == 0
    assert completo[-1].cumple_minimo is False
    assert completo[-1].posicion_ranking is None


@pytest.mark.asyncio
async def test_listar_ordenado_con_filtro_y_rango(db, fabrica):
    etapa = fabrica.etapa()
    division = fabrica.division(1)
    usuarios = fabrica.poblar_division(etapa, division, 6, no_cumplen=(0,))

    filas = await RepositorioRanking(db).listar_ordenado(
        etapa.id, division.id, solo_cumplen_minimo=True, desde=1, limite=2
    )

    assert [f.usuario_id for f in filas] == [usuarios[2].id, usuarios[3].id]


@pytest.mark.asyncio
async def test_promedio_de_jugador_sin_ranking(db, fabrica):
    etapa = fabrica.etapa()
    division = fabrica.division(1)

    promedio = await RepositorioPromedios(db).obtener_promedio_jugador(etapa.id, division.id, 99)

    assert promedio.promedio_final == 0
    assert promedio.cumple_minimo is False
    assert promedio.partidos_jugados == 0


@pytest.mark.asyncio
async def test_minimo_requerido_de_la_division(db, fabrica, cuadrangular):
    etapa, division, (j1, j2, j3, j4) = cuadrangular
    for _ in range(3):
        fabrica.partido(etapa, division, j1, j2, j3, j4, estado='jugado', equipo_ganador='A')
    fabrica.partido(etapa, division, j1, j2, j3, j4, estado='pendiente')

    minimo = await RepositorioPromedios(db).obtener_minimo_requerido(etapa.id, division.id)

    # ceil(3 / (4 / 2))
    assert minimo == 2


@pytest.mark.asyncio
async def test_recalcular_promedios_de_la_division(db, fabrica, cuadrangular):
    etapa, division, (j1, j2, j3, j4) = cuadrangular
    fabrica.partido(etapa, division, j1, j2, j3, j4, estado='jugado', equipo_ganador='B')

    resultados = await RepositorioPromedios(db).recalcular_division(etapa.id, division.id)

    por_jugador = {r['usuario_id']: r for r in resultados}
    assert len(resultados) == 4
    assert por_jugador[j3.id]['partidos_ganados'] == 1
    assert por_jugador[j1.id]['partidos_ganados'] == 0


@pytest.mark.asyncio
async def test_resultado_con_menos_sets_es_invalido(db, fabrica, cuadrangular):
    etapa, division, (j1, j2, j3, j4) = cuadrangular
    partido = fabrica.partido(etapa, division, j1, j2, j3, j4)

    with pytest.raises(ResultadoInvalidoException):
        await RepositorioPartido(db).registrar_resultado(partido.id, models.ResultadoPartido(
            equipo_ganador='A', sets_equipo_a=0, sets_equipo_b=2
        ))
