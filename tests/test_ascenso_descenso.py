"""
Cupos, bandas de ascenso/descenso/playoff y procesamiento de la etapa.
"""
import pytest
from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from circuitooka.database import models, schemas
from circuitooka.repositorios.ascenso_descenso import RepositorioAscensoDescenso
from circuitooka.repositorios.configuracion import RepositorioConfiguracion
from circuitooka.utils.exceptions_circuito import (
    DivisionException, ErrorBaseDatos, EtapaEnProcesoException, EtapaException,
)


def ids(filas):
    return [f.usuario_id for f in filas]


@pytest.mark.asyncio
async def test_cupos_division_de_20(db, fabrica):
    etapa = fabrica.etapa()
    division = fabrica.division(2)
    fabrica.poblar_division(etapa, division, 20)

    cupos = await RepositorioAscensoDescenso(db).calcular_cupos(etapa.id, division.id)

    assert cupos == {'cupos_ascenso': 4, 'cupos_descenso': 4, 'jugadores_inscriptos': 20}


@pytest.mark.asyncio
async def test_cupos_respetan_minimo_configurado(db, fabrica):
    etapa = fabrica.etapa()
    division = fabrica.division(2)
    fabrica.poblar_division(etapa, division, 5)

    repo = RepositorioAscensoDescenso(db)
    assert (await repo.calcular_cupos(etapa.id, division.id))['cupos_ascenso'] == 2

    await RepositorioConfiguracion(db).upsert(models.ConfiguracionPUT(
        etapa_id=etapa.id, division_id=division.id, cupos_ascenso_minimo=3
    ))
    assert (await repo.calcular_cupos(etapa.id, division.id))['cupos_ascenso'] == 3


@pytest.mark.asyncio
async def test_cupos_ignoran_inscripciones_no_activas(db, fabrica):
    etapa = fabrica.etapa()
    division = fabrica.division(2)
    fabrica.poblar_division(etapa, division, 20)
    for i in range(5):
        fabrica.inscribir(etapa, division, fabrica.jugador(f"Baja {i}"), estado='baja')

    cupos = await RepositorioAscensoDescenso(db).calcular_cupos(etapa.id, division.id)

    assert cupos['jugadores_inscriptos'] == 20


@pytest.mark.asyncio
async def test_bandas_division_de_20(db, fabrica):
    etapa = fabrica.etapa()
    division = fabrica.division(2)
    usuarios = fabrica.poblar_division(etapa, division, 20)
    repo = RepositorioAscensoDescenso(db)

    ascenso = await repo.identificar_ascenso(etapa.id, division.id, 4)
    descenso = await repo.identificar_descenso(etapa.id, division.id, 4)

    assert ids(ascenso) == [u.id for u in usuarios[:4]]
    assert ids(descenso) == [u.id for u in usuarios[16:]]


@pytest.mark.asyncio
async def test_quien_no_cumple_minimo_no_asciende_pero_desciende(db, fabrica):
    etapa = fabrica.etapa()
    division = fabrica.division(2)
    usuarios = fabrica.poblar_division(etapa, division, 10, no_cumplen=(0, 9))
    repo = RepositorioAscensoDescenso(db)

    ascenso = await repo.identificar_ascenso(etapa.id, division.id, 2)
    descenso = await repo.identificar_descenso(etapa.id, division.id, 2)

    assert ids(ascenso) == [usuarios[1].id, usuarios[2].id]
    assert usuarios[9].id in ids(descenso)


@pytest.mark.asyncio
async def test_division_chica_bandas_disjuntas(db, fabrica):
    etapa = fabrica.etapa()
    division = fabrica.division(2)
    usuarios = fabrica.poblar_division(etapa, division, 3)

    resumen = await RepositorioAscensoDescenso(db).obtener_resumen_division(etapa.id, division.id)

    assert resumen['cupos']['cupos_ascenso'] == 2
    assert ids(resumen['ascenso']) == [usuarios[0].id, usuarios[1].id]
    assert ids(resumen['descenso']) == [usuarios[2].id]
    assert not set(ids(resumen['ascenso'])) & set(ids(resumen['descenso']))
    assert resumen['playoff_ascenso'] == []
    assert resumen['playoff_descenso'] == []


@pytest.mark.asyncio
async def test_zonas_de_playoff_division_de_20(db, fabrica):
    etapa = fabrica.etapa()
    division = fabrica.division(2)
    usuarios = fabrica.poblar_division(etapa, division, 20)

    zonas = await RepositorioAscensoDescenso(db).identificar_playoff(etapa.id, division.id)

    assert ids(zonas['playoff_ascenso']) == [u.id for u in usuarios[4:8]]
    assert ids(zonas['playoff_descenso']) == [u.id for u in usuarios[12:16]]


@pytest.mark.asyncio
async def test_resumen_filtrado_por_tipo(db, fabrica):
    etapa = fabrica.etapa()
    division = fabrica.division(2)
    fabrica.poblar_division(etapa, division, 10)

    resumen = await RepositorioAscensoDescenso(db).obtener_resumen_division(
        etapa.id, division.id, models.TipoMovimiento.ASCENSO.value
    )

    assert 'ascenso' in resumen
    assert 'descenso' not in resumen
    assert 'playoff_ascenso' not in resumen


@pytest.mark.asyncio
async def test_procesar_etapa_con_dos_divisiones(db, fabrica):
    etapa = fabrica.etapa()
    primera = fabrica.division(1)
    segunda = fabrica.division(2)
    superiores = fabrica.poblar_division(etapa, primera, 10)
    inferiores = fabrica.poblar_division(etapa, segunda, 10)

    cambios = await RepositorioAscensoDescenso(db).procesar_ascensos_descensos(etapa.id)

    assert [c['usuario_id'] for c in cambios['ascensos']] == [inferiores[0].id, inferiores[1].id]
    assert [c['usuario_id'] for c in cambios['descensos']] == [superiores[8].id, superiores[9].id]
    assert cambios['ascensos'][0]['division_origen'] == 2
    assert cambios['ascensos'][0]['division_destino'] == 1
    assert [p['division'] for p in cambios['playoffs']] == [2]

    movimientos = db.execute(select(schemas.AscensosDescensos)).scalars().all()
    assert len(movimientos) == 4
    assert all(m.motivo == 'automatico' for m in movimientos)
    assert all(m.promedio_final is not None for m in movimientos)

    ascenso = next(m for m in movimientos if m.usuario_id == inferiores[0].id)
    assert ascenso.division_origen_id == segunda.id
    assert ascenso.division_destino_id == primera.id
    assert ascenso.promedio_final == 0.99


@pytest.mark.asyncio
async def test_procesar_libera_el_bloqueo(db, fabrica):
    etapa = fabrica.etapa()
    fabrica.division(1)

    await RepositorioAscensoDescenso(db).procesar_ascensos_descensos(etapa.id)

    assert db.get(schemas.BloqueosEtapa, etapa.id) is None


@pytest.mark.asyncio
async def test_procesar_con_etapa_bloqueada(db, engine, fabrica):
    etapa = fabrica.etapa()
    fabrica.division(1)
    # el bloqueo lo toma otra sesión
    otra = sessionmaker(bind=engine)()
    otra.add(schemas.BloqueosEtapa(etapa_id=etapa.id, propietario='otro proceso'))
    otra.commit()
    otra.close()

    with pytest.raises(EtapaEnProcesoException):
        await RepositorioAscensoDescenso(db).procesar_ascensos_descensos(etapa.id)

    assert db.get(schemas.BloqueosEtapa, etapa.id) is not None


@pytest.mark.asyncio
async def test_procesar_etapa_inexistente(db):
    with pytest.raises(EtapaException):
        await RepositorioAscensoDescenso(db).procesar_ascensos_descensos(999)


@pytest.mark.asyncio
async def test_listar_movimientos_filtra_por_tipo(db, fabrica):
    etapa = fabrica.etapa()
    primera = fabrica.division(1)
    segunda = fabrica.division(2)
    usuario = fabrica.jugador()
    repo = RepositorioAscensoDescenso(db)
    await repo.aplicar_cambio_division(usuario.id, segunda.id, primera.id, 'ascenso', etapa.id, 0.8, 1)
    await repo.aplicar_cambio_division(usuario.id, primera.id, segunda.id, 'descenso', etapa.id, 0.3, 9)

    descensos = await repo.listar_movimientos(etapa.id, 'descenso')

    assert len(descensos) == 1
    assert descensos[0].posicion_origen == 9


@pytest.mark.asyncio
async def test_procesar_con_numeros_de_division_salteados(db, fabrica):
    etapa = fabrica.etapa()
    primera = fabrica.division(1)
    tercera = fabrica.division(3)
    fabrica.poblar_division(etapa, primera, 10)
    fabrica.poblar_division(etapa, tercera, 10)

    cambios = await RepositorioAscensoDescenso(db).procesar_ascensos_descensos(etapa.id)

    assert {(c['division_origen'], c['division_destino']) for c in cambios['ascensos']} == {(3, 1)}
    assert {(c['division_origen'], c['division_destino']) for c in cambios['descensos']} == {(1, 3)}
    movimiento = db.execute(select(schemas.AscensosDescensos)).scalars().first()
    assert {movimiento.division_origen_id, movimiento.division_destino_id} == {primera.id, tercera.id}


@pytest.mark.asyncio
async def test_falla_al_liberar_no_oculta_el_error_del_proceso(db, fabrica):
    etapa = fabrica.etapa()
    fabrica.division(1)
    fabrica.division(2)
    repo = RepositorioAscensoDescenso(db)

    async def cupos_fallidos(*args, **kwargs):
        raise DivisionException("división sin inscriptos válidos")

    async def liberar_fallido(*args, **kwargs):
        raise ErrorBaseDatos("_liberar_bloqueo", Exception("conexión perdida"))

    repo.calcular_cupos = cupos_fallidos
    repo._liberar_bloqueo = liberar_fallido

    with pytest.raises(DivisionException):
        await repo.procesar_ascensos_descensos(etapa.id)


@pytest.mark.asyncio
async def test_procesar_libera_el_bloqueo_aunque_falle(db, fabrica):
    etapa = fabrica.etapa()
    fabrica.division(1)
    fabrica.division(2)
    repo = RepositorioAscensoDescenso(db)

    async def cupos_fallidos(*args, **kwargs):
        raise DivisionException("división sin inscriptos válidos")

    repo.calcular_cupos = cupos_fallidos

    with pytest.raises(DivisionException):
        await repo.procesar_ascensos_descensos(etapa.id)

    assert db.get(schemas.BloqueosEtapa, etapa.id) is None
