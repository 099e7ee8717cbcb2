"""
Fixtures compartidas: base SQLite en memoria, fábricas de datos y cliente HTTP.
"""
import os
import tempfile

os.environ['DATABASE_URL'] = 'sqlite://'
os.environ.setdefault('CIRCUITOOKA_ARCHIVO_ERRORES', os.path.join(tempfile.gettempdir(), 'errores_circuitooka_tests.log'))

from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from circuitooka.database.db import Base, get_db
from circuitooka.database import schemas


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSession()
    yield session
    session.close()


@pytest.fixture
def client(db):
    from server import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


class Fabrica:
    """Crea filas de prueba directamente en la sesión"""

    def __init__(self, db):
        self.db = db

    def etapa(self, nombre="Etapa 1", estado="activa") -> schemas.Etapas:
        etapa = schemas.Etapas(
            nombre=nombre,
            fecha_inicio=date(2025, 3, 1),
            fecha_fin=date(2025, 6, 30),
            anio=2025,
            estado=estado,
        )
        self.db.add(etapa)
        self.db.commit()
        return etapa

    def division(self, numero: int) -> schemas.Divisiones:
        division = schemas.Divisiones(numero_division=numero, nombre=f"División {numero}")
        self.db.add(division)
        self.db.commit()
        return division

    def jugador(self, nombre="Jugador") -> schemas.Usuarios:
        usuario = schemas.Usuarios(nombre=nombre)
        self.db.add(usuario)
        self.db.commit()
        return usuario

    def inscribir(self, etapa, division, usuario, estado="activa") -> schemas.Inscripciones:
        inscripcion = schemas.Inscripciones(
            etapa_id=etapa.id, division_id=division.id, usuario_id=usuario.id, estado=estado
        )
        self.db.add(inscripcion)
        self.db.commit()
        return inscripcion

    def ranking(self, etapa, division, usuario, promedio_final, cumple_minimo=True, **campos) -> schemas.Rankings:
        ranking = schemas.Rankings(
            etapa_id=etapa.id,
            division_id=division.id,
            usuario_id=usuario.id,
            promedio_final=promedio_final,
            cumple_minimo=cumple_minimo,
            **campos,
        )
        self.db.add(ranking)
        self.db.commit()
        return ranking

    def poblar_division(self, etapa, division, cantidad: int, no_cumplen=()) -> list:
        """
        Inscribe `cantidad` jugadores con ranking estrictamente decreciente.
        Devuelve los usuarios en orden de ranking (el primero es el mejor).
        `no_cumplen` son posiciones (base 0) que no cumplen el mínimo.
        """
        usuarios = []
        for i in range(cantidad):
            usuario = self.jugador(f"D{division.numero_division}-J{i + 1}")
            self.inscribir(etapa, division, usuario)
            self.ranking(
                etapa, division, usuario,
                promedio_final=round(0.99 - i * 0.03, 2),
                cumple_minimo=i not in no_cumplen,
            )
            usuarios.append(usuario)
        return usuarios

    def partido(self, etapa, division, a1, a2, b1, b2, **campos) -> schemas.Partidos:
        partido = schemas.Partidos(
            etapa_id=etapa.id,
            division_id=division.id,
            jugador_a1_id=a1.id,
            jugador_a2_id=a2.id,
            jugador_b1_id=b1.id,
            jugador_b2_id=b2.id,
            **campos,
        )
        self.db.add(partido)
        self.db.commit()
        return partido


@pytest.fixture
def fabrica(db):
    return Fabrica(db)
