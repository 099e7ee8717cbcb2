from sqlalchemy import select, asc, desc
from sqlalchemy.orm import Session
from circuitooka.database import models, schemas
from circuitooka.utils.error_handler import handle_error
from circuitooka.utils.exceptions_circuito import DivisionException
from typing import List, Optional

class RepositorioDivision:
    """Repositorio de divisiones; numero_division 1 es la superior"""

    def __init__(self, db: Session):
        self.db = db

    async def get_all(self, activas_solo: bool = True) -> List[schemas.Divisiones]:
        """Divisiones ordenadas por numero_division ascendente"""
        try:
            stmt = select(schemas.Divisiones)

            if activas_solo:
                stmt = stmt.where(schemas.Divisiones.activa == True)

            stmt = stmt.order_by(asc(schemas.Divisiones.numero_division))

            return self.db.execute(stmt).scalars().all()
        except Exception as error:
            handle_error(error, self.get_all)

    async def get_by_id(self, division_id: int) -> Optional[schemas.Divisiones]:
        try:
            stmt = select(schemas.Divisiones).where(schemas.Divisiones.id == division_id)
            return self.db.execute(stmt).scalars().first()
        except Exception as error:
            handle_error(error, self.get_by_id)

    async def get_by_numero(self, numero_division: int) -> Optional[schemas.Divisiones]:
        try:
            stmt = select(schemas.Divisiones).where(schemas.Divisiones.numero_division == numero_division)
            return self.db.execute(stmt).scalars().first()
        except Exception as error:
            handle_error(error, self.get_by_numero)

    async def get_superior(self, division_id: int) -> Optional[schemas.Divisiones]:
        """División inmediatamente superior: el mayor numero_division por debajo del propio"""
        division = await self.get_by_id(division_id)
        if not division or division.numero_division <= 1:
            return None
        try:
            stmt = (
                select(schemas.Divisiones)
                .where(schemas.Divisiones.numero_division < division.numero_division)
                .order_by(desc(schemas.Divisiones.numero_division))
            )
            return self.db.execute(stmt).scalars().first()
        except Exception as error:
            handle_error(error, self.get_superior)

    async def get_inferior(self, division_id: int) -> Optional[schemas.Divisiones]:
        """División inmediatamente inferior: el menor numero_division por encima del propio"""
        division = await self.get_by_id(division_id)
        if not division:
            return None
        try:
            stmt = (
                select(schemas.Divisiones)
                .where(schemas.Divisiones.numero_division > division.numero_division)
                .order_by(asc(schemas.Divisiones.numero_division))
            )
            return self.db.execute(stmt).scalars().first()
        except Exception as error:
            handle_error(error, self.get_inferior)

    async def post(self, division_data: models.DivisionPOST) -> schemas.Divisiones:
        try:
            if await self.get_by_numero(division_data.numero_division):
                raise DivisionException(f"Ya existe la división número {division_data.numero_division}")

            db_division = schemas.Divisiones(
                numero_division=division_data.numero_division,
                nombre=division_data.nombre,
                descripcion=division_data.descripcion
            )

            self.db.add(db_division)
            self.db.commit()
            self.db.refresh(db_division)

            return db_division
        except Exception as error:
            self.db.rollback()
            handle_error(error, self.post)
