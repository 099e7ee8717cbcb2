import json
import logging
from typing import Callable

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute

from circuitooka.utils.api_response import error_response
from circuitooka.utils.exceptions_circuito import CircuitoException, ErrorBaseDatos

logger = logging.getLogger(__name__)


def envelope_a_json(envelope) -> JSONResponse:
    """Convierte un ApiResponse en JSONResponse usando su propio status_code"""
    contenido = envelope.model_dump(mode='json')
    status_code = contenido.pop('status_code', status.HTTP_200_OK)
    return JSONResponse(content=contenido, status_code=status_code)


class RouteErrorHandler(APIRoute):
    """
    Ruta personalizada que respeta el status_code del envelope ApiResponse
    y traduce las excepciones del circuito en respuestas estándar.
    """

    def get_route_handler(self) -> Callable:
        original_route_handler = super().get_route_handler()

        async def custom_route_handler(request: Request) -> Response:
            try:
                response = await original_route_handler(request)
            except CircuitoException as exc:
                logger.warning(f"{request.method} {request.url.path}: {exc}")
                return envelope_a_json(error_response(message=str(exc), status_code=status.HTTP_400_BAD_REQUEST))
            except ErrorBaseDatos as exc:
                logger.error(f"{request.method} {request.url.path}: {exc}")
                return envelope_a_json(error_response(message=str(exc), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR))

            # El envelope ya viene serializado por el response_model; según la versión
            # de FastAPI llega como JSONResponse o como Response plano con media_type JSON
            if isinstance(response, Response) and response.headers.get("content-type", "").startswith("application/json"):
                contenido = json.loads(response.body)
                if isinstance(contenido, dict) and 'success' in contenido and 'status_code' in contenido:
                    status_code = contenido.pop('status_code')
                    return JSONResponse(content=contenido, status_code=status_code)

            return response

        return custom_route_handler
