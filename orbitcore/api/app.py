"""
Orbit-planning API routes.

Handles:
  GET  /api/health
  GET  /api/orbit/planets    list available planet names
  POST /api/orbit/porkchop   compute a porkchop plot grid
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from orbitcore import __version__
from orbitcore.config import DEFAULT_RESOLUTION, MU_SUN, Settings, load_settings
from orbitcore.ephemeris.horizons import PLANET_IDS
from orbitcore.ephemeris.provider import EphemerisProvider
from orbitcore.errors import InvalidInputError, OrbitCoreError
from orbitcore.mission.porkchop import PorkchopBuilder

logger = logging.getLogger(__name__)

router = APIRouter(tags=["orbit"])


class PorkchopReq(BaseModel):
    # Loosely typed; PorkchopBuilder.build validates every field
    model_config = ConfigDict(populate_by_name=True)

    departure_planet: Optional[Any] = Field(default=None, alias="departurePlanet")
    arrival_planet: Optional[Any] = Field(default=None, alias="arrivalPlanet")
    departure_start: Optional[Any] = Field(default=None, alias="departureStart")
    departure_end: Optional[Any] = Field(default=None, alias="departureEnd")
    arrival_start: Optional[Any] = Field(default=None, alias="arrivalStart")
    arrival_end: Optional[Any] = Field(default=None, alias="arrivalEnd")
    steps: Optional[Any] = DEFAULT_RESOLUTION


@router.get("/api/health")
def api_health() -> Dict[str, Any]:
    return {"ok": True, "service": "orbitcore", "version": __version__}


@router.get("/api/orbit/planets")
def api_orbit_planets() -> Dict[str, Any]:
    return {"planets": list(PLANET_IDS)}


@router.post("/api/orbit/porkchop")
def api_orbit_porkchop(req: PorkchopReq, request: Request) -> Dict[str, Any]:
    builder: PorkchopBuilder = request.app.state.builder
    grid = builder.build(
        req.departure_planet,
        req.arrival_planet,
        (req.departure_start, req.departure_end),
        (req.arrival_start, req.arrival_end),
        req.steps,
    )
    return grid.to_dict()


async def _invalid_input_handler(request: Request, exc: InvalidInputError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": f"Invalid request: {problems}"})


async def _core_error_handler(request: Request, exc: OrbitCoreError) -> JSONResponse:
    logger.error("Porkchop error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=502, content={"error": str(exc)})


def create_app(builder: Optional[PorkchopBuilder] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Builds the FastAPI application.

    Args:
        builder (PorkchopBuilder, optional): Injected grid builder; one backed by
            a Horizons provider is created from settings when omitted.
        settings (Settings, optional): Defaults to load_settings().
    """
    settings = settings or load_settings()
    if builder is None:
        provider = EphemerisProvider.from_settings(settings)
        builder = PorkchopBuilder(provider, mu=MU_SUN, max_speed=settings.max_transfer_speed)

    app = FastAPI(title="orbitcore", version=__version__)
    app.state.builder = builder
    app.state.settings = settings
    app.include_router(router)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(InvalidInputError, _invalid_input_handler)
    app.add_exception_handler(OrbitCoreError, _core_error_handler)
    return app


def main() -> None:
    import uvicorn

    settings = load_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    uvicorn.run(create_app(settings=settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
