from __future__ import annotations

from typing import Any, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ship_and_weigh.core.aws import ddb_table
from ship_and_weigh.core.settings import S, Settings
from ship_and_weigh.core.tables import ShippingTable
from ship_and_weigh.metrics import metrics_endpoint, metrics_middleware, set_app_info
from ship_and_weigh.routes import build_routers
from ship_and_weigh.services.easypost import EasyPostClient
from ship_and_weigh.services.recipients import RecipientStore
from ship_and_weigh.services.settings_spec import SettingsSpecification, load_settings_spec
from ship_and_weigh.services.settings_store import SettingsStore


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


def create_app(
    config: Settings = S,
    *,
    spec: Optional[SettingsSpecification] = None,
    table: Optional[Any] = None,
    verification_client: Optional[EasyPostClient] = None,
) -> FastAPI:
    app = FastAPI(title="Ship and Weigh API", version="1.0.0")

    spec = spec or load_settings_spec(config.settings_spec_path)
    shipping_table = ShippingTable(table if table is not None else ddb_table(config))

    app.state.config = config
    app.state.settings_spec = spec
    app.state.settings_store = SettingsStore(spec, shipping_table)
    app.state.recipient_store = RecipientStore(shipping_table)
    app.state.verification_client = verification_client or EasyPostClient(
        config.easypost_api_key,
        base_url=config.easypost_base_url,
        timeout=config.easypost_timeout_seconds,
    )

    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if config.metrics_enabled:
        app.middleware("http")(metrics_middleware)
        set_app_info(app.title, app.version)
        app.get("/metrics")(metrics_endpoint)

    for router in build_routers(config.api_prefix):
        app.include_router(router)

    return app


app = create_app()


def run(config: Settings = S) -> None:
    # Local run: uvicorn ship_and_weigh.main:app --reload --port 8000
    uvicorn.run("ship_and_weigh.main:app", host=config.host, port=config.port)


if __name__ == "__main__":
    run()
