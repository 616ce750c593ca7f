from fastapi import FastAPI

from gridwalk.api.routes import router
from gridwalk.runtime import init_runtime_for_app, shutdown_runtime

app = FastAPI(title="gridwalk", version="0.1.0")
app.include_router(router)


@app.on_event("startup")
async def _startup() -> None:
    init_runtime_for_app()


@app.on_event("shutdown")
async def _shutdown() -> None:
    await shutdown_runtime()
