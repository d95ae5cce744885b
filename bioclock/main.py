"""
BioClock API server.
Run with: python -m bioclock.main  (or uvicorn bioclock.main:app)
"""

import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request

from bioclock.api.routes import router
from bioclock.config import API_HOST, API_PORT
from bioclock.core.database import close_db, init_db


@asynccontextmanager
async def lifespan(_app: FastAPI):
    init_db()
    yield
    close_db()


app = FastAPI(title="BioClock", lifespan=lifespan)
app.include_router(router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    if request.url.path.startswith("/api"):
        duration_ms = (time.perf_counter() - start) * 1000
        print(
            f"[bioclock-api] {request.method} {request.url.path} "
            f"{response.status_code} in {duration_ms:.0f}ms",
            flush=True,
        )
    return response


@app.get("/")
def root():
    return {"service": "bioclock", "status": "online"}


if __name__ == "__main__":
    print(f"[bioclock-api] serving on port {API_PORT}", flush=True)
    uvicorn.run(app, host=API_HOST, port=API_PORT)
