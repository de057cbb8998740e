"""FastAPI app for the parley versioning and similarity APIs."""

import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from parley.lib import config

from . import branches, discussions, similarity, snapshots

app = FastAPI(title="Parley API")
START_TIME = time.time()

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.get("api.cors_origins", ["http://localhost:3000"]),
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(discussions.router)
app.include_router(snapshots.router)
app.include_router(branches.router)
app.include_router(similarity.router)


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    errors = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": errors or "Invalid request"})


@app.get("/api/health")
def health_check():
    from parley import services

    uptime_seconds = int(time.time() - START_TIME)
    try:
        discussions_count = len(services.get().store.list())
        error = None
    except Exception as e:
        discussions_count = None
        error = str(e)

    return {
        "uptime_seconds": uptime_seconds,
        "discussions": discussions_count,
        "error": error,
    }


def main():
    import uvicorn

    uvicorn.run(
        "parley.api.main:app",
        host=config.get("api.host", "127.0.0.1"),
        port=int(config.get("api.port", 8000)),
        access_log=False,
    )


if __name__ == "__main__":
    main()
