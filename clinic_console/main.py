# clinic_console/main.py
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from clinic_console.api.exception_handlers import register_exception_handlers
from clinic_console.api.router import api_router
from clinic_console.core.config import settings
from clinic_console.core.logging_setup import setup_logging

setup_logging()

app = FastAPI(
    title=settings.PROJECT_NAME,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


# Global OPTIONS handler
@app.options("/{rest_of_path:path}")
async def cors_preflight_handler(rest_of_path: str, request: Request):
    origin = request.headers.get("origin")
    headers = {
        "Access-Control-Allow-Methods": "GET, POST, PUT, PATCH, DELETE, OPTIONS",
        "Access-Control-Allow-Headers": request.headers.get("access-control-request-headers", "*"),
        "Access-Control-Allow-Credentials": "true",
        "Vary": "Origin",
    }
    # Only echo origin if it is in the allowed list
    if origin in settings.BACKEND_CORS_ORIGINS:
        headers["Access-Control-Allow-Origin"] = origin
    return JSONResponse(status_code=200, content={"message": "preflight ok"}, headers=headers)


app.include_router(api_router, prefix=settings.API_V1_STR)


# Health
@app.get("/")
def root():
    return {"message": f"{settings.PROJECT_NAME} running", "version": "v1"}
