import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fundscore.api.endpoints import overall_score, statements
from fundscore.config import get_settings

settings = get_settings()

logging.basicConfig(level=settings.log_level)

app = FastAPI(title=f"{settings.app_name} API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(statements.router, prefix=settings.api_prefix)
app.include_router(overall_score.router, prefix=settings.api_prefix)


@app.get(f"{settings.api_prefix}/health")
def health_check():
    return {"status": "ok", "service": settings.app_name}
