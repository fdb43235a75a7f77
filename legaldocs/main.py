import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from legaldocs.api.http import health_router, collaboration_router, ai_router
from legaldocs.api.ws.sync import router as websocket_router
from legaldocs.core.config import settings

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="LegalDocs Collaboration",
    description="Совместная работа над юридическими документами и кэш AI генерации",
    version="1.0.0"
)

# Настройка CORS для работы с frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # В продакшене указать конкретные домены
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Подключаем роутеры
app.include_router(health_router)
app.include_router(collaboration_router)
app.include_router(ai_router)
app.include_router(websocket_router)


@app.get("/")
async def root():
    """Корневой эндпоинт"""
    return {
        "message": "LegalDocs Collaboration API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }
