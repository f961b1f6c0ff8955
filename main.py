# main.py
from dotenv import load_dotenv
load_dotenv()

# ── config & logging ─────────────────────────────────────────────────────────
import logging
from services.config import Settings
from services.logging import setup_logging

settings = Settings.from_env()
setup_logging(settings.log_dir)
logger = logging.getLogger(__name__)

# ── app imports ──────────────────────────────────────────────────────────────
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from models.lead import RequestContext
from services.handler import LeadHandler
from services.spam_guard import init_spam_guard

JSON_UTF8 = "application/json; charset=utf-8"


async def build_request_context(request: Request) -> RequestContext:
    fields = {}
    if request.method == "POST":
        form = await request.form()
        # файлы не принимаем, только текстовые поля
        fields = {k: v for k, v in form.items() if isinstance(v, str)}

    return RequestContext(
        method=request.method,
        form=fields,
        client_ip=request.client.host if request.client else "unknown",
        user_agent=request.headers.get("user-agent", "unknown"),
        referer=request.headers.get("referer", "direct"),
        host=request.url.hostname or "localhost",
    )


def create_app(settings: Optional[Settings] = None, handler: Optional[LeadHandler] = None) -> FastAPI:
    if settings is None:
        settings = Settings.from_env()
    if handler is None:
        handler = LeadHandler.from_settings(settings, spam_guard=init_spam_guard(settings))

    app = FastAPI(title="Landing Lead Handler")
    app.state.handler = handler

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["POST"],
        allow_headers=["Content-Type"],
    )

    @app.get("/health")
    def health_check():
        logger.debug("health_check")
        return {"status": "ok"}

    # ========== Приём заявки с лендинга ==========
    # Принимаем любой метод, чтобы не-POST получил JSON с ошибкой, а не HTML 405
    @app.api_route("/lead", methods=["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"])
    async def submit_lead(request: Request):
        """
        Обработка формы: очистка полей, сохранение в файл, журнал, email и Telegram.
        """
        ctx = await build_request_context(request)
        result = await request.app.state.handler.handle(ctx)
        return JSONResponse(status_code=result.status_code, content=result.body, media_type=JSON_UTF8)

    logger.info(
        "app_created",
        extra={
            "email": settings.email_configured,
            "telegram": settings.telegram_configured,
            "leads_file": settings.leads_file,
        },
    )
    return app


app = create_app(settings)
