# path: main.py
import io
import time
from typing import Any, Dict

import qrcode
import uvicorn
from qrcode.image.svg import SvgPathImage
from fastapi import FastAPI, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse

from botzin.shared.logger import logger
from botzin.shared.config import PORT, DATABASE_PATH, load_bot_config
from botzin.shared.state_store import InMemoryStateStore
from botzin.shared.metrics import metrics
from botzin.infra.clients.sqlite_repo import SQLiteRepo
from botzin.infra.clients.evolution_client import EvolutionClient
from botzin.infra.clients.openrouter_client import OpenRouterClient
from botzin.infra.clients.together_client import TogetherClient
from botzin.infra.clients.witai_client import WitAIClient
from botzin.infra.clients.hf_text_client import HFTextClient
from botzin.infra.clients.hf_whisper_client import WhisperClient
from botzin.infra.clients.hf_vision_client import VisionClient
from botzin.infra.clients.weather_client import WeatherClient
from botzin.app.services.rate_limiter import RateLimiter
from botzin.app.services.cache_service import ResponseCache
from botzin.app.services.tone_service import SentimentAnalyzer
from botzin.app.services.product_service import ProductMatcher
from botzin.app.services.completion_service import CompletionChain
from botzin.app.services.lead_service import LeadService
from botzin.app.services.funnel_service import FunnelService
from botzin.app.services.ai_service import AIService
from botzin.app.services.analytics_service import AnalyticsService
from botzin.app.services.media_service import MediaService
from botzin.app.services.connection_service import ConnectionSupervisor
from botzin.app.services.command_service import CommandService
from botzin.app.services.scheduler_service import SchedulerService, resource_usage
from botzin.app.plugins.registry import build_plugins
from botzin.api.whatsapp.handlers import MessageHandler
from botzin.api.whatsapp.webhook import dispatch_event

fastapi_app = FastAPI(docs_url=None, redoc_url=None)
services: Dict[str, Any] = {}
started_at = time.time()


def build_services() -> Dict[str, Any]:
    bot_config = load_bot_config()
    timeout = bot_config['api_timeout']

    repo = SQLiteRepo(DATABASE_PATH)
    repo.init_schema()

    contexts = InMemoryStateStore()
    response_times = InMemoryStateStore()
    command_limiters = InMemoryStateStore()

    client = EvolutionClient(timeout=timeout)
    cache = ResponseCache(repo, bot_config['cache_ttl'], bot_config=bot_config)
    sentiment_analyzer = SentimentAnalyzer(cache)
    product_matcher = ProductMatcher()

    witai_training = RateLimiter.from_config(bot_config, 'max_witai_training_per_hour', 3600)
    providers = [
        OpenRouterClient(timeout=timeout),
        WitAIClient(training_limiter=witai_training, timeout=timeout),
        HFTextClient(timeout=timeout),
        TogetherClient(timeout=timeout),
    ]
    limiters = {
        'openrouter': RateLimiter.from_config(bot_config, 'max_openrouter_calls_per_minute'),
        'witai': RateLimiter.from_config(bot_config, 'max_witai_calls_per_minute'),
        'huggingface': RateLimiter.from_config(bot_config, 'max_huggingface_calls_per_minute'),
        'togetherai': RateLimiter.from_config(bot_config, 'max_togetherai_calls_per_minute'),
    }
    chain = CompletionChain(providers, limiters)

    lead_service = LeadService(repo, product_matcher, contexts)
    funnel = FunnelService(product_matcher, lead_service, bot_config['urgency_threshold'], bot_config=bot_config)
    ai_service = AIService(
        repo, cache, chain, funnel, product_matcher, sentiment_analyzer, response_times, command_limiters
    )
    analytics = AnalyticsService(repo, started_at=started_at)
    supervisor = ConnectionSupervisor(
        client, repo, bot_config['reconnect_interval'], bot_config['max_reconnect_attempts'], bot_config=bot_config
    )
    weather = WeatherClient(timeout=timeout)
    plugins = build_plugins(client, bot_config, weather)
    command_service = CommandService(
        client, repo, chain, analytics, supervisor, sentiment_analyzer, weather, contexts, plugins, bot_config
    )
    media_service = MediaService(client, WhisperClient(), VisionClient(), contexts)
    handler = MessageHandler(
        client, repo, ai_service, command_service, media_service, product_matcher, sentiment_analyzer,
        contexts, response_times, command_limiters, bot_config
    )
    scheduler = SchedulerService(client, lead_service, analytics, supervisor, bot_config)

    return {
        'bot_config': bot_config,
        'repo': repo,
        'client': client,
        'supervisor': supervisor,
        'handler': handler,
        'scheduler': scheduler,
    }


@fastapi_app.get("/")
async def root():
    logger.info("Root route accessed.")
    supervisor = services.get('supervisor')
    if supervisor is not None and supervisor.last_error:
        return PlainTextResponse(f"Erro ao iniciar o bot WhatsApp: {supervisor.last_error}", status_code=500)
    if supervisor is None or not supervisor.is_ready:
        return PlainTextResponse("Bot WhatsApp está iniciando ou reconectando...")
    return PlainTextResponse("Bot WhatsApp está ativo!")


@fastapi_app.get("/health")
async def health():
    supervisor = services.get('supervisor')
    healthy = supervisor is not None and supervisor.is_ready
    cpu, memory = resource_usage()
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            'status': 'healthy' if healthy else 'unhealthy',
            'uptime': int((time.time() - started_at) // 60),
            'messageCount': metrics.message_count,
            'lastError': supervisor.last_error if supervisor is not None else None,
            'cpuUsage': f"{cpu:.2f}",
            'memoryUsage': f"{memory:.2f}",
        }
    )


@fastapi_app.get("/qr")
async def qr():
    logger.info("QR route accessed.")
    supervisor = services.get('supervisor')
    qr_code = supervisor.qr_code if supervisor is not None else None
    if not qr_code:
        if supervisor is not None and supervisor.last_error:
            return PlainTextResponse(
                f"Erro ao gerar o QR Code: {supervisor.last_error}. Tentando reconectar...", status_code=500
            )
        return PlainTextResponse("QR não gerado ainda. Aguarde ou reinicie o bot.")
    try:
        buffer = io.BytesIO()
        qrcode.make(qr_code, image_factory=SvgPathImage).save(buffer)
        svg = buffer.getvalue().decode('utf-8')
    except Exception as e:
        logger.error(f"Error rendering QR image: {e}", exc_info=True)
        return PlainTextResponse("Erro ao gerar o QR Code. Tente novamente.", status_code=500)
    return HTMLResponse(f'<div title="Escaneie este QR Code com o WhatsApp">{svg}</div>')


@fastapi_app.post("/webhook")
async def handle_webhook(request: Request):
    handler = services.get('handler')
    supervisor = services.get('supervisor')
    if handler is None or supervisor is None:
        return Response(status_code=503)
    try:
        payload = await request.json()
    except ValueError:
        logger.warning("Webhook received a non-JSON body.")
        return Response(status_code=400)
    if not isinstance(payload, dict):
        logger.warning(f"Webhook body is not a JSON object: {type(payload).__name__}.")
        return Response(status_code=400)
    event = await dispatch_event(payload, handler, supervisor)
    return {"status": "ok", "event": event}


@fastapi_app.on_event("startup")
async def startup_event():
    logger.info("Application startup...")
    services.update(build_services())
    services['handler'].start()
    services['scheduler'].start()
    await services['supervisor'].start()


@fastapi_app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown...")
    if 'scheduler' in services:
        services['scheduler'].shutdown()
    if 'handler' in services:
        await services['handler'].stop()
    if 'supervisor' in services:
        await services['supervisor'].stop()


def main():
    logger.info("Starting Uvicorn server...")
    uvicorn.run(app=fastapi_app, host="0.0.0.0", port=PORT)


if __name__ == "__main__":
    main()
