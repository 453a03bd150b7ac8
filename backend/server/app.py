"""
FastAPI app factory.

Responsibilities:
- Create and configure FastAPI app
- Set up middleware
- Initialize shared resources ONCE per process (API clients, providers,
  retriever, pipeline, voice catalog, connection registry)
- Register routes
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from openai import AsyncOpenAI

from adapters.asr.openai_transcriber import OpenAITranscriber
from adapters.llm.openai_responder import OpenAIResponder
from adapters.retrieval.base import NullRetriever, Retriever
from adapters.retrieval.embedding_retriever import EmbeddingRetriever, load_snippets
from adapters.tts.elevenlabs import ElevenLabsSynthesizer
from adapters.tts.openai_tts import OpenAISynthesizer
from adapters.tts.router import SynthesizerRouter
from adapters.tts.speechmatics import SpeechmaticsSynthesizer
from config import AppConfig
from observability.logger import log_event
from orchestrator.pipeline import SpeechPipeline
from orchestrator.synthesis_config import VoiceCatalog
from server.routes import register_routes
from session.registry import ConnectionRegistry

GROQ_BASE_URL = "https://api.groq.com/openai/v1"


def create_app(
    config: AppConfig | None = None,
    *,
    pipeline: SpeechPipeline | None = None,
    voice_catalog: VoiceCatalog | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    This is the app factory pattern that allows:
    - Testing with different configurations (inject pipeline + catalog)
    - Environment-specific setup
    - ASGI server compatibility
    """
    config = config or AppConfig.load_from_env()

    app = FastAPI(title="Voice Session API")

    app.state.config = config
    app.state.registry = ConnectionRegistry()

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # tighten later
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if pipeline is None or voice_catalog is None:
        built_pipeline, built_catalog = build_services(config)
        pipeline = pipeline or built_pipeline
        voice_catalog = voice_catalog or built_catalog

    app.state.pipeline = pipeline
    app.state.voice_catalog = voice_catalog

    log_event({
        "event_type": "APP_CREATED",
        "env": config.env,
        "llm_provider": config.llm_provider,
        "tts_services": list(voice_catalog.services),
    })

    # Routes
    register_routes(app)

    return app


# ------------------------------------------------------------------
# Service construction
# ------------------------------------------------------------------

def build_services(config: AppConfig) -> tuple[SpeechPipeline, VoiceCatalog]:
    """Build the shared pipeline and the catalog of configured voices."""
    openai_api_key = config.openai_api_key
    if not openai_api_key:
        raise RuntimeError("OPENAI_API_KEY environment variable not set")

    openai_client = AsyncOpenAI(api_key=openai_api_key)
    llm_client = build_llm_client(config)

    router = build_synthesizer(config, openai_client)

    pipeline = SpeechPipeline(
        transcriber=OpenAITranscriber(
            client=openai_client,
            model=config.transcription_model,
        ),
        responder=OpenAIResponder(
            client=llm_client,
            model=config.llm_model,
            provider=config.llm_provider,
        ),
        synthesizer=router,
        retriever=build_retriever(config, openai_client),
    )
    return pipeline, router.catalog()


def build_llm_client(config: AppConfig) -> AsyncOpenAI:
    """Build an LLM client with the provider selected by environment variables."""
    if config.llm_provider.lower() == "groq":
        return AsyncOpenAI(
            api_key=config.groq_api_key,
            base_url=GROQ_BASE_URL,
        )

    return AsyncOpenAI(api_key=config.openai_api_key)


def build_synthesizer(config: AppConfig, openai_client: AsyncOpenAI) -> SynthesizerRouter:
    """Register every provider that has credentials."""
    providers = [OpenAISynthesizer(client=openai_client)]

    if config.elevenlabs_api_key:
        providers.append(ElevenLabsSynthesizer(api_key=config.elevenlabs_api_key))

    if config.speechmatics_api_key:
        providers.append(SpeechmaticsSynthesizer(api_key=config.speechmatics_api_key))

    router = SynthesizerRouter(providers)
    if config.tts_provider not in router.services:
        raise RuntimeError(
            f"TTS_PROVIDER {config.tts_provider!r} is not configured "
            f"(available: {', '.join(router.services)})"
        )
    return router


def build_retriever(config: AppConfig, openai_client: AsyncOpenAI) -> Retriever:
    if not config.knowledge_path:
        return NullRetriever()

    snippets = load_snippets(config.knowledge_path)
    log_event({
        "event_type": "KNOWLEDGE_LOADED",
        "path": config.knowledge_path,
        "snippets": len(snippets),
    })
    return EmbeddingRetriever(
        client=openai_client,
        snippets=snippets,
        model=config.embedding_model,
    )
