"""Shared dependencies for the Gateway.

Builds the object graph once; nothing below the gateway reaches for globals.
"""
from dataclasses import dataclass

import structlog

from app.audit.log import AuditLog
from app.gateway.pipeline import InboundPipeline
from app.integrations.advisories import AdvisorySource, HttpAdvisorySource, RotatingAdvisorySource
from app.integrations.dispatcher import OutboundDispatcher
from app.integrations.normalizer import MessageNormalizer
from app.integrations.whatsapp import WhatsAppClient
from app.knowledge.content import ContentBundle, get_content
from app.language.detector import Language, LanguageDetector
from app.profiles.store import ProfileStore
from app.scheduler.sweeps import NotificationScheduler
from app.swarm.generative import GenerativeFallback
from app.swarm.llm import GeminiClient
from app.swarm.resolver import ResponseResolver
from app.swarm.router.classifier import IntentClassifier
from config.settings import Settings, get_settings

logger = structlog.get_logger()


@dataclass
class Services:
    settings: Settings
    content: ContentBundle
    store: ProfileStore
    audit: AuditLog
    whatsapp: WhatsAppClient
    dispatcher: OutboundDispatcher
    normalizer: MessageNormalizer
    pipeline: InboundPipeline
    scheduler: NotificationScheduler


def _fallback_language(settings: Settings) -> Language:
    try:
        return Language(settings.default_language)
    except ValueError:
        logger.warning("gateway.unsupported_default_language", language=settings.default_language)
        return Language.ENGLISH


def build_advisory_source(settings: Settings, content: ContentBundle) -> AdvisorySource:
    if settings.advisory_api_url:
        return HttpAdvisorySource(settings.advisory_api_url)
    return RotatingAdvisorySource(content.advisories)


def build_services(settings: Settings | None = None) -> Services:
    settings = settings or get_settings()
    content = get_content(settings.content_path)

    detector = LanguageDetector(
        fallback=_fallback_language(settings),
        min_length=settings.language_min_length,
    )
    store = ProfileStore(detector, pseudonym_secret=settings.pseudonym_secret)
    audit = AuditLog()

    llm = GeminiClient(
        api_key=settings.google_api_key,
        model=settings.gemini_model,
        base_url=settings.gemini_base_url,
        timeout=settings.llm_timeout_seconds,
    )
    if not llm.is_configured:
        logger.warning("gateway.llm_not_configured", msg="Generative fallback and AI classifier disabled")

    resolver = ResponseResolver(
        content=content,
        generator=GenerativeFallback(llm),
        classifier=IntentClassifier(llm),
    )

    whatsapp = WhatsAppClient(
        access_token=settings.meta_access_token,
        phone_number_id=settings.meta_phone_number_id,
        app_secret=settings.meta_app_secret,
    )
    dispatcher = OutboundDispatcher(whatsapp, pseudonym_secret=settings.pseudonym_secret)

    return Services(
        settings=settings,
        content=content,
        store=store,
        audit=audit,
        whatsapp=whatsapp,
        dispatcher=dispatcher,
        normalizer=MessageNormalizer(),
        pipeline=InboundPipeline(store, resolver, dispatcher, audit),
        scheduler=NotificationScheduler(
            store=store,
            sender=dispatcher,
            advisories=build_advisory_source(settings, content),
            audit=audit,
            content=content,
        ),
    )
