from functools import lru_cache

from fastapi import Depends

from src.adapters.dev_email import DevEmailAdapter
from src.adapters.http_email import EmailCredentials, HttpEmailClient
from src.adapters.sqlite_db import (
    SQLiteSubscriberRepo,
    SQLiteSubscriptionTokenRepo,
    SQLiteUnitOfWork,
)
from src.adapters.telemetry import LoggingEventRecorder
from src.components.confirmation import ConfirmationService, UnitOfWorkFactory
from src.components.subscription import SubscriptionConfig, SubscriptionService
from src.config.loader import load_settings
from src.config.models import EmailProvider, Settings
from src.core.ports.email import EmailAddress, EmailPort
from src.core.ports.events import EventRecorderPort


# --- Settings ---
@lru_cache
def get_settings() -> Settings:
    return load_settings()


# --- Observability ---
@lru_cache
def get_event_recorder() -> LoggingEventRecorder:
    return LoggingEventRecorder("newsletter")


# --- Repos ---
def get_token_repo(settings: Settings = Depends(get_settings)) -> SQLiteSubscriptionTokenRepo:
    return SQLiteSubscriptionTokenRepo(
        settings.database.path,
        busy_timeout_seconds=settings.database.busy_timeout_seconds,
    )


def get_subscriber_repo(settings: Settings = Depends(get_settings)) -> SQLiteSubscriberRepo:
    return SQLiteSubscriberRepo(
        settings.database.path,
        busy_timeout_seconds=settings.database.busy_timeout_seconds,
    )


def get_unit_of_work_factory(settings: Settings = Depends(get_settings)) -> UnitOfWorkFactory:
    """Each call opens a fresh unit of work on its own connection."""
    db_path = settings.database.path
    busy_timeout = settings.database.busy_timeout_seconds

    def factory() -> SQLiteUnitOfWork:
        return SQLiteUnitOfWork(db_path, busy_timeout_seconds=busy_timeout)

    return factory


# --- Email ---
def build_email_client(
    settings: Settings,
    events: EventRecorderPort | None = None,
) -> HttpEmailClient | DevEmailAdapter:
    """Build the email port selected by email_client.provider."""
    cfg = settings.email_client
    sender = EmailAddress(cfg.sender_email, cfg.sender_name)
    if cfg.provider is EmailProvider.DEV:
        return DevEmailAdapter(sender=sender, events=events or LoggingEventRecorder("newsletter"))
    return HttpEmailClient(
        cfg.base_url,
        sender,
        EmailCredentials(api_key=cfg.api_key, api_secret=cfg.api_secret),
        timeout_seconds=cfg.timeout_seconds,
        events=events,
    )


# Email client singleton; shares one connection pool across requests
_email_client_instance: HttpEmailClient | DevEmailAdapter | None = None


def get_email_client() -> EmailPort:
    """Get email client singleton."""
    global _email_client_instance
    if _email_client_instance is None:
        _email_client_instance = build_email_client(
            get_settings(),
            get_event_recorder().child("email"),
        )
    return _email_client_instance


def close_email_client() -> None:
    """Release the email client's connection pool (application shutdown)."""
    global _email_client_instance
    if isinstance(_email_client_instance, HttpEmailClient):
        _email_client_instance.close()
    _email_client_instance = None


# --- Component Services ---
def get_confirmation_service(
    tokens: SQLiteSubscriptionTokenRepo = Depends(get_token_repo),
    subscribers: SQLiteSubscriberRepo = Depends(get_subscriber_repo),
    unit_of_work: UnitOfWorkFactory = Depends(get_unit_of_work_factory),
    events: LoggingEventRecorder = Depends(get_event_recorder),
) -> ConfirmationService:
    """Get confirmation component service."""
    return ConfirmationService(
        tokens,
        subscribers,
        unit_of_work,
        events=events.child("confirmation"),
    )


def get_subscription_config(settings: Settings = Depends(get_settings)) -> SubscriptionConfig:
    return SubscriptionConfig(
        base_url=settings.application.base_url,
        site_name=settings.application.site_name,
    )


def get_subscription_service(
    subscribers: SQLiteSubscriberRepo = Depends(get_subscriber_repo),
    tokens: SQLiteSubscriptionTokenRepo = Depends(get_token_repo),
    unit_of_work: UnitOfWorkFactory = Depends(get_unit_of_work_factory),
    email_client: EmailPort = Depends(get_email_client),
    config: SubscriptionConfig = Depends(get_subscription_config),
    events: LoggingEventRecorder = Depends(get_event_recorder),
) -> SubscriptionService:
    """Get subscription component service."""
    return SubscriptionService(
        subscribers,
        tokens,
        unit_of_work,
        email_client,
        config=config,
        events=events.child("subscription"),
    )
