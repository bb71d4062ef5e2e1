from dependency_injector import containers, providers

from crm.core.settings import settings
from .preferences import ThemePreference
from .remote import CustomerAPI
from .store import CustomerStore


class ClientContainer(containers.DeclarativeContainer):
    # no shared client: CustomerAPI opens and closes one per request
    customer_api = providers.Singleton(
        CustomerAPI,
        base_url=settings.CLIENT_API_URL,
        timeout=settings.CLIENT_TIMEOUT_SEC,
    )

    theme_preference = providers.Singleton(
        ThemePreference,
        path=settings.CLIENT_THEME_FILE,
    )

    customer_store = providers.Singleton(
        CustomerStore,
        api=customer_api,
        preferences=theme_preference,
        page_size=settings.CLIENT_PAGE_SIZE,
        import_concurrency=settings.CLIENT_IMPORT_CONCURRENCY,
        recent_days=settings.RECENT_DAYS,
    )
