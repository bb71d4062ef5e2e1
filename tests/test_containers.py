from dependency_injector import providers

from crm.client.containers import ClientContainer
from crm.client.preferences import ThemePreference
from crm.client.remote import CustomerAPI
from crm.client.store import CustomerStore
from crm.core.settings import settings


def test_store_is_wired_from_settings(tmp_path, fake_api):
    container = ClientContainer()
    container.customer_api.override(providers.Object(fake_api))
    container.theme_preference.override(providers.Object(ThemePreference(tmp_path / "theme")))

    store = container.customer_store()

    assert isinstance(store, CustomerStore)
    assert store is container.customer_store()
    assert store.api is fake_api
    assert store.page_size == settings.CLIENT_PAGE_SIZE
    assert store.import_concurrency == settings.CLIENT_IMPORT_CONCURRENCY
    assert store.recent_days == settings.RECENT_DAYS


async def test_api_opens_a_scoped_client_per_request():
    api = ClientContainer().customer_api()
    assert isinstance(api, CustomerAPI)
    assert api._client is None

    async with api._session() as client:
        assert not client.is_closed
        assert client.timeout.read == settings.CLIENT_TIMEOUT_SEC
    assert client.is_closed
