from dependency_injector import containers, providers
from crm.v1_0.v1_containers import APIContainer

class ApplicationContainer(containers.DeclarativeContainer):
    wiring_config = containers.WiringConfiguration(
        modules=[
                "crm.v1_0.routers.customer_router",
            ]
    )

    api_container = providers.Container(
        APIContainer
    )
