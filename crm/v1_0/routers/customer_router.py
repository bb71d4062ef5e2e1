from typing import List
from fastapi import APIRouter, HTTPException, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from dependency_injector.wiring import inject, Provide

from crm.storage.database.db_connector import get_db
from crm.app_containers import ApplicationContainer
from crm.core.logger import logger

from crm.v1_0.schemas import ApiResponse, CustomerCreate, CustomerUpdate
from crm.v1_0.entities import CustomerDTO
from crm.v1_0.services import CustomerService

router = APIRouter(prefix="/customers", tags=["Customers"])

# /search MUST stay above /{customer_id}
@router.get(
    "/search",
    response_model=ApiResponse[List[CustomerDTO]],
    response_model_exclude_none=True,
    summary="Search customers by name, email or phone",
)
@inject
async def search_customers(
    query: str = Query("", description="Case-insensitive search term"),
    db: AsyncSession = Depends(get_db),
    service: CustomerService = Depends(
        Provide[ApplicationContainer.api_container.customer_service]
    ),
):
    logger.debug(f"[CustomerRouter] search query={query!r}")
    try:
        return ApiResponse(data=await service.search(query, db))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[CustomerRouter] search error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to search customers")

@router.get(
    "",
    response_model=ApiResponse[List[CustomerDTO]],
    response_model_exclude_none=True,
    summary="List all customers, newest first",
)
@inject
async def list_customers(
    db: AsyncSession = Depends(get_db),
    service: CustomerService = Depends(
        Provide[ApplicationContainer.api_container.customer_service]
    ),
):
    logger.debug("[CustomerRouter] list_all")
    try:
        return ApiResponse(data=await service.list_all(db))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[CustomerRouter] list_all error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch customers")

@router.get(
    "/{customer_id}",
    response_model=ApiResponse[CustomerDTO],
    response_model_exclude_none=True,
    summary="Get customer by ID",
)
@inject
async def get_customer(
    customer_id: str,
    db: AsyncSession = Depends(get_db),
    service: CustomerService = Depends(
        Provide[ApplicationContainer.api_container.customer_service]
    ),
):
    logger.debug(f"[CustomerRouter] get id={customer_id}")
    try:
        return ApiResponse(data=await service.get(customer_id, db))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[CustomerRouter] get error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch customer")

@router.post(
    "",
    response_model=ApiResponse[CustomerDTO],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new customer",
)
@inject
async def create_customer(
    request: CustomerCreate,
    db: AsyncSession = Depends(get_db),
    service: CustomerService = Depends(
        Provide[ApplicationContainer.api_container.customer_service]
    ),
):
    logger.info(
        "[CustomerRouter] create payload=%s",
        request.model_dump(),
    )
    try:
        dto = await service.create(payload=request, db=db)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            "[CustomerRouter] create error: %s",
            e,
            exc_info=True,
        )
        raise HTTPException(
            status_code=500,
            detail="Failed to create customer",
        )
    return ApiResponse(data=dto, message="Customer created successfully")

@router.put(
    "/{customer_id}",
    response_model=ApiResponse[CustomerDTO],
    response_model_exclude_none=True,
    summary="Update customer",
)
@inject
async def update_customer(
    customer_id: str,
    data: CustomerUpdate,
    db: AsyncSession = Depends(get_db),
    service: CustomerService = Depends(
        Provide[ApplicationContainer.api_container.customer_service]
    ),
):
    logger.info(
        "[CustomerRouter] update id=%s data=%s",
        customer_id,
        data.model_dump(exclude_none=True),
    )
    try:
        dto = await service.update_partial(
            customer_id=customer_id,
            payload=data,
            db=db,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            "[CustomerRouter] update error: %s",
            e,
            exc_info=True,
        )
        raise HTTPException(
            status_code=500,
            detail="Failed to update customer",
        )
    return ApiResponse(data=dto, message="Customer updated successfully")

@router.delete(
    "/{customer_id}",
    response_model=ApiResponse[CustomerDTO],
    response_model_exclude_none=True,
    summary="Delete a customer",
)
@inject
async def delete_customer(
    customer_id: str,
    db: AsyncSession = Depends(get_db),
    service: CustomerService = Depends(
        Provide[ApplicationContainer.api_container.customer_service]
    ),
):
    logger.warning(
        "[CustomerRouter] delete id=%s",
        customer_id,
    )
    try:
        dto = await service.delete(customer_id=customer_id, db=db)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            "[CustomerRouter] delete error: %s",
            e,
            exc_info=True,
        )
        raise HTTPException(
            status_code=500,
            detail="Failed to delete customer",
        )
    return ApiResponse(data=dto, message="Customer deleted successfully")
