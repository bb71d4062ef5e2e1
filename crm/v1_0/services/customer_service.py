from typing import List
from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from crm.core.logger import logger
from crm.v1_0.schemas import CustomerCreate, CustomerUpdate
from crm.v1_0.repositories import CustomerRepository
from crm.v1_0.entities import CustomerDTO

DUPLICATE_EMAIL = "Email already exists"


class CustomerService:
    def __init__(self, customer_repository: CustomerRepository) -> None:
        self.customer_repository = customer_repository

    async def _require(self, customer_id: str, db: AsyncSession):
        """
        Ensure a customer exists or raise an HTTP 404 error.

        Args:
            customer_id: Identifier of the customer to fetch.
            db: Active async database session.

        Returns:
            ORM customer entity if found.

        Raises:
            HTTPException: If the customer does not exist.
        """
        c = await self.customer_repository.get_customer_by_id(customer_id, db)
        if not c:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
        return c

    async def _ensure_email_free(self, email: str, db: AsyncSession) -> None:
        if await self.customer_repository.get_by_email(email, db):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=DUPLICATE_EMAIL)

    async def create(self, payload: CustomerCreate, db: AsyncSession) -> CustomerDTO:
        """
        Create a new customer.

        Operations:
        - Reject an email that is already registered.
        - Persist customer data.
        - Map to CustomerDTO.

        Args:
            payload: CustomerCreate data with customer fields.
            db: Active async database session.

        Returns:
            CustomerDTO representing the created customer.

        Raises:
            HTTPException:
                - 400 if the email already exists.
                - 500 if creation fails.
        """
        logger.info("[CustomerService] Creating customer: %s", payload.model_dump())

        async def _run() -> CustomerDTO:
            await self._ensure_email_free(payload.email, db)
            c = await self.customer_repository.create_customer(payload, db)
            logger.info("[CustomerService] Customer created ID=%s", c.id)
            return CustomerDTO.model_validate(c)

        if not db.in_transaction():
            await db.begin()
        try:
            dto = await _run()
            await db.commit()
        except HTTPException:
            await db.rollback()
            raise
        except IntegrityError as e:
            await db.rollback()
            logger.warning("[CustomerService] Create rejected by constraint: %s", e)
            raise HTTPException(status_code=400, detail=DUPLICATE_EMAIL)
        except Exception as e:
            await db.rollback()
            logger.error("[CustomerService] Create failed: %s", e, exc_info=True)
            raise HTTPException(
                status_code=500,
                detail="Failed to create customer",
            )

        return dto

    async def get(self, customer_id: str, db: AsyncSession) -> CustomerDTO:
        """
        Retrieve a single customer by its identifier.

        Raises:
            HTTPException:
                - 404 if not found.
                - 500 if an internal error occurs.
        """
        logger.debug(f"[CustomerService] Get customer ID={customer_id}")
        try:
            async with db.begin():
                c = await self._require(customer_id, db)
            return CustomerDTO.model_validate(c)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"[CustomerService] Get failed ID={customer_id}: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail="Failed to fetch customer")

    async def list_all(self, db: AsyncSession) -> List[CustomerDTO]:
        """
        List all customers, newest first.

        Raises:
            HTTPException: 500 if the query fails.
        """
        logger.debug("[CustomerService] List all customers")
        try:
            async with db.begin():
                rows = await self.customer_repository.list_newest_first(db)
            return [CustomerDTO.model_validate(c) for c in rows]
        except Exception as e:
            logger.error(f"[CustomerService] List failed: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail="Failed to fetch customers")

    async def search(self, query: str, db: AsyncSession) -> List[CustomerDTO]:
        """
        Case-insensitive search over name, email and phone number.

        Raises:
            HTTPException:
                - 400 if the query is empty.
                - 500 if the query fails.
        """
        if not query or not query.strip():
            raise HTTPException(status_code=400, detail="Please provide a search query")

        logger.debug("[CustomerService] Search customers query=%s", query)
        try:
            async with db.begin():
                rows = await self.customer_repository.search(query.strip(), db)
            return [CustomerDTO.model_validate(c) for c in rows]
        except Exception as e:
            logger.error(f"[CustomerService] Search failed: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail="Failed to search customers")

    async def update_partial(
        self,
        customer_id: str,
        payload: CustomerUpdate,
        db: AsyncSession,
    ) -> CustomerDTO:
        """
        Partially update an existing customer.

        Operations:
        - Apply only provided, non-blank fields.
        - Reject an email change that collides with another customer.
        - Map to CustomerDTO.

        Args:
            customer_id: Identifier of the customer to update.
            payload: CustomerUpdate data with optional fields to modify.
            db: Active async database session.

        Returns:
            CustomerDTO representing the updated customer.

        Raises:
            HTTPException:
                - 400 if the new email already exists.
                - 404 if customer not found.
                - 500 if update fails.
        """
        logger.info(
            "[CustomerService] Update customer ID=%s data=%s",
            customer_id,
            payload.model_dump(exclude_none=True),
        )

        async def _run() -> CustomerDTO:
            current = await self._require(customer_id, db)
            if payload.email and payload.email != current.email:
                await self._ensure_email_free(payload.email, db)
            c = await self.customer_repository.update_customer(
                customer_id,
                payload,
                db,
            )
            if not c:
                raise HTTPException(
                    status_code=404,
                    detail="Customer not found",
                )
            return CustomerDTO.model_validate(c)

        if not db.in_transaction():
            await db.begin()
        try:
            dto = await _run()
            await db.commit()
        except HTTPException:
            await db.rollback()
            raise
        except IntegrityError as e:
            await db.rollback()
            logger.warning("[CustomerService] Update rejected by constraint ID=%s: %s", customer_id, e)
            raise HTTPException(status_code=400, detail=DUPLICATE_EMAIL)
        except Exception as e:
            await db.rollback()
            logger.error(
                "[CustomerService] Update failed ID=%s: %s",
                customer_id,
                e,
                exc_info=True,
            )
            raise HTTPException(
                status_code=500,
                detail="Failed to update customer",
            )

        return dto

    async def delete(self, customer_id: str, db: AsyncSession) -> CustomerDTO:
        """
        Delete a customer by its identifier.

        Returns:
            CustomerDTO of the removed customer.

        Raises:
            HTTPException:
                - 404 if customer not found.
                - 500 if deletion fails.
        """
        logger.warning("[CustomerService] Delete customer ID=%s", customer_id)

        async def _run() -> CustomerDTO:
            c = await self.customer_repository.delete_customer(
                customer_id,
                db,
            )
            if not c:
                raise HTTPException(
                    status_code=404,
                    detail="Customer not found",
                )
            return CustomerDTO.model_validate(c)

        if not db.in_transaction():
            await db.begin()
        try:
            dto = await _run()
            await db.commit()
        except HTTPException:
            await db.rollback()
            raise
        except Exception as e:
            await db.rollback()
            logger.error(
                "[CustomerService] Delete failed ID=%s: %s",
                customer_id,
                e,
                exc_info=True,
            )
            raise HTTPException(
                status_code=500,
                detail="Failed to delete customer",
            )

        return dto
