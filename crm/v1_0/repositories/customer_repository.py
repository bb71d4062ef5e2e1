from typing import Optional, List
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from crm.v1_0.models import Customer
from crm.v1_0.schemas import CustomerCreate, CustomerUpdate
from .base_repository import BaseRepository


def _like_term(query: str) -> str:
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class CustomerRepository(BaseRepository[Customer]):
    def __init__(self):
        super().__init__(Customer)

    async def create_customer(self, payload: CustomerCreate, session: AsyncSession) -> Customer:
        c = Customer(
            full_name=payload.full_name,
            email=payload.email,
            phone_number=payload.phone_number,
            address=payload.address,
        )
        await self.add(c, session)
        return c

    async def get_customer_by_id(self, customer_id: str, session: AsyncSession) -> Optional[Customer]:
        return await super().get_by_id(customer_id, session)

    async def get_by_email(self, email: str, session: AsyncSession) -> Optional[Customer]:
        stmt = select(Customer).where(func.lower(Customer.email) == email.strip().lower())
        return (await session.execute(stmt)).scalars().first()

    async def list_newest_first(self, session: AsyncSession) -> List[Customer]:
        return await self.list_all(session, order_by=Customer.created_at.desc())

    async def search(self, query: str, session: AsyncSession) -> List[Customer]:
        """
        Case-insensitive substring match on name, email or phone, newest first.
        """
        term = _like_term(query)
        stmt = (
            select(Customer)
            .where(
                or_(
                    Customer.full_name.ilike(term, escape="\\"),
                    Customer.email.ilike(term, escape="\\"),
                    Customer.phone_number.ilike(term, escape="\\"),
                )
            )
            .order_by(Customer.created_at.desc())
        )
        return list((await session.execute(stmt)).scalars().all())

    async def update_customer(self, customer_id: str, payload: CustomerUpdate, session: AsyncSession) -> Optional[Customer]:
        c = await self.get_customer_by_id(customer_id, session)
        if not c:
            return None

        # falsy values never overwrite the stored ones
        for field, value in payload.model_dump().items():
            setattr(c, field, value or getattr(c, field))

        await self.update(c, session)
        return c

    async def delete_customer(self, customer_id: str, session: AsyncSession) -> Optional[Customer]:
        c = await self.get_customer_by_id(customer_id, session)
        if not c:
            return None
        await self.delete(c, session)
        return c
