from .customer_DTO import CustomerDTO

__all__ = ["CustomerDTO"]
