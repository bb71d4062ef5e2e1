from .customer_schema import CustomerCreate, CustomerUpdate
from .response_schema import ApiResponse

__all__ = ["CustomerCreate", "CustomerUpdate", "ApiResponse"]
