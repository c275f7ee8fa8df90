"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Caller supplied invalid input; nothing was written"""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ReferenceLookupError(DomainException):
    """A referenced entity does not exist or does not belong to the caller"""

    pass


class LoanProductNotFoundError(ReferenceLookupError):
    """Loan product id is unknown"""

    def __init__(self, product_id: str):
        super().__init__(f"Loan product {product_id} not found")
        self.product_id = product_id


class InvalidSupplierError(ReferenceLookupError):
    """Supplier is unknown, inactive, or owned by another business"""

    def __init__(self, supplier_id: str):
        super().__init__(f"Invalid supplier selected: {supplier_id}")
        self.supplier_id = supplier_id


class LoanApplicationNotFoundError(ReferenceLookupError):
    """Loan application id is unknown"""

    pass


class InventoryItemNotFoundError(ReferenceLookupError):
    """Restock target is not in the business's inventory"""

    def __init__(self, item_id: str):
        super().__init__(f"Inventory item {item_id} not found")
        self.item_id = item_id


class InvalidTransitionError(DomainException):
    """Workflow or status transition not allowed from the current state"""

    pass


class InventoryUpdateError(DomainException):
    """Inventory store failed to apply a stock change"""

    pass
