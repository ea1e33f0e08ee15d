# storefront/domain/errors.py


class StorefrontError(Exception):
    """Bazowy wyjatek domeny; status_code mapowany na odpowiedz HTTP w routerach."""

    status_code = 500
    # stan checkoutu, w ktorym operacja sie zakonczyla (jesli dotyczy)
    state = None

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.context = context


class StorageUnavailable(StorefrontError):
    status_code = 500

    def __init__(self, operation: str, cause: Exception | None = None, **context):
        super().__init__(f"Storage unavailable during {operation}: {cause}", operation=operation, **context)
        self.operation = operation
        self.cause = cause


class ProductNotFound(StorefrontError):
    status_code = 404

    def __init__(self, product_id: int):
        super().__init__(f"Produkt {product_id} nie istnieje", product_id=product_id)
        self.product_id = product_id


class EmptyCart(StorefrontError):
    status_code = 400

    def __init__(self, session_id: str):
        super().__init__("Nie mozna zlozyc zamowienia z pustego koszyka", session_id=session_id)


class InsufficientInventory(StorefrontError):
    status_code = 409

    def __init__(self, product_id: int, requested: int, available: int):
        super().__init__(
            f"Brak wystarczajacej ilosci produktu {product_id}: "
            f"zadano {requested}, dostepne {available}",
            product_id=product_id,
            requested=requested,
            available=available,
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class SessionRowMissing(StorefrontError):
    status_code = 500

    def __init__(self, session_id: str):
        super().__init__(f"Brak wiersza sesji {session_id} przy zapisie koszyka", session_id=session_id)
        self.session_id = session_id


class PaymentFailed(StorefrontError):
    status_code = 402

    def __init__(self, reason: str, amount_cents: int):
        super().__init__(f"Platnosc odrzucona: {reason}", amount_cents=amount_cents)
        self.reason = reason
        self.amount_cents = amount_cents


class CartBusy(StorefrontError):
    status_code = 409

    def __init__(self, session_id: str):
        super().__init__("Koszyk jest wlasnie modyfikowany przez inne zadanie", session_id=session_id)
        self.session_id = session_id
