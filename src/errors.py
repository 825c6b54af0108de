class PaymentsError(Exception):
    """Base class for every error raised by the payments engine."""


class InputError(PaymentsError):
    """The input file cannot be opened. Aborts the whole run."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot open input file {path}: {reason}")
        self.path = path


class RecordDecodeError(PaymentsError):
    """A single input line could not be decoded into a transaction."""

    def __init__(self, line_number: int, reason: str):
        super().__init__(f"Line {line_number}: {reason}")
        self.line_number = line_number


class DispatchOverflowError(PaymentsError):
    """A worker inbox was full when an event was forwarded to it."""

    def __init__(self, transaction_id: int, shard: int):
        super().__init__(f"Inbox of worker {shard} is full, dropping transaction {transaction_id}")
        self.transaction_id = transaction_id
        self.shard = shard


class DomainError(PaymentsError):
    """An account precondition failed. The account is left unchanged."""

    def __init__(self, client_id: int, transaction_id: int, message: str):
        super().__init__(f"Client {client_id}, tx {transaction_id}: {message}")
        self.client_id = client_id
        self.transaction_id = transaction_id


class DuplicateTransaction(DomainError):
    def __init__(self, client_id: int, transaction_id: int):
        super().__init__(client_id, transaction_id, "transaction already exists")


class InsufficientFunds(DomainError):
    def __init__(self, client_id: int, transaction_id: int, available, requested):
        super().__init__(client_id, transaction_id, f"insufficient funds (available {available}, requested {requested})")
        self.available = available
        self.requested = requested


class AmountOverflow(DomainError):
    def __init__(self, client_id: int, transaction_id: int):
        super().__init__(client_id, transaction_id, "balance would exceed the representable precision")


class TransactionNotFound(DomainError):
    def __init__(self, client_id: int, transaction_id: int):
        super().__init__(client_id, transaction_id, "transaction not found")


class DisputeNotFound(DomainError):
    def __init__(self, client_id: int, transaction_id: int):
        super().__init__(client_id, transaction_id, "no open dispute for transaction")


class DisputeAlreadyOpen(DomainError):
    def __init__(self, client_id: int, transaction_id: int):
        super().__init__(client_id, transaction_id, "transaction already disputed")


class DisputeAlreadyClosed(DomainError):
    def __init__(self, client_id: int, transaction_id: int):
        super().__init__(client_id, transaction_id, "transaction was already charged back")


class AccountLocked(DomainError):
    def __init__(self, client_id: int, transaction_id: int):
        super().__init__(client_id, transaction_id, "account is locked")


class UnknownAccount(DomainError):
    def __init__(self, client_id: int, transaction_id: int):
        super().__init__(client_id, transaction_id, "no account for client")
