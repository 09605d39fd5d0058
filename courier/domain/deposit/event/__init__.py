from courier.domain.deposit.event.change_reported import DepositChangeReported
from courier.domain.deposit.event.status_changed import DepositStatusChanged

__all__ = ["DepositChangeReported", "DepositStatusChanged"]
