from courier.domain.deposit.util.di.provider import DepositProvider

__all__ = ["DepositProvider"]
