from courier.domain.deposit.schedule.sweeps import DepositRefreshSweep, FailedDepositRetrySweep

__all__ = ["DepositRefreshSweep", "FailedDepositRetrySweep"]
