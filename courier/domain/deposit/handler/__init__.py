"""Deposit domain event handlers."""

from courier.domain.deposit.handler.process_reported_change import ProcessReportedDepositChange

__all__ = ["ProcessReportedDepositChange"]
