from courier.domain.submission.schedule.sweeps import AggregationSweep, LifecycleSweep

__all__ = ["AggregationSweep", "LifecycleSweep"]
