from courier.domain.critical.util.di.provider import CriticalProvider

__all__ = ["CriticalProvider"]
