from abc import ABC, abstractmethod


class BreachGateway(ABC):

    @abstractmethod
    def lookup(self, email: str) -> list[dict]:
        """
        Returns the raw breach records for an email, in upstream order.
        An empty list means no known breaches.

        Raises:
          RateLimited   - upstream asked us to slow down
          UpstreamError - any other upstream status
          InternalError - the request never completed
        """
        pass
