from abc import ABC, abstractmethod
from typing import Dict


class NotificationPublisherStrategy(ABC):
    @abstractmethod
    def publish(self, event_type: str, payload: Dict) -> Dict:
        pass
