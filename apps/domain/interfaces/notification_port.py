from abc import ABC, abstractmethod


class NotificationPort(ABC):
    @abstractmethod
    def publish_reminder(self, envelope_id, signer_id, message, reminder_count: int) -> None:
        pass

    @abstractmethod
    def publish_invitation(self, envelope_id, signer_id, invitation_token: str) -> None:
        pass
