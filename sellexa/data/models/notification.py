import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class NotificationType(str, enum.Enum):
    PRODUCT_LIKE = "product_like"
    PRODUCT_SAVE = "product_save"
    MESSAGE_RECEIVED = "message_received"
    KYC_STATUS = "kyc_status"
    PRODUCT_UPDATE = "product_update"


class Notification(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    data: Optional[Any] = None
    read: bool = False
    created_at: str
    updated_at: Optional[str] = None

    @property
    def is_temporary(self) -> bool:
        """True for locally synthesised notifications not yet persisted."""
        return self.id.startswith("temp-")


class NewNotification(BaseModel):
    """Notification fields supplied when adding one locally."""
    user_id: str
    type: NotificationType
    title: str
    message: str
    data: Optional[Any] = None
    read: bool = False
