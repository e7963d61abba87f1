"""
Notification Center and Image Codec Mocks for Component Testing
"""
from typing import Dict, List, Tuple

from services.reminder_service.models import AuthorizationStatus, NotificationRequest


class MockNotificationCenter:
    """Mock local notification subsystem"""

    def __init__(
        self,
        status: AuthorizationStatus = AuthorizationStatus.AUTHORIZED,
        grant: bool = True,
    ):
        self.status = status
        self.grant = grant
        self.pending: Dict[str, NotificationRequest] = {}
        self.added: List[NotificationRequest] = []
        self.authorization_requests = 0

    async def authorization_status(self) -> AuthorizationStatus:
        return self.status

    async def request_authorization(self) -> bool:
        self.authorization_requests += 1
        self.status = AuthorizationStatus.AUTHORIZED if self.grant else AuthorizationStatus.DENIED
        return self.grant

    async def add(self, request: NotificationRequest) -> None:
        self.pending[request.identifier] = request
        self.added.append(request)

    async def remove_pending(self, identifiers: List[str]) -> int:
        return sum(1 for i in identifiers if self.pending.pop(i, None) is not None)

    async def pending_requests(self) -> List[NotificationRequest]:
        return list(self.pending.values())


class MockImageCodec:
    """Mock image codec returning a tagged payload per size"""

    def __init__(self):
        self.calls: List[Tuple[int, int, float]] = []

    def resize(self, data: bytes, width: int, height: int, quality: float) -> bytes:
        self.calls.append((width, height, quality))
        return f"{width}x{height}@{quality}:".encode() + data
