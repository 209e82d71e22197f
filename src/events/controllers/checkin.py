from ninja_extra import api_controller, route

from common.authentication import ContextJWTAuth
from common.throttling import ScanThrottle
from events import schema
from events.service import checkin_service
from events.service.checkin_service import ScanOutcome

from .user_aware_controller import TenantScopedController


@api_controller("/checkin", auth=ContextJWTAuth(), tags=["Check-in"], throttle=ScanThrottle())
class CheckinController(TenantScopedController):
    @route.post(
        "/scan",
        url_name="checkin_scan",
        response={200: ScanOutcome, 403: ScanOutcome, 404: ScanOutcome, 422: ScanOutcome},
        by_alias=True,
        exclude_none=True,
    )
    def scan(self, payload: schema.CheckinScanSchema) -> tuple[int, ScanOutcome]:
        """Admit a ticket from its scanned QR code.

        Requires the checkin_operator role or tenant admin. A repeated scan of an admitted ticket
        returns result "duplicado" with 200.
        """
        outcome = checkin_service.scan(
            self.tenant_id(),
            payload.qr,
            operator=self.user(),
            authorization=self.authorization(),
            gate=payload.gate,
            device_id=payload.device_id,
        )
        return outcome.status_code, outcome
